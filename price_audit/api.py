"""
FastAPI REST interface for the price audit service.
Can be run with: uvicorn price_audit.api:app --reload

This is the command seam between presentation and the reconciliation core:
the dashboard only ever reads projections and issues commands through here.
"""

from typing import List, Optional

from fastapi import Depends, FastAPI, File, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from price_audit.config import get_config
from price_audit.errors import InvoiceNotFoundError, SnapshotError
from price_audit.main import AuditService, UploadedDocument
from price_audit.reporting import dashboard_stats, export_csv, similar_item_names, supplier_summaries
from price_audit.schemas.baseline import MasterItem
from price_audit.schemas.invoice import EnrichedInvoice, Invoice
from price_audit.schemas.output import (
    CommitResult,
    DashboardStats,
    DocumentResult,
    SimilarItemNames,
    SupplierSummary,
    VarianceRecord,
)
from price_audit.utils.logging import setup_logging


logger = setup_logging(__name__)
config = get_config()

app = FastAPI(
    title="Price Audit API",
    description="Invoice price-variance reconciliation against master baselines",
    version="1.0.0",
)

_service: Optional[AuditService] = None


def get_service() -> AuditService:
    """Lazily load the service from the configured snapshot directory."""
    global _service
    if _service is None:
        _service = AuditService.from_storage()
    return _service


class ManualPrice(BaseModel):
    price: float


@app.exception_handler(InvoiceNotFoundError)
async def invoice_not_found_handler(request, exc: InvoiceNotFoundError):
    return JSONResponse(content={"error": str(exc)}, status_code=404)


@app.exception_handler(SnapshotError)
async def snapshot_error_handler(request, exc: SnapshotError):
    logger.error(f"Snapshot error: {exc}")
    return JSONResponse(
        content={"error": str(exc), "message": "Stored audit data could not be read"},
        status_code=500,
    )


@app.post("/invoices/upload", response_model=List[DocumentResult])
async def upload_invoices(
    files: List[UploadFile] = File(...),
    service: AuditService = Depends(get_service),
):
    """Audit uploaded documents one after another; each gets its own result."""
    documents = []
    for file in files:
        documents.append(
            UploadedDocument(
                file_name=file.filename or "document",
                content=await file.read(),
                mime_type=file.content_type or None,
            )
        )
    return await service.process_documents(documents)


@app.get("/invoices", response_model=List[EnrichedInvoice])
async def list_invoices(service: AuditService = Depends(get_service)):
    return service.ledger.enriched_invoices()


@app.get("/invoices/{invoice_id}", response_model=EnrichedInvoice)
async def get_invoice(invoice_id: str, service: AuditService = Depends(get_service)):
    return service.ledger.enriched_invoice(invoice_id)


@app.post("/invoices/{invoice_id}/paid", response_model=Invoice)
async def toggle_paid(invoice_id: str, service: AuditService = Depends(get_service)):
    return service.toggle_paid(invoice_id)


@app.post("/invoices/{invoice_id}/hold", response_model=Invoice)
async def toggle_hold(invoice_id: str, service: AuditService = Depends(get_service)):
    return service.toggle_hold(invoice_id)


@app.delete("/invoices/{invoice_id}")
async def delete_invoice(invoice_id: str, service: AuditService = Depends(get_service)):
    invoice = service.delete_invoice(invoice_id)
    return {"deleted": invoice.id}


@app.get("/variances/pending", response_model=List[VarianceRecord])
async def list_pending(service: AuditService = Depends(get_service)):
    return service.ledger.pending_variances()


@app.post("/variances/accept", response_model=List[CommitResult])
async def accept_variances(
    records: List[VarianceRecord],
    service: AuditService = Depends(get_service),
):
    return service.accept_variances(records)


@app.get("/baselines", response_model=List[MasterItem])
async def list_baselines(service: AuditService = Depends(get_service)):
    return service.ledger.baselines.items()


@app.put("/baselines/{supplier_name}/{item_name}", response_model=CommitResult)
async def update_baseline(
    supplier_name: str,
    item_name: str,
    body: ManualPrice,
    service: AuditService = Depends(get_service),
):
    try:
        return service.update_baseline(supplier_name, item_name, body.price)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.get("/suppliers", response_model=List[SupplierSummary])
async def list_suppliers(service: AuditService = Depends(get_service)):
    return supplier_summaries(service.ledger)


@app.get("/stats", response_model=DashboardStats)
async def get_stats(service: AuditService = Depends(get_service)):
    return dashboard_stats(service.ledger)


@app.get("/diagnostics/similar-items", response_model=List[SimilarItemNames])
async def get_similar_items(service: AuditService = Depends(get_service)):
    return similar_item_names(service.ledger.baselines)


@app.get("/export.csv")
async def export_invoices(
    ids: Optional[List[str]] = Query(None),
    service: AuditService = Depends(get_service),
):
    content = export_csv(service.ledger.enriched_invoices(), ids)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=invoices.csv"},
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


@app.get("/config")
async def get_config_endpoint():
    """Get current configuration (sanitized)."""
    return {
        "llm_provider": config.LLM_PROVIDER,
        "llm_model": config.LLM_MODEL,
        "mock_mode": config.LLM_MOCK_MODE,
        "variance_threshold": config.VARIANCE_THRESHOLD,
        "sync_tolerance": config.SYNC_TOLERANCE,
        "name_matching": config.NAME_MATCHING,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=config.API_HOST,
        port=config.API_PORT,
        log_level=config.LOG_LEVEL.lower(),
    )
