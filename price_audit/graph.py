"""
LangGraph orchestration for the per-document ingestion workflow.
Defines the graph structure and node routing logic.
"""

from typing import Literal, Optional

from langgraph.graph import StateGraph, END
from pydantic import BaseModel

from price_audit.agents.document_intelligence import extract_invoice_data
from price_audit.engine.ingestion import ingest
from price_audit.errors import ExtractionFailure, ValidationError
from price_audit.schemas.output import DocumentResult
from price_audit.state import AuditLedger
from price_audit.utils.logging import setup_logging


logger = setup_logging(__name__)


class DocumentState(BaseModel):
    """State carried through the graph for one uploaded document."""
    file_name: str
    content: bytes
    mime_type: Optional[str] = None

    raw_extraction: Optional[dict] = None
    invoice_id: Optional[str] = None
    invoice_number: Optional[str] = None

    error_kind: Optional[str] = None  # extraction, validation
    error: Optional[str] = None


def route_after_extraction(state: DocumentState) -> Literal["ingestion", "end"]:
    """Route after document extraction."""
    if state.error_kind or state.raw_extraction is None:
        return "end"
    return "ingestion"


def build_document_graph(ledger: AuditLedger):
    """
    Build the ingestion workflow bound to a ledger.

    Flow:
    1. Extraction - send the document to the LLM
    2. Ingestion - validate, register supplier and new items, store invoice
    """

    async def extraction_node(state: DocumentState) -> dict:
        logger.info(f"[Extraction] Processing document: {state.file_name}")
        try:
            raw = await extract_invoice_data(state.content, state.mime_type, file_name=state.file_name)
        except ExtractionFailure as e:
            return {"error_kind": "extraction", "error": str(e)}
        return {"raw_extraction": raw}

    def ingestion_node(state: DocumentState) -> dict:
        try:
            invoice = ingest(ledger, state.raw_extraction, state.file_name)
        except ValidationError as e:
            logger.warning(f"[Ingestion] Rejected {state.file_name}: {e}")
            return {"error_kind": "validation", "error": str(e)}
        return {"invoice_id": invoice.id, "invoice_number": invoice.invoice_number}

    graph = StateGraph(DocumentState)

    graph.add_node("extraction", extraction_node)
    graph.add_node("ingestion", ingestion_node)

    graph.set_entry_point("extraction")
    graph.add_conditional_edges(
        "extraction",
        route_after_extraction,
        {"ingestion": "ingestion", "end": END},
    )
    graph.add_edge("ingestion", END)

    return graph.compile()


def to_document_result(result: dict) -> DocumentResult:
    """Turn the graph's final state into a per-document notification."""
    if isinstance(result, BaseModel):
        result = result.model_dump()
    file_name = result["file_name"]
    if result.get("error_kind"):
        return DocumentResult(
            file_name=file_name,
            success=False,
            error_kind=result["error_kind"],
            message=f"Audit failed: {result.get('error')}",
        )
    return DocumentResult(
        file_name=file_name,
        success=True,
        invoice_id=result.get("invoice_id"),
        invoice_number=result.get("invoice_number"),
        message=f"Success: {file_name} audited.",
    )
