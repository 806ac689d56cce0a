"""
Main entry point for the price audit service.
"""

import asyncio
import mimetypes
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel

from price_audit.config import get_config
from price_audit.engine.commit import commit_batch, set_manual_price
from price_audit.graph import DocumentState, build_document_graph, to_document_result
from price_audit.schemas.invoice import Invoice
from price_audit.schemas.output import CommitResult, DocumentResult, VarianceRecord
from price_audit.state import AuditLedger
from price_audit.storage import SnapshotStorage
from price_audit.utils import dict_to_json_string
from price_audit.utils.logging import setup_logging


logger = setup_logging(__name__)
config = get_config()


class UploadedDocument(BaseModel):
    file_name: str
    content: bytes
    mime_type: Optional[str] = None


class AuditService:
    """
    Command interface over the ledger.

    Every successful mutation is followed by a full snapshot save when a
    storage backend is configured.
    """

    def __init__(self, ledger: AuditLedger = None, storage: Optional[SnapshotStorage] = None):
        self.ledger = ledger if ledger is not None else AuditLedger()
        self.storage = storage
        self._graph = build_document_graph(self.ledger)

    @classmethod
    def from_storage(cls, storage: SnapshotStorage = None) -> "AuditService":
        storage = storage or SnapshotStorage()
        return cls(storage.load(), storage)

    def _persist(self) -> None:
        if self.storage is not None and config.PERSIST_DATA:
            self.storage.save(self.ledger)

    async def process_document(self, document: UploadedDocument) -> DocumentResult:
        """Extract and ingest one document. Failures come back as results, not exceptions."""
        state = DocumentState(
            file_name=document.file_name,
            content=document.content,
            mime_type=document.mime_type or config.DEFAULT_MIME_TYPE,
        )

        try:
            final_state = await self._graph.ainvoke(state)
        except Exception as e:
            logger.exception(f"Unexpected error processing {document.file_name}: {e}")
            return DocumentResult(
                file_name=document.file_name,
                success=False,
                error_kind="extraction",
                message=f"Audit failed: {e}",
            )

        result = to_document_result(final_state)
        if result.success:
            self._persist()
        return result

    async def process_documents(self, documents: List[UploadedDocument]) -> List[DocumentResult]:
        """
        Process a batch strictly one document at a time.

        Sequential processing is what keeps two documents for the same new
        (supplier, item) pair from both registering a baseline.
        """
        results = []

        for idx, document in enumerate(documents, 1):
            logger.info(f"Auditing {document.file_name} ({idx}/{len(documents)})")
            results.append(await self.process_document(document))

        succeeded = sum(1 for r in results if r.success)
        logger.info(f"Batch processing complete. Audited {succeeded}/{len(documents)} documents.")
        return results

    def accept_variances(self, records: List[VarianceRecord]) -> List[CommitResult]:
        results = commit_batch(self.ledger.baselines, records)
        if any(result.applied for result in results):
            self.ledger.touch()
            self._persist()
        return results

    def accept_all_pending(self) -> List[CommitResult]:
        return self.accept_variances(self.ledger.pending_variances())

    def update_baseline(self, supplier_name: str, item_name: str, new_price: float) -> CommitResult:
        result = set_manual_price(self.ledger.baselines, supplier_name, item_name, new_price)
        if result.applied:
            self.ledger.touch()
            self._persist()
        return result

    def toggle_paid(self, invoice_id: str) -> Invoice:
        invoice = self.ledger.find_invoice(invoice_id)
        invoice = self.ledger.set_paid(invoice_id, not invoice.is_paid)
        self._persist()
        return invoice

    def toggle_hold(self, invoice_id: str) -> Invoice:
        invoice = self.ledger.find_invoice(invoice_id)
        invoice = self.ledger.set_hold(invoice_id, not invoice.is_hold)
        self._persist()
        return invoice

    def delete_invoice(self, invoice_id: str) -> Invoice:
        invoice = self.ledger.remove_invoice(invoice_id)
        self._persist()
        return invoice


def load_documents(paths: List[str]) -> List[UploadedDocument]:
    documents = []
    for path in paths:
        p = Path(path)
        mime_type, _ = mimetypes.guess_type(p.name)
        documents.append(UploadedDocument(file_name=p.name, content=p.read_bytes(), mime_type=mime_type))
    return documents


async def main(paths: List[str]) -> None:
    service = AuditService.from_storage()
    results = await service.process_documents(load_documents(paths))
    print(dict_to_json_string({
        "results": [r.model_dump(by_alias=True) for r in results],
        "pending": [v.model_dump(by_alias=True) for v in service.ledger.pending_variances()],
    }))


if __name__ == "__main__":
    if len(sys.argv) > 1:
        asyncio.run(main(sys.argv[1:]))
    else:
        print("Usage: python -m price_audit.main <document_path> [<document_path> ...]")
