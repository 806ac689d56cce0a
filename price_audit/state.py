"""
Shared state for the audit service.
The ledger owns the three top-level aggregates (invoices, baselines,
suppliers) and serves memoised projections derived from them.
"""

from typing import Dict, List, Optional

from price_audit.engine.baselines import BaselineStore, match_key
from price_audit.engine.variance import classify, pending_variances
from price_audit.errors import InvoiceNotFoundError
from price_audit.schemas.invoice import EnrichedInvoice, Invoice
from price_audit.schemas.output import VarianceRecord
from price_audit.schemas.supplier import Supplier


class AuditLedger:
    """
    In-memory audit state.

    Every mutation must go through a ledger method (or be followed by
    ``touch()``) so that ``version`` moves and cached projections are
    recomputed on the next read.
    """

    def __init__(
        self,
        invoices: Optional[List[Invoice]] = None,
        baselines: Optional[BaselineStore] = None,
        suppliers: Optional[List[Supplier]] = None,
    ):
        self.invoices: List[Invoice] = list(invoices or [])
        self.baselines: BaselineStore = baselines if baselines is not None else BaselineStore()
        self.suppliers: Dict[str, Supplier] = {}
        for supplier in suppliers or []:
            self.suppliers[match_key(supplier.name, self.baselines.name_matching)] = supplier
        self.version = 0
        self._cache: Dict[str, object] = {}

    def touch(self) -> None:
        self.version += 1

    def _cached(self, key: str, compute):
        entry = self._cache.get(key)
        if entry is not None and entry[0] == self.version:
            return entry[1]
        value = compute()
        self._cache[key] = (self.version, value)
        return value

    # Projections

    def enriched_invoices(self) -> List[EnrichedInvoice]:
        return self._cached("enriched", lambda: classify(self.invoices, self.baselines))

    def pending_variances(self) -> List[VarianceRecord]:
        return self._cached(
            "pending",
            lambda: pending_variances(self.enriched_invoices(), self.baselines),
        )

    def enriched_invoice(self, invoice_id: str) -> EnrichedInvoice:
        for invoice in self.enriched_invoices():
            if invoice.id == invoice_id:
                return invoice
        raise InvoiceNotFoundError(f"Invoice not found: {invoice_id}")

    # Invoices

    def find_invoice(self, invoice_id: str) -> Invoice:
        for invoice in self.invoices:
            if invoice.id == invoice_id:
                return invoice
        raise InvoiceNotFoundError(f"Invoice not found: {invoice_id}")

    def add_invoice(self, invoice: Invoice) -> None:
        # Newest upload first
        self.invoices.insert(0, invoice)
        self.touch()

    def remove_invoice(self, invoice_id: str) -> Invoice:
        invoice = self.find_invoice(invoice_id)
        self.invoices.remove(invoice)
        self.touch()
        return invoice

    def set_paid(self, invoice_id: str, paid: bool = True) -> Invoice:
        invoice = self.find_invoice(invoice_id)
        invoice.is_paid = paid
        if paid:
            invoice.is_hold = False
        self.touch()
        return invoice

    def set_hold(self, invoice_id: str, hold: bool = True) -> Invoice:
        invoice = self.find_invoice(invoice_id)
        invoice.is_hold = hold
        if hold:
            invoice.is_paid = False
        self.touch()
        return invoice

    # Suppliers

    def find_supplier(self, name: str) -> Optional[Supplier]:
        return self.suppliers.get(match_key(name, self.baselines.name_matching))

    def put_supplier(self, supplier: Supplier) -> None:
        self.suppliers[match_key(supplier.name, self.baselines.name_matching)] = supplier
        self.touch()

