"""
Invoice schema and data models.
Stored invoice records plus the enriched projection produced by the classifier.
"""

from enum import Enum
from typing import Optional, List
from pydantic import Field

from price_audit.schemas.common import AuditModel


class DocumentType(str, Enum):
    INVOICE = "invoice"
    CREDIT_NOTE = "credit_note"
    DEBIT_NOTE = "debit_note"
    QUOTE = "quote"


class InvoiceStatus(str, Enum):
    """Invoice-level variance classification."""
    MATCHED = "matched"
    PRICE_INCREASE = "price_increase"
    PRICE_DECREASE = "price_decrease"
    MIXED = "mixed"


class PaymentStatus(str, Enum):
    """Payment state as shown in exports."""
    PAID = "Paid"
    HOLD = "Hold"
    OUTSTANDING = "Outstanding"


class InvoiceItem(AuditModel):
    """A single line item as charged on the invoice."""
    name: str
    quantity: float = 0.0
    unit_price: float = 0.0
    total: float = 0.0


class Invoice(AuditModel):
    """
    An audited invoice as stored in the ledger.

    ``items`` is fixed at ingestion. ``status`` is only a placeholder here;
    the authoritative classification is recomputed from the baseline store on
    every read (see ``EnrichedInvoice``).
    """
    id: str
    supplier_name: str
    invoice_number: str
    date: Optional[str] = None
    due_date: Optional[str] = None
    doc_type: DocumentType = DocumentType.INVOICE
    total_amount: float = 0.0
    gst_amount: float = 0.0
    items: List[InvoiceItem] = Field(default_factory=list)
    file_name: str = ""

    # Payment/compliance metadata
    delivery_location: Optional[str] = None
    bank_account: Optional[str] = None
    credit_term: Optional[str] = None
    address: Optional[str] = None
    abn: Optional[str] = None
    tel: Optional[str] = None
    email: Optional[str] = None

    is_paid: bool = False
    is_hold: bool = False
    status: InvoiceStatus = InvoiceStatus.MATCHED

    def payment_status(self) -> PaymentStatus:
        if self.is_paid:
            return PaymentStatus.PAID
        if self.is_hold:
            return PaymentStatus.HOLD
        return PaymentStatus.OUTSTANDING


class EnrichedItem(InvoiceItem):
    """Line item annotated against the current baseline."""
    previous_unit_price: Optional[float] = None
    price_change: float = 0.0
    percent_change: float = 0.0
    backdated: bool = False


class EnrichedInvoice(Invoice):
    """Invoice with per-item price annotations and a computed status."""
    items: List[EnrichedItem] = Field(default_factory=list)

    def has_variance(self) -> bool:
        return self.status != InvoiceStatus.MATCHED
