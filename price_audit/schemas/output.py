"""
Output schemas for reconciliation results.
Records handed back to callers: pending variances, commit outcomes,
per-document upload results and dashboard aggregates.
"""

from enum import Enum
from typing import Optional, List
from pydantic import Field, computed_field

from price_audit.schemas.common import AuditModel


class VarianceRecord(AuditModel):
    """A material, not-yet-committed price difference awaiting acceptance."""
    supplier_name: str
    item_name: str
    invoice_id: str
    invoice_number: Optional[str] = None
    invoice_date: Optional[str] = None
    old_price: float
    new_price: float
    price_change: float
    percent_change: float


class CommitAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    NOOP_BACKDATED = "noop_backdated"
    FAILED = "failed"


class CommitResult(AuditModel):
    """Outcome of applying one variance to the baseline store."""
    supplier_name: str
    item_name: str
    action: CommitAction
    previous_price: Optional[float] = None
    new_price: float
    variance: float = 0.0
    percent_change: float = 0.0
    message: str = ""

    @computed_field
    @property
    def applied(self) -> bool:
        return self.action in (CommitAction.CREATED, CommitAction.UPDATED)


class DocumentResult(AuditModel):
    """Per-upload notification: one per document in a batch."""
    file_name: str
    success: bool
    invoice_id: Optional[str] = None
    invoice_number: Optional[str] = None
    error_kind: Optional[str] = None  # validation, extraction
    message: str


class SupplierSummary(AuditModel):
    """Supplier with derived invoice aggregates."""
    name: str
    invoice_count: int = 0
    total_volume: float = 0.0
    latest_date: Optional[str] = None
    abn: Optional[str] = None
    tel: Optional[str] = None
    email: Optional[str] = None


class TrendPoint(AuditModel):
    date: Optional[str] = None
    total: float
    variance: float


class DashboardStats(AuditModel):
    total_payable: float = 0.0
    variances: int = 0
    total_gst: float = 0.0
    total_count: int = 0
    overcharge_total: float = 0.0
    savings_total: float = 0.0
    pending_count: int = 0
    trend: List[TrendPoint] = Field(default_factory=list)


class SimilarItemNames(AuditModel):
    """Two baseline item names under one supplier that look like the same product."""
    supplier_name: str
    item_name: str
    similar_to: str
    similarity: float
