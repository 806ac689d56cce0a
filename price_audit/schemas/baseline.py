"""
Master baseline schema.
One MasterItem anchors the accepted unit price for a (supplier, item) pair.
"""

from enum import Enum
from typing import Optional, List
from pydantic import ConfigDict, Field

from price_audit.schemas.common import AuditModel


INITIAL_REGISTRATION_NOTE = "Initial Registration"


class HistorySource(str, Enum):
    AUDIT = "audit"
    MANUAL = "manual"


class BaselineState(str, Enum):
    """Lifecycle of a (supplier, item) pair in the baseline store."""
    UNREGISTERED = "unregistered"
    REGISTERED = "registered"


class PriceHistoryEntry(AuditModel):
    """One price-setting event. Never modified once recorded."""
    model_config = ConfigDict(frozen=True)

    date: Optional[str] = None
    price: float
    variance: float = 0.0
    percent_change: float = 0.0
    source: HistorySource = HistorySource.AUDIT
    invoice_number: Optional[str] = None
    note: str = ""


class MasterItem(AuditModel):
    """
    Baseline anchor for a (supplier, item) pair.

    ``history`` is newest-first and append-only: the first element always
    describes the event that produced ``current_price``.
    """
    id: str
    supplier_name: str
    item_name: str
    current_price: float = Field(ge=0.0)
    last_updated: Optional[str] = None
    history: List[PriceHistoryEntry] = Field(default_factory=list)
