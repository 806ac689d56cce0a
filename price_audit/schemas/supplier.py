"""
Supplier registry schema.
"""

from typing import Optional

from price_audit.schemas.common import AuditModel


# Contact/banking fields merged from each incoming invoice
CONTACT_FIELDS = ("bank_account", "credit_term", "address", "abn", "tel", "email")


class Supplier(AuditModel):
    """A supplier, keyed by name. Aggregates are derived, not stored."""
    id: str
    name: str
    bank_account: Optional[str] = None
    credit_term: Optional[str] = None
    address: Optional[str] = None
    abn: Optional[str] = None
    tel: Optional[str] = None
    email: Optional[str] = None

    def merge_contact(self, incoming: dict) -> bool:
        """Overlay non-empty incoming contact values. Returns True if anything changed."""
        changed = False
        for field in CONTACT_FIELDS:
            value = incoming.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            if getattr(self, field) != value:
                setattr(self, field, value)
                changed = True
        return changed
