"""
Price Audit Guardian
"""

__version__ = "1.0.0"
__description__ = "Invoice price-variance reconciliation against per-supplier master baselines"

from price_audit.main import AuditService, UploadedDocument
from price_audit.state import AuditLedger
from price_audit.engine.backdating import is_backdated
from price_audit.engine.variance import classify, pending_variances

__all__ = [
    "AuditService",
    "UploadedDocument",
    "AuditLedger",
    "is_backdated",
    "classify",
    "pending_variances",
]
