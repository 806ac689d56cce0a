"""
Error taxonomy for the price audit service.

``ValidationError`` and ``ExtractionFailure`` are per-document failures: the
upload batch records them and moves on. A commit rejected by the backdating
guard is not an error at all; it comes back as a ``CommitResult`` with
``action == "noop_backdated"``.
"""


class AuditError(Exception):
    """Base class for all price audit errors."""


class ValidationError(AuditError):
    """A required field is missing from an extracted document."""

    def __init__(self, message: str, missing_fields=None):
        super().__init__(message)
        self.missing_fields = list(missing_fields or [])


class ExtractionFailure(AuditError):
    """The extraction service failed or returned output we cannot parse."""


class BaselineStateError(AuditError):
    """An illegal transition was requested on a (supplier, item) baseline."""


class SnapshotError(AuditError):
    """A persisted snapshot is unreadable or uses an unsupported version."""


class InvoiceNotFoundError(AuditError):
    """No invoice with the requested id exists in the ledger."""
