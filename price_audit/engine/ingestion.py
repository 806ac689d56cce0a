"""
Ingestion Coordinator
Turns one raw extraction record into a stored invoice.

The extraction service is best-effort: any field may be missing, null, the
wrong type or nonsense. Parsing never raises on optional fields; only a
missing supplier name or invoice number rejects the document, and that check
runs before anything touches the ledger.

First sighting of a (supplier, item) pair registers its baseline at the
invoice's own price. Later sightings never touch an existing baseline here;
they surface as pending variances for a human to accept.
"""

from typing import Any, Dict, List, Optional

from price_audit.engine.baselines import validate_price
from price_audit.engine.variance import enrich_invoice, is_material
from price_audit.errors import ValidationError
from price_audit.schemas.baseline import BaselineState
from price_audit.schemas.invoice import DocumentType, Invoice, InvoiceItem
from price_audit.schemas.supplier import CONTACT_FIELDS, Supplier
from price_audit.state import AuditLedger
from price_audit.utils import coerce_float, new_id
from price_audit.utils.dates import to_iso_date
from price_audit.utils.logging import setup_logging, log_audit_event, log_variance


logger = setup_logging(__name__)

REQUIRED_FIELDS = {
    "supplierName": "supplier_name",
    "invoiceNumber": "invoice_number",
}

# Wire name -> attribute name for optional string metadata
OPTIONAL_STRING_FIELDS = {
    "deliveryLocation": "delivery_location",
    "bankAccount": "bank_account",
    "creditTerm": "credit_term",
    "address": "address",
    "abn": "abn",
    "tel": "tel",
    "email": "email",
}


def _clean_string(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list, bool)):
        return None
    text = str(value).strip()
    if not text or text.lower() in ("null", "none"):
        return None
    return text


def _parse_doc_type(value: Any) -> DocumentType:
    text = (_clean_string(value) or "").lower().replace(" ", "_").replace("-", "_")
    try:
        return DocumentType(text)
    except ValueError:
        return DocumentType.INVOICE


def parse_items(raw_items: Any) -> List[InvoiceItem]:
    """Parse extracted line items, dropping rows that have no usable name."""
    if not isinstance(raw_items, list):
        if raw_items is not None:
            logger.warning(f"Ignoring non-list items payload: {type(raw_items).__name__}")
        return []

    items = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            logger.warning(f"Skipping line item {index}: not an object")
            continue
        name = _clean_string(raw.get("name"))
        if name is None:
            logger.warning(f"Skipping line item {index}: missing name")
            continue
        items.append(
            InvoiceItem(
                name=name,
                quantity=coerce_float(raw.get("quantity")),
                unit_price=coerce_float(raw.get("unitPrice")),
                total=coerce_float(raw.get("total")),
            )
        )
    return items


def parse_raw_extraction(raw_extraction: Any) -> Dict[str, Any]:
    """
    Normalise an untrusted extraction record into invoice fields.

    Raises ValidationError if a required field is missing or blank.
    """
    if not isinstance(raw_extraction, dict):
        raise ValidationError(
            "Extraction result is not a record",
            missing_fields=list(REQUIRED_FIELDS),
        )

    fields: Dict[str, Any] = {}
    missing = []
    for wire_name, attr in REQUIRED_FIELDS.items():
        value = _clean_string(raw_extraction.get(wire_name))
        if value is None:
            missing.append(wire_name)
        fields[attr] = value

    if missing:
        raise ValidationError(
            f"Extraction is missing required field(s): {', '.join(missing)}",
            missing_fields=missing,
        )

    for wire_name, attr in OPTIONAL_STRING_FIELDS.items():
        fields[attr] = _clean_string(raw_extraction.get(wire_name))

    fields["date"] = to_iso_date(raw_extraction.get("date")) or _clean_string(raw_extraction.get("date"))
    fields["due_date"] = to_iso_date(raw_extraction.get("dueDate")) or _clean_string(raw_extraction.get("dueDate"))
    fields["doc_type"] = _parse_doc_type(raw_extraction.get("docType"))
    fields["total_amount"] = coerce_float(raw_extraction.get("totalAmount"))
    fields["gst_amount"] = coerce_float(raw_extraction.get("gstAmount"))
    fields["items"] = parse_items(raw_extraction.get("items"))
    return fields


def register_supplier(ledger: AuditLedger, invoice: Invoice) -> Supplier:
    """Create the supplier on first sight, otherwise merge newer contact details."""
    contact = {field: getattr(invoice, field) for field in CONTACT_FIELDS}
    supplier = ledger.find_supplier(invoice.supplier_name)

    if supplier is None:
        supplier = Supplier(id=new_id("sup"), name=invoice.supplier_name, **contact)
        ledger.put_supplier(supplier)
        log_audit_event(logger, "IngestionCoordinator", "Supplier registered", {"supplier": supplier.name})
    elif supplier.merge_contact(contact):
        ledger.touch()
        logger.debug(f"Merged contact details for supplier {supplier.name}")

    return supplier


def register_new_items(ledger: AuditLedger, invoice: Invoice) -> int:
    """Seed baselines for pairs never seen before. Returns how many were created."""
    # Undated invoices seed undated baselines
    as_of = to_iso_date(invoice.date)
    created = 0

    for item in invoice.items:
        if ledger.baselines.state_of(invoice.supplier_name, item.name) is BaselineState.REGISTERED:
            continue
        try:
            validate_price(item.unit_price)
        except ValueError as e:
            logger.warning(f"Not registering baseline for {invoice.supplier_name} / {item.name}: {e}")
            continue
        ledger.baselines.register(
            invoice.supplier_name,
            item.name,
            item.unit_price,
            as_of=as_of,
            invoice_number=invoice.invoice_number,
        )
        created += 1

    if created:
        ledger.touch()
    return created


def ingest(ledger: AuditLedger, raw_extraction: Any, file_name: str) -> Invoice:
    """
    Validate an extraction, register its supplier and new items, and store it.

    Returns the stored invoice. Raises ValidationError without touching the
    ledger if the record lacks a supplier name or invoice number.
    """
    fields = parse_raw_extraction(raw_extraction)

    invoice = Invoice(
        id=new_id("inv"),
        file_name=file_name,
        is_paid=False,
        is_hold=False,
        **fields,
    )

    register_supplier(ledger, invoice)
    seeded = register_new_items(ledger, invoice)
    ledger.add_invoice(invoice)

    enriched = enrich_invoice(invoice, ledger.baselines)
    for item in enriched.items:
        if is_material(item.price_change):
            log_variance(
                logger,
                invoice.supplier_name,
                item.name,
                invoice.invoice_number,
                item.price_change,
                item.percent_change,
            )

    log_audit_event(logger, "IngestionCoordinator", "Invoice ingested", {
        "invoice_id": invoice.id,
        "invoice_number": invoice.invoice_number,
        "supplier": invoice.supplier_name,
        "file_name": file_name,
        "line_items_count": len(invoice.items),
        "baselines_seeded": seeded,
        "status": enriched.status.value,
    })
    return invoice
