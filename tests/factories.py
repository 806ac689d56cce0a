"""
Builders for invoices and raw extraction records used across the tests.
"""

from price_audit.schemas.invoice import Invoice, InvoiceItem


def make_invoice(
    invoice_id: str,
    items,
    date: str = "2024-02-01",
    supplier_name: str = "Acme",
    invoice_number: str = None,
    **kwargs,
) -> Invoice:
    """Build an invoice from (name, unit_price) or (name, unit_price, quantity) tuples."""
    line_items = []
    for row in items:
        name, unit_price = row[0], row[1]
        quantity = row[2] if len(row) > 2 else 1
        line_items.append(InvoiceItem(name=name, quantity=quantity, unit_price=unit_price, total=unit_price * quantity))
    return Invoice(
        id=invoice_id,
        supplier_name=supplier_name,
        invoice_number=invoice_number or f"N-{invoice_id}",
        date=date,
        items=line_items,
        total_amount=sum(item.total for item in line_items),
        **kwargs,
    )


def raw_extraction(
    invoice_number: str,
    items,
    date: str = "2024-01-01",
    supplier_name: str = "Acme",
    **extra,
) -> dict:
    """Extraction-service shaped record."""
    record = {
        "docType": "invoice",
        "supplierName": supplier_name,
        "date": date,
        "dueDate": None,
        "invoiceNumber": invoice_number,
        "totalAmount": sum(price * qty for _, price, qty in items),
        "gstAmount": 0,
        "items": [
            {"name": name, "quantity": qty, "unitPrice": price, "total": price * qty}
            for name, price, qty in items
        ],
    }
    record.update(extra)
    return record

