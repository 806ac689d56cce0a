"""
Variance Classifier
Compares every invoice line item against the current price baseline.

RULES:
1. Baseline lookup is by (invoice supplier, item name). No baseline means no
   comparison: priceChange 0, previousUnitPrice None.
2. An invoice dated before the baseline's last update is judged as if no
   baseline existed (backdating guard). Late-arriving old documents are
   never flagged retroactively.
3. A price change is material only beyond VARIANCE_THRESHOLD (0.01) in either
   direction. The same threshold drives item flags, invoice status and the
   pending queue.
4. A material variance is pending until the baseline already carries the
   invoice's price (within SYNC_TOLERANCE).

Everything here is a pure projection of (invoices, baseline store).
"""

from typing import Iterable, List, Optional, Sequence, Tuple

from price_audit.config import get_config
from price_audit.engine.backdating import is_backdated
from price_audit.engine.baselines import BaselineStore
from price_audit.schemas.invoice import (
    EnrichedInvoice,
    EnrichedItem,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
)
from price_audit.schemas.output import VarianceRecord
from price_audit.utils import safe_divide
from price_audit.utils.dates import parse_calendar_date
from price_audit.utils.logging import setup_logging


logger = setup_logging(__name__)
config = get_config()


def enrich_item(invoice: Invoice, item: InvoiceItem, store: BaselineStore) -> EnrichedItem:
    """Annotate one line item with its baseline comparison."""
    baseline = store.lookup(invoice.supplier_name, item.name)

    if baseline is None:
        return EnrichedItem(**item.model_dump())

    if is_backdated(invoice.date, baseline.last_updated):
        return EnrichedItem(**item.model_dump(), backdated=True)

    price_change = item.unit_price - baseline.current_price
    return EnrichedItem(
        **item.model_dump(),
        previous_unit_price=baseline.current_price,
        price_change=price_change,
        percent_change=safe_divide(price_change, baseline.current_price) * 100,
    )


def derive_status(items: Sequence[EnrichedItem], threshold: float = None) -> InvoiceStatus:
    """Aggregate item price changes into an invoice status."""
    if threshold is None:
        threshold = config.VARIANCE_THRESHOLD

    has_increase = any(item.price_change > threshold for item in items)
    has_decrease = any(item.price_change < -threshold for item in items)

    if has_increase and has_decrease:
        return InvoiceStatus.MIXED
    if has_increase:
        return InvoiceStatus.PRICE_INCREASE
    if has_decrease:
        return InvoiceStatus.PRICE_DECREASE
    return InvoiceStatus.MATCHED


def enrich_invoice(invoice: Invoice, store: BaselineStore) -> EnrichedInvoice:
    items = [enrich_item(invoice, item, store) for item in invoice.items]
    return EnrichedInvoice(
        **invoice.model_dump(exclude={"items", "status"}),
        items=items,
        status=derive_status(items),
    )


def _newest_first_key(invoice_date: Optional[str]) -> Tuple[int, int]:
    # Undated invoices sink to the end; sorted() keeps ties in insertion order
    day = parse_calendar_date(invoice_date)
    if day is None:
        return (1, 0)
    return (0, -day.toordinal())


def classify(invoices: Iterable[Invoice], store: BaselineStore) -> List[EnrichedInvoice]:
    """
    Enrich every invoice against the store.

    Returns enriched invoices, most recent first; ties keep insertion order.
    """
    enriched = [enrich_invoice(invoice, store) for invoice in invoices]
    flagged = sum(1 for invoice in enriched if invoice.has_variance())
    logger.debug(f"Classified {len(enriched)} invoices ({flagged} with material variances)")
    return sorted(enriched, key=lambda invoice: _newest_first_key(invoice.date))


def is_material(price_change: float, threshold: float = None) -> bool:
    if threshold is None:
        threshold = config.VARIANCE_THRESHOLD
    return abs(price_change) > threshold


def pending_variances(
    enriched_invoices: Iterable[EnrichedInvoice],
    store: BaselineStore,
) -> List[VarianceRecord]:
    """
    Material variances not yet reflected in the baseline store.

    The store is consulted again here so that records computed before a
    commit drop out as soon as the baseline carries the new price.
    """
    records = []

    for invoice in enriched_invoices:
        for item in invoice.items:
            if not is_material(item.price_change):
                continue

            baseline = store.lookup(invoice.supplier_name, item.name)
            if baseline is not None and abs(baseline.current_price - item.unit_price) <= config.SYNC_TOLERANCE:
                continue

            records.append(
                VarianceRecord(
                    supplier_name=invoice.supplier_name,
                    item_name=item.name,
                    invoice_id=invoice.id,
                    invoice_number=invoice.invoice_number,
                    invoice_date=invoice.date,
                    old_price=item.previous_unit_price if item.previous_unit_price is not None else 0.0,
                    new_price=item.unit_price,
                    price_change=item.price_change,
                    percent_change=item.percent_change,
                )
            )

    return sorted(records, key=lambda record: _newest_first_key(record.invoice_date))


def summarize_variances(enriched_invoices: Iterable[EnrichedInvoice]) -> Tuple[float, float]:
    """
    Money impact of material variances on unpaid invoices.

    Returns (overcharge_total, savings_total), both as positive amounts.
    """
    overcharge = 0.0
    savings = 0.0

    for invoice in enriched_invoices:
        if invoice.is_paid:
            continue
        for item in invoice.items:
            if not is_material(item.price_change):
                continue
            impact = item.price_change * (item.quantity or 0.0)
            if impact > 0:
                overcharge += impact
            else:
                savings += -impact

    return overcharge, savings
