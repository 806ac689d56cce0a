"""
Baseline Commit Engine
Applies accepted variances to the price baseline store.
"""

from typing import Iterable, List, Optional

from price_audit.engine.backdating import is_backdated
from price_audit.engine.baselines import BaselineStore
from price_audit.schemas.baseline import INITIAL_REGISTRATION_NOTE, HistorySource
from price_audit.schemas.output import CommitAction, CommitResult, VarianceRecord
from price_audit.utils.dates import today_iso
from price_audit.utils.logging import setup_logging, log_audit_event


logger = setup_logging(__name__)


def commit_variance(
    store: BaselineStore,
    supplier_name: str,
    item_name: str,
    new_price: float,
    invoice_number: Optional[str],
    invoice_date: Optional[str],
    source: HistorySource = HistorySource.AUDIT,
    note: Optional[str] = None,
) -> CommitResult:
    """
    Accept ``new_price`` as the baseline for (supplier_name, item_name).

    Unregistered pairs are registered with a seed history entry. Registered
    pairs are updated unless the invoice predates the baseline, in which case
    nothing changes and a ``noop_backdated`` result is returned.
    """
    item = store.lookup(supplier_name, item_name)

    if item is None:
        created = store.register(
            supplier_name,
            item_name,
            new_price,
            as_of=invoice_date,
            invoice_number=invoice_number,
            source=source,
            note=note if note is not None else INITIAL_REGISTRATION_NOTE,
        )
        log_audit_event(logger, "CommitEngine", "Baseline created", {
            "supplier": supplier_name,
            "item": item_name,
            "price": created.current_price,
            "invoice_number": invoice_number,
        })
        return CommitResult(
            supplier_name=supplier_name,
            item_name=item_name,
            action=CommitAction.CREATED,
            new_price=created.current_price,
            message=f"Baseline registered at {created.current_price:.2f}",
        )

    if is_backdated(invoice_date, item.last_updated):
        log_audit_event(logger, "CommitEngine", "noop_commit", {
            "supplier": supplier_name,
            "item": item_name,
            "invoice_number": invoice_number,
            "invoice_date": invoice_date,
            "baseline_last_updated": item.last_updated,
        })
        return CommitResult(
            supplier_name=supplier_name,
            item_name=item_name,
            action=CommitAction.NOOP_BACKDATED,
            previous_price=item.current_price,
            new_price=item.current_price,
            message=(
                f"Invoice dated {invoice_date} predates baseline update on "
                f"{item.last_updated}; baseline left unchanged"
            ),
        )

    previous_price = item.current_price
    if note is None:
        note = f"Accepted from invoice {invoice_number}" if invoice_number else ""
    entry = store.advance(
        item,
        new_price,
        as_of=invoice_date,
        invoice_number=invoice_number,
        source=source,
        note=note,
    )
    log_audit_event(logger, "CommitEngine", "Baseline updated", {
        "supplier": supplier_name,
        "item": item_name,
        "previous_price": previous_price,
        "price": entry.price,
        "variance": entry.variance,
        "percent_change": entry.percent_change,
        "invoice_number": invoice_number,
    })
    return CommitResult(
        supplier_name=supplier_name,
        item_name=item_name,
        action=CommitAction.UPDATED,
        previous_price=previous_price,
        new_price=entry.price,
        variance=entry.variance,
        percent_change=entry.percent_change,
        message=f"Baseline moved {previous_price:.2f} -> {entry.price:.2f}",
    )


def commit_record(store: BaselineStore, record: VarianceRecord) -> CommitResult:
    return commit_variance(
        store,
        record.supplier_name,
        record.item_name,
        record.new_price,
        record.invoice_number,
        record.invoice_date,
    )


def commit_batch(store: BaselineStore, records: Iterable[VarianceRecord]) -> List[CommitResult]:
    """
    Apply records one after another, in the order given.

    A record that raises is reported as ``failed``; the rest still run.
    """
    results = []

    for record in records:
        try:
            results.append(commit_record(store, record))
        except Exception as e:
            logger.error(f"Commit failed for {record.supplier_name} / {record.item_name}: {e}")
            results.append(
                CommitResult(
                    supplier_name=record.supplier_name,
                    item_name=record.item_name,
                    action=CommitAction.FAILED,
                    new_price=record.new_price,
                    message=str(e),
                )
            )

    applied = sum(1 for result in results if result.applied)
    log_audit_event(logger, "CommitEngine", "Batch committed", {
        "requested": len(results),
        "applied": applied,
        "skipped": len(results) - applied,
    })
    return results


def set_manual_price(
    store: BaselineStore,
    supplier_name: str,
    item_name: str,
    new_price: float,
    as_of: Optional[str] = None,
    note: str = "Manual master rate update",
) -> CommitResult:
    """Override a master rate by hand, dated today unless ``as_of`` is given."""
    return commit_variance(
        store,
        supplier_name,
        item_name,
        new_price,
        invoice_number=None,
        invoice_date=as_of or today_iso(),
        source=HistorySource.MANUAL,
        note=note,
    )
