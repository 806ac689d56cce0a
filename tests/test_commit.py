"""
Tests for the baseline commit engine.
"""

import pytest

from price_audit.engine.commit import commit_batch, commit_variance, set_manual_price
from price_audit.engine.variance import classify, pending_variances
from price_audit.schemas.baseline import HistorySource
from price_audit.schemas.invoice import InvoiceStatus
from price_audit.schemas.output import CommitAction, VarianceRecord
from tests.factories import make_invoice


def _record(item_name, new_price, invoice_date, supplier_name="Acme", old_price=10.0):
    return VarianceRecord(
        supplier_name=supplier_name,
        item_name=item_name,
        invoice_id=f"inv-{item_name}",
        invoice_number=f"N-{item_name}",
        invoice_date=invoice_date,
        old_price=old_price,
        new_price=new_price,
        price_change=new_price - old_price,
        percent_change=(new_price - old_price) / old_price * 100,
    )


def test_commit_creates_unregistered_pair(store):
    result = commit_variance(store, "Acme", "Widget", 10.0, "A-1", "2024-01-01")

    assert result.action is CommitAction.CREATED
    assert result.applied is True
    item = store.lookup("Acme", "Widget")
    assert item.current_price == 10.0
    assert item.last_updated == "2024-01-01"
    assert len(item.history) == 1
    assert item.history[0].variance == 0.0
    assert item.history[0].note == "Initial Registration"


def test_commit_updates_registered_pair(store):
    store.register("Acme", "Widget", 10.0, as_of="2024-01-01")
    result = commit_variance(store, "Acme", "Widget", 12.0, "B-1", "2024-02-01")

    assert result.action is CommitAction.UPDATED
    assert result.previous_price == 10.0
    assert result.variance == pytest.approx(2.0)
    assert result.percent_change == pytest.approx(20.0)

    item = store.lookup("Acme", "Widget")
    assert item.current_price == 12.0
    assert item.last_updated == "2024-02-01"
    head = item.history[0]
    assert head.price == 12.0
    assert head.variance == pytest.approx(2.0)
    assert head.invoice_number == "B-1"
    assert head.source is HistorySource.AUDIT


def test_backdated_commit_is_a_noop(store):
    item = store.register("Acme", "Widget", 12.0, as_of="2024-02-01")
    result = commit_variance(store, "Acme", "Widget", 11.0, "C-1", "2024-01-15")

    assert result.action is CommitAction.NOOP_BACKDATED
    assert result.applied is False
    assert item.current_price == 12.0
    assert item.last_updated == "2024-02-01"
    assert len(item.history) == 1


def test_commit_is_idempotent(store):
    store.register("Acme", "Widget", 10.0, as_of="2024-01-01")
    invoice = make_invoice("b", [("Widget", 12.0)], date="2024-02-01")

    first = commit_variance(store, "Acme", "Widget", 12.0, "N-b", "2024-02-01")
    second = commit_variance(store, "Acme", "Widget", 12.0, "N-b", "2024-02-01")

    assert first.action is CommitAction.UPDATED
    assert second.action is CommitAction.UPDATED
    assert second.variance == 0.0
    item = store.lookup("Acme", "Widget")
    assert item.current_price == 12.0
    assert [h.variance for h in item.history] == [0.0, pytest.approx(2.0), 0.0]
    assert pending_variances(classify([invoice], store), store) == []


def test_same_price_commit_moves_baseline_date(store):
    store.register("Acme", "Widget", 12.0, as_of="2024-02-01")

    result = set_manual_price(store, "Acme", "Widget", 12.0, as_of="2024-03-01")

    item = store.lookup("Acme", "Widget")
    assert result.action is CommitAction.UPDATED
    assert item.last_updated == "2024-03-01"
    assert len(item.history) == 2
    assert item.history[0].source is HistorySource.MANUAL
    assert item.history[0].variance == 0.0

    # An invoice dated between the two events now predates the baseline
    between = make_invoice("mid", [("Widget", 15.0)], date="2024-02-15")
    [enriched] = classify([between], store)
    assert enriched.items[0].backdated is True
    assert enriched.items[0].previous_unit_price is None
    assert enriched.status is InvoiceStatus.MATCHED


def test_undated_commit_keeps_previous_date(store):
    item = store.register("Acme", "Widget", 10.0, as_of="2024-01-01")
    commit_variance(store, "Acme", "Widget", 11.0, "X", None)
    assert item.current_price == 11.0
    assert item.last_updated == "2024-01-01"


def test_batch_isolates_noops_and_failures(store):
    store.register("Acme", "Widget", 10.0, as_of="2024-01-01")
    store.register("Acme", "Gadget", 10.0, as_of="2024-03-01")
    store.register("Acme", "Bolt", 10.0, as_of="2024-01-01")

    records = [
        _record("Widget", 12.0, "2024-02-01"),
        _record("Gadget", 8.0, "2024-02-01"),   # predates Gadget's baseline
        _record("Bolt", -1.0, "2024-02-01"),    # invalid price
        _record("Nut", 0.5, "2024-02-01"),      # never seen
    ]
    results = commit_batch(store, records)

    assert [r.action for r in results] == [
        CommitAction.UPDATED,
        CommitAction.NOOP_BACKDATED,
        CommitAction.FAILED,
        CommitAction.CREATED,
    ]
    assert store.lookup("Acme", "Widget").current_price == 12.0
    assert store.lookup("Acme", "Gadget").current_price == 10.0
    assert store.lookup("Acme", "Bolt").current_price == 10.0
    assert store.lookup("Acme", "Nut").current_price == 0.5


def test_batch_applies_in_order(store):
    store.register("Acme", "Widget", 10.0, as_of="2024-01-01")
    records = [
        _record("Widget", 11.0, "2024-02-01"),
        _record("Widget", 13.0, "2024-03-01"),
    ]
    commit_batch(store, records)

    item = store.lookup("Acme", "Widget")
    assert [h.price for h in item.history] == [13.0, 11.0, 10.0]
    assert item.history[0].variance == pytest.approx(2.0)


def test_manual_price_uses_manual_source(store):
    store.register("Acme", "Widget", 10.0, as_of="2024-01-01")
    result = set_manual_price(store, "Acme", "Widget", 9.5, as_of="2024-05-01")

    assert result.applied
    head = store.lookup("Acme", "Widget").history[0]
    assert head.source is HistorySource.MANUAL
    assert head.invoice_number is None
    assert head.date == "2024-05-01"
