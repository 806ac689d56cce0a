"""
Tests for the price baseline store lifecycle.
"""

import pytest

from price_audit.engine.baselines import BaselineStore, match_key
from price_audit.errors import BaselineStateError
from price_audit.schemas.baseline import BaselineState, HistorySource, INITIAL_REGISTRATION_NOTE


def test_register_seeds_history(store):
    item = store.register("Acme", "Widget", 10.0, as_of="2024-01-01", invoice_number="A-1")

    assert store.state_of("Acme", "Widget") is BaselineState.REGISTERED
    assert item.current_price == 10.0
    assert item.last_updated == "2024-01-01"
    assert len(item.history) == 1
    seed = item.history[0]
    assert seed.price == 10.0
    assert seed.variance == 0.0
    assert seed.percent_change == 0.0
    assert seed.note == INITIAL_REGISTRATION_NOTE
    assert seed.invoice_number == "A-1"


def test_register_twice_is_illegal(store):
    store.register("Acme", "Widget", 10.0, as_of="2024-01-01")
    with pytest.raises(BaselineStateError):
        store.register("Acme", "Widget", 11.0, as_of="2024-02-01")


def test_advance_prepends_history(store):
    item = store.register("Acme", "Widget", 10.0, as_of="2024-01-01")
    entry = store.advance(item, 12.0, as_of="2024-02-01", invoice_number="B-1", source=HistorySource.AUDIT)

    assert item.current_price == 12.0
    assert item.last_updated == "2024-02-01"
    assert item.history[0] is entry
    assert entry.variance == pytest.approx(2.0)
    assert entry.percent_change == pytest.approx(20.0)
    assert [h.price for h in item.history] == [12.0, 10.0]


def test_advance_from_zero_price_has_zero_percent(store):
    item = store.register("Acme", "Freebie", 0.0, as_of="2024-01-01")
    entry = store.advance(item, 5.0, as_of="2024-02-01")
    assert entry.variance == 5.0
    assert entry.percent_change == 0.0


def test_history_entries_are_frozen(store):
    item = store.register("Acme", "Widget", 10.0, as_of="2024-01-01")
    with pytest.raises(Exception):
        item.history[0].price = 99.0


def test_advance_rejects_foreign_item(store):
    other = BaselineStore(name_matching="exact")
    item = other.register("Acme", "Widget", 10.0, as_of="2024-01-01")
    with pytest.raises(BaselineStateError):
        store.advance(item, 12.0, as_of="2024-02-01")


@pytest.mark.parametrize("price", [-1.0, float("nan"), float("inf")])
def test_invalid_prices_rejected(store, price):
    with pytest.raises(ValueError):
        store.register("Acme", "Widget", price, as_of="2024-01-01")
    assert store.state_of("Acme", "Widget") is BaselineState.UNREGISTERED


def test_exact_matching_is_byte_for_byte(store):
    store.register("Acme", "Widget", 10.0, as_of="2024-01-01")
    assert store.lookup("Acme", "widget") is None
    assert store.lookup("acme", "Widget") is None
    assert store.lookup("Acme", "Widget ") is None


def test_normalized_matching_ignores_case_and_spacing():
    store = BaselineStore(name_matching="normalized")
    item = store.register("Acme Pty Ltd", "Widget  10mm", 10.0, as_of="2024-01-01")

    assert store.lookup("ACME pty  ltd", "widget 10mm") is item
    assert item.item_name == "Widget  10mm"
    assert match_key(" Foo   Bar ", "normalized") == "foo bar"


def test_containers(store):
    store.register("Acme", "Widget", 10.0, as_of="2024-01-01")
    store.register("Acme", "Gadget", 3.0, as_of="2024-01-01")
    store.register("Beta", "Widget", 9.0, as_of="2024-01-01")

    assert len(store) == 3
    assert ("Acme", "Gadget") in store
    assert ("Beta", "Gadget") not in store
    assert {i.item_name for i in store.for_supplier("Acme")} == {"Widget", "Gadget"}
    assert store.lookup("", "Widget") is None
