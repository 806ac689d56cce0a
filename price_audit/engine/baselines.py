"""
Price baseline store.

Holds one MasterItem per (supplier, item) pair. Each pair moves through a
two-state lifecycle:

    UNREGISTERED --register()--> REGISTERED --advance()--> REGISTERED

``register`` is the only way a pair enters the store (first sighting, taken
as ground truth). ``advance`` is the only way an existing baseline changes,
and is reached exclusively through the commit engine after the backdating
guard has been applied.
"""

import math
from typing import Dict, Iterator, List, Optional

from price_audit.config import get_config
from price_audit.errors import BaselineStateError
from price_audit.schemas.baseline import (
    INITIAL_REGISTRATION_NOTE,
    BaselineState,
    HistorySource,
    MasterItem,
    PriceHistoryEntry,
)
from price_audit.utils import calculate_percent_change, new_id
from price_audit.utils.dates import to_iso_date


config = get_config()


def match_key(name: str, mode: str = None) -> str:
    """Lookup key for a supplier or item name under the configured matching mode."""
    mode = mode or config.NAME_MATCHING
    if mode == "normalized":
        return " ".join(name.split()).casefold()
    return name


def validate_price(price: float) -> float:
    price = float(price)
    if math.isnan(price) or math.isinf(price):
        raise ValueError(f"Baseline price must be finite, got {price}")
    if price < 0:
        raise ValueError(f"Baseline price must be >= 0, got {price}")
    return price


class BaselineStore:
    """MasterItems keyed by supplier, then item."""

    def __init__(self, items: Optional[List[MasterItem]] = None, name_matching: str = None):
        self.name_matching = name_matching or config.NAME_MATCHING
        self._items: Dict[str, Dict[str, MasterItem]] = {}
        for item in items or []:
            self._put(item)

    def _put(self, item: MasterItem) -> None:
        supplier_key = match_key(item.supplier_name, self.name_matching)
        item_key = match_key(item.item_name, self.name_matching)
        self._items.setdefault(supplier_key, {})[item_key] = item

    def lookup(self, supplier_name: str, item_name: str) -> Optional[MasterItem]:
        if not supplier_name or not item_name:
            return None
        supplier_items = self._items.get(match_key(supplier_name, self.name_matching))
        if not supplier_items:
            return None
        return supplier_items.get(match_key(item_name, self.name_matching))

    def state_of(self, supplier_name: str, item_name: str) -> BaselineState:
        if self.lookup(supplier_name, item_name) is None:
            return BaselineState.UNREGISTERED
        return BaselineState.REGISTERED

    def register(
        self,
        supplier_name: str,
        item_name: str,
        price: float,
        as_of: Optional[str],
        invoice_number: Optional[str] = None,
        source: HistorySource = HistorySource.AUDIT,
        note: str = INITIAL_REGISTRATION_NOTE,
    ) -> MasterItem:
        """First sighting of a pair: anchor the baseline at ``price``."""
        if self.state_of(supplier_name, item_name) is BaselineState.REGISTERED:
            raise BaselineStateError(
                f"Baseline for {supplier_name!r} / {item_name!r} is already registered"
            )

        price = validate_price(price)
        as_of = to_iso_date(as_of)
        item = MasterItem(
            id=new_id("mi"),
            supplier_name=supplier_name,
            item_name=item_name,
            current_price=price,
            last_updated=as_of,
            history=[
                PriceHistoryEntry(
                    date=as_of,
                    price=price,
                    variance=0.0,
                    percent_change=0.0,
                    source=source,
                    invoice_number=invoice_number,
                    note=note,
                )
            ],
        )
        self._put(item)
        return item

    def advance(
        self,
        item: MasterItem,
        new_price: float,
        as_of: Optional[str],
        invoice_number: Optional[str] = None,
        source: HistorySource = HistorySource.AUDIT,
        note: str = "",
    ) -> PriceHistoryEntry:
        """Move a registered baseline to ``new_price`` and record the event."""
        if self.lookup(item.supplier_name, item.item_name) is not item:
            raise BaselineStateError(
                f"Baseline for {item.supplier_name!r} / {item.item_name!r} is not registered in this store"
            )

        new_price = validate_price(new_price)
        previous_price = item.current_price
        entry = PriceHistoryEntry(
            date=to_iso_date(as_of) or item.last_updated,
            price=new_price,
            variance=new_price - previous_price,
            percent_change=calculate_percent_change(new_price, previous_price),
            source=source,
            invoice_number=invoice_number,
            note=note,
        )

        item.current_price = new_price
        item.last_updated = entry.date
        item.history.insert(0, entry)
        return entry

    def items(self) -> List[MasterItem]:
        return [item for supplier_items in self._items.values() for item in supplier_items.values()]

    def for_supplier(self, supplier_name: str) -> List[MasterItem]:
        return list(self._items.get(match_key(supplier_name, self.name_matching), {}).values())

    def __iter__(self) -> Iterator[MasterItem]:
        return iter(self.items())

    def __len__(self) -> int:
        return sum(len(supplier_items) for supplier_items in self._items.values())

    def __contains__(self, pair) -> bool:
        supplier_name, item_name = pair
        return self.lookup(supplier_name, item_name) is not None
