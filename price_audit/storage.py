"""
Snapshot persistence.

Three independent JSON blobs under DATA_DIR, each a full replacement of one
collection:

    invoices.json   baselines.json   suppliers.json

Each file holds ``{"version": N, "savedAt": ..., "records": [...]}``. Older
unversioned payloads are migrated on load: a bare list of records, and the
legacy nested ``{supplier: {item: price}}`` baseline map.
"""

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List

from pydantic import ValidationError as PydanticValidationError

from price_audit.config import get_config
from price_audit.engine.baselines import BaselineStore
from price_audit.errors import SnapshotError
from price_audit.schemas.baseline import MasterItem
from price_audit.schemas.invoice import Invoice
from price_audit.schemas.supplier import Supplier
from price_audit.state import AuditLedger
from price_audit.utils import new_id
from price_audit.utils.logging import setup_logging


logger = setup_logging(__name__)
config = get_config()

INVOICES_KEY = "invoices"
BASELINES_KEY = "baselines"
SUPPLIERS_KEY = "suppliers"


def _migrate_legacy_baselines(payload: dict) -> List[dict]:
    """Convert ``{supplier: {item: price}}`` into MasterItem records."""
    records = []
    for supplier_name, items in payload.items():
        if not isinstance(items, dict):
            continue
        for item_name, price in items.items():
            records.append({
                "id": new_id("mi"),
                "supplierName": supplier_name,
                "itemName": item_name,
                "currentPrice": price,
                "lastUpdated": None,
                "history": [{
                    "date": None,
                    "price": price,
                    "variance": 0.0,
                    "percentChange": 0.0,
                    "source": "audit",
                    "note": "Initial Registration",
                }],
            })
    return records


class SnapshotStorage:
    """Reads and writes the three collection snapshots."""

    def __init__(self, data_dir: str = None, version: int = None):
        self.data_dir = Path(data_dir or config.DATA_DIR)
        self.version = version or config.SNAPSHOT_VERSION

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def _read_records(self, key: str) -> List[dict]:
        path = self.path_for(key)
        if not path.exists():
            return []

        try:
            with open(path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise SnapshotError(f"Cannot read snapshot {path}: {e}") from e

        if isinstance(payload, list):
            logger.info(f"Migrating unversioned snapshot {path.name}")
            return payload

        if not isinstance(payload, dict):
            raise SnapshotError(f"Unexpected snapshot layout in {path}")

        if "version" not in payload:
            if key == BASELINES_KEY:
                logger.info(f"Migrating legacy baseline map {path.name}")
                return _migrate_legacy_baselines(payload)
            raise SnapshotError(f"Snapshot {path} has no version")

        version = payload.get("version")
        if not isinstance(version, int) or version > self.version:
            raise SnapshotError(
                f"Snapshot {path} has version {version!r}; this build supports up to {self.version}"
            )

        records = payload.get("records", [])
        if not isinstance(records, list):
            raise SnapshotError(f"Snapshot {path} records must be a list")
        return records

    def _write_records(self, key: str, records: List[Any]) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        payload = {
            "version": self.version,
            "savedAt": datetime.now(timezone.utc).isoformat(),
            "records": records,
        }

        # Write to a sibling temp file, then swap, so readers never see half a snapshot
        fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, default=str)
            os.replace(tmp_path, path)
        except Exception:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def load(self) -> AuditLedger:
        """Read all three snapshots into a fresh ledger."""
        try:
            invoices = [Invoice.model_validate(r) for r in self._read_records(INVOICES_KEY)]
            master_items = [MasterItem.model_validate(r) for r in self._read_records(BASELINES_KEY)]
            suppliers = [Supplier.model_validate(r) for r in self._read_records(SUPPLIERS_KEY)]
        except PydanticValidationError as e:
            raise SnapshotError(f"Snapshot contains invalid records: {e}") from e

        logger.info(
            f"Loaded {len(invoices)} invoices, {len(master_items)} baselines, "
            f"{len(suppliers)} suppliers from {self.data_dir}"
        )
        return AuditLedger(
            invoices=invoices,
            baselines=BaselineStore(master_items),
            suppliers=suppliers,
        )

    def save(self, ledger: AuditLedger) -> None:
        """Write all three snapshots (last write wins)."""
        self._write_records(
            INVOICES_KEY,
            # Status is derived on read and never stored
            [invoice.model_dump(mode="json", by_alias=True, exclude={"status"}) for invoice in ledger.invoices],
        )
        self._write_records(
            BASELINES_KEY,
            [item.model_dump(mode="json", by_alias=True) for item in ledger.baselines.items()],
        )
        self._write_records(
            SUPPLIERS_KEY,
            [supplier.model_dump(mode="json", by_alias=True) for supplier in ledger.suppliers.values()],
        )
        logger.debug(f"Snapshot saved at ledger version {ledger.version}")
