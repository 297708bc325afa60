"""JSON-file store of tracked records.

The whole store is one JSON object mapping the numeric product id (as a
string) to its TrackedRecord. It is read once by ``load()`` and rewritten in
full by ``save()`` after every upsert.
"""

import asyncio
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import structlog
from pydantic import TypeAdapter, ValidationError

from stockwatch.core.exceptions import PersistenceCorrupt
from stockwatch.models.events import Event
from stockwatch.models.product import CanonicalProduct
from stockwatch.models.tracked import TrackedRecord
from stockwatch.services.diff import diff

logger = structlog.get_logger(__name__)

_DOCUMENT = TypeAdapter(Dict[str, TrackedRecord])


@dataclass
class UpsertResult:
    record: TrackedRecord
    events: List[Event] = field(default_factory=list)


class Store:
    """Keyed map of numeric product id -> TrackedRecord.

    ``upsert`` reads, diffs and writes without yielding to the event loop,
    so upserts never interleave. ``lock_for`` serializes whole
    resolve-then-upsert passes for one product.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else None
        self._records: Dict[str, TrackedRecord] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self.logger = logger.bind(service="store")

    def load(self) -> None:
        """Read the store file; a missing file means an empty store.

        Raises:
            PersistenceCorrupt: If the file exists but cannot be parsed
        """
        if self.path is None or not self.path.exists():
            self._records = {}
            self.logger.info("store_initialized_empty", path=str(self.path))
            return

        try:
            raw = self.path.read_bytes()
            records = _DOCUMENT.validate_json(raw) if raw.strip() else {}
        except (OSError, ValidationError) as e:
            raise PersistenceCorrupt(str(self.path), str(e)) from e

        for key, record in records.items():
            if key != record.numeric_product_id:
                raise PersistenceCorrupt(
                    str(self.path),
                    f"key {key} holds product {record.numeric_product_id}",
                )

        self._records = records
        self.logger.info("store_loaded", path=str(self.path), products=len(records))

    def save(self, records: Optional[Dict[str, TrackedRecord]] = None) -> None:
        """Rewrite the whole store file.

        Args:
            records: Snapshot to write; defaults to the in-memory records
        """
        if self.path is None:
            return
        records = self._records if records is None else records
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_bytes(_DOCUMENT.dump_json(records, indent=2))
        os.replace(tmp_path, self.path)

    def get(self, numeric_product_id: str) -> Optional[TrackedRecord]:
        return self._records.get(numeric_product_id)

    def find_by_hashed_id(self, hashed_id: str) -> Optional[TrackedRecord]:
        for record in self._records.values():
            if record.hashed_id == hashed_id:
                return record
        return None

    def records(self) -> List[TrackedRecord]:
        """Snapshot of the current records; later upserts do not change it."""
        return list(self._records.values())

    def __len__(self) -> int:
        return len(self._records)

    def lock_for(self, numeric_product_id: str) -> asyncio.Lock:
        lock = self._locks.get(numeric_product_id)
        if lock is None:
            lock = self._locks[numeric_product_id] = asyncio.Lock()
        return lock

    def upsert(self, product: CanonicalProduct, now: Optional[datetime] = None) -> UpsertResult:
        """Create or update the record for ``product`` and persist the store.

        Returns:
            UpsertResult with the stored record and the events to alert on

        Raises:
            OSError: If the store file cannot be written; nothing is recorded
        """
        now = now or datetime.now(timezone.utc)
        key = product.numeric_product_id

        record, events = diff(self._records.get(key), product, now)
        # Memory only changes once the file holds the new snapshot
        records = {**self._records, key: record}
        self.save(records)
        self._records = records

        self.logger.debug(
            "product_upserted",
            numeric_product_id=key,
            events=[type(e).__name__ for e in events],
        )
        return UpsertResult(record=record, events=events)
