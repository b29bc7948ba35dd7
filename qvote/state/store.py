"""
Record Store

Keyed persistence for governance records. The store is the only place that
enforces "record must not already exist" on creation, which is what makes a
derived address act as a lock: two racing creations of the same address
cannot both succeed.

Each operation runs inside ``transaction()``: the store lock is held for the
whole unit, writes are staged, and they are applied only if the unit exits
without raising.
"""

import json
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from ..exceptions import RecordAlreadyExistsError, RecordNotFoundError
from ..logger import get_logger
from .records import record_from_dict

logger = get_logger(__name__)


class RecordStore(ABC):
    """Interface of the persistence substrate."""

    @abstractmethod
    def create(self, address: str, record: Any) -> None:
        """Store *record* at a free *address* (RecordAlreadyExistsError otherwise)."""

    @abstractmethod
    def read(self, address: str) -> Any:
        """Return the record at *address* (RecordNotFoundError otherwise)."""

    @abstractmethod
    def update(self, address: str, record: Any) -> None:
        """Replace the record at an occupied *address* (RecordNotFoundError otherwise)."""

    @abstractmethod
    def exists(self, address: str) -> bool:
        """True if *address* is occupied."""

    @abstractmethod
    def transaction(self):
        """Context manager scoping one atomic unit."""


class MemoryRecordStore(RecordStore):
    """
    In-memory record store with a serializing lock.

    Writes made outside ``transaction()`` are applied immediately (each one is
    its own unit). Nested ``transaction()`` calls join the outer unit.
    """

    def __init__(self, records: Optional[Dict[str, Any]] = None):
        self._records: Dict[str, Any] = dict(records or {})
        self._lock = threading.RLock()
        self._local = threading.local()

    # ── Atomic units ──────────────────────────────────────────────────

    def _pending(self) -> Optional[Dict[str, Any]]:
        return getattr(self._local, "pending", None)

    @contextmanager
    def transaction(self) -> Iterator["MemoryRecordStore"]:
        with self._lock:
            if self._pending() is not None:
                yield self
                return

            self._local.pending = {}
            try:
                yield self
                staged = self._local.pending
                self._records.update(staged)
                if staged:
                    logger.debug(f"Committed {len(staged)} record write(s)")
            finally:
                self._local.pending = None

    def _write(self, address: str, record: Any) -> None:
        pending = self._pending()
        if pending is not None:
            pending[address] = record
        else:
            self._records[address] = record

    def _lookup(self, address: str) -> Any:
        pending = self._pending()
        if pending is not None and address in pending:
            return pending[address]
        return self._records.get(address)

    # ── Record access ─────────────────────────────────────────────────

    def create(self, address: str, record: Any) -> None:
        with self._lock:
            if self._lookup(address) is not None:
                raise RecordAlreadyExistsError(f"Record already exists at {address}")
            self._write(address, record)

    def read(self, address: str) -> Any:
        with self._lock:
            record = self._lookup(address)
        if record is None:
            raise RecordNotFoundError(f"No record at {address}")
        return record

    def update(self, address: str, record: Any) -> None:
        with self._lock:
            if self._lookup(address) is None:
                raise RecordNotFoundError(f"No record at {address}")
            self._write(address, record)

    def exists(self, address: str) -> bool:
        with self._lock:
            return self._lookup(address) is not None

    def get(self, address: str) -> Optional[Any]:
        """Record at *address*, or None."""
        with self._lock:
            return self._lookup(address)

    def addresses(self) -> List[str]:
        with self._lock:
            return sorted(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, address: str) -> bool:
        return self.exists(address)

    # ── Snapshots ─────────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {address: record.to_dict() for address, record in self._records.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MemoryRecordStore":
        return cls({address: record_from_dict(raw) for address, raw in data.items()})

    def save(self, path: Union[str, Path]) -> None:
        """Write a JSON snapshot of every committed record."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2, sort_keys=True), encoding="utf-8")
        logger.debug(f"Record store saved: {path} ({len(self)} records)")

    @classmethod
    def load(cls, path: Union[str, Path]) -> "MemoryRecordStore":
        """Load a snapshot written by ``save``; a missing file yields an empty store."""
        path = Path(path)
        if not path.exists():
            return cls()
        return cls.from_dict(json.loads(path.read_text(encoding="utf-8")))

    def __repr__(self) -> str:
        return f"<MemoryRecordStore records={len(self)}>"
