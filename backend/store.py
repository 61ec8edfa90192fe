# backend/store.py
"""
Entry storage behind a small interface so the service never depends on
where entries live.

- InMemoryEntryStore: per-process list guarded by a lock
- SqlEntryStore: SQLAlchemy table (see backend.models.EntryRecord)

Env vars:
- ENTRY_STORE (default: sql) - "sql" or "memory"
"""

import os
import json
import datetime
import threading
from abc import ABC, abstractmethod
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from backend import db as dbmod
from backend import monitoring
from backend.schemas import Entry

ENTRY_STORE = os.getenv("ENTRY_STORE", "sql").lower()


class EntryStore(ABC):
    """Append-only collection of entries; entries leave only by deletion."""

    @abstractmethod
    def append(self, entry: Entry) -> None:
        ...

    @abstractmethod
    def list(self) -> List[Entry]:
        """Snapshot of all entries in insertion order."""

    @abstractmethod
    def get(self, entry_id: str) -> Optional[Entry]:
        ...

    @abstractmethod
    def delete(self, entry_id: str) -> bool:
        """Remove an entry. Returns False if it was not there."""

    def count(self) -> int:
        return len(self.list())


class InMemoryEntryStore(EntryStore):
    """
    Thread-safe in-memory store (per-process, not durable).
    Entries are deep-copied on the way in and out so callers never share
    the stored entities list or metrics dict.
    """

    def __init__(self):
        self._entries: List[Entry] = []
        self._lock = threading.Lock()

    def append(self, entry: Entry) -> None:
        with self._lock:
            self._entries.append(entry.model_copy(deep=True))

    def list(self) -> List[Entry]:
        with self._lock:
            return [e.model_copy(deep=True) for e in self._entries]

    def get(self, entry_id: str) -> Optional[Entry]:
        with self._lock:
            for e in self._entries:
                if e.id == entry_id:
                    return e.model_copy(deep=True)
        return None

    def delete(self, entry_id: str) -> bool:
        with self._lock:
            for i, e in enumerate(self._entries):
                if e.id == entry_id:
                    del self._entries[i]
                    return True
        return False

    def count(self) -> int:
        with self._lock:
            return len(self._entries)

    def reset(self):
        """Drop all entries (useful for tests)."""
        with self._lock:
            self._entries.clear()


def _to_naive_utc(ts: datetime.datetime) -> datetime.datetime:
    if ts.tzinfo is not None:
        ts = ts.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return ts


def _row_to_entry(row) -> Entry:
    return Entry(
        id=row.id,
        raw_text=row.raw_text,
        created_at=row.created_at.replace(tzinfo=datetime.timezone.utc),
        category=row.category,
        severity=row.severity,
        entities=json.loads(row.entities_json or "[]"),
        metrics=json.loads(row.metrics_json or "{}"),
    )


class SqlEntryStore(EntryStore):
    """
    Entries persisted through SQLAlchemy. Timestamps are stored as naive UTC
    and come back timezone-aware. Each append is one transaction; on error
    it is rolled back and the exception propagates.
    """

    def append(self, entry: Entry) -> None:
        from backend.models import EntryRecord
        session = dbmod.SessionLocal()
        try:
            session.add(EntryRecord(
                id=entry.id,
                raw_text=entry.raw_text,
                created_at=_to_naive_utc(entry.created_at),
                category=entry.category.value,
                severity=entry.severity.value,
                entities_json=json.dumps(entry.entities),
                metrics_json=json.dumps(entry.metrics, ensure_ascii=False),
            ))
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            monitoring.logger.exception("DB save error", extra={"entry_id": entry.id})
            raise
        finally:
            session.close()

    def list(self) -> List[Entry]:
        from backend.models import EntryRecord
        session = dbmod.SessionLocal()
        try:
            rows = session.query(EntryRecord).order_by(EntryRecord.created_at).all()
            return [_row_to_entry(r) for r in rows]
        finally:
            session.close()

    def get(self, entry_id: str) -> Optional[Entry]:
        from backend.models import EntryRecord
        session = dbmod.SessionLocal()
        try:
            row = session.get(EntryRecord, entry_id)
            return _row_to_entry(row) if row else None
        finally:
            session.close()

    def delete(self, entry_id: str) -> bool:
        from backend.models import EntryRecord
        session = dbmod.SessionLocal()
        try:
            row = session.get(EntryRecord, entry_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True
        except SQLAlchemyError:
            session.rollback()
            monitoring.logger.exception("DB delete error", extra={"entry_id": entry_id})
            raise
        finally:
            session.close()

    def count(self) -> int:
        from backend.models import EntryRecord
        session = dbmod.SessionLocal()
        try:
            return session.query(EntryRecord).count()
        finally:
            session.close()


def make_store(kind: Optional[str] = None) -> EntryStore:
    kind = (kind or ENTRY_STORE).lower()
    if kind == "memory":
        return InMemoryEntryStore()
    if kind == "sql":
        dbmod.init_db()
        return SqlEntryStore()
    raise ValueError(f"Unknown ENTRY_STORE: {kind!r} (expected 'sql' or 'memory')")
