# backend/service.py
import uuid
import time
import datetime
from typing import Any, Optional, List

# Import modules (not bare functions) so monkeypatching in tests works correctly
import backend.processors.interpreter as _interpreter
import backend.processors.aggregator as _aggregator
import backend.processors.filters as _filters
from backend import monitoring
from backend.schemas import Entry, AnalyticsSnapshot, TrendReport
from backend.store import EntryStore

# Error codes (map to API error responses)
E_INVALID_INPUT = "E_INVALID_INPUT"
E_NOT_FOUND = "E_NOT_FOUND"


class ServiceError(Exception):
    error_code = "E_INTERNAL"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(ServiceError):
    error_code = E_INVALID_INPUT


class EntryNotFoundError(ServiceError):
    error_code = E_NOT_FOUND


class EntryService:
    """Validates submissions, interprets them once and answers queries over the store."""

    def __init__(self, store: EntryStore):
        self.store = store

    def _make_entry_id(self) -> str:
        return str(uuid.uuid4())

    def _now(self) -> datetime.datetime:
        return datetime.datetime.now(datetime.timezone.utc)

    def create_entry(self, raw_text: Any) -> Entry:
        if not isinstance(raw_text, str) or not raw_text.strip():
            monitoring.inc_rejected(E_INVALID_INPUT)
            raise InvalidInputError("raw_text is required and must be a non-empty string")

        text = raw_text.strip()
        start = time.time()
        annotation = _interpreter.interpret(text)
        monitoring.observe_interpret(start)

        entry = Entry(
            id=self._make_entry_id(),
            raw_text=text,
            created_at=self._now(),
            **annotation.model_dump(),
        )
        self.store.append(entry)

        monitoring.inc_entry_created(entry.category.value, entry.severity.value)
        monitoring.set_store_size(self.store.count())
        monitoring.logger.info(
            "Entry created",
            extra={"entry_id": entry.id, "category": entry.category.value, "severity": entry.severity.value},
        )
        return entry

    def list_entries(self, category: Optional[str] = None, severity: Optional[str] = None,
                     search: Optional[str] = None) -> List[Entry]:
        return _filters.filter_entries(self.store.list(), category=category, severity=severity, search=search)

    def get_entry(self, entry_id: str) -> Entry:
        entry = self.store.get(entry_id)
        if entry is None:
            raise EntryNotFoundError("Entry not found")
        return entry

    def delete_entry(self, entry_id: str) -> None:
        if not self.store.delete(entry_id):
            raise EntryNotFoundError("Entry not found")
        monitoring.inc_entry_deleted()
        monitoring.set_store_size(self.store.count())
        monitoring.logger.info("Entry deleted", extra={"entry_id": entry_id})

    def count(self) -> int:
        return self.store.count()

    def analytics(self, now: Optional[datetime.datetime] = None) -> AnalyticsSnapshot:
        return _aggregator.aggregate(self.store.list(), now=now)

    def trends(self, days: Any = None, now: Optional[datetime.datetime] = None) -> TrendReport:
        return _aggregator.trend(self.store.list(), days=days, now=now)
