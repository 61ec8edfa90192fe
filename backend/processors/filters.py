# backend/processors/filters.py
from typing import List, Optional, Sequence

from backend.schemas import Entry

ALL_CATEGORIES = "all"


def _matches_search(entry: Entry, needle: str) -> bool:
    if needle in entry.raw_text.lower():
        return True
    return any(needle in entity.lower() for entity in entry.entities)


def filter_entries(entries: Sequence[Entry], category: Optional[str] = None,
                   severity: Optional[str] = None, search: Optional[str] = None) -> List[Entry]:
    """
    Filter entries by category, severity and a case-insensitive search over
    raw text and entities. Returns a new list sorted newest first.
    category="all" (or empty) disables the category filter.
    """
    out = list(entries)
    if category and category != ALL_CATEGORIES:
        out = [e for e in out if e.category.value == category]
    if severity:
        out = [e for e in out if e.severity.value == severity]
    if search:
        needle = search.lower()
        out = [e for e in out if _matches_search(e, needle)]
    out.sort(key=lambda e: e.created_at, reverse=True)
    return out
