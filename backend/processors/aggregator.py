# backend/processors/aggregator.py
"""
Analytics over the current set of entries.

Functions:
- aggregate(entries, now=None) -> AnalyticsSnapshot
- trend(entries, days=30, now=None) -> TrendReport
- normalize_days(value, default=30) -> int

Everything is recomputed from the entries passed in; nothing is cached
or mutated. `now` defaults to the current UTC time and is injectable so
callers (and tests) can pin the windows.
"""

import datetime
import re
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Sequence

from backend.schemas import Entry, AnalyticsSnapshot, TrendReport, TrendPoint

DEFAULT_TREND_DAYS = 30
RECENT_TREND_DAYS = 7
TOP_ENTITIES_LIMIT = 10

_LEADING_INT = re.compile(r"^\s*(\d+)")


def _utc(ts: datetime.datetime) -> datetime.datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=datetime.timezone.utc)
    return ts.astimezone(datetime.timezone.utc)


def _now_utc(now: Optional[datetime.datetime]) -> datetime.datetime:
    return _utc(now) if now is not None else datetime.datetime.now(datetime.timezone.utc)


def _tally(values: Iterable[Any]) -> Dict[str, int]:
    # enum members collapse to their string value
    counts: Dict[str, int] = {}
    for v in values:
        key = getattr(v, "value", v)
        counts[key] = counts.get(key, 0) + 1
    return counts


def normalize_days(value: Any, default: int = DEFAULT_TREND_DAYS) -> int:
    """
    Read a `days` query value the way a lenient integer parse would:
    "14" -> 14, "14d" -> 14. Missing, non-numeric and non-positive values
    fall back to `default`.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value if value > 0 else default
    m = _LEADING_INT.match(str(value))
    if not m:
        return default
    days = int(m.group(1))
    return days if days > 0 else default


def recent_trend(entries: Sequence[Entry], now: Optional[datetime.datetime] = None) -> List[TrendPoint]:
    """
    Seven calendar-day buckets starting seven days before `now`.
    An entry lands in a bucket when its UTC date string equals the bucket key.
    """
    start = _now_utc(now) - datetime.timedelta(days=RECENT_TREND_DAYS)
    per_day = Counter(_utc(e.created_at).date().isoformat() for e in entries)
    points: List[TrendPoint] = []
    for i in range(RECENT_TREND_DAYS):
        key = (start + datetime.timedelta(days=i)).date().isoformat()
        points.append(TrendPoint(date=key, count=per_day.get(key, 0)))
    return points


def top_entities(entries: Sequence[Entry], limit: int = TOP_ENTITIES_LIMIT) -> Dict[str, int]:
    """Most frequent entities, ties kept in first-seen order."""
    counts: Dict[str, int] = {}
    for e in entries:
        for entity in e.entities:
            counts[entity] = counts.get(entity, 0) + 1
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return dict(ranked[:limit])


def aggregate(entries: Sequence[Entry], now: Optional[datetime.datetime] = None) -> AnalyticsSnapshot:
    return AnalyticsSnapshot(
        total=len(entries),
        by_category=_tally(e.category for e in entries),
        by_severity=_tally(e.severity for e in entries),
        recent_trend=recent_trend(entries, now),
        top_entities=top_entities(entries),
    )


def trend(entries: Sequence[Entry], days: Any = DEFAULT_TREND_DAYS,
          now: Optional[datetime.datetime] = None) -> TrendReport:
    """
    Totals and tallies for entries created within `days` days of `now`.
    avg_per_day is total / days rendered with two decimals.
    """
    period = normalize_days(days)
    try:
        start = _now_utc(now) - datetime.timedelta(days=period)
    except OverflowError:
        # window reaches past the earliest representable date
        start = datetime.datetime.min.replace(tzinfo=datetime.timezone.utc)
    window = [e for e in entries if _utc(e.created_at) >= start]

    return TrendReport(
        period_days=period,
        total_entries=len(window),
        avg_per_day=f"{len(window) / period:.2f}",
        categories=_tally(e.category for e in window),
        severities=_tally(e.severity for e in window),
    )
