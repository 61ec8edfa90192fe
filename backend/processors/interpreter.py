# backend/processors/interpreter.py
"""
Rule-based interpreter for operations-log submissions.

Functions:
- interpret(raw_text) -> Annotation

Stages (all deterministic, no external state):
- category:    first keyword group that appears in the lower-cased text wins
- severity:    same, over the severity groups
- entities:    every match of each entity pattern, verbatim, deduplicated
- metrics:     first match of each metric pattern, formatted per metric

Keyword matching is plain substring containment ("inspection" also matches
inside longer words). Entity and metric patterns run against the original
text so extracted spans keep their casing.
"""

import re
from typing import Callable, Dict, List, Tuple

from backend.schemas import Annotation, Category, Severity, MetricValue

# Ordered by priority: the first group with a hit decides.
CATEGORY_RULES: Tuple[Tuple[Category, Tuple[str, ...]], ...] = (
    (Category.ISSUE, ("fail", "error", "overheat", "crash", "malfunction")),
    (Category.DELAY, ("delay", "late", "postpone")),
    (Category.QUALITY, ("qa", "quality", "defect", "inspection")),
)

SEVERITY_RULES: Tuple[Tuple[Severity, Tuple[str, ...]], ...] = (
    (Severity.HIGH, ("critical", "urgent", "emergency", "severe")),
    (Severity.MEDIUM, ("important", "significant", "major")),
)

ENTITY_PATTERNS: Tuple[Tuple[str, re.Pattern], ...] = (
    ("component", re.compile(
        r"motor|pcb|board|circuit|sensor|controller|relay|switch|battery|capacitor",
        re.IGNORECASE | re.ASCII,
    )),
    ("version", re.compile(r"version\s+\d+", re.IGNORECASE | re.ASCII)),
    ("node", re.compile(r"node\s+[a-z]", re.IGNORECASE | re.ASCII)),
    ("vendor", re.compile(r"vendor\s+[a-z0-9]+", re.IGNORECASE | re.ASCII)),
)


def _format_duration(m: re.Match) -> str:
    amount, unit = m.group(1), m.group(2)
    suffix = "s" if int(amount) > 1 else ""
    return f"{amount} {unit}{suffix}"


def _format_temperature(m: re.Match) -> str:
    # celsius/fahrenheit is not kept, every reading becomes "<n>°"
    return f"{m.group(1)}°"


def _format_voltage(m: re.Match) -> str:
    return f"{m.group(1)}V"


def _format_quantity(m: re.Match) -> int:
    return int(m.group(1))


METRIC_PATTERNS: Tuple[Tuple[str, re.Pattern, Callable[[re.Match], MetricValue]], ...] = (
    ("duration", re.compile(r"(\d+)\s*(hour|minute|day|week)s?", re.IGNORECASE | re.ASCII), _format_duration),
    ("temperature", re.compile(r"(\d+)\s*(degree|°|celsius|fahrenheit)", re.IGNORECASE | re.ASCII), _format_temperature),
    ("voltage", re.compile(r"(\d+\.?\d*)\s*(v|volt|voltage)", re.IGNORECASE | re.ASCII), _format_voltage),
    ("quantity", re.compile(r"(\d+)\s*(unit|piece|item)s?", re.IGNORECASE | re.ASCII), _format_quantity),
)


def classify_category(text: str) -> Category:
    lowered = text.lower()
    for category, keywords in CATEGORY_RULES:
        if any(k in lowered for k in keywords):
            return category
    return Category.EVENT


def detect_severity(text: str) -> Severity:
    lowered = text.lower()
    for severity, keywords in SEVERITY_RULES:
        if any(k in lowered for k in keywords):
            return severity
    return Severity.LOW


def extract_entities(text: str) -> List[str]:
    """
    Collect entity spans in pattern order, then match order.
    Duplicates are collapsed case-sensitively: "Motor" and "motor" are
    both kept, a second "Motor" is not.
    """
    found: List[str] = []
    for _kind, pattern in ENTITY_PATTERNS:
        found.extend(m.group(0) for m in pattern.finditer(text))
    return list(dict.fromkeys(found))


def extract_metrics(text: str) -> Dict[str, MetricValue]:
    metrics: Dict[str, MetricValue] = {}
    for name, pattern, fmt in METRIC_PATTERNS:
        m = pattern.search(text)
        if m:
            metrics[name] = fmt(m)
    return metrics


def interpret(raw_text: str) -> Annotation:
    """
    Interpret a non-empty submission into an Annotation.
    Callers reject blank input before getting here; any other string maps
    to a valid annotation (event/low with nothing extracted at worst).
    """
    return Annotation(
        category=classify_category(raw_text),
        severity=detect_severity(raw_text),
        entities=extract_entities(raw_text),
        metrics=extract_metrics(raw_text),
    )
