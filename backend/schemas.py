# backend/schemas.py
from enum import Enum
from typing import List, Optional, Any, Dict, Union
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime


class Category(str, Enum):
    EVENT = "event"
    ISSUE = "issue"
    DELAY = "delay"
    QUALITY = "quality"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


MetricValue = Union[str, int]


class Annotation(BaseModel):
    """Structured interpretation of one free-text submission."""
    category: Category = Category.EVENT
    severity: Severity = Severity.LOW
    entities: List[str] = Field(default_factory=list)
    metrics: Dict[str, MetricValue] = Field(default_factory=dict)


class Entry(Annotation):
    # entries are never updated in place, only deleted
    model_config = ConfigDict(frozen=True)

    id: str
    raw_text: str
    created_at: datetime


class EntryCreate(BaseModel):
    # typed loosely so the service can answer 400 instead of a 422
    raw_text: Optional[Any] = None


class TrendPoint(BaseModel):
    date: str
    count: int


class AnalyticsSnapshot(BaseModel):
    total: int
    by_category: Dict[str, int] = Field(default_factory=dict)
    by_severity: Dict[str, int] = Field(default_factory=dict)
    recent_trend: List[TrendPoint] = Field(default_factory=list)
    top_entities: Dict[str, int] = Field(default_factory=dict)


class TrendReport(BaseModel):
    period_days: int
    total_entries: int
    avg_per_day: str
    categories: Dict[str, int] = Field(default_factory=dict)
    severities: Dict[str, int] = Field(default_factory=dict)
