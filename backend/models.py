# backend/models.py
from sqlalchemy import Column, String, DateTime, Text

from backend.db import Base


class EntryRecord(Base):
    __tablename__ = "entries"

    id = Column(String(64), primary_key=True, index=True)
    raw_text = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, index=True)
    category = Column(String(16), nullable=False, index=True)
    severity = Column(String(16), nullable=False, index=True)
    entities_json = Column(Text, nullable=False, default="[]")
    metrics_json = Column(Text, nullable=False, default="{}")
