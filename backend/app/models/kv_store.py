"""
Key-Value Store Model
One row per persisted document (the statistics state lives under a single key).
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text

from app.core.database import Base


class KeyValueEntry(Base):
    __tablename__ = "kv_store"

    key = Column(String(255), primary_key=True, index=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
