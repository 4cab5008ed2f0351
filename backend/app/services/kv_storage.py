"""
NoTouch SQL Key-Value Storage
Implements the core ``KeyValueStore`` seam on top of the ``kv_store`` table.

Errors roll back and propagate; the statistics service decides whether a
failed read/write is fatal (it never is).
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session as SASession

from app.models.kv_store import KeyValueEntry

logger = logging.getLogger("notouch.storage")


class SqlKeyValueStore:
    def __init__(self, session_factory: Callable[[], SASession]):
        self._session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        db: SASession = self._session_factory()
        try:
            entry = db.get(KeyValueEntry, key)
            return entry.value if entry else None
        finally:
            db.close()

    def set(self, key: str, value: str) -> None:
        db: SASession = self._session_factory()
        try:
            entry = db.get(KeyValueEntry, key)
            if entry is None:
                db.add(KeyValueEntry(key=key, value=value))
            else:
                entry.value = value
                entry.updated_at = datetime.utcnow()
            db.commit()
        except Exception as exc:
            logger.error("Failed to write key %s: %s", key, exc)
            db.rollback()
            raise
        finally:
            db.close()
