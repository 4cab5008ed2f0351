"""
NoTouch Statistics Provider
Builds the process-wide StatisticsService on top of the SQL key-value store.

The service is created lazily on first use so that importing the app does
not touch the database. Routers depend on ``get_statistics_service`` so tests
can override it with an in-memory instance.
"""

import logging
from typing import Optional

from touch_model import ProximityConfig, StatisticsService, SystemClock
from touch_model.storage import Clock

from app.core.config import settings
from app.core.database import SessionLocal
from app.services.kv_storage import SqlKeyValueStore

logger = logging.getLogger("notouch.statistics.provider")

_service: Optional[StatisticsService] = None
_clock: Clock = SystemClock()


def get_clock() -> Clock:
    """Wall clock shared by the statistics service and live proximity sessions"""
    return _clock


def get_statistics_service() -> StatisticsService:
    global _service
    if _service is None:
        _service = StatisticsService(
            SqlKeyValueStore(SessionLocal),
            clock=get_clock(),
            storage_key=settings.STATISTICS_STORAGE_KEY,
        )
        logger.info("Statistics service initialised (key=%s)", settings.STATISTICS_STORAGE_KEY)
    return _service


def default_proximity_config() -> ProximityConfig:
    return ProximityConfig(
        trigger_time=settings.TRIGGER_TIME,
        cooldown_time=settings.COOLDOWN_TIME,
        sensitivity=settings.SENSITIVITY,
        enabled_zones=settings.enabled_zones,
    )
