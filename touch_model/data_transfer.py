"""
Export / import of the statistics state, plus lenient parsing of the
persisted document and clamping of slider-style numeric input.

Parsing never raises on bad data: malformed fields fall back to defaults and
malformed daily entries are dropped.
"""

import logging
import math
import re
from numbers import Real
from typing import Any, Dict, List, Optional

from .statistics_types import (
    HOURS_PER_DAY,
    MAX_DAILY_STATS_DAYS,
    DailyStats,
    HabitSettings,
    StatisticsState,
    TouchEvent,
    UserProgress,
)

logger = logging.getLogger("notouch.data_transfer")

EXPORT_VERSION = "1.0"
DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")

# camelCase key -> (attribute, kind)
_SETTINGS_FIELDS = {
    "touchThresholdForMeditation": ("touch_threshold_for_meditation", "int"),
    "dailyTouchGoal": ("daily_touch_goal", "int"),
    "meditationDuration": ("meditation_duration", "int"),
    "enableMeditationReminder": ("enable_meditation_reminder", "bool"),
    "meditationCooldownMinutes": ("meditation_cooldown_minutes", "number"),
}

_PROGRESS_FIELDS = {
    "currentStreak": ("current_streak", "int"),
    "longestStreak": ("longest_streak", "int"),
    "totalMeditationMinutes": ("total_meditation_minutes", "number"),
    "totalMeditationSessions": ("total_meditation_sessions", "int"),
    "startDate": ("start_date", "str"),
}


# ============================================================================
# NUMERIC HELPERS
# ============================================================================

def is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def clamp_float(value: Any, minimum: float, maximum: float, fallback: float) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(parsed):
        return fallback
    return max(minimum, min(maximum, parsed))


def clamp_int(value: Any, minimum: int, maximum: int, fallback: int) -> int:
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return fallback
    return max(minimum, min(maximum, parsed))


def _coerce(value: Any, kind: str) -> Any:
    """Return the coerced value, or None when it does not fit ``kind``."""
    if kind == "bool":
        return value if isinstance(value, bool) else None
    if kind == "str":
        return value if isinstance(value, str) and value else None
    if not is_number(value):
        return None
    return int(value) if kind == "int" else value


def _merge_fields(target: Any, data: Any, fields: Dict[str, tuple]) -> Any:
    if not isinstance(data, dict):
        return target
    for key, (attr, kind) in fields.items():
        if key in data:
            coerced = _coerce(data[key], kind)
            if coerced is not None:
                setattr(target, attr, coerced)
    return target


# ============================================================================
# PARSING
# ============================================================================

def parse_settings(data: Any) -> HabitSettings:
    """Merge a camelCase settings mapping over the defaults."""
    return _merge_fields(HabitSettings(), data, _SETTINGS_FIELDS)


def parse_progress(data: Any, today: str) -> UserProgress:
    """Merge a camelCase progress mapping over the defaults."""
    return _merge_fields(UserProgress(start_date=today), data, _PROGRESS_FIELDS)


def parse_daily_stats_entry(entry: Any) -> Optional[DailyStats]:
    """Validate one daily entry; None when it must be dropped."""
    if not isinstance(entry, dict):
        return None
    day = entry.get("date")
    if not isinstance(day, str) or not DATE_PATTERN.fullmatch(day):
        return None
    touch_count = entry.get("touchCount")
    if not is_number(touch_count) or touch_count < 0:
        return None

    hours = entry.get("touchesByHour")
    if isinstance(hours, list) and len(hours) == HOURS_PER_DAY and all(is_number(h) for h in hours):
        touches_by_hour = [int(h) for h in hours]
    else:
        touches_by_hour = [0] * HOURS_PER_DAY

    def number(key: str) -> Any:
        value = entry.get(key)
        return value if is_number(value) and value >= 0 else 0

    def timestamp(key: str) -> Optional[int]:
        value = entry.get(key)
        return int(value) if is_number(value) else None

    return DailyStats(
        date=day,
        touch_count=int(touch_count),
        total_duration=number("totalDuration"),
        touches_by_hour=touches_by_hour,
        meditation_minutes=number("meditationMinutes"),
        meditation_sessions=int(number("meditationSessions")),
        first_touch=timestamp("firstTouch"),
        last_touch=timestamp("lastTouch"),
    )


def normalize_history(entries: List[DailyStats]) -> List[DailyStats]:
    """Unique by date (first wins), newest first, at most 90 days."""
    seen = set()
    unique = []
    for stats in entries:
        if stats.date in seen:
            continue
        seen.add(stats.date)
        unique.append(stats)
    unique.sort(key=lambda d: d.date, reverse=True)
    return unique[:MAX_DAILY_STATS_DAYS]


def parse_daily_stats(entries: Any) -> List[DailyStats]:
    if not isinstance(entries, list):
        return []
    parsed = [parse_daily_stats_entry(entry) for entry in entries]
    return normalize_history([p for p in parsed if p is not None])


def parse_touch_events(entries: Any) -> List[TouchEvent]:
    if not isinstance(entries, list):
        return []
    events = []
    for entry in entries:
        if not isinstance(entry, dict) or not is_number(entry.get("timestamp")):
            continue
        try:
            events.append(TouchEvent.from_dict(entry))
        except (KeyError, TypeError, ValueError):
            logger.debug("Dropping malformed touch event: %r", entry)
    return events


def parse_state(document: Any, today: str) -> StatisticsState:
    """Lenient parse of the persisted document."""
    if not isinstance(document, dict):
        return StatisticsState.default(today)
    last = document.get("lastMeditationRecommendedAt")
    return StatisticsState(
        settings=parse_settings(document.get("settings")),
        progress=parse_progress(document.get("progress"), today),
        today_events=parse_touch_events(document.get("todayEvents")),
        daily_stats=parse_daily_stats(document.get("dailyStats")),
        last_meditation_recommended_at=int(last) if is_number(last) else None,
    )


# ============================================================================
# EXPORT / IMPORT
# ============================================================================

def build_export_document(state: StatisticsState, exported_at: str) -> Dict[str, Any]:
    return {
        "version": EXPORT_VERSION,
        "exportedAt": exported_at,
        "settings": state.settings.to_dict(),
        "progress": state.progress.to_dict(),
        "dailyStats": [d.to_dict() for d in state.daily_stats],
    }


def validate_import_document(document: Any, today: str) -> Optional[StatisticsState]:
    """
    Validate an export document and build the state it describes.

    Returns None when the document is rejected. Individual daily entries that
    fail validation are dropped without rejecting the document.
    """
    if not isinstance(document, dict):
        logger.warning("Import rejected: document is not an object")
        return None
    version = document.get("version")
    if not isinstance(version, str) or not version:
        logger.warning("Import rejected: missing version")
        return None
    entries = document.get("dailyStats")
    if not isinstance(entries, list):
        logger.warning("Import rejected: dailyStats is not a list")
        return None

    daily_stats = parse_daily_stats(entries)
    dropped = len(entries) - len(daily_stats)
    if dropped:
        logger.info("Import dropped %d daily entries", dropped)

    return StatisticsState(
        settings=parse_settings(document.get("settings")),
        progress=parse_progress(document.get("progress"), today),
        today_events=[],
        daily_stats=daily_stats,
        last_meditation_recommended_at=None,
    )
