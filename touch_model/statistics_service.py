"""
Statistics Service
==================

Event store, day archival and habit aggregation over a flat key-value store.

Every public call first runs the archival pass: touch events whose local
date is no longer today are folded into their day's DailyStats entry. There
is no background timer; rollover is noticed on the next read or write.
"""

import calendar
import dataclasses
import functools
import json
import logging
import threading
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from .data_transfer import (
    build_export_document,
    normalize_history,
    parse_state,
    validate_import_document,
)
from .statistics_types import (
    DailyStats,
    HabitSettings,
    StatisticsState,
    TouchEvent,
    UserProgress,
    date_to_local_string,
    generate_id,
    timestamp_to_local_date_string,
    timestamp_to_local_datetime,
)
from .storage import Clock, KeyValueStore, SystemClock
from .types import DetectionZone

logger = logging.getLogger("notouch.statistics")

STORAGE_KEY = "notouch-statistics"


def _synchronized(method):
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


class StatisticsService:
    """Owns the StatisticsState and persists it as one JSON document.

    Public methods are serialized by a re-entrant lock so REST handlers and
    live proximity sessions can share one instance across threads.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Optional[Clock] = None,
        storage_key: str = STORAGE_KEY,
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.storage_key = storage_key
        self._lock = threading.RLock()
        self._state = self._load()
        self._archive_past_days()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> StatisticsState:
        today = self._today()
        try:
            raw = self.store.get(self.storage_key)
        except Exception:
            logger.exception("Failed to read statistics from storage")
            return StatisticsState.default(today)
        if not raw:
            return StatisticsState.default(today)
        try:
            document = json.loads(raw)
        except (TypeError, ValueError):
            logger.error("Stored statistics are corrupted; starting from defaults")
            return StatisticsState.default(today)
        return parse_state(document, today)

    def _save(self) -> None:
        try:
            self.store.set(self.storage_key, json.dumps(self._state.to_dict()))
        except Exception:
            logger.exception("Failed to save statistics to storage")

    # ------------------------------------------------------------------
    # Clock helpers
    # ------------------------------------------------------------------

    def _today_date(self) -> date:
        return timestamp_to_local_datetime(self.clock.now()).date()

    def _today(self) -> str:
        return date_to_local_string(self._today_date())

    def _find_daily(self, day: str) -> Optional[DailyStats]:
        for stats in self._state.daily_stats:
            if stats.date == day:
                return stats
        return None

    def _get_or_create_daily(self, day: str) -> DailyStats:
        stats = self._find_daily(day)
        if stats is None:
            stats = DailyStats(date=day)
            self._state.daily_stats.append(stats)
        return stats

    # ------------------------------------------------------------------
    # Archival
    # ------------------------------------------------------------------

    def _archive_past_days(self) -> None:
        today = self._today()
        state = self._state
        changed = False

        stale: Dict[str, List[TouchEvent]] = defaultdict(list)
        current: List[TouchEvent] = []
        for event in state.today_events:
            day = timestamp_to_local_date_string(event.timestamp)
            if day == today:
                current.append(event)
            else:
                stale[day].append(event)

        if stale:
            for day, events in stale.items():
                daily = self._get_or_create_daily(day)
                for event in events:
                    daily.add_event(event)
            state.today_events = current
            logger.info(
                "Archived %d touch events into %d past day(s)",
                sum(len(v) for v in stale.values()), len(stale),
            )
            changed = True

        history = normalize_history(state.daily_stats)
        if [d.date for d in history] != [d.date for d in state.daily_stats]:
            changed = True
        state.daily_stats = history

        if self._update_streak(today):
            changed = True

        if changed:
            self._save()

    def _update_streak(self, today: str) -> bool:
        goal = self._state.settings.daily_touch_goal
        streak = 0
        for daily in sorted(self._state.daily_stats, key=lambda d: d.date, reverse=True):
            if daily.date == today:
                continue
            if daily.touch_count <= goal:
                streak += 1
            else:
                break

        progress = self._state.progress
        longest = max(progress.longest_streak, streak)
        if progress.current_streak == streak and progress.longest_streak == longest:
            return False
        progress.current_streak = streak
        progress.longest_streak = longest
        return True

    # ------------------------------------------------------------------
    # Event store
    # ------------------------------------------------------------------

    @_synchronized
    def record_touch(self, duration: float, zone: Optional[DetectionZone] = None) -> TouchEvent:
        self._archive_past_days()
        now = self.clock.now()
        event = TouchEvent(
            id=generate_id(now),
            timestamp=now,
            duration=duration,
            zone=DetectionZone.parse(zone) if zone is not None else None,
        )
        self._state.today_events.append(event)
        self._save()
        logger.debug("Recorded touch %s (duration=%sms, zone=%s)", event.id, duration, zone)
        return event

    @_synchronized
    def record_meditation(self, minutes: float) -> None:
        self._archive_past_days()
        progress = self._state.progress
        progress.total_meditation_minutes += minutes
        progress.total_meditation_sessions += 1

        today_stats = self._get_or_create_daily(self._today())
        today_stats.meditation_minutes += minutes
        today_stats.meditation_sessions += 1
        self._state.daily_stats = normalize_history(self._state.daily_stats)
        self._save()

    @_synchronized
    def get_today_touch_count(self) -> int:
        self._archive_past_days()
        return len(self._state.today_events)

    @_synchronized
    def get_today_events(self) -> List[TouchEvent]:
        self._archive_past_days()
        return list(self._state.today_events)

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    @_synchronized
    def get_today_stats(self) -> DailyStats:
        self._archive_past_days()
        return self._live_today_stats()

    def _live_today_stats(self) -> DailyStats:
        today = self._today()
        stats = DailyStats(date=today)
        for event in self._state.today_events:
            stats.add_event(event)
        archived = self._find_daily(today)
        if archived is not None:
            stats.meditation_minutes = archived.meditation_minutes
            stats.meditation_sessions = archived.meditation_sessions
        return stats

    @_synchronized
    def get_weekly_stats(self) -> List[DailyStats]:
        """Seven days, oldest first, ending with today."""
        self._archive_past_days()
        today = self._today_date()
        result = []
        for offset in range(6, -1, -1):
            if offset == 0:
                result.append(self._live_today_stats())
                continue
            day = date_to_local_string(today - timedelta(days=offset))
            archived = self._find_daily(day)
            result.append(archived.copy() if archived else DailyStats(date=day))
        return result

    @_synchronized
    def get_monthly_stats(self, year: int, month: int) -> Dict[str, DailyStats]:
        """
        Every day of ``month`` (1-12) up to and including today.

        Past days without history are synthesized empty; future days are omitted.
        """
        self._archive_past_days()
        today = self._today()
        _, days_in_month = calendar.monthrange(year, month)
        result: Dict[str, DailyStats] = {}
        for day_number in range(1, days_in_month + 1):
            day = date_to_local_string(date(year, month, day_number))
            if day > today:
                break
            if day == today:
                result[day] = self._live_today_stats()
            else:
                archived = self._find_daily(day)
                result[day] = archived.copy() if archived else DailyStats(date=day)
        return result

    # ------------------------------------------------------------------
    # Meditation recommendation
    # ------------------------------------------------------------------

    @_synchronized
    def should_recommend_meditation(self) -> bool:
        settings = self._state.settings
        if not settings.enable_meditation_reminder:
            return False
        threshold = settings.touch_threshold_for_meditation
        touch_count = self.get_today_touch_count()
        if threshold <= 0 or touch_count < threshold:
            return False
        if touch_count % threshold != 0:
            return False

        last = self._state.last_meditation_recommended_at
        if last is None:
            return True
        cooldown_ms = settings.meditation_cooldown_minutes * 60 * 1000
        return self.clock.now() - last >= cooldown_ms

    @_synchronized
    def set_meditation_recommended(self) -> None:
        self._archive_past_days()
        self._state.last_meditation_recommended_at = self.clock.now()
        self._save()

    # ------------------------------------------------------------------
    # Settings & progress
    # ------------------------------------------------------------------

    @_synchronized
    def get_settings(self) -> HabitSettings:
        self._archive_past_days()
        return dataclasses.replace(self._state.settings)

    @_synchronized
    def update_settings(self, **changes: Any) -> HabitSettings:
        """Merge a partial update. Unknown fields raise TypeError."""
        self._archive_past_days()
        self._state.settings = dataclasses.replace(self._state.settings, **changes)
        # a new daily goal changes the streak immediately
        self._update_streak(self._today())
        self._save()
        return dataclasses.replace(self._state.settings)

    @_synchronized
    def get_progress(self) -> UserProgress:
        self._archive_past_days()
        return dataclasses.replace(self._state.progress)

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    @_synchronized
    def export_data(self) -> Dict[str, Any]:
        self._archive_past_days()
        exported_at = datetime.fromtimestamp(self.clock.now() / 1000.0, tz=timezone.utc)
        iso = exported_at.isoformat(timespec="milliseconds").replace("+00:00", "Z")
        return build_export_document(self._state, iso)

    @_synchronized
    def import_data(self, document: Any) -> bool:
        imported = validate_import_document(document, self._today())
        if imported is None:
            return False
        self._state = imported
        self._save()
        logger.info("Imported %d daily entries", len(imported.daily_stats))
        return True

    @_synchronized
    def clear_all_data(self) -> None:
        self._state = StatisticsState.default(self._today())
        self._save()
        logger.info("All statistics cleared")
