"""
Statistics data model.

Field names are snake_case in Python; the persisted and exported documents
use the camelCase keys produced by ``to_dict``.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from .types import DetectionZone

HOURS_PER_DAY = 24
MAX_DAILY_STATS_DAYS = 90


# ============================================================================
# LOCAL DATE HELPERS
# ============================================================================

def date_to_local_string(day: date) -> str:
    """Zero-padded YYYY-MM-DD"""
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


def timestamp_to_local_datetime(timestamp_ms: float) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000.0)


def timestamp_to_local_date_string(timestamp_ms: float) -> str:
    return date_to_local_string(timestamp_to_local_datetime(timestamp_ms).date())


def timestamp_to_local_hour(timestamp_ms: float) -> int:
    return timestamp_to_local_datetime(timestamp_ms).hour


def generate_id(timestamp_ms: int) -> str:
    return f"{timestamp_ms}-{uuid.uuid4().hex[:9]}"


# ============================================================================
# RECORDS
# ============================================================================

@dataclass(frozen=True)
class TouchEvent:
    id: str
    timestamp: int
    duration: float
    zone: Optional[DetectionZone] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "duration": self.duration,
            "zone": self.zone.value if self.zone else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TouchEvent":
        zone = data.get("zone")
        return cls(
            id=str(data["id"]),
            timestamp=int(data["timestamp"]),
            duration=data.get("duration", 0),
            zone=DetectionZone.parse(zone) if zone else None,
        )


@dataclass
class DailyStats:
    date: str
    touch_count: int = 0
    total_duration: float = 0
    touches_by_hour: List[int] = field(default_factory=lambda: [0] * HOURS_PER_DAY)
    meditation_minutes: float = 0
    meditation_sessions: int = 0
    first_touch: Optional[int] = None
    last_touch: Optional[int] = None

    def add_event(self, event: TouchEvent) -> None:
        self.touch_count += 1
        self.total_duration += event.duration
        self.touches_by_hour[timestamp_to_local_hour(event.timestamp)] += 1
        if self.first_touch is None or event.timestamp < self.first_touch:
            self.first_touch = event.timestamp
        if self.last_touch is None or event.timestamp > self.last_touch:
            self.last_touch = event.timestamp

    def copy(self) -> "DailyStats":
        return DailyStats(
            date=self.date,
            touch_count=self.touch_count,
            total_duration=self.total_duration,
            touches_by_hour=list(self.touches_by_hour),
            meditation_minutes=self.meditation_minutes,
            meditation_sessions=self.meditation_sessions,
            first_touch=self.first_touch,
            last_touch=self.last_touch,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "touchCount": self.touch_count,
            "totalDuration": self.total_duration,
            "touchesByHour": list(self.touches_by_hour),
            "meditationMinutes": self.meditation_minutes,
            "meditationSessions": self.meditation_sessions,
            "firstTouch": self.first_touch,
            "lastTouch": self.last_touch,
        }


@dataclass
class HabitSettings:
    touch_threshold_for_meditation: int = 5
    daily_touch_goal: int = 10
    # seconds
    meditation_duration: int = 180
    enable_meditation_reminder: bool = True
    meditation_cooldown_minutes: float = 30

    def to_dict(self) -> Dict[str, Any]:
        return {
            "touchThresholdForMeditation": self.touch_threshold_for_meditation,
            "dailyTouchGoal": self.daily_touch_goal,
            "meditationDuration": self.meditation_duration,
            "enableMeditationReminder": self.enable_meditation_reminder,
            "meditationCooldownMinutes": self.meditation_cooldown_minutes,
        }


@dataclass
class UserProgress:
    start_date: str
    current_streak: int = 0
    longest_streak: int = 0
    total_meditation_minutes: float = 0
    total_meditation_sessions: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "totalMeditationMinutes": self.total_meditation_minutes,
            "totalMeditationSessions": self.total_meditation_sessions,
            "startDate": self.start_date,
        }


@dataclass
class StatisticsState:
    """The single unit of durable state"""
    settings: HabitSettings
    progress: UserProgress
    today_events: List[TouchEvent] = field(default_factory=list)
    daily_stats: List[DailyStats] = field(default_factory=list)
    last_meditation_recommended_at: Optional[int] = None

    @classmethod
    def default(cls, today: str) -> "StatisticsState":
        return cls(settings=HabitSettings(), progress=UserProgress(start_date=today))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "todayEvents": [e.to_dict() for e in self.today_events],
            "dailyStats": [d.to_dict() for d in self.daily_stats],
            "settings": self.settings.to_dict(),
            "progress": self.progress.to_dict(),
            "lastMeditationRecommendedAt": self.last_meditation_recommended_at,
        }
