"""
Pydantic Schemas for API request/response validation
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from touch_model import DailyStats, DetectionZone, HabitSettings, TouchEvent, UserProgress


# ── Statistics Schemas ───────────────────────────────────
class TouchEventResponse(BaseModel):
    id: str
    timestamp: int
    duration: float
    zone: Optional[DetectionZone] = None

    @classmethod
    def from_event(cls, event: TouchEvent) -> "TouchEventResponse":
        return cls(id=event.id, timestamp=event.timestamp, duration=event.duration, zone=event.zone)


class DailyStatsResponse(BaseModel):
    date: str
    touch_count: int
    total_duration: float
    touches_by_hour: List[int] = Field(min_length=24, max_length=24)
    meditation_minutes: float
    meditation_sessions: int
    first_touch: Optional[int] = None
    last_touch: Optional[int] = None

    @classmethod
    def from_stats(cls, stats: DailyStats) -> "DailyStatsResponse":
        return cls(
            date=stats.date,
            touch_count=stats.touch_count,
            total_duration=stats.total_duration,
            touches_by_hour=list(stats.touches_by_hour),
            meditation_minutes=stats.meditation_minutes,
            meditation_sessions=stats.meditation_sessions,
            first_touch=stats.first_touch,
            last_touch=stats.last_touch,
        )


class HabitSettingsResponse(BaseModel):
    touch_threshold_for_meditation: int
    daily_touch_goal: int
    meditation_duration: int
    enable_meditation_reminder: bool
    meditation_cooldown_minutes: float

    @classmethod
    def from_settings(cls, settings: HabitSettings) -> "HabitSettingsResponse":
        return cls(**settings.__dict__)


class HabitSettingsUpdate(BaseModel):
    touch_threshold_for_meditation: Optional[int] = Field(default=None, ge=1)
    daily_touch_goal: Optional[int] = Field(default=None, ge=0)
    meditation_duration: Optional[int] = Field(default=None, ge=1)
    enable_meditation_reminder: Optional[bool] = None
    meditation_cooldown_minutes: Optional[float] = Field(default=None, ge=0)


class UserProgressResponse(BaseModel):
    current_streak: int
    longest_streak: int
    total_meditation_minutes: float
    total_meditation_sessions: int
    start_date: str

    @classmethod
    def from_progress(cls, progress: UserProgress) -> "UserProgressResponse":
        return cls(**progress.__dict__)


class TouchCreate(BaseModel):
    duration: float = Field(ge=0)
    zone: Optional[DetectionZone] = None


class MeditationCreate(BaseModel):
    minutes: float = Field(gt=0)


class MeditationRecommendation(BaseModel):
    should_recommend: bool
    today_touch_count: int
    threshold: int


class TodaySummary(BaseModel):
    stats: DailyStatsResponse
    should_recommend_meditation: bool


class ImportResult(BaseModel):
    imported: bool
    daily_stats_count: int


class MonthlyStatsResponse(BaseModel):
    year: int
    month: int
    days: Dict[str, DailyStatsResponse]


class ExportDocument(BaseModel):
    """Portable export document; keys stay camelCase on the wire."""
    version: str
    exportedAt: str
    settings: Dict[str, Any]
    progress: Dict[str, Any]
    dailyStats: List[Dict[str, Any]]
