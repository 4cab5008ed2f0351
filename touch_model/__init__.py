"""
NoTouch Core Package
Face-touch habit monitoring: proximity alerts + daily habit statistics.

Usage (per-frame proximity alerts):
    from touch_model import ProximityAnalyzer, ProximityConfig, LandmarkAdapter

    analyzer = ProximityAnalyzer(
        ProximityConfig(trigger_time=1.0, cooldown_time=2.0),
        on_alert=lambda: print("hand near face!"),
    )
    frame = LandmarkAdapter.frame(face_landmarks, hands, width, height)
    info = analyzer.update(frame.hands, frame.head, frame.face_landmarks)
    print(info.to_dict())

Usage (habit statistics):
    from touch_model import StatisticsService, MemoryKeyValueStore

    stats = StatisticsService(MemoryKeyValueStore())
    stats.record_touch(1000, analyzer.active_zone)
    print(stats.get_today_stats().to_dict())
"""

from .types import (
    ALL_SPECIFIC_ZONES,
    DEFAULT_ENABLED_ZONES,
    FACE_ZONES,
    HAIR_ZONES,
    DetectionState,
    DetectionZone,
    FaceLandmarks,
    Fingertips,
    HandKeypoints,
    HeadRegion,
    Point,
    ProximityInfo,
    parse_zone_list,
)
from .zone_geometry import ZoneGeometryEvaluator, ZoneEvaluation
from .proximity_analyzer import ProximityAnalyzer, ProximityConfig
from .landmark_adapter import LandmarkAdapter, DetectionFrame
from .storage import Clock, KeyValueStore, MemoryKeyValueStore, SystemClock
from .statistics_types import DailyStats, HabitSettings, StatisticsState, TouchEvent, UserProgress
from .statistics_service import StatisticsService

__all__ = [
    "ALL_SPECIFIC_ZONES",
    "DEFAULT_ENABLED_ZONES",
    "FACE_ZONES",
    "HAIR_ZONES",
    "DetectionState",
    "DetectionZone",
    "FaceLandmarks",
    "Fingertips",
    "HandKeypoints",
    "HeadRegion",
    "Point",
    "ProximityInfo",
    "parse_zone_list",
    "ZoneGeometryEvaluator",
    "ZoneEvaluation",
    "ProximityAnalyzer",
    "ProximityConfig",
    "LandmarkAdapter",
    "DetectionFrame",
    "Clock",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SystemClock",
    "DailyStats",
    "HabitSettings",
    "StatisticsState",
    "TouchEvent",
    "UserProgress",
    "StatisticsService",
]
