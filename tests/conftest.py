"""Shared fixtures: simulated clock, in-memory storage and geometry builders."""

import json
from datetime import datetime

import pytest

from touch_model import (
    FaceLandmarks,
    HandKeypoints,
    HeadRegion,
    MemoryKeyValueStore,
    Point,
    StatisticsService,
)
from touch_model.statistics_service import STORAGE_KEY


def local_ms(year, month, day, hour=12, minute=0):
    return int(datetime(year, month, day, hour, minute).timestamp() * 1000)


class FakeClock:
    def __init__(self, ms: int):
        self.ms = ms

    def now(self) -> int:
        return self.ms

    def advance(self, ms: int) -> None:
        self.ms += ms

    def set(self, year, month, day, hour=12, minute=0) -> None:
        self.ms = local_ms(year, month, day, hour, minute)


# ── Geometry builders ────────────────────────────────────
# A 200x260 head centered at (320, 240) with a symmetric face layout.

HEAD_CENTER = (320.0, 240.0)


def make_head(width=200.0, height=260.0, ears=None):
    left_ear, right_ear = ears if ears else (None, None)
    return HeadRegion(
        center=Point(*HEAD_CENTER),
        width=width,
        height=height,
        left_ear=left_ear,
        right_ear=right_ear,
    )


def make_face():
    return FaceLandmarks(
        forehead=Point(320, 150),
        left_eyebrow=Point(290, 185),
        right_eyebrow=Point(350, 185),
        left_eye=Point(290, 200),
        right_eye=Point(350, 200),
        nose_tip=Point(320, 240),
        nose_bridge=Point(320, 215),
        left_cheek=Point(250, 260),
        right_cheek=Point(390, 260),
        upper_lip=Point(320, 285),
        lower_lip=Point(320, 295),
        chin=Point(320, 340),
    )


def make_hand(x, y):
    """A hand whose index fingertip sits at (x, y); the rest is far away."""
    landmarks = [Point(5000, 5000)] * 21
    landmarks[8] = Point(x, y)
    return HandKeypoints(landmarks=landmarks)


# ── Statistics builders ──────────────────────────────────

def day(date, touch_count):
    return {"date": date, "touchCount": touch_count, "touchesByHour": [0] * 24}


def seeded(clock, daily_stats, **settings):
    """A service whose stored document already holds ``daily_stats``."""
    document = {"dailyStats": daily_stats, "settings": settings}
    store = MemoryKeyValueStore({STORAGE_KEY: json.dumps(document)})
    return StatisticsService(store, clock=clock)


@pytest.fixture
def clock():
    return FakeClock(local_ms(2024, 6, 15))


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def service(store, clock):
    return StatisticsService(store, clock=clock)
