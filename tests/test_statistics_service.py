import json
import threading

import pytest

from touch_model import DetectionZone, MemoryKeyValueStore, StatisticsService
from touch_model.statistics_service import STORAGE_KEY

from conftest import FakeClock, day, local_ms, seeded


class FailingStore:
    def __init__(self, fail_get=True, fail_set=True):
        self.fail_get = fail_get
        self.fail_set = fail_set
        self.writes = 0

    def get(self, key):
        if self.fail_get:
            raise OSError("storage unavailable")
        return None

    def set(self, key, value):
        self.writes += 1
        if self.fail_set:
            raise OSError("storage unavailable")


# ── Event store ──────────────────────────────────────────

def test_record_touch(service, clock, store):
    event = service.record_touch(1000, DetectionZone.NOSE)
    assert event.timestamp == clock.now()
    assert event.id.startswith(f"{clock.now()}-")
    assert event.zone is DetectionZone.NOSE

    stats = service.get_today_stats()
    assert stats.date == "2024-06-15"
    assert stats.touch_count == 1
    assert stats.total_duration == 1000
    assert stats.touches_by_hour[12] == 1
    assert stats.first_touch == stats.last_touch == clock.now()

    persisted = json.loads(store.get(STORAGE_KEY))
    assert persisted["todayEvents"][0]["zone"] == "nose"


def test_record_touch_accepts_zone_tag(service):
    assert service.record_touch(500, "eyes").zone is DetectionZone.EYES
    assert service.record_touch(500).zone is None


def test_state_survives_restart(service, store, clock):
    service.record_touch(1000)
    service.record_touch(1200)
    reloaded = StatisticsService(store, clock=clock)
    assert reloaded.get_today_touch_count() == 2
    assert [e.duration for e in reloaded.get_today_events()] == [1000, 1200]


def test_first_and_last_touch(service, clock):
    service.record_touch(100)
    first = clock.now()
    clock.advance(3_600_000)
    service.record_touch(100)
    stats = service.get_today_stats()
    assert stats.first_touch == first
    assert stats.last_touch == clock.now()
    assert stats.touches_by_hour[12] == 1
    assert stats.touches_by_hour[13] == 1


# ── Archival ─────────────────────────────────────────────

def test_day_rollover_archives_events(service, clock):
    service.record_touch(1000)
    service.record_touch(500)
    clock.set(2024, 6, 16, 9)

    assert service.get_today_touch_count() == 0
    weekly = service.get_weekly_stats()
    assert [s.date for s in weekly][-2:] == ["2024-06-15", "2024-06-16"]
    archived = weekly[-2]
    assert archived.touch_count == 2
    assert archived.total_duration == 1500
    assert archived.touches_by_hour[12] == 2


def test_rollover_merges_into_existing_entry(clock):
    service = seeded(clock, [day("2024-06-15", 3)])
    service.record_touch(100)
    clock.set(2024, 6, 16)
    monthly = service.get_monthly_stats(2024, 6)
    assert monthly["2024-06-15"].touch_count == 4


def test_rollover_is_persisted(service, store, clock):
    service.record_touch(100)
    clock.set(2024, 6, 17)
    service.get_today_touch_count()
    persisted = json.loads(store.get(STORAGE_KEY))
    assert persisted["todayEvents"] == []
    assert persisted["dailyStats"][0]["date"] == "2024-06-15"


def test_history_capped_at_90_days(clock):
    entries = [day(f"2024-{m:02d}-{d:02d}", 1) for m in (2, 3, 4, 5) for d in range(1, 29)]
    service = seeded(clock, entries)
    history = service.export_data()["dailyStats"]
    assert len(history) == 90
    assert history[0]["date"] == "2024-05-28"
    assert history == sorted(history, key=lambda d: d["date"], reverse=True)


# ── Aggregation ──────────────────────────────────────────

def test_weekly_stats_shape(service):
    weekly = service.get_weekly_stats()
    assert len(weekly) == 7
    assert weekly[0].date == "2024-06-09"
    assert weekly[-1].date == "2024-06-15"
    assert all(s.touch_count == 0 for s in weekly)


def test_weekly_includes_live_today(service):
    service.record_touch(100)
    assert service.get_weekly_stats()[-1].touch_count == 1


def test_monthly_stats_current_month(service):
    service.record_touch(100)
    monthly = service.get_monthly_stats(2024, 6)
    assert len(monthly) == 15
    assert list(monthly)[-1] == "2024-06-15"
    assert monthly["2024-06-15"].touch_count == 1
    assert monthly["2024-06-01"].touch_count == 0


def test_monthly_stats_past_and_future(clock):
    service = seeded(clock, [day("2024-05-20", 7)])
    may = service.get_monthly_stats(2024, 5)
    assert len(may) == 31
    assert may["2024-05-20"].touch_count == 7
    assert service.get_monthly_stats(2024, 7) == {}


def test_returned_stats_are_copies(clock):
    service = seeded(clock, [day("2024-06-14", 2)])
    service.get_weekly_stats()[-2].touch_count = 99
    assert service.get_weekly_stats()[-2].touch_count == 2


# ── Streaks ──────────────────────────────────────────────

def test_streak_broken_by_most_recent_day(clock):
    service = seeded(clock, [day("2024-06-13", 5), day("2024-06-14", 20)], dailyTouchGoal=10)
    assert service.get_progress().current_streak == 0


def test_streak_counts_consecutive_days(clock):
    service = seeded(clock, [day("2024-06-14", 5), day("2024-06-13", 10), day("2024-06-12", 20)])
    progress = service.get_progress()
    assert progress.current_streak == 2
    assert progress.longest_streak == 2


def test_streak_ignores_today(clock):
    service = seeded(clock, [day("2024-06-15", 50), day("2024-06-14", 1)])
    assert service.get_progress().current_streak == 1


def test_longest_streak_never_decreases(clock):
    service = seeded(clock, [day("2024-06-14", 5), day("2024-06-13", 5)])
    assert service.get_progress().longest_streak == 2

    service.update_settings(daily_touch_goal=3)
    progress = service.get_progress()
    assert progress.current_streak == 0
    assert progress.longest_streak == 2


def test_streak_grows_on_rollover(service, clock):
    for _ in range(3):
        service.record_touch(100)
    clock.set(2024, 6, 16)
    assert service.get_progress().current_streak == 1


# ── Meditation ───────────────────────────────────────────

def test_record_meditation(service):
    service.record_meditation(5)
    service.record_meditation(2.5)
    progress = service.get_progress()
    assert progress.total_meditation_minutes == 7.5
    assert progress.total_meditation_sessions == 2
    today = service.get_today_stats()
    assert today.meditation_minutes == 7.5
    assert today.meditation_sessions == 2


def test_meditation_history_entry_survives_rollover(service, clock):
    service.record_meditation(3)
    service.record_touch(100)
    clock.set(2024, 6, 16)
    archived = service.get_monthly_stats(2024, 6)["2024-06-15"]
    assert archived.meditation_minutes == 3
    assert archived.touch_count == 1


def test_recommendation_on_threshold_multiples(service, clock):
    for _ in range(4):
        service.record_touch(100)
    assert service.should_recommend_meditation() is False

    service.record_touch(100)
    assert service.should_recommend_meditation() is True

    service.set_meditation_recommended()
    service.record_touch(100)
    assert service.should_recommend_meditation() is False


def test_recommendation_cooldown(service, clock):
    for _ in range(5):
        service.record_touch(100)
    service.set_meditation_recommended()
    for _ in range(5):
        service.record_touch(100)
    assert service.should_recommend_meditation() is False

    clock.advance(30 * 60 * 1000 - 1)
    assert service.should_recommend_meditation() is False
    clock.advance(1)
    assert service.should_recommend_meditation() is True


def test_recommendation_disabled(service):
    service.update_settings(enable_meditation_reminder=False)
    for _ in range(5):
        service.record_touch(100)
    assert service.should_recommend_meditation() is False


def test_recommendation_threshold_zero(service):
    service.update_settings(touch_threshold_for_meditation=0)
    service.record_touch(100)
    assert service.should_recommend_meditation() is False


# ── Settings / lifecycle ─────────────────────────────────

def test_default_settings(service):
    settings = service.get_settings()
    assert settings.touch_threshold_for_meditation == 5
    assert settings.daily_touch_goal == 10
    assert settings.meditation_duration == 180
    assert settings.enable_meditation_reminder is True
    assert settings.meditation_cooldown_minutes == 30


def test_update_settings_is_partial_and_persisted(service, store, clock):
    updated = service.update_settings(daily_touch_goal=4)
    assert updated.daily_touch_goal == 4
    assert updated.touch_threshold_for_meditation == 5
    assert StatisticsService(store, clock=clock).get_settings().daily_touch_goal == 4


def test_update_settings_unknown_field(service):
    with pytest.raises(TypeError):
        service.update_settings(bogus=1)


def test_clear_all_data(service, clock):
    service.record_touch(100)
    service.record_meditation(5)
    service.clear_all_data()
    assert service.get_today_touch_count() == 0
    assert service.export_data()["dailyStats"] == []
    progress = service.get_progress()
    assert progress.total_meditation_minutes == 0
    assert progress.start_date == "2024-06-15"


def test_start_date_is_first_run_day(service):
    assert service.get_progress().start_date == "2024-06-15"


# ── Storage failures ─────────────────────────────────────

def test_corrupted_storage_yields_defaults(clock):
    store = MemoryKeyValueStore({STORAGE_KEY: "{not json"})
    service = StatisticsService(store, clock=clock)
    assert service.get_today_touch_count() == 0
    assert service.get_settings().daily_touch_goal == 10


def test_wrong_shape_storage_yields_defaults(clock):
    store = MemoryKeyValueStore({STORAGE_KEY: json.dumps([1, 2, 3])})
    assert StatisticsService(store, clock=clock).get_progress().current_streak == 0


def test_read_and_write_failures_are_swallowed(clock):
    store = FailingStore()
    service = StatisticsService(store, clock=clock)
    service.record_touch(100)
    service.record_touch(100)
    assert service.get_today_touch_count() == 2
    assert store.writes >= 2


def test_custom_storage_key(store, clock):
    service = StatisticsService(store, clock=clock, storage_key="other")
    service.record_touch(100)
    assert store.get("other") is not None
    assert store.get(STORAGE_KEY) is None


def test_export_timestamp_from_clock():
    clock = FakeClock(local_ms(2024, 6, 15))
    service = StatisticsService(MemoryKeyValueStore(), clock=clock)
    clock.ms = 1718452800000
    document = service.export_data()
    assert document["version"] == "1.0"
    assert document["exportedAt"] == "2024-06-15T12:00:00.000Z"


def test_concurrent_callers_share_one_service(service):
    def worker():
        for _ in range(50):
            service.record_touch(100)
            service.get_today_stats()

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert service.get_today_touch_count() == 400
    assert len({e.id for e in service.get_today_events()}) == 400
