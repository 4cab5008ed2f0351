import pytest

from touch_model import (
    DetectionState,
    DetectionZone,
    ProximityAnalyzer,
    ProximityConfig,
)

from conftest import make_face, make_hand, make_head

IDLE = DetectionState.IDLE
DETECTING = DetectionState.DETECTING
ALERT = DetectionState.ALERT
COOLDOWN = DetectionState.COOLDOWN


class Recorder:
    def __init__(self):
        self.alerts = 0
        self.states = []
        self.infos = []

    def on_alert(self):
        self.alerts += 1

    def on_state_change(self, state):
        self.states.append(state)

    def on_proximity(self, info):
        self.infos.append(info)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def analyzer(clock, recorder):
    return ProximityAnalyzer(
        ProximityConfig(trigger_time=1.0, cooldown_time=2.0),
        on_alert=recorder.on_alert,
        on_state_change=recorder.on_state_change,
        on_proximity=recorder.on_proximity,
        clock=clock,
    )


def near(analyzer):
    return analyzer.update([make_hand(320, 240)], make_head())


def away(analyzer):
    return analyzer.update([], make_head())


def test_full_cycle(analyzer, clock, recorder):
    info = near(analyzer)
    assert info.state is DETECTING
    assert info.progress == 0.0

    clock.advance(500)
    assert near(analyzer).progress == pytest.approx(0.5)

    clock.advance(500)
    info = near(analyzer)
    assert info.state is ALERT
    assert info.progress == 1.0
    assert recorder.alerts == 1

    info = near(analyzer)
    assert info.state is COOLDOWN
    assert info.progress == pytest.approx(1.0)

    clock.advance(1000)
    assert near(analyzer).progress == pytest.approx(0.5)

    clock.advance(1000)
    info = near(analyzer)
    assert info.state is IDLE
    assert info.progress == 0.0
    assert recorder.states == [DETECTING, ALERT, COOLDOWN, IDLE]
    assert recorder.alerts == 1


def test_leaving_before_trigger_returns_to_idle(analyzer, clock, recorder):
    near(analyzer)
    clock.advance(900)
    assert away(analyzer).state is IDLE
    clock.advance(900)
    assert near(analyzer).state is DETECTING
    assert recorder.alerts == 0


def run_to_idle_after_alert(analyzer, clock):
    near(analyzer)
    clock.advance(1000)
    near(analyzer)  # ALERT
    near(analyzer)  # COOLDOWN
    clock.advance(2000)
    assert near(analyzer).state is IDLE


def test_hand_must_leave_before_rearming(analyzer, clock, recorder):
    run_to_idle_after_alert(analyzer, clock)

    clock.advance(5000)
    assert near(analyzer).state is IDLE
    assert recorder.alerts == 1

    away(analyzer)
    assert near(analyzer).state is DETECTING


def test_alert_frame_latches_even_when_hand_is_gone(analyzer, clock):
    near(analyzer)
    clock.advance(1000)
    near(analyzer)
    assert away(analyzer).state is COOLDOWN
    clock.advance(2000)
    assert near(analyzer).state is IDLE
    # the latch set on the ALERT frame is still armed
    assert near(analyzer).state is IDLE


def test_hand_removed_during_cooldown_clears_latch(analyzer, clock):
    near(analyzer)
    clock.advance(1000)
    near(analyzer)
    near(analyzer)
    away(analyzer)
    clock.advance(2000)
    assert near(analyzer).state is IDLE
    assert near(analyzer).state is DETECTING


def test_proximity_telemetry_every_call(analyzer, recorder):
    near(analyzer)
    away(analyzer)
    away(analyzer)
    assert len(recorder.infos) == 3
    assert recorder.infos[0].active_zone is DetectionZone.FULL_FACE
    assert recorder.infos[1].active_zone is None
    assert analyzer.is_hand_near_head() is False


def test_state_callback_only_on_change(analyzer, recorder):
    away(analyzer)
    away(analyzer)
    near(analyzer)
    near(analyzer)
    assert recorder.states == [DETECTING]


def test_reset(analyzer, clock, recorder):
    near(analyzer)
    clock.advance(1000)
    near(analyzer)
    analyzer.reset()
    assert analyzer.state is IDLE
    assert analyzer.progress == 0.0
    assert analyzer.active_zone is None
    assert recorder.states[-1] is IDLE

    # idempotent, and still notifies
    analyzer.reset()
    assert recorder.states[-2:] == [IDLE, IDLE]
    # latch cleared: a hand still near starts a new cycle
    assert near(analyzer).state is DETECTING


def test_handler_errors_do_not_escape(clock):
    def boom(*args):
        raise RuntimeError("handler failure")

    analyzer = ProximityAnalyzer(
        ProximityConfig(trigger_time=1.0),
        on_alert=boom,
        on_state_change=boom,
        on_proximity=boom,
        clock=clock,
    )
    near(analyzer)
    clock.advance(1000)
    assert near(analyzer).state is ALERT


def test_zero_trigger_time_alerts_on_next_frame(clock, recorder):
    analyzer = ProximityAnalyzer(
        ProximityConfig(trigger_time=0),
        on_alert=recorder.on_alert,
        clock=clock,
    )
    assert near(analyzer).state is DETECTING
    assert near(analyzer).state is ALERT
    assert recorder.alerts == 1


def test_update_config(analyzer, clock):
    config = analyzer.update_config(trigger_time=2.0, enabled_zones="nose, eyes")
    assert config.trigger_time == 2.0
    assert config.cooldown_time == 2.0
    assert config.enabled_zones == (DetectionZone.NOSE, DetectionZone.EYES)

    face = make_face()
    assert analyzer.update([make_hand(320, 240)], make_head(), face).active_zone is DetectionZone.NOSE
    clock.advance(1000)
    info = analyzer.update([make_hand(320, 240)], make_head(), face)
    assert info.state is DETECTING
    assert info.progress == pytest.approx(0.5)


def test_specific_zones_without_face_landmarks(clock):
    analyzer = ProximityAnalyzer(ProximityConfig(enabled_zones=["nose"]), clock=clock)
    assert analyzer.update([make_hand(320, 240)], make_head()).is_near_head is False


def test_malformed_geometry_is_not_near(analyzer):
    assert analyzer.update(None, None).is_near_head is False
    assert analyzer.update([], None).state is IDLE


def test_info_to_dict(analyzer):
    data = near(analyzer).to_dict()
    assert data == {
        "is_near_head": True,
        "progress": 0.0,
        "state": "DETECTING",
        "active_zone": "fullFace",
    }
