"""
Proximity State Machine
Turns per-frame zone proximity into debounced touch alerts.

IDLE -> DETECTING -> ALERT -> COOLDOWN -> IDLE

ALERT lasts exactly one update call. After an alert the hand has to leave
the face for at least one frame before a new detection cycle can start.
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Tuple

from .storage import Clock, SystemClock
from .types import (
    DEFAULT_ENABLED_ZONES,
    DetectionState,
    DetectionZone,
    FaceLandmarks,
    HandKeypoints,
    HeadRegion,
    ProximityInfo,
    parse_zone_list,
)
from .zone_geometry import ZoneGeometryEvaluator

logger = logging.getLogger("notouch.proximity")

AlertHandler = Callable[[], None]
StateHandler = Callable[[DetectionState], None]
ProximityHandler = Callable[[ProximityInfo], None]


@dataclass(frozen=True)
class ProximityConfig:
    """Immutable timing/sensitivity configuration"""

    # Seconds a hand must stay near before an alert
    trigger_time: float = 1.0
    # Seconds after an alert before detection re-arms
    cooldown_time: float = 2.0
    # 0 (tight radius) .. 1 (wide radius)
    sensitivity: float = 0.5
    enabled_zones: Tuple[DetectionZone, ...] = DEFAULT_ENABLED_ZONES

    def __post_init__(self):
        object.__setattr__(self, "enabled_zones", parse_zone_list(self.enabled_zones))


class ProximityAnalyzer:
    """
    Four-state touch detector driven by wall-clock time.

    Handlers are supplied at construction and invoked synchronously:
    - on_alert(): once per alert
    - on_state_change(state): only on actual transitions
    - on_proximity(info): on every update call
    """

    def __init__(
        self,
        config: Optional[ProximityConfig] = None,
        *,
        on_alert: Optional[AlertHandler] = None,
        on_state_change: Optional[StateHandler] = None,
        on_proximity: Optional[ProximityHandler] = None,
        clock: Optional[Clock] = None,
    ):
        self.config = config or ProximityConfig()
        self.clock = clock or SystemClock()
        self._on_alert = on_alert
        self._on_state_change = on_state_change
        self._on_proximity = on_proximity

        self._state = DetectionState.IDLE
        self._detect_start: Optional[int] = None
        self._cooldown_start: Optional[int] = None
        self._require_hand_removal = False
        self._is_near_head = False
        self._active_zone: Optional[DetectionZone] = None
        self._progress = 0.0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> DetectionState:
        return self._state

    @property
    def active_zone(self) -> Optional[DetectionZone]:
        return self._active_zone

    @property
    def progress(self) -> float:
        return self._progress

    def is_hand_near_head(self) -> bool:
        return self._is_near_head

    def update_config(self, **changes: Any) -> ProximityConfig:
        self.config = dataclasses.replace(self.config, **changes)
        logger.debug("Proximity config updated: %s", self.config)
        return self.config

    def update(
        self,
        hands: Sequence[HandKeypoints],
        head: Optional[HeadRegion],
        face_landmarks: Optional[FaceLandmarks] = None,
    ) -> ProximityInfo:
        now = self.clock.now()
        evaluation = ZoneGeometryEvaluator.evaluate(
            hands or (),
            head,
            face_landmarks,
            self.config.enabled_zones,
            self.config.sensitivity,
        )
        near = evaluation.is_near_head
        self._is_near_head = near
        self._active_zone = evaluation.active_zone

        if not near:
            self._require_hand_removal = False

        progress = 0.0
        state = self._state

        if state is DetectionState.IDLE:
            if near and not self._require_hand_removal:
                self._detect_start = now
                self._set_state(DetectionState.DETECTING)

        elif state is DetectionState.DETECTING:
            if not near:
                self._detect_start = None
                self._set_state(DetectionState.IDLE)
            else:
                progress = self._fraction(now, self._detect_start, self.config.trigger_time)
                if progress >= 1.0:
                    progress = 1.0
                    self._cooldown_start = now
                    self._set_state(DetectionState.ALERT)
                    logger.info(
                        "Touch alert (zone=%s)",
                        self._active_zone.value if self._active_zone else None,
                    )
                    self._emit(self._on_alert)

        elif state is DetectionState.ALERT:
            self._require_hand_removal = True
            self._set_state(DetectionState.COOLDOWN)
            progress = 1.0 - self._fraction(now, self._cooldown_start, self.config.cooldown_time)

        elif state is DetectionState.COOLDOWN:
            fraction = self._fraction(now, self._cooldown_start, self.config.cooldown_time)
            if fraction >= 1.0:
                self._cooldown_start = None
                self._detect_start = None
                self._set_state(DetectionState.IDLE)
            else:
                progress = 1.0 - fraction

        self._progress = progress
        info = ProximityInfo(
            is_near_head=near,
            progress=progress,
            state=self._state,
            active_zone=self._active_zone,
        )
        self._emit(self._on_proximity, info)
        return info

    def reset(self) -> None:
        self._state = DetectionState.IDLE
        self._detect_start = None
        self._cooldown_start = None
        self._require_hand_removal = False
        self._is_near_head = False
        self._active_zone = None
        self._progress = 0.0
        self._emit(self._on_state_change, DetectionState.IDLE)

    # ------------------------------------------------------------------

    def _set_state(self, state: DetectionState) -> None:
        if state is self._state:
            return
        logger.debug("State %s -> %s", self._state.value, state.value)
        self._state = state
        self._emit(self._on_state_change, state)

    @staticmethod
    def _fraction(now: int, start: Optional[int], duration_s: float) -> float:
        if start is None or duration_s <= 0:
            return 1.0
        elapsed = (now - start) / 1000.0
        return min(max(elapsed / duration_s, 0.0), 1.0)

    @staticmethod
    def _emit(handler: Optional[Callable[..., None]], *args: Any) -> None:
        if handler is None:
            return
        try:
            handler(*args)
        except Exception:
            logger.exception("Proximity handler %r failed", handler)
