"""
NoTouch Proximity Session
=========================
Per-connection caller loop: adapts landmark frames, drives one
``ProximityAnalyzer`` and plumbs each alert into the statistics service.

The session is synchronous; the WebSocket router sends whatever messages
``handle_message`` returns. Messages produced by analyzer handlers during an
update (state changes, alerts) are queued and returned ahead of the
per-frame proximity telemetry.
"""

import logging
from typing import Any, Dict, List, Optional

from touch_model import (
    DetectionState,
    LandmarkAdapter,
    ProximityAnalyzer,
    ProximityConfig,
    StatisticsService,
    parse_zone_list,
)
from touch_model.data_transfer import clamp_float
from touch_model.landmark_adapter import MIN_HAND_CONFIDENCE, DetectionFrame
from touch_model.storage import Clock

logger = logging.getLogger("notouch.proximity.session")

# Slider ranges for live configuration
SENSITIVITY_RANGE = (0.0, 1.0)
TRIGGER_TIME_RANGE = (0.5, 3.0)
COOLDOWN_TIME_RANGE = (1.0, 10.0)


class ProximitySession:
    def __init__(
        self,
        statistics: StatisticsService,
        config: Optional[ProximityConfig] = None,
        clock: Optional[Clock] = None,
        min_hand_confidence: float = MIN_HAND_CONFIDENCE,
    ):
        self.statistics = statistics
        self.min_hand_confidence = min_hand_confidence
        self.frame_count = 0
        self.alert_count = 0
        self._pending: List[Dict[str, Any]] = []
        self.analyzer = ProximityAnalyzer(
            config,
            on_alert=self._handle_alert,
            on_state_change=self._handle_state_change,
            clock=clock,
        )

    # ──────────────────────────────────────────────────────
    # Analyzer handlers
    # ──────────────────────────────────────────────────────

    def _handle_alert(self) -> None:
        duration_ms = int(round(self.analyzer.config.trigger_time * 1000))
        event = self.statistics.record_touch(duration_ms, self.analyzer.active_zone)
        self.alert_count += 1
        self._pending.append({
            "type": "alert",
            "data": {
                "event": event.to_dict(),
                "should_recommend_meditation": self.statistics.should_recommend_meditation(),
            },
        })

    def _handle_state_change(self, state: DetectionState) -> None:
        self._pending.append({"type": "state", "state": state.value})

    def _drain(self) -> List[Dict[str, Any]]:
        messages, self._pending = self._pending, []
        return messages

    # ──────────────────────────────────────────────────────
    # Message handling
    # ──────────────────────────────────────────────────────

    def handle_message(self, msg: Dict[str, Any]) -> List[Dict[str, Any]]:
        msg_type = msg.get("type", "")

        if msg_type == "landmarks":
            return self.process_landmarks(msg)

        if msg_type == "config":
            try:
                config = self.apply_config(msg.get("data") or {})
            except ValueError as exc:
                return [{"type": "error", "message": str(exc)}]
            return [{"type": "config", "data": config_to_dict(config)}]

        if msg_type == "reset":
            self.analyzer.reset()
            return self._drain()

        if msg_type == "ping":
            return [{"type": "pong"}]

        return [{"type": "error", "message": f"Unknown message type: {msg_type!r}"}]

    def process_landmarks(self, msg: Dict[str, Any]) -> List[Dict[str, Any]]:
        try:
            frame = LandmarkAdapter.frame(
                msg.get("face"),
                msg.get("hands") or [],
                int(msg.get("width", 0)),
                int(msg.get("height", 0)),
                self.min_hand_confidence,
            )
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as exc:
            # Malformed geometry counts as "not near"
            logger.debug("Malformed landmark frame: %s", exc)
            frame = DetectionFrame()

        info = self.analyzer.update(frame.hands, frame.head, frame.face_landmarks)
        self.frame_count += 1
        messages = self._drain()
        messages.append({
            "type": "proximity",
            "data": info.to_dict(),
            "frame_number": self.frame_count,
        })
        return messages

    def apply_config(self, data: Dict[str, Any]) -> ProximityConfig:
        current = self.analyzer.config
        changes: Dict[str, Any] = {}
        if "sensitivity" in data:
            changes["sensitivity"] = clamp_float(data["sensitivity"], *SENSITIVITY_RANGE, current.sensitivity)
        if "trigger_time" in data:
            changes["trigger_time"] = clamp_float(data["trigger_time"], *TRIGGER_TIME_RANGE, current.trigger_time)
        if "cooldown_time" in data:
            changes["cooldown_time"] = clamp_float(data["cooldown_time"], *COOLDOWN_TIME_RANGE, current.cooldown_time)
        if "enabled_zones" in data:
            zones = parse_zone_list(data["enabled_zones"])
            if not zones:
                raise ValueError("enabled_zones must not be empty")
            changes["enabled_zones"] = zones
        return self.analyzer.update_config(**changes)


def config_to_dict(config: ProximityConfig) -> Dict[str, Any]:
    return {
        "trigger_time": config.trigger_time,
        "cooldown_time": config.cooldown_time,
        "sensitivity": config.sensitivity,
        "enabled_zones": [z.value for z in config.enabled_zones],
    }
