"""
Zone Geometry Module
====================

Stateless hand-to-face proximity test.

Design:
- Pure function of its inputs (no state, no side effects)
- Full-face mode tests fingertips against the head ellipse
- Zone mode tests fingertips against one circle per enabled zone
- First zone (in the caller's enabled order) whose test succeeds wins
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import numpy as np

from .types import (
    DetectionZone,
    FaceLandmarks,
    HandKeypoints,
    HeadRegion,
    Point,
    midpoint,
)

# Estimated ear offset from head center when the detector gives no ear points
EAR_OFFSET_RATIO = 0.55
# Scalp sits above the forehead landmark by this fraction of head height
SCALP_OFFSET_RATIO = 0.25


def radius_multiplier(sensitivity: float) -> float:
    """0.8x at sensitivity 0, 1.5x at sensitivity 1. Monotonic non-decreasing."""
    s = min(max(float(sensitivity), 0.0), 1.0)
    return 0.8 + s * 0.7


@dataclass(frozen=True)
class ZoneEvaluation:
    is_near_head: bool
    active_zone: Optional[DetectionZone] = None


NOT_NEAR = ZoneEvaluation(is_near_head=False, active_zone=None)


class ZoneGeometryEvaluator:
    """
    Decides whether any fingertip currently lies in an enabled zone.

    All methods are static; the evaluator holds no state.
    """

    @staticmethod
    def evaluate(
        hands: Sequence[HandKeypoints],
        head: Optional[HeadRegion],
        face_landmarks: Optional[FaceLandmarks],
        enabled_zones: Iterable[DetectionZone],
        sensitivity: float,
    ) -> ZoneEvaluation:
        if head is None or not hands:
            return NOT_NEAR

        tips = ZoneGeometryEvaluator._tip_array(hands)
        if tips.size == 0:
            return NOT_NEAR

        zones: List[DetectionZone] = []
        for zone in enabled_zones:
            zone = DetectionZone.parse(zone)
            if zone not in zones:
                zones.append(zone)

        if DetectionZone.FULL_FACE in zones:
            if ZoneGeometryEvaluator._inside_head_ellipse(tips, head, sensitivity):
                return ZoneEvaluation(True, DetectionZone.FULL_FACE)
            return NOT_NEAR

        # No silent fallback to full-face mode
        if face_landmarks is None:
            return NOT_NEAR

        scale = min(head.width, head.height) * radius_multiplier(sensitivity)
        for zone in zones:
            radius = zone.radius_ratio * scale
            for center in ZoneGeometryEvaluator.zone_centers(zone, head, face_landmarks):
                if ZoneGeometryEvaluator._any_within(tips, center, radius):
                    return ZoneEvaluation(True, zone)
        return NOT_NEAR

    @staticmethod
    def zone_centers(
        zone: DetectionZone,
        head: HeadRegion,
        face: FaceLandmarks,
    ) -> List[Point]:
        """Resolve the center point(s) of a specific zone. Ears yield two."""
        if zone is DetectionZone.SCALP:
            return [Point(face.forehead.x, face.forehead.y - head.height * SCALP_OFFSET_RATIO)]
        if zone is DetectionZone.FOREHEAD:
            return [face.forehead]
        if zone is DetectionZone.EYEBROWS:
            return [midpoint(face.left_eyebrow, face.right_eyebrow)]
        if zone is DetectionZone.EYES:
            return [midpoint(face.left_eye, face.right_eye)]
        if zone is DetectionZone.NOSE:
            return [face.nose_tip]
        if zone is DetectionZone.CHEEKS:
            return [midpoint(face.left_cheek, face.right_cheek)]
        if zone is DetectionZone.MOUTH:
            return [midpoint(face.upper_lip, face.lower_lip)]
        if zone is DetectionZone.CHIN:
            return [face.chin]
        if zone is DetectionZone.EARS:
            if head.left_ear is not None and head.right_ear is not None:
                return [head.left_ear, head.right_ear]
            eye_y = (face.left_eye.y + face.right_eye.y) / 2.0
            offset = head.width * EAR_OFFSET_RATIO
            return [
                Point(head.center.x - offset, eye_y),
                Point(head.center.x + offset, eye_y),
            ]
        raise ValueError(f"Zone {zone.value} has no landmark center")

    # ------------------------------------------------------------------

    @staticmethod
    def _tip_array(hands: Sequence[HandKeypoints]) -> np.ndarray:
        coords = [(p.x, p.y) for hand in hands for p in hand.tip_points()]
        return np.asarray(coords, dtype=np.float64).reshape(-1, 2)

    @staticmethod
    def _inside_head_ellipse(tips: np.ndarray, head: HeadRegion, sensitivity: float) -> bool:
        multiplier = radius_multiplier(sensitivity)
        rx = head.width / 2.0 * multiplier
        ry = head.height / 2.0 * multiplier
        if rx <= 0 or ry <= 0:
            return False
        dx = (tips[:, 0] - head.center.x) / rx
        dy = (tips[:, 1] - head.center.y) / ry
        return bool(np.any(dx ** 2 + dy ** 2 <= 1.0))

    @staticmethod
    def _any_within(tips: np.ndarray, center: Point, radius: float) -> bool:
        if radius <= 0:
            return False
        distances = np.hypot(tips[:, 0] - center.x, tips[:, 1] - center.y)
        return bool(np.any(distances <= radius))
