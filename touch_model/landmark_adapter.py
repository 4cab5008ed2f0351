"""
Landmark Adapter
Converts MediaPipe-style face/hand landmarker output (normalized 0..1
coordinates) into the pixel-space geometry consumed by the proximity core.

No inference happens here. Landmarks may be objects with ``.x``/``.y``
(MediaPipe NormalizedLandmark), ``[x, y, ...]`` sequences, or ``{"x", "y"}``
mappings, so the same adapter serves in-process detectors and JSON clients.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

import numpy as np

from .types import (
    HAND_LANDMARK_COUNT,
    FaceLandmarks,
    HandKeypoints,
    HeadRegion,
    Point,
)


# ============================================================================
# LANDMARK DEFINITIONS
# ============================================================================

class FaceMeshIndex:
    """Key landmark indices for MediaPipe FaceMesh (468 landmarks)"""
    FOREHEAD_TOP = 10
    CHIN = 152
    LEFT_EYE_INNER = 133
    RIGHT_EYE_INNER = 362
    NOSE_TIP = 4
    NOSE_BRIDGE = 6
    UPPER_LIP = 13
    LOWER_LIP = 14
    LEFT_CHEEK = 234
    RIGHT_CHEEK = 454
    LEFT_EYEBROW_INNER = 70
    RIGHT_EYEBROW_INNER = 300

    REQUIRED = (
        FOREHEAD_TOP, CHIN, LEFT_EYE_INNER, RIGHT_EYE_INNER, NOSE_TIP, NOSE_BRIDGE,
        UPPER_LIP, LOWER_LIP, LEFT_CHEEK, RIGHT_CHEEK, LEFT_EYEBROW_INNER, RIGHT_EYEBROW_INNER,
    )


# Face box -> head ellipse padding
HEAD_WIDTH_SCALE = 1.3
HEAD_HEIGHT_SCALE = 1.4
MIN_HAND_CONFIDENCE = 0.5


@dataclass
class DetectionFrame:
    """Geometry for one frame, ready for ProximityAnalyzer.update"""
    hands: List[HandKeypoints] = field(default_factory=list)
    head: Optional[HeadRegion] = None
    face_landmarks: Optional[FaceLandmarks] = None


def _xy(landmark: Any) -> tuple:
    if hasattr(landmark, "x") and hasattr(landmark, "y"):
        return float(landmark.x), float(landmark.y)
    if isinstance(landmark, dict):
        return float(landmark["x"]), float(landmark["y"])
    return float(landmark[0]), float(landmark[1])


def _to_pixels(landmarks: Sequence[Any], width: int, height: int) -> np.ndarray:
    coords = np.asarray([_xy(l) for l in landmarks], dtype=np.float64).reshape(-1, 2)
    return coords * np.array([width, height], dtype=np.float64)


def _points(pixels: np.ndarray) -> List[Point]:
    return [Point(float(x), float(y)) for x, y in pixels]


class LandmarkAdapter:
    """Stateless converters from landmarker output to core geometry."""

    @staticmethod
    def face(
        landmarks: Optional[Sequence[Any]],
        width: int,
        height: int,
    ) -> tuple:
        """Return (HeadRegion, FaceLandmarks), or (None, None) when unusable."""
        if not landmarks or len(landmarks) <= max(FaceMeshIndex.REQUIRED):
            return None, None

        pixels = _to_pixels(landmarks, width, height)
        points = _points(pixels)
        min_x, min_y = pixels.min(axis=0)
        max_x, max_y = pixels.max(axis=0)

        head = HeadRegion(
            center=Point(float((min_x + max_x) / 2.0), float((min_y + max_y) / 2.0)),
            width=float(max_x - min_x) * HEAD_WIDTH_SCALE,
            height=float(max_y - min_y) * HEAD_HEIGHT_SCALE,
            nose=points[FaceMeshIndex.NOSE_TIP],
            left_eye=points[FaceMeshIndex.LEFT_EYE_INNER],
            right_eye=points[FaceMeshIndex.RIGHT_EYE_INNER],
            # cheek extremes approximate the ears
            left_ear=points[FaceMeshIndex.LEFT_CHEEK],
            right_ear=points[FaceMeshIndex.RIGHT_CHEEK],
        )
        face = FaceLandmarks(
            forehead=points[FaceMeshIndex.FOREHEAD_TOP],
            left_eyebrow=points[FaceMeshIndex.LEFT_EYEBROW_INNER],
            right_eyebrow=points[FaceMeshIndex.RIGHT_EYEBROW_INNER],
            left_eye=points[FaceMeshIndex.LEFT_EYE_INNER],
            right_eye=points[FaceMeshIndex.RIGHT_EYE_INNER],
            nose_tip=points[FaceMeshIndex.NOSE_TIP],
            nose_bridge=points[FaceMeshIndex.NOSE_BRIDGE],
            left_cheek=points[FaceMeshIndex.LEFT_CHEEK],
            right_cheek=points[FaceMeshIndex.RIGHT_CHEEK],
            upper_lip=points[FaceMeshIndex.UPPER_LIP],
            lower_lip=points[FaceMeshIndex.LOWER_LIP],
            chin=points[FaceMeshIndex.CHIN],
            all=tuple(points),
        )
        return head, face

    @staticmethod
    def hand(
        landmarks: Sequence[Any],
        handedness: str,
        score: float,
        width: int,
        height: int,
        min_confidence: float = MIN_HAND_CONFIDENCE,
    ) -> Optional[HandKeypoints]:
        if score < min_confidence or len(landmarks) < HAND_LANDMARK_COUNT:
            return None
        points = _points(_to_pixels(landmarks, width, height))
        return HandKeypoints(landmarks=points, handedness=handedness, confidence=score)

    @staticmethod
    def frame(
        face_landmarks: Optional[Sequence[Any]],
        hands: Sequence[dict],
        width: int,
        height: int,
        min_hand_confidence: float = MIN_HAND_CONFIDENCE,
    ) -> DetectionFrame:
        """
        Build a DetectionFrame.

        ``hands`` items are mappings with ``landmarks``, ``handedness`` and
        ``score`` keys.
        """
        if width <= 0 or height <= 0:
            return DetectionFrame()

        head, face = LandmarkAdapter.face(face_landmarks, width, height)
        keypoints = []
        for raw in hands or ():
            hand = LandmarkAdapter.hand(
                raw.get("landmarks") or [],
                str(raw.get("handedness", "Right")),
                float(raw.get("score", 1.0)),
                width,
                height,
                min_hand_confidence,
            )
            if hand is not None:
                keypoints.append(hand)
        return DetectionFrame(hands=keypoints, head=head, face_landmarks=face)
