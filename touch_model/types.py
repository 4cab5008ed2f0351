"""
Geometry & Detection Types
==========================

Immutable per-frame observations handed to the core by the external
landmark detector, plus the zone/state enums shared by the evaluator and
the proximity state machine.

All coordinates are pixel-space. Nothing here is persisted.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple


# ============================================================================
# ENUMS
# ============================================================================

class DetectionState(str, Enum):
    """Life-cycle states of the proximity state machine"""
    IDLE = "IDLE"
    DETECTING = "DETECTING"
    ALERT = "ALERT"
    COOLDOWN = "COOLDOWN"


class DetectionZone(str, Enum):
    """Named face/scalp regions monitored for contact"""
    SCALP = "scalp"
    FOREHEAD = "forehead"
    EYEBROWS = "eyebrows"
    EYES = "eyes"
    NOSE = "nose"
    CHEEKS = "cheeks"
    MOUTH = "mouth"
    CHIN = "chin"
    EARS = "ears"
    FULL_FACE = "fullFace"

    @classmethod
    def parse(cls, value: Any) -> "DetectionZone":
        """Accept a member or its tag string. Unknown tags raise ValueError."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip())
        except ValueError:
            raise ValueError(f"Unknown detection zone: {value!r}") from None

    @property
    def radius_ratio(self) -> float:
        """Base radius as a fraction of min(head width, head height)."""
        if self is DetectionZone.FULL_FACE:
            raise ValueError("fullFace uses the head ellipse, not a zone radius")
        return ZONE_RADIUS_RATIO[self]


ZONE_RADIUS_RATIO: Dict[DetectionZone, float] = {
    DetectionZone.SCALP: 0.4,
    DetectionZone.FOREHEAD: 0.25,
    DetectionZone.EYEBROWS: 0.15,
    DetectionZone.EYES: 0.15,
    DetectionZone.NOSE: 0.15,
    DetectionZone.CHEEKS: 0.2,
    DetectionZone.MOUTH: 0.15,
    DetectionZone.CHIN: 0.2,
    DetectionZone.EARS: 0.15,
}

DEFAULT_ENABLED_ZONES: Tuple[DetectionZone, ...] = (DetectionZone.FULL_FACE,)
HAIR_ZONES: Tuple[DetectionZone, ...] = (DetectionZone.SCALP, DetectionZone.EYEBROWS)
FACE_ZONES: Tuple[DetectionZone, ...] = (
    DetectionZone.FOREHEAD,
    DetectionZone.EYES,
    DetectionZone.NOSE,
    DetectionZone.CHEEKS,
    DetectionZone.MOUTH,
    DetectionZone.CHIN,
    DetectionZone.EARS,
)
ALL_SPECIFIC_ZONES: Tuple[DetectionZone, ...] = HAIR_ZONES + FACE_ZONES


def parse_zone_list(value: Any) -> Tuple[DetectionZone, ...]:
    """Parse "scalp, eyes" or an iterable of tags into unique zones, order kept."""
    if isinstance(value, str):
        items: Iterable[Any] = [v for v in value.split(",") if v.strip()]
    else:
        items = value or ()
    zones: List[DetectionZone] = []
    for item in items:
        zone = DetectionZone.parse(item)
        if zone not in zones:
            zones.append(zone)
    return tuple(zones)


# ============================================================================
# GEOMETRY
# ============================================================================

# MediaPipe hand model indices
WRIST_INDEX = 0
FINGERTIP_INDICES = (4, 8, 12, 16, 20)
HAND_LANDMARK_COUNT = 21


@dataclass(frozen=True)
class Point:
    """Pixel coordinate with detector confidence"""
    x: float
    y: float
    confidence: float = 1.0

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "confidence": self.confidence}


def midpoint(a: Point, b: Point) -> Point:
    return Point(x=(a.x + b.x) / 2.0, y=(a.y + b.y) / 2.0, confidence=min(a.confidence, b.confidence))


@dataclass(frozen=True)
class Fingertips:
    thumb: Point
    index: Point
    middle: Point
    ring: Point
    pinky: Point

    def as_list(self) -> List[Point]:
        return [self.thumb, self.index, self.middle, self.ring, self.pinky]


@dataclass(frozen=True)
class HandKeypoints:
    """
    One detected hand.

    Fingertips and wrist are derived from the 21-point landmark list when the
    detector does not supply them.
    """

    landmarks: Sequence[Point]
    handedness: str = "Right"
    confidence: float = 1.0
    fingertips: Optional[Fingertips] = None
    wrist: Optional[Point] = None

    def __post_init__(self):
        object.__setattr__(self, "landmarks", tuple(self.landmarks))
        if len(self.landmarks) < HAND_LANDMARK_COUNT:
            return
        if self.fingertips is None:
            tips = [self.landmarks[idx] for idx in FINGERTIP_INDICES]
            object.__setattr__(self, "fingertips", Fingertips(*tips))
        if self.wrist is None:
            object.__setattr__(self, "wrist", self.landmarks[WRIST_INDEX])

    def tip_points(self) -> List[Point]:
        return self.fingertips.as_list() if self.fingertips else []

    def to_dict(self) -> Dict[str, Any]:
        return {
            "handedness": self.handedness,
            "confidence": round(self.confidence, 4),
            "fingertips": [p.to_dict() for p in self.tip_points()],
            "wrist": self.wrist.to_dict() if self.wrist else None,
        }


@dataclass(frozen=True)
class HeadRegion:
    """Face bounding ellipse: center plus full width/height"""
    center: Point
    width: float
    height: float
    nose: Optional[Point] = None
    left_eye: Optional[Point] = None
    right_eye: Optional[Point] = None
    left_ear: Optional[Point] = None
    right_ear: Optional[Point] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "center": self.center.to_dict(),
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True)
class FaceLandmarks:
    """Named anchor points used to resolve zone centers"""
    forehead: Point
    left_eyebrow: Point
    right_eyebrow: Point
    left_eye: Point
    right_eye: Point
    nose_tip: Point
    nose_bridge: Point
    left_cheek: Point
    right_cheek: Point
    upper_lip: Point
    lower_lip: Point
    chin: Point
    all: Tuple[Point, ...] = field(default_factory=tuple, repr=False)


@dataclass
class ProximityInfo:
    """Per-update output of the proximity state machine"""
    is_near_head: bool
    progress: float
    state: DetectionState
    active_zone: Optional[DetectionZone] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_near_head": self.is_near_head,
            "progress": round(self.progress, 4),
            "state": self.state.value,
            "active_zone": self.active_zone.value if self.active_zone else None,
        }
