"""
Motion Data Model
Value objects shared by the kinematics, segmentation and scoring stages.
All results are produced once per analysis run and never mutated afterwards.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


class Handedness(str, Enum):
    RIGHT = "right"
    LEFT = "left"


class SwingPhase(str, Enum):
    """The six swing phases, in the order they occur"""
    STANCE = "stance"
    LOAD = "load"
    STRIDE = "stride"
    FIRE = "fire"
    CONTACT = "contact"
    FOLLOW_THROUGH = "follow_through"

    @property
    def order(self) -> int:
        return _PHASE_ORDER[self]


_PHASE_ORDER = {phase: i for i, phase in enumerate(SwingPhase)}


class AngleStatus(str, Enum):
    OPTIMAL = "optimal"
    WARNING = "warning"
    DANGER = "danger"


class ScoreCategory(str, Enum):
    ELITE = "elite"
    GOOD = "good"
    DEVELOPING = "developing"
    BEGINNER = "beginner"
    CRITICAL = "critical"


class QualityTier(str, Enum):
    ELITE = "elite"
    GOOD = "good"
    DEVELOPING = "developing"
    POOR = "poor"


# =============================================================================
# Input
# =============================================================================

@dataclass(frozen=True)
class Keypoint:
    """One named landmark as delivered by the pose source (pixel coordinates)"""
    name: str
    x: float
    y: float
    confidence: float
    z: Optional[float] = None


@dataclass(frozen=True)
class PoseSample:
    """All keypoints detected in one captured frame"""
    keypoints: Tuple[Keypoint, ...]
    timestamp_ms: float

    def keypoint_map(self) -> Dict[str, Keypoint]:
        # Later duplicates win
        return {kp.name: kp for kp in self.keypoints}


# =============================================================================
# Per-frame output
# =============================================================================

@dataclass(frozen=True)
class JointPosition:
    x: float
    y: float
    confidence: float
    z: Optional[float] = None

    @property
    def xy(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class JointAngle:
    name: str
    value: float  # degrees, 0-180
    optimal_min: float
    optimal_max: float
    status: AngleStatus


@dataclass(frozen=True)
class JointVelocity:
    joint: str
    speed: float  # meters/second
    direction: Tuple[float, float]  # unit vector, or (0, 0) when stationary


@dataclass(frozen=True)
class FrameRecord:
    """Everything the engine knows about a single frame"""
    frame_index: int
    timestamp_ms: float
    phase: SwingPhase
    joints: Dict[str, JointPosition]
    angles: Tuple[JointAngle, ...] = ()
    velocities: Tuple[JointVelocity, ...] = ()

    def angle(self, name: str) -> Optional[JointAngle]:
        for a in self.angles:
            if a.name == name:
                return a
        return None

    def velocity(self, joint: str) -> Optional[JointVelocity]:
        for v in self.velocities:
            if v.joint == joint:
                return v
        return None

    def joint(self, name: str, min_confidence: float = 0.0) -> Optional[JointPosition]:
        """Joint position if present with confidence strictly above min_confidence"""
        pos = self.joints.get(name)
        if pos is None or pos.confidence <= min_confidence:
            return None
        return pos

    def hip_center(self, min_confidence: float = 0.5) -> Optional[Tuple[float, float]]:
        """Midpoint of both hips (the center-of-mass proxy)"""
        left = self.joint("left_hip", min_confidence)
        right = self.joint("right_hip", min_confidence)
        if left is None or right is None:
            return None
        return ((left.x + right.x) / 2, (left.y + right.y) / 2)

    @property
    def timestamp_s(self) -> float:
        return self.timestamp_ms / 1000.0


# =============================================================================
# Run-level output
# =============================================================================

@dataclass(frozen=True)
class RunSummary:
    total_frames: int
    handedness: Handedness
    phase_breakdown: Dict[str, int]
    critical_angles: Dict[str, Optional[float]]
    max_velocities: Dict[str, Optional[float]]
    anomaly_flags: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SubScore:
    """One scored measurement. measurement is None when indeterminate."""
    score: float
    status: str
    measurement: Optional[float]
    unit: str

    @property
    def has_data(self) -> bool:
        return self.measurement is not None


@dataclass(frozen=True)
class ComponentScore:
    """Front-leg stability or weight-transfer result"""
    overall_score: int
    category: ScoreCategory
    sub_scores: Dict[str, SubScore]
    insight_key: str
    insight: str
    recommended_drill: str


@dataclass(frozen=True)
class MechanicsFeedback:
    direction: str
    timing: str
    efficiency: str
    bottom_line: str


@dataclass(frozen=True)
class SwingMechanicsQuality:
    overall_score: float
    direction_score: float
    timing_score: float
    efficiency_score: float
    quality_tier: QualityTier
    predicted_bat_speed_range: str
    feedback: MechanicsFeedback
