"""
SwingSense - Configurable Thresholds
Every calibrated constant of the engine lives here so it can be tuned without code changes.
Several of these (foot-lift height, plant speed, percentile fallbacks) were fitted
against a small set of reference swings and are heuristics, not physical constants.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple


@dataclass
class VisibilityConfig:
    """Keypoint confidence gate"""
    # A keypoint is usable only when its confidence is strictly above this
    min_confidence: float = 0.5


@dataclass
class CalibrationConfig:
    """Unit conversion constants"""
    inches_per_meter: float = 39.37
    # Assumed interval for the first frame when no previous frame exists
    default_frame_interval_ms: float = 33.0


@dataclass(frozen=True)
class AngleRange:
    """Optimal range and danger limits for one named joint angle"""
    optimal_min: float
    optimal_max: float
    # Values strictly beyond these are "danger"; between optimal and danger is "warning"
    danger_below: float
    danger_above: float


def _default_angle_ranges() -> Dict[str, AngleRange]:
    return {
        "lead_knee_angle": AngleRange(145, 160, 135, 170),
        "lead_ankle_angle": AngleRange(10, 15, 5, 20),
        "rear_knee_angle": AngleRange(140, 165, 130, 175),
        "rear_ankle_angle": AngleRange(85, 95, 75, 105),
        "lead_elbow_angle": AngleRange(150, 170, 140, 180),
        "rear_elbow_angle": AngleRange(90, 110, 80, 120),
        # Tilt is non-negative, so only the upper limit can trigger danger
        "spine_lateral_tilt": AngleRange(0, 15, 0, 25),
    }


@dataclass
class AngleCatalogConfig:
    """Per-angle optimal ranges"""
    ranges: Dict[str, AngleRange] = field(default_factory=_default_angle_ranges)
    # Joints whose velocity is tracked frame to frame
    tracked_joints: Tuple[str, ...] = (
        "left_knee", "right_knee",
        "left_ankle", "right_ankle",
        "left_wrist", "right_wrist",
        "left_elbow", "right_elbow",
        "left_hip", "right_hip",
    )


@dataclass
class SegmentationConfig:
    """Positional phase boundaries (fractions of sequence length)"""
    stance_end: float = 0.15
    load_end: float = 0.35
    stride_end: float = 0.55
    fire_end: float = 0.75
    contact_end: float = 0.85
    # Fallback frame (fraction of length) when a phase is not tagged anywhere
    contact_fallback_fraction: float = 0.8
    load_fallback_fraction: float = 0.3


@dataclass
class PhaseDetectionConfig:
    """Signal-based phase detection"""
    min_frames: int = 10
    # Stance ends once the hip center has shifted this far horizontally (meters)
    stance_shift_m: float = 0.05
    stance_search_start: int = 3
    stance_default_frames: int = 5
    # Search windows (frames) for each transition
    load_window: int = 20
    stride_window: int = 15
    stride_default_frames: int = 8
    fire_window: int = 10
    contact_window: int = 8
    # Lead ankle must travel this far forward before a plant can end the stride (meters)
    stride_min_travel_m: float = 0.1
    # Span confidences reported with each detected phase
    phase_confidence: Dict[str, float] = field(default_factory=lambda: {
        "stance": 0.85, "load": 0.8, "stride": 0.75,
        "fire": 0.9, "contact": 0.85, "follow_through": 0.8,
    })
    # Quality assessment
    missing_phase_penalty: int = 15
    unusual_duration_penalty: int = 10
    load_duration_range_s: Tuple[float, float] = (0.05, 0.5)
    fire_duration_range_s: Tuple[float, float] = (0.03, 0.3)
    load_to_fire_ratio_range: Tuple[float, float] = (1.5, 5.0)


@dataclass
class CategoryConfig:
    """Component score category cut points (score >= cut)"""
    elite: int = 90
    good: int = 80
    developing: int = 65
    beginner: int = 45


@dataclass
class FrontLegConfig:
    """Front-leg stability scoring"""
    # Lead ankle speed below which the foot counts as planted (m/s)
    plant_speed_mps: float = 0.2
    min_stride_frames: int = 3
    knee_weight: float = 0.40
    ankle_weight: float = 0.30
    deceleration_weight: float = 0.30
    recommended_drill: str = (
        "Front Leg Post-Up Drill: 20 swings daily for 2 weeks focusing on "
        "firm (not locked) front leg at contact"
    )


@dataclass
class WeightTransferConfig:
    """Weight-transfer scoring"""
    # Rear foot counts as lifted once it rises this far above its stance baseline
    foot_lift_threshold_in: float = 4.0
    # Lift time assumed when the rear foot never lifts (seconds after contact)
    never_lifted_offset_s: float = 0.10
    vertical_weight: float = 0.25
    timing_weight: float = 0.35
    back_foot_weight: float = 0.25
    acceleration_weight: float = 0.15
    recommended_drill: str = (
        "Back Foot Connection Drill: Place towel under back toe, take 20 swings "
        "daily maintaining contact through impact"
    )


@dataclass
class MechanicsConfig:
    """Swing-mechanics quality scoring"""
    # Ratings used when the caller has no measurement (0-100)
    default_connection_quality: float = 75.0
    default_sequence_quality: float = 75.0
    default_acceleration_pattern: float = 75.0
    default_balance: float = 75.0

    direction_weight: float = 0.40
    timing_weight: float = 0.35
    efficiency_weight: float = 0.25

    # Quality tier cut points
    elite_cut: float = 90.0
    good_cut: float = 75.0
    developing_cut: float = 60.0

    # Half-width of the predicted bat speed band around a point estimate (mph)
    bat_speed_half_band_mph: float = 2.5
    bat_speed_by_tier: Dict[str, str] = field(default_factory=lambda: {
        "elite": "75-80 mph",
        "good": "70-78 mph",
        "developing": "68-75 mph",
        "poor": "65-72 mph",
    })


@dataclass
class ThresholdConfig:
    """Master threshold configuration"""
    visibility: VisibilityConfig = field(default_factory=VisibilityConfig)
    calibration: CalibrationConfig = field(default_factory=CalibrationConfig)
    angles: AngleCatalogConfig = field(default_factory=AngleCatalogConfig)
    segmentation: SegmentationConfig = field(default_factory=SegmentationConfig)
    phase_detection: PhaseDetectionConfig = field(default_factory=PhaseDetectionConfig)
    category: CategoryConfig = field(default_factory=CategoryConfig)
    front_leg: FrontLegConfig = field(default_factory=FrontLegConfig)
    weight_transfer: WeightTransferConfig = field(default_factory=WeightTransferConfig)
    mechanics: MechanicsConfig = field(default_factory=MechanicsConfig)


# Global config instance - modify this to tune thresholds
THRESHOLDS = ThresholdConfig()


def get_thresholds() -> ThresholdConfig:
    """Get the current threshold configuration"""
    return THRESHOLDS

