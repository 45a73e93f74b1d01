"""
Swing Mechanics Quality

Scores a swing on three dimensions from summary-level measurements:
- Direction (40%): attack angle, bat-path plane, connection
- Timing (35%): tempo ratio, sequence quality, acceleration pattern
- Efficiency (25%): hip-shoulder separation, connection, balance

Ratings the caller cannot measure come from MechanicsConfig defaults.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ..config import get_thresholds, ThresholdConfig
from .models import (
    FrameRecord,
    MechanicsFeedback,
    QualityTier,
    SwingMechanicsQuality,
    SwingPhase,
)
from .kinematics import segment_orientation
from .segmentation import PhaseDetectionResult
from .scoring import (
    Band, LinearProfile, LinearSegment,
    closed, half_open, open_closed,
    weighted_score, round_half_up,
)

logger = logging.getLogger(__name__)


# 5-15 degrees upward is optimal; losses are steeper below than above
PATH_ANGLE_PROFILE = LinearProfile(
    segments=(
        LinearSegment(closed(5, 15)),
        LinearSegment(half_open(0, 5), anchor=5, rate=5),
        LinearSegment(open_closed(15, 25), anchor=15, rate=3),
        LinearSegment(Band(hi=0, include_hi=False), base=50, anchor=0, rate=5),
    ),
    fallback=LinearSegment(Band(), base=70, anchor=25, rate=5),
)

TEMPO_PROFILE = LinearProfile(
    segments=(
        LinearSegment(closed(2.3, 2.7)),
        LinearSegment(half_open(2.0, 2.3), anchor=2.3, rate=20),
        LinearSegment(open_closed(2.7, 3.0), anchor=2.7, rate=15),
        LinearSegment(half_open(1.5, 2.0), anchor=2.3, rate=25, floor=50),
        LinearSegment(open_closed(3.0, 3.5), anchor=2.7, rate=20, floor=50),
    ),
    fallback=LinearSegment(Band(), base=50, anchor=2.5, rate=10, floor=30),
)

SEPARATION_PROFILE = LinearProfile(
    segments=(
        LinearSegment(closed(40, 50)),
        LinearSegment(half_open(35, 40), anchor=40, rate=4),
        LinearSegment(open_closed(50, 55), anchor=50, rate=2),
        LinearSegment(half_open(30, 35), anchor=40, rate=5, floor=60),
        LinearSegment(open_closed(55, 60), anchor=50, rate=3, floor=85),
        LinearSegment(Band(hi=30, include_hi=False), base=60, anchor=30, rate=2, floor=40),
    ),
    fallback=LinearSegment(Band(), anchor=50, rate=4, floor=70),
)

DIRECTION_FEEDBACK = (
    (90, "Your bat path is aligned perfectly toward the field. Hands stay inside, "
         "creating a long contact zone."),
    (75, "Your bat path is good, but hands occasionally drift away from your body (casting)."),
    (60, "Your bat path is too steep or inconsistent. Hands are casting, wasting momentum."),
    (None, "Your bat path needs significant work. Inconsistent angles and poor connection "
           "waste 30-40% of momentum."),
)

TIMING_FEEDBACK = (
    (90, "Your kinematic sequence is excellent - body segments fire in perfect order, "
         "peaking right at contact."),
    (75, "Your tempo is slightly quick. Body segments peak about 50ms before contact."),
    (60, "Your tempo is too quick. Not enough time to create separation and build momentum."),
    (None, "Your tempo is very rushed. Body segments peak 150ms before contact, losing "
           "10-15 mph at impact."),
)

EFFICIENCY_FEEDBACK = (
    (90, "Your body transfers rotational energy very efficiently. Great separation, "
         "connection, and balance."),
    (75, "Good hip-shoulder separation, but connection could be better when hands cast out."),
    (60, "Limited hip-shoulder separation (32-35°). Connection is inconsistent, balance issues."),
    (None, "Minimal separation (<30°). Swinging mostly with arms. Poor connection and balance."),
)

BOTTOM_LINE = {
    QualityTier.ELITE: "You don't need to swing faster - you're already using your "
                       "mechanics incredibly well.",
    QualityTier.GOOD: "Improving these areas will help you hit the ball 5-10 mph harder "
                      "WITHOUT increasing raw speed.",
    QualityTier.DEVELOPING: "Focus on these areas for 4-6 weeks to improve effective bat "
                            "speed by 8-12 mph.",
    QualityTier.POOR: "These fundamental issues need 8-12 weeks of work. Fixing them will "
                      "add 15-20 mph to effective bat speed.",
}


def _ladder(score: float, ladder) -> str:
    for cut, text in ladder:
        if cut is None or score >= cut:
            return text
    return ladder[-1][1]


def _clamp(rating: float) -> float:
    return min(100.0, max(0.0, rating))


def _sub_score(parts, weights) -> float:
    return _clamp(round_half_up(weighted_score(parts, weights), 1))


def direction_score(attack_angle: float, bat_path_plane: float, connection_quality: float) -> float:
    """How well the bat path is aligned toward the field"""
    return _sub_score(
        [PATH_ANGLE_PROFILE(attack_angle), PATH_ANGLE_PROFILE(bat_path_plane), _clamp(connection_quality)],
        [0.40, 0.35, 0.25]
    )


def timing_score(tempo_ratio: float, sequence_quality: float, acceleration_pattern: float) -> float:
    """How well the kinematic sequence times momentum for contact"""
    return _sub_score(
        [TEMPO_PROFILE(tempo_ratio), _clamp(sequence_quality), _clamp(acceleration_pattern)],
        [0.40, 0.35, 0.25]
    )


def efficiency_score(hip_shoulder_separation: float, connection_quality: float, balance: float) -> float:
    """How efficiently the body transfers rotational energy"""
    return _sub_score(
        [SEPARATION_PROFILE(hip_shoulder_separation), _clamp(connection_quality), _clamp(balance)],
        [0.40, 0.35, 0.25]
    )


def quality_tier(score: float, config: Optional[ThresholdConfig] = None) -> QualityTier:
    cfg = (config or get_thresholds()).mechanics
    if score >= cfg.elite_cut:
        return QualityTier.ELITE
    if score >= cfg.good_cut:
        return QualityTier.GOOD
    if score >= cfg.developing_cut:
        return QualityTier.DEVELOPING
    return QualityTier.POOR


def swing_mechanics_quality(
    direction: float,
    timing: float,
    efficiency: float,
    predicted_bat_speed: Optional[float] = None,
    config: Optional[ThresholdConfig] = None
) -> SwingMechanicsQuality:
    cfg = (config or get_thresholds()).mechanics

    direction = _clamp(direction)
    timing = _clamp(timing)
    efficiency = _clamp(efficiency)

    overall = round_half_up(weighted_score(
        [direction, timing, efficiency],
        [cfg.direction_weight, cfg.timing_weight, cfg.efficiency_weight]
    ), 1)
    tier = quality_tier(overall, config)

    if predicted_bat_speed is not None and predicted_bat_speed > 0:
        half = cfg.bat_speed_half_band_mph
        lo = int(round_half_up(predicted_bat_speed - half))
        hi = int(round_half_up(predicted_bat_speed + half))
        bat_speed_range = f"{lo}-{hi} mph"
    else:
        bat_speed_range = cfg.bat_speed_by_tier[tier.value]

    return SwingMechanicsQuality(
        overall_score=overall,
        direction_score=direction,
        timing_score=timing,
        efficiency_score=efficiency,
        quality_tier=tier,
        predicted_bat_speed_range=bat_speed_range,
        feedback=MechanicsFeedback(
            direction=_ladder(direction, DIRECTION_FEEDBACK),
            timing=_ladder(timing, TIMING_FEEDBACK),
            efficiency=_ladder(efficiency, EFFICIENCY_FEEDBACK),
            bottom_line=BOTTOM_LINE[tier]
        )
    )


# =============================================================================
# Input assembly
# =============================================================================

@dataclass
class MechanicsInputs:
    """Summary-level measurements; unset ratings fall back to config defaults"""
    attack_angle: float
    bat_path_plane: float
    tempo_ratio: float
    hip_shoulder_separation: float
    connection_quality: Optional[float] = None
    sequence_quality: Optional[float] = None
    acceleration_pattern: Optional[float] = None
    balance: Optional[float] = None
    predicted_bat_speed: Optional[float] = None


def score_swing_mechanics(
    inputs: MechanicsInputs,
    config: Optional[ThresholdConfig] = None
) -> SwingMechanicsQuality:
    cfg = (config or get_thresholds()).mechanics

    def rating(value: Optional[float], default: float) -> float:
        return default if value is None else value

    connection = rating(inputs.connection_quality, cfg.default_connection_quality)

    return swing_mechanics_quality(
        direction=direction_score(inputs.attack_angle, inputs.bat_path_plane, connection),
        timing=timing_score(
            inputs.tempo_ratio,
            rating(inputs.sequence_quality, cfg.default_sequence_quality),
            rating(inputs.acceleration_pattern, cfg.default_acceleration_pattern)
        ),
        efficiency=efficiency_score(
            inputs.hip_shoulder_separation,
            connection,
            rating(inputs.balance, cfg.default_balance)
        ),
        predicted_bat_speed=inputs.predicted_bat_speed,
        config=config
    )


def hip_shoulder_separation(
    frames: Sequence[FrameRecord],
    config: Optional[ThresholdConfig] = None
) -> Optional[float]:
    """Largest shoulder-line vs hip-line orientation difference during load, stride and fire"""
    min_conf = (config or get_thresholds()).visibility.min_confidence
    phases = (SwingPhase.LOAD, SwingPhase.STRIDE, SwingPhase.FIRE)

    best = None
    for f in frames:
        if f.phase not in phases:
            continue
        pts = [f.joint(n, min_conf) for n in ("left_hip", "right_hip", "left_shoulder", "right_shoulder")]
        if any(p is None for p in pts):
            continue
        hips = segment_orientation(pts[0], pts[1])
        shoulders = segment_orientation(pts[2], pts[3])
        diff = abs((shoulders - hips + 180.0) % 360.0 - 180.0)
        if best is None or diff > best:
            best = diff
    return best


def tempo_ratio(
    frames: Sequence[FrameRecord],
    phase_detection: Optional[PhaseDetectionResult] = None
) -> Optional[float]:
    """Detected load-to-fire duration ratio, else the load/fire frame-count ratio"""
    if phase_detection is not None and phase_detection.load_to_fire_ratio is not None:
        return phase_detection.load_to_fire_ratio

    load = sum(1 for f in frames if f.phase == SwingPhase.LOAD)
    fire = sum(1 for f in frames if f.phase == SwingPhase.FIRE)
    if load == 0 or fire == 0:
        return None
    logger.debug("Tempo ratio from positional phase counts", extra={"load": load, "fire": fire})
    return load / fire


def inputs_from_frames(
    frames: Sequence[FrameRecord],
    attack_angle: float,
    bat_path_plane: float,
    phase_detection: Optional[PhaseDetectionResult] = None,
    config: Optional[ThresholdConfig] = None,
    **ratings
) -> Optional[MechanicsInputs]:
    """
    Build MechanicsInputs, deriving tempo ratio and hip-shoulder separation
    from processed frames unless the caller already measured them.

    Attack angle and bat-path plane come from a bat tracker, not the body
    pose, so the caller supplies them. Extra keyword ratings (connection_quality,
    balance, tempo_ratio, ...) are passed through. Returns None if a derived
    input is missing.
    """
    tempo = ratings.pop("tempo_ratio", None)
    if tempo is None:
        tempo = tempo_ratio(frames, phase_detection)

    separation = ratings.pop("hip_shoulder_separation", None)
    if separation is None:
        separation = hip_shoulder_separation(frames, config)

    if tempo is None or separation is None:
        logger.info(
            "Mechanics inputs could not be derived from frames",
            extra={"tempo_ratio": tempo, "separation": separation}
        )
        return None

    return MechanicsInputs(
        attack_angle=attack_angle,
        bat_path_plane=bat_path_plane,
        tempo_ratio=tempo,
        hip_shoulder_separation=separation,
        **ratings
    )
