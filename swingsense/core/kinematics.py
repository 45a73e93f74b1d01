"""
Joint Geometry & Kinematics
Pure functions computing joint angles, joint velocities and handedness from
2-D keypoints. Indeterminate results are returned as None, never as 0.
"""

import math
import logging
import numpy as np
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..config import get_thresholds, ThresholdConfig, AngleRange
from ..exceptions import ValidationError
from .models import (
    Handedness,
    AngleStatus,
    Keypoint,
    JointPosition,
    JointAngle,
    JointVelocity,
)

logger = logging.getLogger(__name__)

Point = Union[Tuple[float, float], Keypoint, JointPosition]
PointMap = Mapping[str, Union[Keypoint, JointPosition]]

ZERO_DIRECTION = (0.0, 0.0)


def _xy(p: Point) -> np.ndarray:
    if isinstance(p, tuple):
        return np.array(p[:2], dtype=float)
    return np.array([p.x, p.y], dtype=float)


def midpoint(p1: Point, p2: Point) -> Tuple[float, float]:
    m = (_xy(p1) + _xy(p2)) / 2
    return (float(m[0]), float(m[1]))


def lead_side(handedness: Handedness) -> str:
    """Body side facing the pitcher: left for right-handed hitters"""
    return "left" if handedness == Handedness.RIGHT else "right"


def rear_side(handedness: Handedness) -> str:
    return "right" if handedness == Handedness.RIGHT else "left"


# =============================================================================
# Primitives
# =============================================================================

def angle(p1: Point, vertex: Point, p3: Point) -> Optional[float]:
    """
    Angle at vertex formed by p1-vertex-p3.

    Returns:
        Degrees in [0, 180], or None if either arm has zero length
    """
    v1 = _xy(p1) - _xy(vertex)
    v2 = _xy(p3) - _xy(vertex)

    n1 = np.linalg.norm(v1)
    n2 = np.linalg.norm(v2)
    if n1 == 0 or n2 == 0:
        return None

    cos_angle = np.clip(np.dot(v1, v2) / (n1 * n2), -1.0, 1.0)
    return float(np.degrees(np.arccos(cos_angle)))


def velocity(
    p_prev: Point,
    p_curr: Point,
    dt_ms: float,
    pixels_per_meter: float = 100.0
) -> Optional[Tuple[float, Tuple[float, float]]]:
    """
    Speed (m/s) and unit direction of the displacement between two positions.

    Returns None when dt_ms <= 0. Direction is (0, 0) for zero displacement.
    """
    if pixels_per_meter <= 0:
        raise ValidationError(
            f"pixels_per_meter must be positive, got {pixels_per_meter}",
            field="pixels_per_meter"
        )
    if dt_ms <= 0:
        return None

    delta = (_xy(p_curr) - _xy(p_prev)) / pixels_per_meter
    distance = float(np.linalg.norm(delta))
    speed = distance / (dt_ms / 1000.0)

    if distance == 0:
        return speed, ZERO_DIRECTION

    unit = delta / distance
    return speed, (float(unit[0]), float(unit[1]))


def segment_orientation(p_left: Point, p_right: Point) -> float:
    """Orientation of the left->right segment in degrees (-180, 180]"""
    d = _xy(p_right) - _xy(p_left)
    return math.degrees(math.atan2(d[1], d[0]))


def _usable(points: PointMap, name: str, min_confidence: float):
    p = points.get(name)
    if p is None or p.confidence <= min_confidence:
        return None
    return p


# =============================================================================
# Frame-level computations
# =============================================================================

def detect_handedness(points: PointMap) -> Handedness:
    """
    Guess the batting side from shoulder order in the image.

    Right-handed hitters present the left shoulder first (smaller x).
    Missing shoulder or hip keypoints fall back to RIGHT.
    """
    required = ("left_shoulder", "right_shoulder", "left_hip", "right_hip")
    missing = [name for name in required if points.get(name) is None]
    if missing:
        logger.debug("Handedness defaulted to right", extra={"missing": missing})
        return Handedness.RIGHT

    if points["left_shoulder"].x < points["right_shoulder"].x:
        return Handedness.RIGHT
    return Handedness.LEFT


def angle_status(value: float, r: AngleRange) -> AngleStatus:
    if r.optimal_min <= value <= r.optimal_max:
        return AngleStatus.OPTIMAL
    if value < r.danger_below or value > r.danger_above:
        return AngleStatus.DANGER
    return AngleStatus.WARNING


def _spine_lateral_tilt(points: PointMap, min_conf: float) -> Optional[float]:
    names = ("left_hip", "right_hip", "left_shoulder", "right_shoulder")
    found = [_usable(points, n, min_conf) for n in names]
    if any(p is None for p in found):
        return None

    hip_c = midpoint(found[0], found[1])
    shoulder_c = midpoint(found[2], found[3])
    # Image y grows downward, so "straight up" from the hips is -y
    above_hips = (hip_c[0], hip_c[1] - 1.0)
    return angle(shoulder_c, hip_c, above_hips)


def joint_angles(
    points: PointMap,
    handedness: Handedness,
    config: Optional[ThresholdConfig] = None
) -> List[JointAngle]:
    """
    Compute the named angle catalog for one frame.

    An angle is omitted when any of its keypoints is missing or not
    confident enough, or when the geometry is degenerate.
    """
    cfg = config or get_thresholds()
    min_conf = cfg.visibility.min_confidence
    ranges = cfg.angles.ranges
    lead = lead_side(handedness)
    rear = rear_side(handedness)

    triples = [
        ("lead_knee_angle", f"{lead}_hip", f"{lead}_knee", f"{lead}_ankle"),
        ("lead_ankle_angle", f"{lead}_knee", f"{lead}_ankle", f"{lead}_foot_index"),
        ("rear_knee_angle", f"{rear}_hip", f"{rear}_knee", f"{rear}_ankle"),
        ("rear_ankle_angle", f"{rear}_knee", f"{rear}_ankle", f"{rear}_foot_index"),
        ("lead_elbow_angle", f"{lead}_shoulder", f"{lead}_elbow", f"{lead}_wrist"),
        ("rear_elbow_angle", f"{rear}_shoulder", f"{rear}_elbow", f"{rear}_wrist"),
    ]

    values: Dict[str, Optional[float]] = {}
    for name, a, vertex, c in triples:
        pts = [_usable(points, n, min_conf) for n in (a, vertex, c)]
        if any(p is None for p in pts):
            continue
        values[name] = angle(*pts)

    values["spine_lateral_tilt"] = _spine_lateral_tilt(points, min_conf)

    result = []
    for name, value in values.items():
        if value is None:
            continue
        r = ranges[name]
        result.append(JointAngle(
            name=name,
            value=value,
            optimal_min=r.optimal_min,
            optimal_max=r.optimal_max,
            status=angle_status(value, r)
        ))
    return result


def joint_velocities(
    curr: PointMap,
    prev: PointMap,
    dt_ms: float,
    pixels_per_meter: float = 100.0,
    config: Optional[ThresholdConfig] = None
) -> List[JointVelocity]:
    """Velocities of the tracked joints confidently seen in both frames"""
    cfg = config or get_thresholds()
    min_conf = cfg.visibility.min_confidence

    result = []
    for joint in cfg.angles.tracked_joints:
        c = _usable(curr, joint, min_conf)
        p = _usable(prev, joint, min_conf)
        if c is None or p is None:
            continue

        v = velocity(p, c, dt_ms, pixels_per_meter)
        if v is None:
            continue
        speed, direction = v
        result.append(JointVelocity(joint=joint, speed=speed, direction=direction))

    return result


def keypoints_to_joints(keypoints: Iterable[Keypoint]) -> Dict[str, JointPosition]:
    return {
        kp.name: JointPosition(x=kp.x, y=kp.y, confidence=kp.confidence, z=kp.z)
        for kp in keypoints
    }
