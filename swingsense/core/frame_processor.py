"""
Frame Processing
Turns a pose sequence into per-frame records (angles, velocities, phase)
and condenses those records into a run summary.
"""

import logging
from typing import Dict, List, Optional, Sequence

from ..config import get_thresholds, get_settings, ThresholdConfig
from ..exceptions import ValidationError
from .models import (
    AngleStatus,
    FrameRecord,
    Handedness,
    PoseSample,
    RunSummary,
)
from .kinematics import (
    detect_handedness,
    joint_angles,
    joint_velocities,
    keypoints_to_joints,
    lead_side,
    rear_side,
)
from .segmentation import positional_phase, contact_frame, load_frame

logger = logging.getLogger(__name__)

# Allowed gap between the last timestamp and the reported duration (ms)
DURATION_TOLERANCE_MS = 100.0

CRITICAL_ANGLE_KEYS = (
    "lead_knee_at_contact",
    "rear_knee_at_load",
    "lead_elbow_at_contact",
    "spine_max_tilt",
)
MAX_VELOCITY_KEYS = ("lead_wrist", "rear_wrist", "lead_knee", "lead_ankle")


class FrameProcessor:
    """
    Processes a full pose sequence in frame order.

    Handedness is detected once from the first sample and held for the
    whole run so lead/rear assignment never flips mid-swing.
    """

    def __init__(
        self,
        pixels_per_meter: Optional[float] = None,
        config: Optional[ThresholdConfig] = None
    ):
        if pixels_per_meter is None:
            pixels_per_meter = get_settings().PIXELS_PER_METER
        if pixels_per_meter <= 0:
            raise ValidationError(
                f"pixels_per_meter must be positive, got {pixels_per_meter}",
                field="pixels_per_meter"
            )
        self.pixels_per_meter = pixels_per_meter
        self._thresholds = config or get_thresholds()

    def process(
        self,
        samples: Sequence[PoseSample],
        duration_ms: Optional[float] = None
    ) -> List[FrameRecord]:
        if not samples:
            return []

        total = len(samples)
        first_points = samples[0].keypoint_map()
        handedness = detect_handedness(first_points)
        logger.info(f"Detected handedness: {handedness.value}")

        records: List[FrameRecord] = []
        prev_points = None
        prev_ts = None

        for i, sample in enumerate(samples):
            points = first_points if i == 0 else sample.keypoint_map()

            if prev_ts is None:
                dt_ms = self._thresholds.calibration.default_frame_interval_ms
            else:
                dt_ms = sample.timestamp_ms - prev_ts
                if dt_ms < 0:
                    logger.warning(
                        "Timestamp went backwards, velocities omitted for frame",
                        extra={"frame_index": i, "dt_ms": dt_ms}
                    )

            velocities = []
            if prev_points is not None:
                velocities = joint_velocities(
                    points, prev_points, dt_ms, self.pixels_per_meter, self._thresholds
                )

            records.append(FrameRecord(
                frame_index=i,
                timestamp_ms=sample.timestamp_ms,
                phase=positional_phase(i, total, self._thresholds),
                joints=keypoints_to_joints(sample.keypoints),
                angles=tuple(joint_angles(points, handedness, self._thresholds)),
                velocities=tuple(velocities)
            ))

            prev_points = points
            prev_ts = sample.timestamp_ms

        if duration_ms is not None:
            last_ts = samples[-1].timestamp_ms
            if abs(duration_ms - last_ts) > DURATION_TOLERANCE_MS:
                logger.warning(
                    "Reported duration does not match the last timestamp",
                    extra={"duration_ms": duration_ms, "last_timestamp_ms": last_ts}
                )

        logger.info(f"Processed {len(records)} frames with joint data")
        return records


def _angle_value(frame: Optional[FrameRecord], name: str) -> Optional[float]:
    if frame is None:
        return None
    a = frame.angle(name)
    return a.value if a is not None else None


def _max_or_none(values) -> Optional[float]:
    values = [v for v in values if v is not None]
    return max(values) if values else None


def _empty_summary() -> RunSummary:
    return RunSummary(
        total_frames=0,
        handedness=Handedness.RIGHT,
        phase_breakdown={},
        critical_angles={k: None for k in CRITICAL_ANGLE_KEYS},
        max_velocities={k: None for k in MAX_VELOCITY_KEYS},
        anomaly_flags=[]
    )


def summarize(
    frames: Sequence[FrameRecord],
    handedness: Optional[Handedness] = None,
    config: Optional[ThresholdConfig] = None
) -> RunSummary:
    """
    Run-level summary of processed frames.

    Empty input yields an empty-but-populated summary rather than None.
    """
    if not frames:
        return _empty_summary()

    cfg = config or get_thresholds()
    if handedness is None:
        handedness = detect_handedness(frames[0].joints)

    phase_breakdown: Dict[str, int] = {}
    for f in frames:
        phase_breakdown[f.phase.value] = phase_breakdown.get(f.phase.value, 0) + 1

    contact = contact_frame(frames, cfg)
    load = load_frame(frames, cfg)

    critical_angles = {
        "lead_knee_at_contact": _angle_value(contact, "lead_knee_angle"),
        "rear_knee_at_load": _angle_value(load, "rear_knee_angle"),
        "lead_elbow_at_contact": _angle_value(contact, "lead_elbow_angle"),
        "spine_max_tilt": _max_or_none(_angle_value(f, "spine_lateral_tilt") for f in frames),
    }

    lead = lead_side(handedness)
    rear = rear_side(handedness)
    joints_by_key = {
        "lead_wrist": f"{lead}_wrist",
        "rear_wrist": f"{rear}_wrist",
        "lead_knee": f"{lead}_knee",
        "lead_ankle": f"{lead}_ankle",
    }
    max_velocities = {}
    for key, joint in joints_by_key.items():
        speeds = (f.velocity(joint) for f in frames)
        max_velocities[key] = _max_or_none(v.speed if v else None for v in speeds)

    anomaly_flags = []
    flagged = set()
    for f in frames:
        for a in f.angles:
            if a.status == AngleStatus.DANGER and a.name not in flagged:
                flagged.add(a.name)
                anomaly_flags.append(
                    f"{a.name}: {a.value:.1f}° ({f.phase.value} phase) - danger zone"
                )

    return RunSummary(
        total_frames=len(frames),
        handedness=handedness,
        phase_breakdown=phase_breakdown,
        critical_angles=critical_angles,
        max_velocities=max_velocities,
        anomaly_flags=anomaly_flags
    )
