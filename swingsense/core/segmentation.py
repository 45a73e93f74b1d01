"""
Swing Phase Segmentation

Two layers:
- positional_phase(): fixed fractions of sequence length. Always defined,
  robust to missing keypoints, coarse.
- detect_phases(): walks hip, ankle and wrist signals once to place the six
  phase transitions. Used for timing metrics such as the tempo ratio.

Phase lookups fall back to a percentile frame when no frame carries the
requested phase, so downstream scorers stay defined on sparse data.
"""

import math
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..config import get_thresholds, ThresholdConfig
from .models import FrameRecord, Handedness, SwingPhase
from .kinematics import lead_side, midpoint, segment_orientation

logger = logging.getLogger(__name__)


# =============================================================================
# Positional segmentation
# =============================================================================

def positional_phase(
    frame_index: int,
    total_frames: int,
    config: Optional[ThresholdConfig] = None
) -> SwingPhase:
    """Phase of a frame from its relative position in the sequence"""
    seg = (config or get_thresholds()).segmentation
    progress = frame_index / total_frames if total_frames > 0 else 0.0

    if progress < seg.stance_end:
        return SwingPhase.STANCE
    if progress < seg.load_end:
        return SwingPhase.LOAD
    if progress < seg.stride_end:
        return SwingPhase.STRIDE
    if progress < seg.fire_end:
        return SwingPhase.FIRE
    if progress < seg.contact_end:
        return SwingPhase.CONTACT
    return SwingPhase.FOLLOW_THROUGH


def phase_frame(
    frames: Sequence[FrameRecord],
    phase: SwingPhase,
    fallback_fraction: float
) -> Optional[FrameRecord]:
    """
    First frame tagged with phase, else frames[floor(n * fallback_fraction)].
    None only for an empty sequence.
    """
    if not frames:
        return None

    for f in frames:
        if f.phase == phase:
            return f

    idx = min(int(math.floor(len(frames) * fallback_fraction)), len(frames) - 1)
    logger.debug(
        f"No {phase.value} frame tagged, using percentile fallback",
        extra={"fallback_index": idx, "fraction": fallback_fraction}
    )
    return frames[idx]


def contact_frame(
    frames: Sequence[FrameRecord],
    config: Optional[ThresholdConfig] = None
) -> Optional[FrameRecord]:
    seg = (config or get_thresholds()).segmentation
    return phase_frame(frames, SwingPhase.CONTACT, seg.contact_fallback_fraction)


def load_frame(
    frames: Sequence[FrameRecord],
    config: Optional[ThresholdConfig] = None
) -> Optional[FrameRecord]:
    seg = (config or get_thresholds()).segmentation
    return phase_frame(frames, SwingPhase.LOAD, seg.load_fallback_fraction)


# =============================================================================
# Signal-based detection
# =============================================================================

KEY_EVENTS = {
    SwingPhase.STANCE: ["Initial setup", "Weight distribution"],
    SwingPhase.LOAD: ["Weight shift backward", "Coiling"],
    SwingPhase.STRIDE: ["Front foot stride", "COM begins forward movement"],
    SwingPhase.FIRE: ["Hip rotation initiation", "Weight transfer forward"],
    SwingPhase.CONTACT: ["Peak hand extension"],
    SwingPhase.FOLLOW_THROUGH: ["Deceleration", "Balance recovery"],
}


@dataclass(frozen=True)
class PhaseSpan:
    phase: SwingPhase
    start_frame: int
    end_frame: int
    duration_s: float
    confidence: float
    key_events: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PhaseTransition:
    phase: SwingPhase
    frame: int
    timestamp_ms: float


@dataclass(frozen=True)
class DetectionQuality:
    score: int
    issues: List[str]
    detection_confidence: float


@dataclass(frozen=True)
class PhaseDetectionResult:
    phases: List[PhaseSpan]
    load_to_fire_ratio: Optional[float]
    total_duration_s: float
    transitions: List[PhaseTransition]
    quality: DetectionQuality = field(
        default_factory=lambda: DetectionQuality(0, [], 0.0)
    )

    def span(self, phase: SwingPhase) -> Optional[PhaseSpan]:
        for p in self.phases:
            if p.phase == phase:
                return p
        return None


@dataclass
class _Signals:
    """Per-frame signals in pixels, None where keypoints were unusable"""
    com_x: List[Optional[float]]
    lead_ankle_x: List[Optional[float]]
    lead_ankle_speed: List[Optional[float]]
    hand_x: List[Optional[float]]
    hip_rotation_speed: List[Optional[float]]


def _angle_delta(a: float, b: float) -> float:
    """Smallest absolute difference between two orientations in degrees"""
    d = (b - a + 180.0) % 360.0 - 180.0
    return abs(d)


def _extract_signals(
    frames: Sequence[FrameRecord],
    handedness: Handedness,
    min_conf: float
) -> _Signals:
    lead = lead_side(handedness)
    com_x, ankle_x, ankle_speed, hand_x, hip_orient = [], [], [], [], []

    for f in frames:
        hc = f.hip_center(min_conf)
        com_x.append(hc[0] if hc else None)

        ankle = f.joint(f"{lead}_ankle", min_conf)
        ankle_x.append(ankle.x if ankle else None)
        v = f.velocity(f"{lead}_ankle")
        ankle_speed.append(v.speed if v else None)

        lw = f.joint("left_wrist", min_conf)
        rw = f.joint("right_wrist", min_conf)
        hand_x.append(midpoint(lw, rw)[0] if lw and rw else None)

        lh = f.joint("left_hip", min_conf)
        rh = f.joint("right_hip", min_conf)
        hip_orient.append(segment_orientation(lh, rh) if lh and rh else None)

    rotation_speed: List[Optional[float]] = [None]
    for i in range(1, len(frames)):
        a, b = hip_orient[i - 1], hip_orient[i]
        dt = (frames[i].timestamp_ms - frames[i - 1].timestamp_ms) / 1000.0
        if a is None or b is None or dt <= 0:
            rotation_speed.append(None)
        else:
            rotation_speed.append(_angle_delta(a, b) / dt)

    return _Signals(com_x, ankle_x, ankle_speed, hand_x, rotation_speed)


def _extreme_index(
    values: List[Optional[float]],
    start: int,
    stop: int,
    key: Callable[[float], float]
) -> int:
    """Index in [start, stop) maximizing key(value); start if no value qualifies"""
    best_idx = start
    best = None
    for i in range(start, min(stop, len(values))):
        v = values[i]
        if v is None:
            continue
        k = key(v)
        if best is None or k > best:
            best = k
            best_idx = i
    return best_idx


class PhaseDetector:
    """
    Places phase transitions from hip, ankle and wrist motion.

    Forward is toward the lead side: -x for right-handed hitters
    (lead shoulder has the smaller x), +x for left-handed ones.
    """

    def __init__(self, config: Optional[ThresholdConfig] = None):
        self._thresholds = config or get_thresholds()

    def detect(
        self,
        frames: Sequence[FrameRecord],
        handedness: Handedness,
        pixels_per_meter: float = 100.0
    ) -> PhaseDetectionResult:
        cfg = self._thresholds.phase_detection

        if len(frames) < cfg.min_frames:
            logger.info(
                "Too few frames for phase detection",
                extra={"frames": len(frames), "required": cfg.min_frames}
            )
            return _empty_result()

        min_conf = self._thresholds.visibility.min_confidence
        sig = _extract_signals(frames, handedness, min_conf)
        forward = -1.0 if handedness == Handedness.RIGHT else 1.0
        n = len(frames)

        boundaries: List[Tuple[SwingPhase, int, int]] = []
        start = 0

        stance_end = self._find_stance_end(sig, pixels_per_meter)
        if stance_end > 0:
            boundaries.append((SwingPhase.STANCE, 0, stance_end))
            start = stance_end

        load_end = _extreme_index(sig.com_x, start, start + cfg.load_window, lambda x: -forward * x)
        if load_end > start:
            boundaries.append((SwingPhase.LOAD, start, load_end))
            start = load_end

        stride_end = self._find_stride_end(sig, start, forward, pixels_per_meter)
        if stride_end > start:
            boundaries.append((SwingPhase.STRIDE, start, stride_end))
            start = stride_end

        fire_end = _extreme_index(sig.hip_rotation_speed, start, start + cfg.fire_window, lambda s: s)
        if fire_end > start:
            boundaries.append((SwingPhase.FIRE, start, fire_end))
            start = fire_end

        contact_end = _extreme_index(sig.hand_x, start, start + cfg.contact_window, lambda x: forward * x)
        if contact_end > start:
            boundaries.append((SwingPhase.CONTACT, start, contact_end))
            start = contact_end

        if start < n - 1:
            boundaries.append((SwingPhase.FOLLOW_THROUGH, start, n - 1))

        spans = [
            PhaseSpan(
                phase=phase,
                start_frame=s,
                end_frame=e,
                duration_s=(frames[e].timestamp_ms - frames[s].timestamp_ms) / 1000.0,
                confidence=cfg.phase_confidence[phase.value],
                key_events=tuple(KEY_EVENTS[phase])
            )
            for phase, s, e in boundaries
        ]

        result = PhaseDetectionResult(
            phases=spans,
            load_to_fire_ratio=_load_to_fire_ratio(spans),
            total_duration_s=sum(s.duration_s for s in spans),
            transitions=[
                PhaseTransition(s.phase, s.start_frame, frames[s.start_frame].timestamp_ms)
                for s in spans
            ],
            quality=self._assess_quality(spans)
        )

        logger.info(
            f"Detected {len(spans)} swing phases",
            extra={
                "load_to_fire_ratio": result.load_to_fire_ratio,
                "quality_score": result.quality.score
            }
        )
        return result

    def _find_stance_end(self, sig: _Signals, pixels_per_meter: float) -> int:
        cfg = self._thresholds.phase_detection
        n = len(sig.com_x)

        baseline = next((x for x in sig.com_x if x is not None), None)
        if baseline is not None:
            shift_px = cfg.stance_shift_m * pixels_per_meter
            for i in range(cfg.stance_search_start, n):
                x = sig.com_x[i]
                if x is not None and abs(x - baseline) > shift_px:
                    return i

        return min(cfg.stance_default_frames, n - 1)

    def _find_stride_end(
        self,
        sig: _Signals,
        start: int,
        forward: float,
        pixels_per_meter: float
    ) -> int:
        """First frame the lead foot has travelled forward and come to rest"""
        cfg = self._thresholds.phase_detection
        plant_speed = self._thresholds.front_leg.plant_speed_mps
        n = len(sig.lead_ankle_x)

        origin = sig.lead_ankle_x[start]
        if origin is not None:
            travel_px = cfg.stride_min_travel_m * pixels_per_meter
            for i in range(start + 1, min(start + cfg.stride_window, n)):
                x = sig.lead_ankle_x[i]
                speed = sig.lead_ankle_speed[i]
                if x is None or speed is None:
                    continue
                if forward * (x - origin) >= travel_px and speed < plant_speed:
                    return i

        return min(start + cfg.stride_default_frames, n - 1)

    def _assess_quality(self, spans: List[PhaseSpan]) -> DetectionQuality:
        cfg = self._thresholds.phase_detection
        issues: List[str] = []
        score = 100

        found = {s.phase for s in spans}
        missing = [p.value for p in SwingPhase if p not in found]
        if missing:
            issues.append(f"Missing phases: {', '.join(missing)}")
            score -= len(missing) * cfg.missing_phase_penalty

        by_phase = {s.phase: s for s in spans}
        load = by_phase.get(SwingPhase.LOAD)
        fire = by_phase.get(SwingPhase.FIRE)

        lo, hi = cfg.load_duration_range_s
        if load and not (lo <= load.duration_s <= hi):
            issues.append("Load phase duration unusual")
            score -= cfg.unusual_duration_penalty

        lo, hi = cfg.fire_duration_range_s
        if fire and not (lo <= fire.duration_s <= hi):
            issues.append("Fire phase duration unusual")
            score -= cfg.unusual_duration_penalty

        ratio = _load_to_fire_ratio(spans)
        lo, hi = cfg.load_to_fire_ratio_range
        if ratio is not None and not (lo <= ratio <= hi):
            issues.append(f"Load-to-fire ratio ({ratio:.1f}:1) outside ideal range")
            score -= cfg.unusual_duration_penalty

        confidence = sum(s.confidence for s in spans) / len(spans) if spans else 0.0

        return DetectionQuality(
            score=max(0, score),
            issues=issues,
            detection_confidence=confidence
        )


def _load_to_fire_ratio(spans: List[PhaseSpan]) -> Optional[float]:
    by_phase: Dict[SwingPhase, PhaseSpan] = {s.phase: s for s in spans}
    load = by_phase.get(SwingPhase.LOAD)
    fire = by_phase.get(SwingPhase.FIRE)
    if load is None or fire is None or fire.duration_s <= 0:
        return None
    return load.duration_s / fire.duration_s


def _empty_result() -> PhaseDetectionResult:
    return PhaseDetectionResult(
        phases=[],
        load_to_fire_ratio=None,
        total_duration_s=0.0,
        transitions=[],
        quality=DetectionQuality(
            score=0,
            issues=["Insufficient pose data for phase detection"],
            detection_confidence=0.0
        )
    )


def detect_phases(
    frames: Sequence[FrameRecord],
    handedness: Handedness,
    pixels_per_meter: float = 100.0,
    config: Optional[ThresholdConfig] = None
) -> PhaseDetectionResult:
    """Convenience wrapper around PhaseDetector"""
    return PhaseDetector(config).detect(frames, handedness, pixels_per_meter)
