"""
Weight Transfer Scoring

Tracks the hip center (COM proxy) through the swing:
- vertical excursion (jumping)
- timing of peak forward velocity relative to contact
- rear-foot lift relative to contact
- peak forward acceleration and its timing

Pixel measurements go through pixels -> meters -> inches. Acceleration keeps
that same chain, so its value is reported against the calibrated bands
labelled m/s^2 even though the conversion ends in inches.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import get_thresholds, get_settings, ThresholdConfig
from ..exceptions import ValidationError
from .models import ComponentScore, FrameRecord, Handedness, SwingPhase
from .kinematics import detect_handedness, rear_side
from .segmentation import contact_frame
from .scoring import (
    TierTable, Tier, PairTierTable, PairTier, InsightRule,
    closed, half_open, open_closed,
    categorize, weighted_score, round_score, first_insight,
)

logger = logging.getLogger(__name__)


VERTICAL_TABLE = TierTable(
    tiers=(
        Tier(100, "Elite - Stays low, connected to ground", (closed(2, 3),)),
        Tier(85, "Good - Minimal rise", (open_closed(3, 4),)),
        Tier(70, "Developing - Slight jumping tendency", (open_closed(4, 5),)),
        Tier(50, "Beginner - Jumping tendency", (open_closed(5, 7),)),
    ),
    # Also catches rises under 2 inches
    fallback=Tier(25, "Critical - Severe jumping, losing connection", ()),
    unit="in",
)

TIMING_TABLE = TierTable(
    tiers=(
        Tier(100, "Elite - Perfect timing, momentum at contact", (closed(0.10, 0.15),)),
        Tier(85, "Good - Acceptable timing window", (half_open(0.08, 0.10), open_closed(0.15, 0.18))),
        Tier(70, "Developing - Slightly off timing", (half_open(0.05, 0.08), open_closed(0.18, 0.22))),
        Tier(50, "Beginner - Poor timing, losing momentum", (half_open(0.03, 0.05), open_closed(0.22, 0.28))),
    ),
    fallback=Tier(25, "Critical - Way too early or late", ()),
    unit="s",
)

BACK_FOOT_TABLE = TierTable(
    tiers=(
        Tier(100, "Elite - Maintained connection through contact", (closed(0.05, 0.10),)),
        Tier(85, "Good - Slight early lift but acceptable", (half_open(0.0, 0.05),)),
        Tier(70, "Developing - Lifting early, losing connection", (half_open(-0.05, 0.0),)),
        Tier(50, "Beginner - Lost connection, jumping off back foot", (half_open(-0.10, -0.05),)),
    ),
    # Lifts later than +0.10 s land here too
    fallback=Tier(25, "Critical - Severe jumping, no connection at contact", ()),
    unit="s",
)

ACCELERATION_TABLE = PairTierTable(
    tiers=(
        PairTier(100, "Elite - Controlled, sustained acceleration",
                 (closed(5, 8),), (closed(0.15, 0.25),)),
        PairTier(85, "Good - Slightly aggressive but controlled",
                 (closed(8, 10),), (half_open(0.12, 0.15), open_closed(0.25, 0.30))),
        PairTier(70, "Developing - Too explosive or poor timing",
                 (closed(10, 12),), (half_open(0.08, 0.12), open_closed(0.30, 0.35))),
        PairTier(50, "Beginner - Way too aggressive, indicates jumping",
                 (closed(12, 15),)),
    ),
    fallback=PairTier(25, "Critical - Explosive burst causing jumping", ()),
    unit="m/s^2",
)


def _m(c: Dict[str, Any], key: str) -> Optional[float]:
    return c[key].measurement


INSIGHT_RULES: List[InsightRule] = [
    InsightRule(
        "jumping",
        lambda c: c["vertical"].score < 85 and _m(c, "vertical") is not None and _m(c, "vertical") > 4,
        lambda c: f"You're jumping off your back foot ({_m(c, 'vertical'):.1f}\" vertical rise). "
                  "Stay connected to the ground - this will add 3-5 mph bat speed by "
                  "maintaining power transfer.",
    ),
    InsightRule(
        "early_back_foot_lift",
        lambda c: c["back_foot"].score < 85 and _m(c, "back_foot") is not None and _m(c, "back_foot") < 0,
        lambda c: f"Your back toe lifts {abs(_m(c, 'back_foot')):.2f} seconds before contact. "
                  "Keep it down through contact to maintain connection and maximize power.",
    ),
    InsightRule(
        "com_peaks_early",
        lambda c: c["timing"].score < 85 and _m(c, "timing") is not None and _m(c, "timing") > 0.18,
        lambda c: f"Your COM peaks too early ({_m(c, 'timing'):.2f}s before contact). You're "
                  "already slowing down at impact. Delay your weight shift slightly for peak "
                  "momentum at contact.",
    ),
    InsightRule(
        "com_peaks_late",
        lambda c: c["timing"].score < 85 and _m(c, "timing") is not None,
        lambda c: f"Your COM peaks too late ({_m(c, 'timing'):.2f}s before contact). Start "
                  "your weight transfer earlier to build momentum for contact.",
    ),
    InsightRule(
        "explosive_acceleration",
        lambda c: c["acceleration"].score < 85 and _m(c, "acceleration") is not None
                  and _m(c, "acceleration") > 10,
        lambda c: f"Your acceleration is too explosive ({_m(c, 'acceleration'):.1f} m/s²). A "
                  "smoother, more controlled transfer (5-8 m/s²) will improve consistency and "
                  "prevent jumping.",
    ),
    InsightRule(
        "incomplete_data",
        lambda c: any(_m(c, k) is None for k in ("vertical", "timing", "back_foot", "acceleration")),
        lambda c: "Parts of your weight transfer could not be measured. Keep both hips and "
                  "feet in frame for the whole swing for a complete assessment.",
    ),
    InsightRule(
        "solid",
        lambda c: True,
        lambda c: "Your weight transfer mechanics are solid! You're staying connected and "
                  "transferring power efficiently from back foot to front foot.",
    ),
]


class WeightTransferAnalyzer:
    """Computes the four weight-transfer measurements for one swing"""

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
        self._ppm = pixels_per_meter
        self._thresholds = config or get_thresholds()
        self._min_conf = self._thresholds.visibility.min_confidence

    def _to_inches(self, pixels: float) -> float:
        return pixels / self._ppm * self._thresholds.calibration.inches_per_meter

    def _com_track(self, frames: Sequence[FrameRecord]) -> List[Optional[Tuple[float, float, float]]]:
        """
        (time_s, x, y) per frame, None where the hips are not confidently
        detected. Positions stay aligned with frames so derivatives never
        span an occlusion gap.
        """
        track = []
        for f in frames:
            hc = f.hip_center(self._min_conf)
            track.append(None if hc is None else (f.timestamp_s, hc[0], hc[1]))
        return track

    def vertical_movement(self, frames: Sequence[FrameRecord]) -> Optional[float]:
        """Hip-center vertical excursion in inches"""
        ys = [p[2] for p in self._com_track(frames) if p is not None]
        if not ys:
            return None
        return self._to_inches(max(ys) - min(ys))

    def velocity_peak_timing(
        self,
        frames: Sequence[FrameRecord],
        contact_s: float
    ) -> Optional[float]:
        """Seconds from peak horizontal COM speed to contact"""
        track = self._com_track(frames)
        peak = None
        peak_time = None

        for a, b in zip(track, track[1:]):
            if a is None or b is None:
                continue
            (t0, x0, _), (t1, x1, _) = a, b
            dt = t1 - t0
            if dt <= 0:
                continue
            speed = abs((x1 - x0) / dt)
            if peak is None or speed > peak:
                peak = speed
                peak_time = t1

        if peak_time is None:
            return None
        return contact_s - peak_time

    def back_foot_lift(
        self,
        frames: Sequence[FrameRecord],
        handedness: Handedness,
        contact_s: float
    ) -> Optional[float]:
        """
        Seconds from contact to the rear foot lifting off (negative = before
        contact). A foot that never lifts counts as lifting shortly after.
        """
        cfg = self._thresholds.weight_transfer
        joint = f"{rear_side(handedness)}_ankle"

        early = [f for f in frames if f.phase in (SwingPhase.STANCE, SwingPhase.LOAD)]
        baseline_ys = []
        for f in early:
            ankle = f.joint(joint, self._min_conf)
            if ankle is not None:
                baseline_ys.append(ankle.y)
        if not baseline_ys:
            return None
        baseline = sum(baseline_ys) / len(baseline_ys)

        late_phases = (SwingPhase.FIRE, SwingPhase.CONTACT, SwingPhase.FOLLOW_THROUGH)
        for f in frames:
            if f.phase not in late_phases:
                continue
            ankle = f.joint(joint, self._min_conf)
            if ankle is None:
                continue
            # Image y grows downward, so a lifted foot has a smaller y
            if self._to_inches(baseline - ankle.y) > cfg.foot_lift_threshold_in:
                return f.timestamp_s - contact_s

        return cfg.never_lifted_offset_s

    def acceleration_peak(
        self,
        frames: Sequence[FrameRecord],
        contact_s: float
    ) -> Tuple[Optional[float], Optional[float]]:
        """(peak horizontal COM acceleration, seconds before contact)"""
        track = self._com_track(frames)
        peak = None
        peak_time = None

        for a, b, c in zip(track, track[1:], track[2:]):
            if a is None or b is None or c is None:
                continue
            (t1, x1, _), (t2, x2, _), (t3, x3, _) = a, b, c
            if t2 - t1 <= 0 or t3 - t2 <= 0:
                continue
            v1 = (x2 - x1) / (t2 - t1)
            v2 = (x3 - x2) / (t3 - t2)
            accel = self._to_inches(abs((v2 - v1) / (t3 - t1)))
            if peak is None or accel > peak:
                peak = accel
                peak_time = t2

        if peak is None:
            return None, None
        return peak, contact_s - peak_time


def weight_transfer(
    frames: Sequence[FrameRecord],
    handedness: Optional[Handedness] = None,
    pixels_per_meter: Optional[float] = None,
    config: Optional[ThresholdConfig] = None
) -> Optional[ComponentScore]:
    """
    Score weight transfer for one swing.

    Returns None for an empty sequence.
    """
    if not frames:
        return None

    thresholds = config or get_thresholds()
    cfg = thresholds.weight_transfer
    analyzer = WeightTransferAnalyzer(pixels_per_meter, thresholds)
    if handedness is None:
        handedness = detect_handedness(frames[0].joints)

    contact_s = contact_frame(frames, thresholds).timestamp_s

    vertical = analyzer.vertical_movement(frames)
    timing = analyzer.velocity_peak_timing(frames, contact_s)
    lift = analyzer.back_foot_lift(frames, handedness, contact_s)
    accel, accel_timing = analyzer.acceleration_peak(frames, contact_s)

    sub_scores = {
        "vertical": VERTICAL_TABLE.score(vertical),
        "timing": TIMING_TABLE.score(timing),
        "back_foot": BACK_FOOT_TABLE.score(lift),
        "acceleration": ACCELERATION_TABLE.score(accel, accel_timing),
    }

    overall = round_score(weighted_score(
        [s.score for s in sub_scores.values()],
        [cfg.vertical_weight, cfg.timing_weight, cfg.back_foot_weight, cfg.acceleration_weight]
    ))

    insight_key, insight = first_insight(INSIGHT_RULES, dict(sub_scores))

    logger.debug(
        "Weight transfer scored",
        extra={
            "overall": overall,
            "acceleration_timing_s": accel_timing,
            "insight": insight_key
        }
    )

    return ComponentScore(
        overall_score=overall,
        category=categorize(overall, thresholds),
        sub_scores=sub_scores,
        insight_key=insight_key,
        insight=insight,
        recommended_drill=cfg.recommended_drill
    )
