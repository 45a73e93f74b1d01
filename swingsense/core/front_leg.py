"""
Front-Leg Stability Scoring
Scores how firmly the lead leg posts up at contact: knee angle, ankle
angle, and how quickly the lead foot decelerates into its plant.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from ..config import get_thresholds, ThresholdConfig
from .models import ComponentScore, FrameRecord, Handedness, SwingPhase
from .kinematics import detect_handedness, lead_side
from .segmentation import contact_frame
from .scoring import (
    TierTable, Tier, InsightRule,
    closed, half_open, open_closed, greater_than,
    categorize, weighted_score, round_score, first_insight,
)

logger = logging.getLogger(__name__)


KNEE_TABLE = TierTable(
    tiers=(
        Tier(100, "Elite - Firm but not locked, optimal stability", (closed(145, 160),)),
        Tier(85, "Good - Slightly soft or slightly stiff", (half_open(140, 145), open_closed(160, 165))),
        Tier(70, "Developing - Too soft or too stiff, losing power", (half_open(135, 140), open_closed(165, 170))),
        Tier(50, "Beginner - Significant stability issue", (half_open(130, 135), open_closed(170, 175))),
    ),
    fallback=Tier(25, "Critical - Severe stability problem", ()),
    unit="deg",
)

ANKLE_TABLE = TierTable(
    tiers=(
        Tier(100, "Elite - Optimal forward shin angle", (closed(10, 15),)),
        Tier(85, "Good - Acceptable range", (half_open(8, 10), open_closed(15, 18))),
        Tier(70, "Developing - Too upright or too forward", (half_open(5, 8), open_closed(18, 22))),
        Tier(50, "Beginner - Poor base", (half_open(3, 5), open_closed(22, 25))),
    ),
    fallback=Tier(25, "Critical - Falling backward or forward", ()),
    unit="deg",
)

DECELERATION_TABLE = TierTable(
    tiers=(
        Tier(100, "Elite - Rapid plant, firm post", (greater_than(10),)),
        Tier(85, "Good - Quick plant", (closed(8, 10),)),
        Tier(70, "Developing - Slow plant", (half_open(6, 8),)),
        Tier(50, "Beginner - Very slow plant", (half_open(4, 6),)),
    ),
    fallback=Tier(25, "Critical - No plant, leg keeps drifting", ()),
    unit="m/s^2",
)


INSIGHT_RULES: List[InsightRule] = [
    InsightRule(
        "knee_no_data",
        lambda c: c["knee"].score < 85 and c["knee"].measurement is None,
        lambda c: "The front knee was not clearly visible at contact. Film from the side "
                  "with the full body in frame so front-leg stability can be measured.",
    ),
    InsightRule(
        "knee_too_soft",
        lambda c: c["knee"].score < 85 and c["knee"].measurement < 145,
        lambda c: f"Your front leg is too soft at contact ({c['knee'].measurement:.0f}°). "
                  "Firming it up to 145-160° will add 4-6 mph bat speed by creating a "
                  "stable base for rotation.",
    ),
    InsightRule(
        "knee_too_stiff",
        lambda c: c["knee"].score < 85 and c["knee"].measurement > 160,
        lambda c: f"Your front leg is too stiff at contact ({c['knee'].measurement:.0f}°). "
                  "Slight flexion (145-160°) maintains stability while allowing proper "
                  "energy transfer.",
    ),
    InsightRule(
        "deceleration_no_data",
        lambda c: c["deceleration"].score < 85 and c["deceleration"].measurement is None,
        lambda c: "Your front foot plant could not be timed. Make sure the stride and "
                  "plant are in frame so plant speed can be measured.",
    ),
    InsightRule(
        "deceleration_slow",
        lambda c: c["deceleration"].score < 85,
        lambda c: f"Your front leg plant is too slow ({c['deceleration'].measurement:.1f} m/s²). "
                  "A quicker, firmer plant (>10 m/s²) creates a stable post for explosive "
                  "rotation.",
    ),
    InsightRule(
        "ankle_no_data",
        lambda c: c["ankle"].score < 85 and c["ankle"].measurement is None,
        lambda c: "The front ankle was not clearly visible at contact, so weight "
                  "distribution over the front foot could not be checked.",
    ),
    InsightRule(
        "ankle_off",
        lambda c: c["ankle"].score < 85,
        lambda c: f"Your ankle angle ({c['ankle'].measurement:.0f}°) affects weight "
                  "distribution. Optimal 10-15° keeps weight on inside of foot for "
                  "stable base.",
    ),
    InsightRule(
        "solid",
        lambda c: True,
        lambda c: "Your front leg mechanics are solid! Continue maintaining firm (not "
                  "locked) front leg stability for consistent power transfer.",
    ),
]


def deceleration_rate(
    frames: Sequence[FrameRecord],
    handedness: Handedness,
    config: Optional[ThresholdConfig] = None
) -> Optional[float]:
    """
    Peak lead-ankle speed during stride/fire divided by the time it takes
    to drop below the plant threshold. None when indeterminate.
    """
    cfg = (config or get_thresholds()).front_leg
    joint = f"{lead_side(handedness)}_ankle"

    stride = [f for f in frames if f.phase in (SwingPhase.STRIDE, SwingPhase.FIRE)]
    if len(stride) < cfg.min_stride_frames:
        return None

    speeds = []
    for f in stride:
        v = f.velocity(joint)
        speeds.append(v.speed if v is not None else None)

    peak_idx = None
    peak = 0.0
    for i, s in enumerate(speeds):
        if s is not None and s > peak:
            peak = s
            peak_idx = i

    if peak_idx is None:
        return None

    plant_idx = peak_idx
    for i in range(peak_idx + 1, len(stride)):
        s = speeds[i]
        if s is not None and s < cfg.plant_speed_mps:
            plant_idx = i
            break

    elapsed_s = (stride[plant_idx].timestamp_ms - stride[peak_idx].timestamp_ms) / 1000.0
    if elapsed_s <= 0:
        return None

    return peak / elapsed_s


def front_leg_stability(
    frames: Sequence[FrameRecord],
    handedness: Optional[Handedness] = None,
    config: Optional[ThresholdConfig] = None
) -> Optional[ComponentScore]:
    """
    Score front-leg stability for one swing.

    Returns None for an empty sequence.
    """
    if not frames:
        return None

    thresholds = config or get_thresholds()
    cfg = thresholds.front_leg
    if handedness is None:
        handedness = detect_handedness(frames[0].joints)

    contact = contact_frame(frames, thresholds)

    knee = contact.angle("lead_knee_angle")
    ankle = contact.angle("lead_ankle_angle")
    decel = deceleration_rate(frames, handedness, thresholds)

    sub_scores = {
        "knee": KNEE_TABLE.score(knee.value if knee else None),
        "ankle": ANKLE_TABLE.score(ankle.value if ankle else None),
        "deceleration": DECELERATION_TABLE.score(decel),
    }

    overall = round_score(weighted_score(
        [sub_scores["knee"].score, sub_scores["ankle"].score, sub_scores["deceleration"].score],
        [cfg.knee_weight, cfg.ankle_weight, cfg.deceleration_weight]
    ))

    context: Dict[str, Any] = dict(sub_scores)
    insight_key, insight = first_insight(INSIGHT_RULES, context)

    logger.debug(
        "Front-leg stability scored",
        extra={"overall": overall, "contact_frame": contact.frame_index, "insight": insight_key}
    )

    return ComponentScore(
        overall_score=overall,
        category=categorize(overall, thresholds),
        sub_scores=sub_scores,
        insight_key=insight_key,
        insight=insight,
        recommended_drill=cfg.recommended_drill
    )
