"""
Unit Tests for Front-Leg Stability Scoring
"""

import math
import random

import pytest

from pose_factory import make_record
from swingsense.core.models import Handedness, SwingPhase


def _leg_frames(knee=150.0, ankle=12.0, speeds=(1.0, 3.0, 2.0, 0.1), joint="left_ankle"):
    """Stance, then stride/fire frames with lead-ankle speeds, then contact"""
    frames = [make_record(0, SwingPhase.STANCE)]
    for i, speed in enumerate(speeds, start=1):
        phase = SwingPhase.STRIDE if i <= len(speeds) // 2 else SwingPhase.FIRE
        frames.append(make_record(i, phase, speeds={joint: speed}))

    angles = {}
    if knee is not None:
        angles["lead_knee_angle"] = knee
    if ankle is not None:
        angles["lead_ankle_angle"] = ankle
    frames.append(make_record(len(frames), SwingPhase.CONTACT, angles=angles))
    return frames


class TestTables:

    @pytest.mark.parametrize("value,expected", [
        (150, 100), (145, 100), (160, 100),
        (144.9, 85), (160.5, 85), (165, 85),
        (135, 70), (165.1, 70), (170, 70),
        (134.9, 50), (175, 50),
        (129, 25), (400, 25),
    ])
    def test_knee_tiers(self, value, expected):
        """Knee bands, with closed inner edges"""
        from swingsense.core.front_leg import KNEE_TABLE

        assert KNEE_TABLE.score(value).score == expected

    def test_knee_status_text(self):
        """Statuses carry the tier label"""
        from swingsense.core.front_leg import KNEE_TABLE

        sub = KNEE_TABLE.score(150)
        assert sub.status.startswith("Elite")
        assert sub.measurement == 150
        assert sub.unit == "deg"

    def test_nan_falls_to_lowest_tier(self):
        """NaN matches no band and gets the fallback tier"""
        from swingsense.core.front_leg import KNEE_TABLE, ANKLE_TABLE

        assert KNEE_TABLE.score(float("nan")).score == 25
        assert ANKLE_TABLE.score(float("nan")).score == 25

    def test_none_is_no_data(self):
        """A missing measurement scores 0 with the No data status"""
        from swingsense.core.front_leg import KNEE_TABLE
        from swingsense.core.scoring import NO_DATA

        sub = KNEE_TABLE.score(None)
        assert sub.score == 0
        assert sub.status == NO_DATA
        assert not sub.has_data

    @pytest.mark.parametrize("value,expected", [
        (12, 100), (18, 85), (8, 85), (22, 70), (5, 70), (25, 50), (3, 50), (2, 25), (40, 25),
    ])
    def test_ankle_tiers(self, value, expected):
        from swingsense.core.front_leg import ANKLE_TABLE

        assert ANKLE_TABLE.score(value).score == expected

    @pytest.mark.parametrize("value,expected", [
        (10.01, 100), (10, 85), (8, 85), (7.99, 70), (6, 70), (4, 50), (3.9, 25), (0, 25),
    ])
    def test_deceleration_tiers(self, value, expected):
        """Above 10 is elite, 10 itself is only good"""
        from swingsense.core.front_leg import DECELERATION_TABLE

        assert DECELERATION_TABLE.score(value).score == expected


class TestDecelerationRate:

    def test_peak_over_time_to_plant(self):
        """Peak 3 m/s dropping below 0.2 m/s two frames later"""
        from swingsense.core.front_leg import deceleration_rate

        rate = deceleration_rate(_leg_frames(), Handedness.RIGHT)
        assert rate == pytest.approx(3.0 / 0.066)

    def test_too_few_stride_frames(self):
        """Fewer than three stride/fire frames is indeterminate"""
        from swingsense.core.front_leg import deceleration_rate

        assert deceleration_rate(_leg_frames(speeds=(3.0, 0.1)), Handedness.RIGHT) is None

    def test_no_lead_ankle_velocity(self):
        """Velocities only on the rear ankle leave the rate undefined"""
        from swingsense.core.front_leg import deceleration_rate

        frames = _leg_frames(joint="right_ankle")
        assert deceleration_rate(frames, Handedness.RIGHT) is None

    def test_never_plants(self):
        """A foot that stays above plant speed has no plant, so no rate"""
        from swingsense.core.front_leg import deceleration_rate

        frames = _leg_frames(speeds=(3.0, 2.0, 1.0, 0.5))
        assert deceleration_rate(frames, Handedness.RIGHT) is None

    def test_lead_ankle_follows_handedness(self):
        """Left-handed hitters plant the right foot"""
        from swingsense.core.front_leg import deceleration_rate

        frames = _leg_frames(joint="right_ankle")
        assert deceleration_rate(frames, Handedness.LEFT) == pytest.approx(3.0 / 0.066)
        assert deceleration_rate(_leg_frames(), Handedness.LEFT) is None


class TestFrontLegStability:

    def test_empty_sequence(self):
        """No frames, no score"""
        from swingsense.core.front_leg import front_leg_stability

        assert front_leg_stability([]) is None

    def test_elite_leg(self):
        """Firm knee, good shin angle and a fast plant score 100"""
        from swingsense.core.front_leg import front_leg_stability
        from swingsense.core.models import ScoreCategory

        result = front_leg_stability(_leg_frames())

        assert result.overall_score == 100
        assert result.category == ScoreCategory.ELITE
        assert set(result.sub_scores) == {"knee", "ankle", "deceleration"}
        assert result.insight_key == "solid"
        assert result.recommended_drill.startswith("Front Leg Post-Up Drill")

    def test_knee_not_visible(self):
        """A missing knee angle weighs in as zero and asks for a better camera angle"""
        from swingsense.core.front_leg import front_leg_stability
        from swingsense.core.models import ScoreCategory

        result = front_leg_stability(_leg_frames(knee=None))

        assert result.sub_scores["knee"].score == 0
        assert result.overall_score == 60
        assert result.category == ScoreCategory.BEGINNER
        assert result.insight_key == "knee_no_data"

    def test_soft_knee(self):
        """A soft knee is the first thing called out"""
        from swingsense.core.front_leg import front_leg_stability
        from swingsense.core.models import ScoreCategory

        result = front_leg_stability(_leg_frames(knee=138))

        assert result.overall_score == 88
        assert result.category == ScoreCategory.GOOD
        assert result.insight_key == "knee_too_soft"
        assert "(138°)" in result.insight

    def test_stiff_knee(self):
        from swingsense.core.front_leg import front_leg_stability

        result = front_leg_stability(_leg_frames(knee=168))
        assert result.insight_key == "knee_too_stiff"

    def test_deceleration_checked_before_ankle(self):
        """With a good knee, plant problems outrank ankle problems"""
        from swingsense.core.front_leg import front_leg_stability

        result = front_leg_stability(_leg_frames(ankle=30, speeds=()))
        assert result.sub_scores["ankle"].score == 25
        assert result.insight_key == "deceleration_no_data"

    def test_slow_plant(self):
        """Peak 0.5 m/s planted three frames later is about 5 m/s^2"""
        from swingsense.core.front_leg import front_leg_stability

        result = front_leg_stability(_leg_frames(speeds=(0.5, 0.4, 0.3, 0.1)))

        assert result.sub_scores["deceleration"].score == 50
        assert result.insight_key == "deceleration_slow"
        assert "5.1 m/s²" in result.insight

    def test_ankle_off(self):
        from swingsense.core.front_leg import front_leg_stability

        result = front_leg_stability(_leg_frames(ankle=20))
        assert result.sub_scores["ankle"].score == 70
        assert result.insight_key == "ankle_off"

    def test_contact_fallback(self):
        """Without a contact frame the 80th-percentile frame is scored"""
        from swingsense.core.front_leg import front_leg_stability

        frames = [make_record(i, SwingPhase.STANCE) for i in range(10)]
        frames[8] = make_record(8, SwingPhase.STANCE, angles={"lead_knee_angle": 150})

        result = front_leg_stability(frames)
        assert result.sub_scores["knee"].measurement == 150

    def test_score_bounded(self):
        """Whatever the knee angle, the overall score stays in 0..100"""
        from swingsense.core.front_leg import front_leg_stability

        rng = random.Random(3)
        for _ in range(50):
            knee = rng.uniform(0, 180)
            result = front_leg_stability(_leg_frames(knee=knee, ankle=rng.uniform(0, 90)))
            assert 0 <= result.overall_score <= 100
            assert not math.isnan(result.overall_score)

    def test_idempotent(self):
        """Same frames, same result"""
        from swingsense.core.front_leg import front_leg_stability

        frames = _leg_frames(knee=141)
        assert front_leg_stability(frames) == front_leg_stability(frames)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
