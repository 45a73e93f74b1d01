"""
Unit Tests for Weight Transfer Scoring
"""

import pytest

from pose_factory import BASE_POSE, make_record
from swingsense.core.models import Handedness, SwingPhase
from swingsense.core.segmentation import positional_phase


def _positions(offsets):
    return {
        name: (x + offsets.get(name, (0, 0))[0], y + offsets.get(name, (0, 0))[1])
        for name, (x, y) in BASE_POSE.items()
    }


def _frames(offsets_for=lambda i: {}, n=10, phase_for=None, interval_ms=33.0):
    """Records with positional phases (contact is frame 8 of 10)"""
    phase_for = phase_for or (lambda i: positional_phase(i, n))
    return [
        make_record(i, phase_for(i), timestamp_ms=i * interval_ms, joints=_positions(offsets_for(i)))
        for i in range(n)
    ]


def _rising_hips(i):
    """Hips hold for five frames then rise 4 px per frame"""
    dy = 0 if i < 5 else -4 * (i - 4)
    return {"left_hip": (0, dy), "right_hip": (0, dy)}


def _occluded_frames(hip_dx, hidden=range(4, 7), n=10):
    """Hips shifted by hip_dx(i), with low-confidence joints on hidden frames"""
    return [
        make_record(
            i, positional_phase(i, n), timestamp_ms=i * 33.0,
            joints=_positions({"left_hip": (hip_dx(i), 0), "right_hip": (hip_dx(i), 0)}),
            joint_confidence=0.3 if i in hidden else 0.9
        )
        for i in range(n)
    ]


class TestTables:

    @pytest.mark.parametrize("inches,expected", [
        (2.5, 100), (3.5, 85), (4.5, 70), (6, 50), (8, 25), (1.5, 25),
    ])
    def test_vertical_tiers(self, inches, expected):
        """Rises under two inches fall through to the lowest tier"""
        from swingsense.core.weight_transfer import VERTICAL_TABLE

        assert VERTICAL_TABLE.score(inches).score == expected

    @pytest.mark.parametrize("seconds,expected", [
        (0.12, 100), (0.09, 85), (0.17, 85), (0.2, 70), (0.04, 50), (0.25, 50), (0.5, 25), (-0.1, 25),
    ])
    def test_timing_tiers(self, seconds, expected):
        from swingsense.core.weight_transfer import TIMING_TABLE

        assert TIMING_TABLE.score(seconds).score == expected

    @pytest.mark.parametrize("seconds,expected", [
        (0.07, 100), (0.02, 85), (-0.02, 70), (-0.07, 50), (-0.2, 25), (0.2, 25),
    ])
    def test_back_foot_tiers(self, seconds, expected):
        """Lifting well after contact lands in the lowest tier too"""
        from swingsense.core.weight_transfer import BACK_FOOT_TABLE

        assert BACK_FOOT_TABLE.score(seconds).score == expected

    @pytest.mark.parametrize("accel,timing,expected", [
        (6, 0.2, 100),
        (9, 0.13, 85),
        (9, 0.2, 25),
        (11, 0.1, 70),
        (13, 0.0, 50),
        (13, 5.0, 50),
        (20, 0.2, 25),
    ])
    def test_acceleration_pair_table(self, accel, timing, expected):
        """Both magnitude and timing have to match for the top tiers"""
        from swingsense.core.weight_transfer import ACCELERATION_TABLE

        sub = ACCELERATION_TABLE.score(accel, timing)
        assert sub.score == expected
        assert sub.measurement == accel

    def test_acceleration_needs_both_values(self):
        from swingsense.core.weight_transfer import ACCELERATION_TABLE
        from swingsense.core.scoring import NO_DATA

        assert ACCELERATION_TABLE.score(None, 0.2).status == NO_DATA
        assert ACCELERATION_TABLE.score(6, None).status == NO_DATA


class TestWeightTransferAnalyzer:

    def test_vertical_movement_in_inches(self):
        """A 20 px rise at 100 px/m is about 7.9 inches"""
        from swingsense.core.weight_transfer import WeightTransferAnalyzer

        analyzer = WeightTransferAnalyzer(pixels_per_meter=100.0)
        assert analyzer.vertical_movement(_frames(_rising_hips)) == pytest.approx(7.874)

    def test_vertical_movement_needs_confident_hips(self):
        """No confident hip pair means no measurement"""
        from swingsense.core.weight_transfer import WeightTransferAnalyzer

        frames = [
            make_record(i, SwingPhase.STANCE, joint_confidence=0.3) for i in range(5)
        ]
        assert WeightTransferAnalyzer(100.0).vertical_movement(frames) is None

    def test_velocity_peak_timing(self):
        """Fastest hip travel ending at frame 6 is two frames before contact"""
        from swingsense.core.weight_transfer import WeightTransferAnalyzer

        def offsets(i):
            dx = 0 if i < 6 else -20
            return {"left_hip": (dx, 0), "right_hip": (dx, 0)}

        timing = WeightTransferAnalyzer(100.0).velocity_peak_timing(_frames(offsets), contact_s=0.264)
        assert timing == pytest.approx(0.066)

    def test_constant_velocity_has_zero_acceleration(self):
        """Steady hip drift is a real zero, not missing data"""
        from swingsense.core.weight_transfer import WeightTransferAnalyzer

        def offsets(i):
            return {"left_hip": (-5 * i, 0), "right_hip": (-5 * i, 0)}

        accel, timing = WeightTransferAnalyzer(100.0).acceleration_peak(_frames(offsets), 0.264)
        assert accel == pytest.approx(0.0, abs=1e-6)
        assert timing is not None

    def test_occlusion_gap_is_not_bridged(self):
        """Hips that jump 40 px while hidden do not register as movement"""
        from swingsense.core.weight_transfer import WeightTransferAnalyzer

        frames = _occluded_frames(lambda i: 0 if i < 4 else -40)
        analyzer = WeightTransferAnalyzer(100.0)

        assert analyzer.velocity_peak_timing(frames, 0.264) == pytest.approx(0.231)
        accel, timing = analyzer.acceleration_peak(frames, 0.264)
        assert accel == pytest.approx(0.0, abs=1e-6)
        assert timing == pytest.approx(0.231)

    def test_occluded_constant_velocity(self):
        """Steady drift with a hidden stretch still has zero acceleration"""
        from swingsense.core.weight_transfer import WeightTransferAnalyzer

        frames = _occluded_frames(lambda i: -5 * i - (40 if i >= 7 else 0))
        accel, _ = WeightTransferAnalyzer(100.0).acceleration_peak(frames, 0.264)
        assert accel == pytest.approx(0.0, abs=1e-6)

    def test_fully_occluded_windows(self):
        """Fewer than two adjacent visible frames leaves nothing to measure"""
        from swingsense.core.weight_transfer import WeightTransferAnalyzer

        frames = _occluded_frames(lambda i: -5 * i, hidden=range(1, 10, 2))
        analyzer = WeightTransferAnalyzer(100.0)

        assert analyzer.velocity_peak_timing(frames, 0.264) is None
        assert analyzer.acceleration_peak(frames, 0.264) == (None, None)
        assert analyzer.vertical_movement(frames) == pytest.approx(0.0)

    def test_duplicate_timestamps_are_skipped(self):
        """Zero time steps never divide by zero"""
        from swingsense.core.weight_transfer import WeightTransferAnalyzer

        frames = _frames(interval_ms=0.0)
        analyzer = WeightTransferAnalyzer(100.0)

        assert analyzer.velocity_peak_timing(frames, 0.0) is None
        assert analyzer.acceleration_peak(frames, 0.0) == (None, None)

    def test_invalid_calibration(self):
        from swingsense.core.weight_transfer import WeightTransferAnalyzer
        from swingsense.exceptions import ValidationError

        with pytest.raises(ValidationError):
            WeightTransferAnalyzer(pixels_per_meter=0)


class TestWeightTransfer:

    def test_empty_sequence(self):
        """No frames, no score"""
        from swingsense.core.weight_transfer import weight_transfer

        assert weight_transfer([]) is None

    def test_jumping_hitter(self):
        """A 7.9 inch hip rise is critical and is the first insight"""
        from swingsense.core.weight_transfer import weight_transfer

        result = weight_transfer(_frames(_rising_hips), pixels_per_meter=100.0)
        vertical = result.sub_scores["vertical"]

        assert vertical.score == 25
        assert vertical.status.startswith("Critical")
        assert vertical.unit == "in"
        assert result.insight_key == "jumping"
        assert '7.9" vertical rise' in result.insight

    def test_back_foot_never_lifted(self):
        """A planted rear foot counts as lifting 0.10 s after contact"""
        from swingsense.core.weight_transfer import weight_transfer

        result = weight_transfer(_frames(), pixels_per_meter=100.0)
        back_foot = result.sub_scores["back_foot"]

        assert back_foot.measurement == pytest.approx(0.10)
        assert back_foot.score == 100

    def test_early_back_foot_lift(self):
        """Rear ankle lifting at frame 6 is 0.066 s before contact at frame 8"""
        from swingsense.core.weight_transfer import weight_transfer

        def offsets(i):
            return {"right_ankle": (0, -50)} if i >= 6 else {}

        result = weight_transfer(_frames(offsets), Handedness.RIGHT, pixels_per_meter=100.0)
        back_foot = result.sub_scores["back_foot"]

        assert back_foot.measurement == pytest.approx(-0.066)
        assert back_foot.score == 50
        assert result.insight_key == "early_back_foot_lift"
        assert "lifts 0.07 seconds before contact" in result.insight

    def test_rear_foot_follows_handedness(self):
        """For a left-handed hitter the left ankle is the back foot"""
        from swingsense.core.weight_transfer import weight_transfer

        def offsets(i):
            return {"right_ankle": (0, -50)} if i >= 6 else {}

        result = weight_transfer(_frames(offsets), Handedness.LEFT, pixels_per_meter=100.0)
        assert result.sub_scores["back_foot"].measurement == pytest.approx(0.10)

    def test_no_baseline_frames(self):
        """Without stance or load frames the back foot has no data"""
        from swingsense.core.weight_transfer import weight_transfer
        from swingsense.core.scoring import NO_DATA

        frames = _frames(phase_for=lambda i: SwingPhase.FIRE)
        back_foot = weight_transfer(frames, pixels_per_meter=100.0).sub_scores["back_foot"]

        assert back_foot.status == NO_DATA
        assert back_foot.score == 0
        assert back_foot.measurement is None

    def test_constant_velocity_scores_zero_acceleration(self):
        """Zero acceleration is scored (lowest tier) rather than reported missing"""
        from swingsense.core.weight_transfer import weight_transfer

        def offsets(i):
            return {"left_hip": (-5 * i, 0), "right_hip": (-5 * i, 0)}

        accel = weight_transfer(_frames(offsets), pixels_per_meter=100.0).sub_scores["acceleration"]
        assert accel.has_data
        assert accel.measurement == pytest.approx(0.0, abs=1e-6)
        assert accel.score == 25

    def test_missing_measurements_insight(self):
        """When nothing else is wrong, missing measurements are called out"""
        from swingsense.core.weight_transfer import weight_transfer

        frames = _frames(interval_ms=0.0, offsets_for=lambda i: {
            "left_hip": (0, -1.27 * (i % 2)), "right_hip": (0, -1.27 * (i % 2))
        })
        result = weight_transfer(frames, pixels_per_meter=20.0)

        assert result.sub_scores["vertical"].score == 100
        assert result.sub_scores["timing"].measurement is None
        assert result.insight_key == "incomplete_data"

    def test_invalid_calibration(self):
        from swingsense.core.weight_transfer import weight_transfer
        from swingsense.exceptions import ValidationError

        with pytest.raises(ValidationError):
            weight_transfer(_frames(), pixels_per_meter=-1)

    def test_score_bounded(self):
        """Overall stays within 0..100 and matches its category"""
        from swingsense.core.weight_transfer import weight_transfer
        from swingsense.core.scoring import categorize

        for frames in (_frames(), _frames(_rising_hips)):
            result = weight_transfer(frames, pixels_per_meter=100.0)
            assert 0 <= result.overall_score <= 100
            assert result.category == categorize(result.overall_score)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
