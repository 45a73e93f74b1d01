"""
Unit Tests for Swing Phase Segmentation
"""

import pytest

from pose_factory import make_record


class TestPositionalPhase:

    def test_twenty_frame_layout(self):
        """Boundaries at 15/35/55/75/85 percent of the sequence"""
        from swingsense.core.segmentation import positional_phase
        from swingsense.core.models import SwingPhase

        phases = [positional_phase(i, 20) for i in range(20)]
        assert phases[:3] == [SwingPhase.STANCE] * 3
        assert phases[3:7] == [SwingPhase.LOAD] * 4
        assert phases[7:11] == [SwingPhase.STRIDE] * 4
        assert phases[11:15] == [SwingPhase.FIRE] * 4
        assert phases[15:17] == [SwingPhase.CONTACT] * 2
        assert phases[17:] == [SwingPhase.FOLLOW_THROUGH] * 3

    def test_monotonic_in_index(self):
        """Phase order never decreases along the sequence"""
        from swingsense.core.segmentation import positional_phase

        for total in (1, 7, 10, 30, 113):
            orders = [positional_phase(i, total).order for i in range(total)]
            assert orders == sorted(orders)

    def test_zero_total_is_stance(self):
        """An empty sequence length never divides by zero"""
        from swingsense.core.segmentation import positional_phase
        from swingsense.core.models import SwingPhase

        assert positional_phase(0, 0) == SwingPhase.STANCE


class TestPhaseFrame:

    def test_first_tagged_frame(self):
        """The first frame carrying the phase is returned"""
        from swingsense.core.segmentation import contact_frame
        from swingsense.core.models import SwingPhase

        frames = [make_record(0, SwingPhase.FIRE), make_record(1, SwingPhase.CONTACT),
                  make_record(2, SwingPhase.CONTACT)]
        assert contact_frame(frames).frame_index == 1

    def test_percentile_fallback(self):
        """Untagged contact falls back to the 80th-percentile frame"""
        from swingsense.core.segmentation import contact_frame, load_frame
        from swingsense.core.models import SwingPhase

        frames = [make_record(i, SwingPhase.STANCE) for i in range(10)]
        assert contact_frame(frames).frame_index == 8
        assert load_frame(frames).frame_index == 3

    def test_fallback_single_frame(self):
        """Fallback index is clamped into range"""
        from swingsense.core.segmentation import phase_frame
        from swingsense.core.models import SwingPhase

        frames = [make_record(0, SwingPhase.STANCE)]
        assert phase_frame(frames, SwingPhase.CONTACT, 1.0).frame_index == 0

    def test_empty_sequence(self):
        """No frames means no frame, not an error"""
        from swingsense.core.segmentation import contact_frame

        assert contact_frame([]) is None


class TestPhaseDetection:

    def test_too_few_frames(self, still_samples):
        """Fewer than ten frames yields the empty result with an issue"""
        from swingsense.core.frame_processor import FrameProcessor
        from swingsense.core.segmentation import detect_phases
        from swingsense.core.models import Handedness

        frames = FrameProcessor(pixels_per_meter=100.0).process(still_samples[:9])
        result = detect_phases(frames, Handedness.RIGHT)

        assert result.phases == []
        assert result.load_to_fire_ratio is None
        assert result.total_duration_s == 0.0
        assert result.quality.score == 0
        assert result.quality.issues == ["Insufficient pose data for phase detection"]

    def test_scripted_swing_spans(self, swing_frames):
        """Each transition lands on the frame the script puts it on"""
        from swingsense.core.segmentation import detect_phases
        from swingsense.core.models import Handedness, SwingPhase

        result = detect_phases(swing_frames, Handedness.RIGHT, 100.0)
        spans = [(s.phase, s.start_frame, s.end_frame) for s in result.phases]

        assert spans == [
            (SwingPhase.STANCE, 0, 4),
            (SwingPhase.LOAD, 4, 9),
            (SwingPhase.STRIDE, 9, 16),
            (SwingPhase.FIRE, 16, 20),
            (SwingPhase.CONTACT, 20, 25),
            (SwingPhase.FOLLOW_THROUGH, 25, 29),
        ]

    def test_scripted_swing_timing(self, swing_frames):
        """Durations come from timestamps and the ratio is load over fire"""
        from swingsense.core.segmentation import detect_phases
        from swingsense.core.models import Handedness, SwingPhase

        result = detect_phases(swing_frames, Handedness.RIGHT, 100.0)

        assert result.span(SwingPhase.LOAD).duration_s == pytest.approx(0.165)
        assert result.span(SwingPhase.FIRE).duration_s == pytest.approx(0.132)
        assert result.load_to_fire_ratio == pytest.approx(1.25)
        assert result.total_duration_s == pytest.approx(0.957)
        assert [t.frame for t in result.transitions] == [0, 4, 9, 16, 20, 25]

    def test_scripted_swing_quality(self, swing_frames):
        """A quick load relative to fire costs one penalty"""
        from swingsense.core.segmentation import detect_phases
        from swingsense.core.models import Handedness

        quality = detect_phases(swing_frames, Handedness.RIGHT, 100.0).quality

        assert quality.score == 90
        assert len(quality.issues) == 1
        assert quality.issues[0].startswith("Load-to-fire ratio")
        assert 0.75 <= quality.detection_confidence <= 0.9

    def test_spans_are_ordered(self, swing_frames):
        """Spans appear in phase order and never overlap"""
        from swingsense.core.segmentation import detect_phases
        from swingsense.core.models import Handedness

        spans = detect_phases(swing_frames, Handedness.RIGHT, 100.0).phases
        for prev, curr in zip(spans, spans[1:]):
            assert prev.phase.order < curr.phase.order
            assert prev.end_frame == curr.start_frame

    def test_still_hitter_uses_defaults(self, still_samples):
        """A hitter who never moves still gets a stance span of default length"""
        from swingsense.core.frame_processor import FrameProcessor
        from swingsense.core.segmentation import detect_phases
        from swingsense.core.models import Handedness, SwingPhase

        frames = FrameProcessor(pixels_per_meter=100.0).process(still_samples)
        result = detect_phases(frames, Handedness.RIGHT)

        stance = result.span(SwingPhase.STANCE)
        assert (stance.start_frame, stance.end_frame) == (0, 5)
        assert result.span(SwingPhase.LOAD) is None
        assert result.quality.score < 100
        assert any(issue.startswith("Missing phases") for issue in result.quality.issues)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
