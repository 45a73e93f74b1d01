"""
Swing Analysis Pipeline
Runs one pose sequence through every stage and returns a MotionReport.
Stateless between runs; stages within a run execute in order.
"""

import uuid
import logging
from dataclasses import fields
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar, Union

from ..config import get_thresholds, get_settings, ThresholdConfig
from ..exceptions import SwingSenseException, AnalysisError, ValidationError
from ..logging_config import LogTimer, set_run_id, reset_run_id
from .models import PoseSample, SwingMechanicsQuality
from .schemas import parse_pose_sequence
from .frame_processor import FrameProcessor, summarize
from .segmentation import PhaseDetector
from .front_leg import front_leg_stability
from .weight_transfer import weight_transfer
from .mechanics_quality import MechanicsInputs, inputs_from_frames, score_swing_mechanics
from .report import MotionReport, generate_report

logger = logging.getLogger(__name__)

T = TypeVar("T")

MechanicsArg = Union[MechanicsInputs, Dict[str, Any], None]

MECHANICS_KEYS = frozenset(f.name for f in fields(MechanicsInputs))


class SwingAnalysisPipeline:
    """
    Orchestrates a full swing analysis.

    Project exceptions propagate unchanged; anything else raised inside a
    stage is wrapped in AnalysisError carrying the stage name.
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
        self._processor = FrameProcessor(pixels_per_meter, self._thresholds)
        self._phase_detector = PhaseDetector(self._thresholds)

    def _run_stage(self, stage: str, fn: Callable[..., T], *args, **kwargs) -> T:
        try:
            result = fn(*args, **kwargs)
        except SwingSenseException:
            raise
        except Exception as e:
            logger.error(f"Stage {stage} failed: {e}", exc_info=True)
            raise AnalysisError(f"{stage} failed: {e}", stage=stage) from e
        logger.debug(f"Stage completed: {stage}")
        return result

    def _to_samples(self, data: Any):
        """PoseSamples pass through; anything else is validated as a raw payload"""
        if isinstance(data, (list, tuple)) and all(isinstance(s, PoseSample) for s in data):
            return list(data), None
        parsed = parse_pose_sequence(data)
        return parsed.samples, parsed.duration_ms

    def _score_mechanics(self, frames, phase_detection, mechanics: MechanicsArg) -> Optional[SwingMechanicsQuality]:
        if mechanics is None:
            return None

        if isinstance(mechanics, dict):
            missing = [k for k in ("attack_angle", "bat_path_plane") if k not in mechanics]
            if missing:
                raise ValidationError(
                    f"mechanics requires {', '.join(missing)}", field="mechanics"
                )
            unknown = sorted(set(mechanics) - MECHANICS_KEYS)
            if unknown:
                raise ValidationError(
                    f"unknown mechanics keys: {', '.join(unknown)}", field="mechanics"
                )
            inputs = inputs_from_frames(
                frames, phase_detection=phase_detection, config=self._thresholds, **mechanics
            )
            if inputs is None:
                logger.info("Swing mechanics skipped: tempo or separation not measurable")
                return None
        else:
            inputs = mechanics

        return score_swing_mechanics(inputs, self._thresholds)

    def analyze(
        self,
        data: Union[Sequence[PoseSample], Dict[str, Any], List[Dict[str, Any]]],
        mechanics: MechanicsArg = None,
        run_id: Optional[str] = None,
        duration_ms: Optional[float] = None
    ) -> MotionReport:
        """
        Analyze one swing.

        Args:
            data: PoseSamples, or a raw pose payload (dict or list of frames)
            mechanics: MechanicsInputs, or a dict with attack_angle and
                bat_path_plane (plus optional ratings) to derive the rest
                from the frames
            run_id: Correlation id for logs; generated when omitted
            duration_ms: Reported sequence duration, checked against timestamps

        Raises:
            InvalidPoseSequence: raw payload failed validation
            ValidationError: bad mechanics arguments
            AnalysisError: unexpected failure inside a stage
        """
        run_id = run_id or uuid.uuid4().hex[:12]
        token = set_run_id(run_id)
        try:
            return self._analyze(data, mechanics, run_id, duration_ms)
        finally:
            reset_run_id(token)

    def _analyze(self, data, mechanics: MechanicsArg, run_id: str, duration_ms: Optional[float]) -> MotionReport:
        with LogTimer(logger, "Swing analysis"):
            samples, payload_duration = self._run_stage("validation", self._to_samples, data)
            if duration_ms is None:
                duration_ms = payload_duration

            frames = self._run_stage(
                "frame_processing", self._processor.process, samples, duration_ms
            )
            summary = self._run_stage("summary", summarize, frames, None, self._thresholds)
            handedness = summary.handedness

            phase_detection = self._run_stage(
                "phase_detection", self._phase_detector.detect,
                frames, handedness, self.pixels_per_meter
            )
            front_leg = self._run_stage(
                "front_leg", front_leg_stability, frames, handedness, self._thresholds
            )
            wt = self._run_stage(
                "weight_transfer", weight_transfer,
                frames, handedness, self.pixels_per_meter, self._thresholds
            )
            quality = self._run_stage(
                "mechanics", self._score_mechanics, frames, phase_detection, mechanics
            )

            report = self._run_stage(
                "report", generate_report,
                run_id=run_id,
                frames=frames,
                summary=summary,
                phase_detection=phase_detection,
                front_leg=front_leg,
                weight_transfer=wt,
                mechanics=quality,
                pixels_per_meter=self.pixels_per_meter
            )

        logger.info(
            "Analysis complete",
            extra={
                "frames": summary.total_frames,
                "front_leg": front_leg.overall_score if front_leg else None,
                "weight_transfer": wt.overall_score if wt else None,
                "mechanics": quality.overall_score if quality else None,
            }
        )
        return report
