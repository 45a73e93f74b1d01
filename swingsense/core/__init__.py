from .models import (
    Handedness,
    SwingPhase,
    AngleStatus,
    ScoreCategory,
    QualityTier,
    Keypoint,
    PoseSample,
    JointPosition,
    JointAngle,
    JointVelocity,
    FrameRecord,
    RunSummary,
    SubScore,
    ComponentScore,
    SwingMechanicsQuality,
)
from .kinematics import angle, velocity, detect_handedness, joint_angles, joint_velocities
from .segmentation import positional_phase, contact_frame, detect_phases, PhaseDetectionResult
from .frame_processor import FrameProcessor, summarize
from .front_leg import front_leg_stability
from .weight_transfer import weight_transfer
from .mechanics_quality import (
    MechanicsInputs,
    direction_score,
    timing_score,
    efficiency_score,
    swing_mechanics_quality,
    score_swing_mechanics,
    inputs_from_frames,
)
from .schemas import parse_pose_sequence
from .report import MotionReport, generate_report, report_to_dict, create_evidence_chunks
from .pipeline import SwingAnalysisPipeline

__all__ = [
    "Handedness", "SwingPhase", "AngleStatus", "ScoreCategory", "QualityTier",
    "Keypoint", "PoseSample", "JointPosition", "JointAngle", "JointVelocity",
    "FrameRecord", "RunSummary", "SubScore", "ComponentScore", "SwingMechanicsQuality",
    "angle", "velocity", "detect_handedness", "joint_angles", "joint_velocities",
    "positional_phase", "contact_frame", "detect_phases", "PhaseDetectionResult",
    "FrameProcessor", "summarize",
    "front_leg_stability", "weight_transfer",
    "MechanicsInputs", "direction_score", "timing_score", "efficiency_score",
    "swing_mechanics_quality", "score_swing_mechanics", "inputs_from_frames",
    "parse_pose_sequence",
    "MotionReport", "generate_report", "report_to_dict", "create_evidence_chunks",
    "SwingAnalysisPipeline",
]
