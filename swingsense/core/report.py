"""
Motion Report
Bundles one analysis run into a single structure for the presentation,
persistence and narrative layers.
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, asdict, field

from .models import (
    ComponentScore,
    FrameRecord,
    Handedness,
    RunSummary,
    SwingMechanicsQuality,
    SwingPhase,
)
from .segmentation import PhaseDetectionResult

# Share of frames without any computed angle that triggers a visibility note
LOW_VISIBILITY_SHARE = 0.1


@dataclass
class MotionReport:
    """Structured motion report for one swing"""
    run_id: str
    created_at: str
    handedness: Handedness
    pixels_per_meter: float

    frames: List[FrameRecord]
    summary: RunSummary
    phase_detection: Optional[PhaseDetectionResult]

    front_leg: Optional[ComponentScore]
    weight_transfer: Optional[ComponentScore]
    mechanics: Optional[SwingMechanicsQuality] = None

    confidence_notes: List[str] = field(default_factory=list)


def _confidence_notes(
    frames: List[FrameRecord],
    phase_detection: Optional[PhaseDetectionResult]
) -> List[str]:
    if not frames:
        return ["No pose frames were supplied"]

    notes = []

    blind = sum(1 for f in frames if not f.angles)
    if blind > len(frames) * LOW_VISIBILITY_SHARE:
        notes.append(f"No joint angles in {blind} frames ({blind / len(frames) * 100:.0f}%)")

    if not any(f.phase == SwingPhase.CONTACT for f in frames):
        notes.append("Contact frame estimated from sequence position")

    if phase_detection is not None:
        notes.extend(phase_detection.quality.issues)

    return list(dict.fromkeys(notes))


def generate_report(
    run_id: str,
    frames: List[FrameRecord],
    summary: RunSummary,
    phase_detection: Optional[PhaseDetectionResult],
    front_leg: Optional[ComponentScore],
    weight_transfer: Optional[ComponentScore],
    mechanics: Optional[SwingMechanicsQuality] = None,
    pixels_per_meter: float = 100.0
) -> MotionReport:
    """Assemble a motion report from stage results."""
    return MotionReport(
        run_id=run_id,
        created_at=datetime.now(timezone.utc).isoformat(),
        handedness=summary.handedness,
        pixels_per_meter=pixels_per_meter,
        frames=list(frames),
        summary=summary,
        phase_detection=phase_detection,
        front_leg=front_leg,
        weight_transfer=weight_transfer,
        mechanics=mechanics,
        confidence_notes=_confidence_notes(list(frames), phase_detection)
    )


def _jsonable(value: Any, digits: int = 4) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, float):
        return round(value, digits)
    if isinstance(value, dict):
        return {str(_jsonable(k)): _jsonable(v, digits) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v, digits) for v in value]
    return value


def report_to_dict(report: MotionReport, include_frames: bool = True) -> Dict:
    """Convert report to a JSON-serializable dict."""
    data = asdict(report)
    if not include_frames:
        data.pop("frames")
    return _jsonable(data)


def _component_chunk(title: str, score: ComponentScore) -> str:
    parts = [
        f"{name.replace('_', ' ')}: " + (
            "no data" if sub.measurement is None else f"{sub.measurement:.2f} {sub.unit} ({sub.score})"
        )
        for name, sub in score.sub_scores.items()
    ]
    return (f"{title}: {score.overall_score}/100 ({score.category.value}). "
            f"{'; '.join(parts)}. Drill: {score.recommended_drill}")


def create_evidence_chunks(report: MotionReport) -> List[str]:
    """Short factual statements for the narrative layer to ground on."""
    s = report.summary
    chunks = [
        f"SWING SUMMARY: {s.total_frames} frames, {s.handedness.value}-handed hitter. "
        f"Phases: {', '.join(f'{k}={v}' for k, v in s.phase_breakdown.items()) or 'none'}."
    ]

    for name, value in s.critical_angles.items():
        if value is not None:
            chunks.append(f"{name.replace('_', ' ')}: {value:.1f}°")

    for name, value in s.max_velocities.items():
        if value is not None:
            chunks.append(f"peak {name.replace('_', ' ')} speed: {value:.2f} m/s")

    chunks.extend(f"ANOMALY - {flag}" for flag in s.anomaly_flags)

    pd = report.phase_detection
    if pd is not None and pd.phases:
        timeline = ", ".join(
            f"{t.phase.value}@{t.timestamp_ms / 1000:.2f}s" for t in pd.transitions
        )
        chunks.append(f"PHASE TIMELINE: {timeline}. Detection quality: {pd.quality.score}/100")
        if pd.load_to_fire_ratio is not None:
            chunks.append(f"Tempo (load:fire): {pd.load_to_fire_ratio:.1f}:1")

    if report.front_leg is not None:
        chunks.append(_component_chunk("FRONT LEG STABILITY", report.front_leg))
    if report.weight_transfer is not None:
        chunks.append(_component_chunk("WEIGHT TRANSFER", report.weight_transfer))

    m = report.mechanics
    if m is not None:
        chunks.append(
            f"SWING MECHANICS: {m.overall_score}/100 ({m.quality_tier.value}). "
            f"Direction {m.direction_score}, timing {m.timing_score}, "
            f"efficiency {m.efficiency_score}. Predicted bat speed {m.predicted_bat_speed_range}"
        )

    chunks.extend(f"NOTE: {note}" for note in report.confidence_notes)

    return chunks
