"""
Pose Source Contract
Pydantic models validating the payload handed over by the pose estimator.
"""

from dataclasses import dataclass
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, model_validator

from ..exceptions import InvalidPoseSequence
from .models import Keypoint, PoseSample


class KeypointSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, description="Landmark name, e.g. left_knee")
    x: float = Field(..., description="Pixel x coordinate")
    y: float = Field(..., description="Pixel y coordinate (grows downward)")
    z: Optional[float] = Field(default=None, description="Optional relative depth")
    confidence: float = Field(..., ge=0.0, le=1.0, alias="score", description="Detection confidence")


class PoseFrameSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    keypoints: List[KeypointSchema] = Field(default_factory=list)
    timestamp_ms: float = Field(..., ge=0.0, alias="timestamp", description="Milliseconds from sequence start")


class PoseSequenceSchema(BaseModel):
    frames: List[PoseFrameSchema]
    fps: Optional[float] = Field(default=None, gt=0, description="Source capture rate, informational")
    duration_ms: Optional[float] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_timestamps(self):
        for i in range(1, len(self.frames)):
            if self.frames[i].timestamp_ms < self.frames[i - 1].timestamp_ms:
                raise ValueError(
                    f"timestamps must be non-decreasing (frame {i}: "
                    f"{self.frames[i].timestamp_ms} < {self.frames[i - 1].timestamp_ms})"
                )
        return self


@dataclass(frozen=True)
class ParsedPoseSequence:
    samples: List[PoseSample]
    fps: Optional[float]
    duration_ms: Optional[float]


def parse_pose_sequence(payload: Any) -> ParsedPoseSequence:
    """
    Validate a raw pose payload and convert it to PoseSamples.

    Accepts either {"frames": [...], "fps": ..., "duration_ms": ...} or a
    bare list of frames.

    Raises:
        InvalidPoseSequence: if the payload does not match the contract
    """
    if isinstance(payload, list):
        payload = {"frames": payload}

    try:
        seq = PoseSequenceSchema.model_validate(payload)
    except PydanticValidationError as e:
        errors = [
            {"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"]}
            for err in e.errors()
        ]
        raise InvalidPoseSequence(
            f"Pose sequence failed validation ({len(errors)} error(s))",
            errors=errors
        ) from e

    samples = [
        PoseSample(
            keypoints=tuple(
                Keypoint(name=kp.name, x=kp.x, y=kp.y, confidence=kp.confidence, z=kp.z)
                for kp in frame.keypoints
            ),
            timestamp_ms=frame.timestamp_ms
        )
        for frame in seq.frames
    ]
    return ParsedPoseSequence(samples=samples, fps=seq.fps, duration_ms=seq.duration_ms)
