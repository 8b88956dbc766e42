"""
Pydantic snapshot models for analysis jobs.

The Analysis Service speaks one flat camelCase object per job; while a job is
processing its score fields are zero and ``frames`` is empty. ``AnalysisJob``
nests the score fields into ``result`` only once the job is complete, so a
``result`` is never present on a processing or failed snapshot.

All models are frozen: a poll produces a new snapshot, it never edits one.
"""
from __future__ import annotations
from datetime import datetime
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, computed_field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from deepcheck.core import scoring
from deepcheck.core.scoring import JobStatus, Severity


def _clamped(value: Any) -> float:
    try:
        return scoring.clamp_score(value)
    except TypeError as exc:
        raise ValueError(f"score must be numeric, got {value!r}") from exc


Score = Annotated[float, BeforeValidator(_clamped)]


class _Snapshot(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Region(_Snapshot):
    # percentages of frame width/height, top-left anchored; may overflow
    x: float
    y: float
    width: float
    height: float
    score: Score


class Frame(_Snapshot):
    timestamp: float = Field(ge=0)
    anomaly_score: Score
    regions: tuple[Region, ...] = ()

    @property
    def severity(self) -> Severity:
        return scoring.classify(self.anomaly_score)


class AnalysisResult(_Snapshot):
    deepfake_score: Score
    manipulation_score: Score = 0.0
    inconsistency_score: Score = 0.0
    audio_analysis_score: Score = 0.0
    frames: tuple[Frame, ...] = ()

    @field_validator("frames")
    @classmethod
    def _order_frames(cls, frames: tuple[Frame, ...]) -> tuple[Frame, ...]:
        return tuple(sorted(frames, key=lambda f: f.timestamp))

    @computed_field(alias="faceSwapDetected")
    @property
    def face_swap_detected(self) -> bool:
        return scoring.face_swap_detected(self.deepfake_score)

    @property
    def severity(self) -> Severity:
        return scoring.classify(self.deepfake_score)

    @property
    def verdict(self) -> str:
        return scoring.verdict(self.deepfake_score)


class AnalysisJob(_Snapshot):
    id: str = Field(min_length=1)
    status: JobStatus
    video_name: str = ""
    created_at: datetime
    result: Optional[AnalysisResult] = None

    @model_validator(mode="before")
    @classmethod
    def _nest_result(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        status = data.get("status")
        if status == JobStatus.COMPLETE:
            if data.get("result") is None:
                data = {**data, "result": data}
        else:
            data = {k: v for k, v in data.items() if k != "result"}
        return data

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def flagged(self) -> bool:
        return self.result is not None and scoring.is_flagged(self.status, self.result.deepfake_score)

    def to_payload(self) -> dict[str, Any]:
        """Flat wire form, as the Analysis Service returns it."""
        payload: dict[str, Any] = {
            "id": self.id,
            "videoName": self.video_name,
            "createdAt": self.created_at.isoformat(),
            "status": self.status.value,
            "deepfakeScore": 0,
            "faceSwapDetected": False,
            "manipulationScore": 0,
            "inconsistencyScore": 0,
            "audioAnalysisScore": 0,
            "frames": [],
        }
        if self.result is not None:
            payload.update(self.result.to_payload())
        return payload


class JobSummary(_Snapshot):
    id: str
    video_name: str = ""
    created_at: datetime
    status: JobStatus
    deepfake_score: Score = 0.0

    @property
    def flagged(self) -> bool:
        return scoring.is_flagged(self.status, self.deepfake_score)

    @property
    def status_label(self) -> str:
        return scoring.status_label(self.status, self.deepfake_score)
