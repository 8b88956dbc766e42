"""View-model handed to the presentation layer for one job snapshot."""
from __future__ import annotations
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from deepcheck.client.timeline import FrameDetail, Timeline, TimelineMarker
from deepcheck.core import scoring
from deepcheck.core.scoring import JobStatus, Severity
from deepcheck.schemas.analysis import AnalysisJob


class ScoreCard(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    score: float
    severity: Severity


class AnalysisReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    video_name: str
    created_at: datetime
    status: JobStatus
    status_label: str
    verdict: Optional[str] = None          # only for complete jobs
    severity: Optional[Severity] = None
    flagged: bool = False
    face_swap_detected: bool = False
    scores: tuple[ScoreCard, ...] = ()
    markers: tuple[TimelineMarker, ...] = ()
    selected_frame: Optional[FrameDetail] = None


def build_report(job: AnalysisJob, selected: Optional[int] = None) -> AnalysisReport:
    """Raises AssertionError when ``selected`` is not a valid frame index."""
    result = job.result
    if result is None:
        return AnalysisReport(
            id=job.id,
            video_name=job.video_name,
            created_at=job.created_at,
            status=job.status,
            status_label=scoring.status_label(job.status, 0),
        )

    timeline = Timeline(result.frames)
    detail = timeline.select(selected)
    cards = (
        ("deepfake", result.deepfake_score),
        ("manipulation", result.manipulation_score),
        ("inconsistency", result.inconsistency_score),
        ("audio", result.audio_analysis_score),
    )
    return AnalysisReport(
        id=job.id,
        video_name=job.video_name,
        created_at=job.created_at,
        status=job.status,
        status_label=scoring.status_label(job.status, result.deepfake_score),
        verdict=result.verdict,
        severity=result.severity,
        flagged=job.flagged,
        face_swap_detected=result.face_swap_detected,
        scores=tuple(ScoreCard(name=n, score=s, severity=scoring.classify(s)) for n, s in cards),
        markers=tuple(timeline.markers),
        selected_frame=detail,
    )
