"""
POST /videos                      multipart/form-data field: video
GET  /analyses                    ?flagged=true for likely fakes only
GET  /analyses/{analysis_id}
GET  /analyses/{analysis_id}/report?frame=<index>
"""
from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Header, HTTPException, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from deepcheck.client.report import build_report
from deepcheck.client.upload import validate_video_file
from deepcheck.core import scoring
from deepcheck.core.config import get_settings
from deepcheck.core.errors import ValidationError, ValidationReason
from deepcheck.core.logging import get_logger
from deepcheck.core.ids import new_job_id
from deepcheck.db import repo
from deepcheck.db.models import Analysis
from deepcheck.ml.infer import analyze_video_bytes
from deepcheck.schemas.analysis import AnalysisJob, AnalysisResult, JobSummary
from deepcheck.schemas.video import VideoFile

router = APIRouter()
logger = get_logger(__name__)
settings = get_settings()


def current_user(x_user_id: Optional[str] = Header(default=None)) -> str:
    return x_user_id or settings.DEFAULT_USER_ID


async def _load(session: AsyncSession, analysis_id: str) -> Analysis:
    a = await repo.get_analysis(session, analysis_id)
    if not a:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return a


@router.post("/videos")
async def upload_video(
    background_tasks: BackgroundTasks,
    video: UploadFile = File(...),
    user_id: str = Depends(current_user),
    session: AsyncSession = Depends(repo.get_session),
):
    video_bytes = await video.read()
    candidate = VideoFile(
        name=video.filename or "video",
        content_type=video.content_type or "",
        size=len(video_bytes),
    )
    try:
        validate_video_file(candidate, settings.UPLOAD_MAX_BYTES)
    except ValidationError as exc:
        status_code = 413 if exc.reason is ValidationReason.FILE_TOO_LARGE else 400
        raise HTTPException(status_code=status_code, detail={"reason": exc.reason.value, "message": exc.message})

    analysis = await repo.create_analysis(
        session,
        id=new_job_id(),
        user_id=user_id,
        video_name=candidate.name,
        content_type=candidate.content_type,
        size_bytes=candidate.size,
    )
    logger.info("upload user=%s video=%s bytes=%d job=%s", user_id, candidate.name, candidate.size, analysis.id)
    background_tasks.add_task(run_analysis, analysis.id, video_bytes)
    return {"id": analysis.id}


async def run_analysis(analysis_id: str, video_bytes: bytes) -> None:
    """Background step: processing -> complete | failed."""
    try:
        raw = await analyze_video_bytes(video_bytes)
    except ValueError as exc:
        logger.warning("analysis failed job=%s: %s", analysis_id, exc)
        async with repo.AsyncSessionLocal() as session:
            await repo.fail_analysis(session, analysis_id, str(exc))
        return

    # clamp / order before storing
    result = AnalysisResult.model_validate(raw).to_payload()
    async with repo.AsyncSessionLocal() as session:
        await repo.complete_analysis(session, analysis_id, result)
    logger.info("analysis complete job=%s deepfake=%.1f", analysis_id, result["deepfakeScore"])


@router.get("/analyses")
async def list_analyses(
    flagged: bool = Query(False),
    user_id: str = Depends(current_user),
    session: AsyncSession = Depends(repo.get_session),
):
    rows = await repo.list_analyses(session, user_id)
    summaries = [
        JobSummary.model_validate({**a.to_payload(), "deepfakeScore": (a.result or {}).get("deepfakeScore", 0)})
        for a in rows
    ]
    if flagged:
        summaries = scoring.filter_flagged(summaries)
    return {
        "analyses": [
            {**s.to_payload(), "statusLabel": s.status_label, "flagged": s.flagged}
            for s in summaries
        ]
    }


@router.get("/analyses/{analysis_id}")
async def get_analysis(analysis_id: str, session: AsyncSession = Depends(repo.get_session)):
    a = await _load(session, analysis_id)
    return AnalysisJob.model_validate(a.to_payload()).to_payload()


@router.get("/analyses/{analysis_id}/report")
async def get_report(
    analysis_id: str,
    frame: Optional[int] = Query(None),
    session: AsyncSession = Depends(repo.get_session),
):
    job = AnalysisJob.model_validate((await _load(session, analysis_id)).to_payload())
    frame_count = len(job.result.frames) if job.result else 0
    if frame is not None and not 0 <= frame < frame_count:
        raise HTTPException(status_code=422, detail=f"frame must be in [0, {frame_count})")
    return build_report(job, frame).model_dump(mode="json")
