"""Analysis / Upload Service simulator: in-process, no external service needed."""
from __future__ import annotations
import asyncio
from datetime import datetime, timezone
from typing import Callable, Optional

from deepcheck.core.errors import TransportError
from deepcheck.core.logging import get_logger
from deepcheck.core.scoring import JobStatus
from deepcheck.core.ids import new_job_id
from deepcheck.ml.infer import analyze_video_bytes
from deepcheck.schemas.analysis import AnalysisJob, JobSummary
from deepcheck.schemas.video import VideoFile

logger = get_logger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AnalysisSimulator:
    """
    Fake implementing both UploadService and AnalysisService.

    Each job answers ``processing`` for its first ``processing_polls`` status
    fetches, then settles on its outcome: a scripted result if one was
    registered, ``failed`` if scripted to fail, or the placeholder analyzer's
    report for the uploaded bytes. Once settled the job's answer never changes.
    """

    def __init__(
        self,
        processing_polls: int = 1,
        latency: float = 0.0,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self.processing_polls = processing_polls
        self.latency = latency
        self._id_factory = id_factory or new_job_id
        self._jobs: dict[str, dict] = {}    # job_id -> state
        self.upload_calls = 0
        self.status_calls = 0

    def register(
        self,
        job_id: str,
        video_name: str = "Sample_Video.mp4",
        result: Optional[dict] = None,
        fail: bool = False,
        processing_polls: Optional[int] = None,
        created_at: Optional[datetime] = None,
        video_bytes: bytes = b"",
    ) -> None:
        """Script a job. ``result`` holds camelCase score fields."""
        self._jobs[job_id] = {
            "id": job_id,
            "videoName": video_name,
            "createdAt": (created_at or _now()).isoformat(),
            "status": JobStatus.PROCESSING.value,
            "pending_polls": self.processing_polls if processing_polls is None else processing_polls,
            "scripted_result": result,
            "fail": fail,
            "video_bytes": video_bytes,
            "result": None,
        }

    async def _simulate_network(self) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)

    async def upload(self, video: VideoFile) -> str:
        self.upload_calls += 1
        await self._simulate_network()
        job_id = self._id_factory()
        job = self._jobs.get(job_id)
        if job is None:
            self.register(job_id, video_name=video.name, video_bytes=video.data)
        else:       # scripted ahead of the upload
            job.update(videoName=video.name, video_bytes=video.data)
        logger.info("[SIM] upload %s bytes=%d job=%s", video.name, video.size, job_id)
        return job_id

    async def _settle(self, job: dict) -> None:
        if job["fail"]:
            job["status"] = JobStatus.FAILED.value
        elif job["scripted_result"] is not None:
            job["result"] = job["scripted_result"]
            job["status"] = JobStatus.COMPLETE.value
        else:
            try:
                job["result"] = await analyze_video_bytes(job["video_bytes"])
                job["status"] = JobStatus.COMPLETE.value
            except ValueError as exc:
                logger.warning("[SIM] analysis failed job=%s: %s", job["id"], exc)
                job["status"] = JobStatus.FAILED.value
        logger.info("[SIM] job=%s settled status=%s", job["id"], job["status"])

    async def get_status(self, job_id: str) -> AnalysisJob:
        self.status_calls += 1
        await self._simulate_network()
        job = self._jobs.get(job_id)
        if job is None:
            raise TransportError("get_status", f"unknown job {job_id}", job_id=job_id, status_code=404)

        if job["status"] == JobStatus.PROCESSING.value:
            if job["pending_polls"] > 0:
                job["pending_polls"] -= 1
            else:
                await self._settle(job)

        payload = {k: job[k] for k in ("id", "videoName", "createdAt", "status")}
        if job["result"] is not None:
            payload.update(job["result"])
        return AnalysisJob.model_validate(payload)

    async def list_for_user(self) -> list[JobSummary]:
        await self._simulate_network()
        summaries = [
            JobSummary.model_validate({
                "id": job["id"],
                "videoName": job["videoName"],
                "createdAt": job["createdAt"],
                "status": job["status"],
                "deepfakeScore": (job["result"] or {}).get("deepfakeScore", 0),
            })
            for job in self._jobs.values()
        ]
        return sorted(summaries, key=lambda s: s.created_at, reverse=True)
