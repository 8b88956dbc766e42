"""
Upload coordinator: validates the picked file, uploads it while showing an
estimated progress bar, then starts tracking the returned job.

Progress is a client-side estimate. It climbs by ``UPLOAD_PROGRESS_STEP``
every ``UPLOAD_PROGRESS_TICK_SECONDS`` up to ``UPLOAD_PROGRESS_CAP`` and only
reaches 100 once the Upload Service has answered.
"""
from __future__ import annotations
import asyncio
from enum import Enum
from typing import Callable, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict

from deepcheck.client.poller import JobPoller, Sleep, TrackingSession
from deepcheck.core.config import Settings, get_settings
from deepcheck.core.errors import TransportError, ValidationError, ValidationReason
from deepcheck.core.logging import get_logger
from deepcheck.schemas.video import VideoFile
from deepcheck.services.analysis_gateway import UploadService

logger = get_logger(__name__)


class Notice(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    variant: str = "default"     # default | destructive


class UploadPhase(str, Enum):
    IDLE = "idle"               # nothing selected
    READY = "ready"             # valid file selected
    UPLOADING = "uploading"
    DONE = "done"


class UploadOutcome(NamedTuple):
    job_id: str
    session: TrackingSession
    result_path: str


def validate_video_file(file: VideoFile, max_bytes: int) -> VideoFile:
    """Type first, then size. Raises ValidationError."""
    if not file.content_type.startswith("video/"):
        raise ValidationError(ValidationReason.UNSUPPORTED_TYPE, "Please upload a video file")
    if file.size > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise ValidationError(ValidationReason.FILE_TOO_LARGE, f"Please upload a video smaller than {limit_mb}MB")
    return file


_REJECTION_TITLES = {
    ValidationReason.UNSUPPORTED_TYPE: "Invalid file type",
    ValidationReason.FILE_TOO_LARGE: "File too large",
}


class UploadCoordinator:
    def __init__(
        self,
        upload_service: UploadService,
        poller: JobPoller,
        settings: Optional[Settings] = None,
        sleep: Optional[Sleep] = None,
        notify: Optional[Callable[[Notice], None]] = None,
        on_progress: Optional[Callable[[int], None]] = None,
    ) -> None:
        self._upload_service = upload_service
        self._poller = poller
        self._settings = settings or get_settings()
        self._sleep = sleep or asyncio.sleep
        self._notify = notify or (lambda notice: None)
        self._on_progress = on_progress or (lambda value: None)

        self.phase = UploadPhase.IDLE
        self.file: Optional[VideoFile] = None
        self.progress = 0

    def select_file(self, file: VideoFile) -> VideoFile:
        if self.phase is UploadPhase.UPLOADING:
            raise RuntimeError("cannot change file while uploading")
        try:
            validate_video_file(file, self._settings.UPLOAD_MAX_BYTES)
        except ValidationError as exc:
            logger.info("rejected %s: %s", file.name, exc.reason.value)
            self._notify(Notice(title=_REJECTION_TITLES[exc.reason], description=exc.message, variant="destructive"))
            raise
        self.file = file
        self.phase = UploadPhase.READY
        return file

    def clear(self) -> None:
        if self.phase is UploadPhase.UPLOADING:
            raise RuntimeError("cannot change file while uploading")
        self.file = None
        self.phase = UploadPhase.IDLE
        self._set_progress(0)

    async def submit(self, file: Optional[VideoFile] = None) -> UploadOutcome:
        if self.phase is UploadPhase.UPLOADING:
            raise RuntimeError("upload already in progress")
        if file is not None:
            self.select_file(file)
        if self.file is None:
            raise RuntimeError("no file selected")

        video = self.file
        self.phase = UploadPhase.UPLOADING
        self._set_progress(0)
        ticker = asyncio.get_running_loop().create_task(self._tick())
        try:
            try:
                job_id = await self._upload_service.upload(video)
            finally:
                ticker.cancel()
                await asyncio.gather(ticker, return_exceptions=True)
        except TransportError as exc:
            logger.warning("upload failed for %s: %s", video.name, exc.message)
            self._reset()
            self._notify(Notice(
                title="Upload failed",
                description="There was a problem uploading your video",
                variant="destructive",
            ))
            raise
        except BaseException:
            # cancelled by the caller, or the service broke its contract
            logger.info("upload of %s abandoned", video.name)
            self._reset()
            raise

        self._set_progress(100)
        self.phase = UploadPhase.DONE
        self._notify(Notice(title="Upload successful", description="Your video is being analyzed"))
        logger.info("upload complete %s -> job=%s", video.name, job_id)

        session = self._poller.track(job_id)
        return UploadOutcome(job_id=job_id, session=session, result_path=f"/results/{job_id}")

    async def _tick(self) -> None:
        cap = self._settings.UPLOAD_PROGRESS_CAP
        while self.progress < cap:
            await self._sleep(self._settings.UPLOAD_PROGRESS_TICK_SECONDS)
            self._set_progress(min(cap, self.progress + self._settings.UPLOAD_PROGRESS_STEP))

    def _set_progress(self, value: int) -> None:
        if value != self.progress:
            self.progress = value
            self._on_progress(value)

    def _reset(self) -> None:
        """Back to the pre-upload state; the file stays selected."""
        self.phase = UploadPhase.READY
        self._set_progress(0)
