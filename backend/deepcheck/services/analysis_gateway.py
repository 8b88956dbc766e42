"""
Analysis / Upload Service gateway.
Talks HTTP to ANALYSIS_API_URL when configured; falls back to the in-process
simulator when it is absent.
"""
from __future__ import annotations
from typing import Optional, Protocol

import httpx
from pydantic import ValidationError as PydanticValidationError

from deepcheck.core.config import Settings, get_settings
from deepcheck.core.errors import TransportError
from deepcheck.core.logging import get_logger
from deepcheck.schemas.analysis import AnalysisJob, JobSummary
from deepcheck.schemas.video import VideoFile

logger = get_logger(__name__)


class UploadService(Protocol):
    async def upload(self, video: VideoFile) -> str:
        """Returns the job id assigned to the uploaded video."""
        ...


class AnalysisService(Protocol):
    async def get_status(self, job_id: str) -> AnalysisJob:
        ...

    async def list_for_user(self) -> list[JobSummary]:
        ...


class HttpAnalysisService:
    """Both service contracts over the REST API served by ``deepcheck.main``."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        user_id: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.user_id = user_id
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {"X-User-Id": self.user_id} if self.user_id else {}
        return httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout,
            headers=headers, transport=self._transport,
        )

    async def _request(self, operation: str, method: str, url: str,
                       job_id: Optional[str] = None, **kwargs) -> dict:
        try:
            async with self._client() as client:
                resp = await client.request(method, url, **kwargs)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as exc:
            code = exc.response.status_code
            logger.warning("%s failed job=%s status=%d", operation, job_id, code)
            raise TransportError(
                operation, f"{operation} returned HTTP {code}", job_id=job_id, status_code=code,
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("%s failed job=%s: %s", operation, job_id, exc)
            raise TransportError(operation, f"{operation} failed: {exc}", job_id=job_id) from exc
        except ValueError as exc:      # body was not JSON
            raise TransportError(operation, f"{operation} returned malformed JSON", job_id=job_id) from exc

    async def upload(self, video: VideoFile) -> str:
        data = await self._request(
            "upload", "POST", "/videos",
            files={"video": (video.name, video.data, video.content_type or "application/octet-stream")},
        )
        job_id = data.get("id") if isinstance(data, dict) else None
        if not job_id:
            raise TransportError("upload", "upload response carried no job id")
        logger.info("uploaded %s -> job=%s", video.name, job_id)
        return str(job_id)

    async def get_status(self, job_id: str) -> AnalysisJob:
        data = await self._request("get_status", "GET", f"/analyses/{job_id}", job_id=job_id)
        try:
            return AnalysisJob.model_validate(data)
        except PydanticValidationError as exc:
            raise TransportError(
                "get_status", f"malformed analysis payload: {exc.error_count()} error(s)", job_id=job_id,
            ) from exc

    async def list_for_user(self) -> list[JobSummary]:
        data = await self._request("list_for_user", "GET", "/analyses")
        try:
            summaries = [JobSummary.model_validate(item) for item in data.get("analyses", [])]
        except (AttributeError, PydanticValidationError) as exc:
            raise TransportError("list_for_user", "malformed analysis listing") from exc
        return sorted(summaries, key=lambda s: s.created_at, reverse=True)


def get_analysis_service(settings: Optional[Settings] = None):
    """HTTP gateway when ANALYSIS_API_URL is set, otherwise the simulator."""
    settings = settings or get_settings()
    if settings.analysis_api_configured:
        return HttpAnalysisService(
            settings.ANALYSIS_API_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            user_id=settings.DEFAULT_USER_ID,
        )
    from deepcheck.services.analysis_simulator import AnalysisSimulator
    logger.info("ANALYSIS_API_URL not set, using analysis simulator")
    return AnalysisSimulator(processing_polls=settings.SIMULATOR_PROCESSING_POLLS)
