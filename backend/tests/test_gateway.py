import asyncio

import httpx
import pytest

from deepcheck.core.config import Settings
from deepcheck.core.errors import TransportError
from deepcheck.core.scoring import JobStatus
from deepcheck.schemas.video import VideoFile
from deepcheck.services.analysis_gateway import HttpAnalysisService, get_analysis_service
from deepcheck.services.analysis_simulator import AnalysisSimulator


def _service(handler):
    return HttpAnalysisService("http://analysis.test", transport=httpx.MockTransport(handler), user_id="demo_user")


def test_get_status_parses_flat_payload(payload):
    def handler(request):
        assert request.url.path == "/analyses/abc123"
        assert request.headers["X-User-Id"] == "demo_user"
        return httpx.Response(200, json={"id": "abc123", **payload("complete", deepfake=82)})

    job = asyncio.run(_service(handler).get_status("abc123"))
    assert job.status is JobStatus.COMPLETE
    assert job.result.deepfake_score == 82
    assert job.flagged


def test_http_error_becomes_transport_error():
    def handler(request):
        return httpx.Response(503, json={"detail": "busy"})

    with pytest.raises(TransportError) as info:
        asyncio.run(_service(handler).get_status("abc123"))
    assert info.value.status_code == 503
    assert info.value.job_id == "abc123"
    assert info.value.operation == "get_status"


def test_connection_failure_becomes_transport_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TransportError) as info:
        asyncio.run(_service(handler).get_status("abc123"))
    assert info.value.status_code is None


def test_malformed_payload_is_not_a_snapshot():
    def handler(request):
        return httpx.Response(200, json={"id": "abc123", "status": "exploded"})

    with pytest.raises(TransportError):
        asyncio.run(_service(handler).get_status("abc123"))


def test_non_json_body_is_transport_error():
    def handler(request):
        return httpx.Response(200, text="<html>gateway</html>")

    with pytest.raises(TransportError):
        asyncio.run(_service(handler).get_status("abc123"))


def test_upload_posts_multipart_and_returns_id():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = request.read()
        return httpx.Response(200, json={"id": "abc123"})

    video = VideoFile.from_bytes("clip.mp4", b"\x00\x01fake-mp4")
    assert video.content_type == "video/mp4"
    job_id = asyncio.run(_service(handler).upload(video))
    assert job_id == "abc123"
    assert seen["path"] == "/videos"
    assert b'name="video"' in seen["body"]
    assert b"fake-mp4" in seen["body"]


def test_upload_without_id_is_transport_error():
    def handler(request):
        return httpx.Response(200, json={})

    with pytest.raises(TransportError):
        asyncio.run(_service(handler).upload(VideoFile.from_bytes("clip.mp4", b"x")))


def test_list_for_user_sorted_newest_first():
    def handler(request):
        return httpx.Response(200, json={"analyses": [
            {"id": "old", "videoName": "a.mp4", "createdAt": "2026-09-01T00:00:00Z", "status": "complete", "deepfakeScore": 20},
            {"id": "new", "videoName": "b.mp4", "createdAt": "2026-10-01T00:00:00Z", "status": "processing"},
        ]})

    summaries = asyncio.run(_service(handler).list_for_user())
    assert [s.id for s in summaries] == ["new", "old"]
    assert summaries[1].status_label == "Authentic"


def test_simulator_used_when_no_remote_configured():
    assert isinstance(get_analysis_service(Settings(ANALYSIS_API_URL="")), AnalysisSimulator)
    remote = get_analysis_service(Settings(ANALYSIS_API_URL="http://analysis.test"))
    assert isinstance(remote, HttpAnalysisService)
    assert remote.base_url == "http://analysis.test"
