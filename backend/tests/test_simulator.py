import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from deepcheck.core.errors import TransportError
from deepcheck.core.scoring import JobStatus
from deepcheck.ml.infer import analyze_video_bytes
from deepcheck.schemas.video import VideoFile
from deepcheck.services.analysis_simulator import AnalysisSimulator


def test_job_settles_once_and_stays_settled():
    sim = AnalysisSimulator(processing_polls=1)

    async def main():
        job_id = await sim.upload(VideoFile.from_bytes("clip.mp4", b"some video bytes"))
        return [await sim.get_status(job_id) for _ in range(4)]

    snaps = asyncio.run(main())
    assert [s.status for s in snaps] == [JobStatus.PROCESSING] + [JobStatus.COMPLETE] * 3
    assert snaps[1] == snaps[2] == snaps[3]


def test_empty_upload_ends_failed():
    sim = AnalysisSimulator(processing_polls=0)

    async def main():
        job_id = await sim.upload(VideoFile(name="empty.mp4", content_type="video/mp4", size=0))
        return await sim.get_status(job_id)

    job = asyncio.run(main())
    assert job.status is JobStatus.FAILED
    assert job.result is None


def test_scripted_failure():
    sim = AnalysisSimulator(processing_polls=0)
    sim.register("bad", fail=True)
    assert asyncio.run(sim.get_status("bad")).status is JobStatus.FAILED


def test_unknown_job_is_transport_error():
    with pytest.raises(TransportError) as info:
        asyncio.run(AnalysisSimulator().get_status("nope"))
    assert info.value.status_code == 404


def test_listing_is_newest_first():
    sim = AnalysisSimulator(processing_polls=0)
    base = datetime(2026, 10, 1, tzinfo=timezone.utc)
    sim.register("a", created_at=base, result={"deepfakeScore": 90})
    sim.register("b", created_at=base + timedelta(days=2))
    sim.register("c", created_at=base + timedelta(days=1))

    async def main():
        await sim.get_status("a")
        return await sim.list_for_user()

    summaries = asyncio.run(main())
    assert [s.id for s in summaries] == ["b", "c", "a"]
    assert summaries[-1].flagged
    assert not summaries[0].flagged


def test_placeholder_analyzer_is_deterministic():
    first = asyncio.run(analyze_video_bytes(b"same clip"))
    second = asyncio.run(analyze_video_bytes(b"same clip"))
    assert first == second
    assert 0 <= first["deepfakeScore"] <= 100
    assert [f["timestamp"] for f in first["frames"]] == [i * 12.5 for i in range(10)]
    for frame in first["frames"]:
        for region in frame["regions"]:
            assert 0 <= region["score"] <= 100


def test_placeholder_analyzer_rejects_empty_clip():
    with pytest.raises(ValueError):
        asyncio.run(analyze_video_bytes(b""))
