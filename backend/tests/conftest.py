import asyncio
import os
import tempfile

# must be set before deepcheck.db.repo builds its engine
_DB_DIR = tempfile.mkdtemp(prefix="deepcheck-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["ANALYSIS_API_URL"] = ""

import pytest
from fastapi.testclient import TestClient

from deepcheck.schemas.analysis import AnalysisJob


class VirtualClock:
    """Stand-in for asyncio.sleep: records delays and advances instantly."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    async def sleep(self, delay):
        self.sleeps.append(delay)
        self.now += delay
        await asyncio.sleep(0)


def job_payload(status, deepfake=0, frames=None, **extra):
    payload = {
        "videoName": "Sample_Video.mp4",
        "createdAt": "2026-10-01T12:00:00+00:00",
        "status": status,
        "deepfakeScore": deepfake,
        "manipulationScore": deepfake,
        "inconsistencyScore": deepfake,
        "audioAnalysisScore": deepfake,
        "frames": frames or [],
    }
    payload.update(extra)
    return payload


class ScriptedAnalysisService:
    """
    get_status answers from a script of payloads or exceptions, one per call;
    the last entry repeats. Records (job_id, virtual time) per call and the
    highest number of concurrent calls seen.
    """

    def __init__(self, script, clock=None):
        self.script = list(script)
        self.clock = clock
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def get_status(self, job_id):
        self.calls.append((job_id, self.clock.now if self.clock else None))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
            if isinstance(item, Exception):
                raise item
            return AnalysisJob.model_validate({"id": job_id, **item})
        finally:
            self.in_flight -= 1


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def scripted():
    return ScriptedAnalysisService


@pytest.fixture
def payload():
    return job_payload


@pytest.fixture(scope="session")
def client():
    from deepcheck.main import app
    with TestClient(app) as c:
        yield c
