"""Analysis job identifiers."""
from __future__ import annotations
import uuid

JOB_ID_PREFIX = "job_"


def new_job_id() -> str:
    """Opaque, URL-safe, unique per uploaded video."""
    return f"{JOB_ID_PREFIX}{uuid.uuid4().hex}"
