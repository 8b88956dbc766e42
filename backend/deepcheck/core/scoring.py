"""
Score classification shared by the report, the timeline and the dashboard.

Two independent thresholds live here:
  * display / flag: a score of 70 or more reads as "likely fake"
  * face swap: a deepfake score strictly above 60 sets ``faceSwapDetected``
"""
from __future__ import annotations
import math
from enum import Enum
from typing import Iterable

SCORE_MIN = 0.0
SCORE_MAX = 100.0

SUSPICIOUS_THRESHOLD = 30
LIKELY_FAKE_THRESHOLD = 70       # also the dashboard "flagged" cutoff
FACE_SWAP_THRESHOLD = 60


class JobStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.PROCESSING


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


_VERDICTS = {
    Severity.LOW: "authentic",
    Severity.MEDIUM: "suspicious",
    Severity.HIGH: "likely-fake",
}

_VERDICT_TITLES = {
    Severity.LOW: "Authentic",
    Severity.MEDIUM: "Suspicious",
    Severity.HIGH: "Likely Fake",
}


def clamp_score(value: float) -> float:
    """Clamp into [0, 100]. NaN collapses to 0."""
    value = float(value)
    if math.isnan(value):
        return SCORE_MIN
    return min(SCORE_MAX, max(SCORE_MIN, value))


def classify(score: float) -> Severity:
    score = clamp_score(score)
    if score < SUSPICIOUS_THRESHOLD:
        return Severity.LOW
    if score < LIKELY_FAKE_THRESHOLD:
        return Severity.MEDIUM
    return Severity.HIGH


def verdict(score: float) -> str:
    """authentic | suspicious | likely-fake"""
    return _VERDICTS[classify(score)]


def face_swap_detected(deepfake_score: float) -> bool:
    return clamp_score(deepfake_score) > FACE_SWAP_THRESHOLD


def is_flagged(status: JobStatus | str, deepfake_score: float) -> bool:
    return JobStatus(status) is JobStatus.COMPLETE and classify(deepfake_score) is Severity.HIGH


def status_label(status: JobStatus | str, deepfake_score: float) -> str:
    """Badge text for a job in the history listing."""
    status = JobStatus(status)
    if status is JobStatus.PROCESSING:
        return "Processing"
    if status is JobStatus.FAILED:
        return "Failed"
    return _VERDICT_TITLES[classify(deepfake_score)]


def filter_flagged(summaries: Iterable) -> list:
    """Keep summaries (anything with ``status`` and ``deepfake_score``) that are flagged."""
    return [s for s in summaries if is_flagged(s.status, s.deepfake_score)]
