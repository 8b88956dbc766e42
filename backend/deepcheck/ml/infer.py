"""
Placeholder video analyzer. The real inference model plugs in here.
This stub returns deterministic plausible scores (seeded from the video
bytes) so the service can run end-to-end without a model.
"""
from __future__ import annotations
import hashlib
import random

FRAME_COUNT = 10
FRAME_SPACING_SECONDS = 12.5


def _bounded(value: float) -> float:
    return round(min(100.0, max(0.0, value)), 2)


def _regions(rng: random.Random, anomaly: float) -> list[dict]:
    if anomaly > 60:
        return [
            {
                "x": round(20 + rng.random() * 10, 2),
                "y": round(20 + rng.random() * 10, 2),
                "width": round(30 + rng.random() * 10, 2),
                "height": round(30 + rng.random() * 10, 2),
                "score": _bounded(anomaly + (rng.random() * 10 - 5)),
            },
            {
                "x": round(60 + rng.random() * 10, 2),
                "y": round(40 + rng.random() * 10, 2),
                "width": round(25 + rng.random() * 5, 2),
                "height": round(25 + rng.random() * 5, 2),
                "score": _bounded(anomaly - rng.random() * 20),
            },
        ]
    if anomaly > 30:
        return [
            {
                "x": round(40 + rng.random() * 10, 2),
                "y": round(30 + rng.random() * 10, 2),
                "width": round(20 + rng.random() * 10, 2),
                "height": round(20 + rng.random() * 10, 2),
                "score": anomaly,
            }
        ]
    return []


async def analyze_video_bytes(video_bytes: bytes) -> dict:
    """
    Model interface.

    Returns the score fields of a completed analysis (camelCase, 0-100):
    {
        "deepfakeScore": float,
        "manipulationScore": float,
        "inconsistencyScore": float,
        "audioAnalysisScore": float,
        "frames": [{"timestamp", "anomalyScore", "regions": [...]}, ...]
    }

    Raises ValueError on an empty clip.
    """
    if not video_bytes:
        raise ValueError("empty video")

    # Stub: same bytes -> same report
    seed = int.from_bytes(hashlib.sha256(video_bytes).digest()[:8], "big")
    rng = random.Random(seed)
    deepfake = float(rng.randint(0, 99))

    frames = []
    for i in range(FRAME_COUNT):
        anomaly = _bounded(deepfake + (rng.random() * 40 - 20))
        frames.append({
            "timestamp": i * FRAME_SPACING_SECONDS,
            "anomalyScore": anomaly,
            "regions": _regions(rng, anomaly),
        })

    return {
        "deepfakeScore": deepfake,
        "manipulationScore": _bounded(deepfake + (rng.random() * 20 - 10)),
        "inconsistencyScore": _bounded(deepfake + (rng.random() * 20 - 10)),
        "audioAnalysisScore": _bounded(deepfake + (rng.random() * 30 - 15)),
        "frames": frames,
    }
