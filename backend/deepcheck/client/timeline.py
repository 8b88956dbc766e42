"""
Timeline aggregation for the frame-by-frame anomaly strip.

Marker positions are relative to the LAST frame's timestamp, not to the video
duration: with frames at 0s and 12.5s the second marker sits at 100%.
"""
from __future__ import annotations
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict

from deepcheck.core import scoring
from deepcheck.core.scoring import Severity
from deepcheck.schemas.analysis import Frame

OPACITY_MIN = 0.5
OPACITY_MAX = 1.0


class _ViewModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class TimelineMarker(_ViewModel):
    index: int
    timestamp: float
    position: float         # percent of strip width
    opacity: float
    severity: Severity
    anomaly_score: float
    selected: bool = False


class RegionOverlay(_ViewModel):
    # CSS-style percentage offsets, copied verbatim from the region
    left: float
    top: float
    width: float
    height: float
    score: float
    label: str


class FrameDetail(_ViewModel):
    index: int
    timestamp: float
    timecode: str
    anomaly_score: float
    severity: Severity
    regions: tuple[RegionOverlay, ...] = ()


def marker_position(frames: Sequence[Frame], index: int) -> float:
    if len(frames) <= 1:
        return 0.0
    last = frames[-1].timestamp
    if last <= 0:
        return 0.0
    return frames[index].timestamp / last * 100


def marker_opacity(anomaly_score: float) -> float:
    return min(OPACITY_MAX, max(OPACITY_MIN, OPACITY_MIN + anomaly_score / 200))


def format_timecode(seconds: float) -> str:
    """12.5 -> '0:12', 75 -> '1:15'"""
    minutes = int(seconds // 60)
    remaining = int(seconds % 60)
    return f"{minutes}:{remaining:02d}"


def build_markers(frames: Sequence[Frame], selected: Optional[int] = None) -> list[TimelineMarker]:
    return [
        TimelineMarker(
            index=i,
            timestamp=frame.timestamp,
            position=marker_position(frames, i),
            opacity=marker_opacity(frame.anomaly_score),
            severity=scoring.classify(frame.anomaly_score),
            anomaly_score=frame.anomaly_score,
            selected=(i == selected),
        )
        for i, frame in enumerate(frames)
    ]


def frame_detail(frames: Sequence[Frame], index: int) -> FrameDetail:
    assert 0 <= index < len(frames), f"frame index {index} outside [0, {len(frames)})"
    frame = frames[index]
    return FrameDetail(
        index=index,
        timestamp=frame.timestamp,
        timecode=format_timecode(frame.timestamp),
        anomaly_score=frame.anomaly_score,
        severity=frame.severity,
        regions=tuple(
            RegionOverlay(
                left=r.x, top=r.y, width=r.width, height=r.height,
                score=r.score, label=f"{round(r.score)}%",
            )
            for r in frame.regions
        ),
    )


class Timeline:
    """Markers for a frame sequence plus the (single, optional) selected frame."""

    def __init__(self, frames: Sequence[Frame]) -> None:
        self.frames = tuple(frames)
        self.selected: Optional[int] = None

    def __len__(self) -> int:
        return len(self.frames)

    def select(self, index: Optional[int]) -> Optional[FrameDetail]:
        if index is None:
            self.selected = None
            return None
        assert 0 <= index < len(self.frames), f"frame index {index} outside [0, {len(self.frames)})"
        self.selected = index
        return frame_detail(self.frames, index)

    def clear(self) -> None:
        self.selected = None

    @property
    def markers(self) -> list[TimelineMarker]:
        return build_markers(self.frames, self.selected)

    @property
    def selected_detail(self) -> Optional[FrameDetail]:
        if self.selected is None:
            return None
        return frame_detail(self.frames, self.selected)
