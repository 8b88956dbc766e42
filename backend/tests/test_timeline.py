import pytest

from deepcheck.client.timeline import Timeline, build_markers, format_timecode, marker_opacity, marker_position
from deepcheck.core.scoring import Severity
from deepcheck.schemas.analysis import Frame


def _frames(*pairs, regions=None):
    return [
        Frame.model_validate({"timestamp": t, "anomalyScore": s, "regions": regions or []})
        for t, s in pairs
    ]


def test_two_frame_positions_and_opacities():
    markers = build_markers(_frames((0, 10), (12.5, 85)))
    assert [m.position for m in markers] == [0, 100]
    assert [m.opacity for m in markers] == pytest.approx([0.55, 0.925])
    assert [m.severity for m in markers] == [Severity.LOW, Severity.HIGH]


def test_positions_follow_last_timestamp_not_frame_count():
    frames = _frames((0, 0), (5, 0), (10, 0), (40, 0))
    assert [marker_position(frames, i) for i in range(4)] == [0, 12.5, 25, 100]


def test_single_frame_sits_at_origin():
    frames = _frames((42, 50))
    assert marker_position(frames, 0) == 0
    assert build_markers(frames)[0].position == 0


def test_empty_frames_give_no_markers():
    assert build_markers([]) == []


def test_all_zero_timestamps_do_not_divide_by_zero():
    frames = _frames((0, 10), (0, 20))
    assert [marker_position(frames, i) for i in range(2)] == [0, 0]


def test_opacity_bounds():
    assert marker_opacity(0) == 0.5
    assert marker_opacity(100) == 1.0
    assert marker_opacity(250) == 1.0
    assert marker_opacity(-40) == 0.5


def test_selection_resolves_exactly_one_frame():
    timeline = Timeline(_frames((0, 10), (12.5, 85), (25, 40)))
    assert timeline.selected_detail is None

    detail = timeline.select(1)
    assert detail.index == 1
    assert detail.timestamp == 12.5
    assert detail.timecode == "0:12"
    assert [m.selected for m in timeline.markers] == [False, True, False]

    timeline.select(None)
    assert timeline.selected is None
    assert not any(m.selected for m in timeline.markers)


@pytest.mark.parametrize("index", [-1, 3, 10])
def test_out_of_range_selection_is_rejected(index):
    timeline = Timeline(_frames((0, 10), (12.5, 85), (25, 40)))
    with pytest.raises(AssertionError):
        timeline.select(index)
    assert timeline.selected is None


def test_region_overlay_uses_raw_percentages():
    region = {"x": 95, "y": 20.5, "width": 30, "height": 12, "score": 77.6}
    timeline = Timeline(_frames((0, 80), regions=[region]))
    overlay = timeline.select(0).regions[0]
    assert (overlay.left, overlay.top, overlay.width, overlay.height) == (95, 20.5, 30, 12)
    assert overlay.label == "78%"


@pytest.mark.parametrize("seconds, expected", [(0, "0:00"), (12.5, "0:12"), (75, "1:15"), (600.9, "10:00")])
def test_format_timecode(seconds, expected):
    assert format_timecode(seconds) == expected
