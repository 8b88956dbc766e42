import pytest
from pydantic import ValidationError

from deepcheck.core.scoring import JobStatus, Severity
from deepcheck.schemas.analysis import AnalysisJob, AnalysisResult, Frame


def test_processing_snapshot_has_no_result(payload):
    job = AnalysisJob.model_validate({"id": "abc123", **payload("processing")})
    assert job.status is JobStatus.PROCESSING
    assert job.result is None
    assert not job.is_terminal
    assert not job.flagged


def test_failed_snapshot_is_terminal_without_result(payload):
    job = AnalysisJob.model_validate({"id": "abc123", **payload("failed")})
    assert job.is_terminal
    assert job.result is None


def test_complete_snapshot_nests_result_and_recomputes_face_swap(payload):
    data = payload("complete", deepfake=82, faceSwapDetected=False)
    job = AnalysisJob.model_validate({"id": "abc123", **data})
    assert job.result.deepfake_score == 82
    assert job.result.face_swap_detected is True
    assert job.result.severity is Severity.HIGH
    assert job.flagged


def test_scores_are_clamped():
    result = AnalysisResult.model_validate({
        "deepfakeScore": 140,
        "manipulationScore": -3,
        "frames": [{"timestamp": 0, "anomalyScore": 250,
                    "regions": [{"x": 10, "y": 10, "width": 120, "height": 5, "score": -1}]}],
    })
    assert result.deepfake_score == 100
    assert result.manipulation_score == 0
    frame = result.frames[0]
    assert frame.anomaly_score == 100
    assert frame.regions[0].score == 0
    # geometry is not a score and keeps its overflow
    assert frame.regions[0].width == 120


def test_frames_are_ordered_by_timestamp():
    result = AnalysisResult.model_validate({
        "deepfakeScore": 10,
        "frames": [
            {"timestamp": 25, "anomalyScore": 1},
            {"timestamp": 0, "anomalyScore": 2},
            {"timestamp": 12.5, "anomalyScore": 3},
        ],
    })
    assert [f.timestamp for f in result.frames] == [0, 12.5, 25]


def test_negative_timestamp_rejected():
    with pytest.raises(ValidationError):
        Frame.model_validate({"timestamp": -1, "anomalyScore": 5})


def test_snapshots_are_immutable(payload):
    job = AnalysisJob.model_validate({"id": "abc123", **payload("processing")})
    with pytest.raises(ValidationError):
        job.status = JobStatus.COMPLETE


def test_to_payload_is_flat_camel_case(payload):
    frames = [{"timestamp": 0, "anomalyScore": 10, "regions": []}]
    job = AnalysisJob.model_validate({"id": "abc123", **payload("complete", deepfake=61, frames=frames)})
    wire = job.to_payload()
    assert wire["id"] == "abc123"
    assert wire["status"] == "complete"
    assert wire["faceSwapDetected"] is True
    assert wire["frames"][0]["anomalyScore"] == 10
    assert AnalysisJob.model_validate(wire) == job
