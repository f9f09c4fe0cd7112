"""Tests for evaluation job models."""

import pytest

from modelwhiz.jobs.models import EvaluationJob, EvaluationRequest, JobStatus
from modelwhiz.metrics.models import TaskType
from modelwhiz.utils.validation import ValidationError


@pytest.fixture
def request_files(tmp_path):
    model = tmp_path / "iris.pkl"
    model.write_bytes(b"model")
    dataset = tmp_path / "iris.csv"
    dataset.write_text("sepal_length,species\n5.1,setosa\n")
    return model, dataset


def test_parse_is_case_insensitive():
    assert JobStatus.parse("processing") == JobStatus.PROCESSING
    assert JobStatus.parse(" Completed ") == JobStatus.COMPLETED
    with pytest.raises(ValueError):
        JobStatus.parse("QUEUED")
    with pytest.raises(ValueError):
        JobStatus.parse(None)


def test_advance_moves_forward():
    job = EvaluationJob.pending(42, "Iris v1")
    assert job.advance(JobStatus.PROCESSING)
    assert job.advance(JobStatus.COMPLETED)
    assert job.status == JobStatus.COMPLETED


def test_advance_ignores_backward_and_post_terminal_moves(caplog):
    job = EvaluationJob.pending(42)
    job.advance(JobStatus.PROCESSING)

    with caplog.at_level("WARNING"):
        assert not job.advance(JobStatus.PENDING)
    assert job.status == JobStatus.PROCESSING
    assert any("Ignoring status PENDING" in r.message for r in caplog.records)

    job.advance(JobStatus.FAILED)
    assert not job.advance(JobStatus.COMPLETED)
    assert job.status == JobStatus.FAILED


def test_pending_can_jump_straight_to_terminal():
    job = EvaluationJob.pending(1)
    assert job.advance(JobStatus.FAILED)


def test_from_dict_accepts_id_or_job_id():
    listed = EvaluationJob.from_dict(
        {
            "id": 5,
            "model_name": "Iris v1",
            "status": "COMPLETED",
            "created_at": "2024-05-01T10:00:00Z",
        }
    )
    assert listed.job_id == 5
    assert listed.created_at.year == 2024
    assert EvaluationJob.from_dict({"job_id": 6, "status": "PENDING"}).job_id == 6
    with pytest.raises(ValueError):
        EvaluationJob.from_dict({"status": "PENDING"})


def test_apply_results_and_views():
    job = EvaluationJob.pending(42, "Iris v1")
    job.advance(JobStatus.COMPLETED)
    job.apply_results(
        {
            "status": "COMPLETED",
            "results": {
                "accuracy": 0.93,
                "f1_score": 0.91,
                "insights": ["Model is well calibrated"],
            },
            "artifacts": {"plot_url": "/static/plots/42.png"},
        }
    )

    assert job.metric_items() == [("accuracy", 0.93), ("f1_score", 0.91)]
    assert job.insights == ["Model is well calibrated"]
    assert job.plot_url == "/static/plots/42.png"
    assert job.task_type == TaskType.CLASSIFICATION
    assert job.to_dict()["status"] == "COMPLETED"


def test_regression_results_detected_by_rmse():
    job = EvaluationJob.pending(1)
    job.results = {"rmse": 0.4, "r2_score": 0.8}
    assert job.task_type == TaskType.REGRESSION


def test_failed_job_without_results():
    job = EvaluationJob.pending(1)
    job.apply_results({"status": "FAILED", "error_message": "Target column missing"})

    assert job.status == JobStatus.FAILED
    assert job.metric_items() == []
    assert job.insights == []
    assert job.error_message == "Target column missing"


def test_request_validation_names_missing_fields(request_files):
    model, dataset = request_files
    request = EvaluationRequest(model, dataset, "Iris v1", "", None)

    with pytest.raises(ValidationError) as exc_info:
        request.validate()
    assert "target column" in str(exc_info.value)
    assert "user id" in str(exc_info.value)


def test_request_requires_preprocessor_when_flagged(request_files):
    model, dataset = request_files
    request = EvaluationRequest(
        model, dataset, "Iris v1", "species", "u123", needs_preprocessor=True
    )
    with pytest.raises(ValidationError, match="preprocessor file"):
        request.validate()


def test_request_rejects_missing_file(request_files, tmp_path):
    _, dataset = request_files
    request = EvaluationRequest(tmp_path / "nope.pkl", dataset, "m", "y", "u1")
    with pytest.raises(ValidationError, match="File not found"):
        request.validate()


def test_request_payload(request_files):
    model, dataset = request_files
    request = EvaluationRequest(model, dataset, " Iris v1 ", "species ", "u123")
    request.validate()

    assert request.form_data() == {
        "model_name": "Iris v1",
        "target_column": "species",
        "user_id": "u123",
    }
    files = request.files()
    assert set(files) == {"model_file", "dataset"}
    assert files["dataset"][0] == "iris.csv"
    assert files["dataset"][2] == "text/csv"


def test_apply_results_tolerates_odd_payloads():
    job = EvaluationJob.pending(1, "Iris v1")
    job.apply_results(
        {
            "status": "ARCHIVED",
            "model_name": "Renamed",
            "results": "see dashboard",
            "artifacts": ["plot.png"],
        }
    )

    assert job.status == JobStatus.PENDING
    assert job.model_name == "Iris v1"
    assert job.metric_items() == []
    assert job.plot_url is None
