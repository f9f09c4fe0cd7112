"""Tests for evaluation job endpoints."""

import pytest

from modelwhiz.core.client import ApiClient
from modelwhiz.error_handling import ApiError
from modelwhiz.jobs import EvaluationRequest, JobStatus
from modelwhiz.services import EvaluationService


@pytest.fixture
def evaluation_request(tmp_path):
    model = tmp_path / "iris.pkl"
    model.write_bytes(b"model")
    dataset = tmp_path / "iris.csv"
    dataset.write_text("species\nsetosa\n")
    preprocessor = tmp_path / "prep.pkl"
    preprocessor.write_bytes(b"prep")
    request = EvaluationRequest(
        model, dataset, "Iris v1", "species", "u123", preprocessor_file=preprocessor
    )
    request.validate()
    return request


@pytest.mark.asyncio
async def test_start_evaluation_returns_job_id(fake_api, evaluation_request):
    fake_api.add("POST", "/evaluations/start", {"job_id": 42})

    async with ApiClient(fake_api.BASE_URL, transport=fake_api.transport) as client:
        job_id = await EvaluationService(client).start_evaluation(evaluation_request)

    assert job_id == 42
    body = fake_api.calls("POST", "/evaluations/start")[0].content
    assert b'name="preprocessor_file"; filename="prep.pkl"' in body


@pytest.mark.asyncio
async def test_start_evaluation_without_job_id(fake_api, evaluation_request):
    fake_api.add("POST", "/evaluations/start", {"status": "PENDING"})

    async with ApiClient(fake_api.BASE_URL, transport=fake_api.transport) as client:
        with pytest.raises(ApiError, match="no job id"):
            await EvaluationService(client).start_evaluation(evaluation_request)


@pytest.mark.asyncio
async def test_list_jobs(fake_api):
    fake_api.add(
        "GET",
        "/evaluations/",
        [
            {"id": 1, "model_name": "Iris v1", "status": "COMPLETED", "created_at": "2024-05-01T10:00:00Z"},
            {"id": 2, "model_name": "Iris v2", "status": "PROCESSING", "created_at": "2024-05-02T10:00:00Z"},
            {"model_name": "broken"},
        ],
    )

    async with ApiClient(fake_api.BASE_URL, transport=fake_api.transport) as client:
        jobs = await EvaluationService(client).list_jobs("u123")

    assert [(job.job_id, job.status) for job in jobs] == [
        (1, JobStatus.COMPLETED),
        (2, JobStatus.PROCESSING),
    ]
    assert fake_api.calls("GET", "/evaluations/")[0].url.params["user_id"] == "u123"


@pytest.mark.asyncio
async def test_status_and_results_paths(fake_api):
    fake_api.add("GET", "/evaluations/42/status", {"status": "PENDING", "model_name": "m"})
    fake_api.add("GET", "/evaluations/42/results", {"job_id": 42, "status": "COMPLETED"})

    async with ApiClient(fake_api.BASE_URL, transport=fake_api.transport) as client:
        service = EvaluationService(client)
        status = await service.get_job_status(42)
        results = await service.get_job_results(42)

    assert status["status"] == "PENDING"
    assert results["job_id"] == 42


@pytest.mark.asyncio
async def test_status_body_must_be_an_object(fake_api):
    fake_api.add("GET", "/evaluations/4/status", ["PENDING"])
    notified = []

    async with ApiClient(
        fake_api.BASE_URL, on_error=notified.append, transport=fake_api.transport
    ) as client:
        with pytest.raises(ApiError, match="Unexpected status response"):
            await EvaluationService(client).get_job_status(4)

    assert len(notified) == 1


@pytest.mark.asyncio
async def test_list_jobs_ignores_non_list_body(fake_api):
    fake_api.add("GET", "/evaluations/", {"detail": "maintenance"})

    async with ApiClient(fake_api.BASE_URL, transport=fake_api.transport) as client:
        assert await EvaluationService(client).list_jobs("u123") == []
