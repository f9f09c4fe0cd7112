"""Evaluation job endpoints."""

import logging
from typing import Any

from modelwhiz.error_handling import ApiError
from modelwhiz.jobs.models import EvaluationJob, EvaluationRequest
from modelwhiz.services.base import BaseService

logger = logging.getLogger(__name__)


class EvaluationService(BaseService):
    """Start evaluation jobs and read their status and results."""

    async def start_evaluation(self, request: EvaluationRequest) -> int | str:
        """Submit a validated request.

        Returns:
            The job id assigned by the evaluation service

        Raises:
            ApiError: On transport failure or a response without a job id
        """
        data = await self.client.post(
            "/evaluations/start", data=request.form_data(), files=request.files()
        )
        job_id = data.get("job_id") if isinstance(data, dict) else None
        if job_id is None:
            raise ApiError("Evaluation service returned no job id", payload=data)

        logger.info(f"Started evaluation job {job_id} for {request.model_name}")
        return job_id

    def _expect_object(self, data: Any, what: str) -> dict[str, Any]:
        if isinstance(data, dict):
            return data
        error = ApiError(
            f"Unexpected {what} response from evaluation service", payload=data
        )
        self.client.on_error(error)
        raise error

    async def get_job_status(self, job_id: int | str) -> dict[str, Any]:
        """Get ``{status, model_name}`` for a job.

        Raises:
            ApiError: On transport failure or a body that is not a JSON object
        """
        data = await self.client.get(f"/evaluations/{job_id}/status")
        return self._expect_object(data, "status")

    async def get_job_results(self, job_id: int | str) -> dict[str, Any]:
        """Get the terminal snapshot of a job.

        Only meaningful after COMPLETED or FAILED has been observed.
        """
        data = await self.client.get(f"/evaluations/{job_id}/results")
        return self._expect_object(data, "results")

    async def list_jobs(self, user_id: str) -> list[EvaluationJob]:
        """List the user's evaluation jobs."""
        data = await self.client.get("/evaluations/", params={"user_id": user_id})
        jobs = []
        for item in data if isinstance(data, list) else []:
            if not isinstance(item, dict):
                logger.warning(f"Skipping malformed entry: {item!r}")
                continue
            try:
                jobs.append(EvaluationJob.from_dict(item))
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping malformed job entry: {e}")
        return jobs
