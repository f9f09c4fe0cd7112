"""Evaluation job data models and types."""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from modelwhiz.core.client import file_part
from modelwhiz.metrics.models import TaskType, infer_task_type, parse_timestamp
from modelwhiz.utils.validation import (
    ValidationError,
    require_fields,
    validate_file_path,
    validate_model_name,
)

logger = logging.getLogger(__name__)


class JobStatus(Enum):
    """Evaluation job status as reported by the evaluation service."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def rank(self) -> int:
        """Position in PENDING < PROCESSING < {COMPLETED, FAILED}."""
        return _STATUS_RANK[self]

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)

    @classmethod
    def parse(cls, value: Any) -> "JobStatus":
        """Parse a status string case-insensitively.

        Raises:
            ValueError: If the value is not a known status
        """
        if isinstance(value, JobStatus):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Invalid job status: {value!r}")
        return cls(value.strip().upper())


_STATUS_RANK = {
    JobStatus.PENDING: 0,
    JobStatus.PROCESSING: 1,
    JobStatus.COMPLETED: 2,
    JobStatus.FAILED: 2,
}


@dataclass
class EvaluationJob:
    """Local, disposable snapshot of a server-side evaluation job."""

    job_id: int | str
    status: JobStatus
    model_name: str = ""
    results: dict[str, Any] | None = None
    artifacts: dict[str, Any] | None = None
    error_message: str | None = None
    created_at: datetime | None = None

    @classmethod
    def pending(cls, job_id: int | str, model_name: str = "") -> "EvaluationJob":
        """Snapshot for a job that was just submitted."""
        return cls(job_id=job_id, status=JobStatus.PENDING, model_name=model_name)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EvaluationJob":
        """Create a job from a status, results or list payload."""
        job_id = data.get("job_id", data.get("id"))
        if job_id is None:
            raise ValueError("Job payload has no id")

        return cls(
            job_id=job_id,
            status=JobStatus.parse(data.get("status", JobStatus.PENDING.value)),
            model_name=data.get("model_name") or "",
            results=data.get("results"),
            artifacts=data.get("artifacts"),
            error_message=data.get("error_message"),
            created_at=parse_timestamp(data.get("created_at")),
        )

    def advance(self, status: JobStatus) -> bool:
        """Move forward to ``status``.

        Transitions only go forward; a terminal job never moves again.
        Backward reports are ignored.

        Returns:
            True if the status changed
        """
        if status == self.status:
            return False
        if self.status.is_terminal or status.rank < self.status.rank:
            logger.warning(
                f"Ignoring status {status.value} for job {self.job_id} "
                f"already at {self.status.value}"
            )
            return False

        self.status = status
        return True

    def apply_results(self, data: dict[str, Any]) -> None:
        """Merge a ``/results`` payload into this snapshot."""
        if data.get("status"):
            try:
                self.advance(JobStatus.parse(data["status"]))
            except ValueError:
                logger.warning(
                    f"Unknown status {data['status']!r} for job {self.job_id}"
                )
        results = data.get("results")
        artifacts = data.get("artifacts")
        self.results = results if isinstance(results, dict) else None
        self.artifacts = artifacts if isinstance(artifacts, dict) else None
        self.error_message = data.get("error_message")
        # Name is fixed once known
        if data.get("model_name") and not self.model_name:
            self.model_name = data["model_name"]
        if data.get("created_at"):
            self.created_at = parse_timestamp(data["created_at"])

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        data["created_at"] = self.created_at.isoformat() if self.created_at else None
        return data

    def metric_items(self) -> list[tuple[str, Any]]:
        """Result entries to show as metrics: everything except insights."""
        if not self.results:
            return []
        return [(k, v) for k, v in self.results.items() if k != "insights"]

    @property
    def insights(self) -> list[str]:
        value = (self.results or {}).get("insights")
        if isinstance(value, list):
            return [str(item) for item in value]
        return []

    @property
    def plot_url(self) -> str | None:
        return (self.artifacts or {}).get("plot_url")

    @property
    def task_type(self) -> TaskType:
        return infer_task_type(self.results or {})


@dataclass
class EvaluationRequest:
    """Multipart payload for ``POST /evaluations/start``."""

    model_file: Path | None
    dataset_file: Path | None
    model_name: str | None
    target_column: str | None
    user_id: str | None
    preprocessor_file: Path | None = None
    needs_preprocessor: bool = False

    def validate(self) -> None:
        """Check required fields before anything is sent.

        Raises:
            ValidationError: Naming every missing field, or a missing file
        """
        required = {
            "model file": self.model_file,
            "dataset file": self.dataset_file,
            "model name": self.model_name,
            "target column": self.target_column,
            "user id": self.user_id,
        }
        if self.needs_preprocessor:
            required["preprocessor file"] = self.preprocessor_file
        require_fields(required)

        self.model_name = validate_model_name(self.model_name)
        self.target_column = self.target_column.strip()
        self.model_file = validate_file_path(self.model_file, must_exist=True)
        self.dataset_file = validate_file_path(self.dataset_file, must_exist=True)
        if self.preprocessor_file is not None:
            self.preprocessor_file = validate_file_path(
                self.preprocessor_file, must_exist=True
            )

    def form_data(self) -> dict[str, str]:
        return {
            "model_name": self.model_name,
            "target_column": self.target_column,
            "user_id": self.user_id,
        }

    def files(self) -> dict[str, tuple]:
        if self.model_file is None or self.dataset_file is None:
            raise ValidationError("Request must be validated before sending")

        files = {
            "model_file": file_part(self.model_file),
            "dataset": file_part(self.dataset_file, "text/csv"),
        }
        if self.preprocessor_file is not None:
            files["preprocessor_file"] = file_part(self.preprocessor_file)
        return files
