"""Metric and model data types."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar


class TaskType(Enum):
    """Which metric vocabulary a model uses."""

    CLASSIFICATION = "classification"
    REGRESSION = "regression"


CLASSIFICATION_KEYS = ("accuracy", "f1_score", "auc")
REGRESSION_KEYS = ("rmse", "r2_score")

# Every other metric is higher-is-better
LOWER_IS_BETTER = frozenset({"rmse"})

METRIC_LABELS = {
    "accuracy": "Accuracy",
    "f1_score": "F1 Score",
    "auc": "AUC",
    "rmse": "RMSE",
    "r2_score": "R² Score",
}


def metric_keys(task_type: TaskType) -> tuple[str, ...]:
    if task_type == TaskType.REGRESSION:
        return REGRESSION_KEYS
    return CLASSIFICATION_KEYS


def metric_label(key: str) -> str:
    return METRIC_LABELS.get(key, key.replace("_", " ").upper())


def to_float(value: Any) -> float | None:
    """Coerce an API metric value to float, None when absent or non-numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an API timestamp (ISO-8601 string or datetime)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


def parse_task_type(value: Any) -> TaskType | None:
    """Parse an explicit task_type field; None when missing or unknown."""
    if isinstance(value, TaskType):
        return value
    if isinstance(value, str):
        try:
            return TaskType(value.strip().lower())
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class ClassificationMetrics:
    """Accuracy, F1 and AUC; higher is better for all three."""

    accuracy: float | None = None
    f1_score: float | None = None
    auc: float | None = None

    task_type: ClassVar[TaskType] = TaskType.CLASSIFICATION
    KEYS: ClassVar[tuple[str, ...]] = CLASSIFICATION_KEYS

    def as_dict(self) -> dict[str, float | None]:
        return {key: getattr(self, key) for key in self.KEYS}


@dataclass(frozen=True)
class RegressionMetrics:
    """RMSE (lower is better) and R² (higher is better)."""

    rmse: float | None = None
    r2_score: float | None = None

    task_type: ClassVar[TaskType] = TaskType.REGRESSION
    KEYS: ClassVar[tuple[str, ...]] = REGRESSION_KEYS

    def as_dict(self) -> dict[str, float | None]:
        return {key: getattr(self, key) for key in self.KEYS}


Metrics = ClassificationMetrics | RegressionMetrics


def infer_task_type(mapping: dict[str, Any]) -> TaskType:
    """Guess the task type of an untagged record from its keys."""
    if "rmse" in mapping:
        return TaskType.REGRESSION
    return TaskType.CLASSIFICATION


def metrics_from_mapping(
    mapping: dict[str, Any], task_type: TaskType | None = None
) -> Metrics | None:
    """Build the metric variant for ``task_type`` from a raw mapping.

    Returns None when the mapping carries none of the variant's metrics.
    """
    task_type = task_type or infer_task_type(mapping)
    cls = RegressionMetrics if task_type == TaskType.REGRESSION else ClassificationMetrics
    values = {key: to_float(mapping.get(key)) for key in cls.KEYS}
    if all(value is None for value in values.values()):
        return None
    return cls(**values)


@dataclass
class MetricSnapshot:
    """One historical metric reading of a model."""

    timestamp: datetime | None
    values: dict[str, float]
    task_type: TaskType

    def as_row(self) -> dict[str, Any]:
        """Flat chart row: ``{timestamp, <metric keys>...}``."""
        return {"timestamp": self.timestamp, **self.values}


@dataclass
class Model:
    """A model as listed by the dashboard."""

    id: int
    name: str
    version: str | None = None
    upload_time: datetime | None = None
    filename: str | None = None
    task_type: TaskType = TaskType.CLASSIFICATION
    latest_metrics: Metrics | None = None
    metrics_history: list[MetricSnapshot] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Model":
        """Create a model from a ``GET /models/`` entry.

        The explicit ``task_type`` field wins; untagged payloads fall back to
        key inspection of the latest metrics and then of the history.
        """
        from modelwhiz.metrics.normalize import detect_task_type, normalize_history

        rows = normalize_history(data.get("metrics") or [])
        explicit = parse_task_type(data.get("task_type"))
        if explicit is None:
            # Flat latest-metric columns may be present but null
            if to_float(data.get("rmse")) is not None:
                explicit = TaskType.REGRESSION
            elif any(to_float(data.get(k)) is not None for k in CLASSIFICATION_KEYS):
                explicit = TaskType.CLASSIFICATION
        task_type = detect_task_type(rows, explicit)

        history = []
        for row in rows:
            values = {}
            for key, value in row.items():
                number = to_float(value)
                if key != "timestamp" and number is not None:
                    values[key] = number
            history.append(MetricSnapshot(row.get("timestamp"), values, task_type))

        latest = metrics_from_mapping(data, task_type)
        if latest is None and history:
            latest = metrics_from_mapping(history[-1].values, task_type)

        return cls(
            id=data["id"],
            name=data.get("name") or f"Model {data['id']}",
            version=data.get("version"),
            upload_time=parse_timestamp(
                data.get("upload_time") or data.get("created_at")
            ),
            filename=data.get("filename"),
            task_type=task_type,
            latest_metrics=latest,
            metrics_history=history,
        )

    def metric(self, key: str) -> float | None:
        if self.latest_metrics is None:
            return None
        return self.latest_metrics.as_dict().get(key)
