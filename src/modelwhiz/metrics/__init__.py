"""Metric presentation: normalization, summaries and comparisons."""

from modelwhiz.metrics.compare import ModelComparison, compare_models
from modelwhiz.metrics.models import (
    ClassificationMetrics,
    MetricSnapshot,
    Model,
    RegressionMetrics,
    TaskType,
)
from modelwhiz.metrics.normalize import (
    detect_task_type,
    normalize_history,
    normalize_snapshot,
)
from modelwhiz.metrics.summary import (
    HistorySummary,
    Trend,
    TrendDirection,
    best_values,
    compute_trend,
    summarize_history,
)

__all__ = [
    "ClassificationMetrics",
    "HistorySummary",
    "MetricSnapshot",
    "Model",
    "ModelComparison",
    "RegressionMetrics",
    "TaskType",
    "Trend",
    "TrendDirection",
    "best_values",
    "compare_models",
    "compute_trend",
    "detect_task_type",
    "normalize_history",
    "normalize_snapshot",
    "summarize_history",
]
