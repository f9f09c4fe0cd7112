"""Best values and trends over a model's metric history."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from modelwhiz.metrics.models import (
    LOWER_IS_BETTER,
    TaskType,
    metric_keys,
    to_float,
)
from modelwhiz.metrics.normalize import detect_task_type, normalize_history

# Changes smaller than this many percent are reported as flat
NEUTRAL_THRESHOLD_PCT = 0.1


class TrendDirection(Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class Trend:
    """Percentage change between the latest and the preceding snapshot."""

    change_pct: float
    direction: TrendDirection
    lower_is_better: bool = False

    @property
    def improved(self) -> bool | None:
        """Whether the move is good for this metric; None when flat."""
        if self.direction == TrendDirection.NEUTRAL:
            return None
        went_up = self.direction == TrendDirection.POSITIVE
        return went_up != self.lower_is_better

    def format(self) -> str:
        return f"{self.change_pct:+.1f}%"


def compute_trend(
    current: float | None, previous: float | None, lower_is_better: bool = False
) -> Trend | None:
    """Two-point trend; None when either value is missing or previous is 0."""
    if current is None or previous is None or previous == 0:
        return None

    change = (current - previous) / previous * 100
    if abs(change) < NEUTRAL_THRESHOLD_PCT:
        direction = TrendDirection.NEUTRAL
    elif change > 0:
        direction = TrendDirection.POSITIVE
    else:
        direction = TrendDirection.NEGATIVE
    return Trend(change, direction, lower_is_better)


def best_values(
    rows: list[dict[str, Any]], task_type: TaskType
) -> dict[str, float | None]:
    """Best observed value per metric.

    Maximum for every metric except RMSE, where the minimum wins.
    """
    best: dict[str, float | None] = {}
    for key in metric_keys(task_type):
        observed = [v for v in (to_float(row.get(key)) for row in rows) if v is not None]
        if not observed:
            best[key] = None
        elif key in LOWER_IS_BETTER:
            best[key] = min(observed)
        else:
            best[key] = max(observed)
    return best


@dataclass
class HistorySummary:
    task_type: TaskType
    rows: list[dict[str, Any]]
    best: dict[str, float | None]
    trends: dict[str, Trend | None] = field(default_factory=dict)

    @property
    def total_evaluations(self) -> int:
        return len(self.rows)

    @property
    def latest_timestamp(self) -> datetime | None:
        return self.rows[-1].get("timestamp") if self.rows else None

    @property
    def latest(self) -> dict[str, Any] | None:
        return self.rows[-1] if self.rows else None


def summarize_history(
    records: Iterable[dict[str, Any]], task_type: TaskType | None = None
) -> HistorySummary:
    """Normalize a history and compute best values and latest trends."""
    rows = normalize_history(records)
    task_type = detect_task_type(rows, task_type)
    summary = HistorySummary(task_type, rows, best_values(rows, task_type))

    if len(rows) >= 2:
        latest, previous = rows[-1], rows[-2]
        for key in metric_keys(task_type):
            summary.trends[key] = compute_trend(
                to_float(latest.get(key)),
                to_float(previous.get(key)),
                lower_is_better=key in LOWER_IS_BETTER,
            )
    return summary
