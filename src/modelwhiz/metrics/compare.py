"""Head-to-head comparison of two models' latest metrics."""

from dataclasses import dataclass

from modelwhiz.metrics.models import LOWER_IS_BETTER, Model, TaskType, metric_keys

TIE = "Tie"
# Deltas within this margin count as a tie
TIE_MARGIN = 0.01


@dataclass(frozen=True)
class MetricComparison:
    key: str
    value_a: float | None
    value_b: float | None
    delta: float
    abs_change: float
    percent_change: float
    winner: str


@dataclass
class ModelComparison:
    model_a: Model
    model_b: Model
    task_type: TaskType
    metrics: list[MetricComparison]
    overall_winner: str

    def metric(self, key: str) -> MetricComparison | None:
        for comparison in self.metrics:
            if comparison.key == key:
                return comparison
        return None


def compare_metric(key: str, a: Model, b: Model) -> MetricComparison:
    """Compare one metric; missing values count as 0."""
    value_a = a.metric(key)
    value_b = b.metric(key)
    delta = (value_a or 0.0) - (value_b or 0.0)
    abs_change = abs(delta)
    percent_change = abs_change / abs(value_b) * 100 if value_b else 0.0

    # For lower-is-better metrics A wins on a negative delta
    advantage = -delta if key in LOWER_IS_BETTER else delta
    if advantage > TIE_MARGIN:
        winner = a.name
    elif advantage < -TIE_MARGIN:
        winner = b.name
    else:
        winner = TIE

    return MetricComparison(
        key, value_a, value_b, delta, abs_change, percent_change, winner
    )


def _overall_winner(
    a: Model, b: Model, task_type: TaskType, metrics: list[MetricComparison]
) -> str:
    if task_type == TaskType.CLASSIFICATION:
        keys = metric_keys(task_type)
        avg_a = sum(a.metric(k) or 0.0 for k in keys) / len(keys)
        avg_b = sum(b.metric(k) or 0.0 for k in keys) / len(keys)
        if avg_a > avg_b:
            return a.name
        if avg_b > avg_a:
            return b.name
        return TIE

    wins_a = sum(1 for m in metrics if m.winner == a.name)
    wins_b = sum(1 for m in metrics if m.winner == b.name)
    if wins_a > wins_b:
        return a.name
    if wins_b > wins_a:
        return b.name
    return TIE


def compare_models(a: Model, b: Model) -> ModelComparison:
    """Compare two models of the same task type.

    Raises:
        ValueError: If the models use different task types
    """
    if a.task_type != b.task_type:
        raise ValueError(
            f"Cannot compare a {a.task_type.value} model with a "
            f"{b.task_type.value} model"
        )

    metrics = [compare_metric(key, a, b) for key in metric_keys(a.task_type)]
    return ModelComparison(
        model_a=a,
        model_b=b,
        task_type=a.task_type,
        metrics=metrics,
        overall_winner=_overall_winner(a, b, a.task_type, metrics),
    )
