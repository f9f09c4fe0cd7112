"""Tests for metric history normalization, best values and trends."""

from datetime import datetime, timezone

import pytest

from modelwhiz.metrics.models import TaskType
from modelwhiz.metrics.normalize import (
    detect_task_type,
    normalize_history,
    normalize_snapshot,
)
from modelwhiz.metrics.summary import (
    TrendDirection,
    best_values,
    compute_trend,
    summarize_history,
)


def test_nested_record_is_flattened():
    record = {
        "timestamp": "2024-05-01T10:00:00Z",
        "values": {"accuracy": 0.9, "f1_score": 0.85, "auc": 0.93},
    }

    row = normalize_snapshot(record)

    assert row == {
        "timestamp": "2024-05-01T10:00:00Z",
        "accuracy": 0.9,
        "f1_score": 0.85,
        "auc": 0.93,
    }
    assert "values" not in row


def test_normalize_is_idempotent():
    flat = {"timestamp": "2024-05-01T10:00:00Z", "rmse": 0.4, "r2_score": 0.8}
    nested = {"timestamp": "2024-05-01T10:00:00Z", "values": {"rmse": 0.4}}

    assert normalize_snapshot(flat) == flat
    assert normalize_snapshot(flat) is not flat
    once = normalize_snapshot(nested)
    assert normalize_snapshot(once) == once


def test_history_sorted_ascending_with_missing_timestamps_first():
    rows = normalize_history(
        [
            {"timestamp": "2024-05-03T00:00:00Z", "accuracy": 0.3},
            {"accuracy": 0.0},
            {"timestamp": "2024-05-01T00:00:00+00:00", "values": {"accuracy": 0.1}},
            {"timestamp": datetime(2024, 5, 2, tzinfo=timezone.utc), "accuracy": 0.2},
        ]
    )

    assert [row["accuracy"] for row in rows] == [0.0, 0.1, 0.2, 0.3]
    assert rows[0]["timestamp"] is None
    assert rows[1]["timestamp"] == datetime(2024, 5, 1, tzinfo=timezone.utc)


def test_detect_task_type():
    assert detect_task_type([]) == TaskType.CLASSIFICATION
    assert detect_task_type([{"rmse": 0.4}]) == TaskType.REGRESSION
    assert detect_task_type([{"accuracy": 0.9}]) == TaskType.CLASSIFICATION
    assert detect_task_type([{"task_type": "regression"}]) == TaskType.REGRESSION
    # An explicit tag beats key inspection
    assert (
        detect_task_type([{"rmse": 0.4}], TaskType.CLASSIFICATION)
        == TaskType.CLASSIFICATION
    )


def test_best_values_regression_minimizes_rmse():
    rows = [
        {"rmse": 0.5, "r2_score": 0.7},
        {"rmse": 0.3, "r2_score": 0.6},
        {"rmse": 0.4, "r2_score": 0.9},
    ]

    best = best_values(rows, TaskType.REGRESSION)

    assert best == {"rmse": 0.3, "r2_score": 0.9}


def test_best_values_skip_missing_and_report_unobserved_as_none():
    rows = [{"accuracy": 0.8}, {"accuracy": None, "f1_score": 0.7}, {"accuracy": 0.9}]

    best = best_values(rows, TaskType.CLASSIFICATION)

    assert best == {"accuracy": 0.9, "f1_score": 0.7, "auc": None}


def test_compute_trend_directions():
    up = compute_trend(0.88, 0.80)
    assert up.change_pct == pytest.approx(10.0)
    assert up.direction == TrendDirection.POSITIVE
    assert up.improved is True
    assert up.format() == "+10.0%"

    down = compute_trend(0.72, 0.80)
    assert down.direction == TrendDirection.NEGATIVE
    assert down.improved is False

    flat = compute_trend(0.8004, 0.80)
    assert flat.direction == TrendDirection.NEUTRAL
    assert flat.improved is None


def test_compute_trend_rmse_decrease_is_an_improvement():
    trend = compute_trend(0.3, 0.4, lower_is_better=True)
    assert trend.direction == TrendDirection.NEGATIVE
    assert trend.improved is True


def test_compute_trend_undefined_cases():
    assert compute_trend(0.5, 0) is None
    assert compute_trend(0.5, None) is None
    assert compute_trend(None, 0.5) is None


def test_summarize_history_trends_compare_last_two_rows():
    summary = summarize_history(
        [
            {"timestamp": "2024-05-02T00:00:00Z", "accuracy": 0.88, "f1_score": 0.8},
            {"timestamp": "2024-05-01T00:00:00Z", "accuracy": 0.80, "f1_score": 0.8},
        ]
    )

    assert summary.task_type == TaskType.CLASSIFICATION
    assert summary.total_evaluations == 2
    assert summary.latest_timestamp == datetime(2024, 5, 2, tzinfo=timezone.utc)
    assert summary.trends["accuracy"].change_pct == pytest.approx(10.0)
    assert summary.trends["f1_score"].direction == TrendDirection.NEUTRAL
    assert summary.trends["auc"] is None


def test_summarize_single_row_has_no_trends():
    summary = summarize_history([{"rmse": 0.4}])

    assert summary.task_type == TaskType.REGRESSION
    assert summary.trends == {}
    assert summary.best["rmse"] == 0.4


def test_summarize_empty_history():
    summary = summarize_history([])

    assert summary.total_evaluations == 0
    assert summary.latest is None
    assert summary.latest_timestamp is None
    assert summary.best == {"accuracy": None, "f1_score": None, "auc": None}
