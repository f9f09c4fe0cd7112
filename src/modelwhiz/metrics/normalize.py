"""Flatten metric history records into chart rows.

History arrives either flat (``{accuracy, f1_score, auc, timestamp}``) or
nested (``{timestamp, values: {...}}``). Charts and tables want flat rows.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from modelwhiz.metrics.models import (
    TaskType,
    infer_task_type,
    parse_task_type,
    parse_timestamp,
)


def normalize_snapshot(record: dict[str, Any]) -> dict[str, Any]:
    """Flatten one record to ``{timestamp, <metric keys>...}``.

    Flat records come back unchanged (as a copy), so normalizing twice is the
    same as normalizing once.
    """
    values = record.get("values")
    if not isinstance(values, dict):
        return dict(record)

    row: dict[str, Any] = {"timestamp": record.get("timestamp")}
    if "task_type" in record:
        row["task_type"] = record["task_type"]
    row.update(values)
    return row


def _sort_key(row: dict[str, Any]) -> tuple[int, float]:
    timestamp = row.get("timestamp")
    if not isinstance(timestamp, datetime):
        return (0, 0.0)
    return (1, timestamp.timestamp())


def normalize_history(records: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Normalize every record and sort ascending by timestamp.

    Timestamps are parsed to datetime; rows without one sort first.
    """
    rows = []
    for record in records:
        row = normalize_snapshot(record)
        row["timestamp"] = parse_timestamp(row.get("timestamp"))
        rows.append(row)

    rows.sort(key=_sort_key)
    return rows


def detect_task_type(
    rows: list[dict[str, Any]], explicit: TaskType | None = None
) -> TaskType:
    """Decide which metric vocabulary a history uses.

    An explicit task type always wins. Otherwise the first row decides:
    a ``task_type`` field on it, then the presence of ``rmse``. An empty
    history is treated as classification.
    """
    if explicit is not None:
        return explicit
    if not rows:
        return TaskType.CLASSIFICATION

    tagged = parse_task_type(rows[0].get("task_type"))
    if tagged is not None:
        return tagged
    return infer_task_type(rows[0])
