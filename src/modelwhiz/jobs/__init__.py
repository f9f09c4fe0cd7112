"""ModelWhiz Jobs Module - evaluation job tracking."""

from modelwhiz.jobs.models import EvaluationJob, EvaluationRequest, JobStatus

# Avoid circular imports by using lazy imports for the poller
__all__ = [
    "CancelToken",
    "EvaluationJob",
    "EvaluationPoller",
    "EvaluationRequest",
    "JobStatus",
    "PollerState",
]


def __getattr__(name: str):
    """Lazy import for poller types to avoid circular imports."""
    if name in ("EvaluationPoller", "PollerState", "CancelToken"):
        from modelwhiz.jobs import poller

        return getattr(poller, name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
