"""Client-side polling loop for evaluation jobs.

The evaluation service has no push channel, so the poller drives one job
from submission to a terminal state by querying its status at a fixed
interval:

    SUBMITTING -> POLLING -> COMPLETED | FAILED | CONNECTION_ERROR

Status queries are strictly sequential. The loop has no attempt cap and no
timeout of its own; it ends on a terminal status, on a transport error, or
when the caller cancels it.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from modelwhiz.error_handling import ApiError
from modelwhiz.jobs.models import EvaluationJob, EvaluationRequest, JobStatus
from modelwhiz.services.evaluation_service import EvaluationService
from modelwhiz.utils.validation import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 3.0
CONNECTION_ERROR_MESSAGE = "Could not connect to the server to get job status."


class PollerState(Enum):
    """Observable state of one poller."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    CONNECTION_ERROR = "connection_error"

    @property
    def is_terminal(self) -> bool:
        return self in (
            PollerState.COMPLETED,
            PollerState.FAILED,
            PollerState.CONNECTION_ERROR,
        )


class PollingCancelled(Exception):
    """Raised by ``run`` when its CancelToken is cancelled."""


class CancelToken:
    """Lets the owner of a poller stop it between status queries."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


PollerListener = Callable[[PollerState, EvaluationJob | None], None]
SleepFunc = Callable[[float], Awaitable[None]]


class EvaluationPoller:
    """Drives the observable lifecycle of one evaluation job."""

    def __init__(
        self,
        service: EvaluationService,
        interval: float = DEFAULT_POLL_INTERVAL,
        sleep: SleepFunc | None = None,
    ):
        """Initialize EvaluationPoller.

        Args:
            service: EvaluationService used for every query
            interval: Seconds to wait between status queries
            sleep: Awaitable sleep, injectable for tests
        """
        self.service = service
        self.interval = interval
        self._sleep = sleep or asyncio.sleep
        self._listeners: list[PollerListener] = []
        self._in_flight = False

        self.state = PollerState.IDLE
        self.job_id: int | str | None = None
        self.job: EvaluationJob | None = None
        self.error: ApiError | None = None
        self.status_queries = 0

    def add_listener(self, listener: PollerListener) -> Callable[[], None]:
        """Register a callback for state changes and status observations.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.state, self.job)

    def _transition(self, state: PollerState) -> None:
        if state != self.state:
            logger.debug(f"Poller {self.job_id}: {self.state.value} -> {state.value}")
            self.state = state
        self._notify()

    def _bind(self, job_id: int | str, model_name: str) -> None:
        if self.job_id is not None and str(job_id) != str(self.job_id):
            raise ValueError(
                f"Poller is bound to job {self.job_id}, cannot poll job {job_id}"
            )
        if self.job_id is None:
            self.job_id = job_id
            self.job = EvaluationJob.pending(job_id, model_name)

    async def submit(self, request: EvaluationRequest) -> int | str:
        """Validate and submit an evaluation request.

        Returns:
            The job id used for every later query

        Raises:
            ValidationError: If required fields are missing; nothing is sent
            ApiError: If the submission itself fails
        """
        if self.job_id is not None:
            raise RuntimeError(f"Poller already submitted job {self.job_id}")

        self._transition(PollerState.SUBMITTING)
        try:
            request.validate()
        except ValidationError:
            self._transition(PollerState.IDLE)
            raise

        try:
            job_id = await self.service.start_evaluation(request)
        except ApiError as e:
            self.error = e
            self._transition(PollerState.CONNECTION_ERROR)
            raise

        self._bind(job_id, request.model_name or "")
        logger.info(f"Submitted evaluation job {job_id}")
        self._transition(PollerState.POLLING)
        return job_id

    async def watch(
        self, job_id: int | str, token: CancelToken | None = None
    ) -> EvaluationJob:
        """Poll an already submitted job until it reaches a terminal state."""
        self._bind(job_id, "")
        return await self.run(token)

    async def _query_status(self) -> dict:
        if self._in_flight:
            raise RuntimeError(f"Status query for job {self.job_id} already in flight")
        self._in_flight = True
        try:
            self.status_queries += 1
            return await self.service.get_job_status(self.job_id) or {}
        finally:
            self._in_flight = False

    async def _pause(self, token: CancelToken | None) -> None:
        if token is None:
            await self._sleep(self.interval)
            return

        sleeper = asyncio.ensure_future(self._sleep(self.interval))
        waiter = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            sleeper.cancel()
            waiter.cancel()

    def _connection_error(self, error: ApiError) -> EvaluationJob:
        self.error = error
        self.job.error_message = CONNECTION_ERROR_MESSAGE
        logger.error(f"Stopped polling job {self.job_id}: {error.message}")
        self._transition(PollerState.CONNECTION_ERROR)
        return self.job

    def _check_cancelled(self, token: CancelToken | None) -> None:
        if token is not None and token.cancelled:
            logger.info(f"Stopped polling job {self.job_id} (cancelled)")
            raise PollingCancelled(f"Polling for job {self.job_id} was cancelled")

    async def run(self, token: CancelToken | None = None) -> EvaluationJob:
        """Poll until the job is terminal, then fetch its results once.

        Returns:
            The final snapshot. On CONNECTION_ERROR it is the last observed
            snapshot with a connection error message.

        Raises:
            PollingCancelled: If ``token`` is cancelled
        """
        if self.job_id is None:
            raise RuntimeError("No job to poll; call submit() or watch() first")
        if self.state.is_terminal:
            return self.job

        self._transition(PollerState.POLLING)
        while True:
            self._check_cancelled(token)

            try:
                payload = await self._query_status()
            except ApiError as e:
                return self._connection_error(e)

            try:
                status = JobStatus.parse(payload.get("status"))
            except ValueError:
                logger.warning(
                    f"Unknown status {payload.get('status')!r} for job {self.job_id}"
                )
                status = self.job.status
            self.job.advance(status)
            if payload.get("model_name") and not self.job.model_name:
                self.job.model_name = payload["model_name"]

            if self.job.status.is_terminal:
                self._check_cancelled(token)
                try:
                    results = await self.service.get_job_results(self.job_id)
                except ApiError as e:
                    return self._connection_error(e)

                self.job.apply_results(results or {})
                logger.info(f"Job {self.job_id} finished: {self.job.status.value}")
                if self.job.status == JobStatus.COMPLETED:
                    self._transition(PollerState.COMPLETED)
                else:
                    self._transition(PollerState.FAILED)
                return self.job

            self._notify()
            await self._pause(token)
