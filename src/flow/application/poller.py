from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, cast

import inject

from src.flow.application.scheduler import Scheduler
from src.flow.domain.exceptions import (
    FlowError,
    InvalidRequestError,
    InvalidResponseError,
    PollingTimeoutError,
    TaskCancelledError,
    TaskFailedError,
    TransportFailureError,
)
from src.flow.domain.models.task import Task
from src.flow.domain.models.task_state import TaskState
from src.flow.domain.repositories import TaskRepository
from src.setup.client_config import ClientSettings

logger = logging.getLogger(__name__)

StatusCallback = Callable[[Task], Awaitable[None] | None]

# Errors that may clear up on the next query.
_TRANSIENT_ERRORS = (TransportFailureError, InvalidResponseError)


@dataclass(frozen=True)
class PollingPolicy:
    interval_seconds: float = 1.5
    max_attempts: int = 30
    # None keeps transient failures on the shared attempt budget.
    max_transient_failures: int | None = None

    def __post_init__(self) -> None:
        if self.interval_seconds < 0:
            raise ValueError("interval_seconds must not be negative")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.max_transient_failures is not None and self.max_transient_failures < 0:
            raise ValueError("max_transient_failures must not be negative")

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> PollingPolicy:
        return cls(
            interval_seconds=settings.POLL_INTERVAL_SECONDS,
            max_attempts=settings.MAX_POLL_ATTEMPTS,
            max_transient_failures=settings.MAX_TRANSIENT_FAILURES,
        )


class PollPhase(str, Enum):
    QUERYING = "QUERYING"
    WAITING = "WAITING"
    RETRYING = "RETRYING"
    DONE = "DONE"


@dataclass
class _PollRun:
    """Mutable bookkeeping owned by a single ``poll`` call."""

    task_id: str
    attempts: int = 0
    transient_failures: int = 0
    last_error: FlowError | None = None
    task: Task | None = None


class TaskPoller:
    """
    Resolve one task id to a terminal snapshot.

    Each ``poll`` call runs its own state machine::

        QUERYING --pending/running--> WAITING  --interval--> QUERYING
        QUERYING --transient error--> RETRYING --interval--> QUERYING
        QUERYING --completed--------> DONE

    ``FAILED`` and ``CANCELLED`` raise immediately. Running out of attempts
    while the task is still pending, or still failing transiently, raises
    ``PollingTimeoutError``. Cancelling the surrounding asyncio task stops the
    poller at its next suspension point without any further request.
    """

    def __init__(
        self,
        repository: TaskRepository | None = None,
        scheduler: Scheduler | None = None,
        policy: PollingPolicy | None = None,
    ) -> None:
        self._repository = repository or cast(TaskRepository, inject.instance(TaskRepository))
        self._scheduler = scheduler or cast(Scheduler, inject.instance(Scheduler))
        self._policy = policy or cast(PollingPolicy, inject.instance(PollingPolicy))

    @property
    def policy(self) -> PollingPolicy:
        return self._policy

    async def poll(self, task_id: str, on_status: StatusCallback | None = None) -> Task:
        """Poll ``task_id`` until it completes; return the completed snapshot."""
        if not task_id:
            raise InvalidRequestError("Task id must not be empty.")
        run = _PollRun(task_id=task_id)
        phase = PollPhase.QUERYING
        while phase is not PollPhase.DONE:
            if phase is PollPhase.QUERYING:
                phase = await self._query(run, on_status)
            else:
                await self._scheduler.sleep(self._policy.interval_seconds)
                phase = PollPhase.QUERYING
        return cast(Task, run.task)

    async def _query(self, run: _PollRun, on_status: StatusCallback | None) -> PollPhase:
        run.attempts += 1
        try:
            task = await self._repository.fetch_task(run.task_id)
        except _TRANSIENT_ERRORS as exc:
            return self._on_transient_failure(run, exc)

        logger.debug(
            "Task polled",
            extra={
                "task_id": run.task_id,
                "status": task.status.value,
                "attempt": run.attempts,
                "max_attempts": self._policy.max_attempts,
            },
        )
        if on_status is not None:
            outcome = on_status(task)
            if inspect.isawaitable(outcome):
                await outcome

        if task.status is TaskState.COMPLETED:
            run.task = task
            return PollPhase.DONE
        if task.status is TaskState.FAILED:
            logger.info(
                "Task failed",
                extra={"task_id": run.task_id, "error_message": task.error_message},
            )
            raise TaskFailedError(run.task_id, task.error_message)
        if task.status is TaskState.CANCELLED:
            logger.info("Task cancelled", extra={"task_id": run.task_id})
            raise TaskCancelledError(run.task_id)

        if run.attempts >= self._policy.max_attempts:
            raise PollingTimeoutError(run.task_id, run.attempts, run.last_error)
        return PollPhase.WAITING

    def _on_transient_failure(self, run: _PollRun, exc: FlowError) -> PollPhase:
        run.last_error = exc
        run.transient_failures += 1
        logger.warning(
            "Task status query failed, retrying",
            extra={"task_id": run.task_id, "attempt": run.attempts, "error": str(exc)},
        )

        limit = self._policy.max_transient_failures
        if limit is None:
            exhausted = run.attempts >= self._policy.max_attempts
        else:
            # Separate budget: the failed query does not consume a regular attempt.
            run.attempts -= 1
            exhausted = run.transient_failures > limit
        if exhausted:
            raise PollingTimeoutError(run.task_id, run.attempts, exc) from exc
        return PollPhase.RETRYING
