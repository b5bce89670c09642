from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass

from src.flow.application.broadcaster import TaskEventBroadcaster
from src.flow.application.poller import TaskPoller
from src.flow.application.transformer import ResultTransformer
from src.flow.domain.events.task_event import TaskEvent
from src.flow.domain.exceptions import FlowError, TaskCancelledError, TaskFailedError
from src.flow.domain.models.submission import SubmissionResult
from src.flow.domain.models.task import Task
from src.flow.domain.models.task_result import TypedTaskResult
from src.flow.domain.models.task_state import TaskState
from src.flow.domain.models.task_type import TaskType
from src.flow.domain.repositories import TaskRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackedOutcome:
    task_type: TaskType
    task_id: str
    result: TypedTaskResult | None = None
    error: FlowError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SubmissionTracker:
    """
    Resolve every background task spawned by one submission.

    One poller runs per task id, all started together; outcomes are handed
    out in the order the pollers finish. Leaving ``async with`` (or calling
    ``aclose``) withdraws every poller still running.
    """

    def __init__(
        self,
        submission: SubmissionResult,
        poller: TaskPoller,
        transformer: ResultTransformer,
        broadcaster: TaskEventBroadcaster,
        repository: TaskRepository,
    ) -> None:
        self._submission = submission
        self._poller = poller
        self._transformer = transformer
        self._broadcaster = broadcaster
        self._repository = repository
        self._running: dict[TaskType, asyncio.Task[TrackedOutcome]] = {}

    @property
    def submission(self) -> SubmissionResult:
        return self._submission

    @property
    def started(self) -> bool:
        return bool(self._running)

    def start(self) -> None:
        if self._running:
            return
        for task_type, task_id in self._submission.async_tasks.items():
            self._running[task_type] = asyncio.create_task(
                self._resolve(task_type, task_id),
                name=f"poll-{task_type.key}-{task_id}",
            )
        logger.debug("Tracking submission", extra=self._submission.summary())

    async def outcomes(self) -> AsyncIterator[TrackedOutcome]:
        """
        Yield each outcome as soon as its poller resolves.

        Pollers still running are withdrawn when iteration stops early or a
        poller raises something other than a ``FlowError``.
        """
        self.start()
        try:
            for next_done in asyncio.as_completed(list(self._running.values())):
                yield await next_done
        finally:
            self.cancel()

    async def wait_all(self) -> dict[TaskType, TrackedOutcome]:
        self.start()
        try:
            outcomes = await asyncio.gather(*self._running.values())
        finally:
            self.cancel()
        return {outcome.task_type: outcome for outcome in outcomes}

    def cancel(self) -> None:
        for running in self._running.values():
            running.cancel()

    async def aclose(self) -> None:
        self.cancel()
        await asyncio.gather(*self._running.values(), return_exceptions=True)

    async def refresh(self) -> list[TrackedOutcome]:
        """
        Read every task of the submission once, without polling.

        Only tasks that already reached a terminal state produce an outcome.
        """
        tasks = await self._repository.fetch_tasks(self._submission.all_task_ids)
        outcomes: list[TrackedOutcome] = []
        for task in tasks:
            task_type = self._submission.task_type_for(task.id) or task.task_type
            if task_type is None or not task.is_terminal:
                continue
            outcomes.append(self._snapshot_outcome(task_type, task))
        return outcomes

    def _snapshot_outcome(self, task_type: TaskType, task: Task) -> TrackedOutcome:
        if task.status is TaskState.FAILED:
            return TrackedOutcome(task_type, task.id, error=TaskFailedError(task.id, task.error_message))
        if task.status is TaskState.CANCELLED:
            return TrackedOutcome(task_type, task.id, error=TaskCancelledError(task.id))
        try:
            result = self._transformer.transform(task, task_type)
        except FlowError as exc:
            return TrackedOutcome(task_type, task.id, error=exc)
        return TrackedOutcome(task_type, task.id, result=result)

    async def _resolve(self, task_type: TaskType, task_id: str) -> TrackedOutcome:
        try:
            task = await self._poller.poll(task_id, on_status=self._on_status)
            result = self._transformer.transform(task, task_type)
        except FlowError as exc:
            logger.info(
                "Background task did not produce a result",
                extra={"task_id": task_id, "task_type": task_type.value, "error": repr(exc)},
            )
            await self._notify(TaskEvent.error(task_type, task_id, exc))
            return TrackedOutcome(task_type, task_id, error=exc)

        await self._notify(TaskEvent.result(task_type, result))
        return TrackedOutcome(task_type, task_id, result=result)

    async def _on_status(self, task: Task) -> None:
        await self._notify(TaskEvent.status(task))

    async def _notify(self, event: TaskEvent) -> None:
        try:
            await self._broadcaster.broadcast(event)
        except Exception:
            logger.exception(
                "Task event broadcast failed",
                extra={"type": event.type.value, "task_id": event.task_id},
            )

    async def __aenter__(self) -> SubmissionTracker:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
