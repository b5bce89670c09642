import logging
import time
from typing import Sequence, cast

import inject

from src.flow.application.broadcaster import TaskEventBroadcaster
from src.flow.application.poller import StatusCallback, TaskPoller
from src.flow.application.tracker import SubmissionTracker
from src.flow.application.transformer import ResultTransformer
from src.flow.domain.events.task_event import TaskEvent
from src.flow.domain.models import (
    EatingTipsResult,
    GlucoseTrendResult,
    SubmissionResult,
    Task,
    TaskType,
    TypedTaskResult,
)
from src.flow.domain.repositories import TaskRepository, UploadRepository

logger = logging.getLogger(__name__)


def default_filename() -> str:
    return f"food_{int(time.time() * 1000)}.jpg"


class UploadService:
    """Submits meal images and starts tracking the background tasks they spawn."""

    def __init__(
        self,
        uploads: UploadRepository | None = None,
        tasks: TaskRepository | None = None,
        broadcaster: TaskEventBroadcaster | None = None,
        poller: TaskPoller | None = None,
        transformer: ResultTransformer | None = None,
    ) -> None:
        self._uploads = uploads or cast(UploadRepository, inject.instance(UploadRepository))
        self._tasks = tasks or cast(TaskRepository, inject.instance(TaskRepository))
        self._broadcaster = broadcaster or cast(
            TaskEventBroadcaster, inject.instance(TaskEventBroadcaster)
        )
        self._poller = poller or TaskPoller(repository=self._tasks)
        self._transformer = transformer or ResultTransformer()

    async def submit(
        self, content: bytes, user_id: str, filename: str | None = None
    ) -> SubmissionResult:
        """
        Upload ``content`` and return the synchronous analysis plus spawned task ids.

        Observers are notified of the accepted upload; a failing observer is
        logged and does not affect the returned result.
        """
        filename = filename or default_filename()
        logger.info(
            "Uploading meal image",
            extra={"user_id": user_id, "upload_name": filename, "size": len(content)},
        )
        submission = await self._uploads.upload(content, user_id, filename)
        logger.info("Upload accepted", extra=submission.summary())

        event = TaskEvent.upload_accepted(
            record_id=submission.record_id,
            user_id=user_id,
            filename=filename,
            task_ids={task_type.key: task_id for task_type, task_id in submission.async_tasks.items()},
            content=content,
        )
        try:
            await self._broadcaster.broadcast(event)
        except Exception:
            logger.exception("Upload notification failed", extra={"record_id": submission.record_id})
        return submission

    def track(self, submission: SubmissionResult) -> SubmissionTracker:
        """Return a tracker owning one poller per task id of ``submission``."""
        return SubmissionTracker(
            submission,
            poller=self._poller,
            transformer=self._transformer,
            broadcaster=self._broadcaster,
            repository=self._tasks,
        )


class TaskService:
    """Single-task and batch access to background task state."""

    def __init__(
        self,
        repository: TaskRepository | None = None,
        poller: TaskPoller | None = None,
        transformer: ResultTransformer | None = None,
    ) -> None:
        self._repository = repository or cast(TaskRepository, inject.instance(TaskRepository))
        self._poller = poller or TaskPoller(repository=self._repository)
        self._transformer = transformer or ResultTransformer()

    async def get_task(self, task_id: str) -> Task:
        """Return the current snapshot of ``task_id`` without waiting."""
        return await self._repository.fetch_task(task_id)

    async def refresh_all(self, task_ids: Sequence[str]) -> list[Task]:
        """Return snapshots for ``task_ids`` in one round trip; unknown ids are absent."""
        return await self._repository.fetch_tasks(task_ids)

    async def poll_task(self, task_id: str, on_status: StatusCallback | None = None) -> Task:
        return await self._poller.poll(task_id, on_status=on_status)

    async def poll_result(self, task_id: str, task_type: TaskType) -> TypedTaskResult:
        task = await self._poller.poll(task_id)
        return self._transformer.transform(task, task_type)

    async def poll_glucose_trend(self, task_id: str) -> GlucoseTrendResult:
        return cast(GlucoseTrendResult, await self.poll_result(task_id, TaskType.GLUCOSE_TREND))

    async def poll_eating_order(self, task_id: str) -> EatingTipsResult:
        return cast(EatingTipsResult, await self.poll_result(task_id, TaskType.EATING_ORDER))
