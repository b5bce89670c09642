from __future__ import annotations

from typing import Protocol, Sequence

from src.flow.domain.models.submission import SubmissionResult
from src.flow.domain.models.task import Task


class TaskRepository(Protocol):
    """Repository contract for reading backend task snapshots."""

    async def fetch_task(self, task_id: str) -> Task:
        """Fetch the current snapshot of the task identified by ``task_id``."""

    async def fetch_tasks(self, task_ids: Sequence[str]) -> list[Task]:
        """Fetch snapshots for ``task_ids`` in one round trip; unknown ids are omitted."""


class UploadRepository(Protocol):
    """Repository contract for submitting a meal image."""

    async def upload(
        self, content: bytes, user_id: str, filename: str
    ) -> SubmissionResult:
        """Upload the image and return the synchronous submission result."""
