from __future__ import annotations

import logging
from typing import Sequence

from src.flow.domain.exceptions import InvalidRequestError, InvalidResponseError
from src.flow.domain.models.submission import SubmissionResult
from src.flow.domain.models.task import Task
from src.flow.domain.repositories import TaskRepository, UploadRepository
from src.flow.infrastructure.http.client import ApiClient
from src.flow.infrastructure.http.endpoints import (
    TASK_BATCH_PATH,
    UPLOAD_PATH,
    batch_params,
    task_status_path,
)
from src.flow.infrastructure.http.mappers import WireMapper
from src.flow.infrastructure.http.schemas import TaskDataDTO, UploadDataDTO

logger = logging.getLogger(__name__)


class HttpTaskRepository(TaskRepository):
    """Reads task snapshots from the backend task endpoints."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def fetch_task(self, task_id: str) -> Task:
        """
        Fetch the current status of a single task.
        """
        path = task_status_path(task_id)
        logger.debug("Fetching task status", extra={"task_id": task_id})
        dto = await self._client.get(path, TaskDataDTO)
        if dto is None:
            raise InvalidResponseError(f"Task '{task_id}' response carried no data")
        return WireMapper.to_task(dto)

    async def fetch_tasks(self, task_ids: Sequence[str]) -> list[Task]:
        """
        Fetch the current status of several tasks in one request.
        """
        if not task_ids:
            return []
        params = batch_params(task_ids)
        logger.debug("Fetching task batch", extra={"task_ids": list(task_ids)})
        dtos = await self._client.get(TASK_BATCH_PATH, list[TaskDataDTO], params=params)
        return [WireMapper.to_task(dto) for dto in dtos or []]


class HttpUploadRepository(UploadRepository):
    def __init__(self, client: ApiClient, mime_type: str = "image/jpeg") -> None:
        self._client = client
        self._mime_type = mime_type

    async def upload(self, content: bytes, user_id: str, filename: str) -> SubmissionResult:
        if not content:
            raise InvalidRequestError("Upload content must not be empty.")
        if not user_id:
            raise InvalidRequestError("User id is required for upload.")
        dto = await self._client.post_multipart(
            UPLOAD_PATH,
            UploadDataDTO,
            fields={"userId": user_id},
            files={"file": (filename, content, self._mime_type)},
        )
        if dto is None:
            raise InvalidResponseError("Upload response carried no analysis data")
        return WireMapper.to_submission(dto)
