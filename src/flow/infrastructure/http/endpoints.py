from __future__ import annotations

from typing import Sequence
from urllib.parse import quote

from src.flow.domain.exceptions import InvalidRequestError

UPLOAD_PATH = "/api/record/upload"
TASK_BATCH_PATH = "/api/task/batch"


def task_status_path(task_id: str) -> str:
    if not task_id or not task_id.strip():
        raise InvalidRequestError("Task id must not be empty.")
    return f"/api/task/{quote(task_id, safe='')}"


def batch_params(task_ids: Sequence[str]) -> dict[str, str]:
    if any(not task_id or "," in task_id for task_id in task_ids):
        raise InvalidRequestError(f"Invalid task id in batch: {list(task_ids)!r}")
    return {"taskIds": ",".join(task_ids)}
