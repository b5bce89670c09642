from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from src.flow.domain.models.task import Task
from src.flow.domain.models.task_result import TypedTaskResult
from src.flow.domain.models.task_type import TaskType


class EventType(str, Enum):
    UPLOAD_ACCEPTED = "upload.accepted"
    TASK_STATUS = "task.status"
    TASK_RESULT = "task.result"
    TASK_ERROR = "task.error"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TaskEvent(BaseModel):
    event_id: str = Field(default_factory=lambda: uuid4().hex)
    type: EventType
    task_id: str | None = None
    ts: datetime = Field(default_factory=_utc_now)
    payload: dict[str, Any] = Field(default_factory=dict)
    content: bytes | None = Field(
        default=None,
        exclude=True,
        description="Uploaded bytes, handed to observers that cache content locally.",
    )

    @classmethod
    def upload_accepted(
        cls,
        *,
        record_id: int | None,
        user_id: str,
        filename: str,
        task_ids: dict[str, str],
        content: bytes,
    ) -> TaskEvent:
        return cls(
            type=EventType.UPLOAD_ACCEPTED,
            payload={
                "record_id": record_id,
                "user_id": user_id,
                "filename": filename,
                "size": len(content),
                "async_tasks": task_ids,
            },
            content=content,
        )

    @classmethod
    def status(cls, task: Task) -> TaskEvent:
        return cls(
            type=EventType.TASK_STATUS,
            task_id=task.id,
            payload={"status": task.status.value},
        )

    @classmethod
    def result(cls, task_type: TaskType, result: TypedTaskResult) -> TaskEvent:
        return cls(
            type=EventType.TASK_RESULT,
            task_id=result.task_id,
            payload={"task_type": task_type.value, "result": result.model_dump(mode="json")},
        )

    @classmethod
    def error(cls, task_type: TaskType, task_id: str, exc: Exception) -> TaskEvent:
        return cls(
            type=EventType.TASK_ERROR,
            task_id=task_id,
            payload={
                "task_type": task_type.value,
                "error": type(exc).__name__,
                "message": getattr(exc, "user_message", str(exc)),
            },
        )
