from pydantic import BaseModel, ConfigDict, Field

from src.flow.domain.models.payloads import TaskResultPayload
from src.flow.domain.models.task_metadata import TaskMetadata
from src.flow.domain.models.task_state import TaskState
from src.flow.domain.models.task_type import TaskType


class Task(BaseModel):
    """Point-in-time snapshot of one backend task as observed by the client."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique task identifier assigned by the backend.")
    task_type: TaskType | None = Field(
        default=None, description="Kind of task; None when the backend sent an unknown kind."
    )
    status: TaskState = Field(description="Current state of the task.")
    result: TaskResultPayload | None = Field(
        default=None, description="Result payload, only set once completed."
    )
    metadata: TaskMetadata = Field(
        default_factory=TaskMetadata, description="Lifecycle timestamps."
    )
    error_message: str | None = Field(
        default=None, description="Failure reason, only set once failed."
    )

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal
