from pydantic import BaseModel, ConfigDict, Field


class TaskMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    created_at: str | None = Field(
        default=None, description="When the backend created the task."
    )
    completed_at: str | None = Field(
        default=None, description="When the task reached a terminal state."
    )
