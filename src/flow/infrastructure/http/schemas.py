from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.flow.domain.models.payloads import TaskResultPayload


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class TaskDataDTO(WireModel):
    task_id: str
    task_type: str = ""
    status: str = Field(description="PENDING, RUNNING, COMPLETED, FAILED or CANCELLED.")
    result: TaskResultPayload | None = None
    created_at: str | None = None
    completed_at: str | None = None
    error_message: str | None = None


class FoodAnalysisDTO(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    food_items: list[str] = Field(default_factory=list)
    confidence: float = 0.0
    is_balanced: bool = False
    nutrition_summary: str = ""


class UploadDataDTO(WireModel):
    analysis_result: FoodAnalysisDTO
    async_tasks: dict[str, str] | None = None
    meal_record_id: int | None = None
