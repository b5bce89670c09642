from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.flow.domain.models.task_type import TaskType


class FoodAnalysis(BaseModel):
    """Synchronous analysis returned by the upload call."""

    model_config = ConfigDict(frozen=True, extra="allow")

    food_items: list[str] = Field(default_factory=list, description="Recognized foods.")
    confidence: float = Field(default=0.0, description="Recognition confidence (0..1).")
    is_balanced: bool = Field(default=False, description="Whether the meal is balanced.")
    nutrition_summary: str = Field(default="", description="Free-text nutrition summary.")

    @property
    def food_items_text(self) -> str:
        return ", ".join(self.food_items)


class SubmissionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    analysis_result: FoodAnalysis
    async_tasks: dict[TaskType, str] = Field(
        default_factory=dict, description="Spawned background task id per task kind."
    )
    record_id: int | None = Field(
        default=None, description="Identifier of the persisted meal record."
    )

    @property
    def has_async_tasks(self) -> bool:
        return bool(self.async_tasks)

    @property
    def all_task_ids(self) -> list[str]:
        return list(self.async_tasks.values())

    def task_id_for(self, task_type: TaskType) -> str | None:
        return self.async_tasks.get(task_type)

    @property
    def glucose_trend_task_id(self) -> str | None:
        return self.task_id_for(TaskType.GLUCOSE_TREND)

    @property
    def eating_order_task_id(self) -> str | None:
        return self.task_id_for(TaskType.EATING_ORDER)

    def task_type_for(self, task_id: str) -> TaskType | None:
        for task_type, known_id in self.async_tasks.items():
            if known_id == task_id:
                return task_type
        return None

    def summary(self) -> dict[str, Any]:
        return {
            "record_id": self.record_id,
            "tasks": {task_type.key: task_id for task_type, task_id in self.async_tasks.items()},
        }
