from __future__ import annotations

import logging

from src.flow.domain.models.submission import FoodAnalysis, SubmissionResult
from src.flow.domain.models.task import Task
from src.flow.domain.models.task_metadata import TaskMetadata
from src.flow.domain.models.task_state import TaskState
from src.flow.domain.models.task_type import TaskType
from src.flow.infrastructure.http.schemas import FoodAnalysisDTO, TaskDataDTO, UploadDataDTO

logger = logging.getLogger(__name__)


class WireMapper:
    @staticmethod
    def to_task(dto: TaskDataDTO) -> Task:
        status = TaskState.parse(dto.status)
        if status.value != dto.status:
            logger.warning(
                "Unknown task status, treating as pending",
                extra={"task_id": dto.task_id, "status": dto.status},
            )
        return Task(
            id=dto.task_id,
            task_type=TaskType.parse(dto.task_type),
            status=status,
            result=dto.result if status is TaskState.COMPLETED else None,
            metadata=TaskMetadata(created_at=dto.created_at, completed_at=dto.completed_at),
            error_message=dto.error_message if status is TaskState.FAILED else None,
        )

    @staticmethod
    def to_food_analysis(dto: FoodAnalysisDTO) -> FoodAnalysis:
        return FoodAnalysis(
            food_items=dto.food_items,
            confidence=dto.confidence,
            is_balanced=dto.is_balanced,
            nutrition_summary=dto.nutrition_summary,
            **(dto.model_extra or {}),
        )

    @staticmethod
    def to_submission(dto: UploadDataDTO) -> SubmissionResult:
        async_tasks: dict[TaskType, str] = {}
        for key, task_id in (dto.async_tasks or {}).items():
            task_type = TaskType.from_key(key)
            if task_type is None:
                logger.warning(
                    "Ignoring unknown async task kind",
                    extra={"key": key, "task_id": task_id},
                )
                continue
            async_tasks[task_type] = task_id
        return SubmissionResult(
            analysis_result=WireMapper.to_food_analysis(dto.analysis_result),
            async_tasks=async_tasks,
            record_id=dto.meal_record_id,
        )
