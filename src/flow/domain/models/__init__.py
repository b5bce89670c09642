from src.flow.domain.models.payloads import EatingTipResult, TaskResultPayload
from src.flow.domain.models.submission import FoodAnalysis, SubmissionResult
from src.flow.domain.models.task import Task
from src.flow.domain.models.task_metadata import TaskMetadata
from src.flow.domain.models.task_result import (
    EatingTip,
    EatingTipsResult,
    GlucoseTrendResult,
    TypedTaskResult,
)
from src.flow.domain.models.task_state import TaskState
from src.flow.domain.models.task_type import TaskType

__all__ = [
    "Task",
    "TaskState",
    "TaskType",
    "TaskMetadata",
    "TaskResultPayload",
    "EatingTipResult",
    "FoodAnalysis",
    "SubmissionResult",
    "TypedTaskResult",
    "GlucoseTrendResult",
    "EatingTipsResult",
    "EatingTip",
]
