from __future__ import annotations

import logging

from src.flow.domain.exceptions import InvalidResponseError, UnsupportedTaskTypeError
from src.flow.domain.models.payloads import TaskResultPayload
from src.flow.domain.models.task import Task
from src.flow.domain.models.task_result import (
    EatingTip,
    EatingTipsResult,
    GlucoseTrendResult,
    TypedTaskResult,
)
from src.flow.domain.models.task_state import TaskState
from src.flow.domain.models.task_type import TaskType

logger = logging.getLogger(__name__)

DEFAULT_TIME_POINTS = [0, 15, 30, 45, 60, 90, 120]
DEFAULT_STEP_MINUTES = 15
DEFAULT_GLUCOSE_CURVE = [95.0, 125.0, 148.0, 138.0, 118.0, 102.0, 94.0]
DEFAULT_PEAK_VALUE = 148.0
DEFAULT_PEAK_TIME_MINUTES = 30
# Not reported by the backend yet.
IMPACT_LEVEL = "MEDIUM"
RECOVERY_TIME_MINUTES = 110
NORMAL_RANGE_LOW = 70.0
NORMAL_RANGE_HIGH = 140.0

DEFAULT_TIPS_TITLE = "Adjusting your eating order can lower your glucose peak"
TIP_ICON = "fork.knife"


class ResultTransformer:
    """
    Turn a completed task's generic payload into a typed result.

    Missing fields are filled with defaults instead of failing; every field
    that was filled in is listed in ``defaulted_fields`` of the result.
    """

    def transform(self, task: Task, expected_type: TaskType | None = None) -> TypedTaskResult:
        if task.status is not TaskState.COMPLETED:
            raise ValueError(f"Task '{task.id}' is {task.status.value}, not COMPLETED")

        task_type = self._resolve_type(task, expected_type)
        payload = task.result or TaskResultPayload()
        if task.result is None:
            logger.warning("Completed task has no result payload", extra={"task_id": task.id})

        if task_type is TaskType.GLUCOSE_TREND:
            return self.to_glucose_trend(task.id, payload)
        if task_type is TaskType.EATING_ORDER:
            return self.to_eating_tips(task.id, payload)
        raise UnsupportedTaskTypeError(f"No result mapping for task type {task_type.value}")

    @staticmethod
    def _resolve_type(task: Task, expected_type: TaskType | None) -> TaskType:
        if expected_type is not None and task.task_type is not None:
            if expected_type is not task.task_type:
                raise InvalidResponseError(
                    f"Task '{task.id}' reported type {task.task_type.value}, "
                    f"expected {expected_type.value}"
                )
        task_type = expected_type or task.task_type
        if task_type is None:
            raise UnsupportedTaskTypeError(f"Task '{task.id}' has an unknown type")
        return task_type

    def to_glucose_trend(self, task_id: str, payload: TaskResultPayload) -> GlucoseTrendResult:
        defaulted: set[str] = set()

        glucose_values = payload.trend_data
        if not glucose_values:
            glucose_values = list(DEFAULT_GLUCOSE_CURVE)
            defaulted.add("glucose_values")

        time_points = payload.time_points
        if not time_points or len(time_points) != len(glucose_values):
            time_points = _default_axis(len(glucose_values))
            defaulted.add("time_points")

        peak_value = payload.peak_value
        if peak_value is None:
            peak_value = DEFAULT_PEAK_VALUE
            defaulted.add("peak_value")

        peak_time_minutes = _parse_minutes(payload.peak_time)
        if peak_time_minutes is None:
            peak_time_minutes = DEFAULT_PEAK_TIME_MINUTES
            defaulted.add("peak_time_minutes")

        return GlucoseTrendResult(
            task_id=task_id,
            time_points=time_points,
            glucose_values=glucose_values,
            peak_value=peak_value,
            peak_time_minutes=peak_time_minutes,
            impact_level=IMPACT_LEVEL,
            recovery_time_minutes=RECOVERY_TIME_MINUTES,
            normal_range_low=NORMAL_RANGE_LOW,
            normal_range_high=NORMAL_RANGE_HIGH,
            defaulted_fields=frozenset(defaulted),
        )

    def to_eating_tips(self, task_id: str, payload: TaskResultPayload) -> EatingTipsResult:
        defaulted: set[str] = set()

        title = payload.title
        if not title:
            title = DEFAULT_TIPS_TITLE
            defaulted.add("title")

        if payload.tips is None:
            defaulted.add("tips")
        tips = [
            EatingTip(
                order=tip.order,
                icon_name=TIP_ICON,
                title=tip.title,
                description=tip.description,
                related_foods=tip.related_foods,
            )
            for tip in payload.tips or []
        ]

        return EatingTipsResult(
            task_id=task_id,
            title=title,
            tips=tips,
            expected_improvement=payload.expected_improvement,
            defaulted_fields=frozenset(defaulted),
        )


def _parse_minutes(value: str | None) -> int | None:
    """Read ``"30"``, ``"30.0"`` or ``"30min"`` as minutes; anything else is None."""
    if not value:
        return None
    digits = value.strip().lower().removesuffix("min").strip()
    try:
        return int(float(digits))
    except (ValueError, OverflowError):
        return None


def _default_axis(samples: int) -> list[int]:
    """Default time axis with one point per sample."""
    if samples == len(DEFAULT_TIME_POINTS):
        return list(DEFAULT_TIME_POINTS)
    return [index * DEFAULT_STEP_MINUTES for index in range(samples)]
