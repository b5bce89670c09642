from enum import Enum


class TaskType(str, Enum):
    """Kinds of background work the backend spawns for an upload."""

    GLUCOSE_TREND = "GLUCOSE_TREND"
    EATING_ORDER = "EATING_ORDER"
    # Reserved by the backend, no result mapping yet.
    HEALTH_SCORE = "HEALTH_SCORE"

    @property
    def key(self) -> str:
        """Key used for this kind in the upload response ``asyncTasks`` map."""
        return _KEYS[self]

    @classmethod
    def from_key(cls, key: str) -> "TaskType | None":
        for task_type, task_key in _KEYS.items():
            if task_key == key:
                return task_type
        return None

    @classmethod
    def parse(cls, value: str | None) -> "TaskType | None":
        try:
            return cls(value)
        except ValueError:
            return None


_KEYS = {
    TaskType.GLUCOSE_TREND: "glucoseTrend",
    TaskType.EATING_ORDER: "eatingOrder",
    TaskType.HEALTH_SCORE: "healthScore",
}
