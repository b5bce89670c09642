from src.flow.domain.events.task_event import EventType, TaskEvent

__all__ = ["EventType", "TaskEvent"]
