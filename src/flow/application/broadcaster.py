from __future__ import annotations

from typing import Protocol

from src.flow.domain.events.task_event import TaskEvent


class TaskEventBroadcaster(Protocol):
    async def broadcast(self, event: TaskEvent) -> None:
        """Notify observers (UI layer, local content cache) about a task event."""
