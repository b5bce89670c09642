from __future__ import annotations

import logging
from typing import Iterable

from src.flow.application.broadcaster import TaskEventBroadcaster
from src.flow.domain.events.task_event import TaskEvent

logger = logging.getLogger(__name__)


class LoggingBroadcaster(TaskEventBroadcaster):
    """Default observer: records every event in the log."""

    async def broadcast(self, event: TaskEvent) -> None:
        logger.info(
            "Task event",
            extra={"type": event.type.value, "task_id": event.task_id, "payload": event.payload},
        )


class FanOutBroadcaster(TaskEventBroadcaster):
    """Forward each event to several observers, in registration order."""

    def __init__(self, broadcasters: Iterable[TaskEventBroadcaster]) -> None:
        self._broadcasters = list(broadcasters)

    def register(self, broadcaster: TaskEventBroadcaster) -> None:
        self._broadcasters.append(broadcaster)

    async def broadcast(self, event: TaskEvent) -> None:
        for broadcaster in self._broadcasters:
            await broadcaster.broadcast(event)
