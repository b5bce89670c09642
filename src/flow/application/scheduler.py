from __future__ import annotations

import asyncio
from typing import Protocol


class Scheduler(Protocol):
    async def sleep(self, seconds: float) -> None:
        """Suspend the calling coroutine for ``seconds``."""


class AsyncioScheduler(Scheduler):
    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
