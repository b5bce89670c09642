from __future__ import annotations

import pytest

from src.flow.application.poller import PollingPolicy, TaskPoller
from tests.stubs import FakeScheduler, RecordingBroadcaster, StubTaskRepository


@pytest.fixture
def task_repository() -> StubTaskRepository:
    return StubTaskRepository()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def policy() -> PollingPolicy:
    return PollingPolicy(interval_seconds=1.5, max_attempts=30)


@pytest.fixture
def poller(
    task_repository: StubTaskRepository, scheduler: FakeScheduler, policy: PollingPolicy
) -> TaskPoller:
    return TaskPoller(repository=task_repository, scheduler=scheduler, policy=policy)
