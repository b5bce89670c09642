import logging

import inject
import pytest

from src.flow.application.broadcaster import TaskEventBroadcaster
from src.flow.application.poller import PollingPolicy
from src.flow.domain.events.task_event import EventType, TaskEvent
from src.flow.domain.models import TaskState
from src.flow.domain.repositories import TaskRepository
from src.flow.infrastructure.broadcast.broadcasters import FanOutBroadcaster, LoggingBroadcaster
from src.flow.infrastructure.http.repositories import HttpTaskRepository
from src.setup.app_config import build_binder_config
from src.setup.client_config import ClientSettings
from tests.stubs import RecordingBroadcaster, make_task


@pytest.mark.asyncio
async def test_fan_out_forwards_in_registration_order() -> None:
    first, second = RecordingBroadcaster(), RecordingBroadcaster()
    fan_out = FanOutBroadcaster([first])
    fan_out.register(second)
    event = TaskEvent.status(make_task("t1", TaskState.RUNNING))

    await fan_out.broadcast(event)

    assert first.events == [event]
    assert second.events == [event]


@pytest.mark.asyncio
async def test_logging_broadcaster_records_event(caplog: pytest.LogCaptureFixture) -> None:
    event = TaskEvent.status(make_task("t1", TaskState.PENDING))

    with caplog.at_level(logging.INFO, logger="src.flow.infrastructure.broadcast.broadcasters"):
        await LoggingBroadcaster().broadcast(event)

    (record,) = caplog.records
    assert record.type == EventType.TASK_STATUS.value
    assert record.task_id == "t1"
    assert record.payload == {"status": "PENDING"}


def test_settings_are_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "http://backend.local:9000")
    monkeypatch.setenv("POLL_INTERVAL_SECONDS", "0.5")
    monkeypatch.setenv("MAX_TRANSIENT_FAILURES", "4")

    settings = ClientSettings(_env_file=None)
    policy = PollingPolicy.from_settings(settings)

    assert settings.API_BASE_URL == "http://backend.local:9000"
    assert settings.MAX_POLL_ATTEMPTS == 30
    assert policy == PollingPolicy(interval_seconds=0.5, max_attempts=30, max_transient_failures=4)


def test_binder_config_wires_http_services() -> None:
    settings = ClientSettings(_env_file=None, MAX_POLL_ATTEMPTS=12)
    config = build_binder_config(settings)
    injector = inject.Injector(config)

    assert callable(config)
    assert isinstance(injector.get_instance(TaskRepository), HttpTaskRepository)
    assert isinstance(injector.get_instance(TaskEventBroadcaster), FanOutBroadcaster)
    assert injector.get_instance(PollingPolicy).max_attempts == 12
    assert injector.get_instance(ClientSettings) is settings
