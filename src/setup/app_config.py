from typing import Callable

import inject

from src.flow.application.broadcaster import TaskEventBroadcaster
from src.flow.application.poller import PollingPolicy
from src.flow.application.scheduler import AsyncioScheduler, Scheduler
from src.flow.domain.repositories import TaskRepository, UploadRepository
from src.flow.infrastructure.broadcast.broadcasters import FanOutBroadcaster, LoggingBroadcaster
from src.flow.infrastructure.http.client import ApiClient
from src.flow.infrastructure.http.repositories import HttpTaskRepository, HttpUploadRepository
from src.setup.client_config import ClientSettings, get_client_settings


def build_binder_config(settings: ClientSettings) -> Callable[[inject.Binder], None]:
    """Return an ``inject`` configuration function for ``settings``."""
    def _config(binder: inject.Binder) -> None:
        client = ApiClient.from_settings(settings)
        binder.bind(ClientSettings, settings)
        binder.bind(ApiClient, client)
        binder.bind(TaskRepository, HttpTaskRepository(client))
        binder.bind(UploadRepository, HttpUploadRepository(client, settings.UPLOAD_MIME_TYPE))
        binder.bind(Scheduler, AsyncioScheduler())
        binder.bind(PollingPolicy, PollingPolicy.from_settings(settings))
        binder.bind(TaskEventBroadcaster, FanOutBroadcaster([LoggingBroadcaster()]))

    return _config


def configure_di(settings: ClientSettings | None = None) -> None:
    """Bind the HTTP-backed services once per process."""
    if inject.is_configured():
        return
    inject.configure(build_binder_config(settings or get_client_settings()))
