from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Sequence

import inject

from src.flow.application.services import TaskService, UploadService
from src.flow.domain.exceptions import FlowError
from src.flow.domain.models import TaskType
from src.flow.infrastructure.http.client import ApiClient
from src.setup.app_config import configure_di
from src.setup.client_config import get_client_settings
from src.setup.logging_config import configure_logging

_TYPE_CHOICES = [task_type.key for task_type in TaskType if task_type is not TaskType.HEALTH_SCORE]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flow-tasks",
        description="Upload meal images and follow their background analysis tasks.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    upload = commands.add_parser("upload", help="Upload an image and wait for every task.")
    upload.add_argument("image", type=Path, help="Path to a JPEG image.")
    upload.add_argument("--user-id", required=True, help="Identifier sent with the upload.")

    poll = commands.add_parser("poll", help="Poll one task until it finishes.")
    poll.add_argument("task_id")
    poll.add_argument("--type", dest="task_type", choices=_TYPE_CHOICES, required=True)

    status = commands.add_parser("status", help="Read the current state of tasks once.")
    status.add_argument("task_ids", nargs="+")
    return parser


def _print_json(data: object) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2, default=str))


async def _upload(args: argparse.Namespace) -> int:
    service = UploadService()
    submission = await service.submit(args.image.read_bytes(), args.user_id, args.image.name)
    _print_json({"analysis": submission.analysis_result.model_dump(), **submission.summary()})

    exit_code = 0
    async with service.track(submission) as tracker:
        async for outcome in tracker.outcomes():
            if outcome.ok:
                _print_json({outcome.task_type.key: outcome.result.model_dump(mode="json")})
            else:
                exit_code = 1
                print(f"{outcome.task_type.key}: {outcome.error.user_message}", file=sys.stderr)
    return exit_code


async def _poll(args: argparse.Namespace) -> int:
    result = await TaskService().poll_result(args.task_id, TaskType.from_key(args.task_type))
    _print_json(result.model_dump(mode="json"))
    return 0


async def _status(args: argparse.Namespace) -> int:
    tasks = await TaskService().refresh_all(args.task_ids)
    _print_json([task.model_dump(mode="json") for task in tasks])
    return 0


_COMMANDS = {"upload": _upload, "poll": _poll, "status": _status}


async def run(args: argparse.Namespace) -> int:
    try:
        return await _COMMANDS[args.command](args)
    except FlowError as exc:
        print(exc.user_message, file=sys.stderr)
        return 1
    finally:
        await inject.instance(ApiClient).aclose()


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_client_settings()
    configure_logging(settings.LOG_LEVEL)
    configure_di(settings)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
