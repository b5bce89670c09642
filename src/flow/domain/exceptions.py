from __future__ import annotations

GENERIC_NETWORK_MESSAGE = "Network is unavailable, please try again later."
GENERIC_RESPONSE_MESSAGE = "The server returned an unexpected response."
GENERIC_TIMEOUT_MESSAGE = "Analysis is taking longer than expected, please check back later."


class FlowError(Exception):
    """Base class for every error surfaced by the task client."""

    fallback_message: str | None = None

    @property
    def user_message(self) -> str:
        """Text suitable for showing to the user."""
        if self.fallback_message is not None:
            return self.fallback_message
        return str(self)


class InvalidRequestError(FlowError):
    """Raised when a request cannot be built (bad URL, missing id or content)."""

    fallback_message = "The request could not be sent."


class TransportFailureError(FlowError):
    """Raised when the network call itself did not complete."""

    fallback_message = GENERIC_NETWORK_MESSAGE


class InvalidResponseError(FlowError):
    """Raised on non-2xx responses or bodies that do not match the expected schema."""

    fallback_message = GENERIC_RESPONSE_MESSAGE

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UnsupportedTaskTypeError(InvalidResponseError):
    """Raised when a completed task has no typed result mapping."""


class ApplicationError(FlowError):
    """Raised when the response envelope carries a non-200 ``code``."""

    def __init__(self, message: str, code: int) -> None:
        super().__init__(message)
        self.code = code


class TaskFailedError(FlowError):
    DEFAULT_MESSAGE = "Task execution failed."

    def __init__(self, task_id: str, message: str | None = None) -> None:
        super().__init__(message or self.DEFAULT_MESSAGE)
        self.task_id = task_id


class TaskCancelledError(FlowError):
    MESSAGE = "Task was cancelled."

    def __init__(self, task_id: str) -> None:
        super().__init__(self.MESSAGE)
        self.task_id = task_id


class PollingTimeoutError(FlowError):
    """Raised when the attempt budget runs out before the task reaches a terminal state."""

    fallback_message = GENERIC_TIMEOUT_MESSAGE

    def __init__(
        self, task_id: str, attempts: int, last_error: FlowError | None = None
    ) -> None:
        super().__init__(f"Task '{task_id}' did not finish after {attempts} attempts.")
        self.task_id = task_id
        self.attempts = attempts
        self.last_error = last_error
