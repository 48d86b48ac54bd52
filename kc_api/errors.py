"""Error taxonomy of the AI task bridge.

Each class carries the HTTP status and the short error label the API layer
renders as ``{"error": ..., "message": ...}``.
"""

from __future__ import annotations
from typing import Optional


class AIQueueError(Exception):
    status_code: int = 500
    error: str = "Internal Server Error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(AIQueueError):
    status_code = 400
    error = "Bad Request"


class NotConfigured(AIQueueError):
    status_code = 503
    error = "Service Unavailable"

    def __init__(self, message: str = "AI worker queue is not available") -> None:
        super().__init__(message)


class TaskNotFound(AIQueueError):
    # Reserved: an absent result key is PENDING, not missing.
    status_code = 404
    error = "Not Found"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class Unreachable(AIQueueError):
    """Broker communication failed. The redis exception is kept as ``__cause__``."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None) -> None:
        self.operation = operation
        self.cause_name = type(cause).__name__ if cause is not None else "Unknown"
        super().__init__(f"broker {operation} failed ({self.cause_name})")


class EncodingError(AIQueueError):
    pass


class MalformedResult(AIQueueError):
    """The stored result record does not decode. Never rendered as an HTTP error."""
