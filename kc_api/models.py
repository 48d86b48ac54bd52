from __future__ import annotations
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, ClassVar, Dict, Optional

from .errors import InvalidInput


class TaskKind(str, Enum):
    SUMMARIZE = "summarize"
    KEYWORDS = "keywords"
    NORMALIZE = "normalize"


# Task names agreed with the AI worker; they are part of the wire contract.
TASK_NAMES: Dict[TaskKind, str] = {
    TaskKind.SUMMARIZE: "ai_worker.tasks.summarize",
    TaskKind.KEYWORDS: "ai_worker.tasks.extract_keywords",
    TaskKind.NORMALIZE: "ai_worker.tasks.normalize_request",
}


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    STARTED = "STARTED"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    RETRY = "RETRY"
    REVOKED = "REVOKED"


class TaskInput(BaseModel):
    """Base for the three task inputs. Doubles as the HTTP request body."""

    kind: ClassVar[TaskKind]

    @property
    def task_name(self) -> str:
        return TASK_NAMES[self.kind]

    def validate_input(self) -> None:
        raise NotImplementedError

    def to_kwargs(self) -> Dict[str, Any]:
        raise NotImplementedError


class SummarizeInput(TaskInput):
    kind: ClassVar[TaskKind] = TaskKind.SUMMARIZE

    text: str = ""
    max_length: Optional[int] = None

    def validate_input(self) -> None:
        if not self.text:
            raise InvalidInput("text is required")

    def to_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {"text": self.text}
        # Zero or negative means "worker default"
        if self.max_length is not None and self.max_length > 0:
            kwargs["max_length"] = self.max_length
        return kwargs


class KeywordsInput(TaskInput):
    kind: ClassVar[TaskKind] = TaskKind.KEYWORDS

    text: str = ""
    max_keywords: Optional[int] = None

    def validate_input(self) -> None:
        if not self.text:
            raise InvalidInput("text is required")

    def to_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {"text": self.text}
        if self.max_keywords is not None and self.max_keywords > 0:
            kwargs["max_keywords"] = self.max_keywords
        return kwargs


class NormalizeInput(TaskInput):
    model_config = ConfigDict(populate_by_name=True)
    kind: ClassVar[TaskKind] = TaskKind.NORMALIZE

    request: str = ""
    schema_: Optional[Dict[str, Any]] = Field(default=None, alias="schema")

    def validate_input(self) -> None:
        if not self.request:
            raise InvalidInput("request is required")
        if not self.schema_:
            raise InvalidInput("schema is required")

    def to_kwargs(self) -> Dict[str, Any]:
        return {"request": self.request, "schema": dict(self.schema_ or {})}


class TaskResult(BaseModel):
    id: str
    status: str
    result: Optional[Any] = None
    error: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None

    @classmethod
    def pending(cls, task_id: str) -> "TaskResult":
        return cls(id=task_id, status=TaskStatus.PENDING.value)


class SubmitTaskResponse(BaseModel):
    task_id: str
    message: str


class TaskStatusResponse(BaseModel):
    task_id: str
    status: str
    result: Optional[Any] = None
    error: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None

    @classmethod
    def from_result(cls, r: TaskResult) -> "TaskStatusResponse":
        return cls(
            task_id=r.id,
            status=r.status,
            result=r.result,
            error=r.error,
            started_at=r.started_at,
            completed_at=r.completed_at,
        )


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
    message: str
