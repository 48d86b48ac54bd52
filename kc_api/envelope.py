"""Celery protocol envelopes.

The queue element and the result record are an interoperability contract with
the Celery-based AI worker, so every field name and nesting level below is
fixed. The inner task envelope is serialized to a JSON string and carried in
the ``body`` field of the outer message. ``properties.body_encoding`` says
``base64`` while the body is plain JSON text; Celery's Redis transport accepts
that and we keep it as-is.
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
import uuid

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_core import PydanticSerializationError

from .errors import EncodingError, MalformedResult

RESULT_KEY_PREFIX = "celery-task-meta-"
DEFAULT_QUEUE = "celery"
LANG = "py"


def result_key(task_id: str) -> str:
    return f"{RESULT_KEY_PREFIX}{task_id}"


class CeleryHeaders(BaseModel):
    lang: str = LANG
    task: str
    id: str
    root_id: str
    parent_id: Optional[str] = None
    group: Optional[str] = None


class CeleryTask(BaseModel):
    id: str
    task: str
    args: List[Any] = Field(default_factory=list)
    kwargs: Dict[str, Any] = Field(default_factory=dict)
    retries: int = 0
    utctime: datetime
    headers: CeleryHeaders


class DeliveryInfo(BaseModel):
    exchange: str = ""
    routing_key: str


class CeleryProperties(BaseModel):
    correlation_id: str
    reply_to: str
    delivery_mode: int = 2
    delivery_info: DeliveryInfo
    priority: int = 0
    body_encoding: str = "base64"
    delivery_tag: str


class CeleryMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    body: str
    content_encoding: str = Field(default="utf-8", alias="content-encoding")
    content_type: str = Field(default="application/json", alias="content-type")
    headers: CeleryHeaders
    properties: CeleryProperties


class ResultEnvelope(BaseModel):
    """What the worker's result backend stores under ``celery-task-meta-<id>``."""

    status: str
    result: Any = None
    traceback: Optional[str] = None
    children: Any = None
    date_done: Optional[str] = None


def build_message(
    task_name: str,
    kwargs: Dict[str, Any],
    task_id: str,
    queue_name: str = DEFAULT_QUEUE,
    *,
    now: Optional[datetime] = None,
) -> CeleryMessage:
    headers = CeleryHeaders(task=task_name, id=task_id, root_id=task_id)
    task = CeleryTask(
        id=task_id,
        task=task_name,
        args=[],
        kwargs=dict(kwargs),
        retries=0,
        utctime=now or datetime.now(timezone.utc),
        headers=headers,
    )
    try:
        body = task.model_dump_json()
    except (PydanticSerializationError, TypeError, ValueError) as e:
        raise EncodingError(f"task kwargs are not JSON serializable: {type(e).__name__}") from e

    return CeleryMessage(
        body=body,
        headers=headers,
        properties=CeleryProperties(
            correlation_id=task_id,
            # Never read back; kept for workers that expect it.
            reply_to=str(uuid.uuid4()),
            delivery_info=DeliveryInfo(routing_key=queue_name),
            delivery_tag=str(uuid.uuid4()),
        ),
    )


def encode_submit(
    task_name: str,
    kwargs: Dict[str, Any],
    task_id: str,
    queue_name: str = DEFAULT_QUEUE,
) -> bytes:
    """Render one task call as the UTF-8 JSON queue element."""
    message = build_message(task_name, kwargs, task_id, queue_name)
    return message.model_dump_json(by_alias=True).encode("utf-8")


def decode_result(raw: Union[bytes, str]) -> ResultEnvelope:
    """Parse a result record.

    Unknown ``status`` strings are passed through; it is up to the caller to
    treat them as failures.
    """
    try:
        return ResultEnvelope.model_validate_json(raw)
    except (ValidationError, ValueError) as e:
        raise MalformedResult("malformed result envelope") from e
