from __future__ import annotations
import asyncio
import functools
from typing import Any, Dict
import uuid

import structlog

from .envelope import decode_result, encode_submit, result_key
from .errors import MalformedResult
from .models import TaskResult, TaskStatus
from .metrics import metrics
from .redis_broker import RedisBroker

logger = structlog.get_logger()

MALFORMED_RESULT_ERROR = "malformed result envelope"


def _log_failed_write(task_id: str, write: "asyncio.Future[Any]") -> None:
    # Retrieves the outcome even when the submitting caller is already gone.
    if write.cancelled():
        return
    exc = write.exception()
    if exc is not None:
        logger.warning("queued write failed", task_id=task_id, error=str(exc))


class TaskClient:
    """Submits Celery tasks and reads their results.

    Holds nothing but the broker handle; all task state lives in Redis.
    """

    def __init__(self, broker: RedisBroker) -> None:
        self.broker = broker

    @property
    def queue_name(self) -> str:
        return self.broker.queue_name

    def result_key(self, task_id: str) -> str:
        return result_key(task_id)

    async def submit(self, task_name: str, kwargs: Dict[str, Any]) -> str:
        task_id = str(uuid.uuid4())
        payload = encode_submit(task_name, kwargs, task_id, self.queue_name)

        # Once the write has started the task may land in the queue regardless,
        # so a disconnecting caller does not abort it.
        write = asyncio.ensure_future(self.broker.enqueue(self.queue_name, payload))
        write.add_done_callback(functools.partial(_log_failed_write, task_id))
        await asyncio.shield(write)
        logger.info("task submitted", task_id=task_id, task=task_name, queue=self.queue_name)
        return task_id

    async def fetch(self, task_id: str) -> TaskResult:
        raw = await self.broker.read_result(task_id)
        if raw is None:
            return TaskResult.pending(task_id)

        try:
            meta = decode_result(raw)
        except MalformedResult:
            logger.warning("malformed task result", task_id=task_id, key=self.result_key(task_id))
            await metrics.inc("malformed_results", 1)
            return TaskResult(id=task_id, status=TaskStatus.FAILURE.value, error=MALFORMED_RESULT_ERROR)

        out = TaskResult(id=task_id, status=meta.status, completed_at=meta.date_done)
        if meta.status == TaskStatus.SUCCESS.value:
            out.result = meta.result
        elif meta.status == TaskStatus.FAILURE.value:
            out.error = meta.traceback
        return out

    async def status(self, task_id: str) -> str:
        return (await self.fetch(task_id)).status

    async def delete(self, task_id: str) -> None:
        await self.broker.delete_result(task_id)
