"""AI task service.

The AI queue is an optional dependency: the service is either live (wrapping a
``TaskClient``) or disabled. ``build_task_service`` picks one at startup and
never fails; a disabled service answers every call with ``NotConfigured``.
"""

from __future__ import annotations
from typing import Any, Dict, Optional

import structlog

from .client import TaskClient
from .config import Settings
from .errors import InvalidInput, NotConfigured, Unreachable
from .models import KeywordsInput, NormalizeInput, SummarizeInput, TaskInput, TaskResult
from .redis_broker import RedisBroker

logger = structlog.get_logger()


def _require_task_id(task_id: str) -> None:
    if not task_id or not task_id.strip():
        raise InvalidInput("task ID is required")


class TaskService:
    enabled: bool = False

    async def submit(self, task: TaskInput) -> str:
        raise NotImplementedError

    async def summarize(self, text: str, max_length: Optional[int] = None) -> str:
        return await self.submit(SummarizeInput(text=text, max_length=max_length))

    async def extract_keywords(self, text: str, max_keywords: Optional[int] = None) -> str:
        return await self.submit(KeywordsInput(text=text, max_keywords=max_keywords))

    async def normalize_request(self, request: str, schema: Optional[Dict[str, Any]]) -> str:
        return await self.submit(NormalizeInput(request=request, schema_=schema))

    async def get_task_result(self, task_id: str) -> TaskResult:
        raise NotImplementedError

    async def get_task_status(self, task_id: str) -> str:
        raise NotImplementedError

    async def delete_task_result(self, task_id: str) -> None:
        raise NotImplementedError

    async def health(self) -> Dict[str, Any]:
        raise NotImplementedError

    async def close(self) -> None:
        return None


class DisabledTaskService(TaskService):
    enabled = False

    async def health(self) -> Dict[str, Any]:
        return {"ai_queue": "disabled"}

    async def submit(self, task: TaskInput) -> str:
        raise NotConfigured()

    async def get_task_result(self, task_id: str) -> TaskResult:
        raise NotConfigured()

    async def get_task_status(self, task_id: str) -> str:
        raise NotConfigured()

    async def delete_task_result(self, task_id: str) -> None:
        raise NotConfigured()


class LiveTaskService(TaskService):
    enabled = True

    def __init__(self, client: TaskClient) -> None:
        self.client = client

    async def submit(self, task: TaskInput) -> str:
        task.validate_input()
        return await self.client.submit(task.task_name, task.to_kwargs())

    async def get_task_result(self, task_id: str) -> TaskResult:
        _require_task_id(task_id)
        return await self.client.fetch(task_id)

    async def get_task_status(self, task_id: str) -> str:
        _require_task_id(task_id)
        return await self.client.status(task_id)

    async def delete_task_result(self, task_id: str) -> None:
        _require_task_id(task_id)
        await self.client.delete(task_id)

    async def health(self) -> Dict[str, Any]:
        try:
            await self.client.broker.probe()
        except Unreachable as e:
            return {"ai_queue": "enabled", "broker": "unreachable", "error": e.cause_name}
        return {"ai_queue": "enabled", "broker": "ok", "queue": self.client.queue_name}

    async def close(self) -> None:
        await self.client.broker.close()


async def build_task_service(settings: Settings) -> TaskService:
    if not settings.ai_queue_enabled:
        logger.info("AI queue integration not configured (REDIS_ADDR not set)")
        return DisabledTaskService()

    try:
        broker = await RedisBroker.connect(settings)
    except Unreachable as e:
        logger.warning("failed to create AI queue client", addr=settings.redis_addr, error=e.cause_name)
        return DisabledTaskService()
    except ValueError as e:
        logger.warning("invalid AI queue configuration", addr=settings.redis_addr, error=str(e))
        return DisabledTaskService()

    logger.info(
        "AI queue integration initialized",
        addr=settings.redis_addr,
        db=settings.redis_db,
        queue=settings.redis_queue_name,
        result_ttl=settings.redis_result_ttl_seconds,
    )
    return LiveTaskService(TaskClient(broker))
