"""Test fixtures for the AI task bridge."""

import asyncio
from typing import Dict, List, Optional

import jwt
import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from kc_api.client import TaskClient
from kc_api.config import Settings, settings as app_settings
from kc_api.main import create_app
from kc_api.redis_broker import RedisBroker
from kc_api.service import DisabledTaskService, LiveTaskService


class FakeRedis:
    """Deterministic in-memory stand-in for ``redis.asyncio.Redis``.

    Records every command so tests can assert that no broker I/O happened.
    """

    def __init__(self):
        self.lists: Dict[str, List[bytes]] = {}
        self.kv: Dict[str, bytes] = {}
        self.calls: List[tuple] = []
        self.fail_with: Optional[Exception] = None
        self.ping_delay: float = 0.0
        self.lpush_delay: float = 0.0
        self.get_delay: float = 0.0
        self.closed = False

    def _record(self, *call) -> None:
        self.calls.append(call)
        if self.fail_with is not None:
            raise self.fail_with

    def set_result(self, task_id: str, body) -> None:
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.kv[f"celery-task-meta-{task_id}"] = body

    async def ping(self) -> bool:
        self._record("ping")
        if self.ping_delay:
            await asyncio.sleep(self.ping_delay)
        return True

    async def lpush(self, name: str, *values) -> int:
        # The write lands once the delay elapses, like a slow round trip.
        if self.lpush_delay:
            await asyncio.sleep(self.lpush_delay)
        self._record("lpush", name)
        items = self.lists.setdefault(name, [])
        for v in values:
            items.insert(0, v if isinstance(v, bytes) else str(v).encode("utf-8"))
        return len(items)

    async def llen(self, name: str) -> int:
        return len(self.lists.get(name, []))

    async def get(self, name: str) -> Optional[bytes]:
        self._record("get", name)
        if self.get_delay:
            await asyncio.sleep(self.get_delay)
        return self.kv.get(name)

    async def delete(self, *names) -> int:
        self._record("delete", *names)
        removed = 0
        for n in names:
            if self.kv.pop(n, None) is not None:
                removed += 1
        return removed

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def broker(fake_redis):
    return RedisBroker(fake_redis, queue_name="celery", result_ttl=3600)


@pytest.fixture
def task_client(broker):
    return TaskClient(broker)


@pytest.fixture
def live_service(task_client):
    return LiveTaskService(task_client)


@pytest.fixture
def broker_down(fake_redis):
    fake_redis.fail_with = RedisConnectionError("Error 111 connecting to redis.internal:6379. Connection refused.")
    return fake_redis


@pytest.fixture
def auth_headers():
    token = jwt.encode({"sub": "user-1", "role": "agent"}, app_settings.jwt_secret, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def api(live_service):
    app = create_app(Settings(redis_addr=None), task_service=live_service)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def disabled_api():
    app = create_app(Settings(redis_addr=None), task_service=DisabledTaskService())
    with TestClient(app) as client:
        yield client
