from __future__ import annotations
import asyncio
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from .config import Settings
from .envelope import result_key
from .errors import Unreachable

_BROKER_ERRORS = (RedisError, OSError, asyncio.TimeoutError)


def make_redis(settings: Settings) -> redis.Redis:
    addr = settings.redis_addr or ""
    if "://" in addr:
        return redis.from_url(addr, password=settings.redis_password or None,
                              db=settings.redis_db, decode_responses=False)
    host, _, port = addr.partition(":")
    return redis.Redis(
        host=host or "localhost",
        port=int(port or 6379),
        password=settings.redis_password or None,
        db=settings.redis_db,
        decode_responses=False,
    )


class RedisBroker:
    """Celery's Redis transport as seen from the submitting side.

    The redis client owns the connection pool and is safe to share between
    concurrent request handlers. Errors are re-raised as ``Unreachable``; no
    retries happen here.
    """

    def __init__(self, r: redis.Redis, queue_name: str = "celery", result_ttl: int = 3600):
        self.r = r
        self.queue_name = queue_name
        # Advisory: the worker's result backend applies expiry.
        self.result_ttl = result_ttl

    @classmethod
    async def connect(cls, settings: Settings, r: Optional[redis.Redis] = None) -> "RedisBroker":
        r = r if r is not None else make_redis(settings)
        broker = cls(r, settings.redis_queue_name, settings.redis_result_ttl_seconds)
        try:
            await asyncio.wait_for(broker.probe(), timeout=settings.redis_probe_timeout_seconds)
        except asyncio.TimeoutError as e:
            await r.aclose()
            raise Unreachable("ping", e) from e
        except Unreachable:
            await r.aclose()
            raise
        return broker

    async def probe(self) -> None:
        try:
            await self.r.ping()
        except _BROKER_ERRORS as e:
            raise Unreachable("ping", e) from e

    async def enqueue(self, queue_name: str, payload: bytes) -> None:
        # Celery workers BRPOP the other end
        try:
            await self.r.lpush(queue_name, payload)
        except _BROKER_ERRORS as e:
            raise Unreachable("enqueue", e) from e

    async def read_result(self, task_id: str) -> Optional[bytes]:
        try:
            return await self.r.get(result_key(task_id))
        except _BROKER_ERRORS as e:
            raise Unreachable("read", e) from e

    async def delete_result(self, task_id: str) -> None:
        try:
            await self.r.delete(result_key(task_id))
        except _BROKER_ERRORS as e:
            raise Unreachable("delete", e) from e

    async def close(self) -> None:
        await self.r.aclose()
