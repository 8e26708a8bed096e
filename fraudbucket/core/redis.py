"""Redis client lifecycle.

A single ``RedisClient`` is constructed at process start, connected in
the application lifespan and disconnected on shutdown. Nothing reaches
it through module globals; stores receive it explicitly.
"""

from __future__ import annotations

from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from fraudbucket.core.config import RedisConfig
from fraudbucket.core.logging import get_logger

logger = get_logger(__name__)


class RedisClient:
    """Owns the connection pool to the expiring key-value service."""

    def __init__(self, config: RedisConfig, client: Any | None = None):
        self.config = config
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            raise RuntimeError("Redis client is not connected")
        return self._client

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        """Open the pool and verify the server answers."""
        if self._client is None:
            self._client = aioredis.from_url(
                self.config.url,
                decode_responses=True,
                socket_timeout=self.config.socket_timeout,
                socket_connect_timeout=self.config.socket_timeout,
            )
        await self._client.ping()
        logger.info("redis_connected")

    async def disconnect(self) -> None:
        if self._client is None:
            return
        try:
            await self._client.aclose()
            logger.info("redis_disconnected")
        except RedisError as e:
            logger.warning("redis_disconnect_failed", error=str(e))
        finally:
            self._client = None

    async def ping(self) -> bool:
        if self._client is None:
            return False
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.warning("redis_ping_failed", error=str(e))
            return False
