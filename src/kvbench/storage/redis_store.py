#!/usr/bin/env python3
"""
redis_store.py: Redis store adapter

Thin async adapter over redis.asyncio that maps SET/GET/MGET/DEL onto the
store interface and translates redis errors into kvbench errors.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..evaluation.config import RedisSettings
from ..interfaces.store_adapter import (
    ReadError,
    StoreAdapter,
    StoreConnectionError,
    StoreHealthStatus,
    WriteError,
)

logger = logging.getLogger(__name__)


class RedisStoreAdapter(StoreAdapter):
    """Store adapter over a pooled redis.asyncio client."""

    def __init__(self, settings: Optional[RedisSettings] = None, client: Optional[redis.Redis] = None):
        """
        Initialize the Redis adapter.

        Args:
            settings: Connection settings; defaults come from REDIS_* variables
            client: Pre-built client, mainly for tests; settings are then only used for logging
        """
        self.settings = settings or RedisSettings()
        self.client: Optional[redis.Redis] = client

    @property
    def backend_name(self) -> str:
        return "redis"

    async def initialize(self) -> None:
        if self.client is None:
            # Values stay as bytes so they can be compared byte for byte
            self.client = redis.Redis(
                host=self.settings.host,
                port=self.settings.port,
                db=self.settings.db,
                password=self.settings.password,
                socket_connect_timeout=self.settings.socket_timeout,
                socket_timeout=self.settings.socket_timeout,
                max_connections=self.settings.max_connections,
                decode_responses=False,
            )

        try:
            await self.client.ping()
            if self.settings.flush_on_start:
                await self.client.flushdb()
        except RedisError as e:
            await self.cleanup()
            raise StoreConnectionError(
                self.backend_name, f"cannot reach {self.settings.host}:{self.settings.port}: {e}", e
            ) from e

        logger.info(f"Redis store connected to {self.settings.host}:{self.settings.port}/{self.settings.db}")

    async def cleanup(self) -> None:
        if self.client is None:
            return
        client, self.client = self.client, None
        await client.aclose()

    async def put(self, key: bytes, value: bytes) -> None:
        try:
            await self._client().set(key, value)
        except RedisError as e:
            raise WriteError(self.backend_name, f"SET: {e}", e) from e

    async def multi_put(self, items: Iterable[Tuple[bytes, bytes]]) -> None:
        mapping = dict(items)
        if not mapping:
            return
        try:
            async with self._client().pipeline(transaction=False) as pipe:
                pipe.mset(mapping)
                await pipe.execute()
        except RedisError as e:
            raise WriteError(self.backend_name, f"MSET: {e}", e) from e

    async def get(self, key: bytes) -> Optional[bytes]:
        try:
            return await self._client().get(key)
        except RedisError as e:
            raise ReadError(self.backend_name, f"GET: {e}", e) from e

    async def multi_get(self, keys: Sequence[bytes]) -> List[Optional[bytes]]:
        if not keys:
            return []
        try:
            return list(await self._client().mget(list(keys)))
        except RedisError as e:
            raise ReadError(self.backend_name, f"MGET: {e}", e) from e

    async def delete(self, key: bytes) -> None:
        try:
            await self._client().delete(key)
        except RedisError as e:
            raise WriteError(self.backend_name, f"DEL: {e}", e) from e

    async def health_check(self) -> StoreHealthStatus:
        try:
            await self._client().ping()
            size = await self._client().dbsize()
        except RedisError as e:
            return StoreHealthStatus(backend_name=self.backend_name, is_healthy=False, error_message=str(e))
        return StoreHealthStatus(
            backend_name=self.backend_name,
            details={"host": self.settings.host, "port": self.settings.port, "dbsize": size},
        )

    def _client(self) -> redis.Redis:
        if self.client is None:
            raise RedisError("Redis store is not initialized")
        return self.client
