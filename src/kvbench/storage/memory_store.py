#!/usr/bin/env python3
"""
In-memory store adapter.

Provides the same interface as the real backends but keeps data in a dict,
for baseline numbers and fast tests.
"""

import asyncio
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..interfaces.store_adapter import StoreAdapter, StoreHealthStatus


class MemoryStoreAdapter(StoreAdapter):
    """Dict-backed store adapter."""

    def __init__(self, latency_seconds: float = 0.0):
        """
        Initialize the in-memory store.

        Args:
            latency_seconds: Delay awaited on every call, to simulate I/O; 0 still yields
        """
        self.storage: Dict[bytes, bytes] = {}
        self.latency_seconds = latency_seconds
        self.put_count = 0
        self.get_count = 0
        self.delete_count = 0

    @property
    def backend_name(self) -> str:
        return "memory"

    async def put(self, key: bytes, value: bytes) -> None:
        await self._io()
        self.storage[key] = value
        self.put_count += 1

    async def multi_put(self, items: Iterable[Tuple[bytes, bytes]]) -> None:
        await self._io()
        for key, value in items:
            self.storage[key] = value
            self.put_count += 1

    async def get(self, key: bytes) -> Optional[bytes]:
        await self._io()
        self.get_count += 1
        return self.storage.get(key)

    async def multi_get(self, keys: Sequence[bytes]) -> List[Optional[bytes]]:
        await self._io()
        self.get_count += len(keys)
        return [self.storage.get(key) for key in keys]

    async def delete(self, key: bytes) -> None:
        await self._io()
        self.storage.pop(key, None)
        self.delete_count += 1

    async def health_check(self) -> StoreHealthStatus:
        return StoreHealthStatus(
            backend_name=self.backend_name,
            is_healthy=True,
            details={
                "storage_count": len(self.storage),
                "put_count": self.put_count,
                "get_count": self.get_count,
                "delete_count": self.delete_count,
            },
        )

    async def _io(self) -> None:
        # sleep(0) still hands control to other workers, as a network round trip would
        await asyncio.sleep(self.latency_seconds)
