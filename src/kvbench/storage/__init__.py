"""
Store adapters for the backends kvbench can drive.
"""

from ..evaluation.config import BackendSettings
from ..interfaces.store_adapter import StoreAdapter
from .memory_store import MemoryStoreAdapter
from .redis_store import RedisStoreAdapter
from .sqlite_store import SQLiteStoreAdapter

ADAPTER_TYPES = {
    "memory": MemoryStoreAdapter,
    "sqlite": SQLiteStoreAdapter,
    "redis": RedisStoreAdapter,
}


def create_adapter(settings: BackendSettings) -> StoreAdapter:
    """Build the store adapter named by settings.type."""
    if settings.type == "memory":
        return MemoryStoreAdapter()
    if settings.type == "sqlite":
        return SQLiteStoreAdapter(settings.sqlite)
    if settings.type == "redis":
        return RedisStoreAdapter(settings.redis)
    raise ValueError(f"Unknown backend type: {settings.type}")


__all__ = [
    "ADAPTER_TYPES",
    "MemoryStoreAdapter",
    "RedisStoreAdapter",
    "SQLiteStoreAdapter",
    "create_adapter",
]
