"""Backend-neutral interfaces for kvbench."""

from .store_adapter import (
    BenchmarkError,
    ConfigurationError,
    PhaseTimeoutError,
    ReadError,
    StoreAdapter,
    StoreConnectionError,
    StoreError,
    StoreHealthStatus,
    WriteError,
)

__all__ = [
    "BenchmarkError",
    "ConfigurationError",
    "PhaseTimeoutError",
    "ReadError",
    "StoreAdapter",
    "StoreConnectionError",
    "StoreError",
    "StoreHealthStatus",
    "WriteError",
]
