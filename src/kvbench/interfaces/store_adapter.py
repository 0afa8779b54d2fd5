#!/usr/bin/env python3
"""
Store adapter interface for kvbench.

This module defines the capability interface every key-value backend must
implement so the workload runner can drive it without knowing which client
library sits underneath, plus the error taxonomy shared by the whole harness.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field


class StoreHealthStatus(BaseModel):
    """Health status information for a store adapter."""

    backend_name: str = Field(..., description="Name of the backend that reported")
    is_healthy: bool = Field(default=True, description="Whether the backend answered")
    error_message: Optional[str] = Field(default=None, description="Error message if unhealthy")
    details: Dict[str, Any] = Field(default_factory=dict, description="Backend-specific counters")


class BenchmarkError(Exception):
    """Base class for every error raised by kvbench."""


class ConfigurationError(BenchmarkError):
    """Raised when a harness configuration cannot be loaded or validated."""


class StoreError(BenchmarkError):
    """Exception raised when a backend operation fails."""

    operation = "operation"

    def __init__(self, backend_name: str, message: str, original_error: Optional[BaseException] = None):
        self.backend_name = backend_name
        self.message = message
        self.original_error = original_error
        super().__init__(f"Backend '{backend_name}' {self.operation} failed: {message}")


class WriteError(StoreError):
    """A put, multi_put or delete was rejected by the backend or failed on I/O."""

    operation = "write"


class ReadError(StoreError):
    """A get or multi_get failed on I/O. An absent key is not a ReadError."""

    operation = "read"


class StoreConnectionError(StoreError):
    """The backend could not be reached, so no phase can start."""

    operation = "connection"


class PhaseTimeoutError(BenchmarkError, TimeoutError):
    """The runner's completion wait expired before every worker finished."""

    def __init__(self, phase: str, timeout_seconds: float, ops_completed: int):
        self.phase = phase
        self.timeout_seconds = timeout_seconds
        self.ops_completed = ops_completed
        super().__init__(
            f"Phase {phase} did not complete within {timeout_seconds}s "
            f"({ops_completed} ops completed)"
        )


class StoreAdapter(ABC):
    """
    Abstract capability interface for key-value backends.

    Keys and values are byte strings. Every operation may be awaited
    concurrently by many workers on the same instance; adapters that need
    external synchronization must provide it internally.
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the name of this backend (e.g., 'memory', 'sqlite', 'redis')."""
        pass

    @abstractmethod
    async def put(self, key: bytes, value: bytes) -> None:
        """
        Store a value under key, overwriting any previous value.

        Raises:
            WriteError: If the backend rejects the write or I/O fails
        """
        pass

    @abstractmethod
    async def get(self, key: bytes) -> Optional[bytes]:
        """
        Fetch the value stored under key.

        Returns:
            The stored bytes, or None when the key does not exist

        Raises:
            ReadError: If the read fails on I/O
        """
        pass

    @abstractmethod
    async def multi_get(self, keys: Sequence[bytes]) -> List[Optional[bytes]]:
        """
        Fetch many keys in one call.

        Returns:
            A list with the same length and order as keys; missing keys are None

        Raises:
            ReadError: If the backend cannot service the batch at all
        """
        pass

    @abstractmethod
    async def delete(self, key: bytes) -> None:
        """
        Remove key. Deleting an absent key is not an error.

        Raises:
            WriteError: If the backend rejects the delete or I/O fails
        """
        pass

    async def multi_put(self, items: Iterable[Tuple[bytes, bytes]]) -> None:
        """
        Store many key/value pairs.

        Backends with a native batch write should override this; the default
        issues one put per pair in order.
        """
        for key, value in items:
            await self.put(key, value)

    async def health_check(self) -> StoreHealthStatus:
        """Report backend health; adapters can override to add details."""
        return StoreHealthStatus(backend_name=self.backend_name)

    async def initialize(self) -> None:
        """
        Acquire backend resources (optional).

        Raises:
            StoreConnectionError: If the backend cannot be reached
        """
        pass

    async def cleanup(self) -> None:
        """Release backend resources (optional)."""
        pass

    async def __aenter__(self) -> "StoreAdapter":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.cleanup()
