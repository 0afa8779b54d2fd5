"""Pytest configuration for kvbench tests.

This file configures the test environment and handles import paths centrally.
All test files should use this configuration - DO NOT add sys.path manipulations
in individual test files.
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest

# Centralized sys.path configuration for all tests
project_root = Path(__file__).parent.parent
src_root = project_root / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

os.environ.setdefault("ENVIRONMENT", "test")

from kvbench.core.workload import PhaseKind, WorkloadGenerator  # noqa: E402
from kvbench.evaluation.config import HarnessConfig  # noqa: E402
from kvbench.storage.memory_store import MemoryStoreAdapter  # noqa: E402


@pytest.fixture
def small_config_data() -> Dict[str, Any]:
    """Provide a small, fast harness configuration as a dictionary."""
    return {
        "base_key_offset": 7_900_000_000_000,
        "key_count": 200,
        "value_repeat_factor": 7,
        "worker_count": 10,
        "batch_size": 16,
        "timeout_seconds": 30,
        "seed": 1234,
        "progress_every": 50,
        "progress_interval_seconds": 60,
        "backend": {"type": "memory"},
    }


@pytest.fixture
def small_config(small_config_data) -> HarnessConfig:
    """Provide a validated small harness configuration."""
    return HarnessConfig(**small_config_data)


@pytest.fixture
def generator(small_config) -> WorkloadGenerator:
    """Provide the generator matching small_config."""
    return WorkloadGenerator(small_config.base_key_offset, small_config.value_repeat_factor)


@pytest.fixture
def memory_store() -> MemoryStoreAdapter:
    """Provide an empty in-memory store."""
    return MemoryStoreAdapter()


@pytest.fixture
def loaded_memory_store(small_config, generator) -> MemoryStoreAdapter:
    """Provide an in-memory store already holding every key of small_config."""
    store = MemoryStoreAdapter()
    for index in range(small_config.key_count):
        key = generator.key_for(index)
        store.storage[key] = generator.value_for(key)
    return store


@pytest.fixture
def read_phases():
    """Every phase except LOAD, in default order."""
    return [
        PhaseKind.READ_SEQUENTIAL,
        PhaseKind.READ_RANDOM,
        PhaseKind.BATCH_READ,
        PhaseKind.READ_RANDOM_CONCURRENT,
    ]


@pytest.fixture
def mock_redis_client():
    """Mock redis.asyncio client for adapter testing."""
    mock_client = MagicMock()

    mock_client.ping = AsyncMock(return_value=True)
    mock_client.flushdb = AsyncMock(return_value=True)
    mock_client.set = AsyncMock(return_value=True)
    mock_client.get = AsyncMock(return_value=None)
    mock_client.mget = AsyncMock(return_value=[])
    mock_client.delete = AsyncMock(return_value=0)
    mock_client.dbsize = AsyncMock(return_value=0)
    mock_client.aclose = AsyncMock()

    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[True])
    pipe.__aenter__ = AsyncMock(return_value=pipe)
    pipe.__aexit__ = AsyncMock(return_value=False)
    mock_client.pipeline = MagicMock(return_value=pipe)

    return mock_client
