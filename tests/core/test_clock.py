#!/usr/bin/env python3
"""
Unit tests for the monotonic Clock and helpers.
"""

import pytest

from kvbench.core.clock import Clock, now
from kvbench.core.utils import close_quietly, partition
from kvbench.storage.memory_store import MemoryStoreAdapter


class FakeTime:
    """Controllable nanosecond time source."""

    def __init__(self, start_ns: int = 0):
        self.value = start_ns

    def __call__(self) -> int:
        return self.value


class TestClock:
    """Test Clock behaviour."""

    def test_now_is_elapsed_milliseconds_since_epoch(self):
        fake = FakeTime(5_000_000_000)
        clock = Clock(time_source=fake, epoch_ns=5_000_000_000)

        assert clock.now() == 0.0
        fake.value += 2_500_000
        assert clock.now() == 2.5

    def test_process_clock_is_monotonic(self):
        readings = [now() for _ in range(100)]
        assert readings == sorted(readings)
        assert readings[0] >= 0.0


class TestPartition:
    """Test even partitioning of operations across workers."""

    def test_even_split(self):
        assert partition(100, 10) == [10] * 10

    def test_remainder_goes_to_first_workers(self):
        assert partition(10, 3) == [4, 3, 3]

    def test_fewer_ops_than_workers(self):
        assert partition(2, 4) == [1, 1, 0, 0]

    def test_sum_is_preserved(self):
        assert sum(partition(12345, 7)) == 12345

    def test_invalid_worker_count(self):
        with pytest.raises(ValueError):
            partition(10, 0)


class ExplodingStore(MemoryStoreAdapter):
    """Store whose cleanup always fails."""

    async def cleanup(self) -> None:
        raise RuntimeError("close failed")


class TestCloseQuietly:
    """Test adapter release helper."""

    @pytest.mark.asyncio
    async def test_close_failure_is_logged_not_raised(self, caplog):
        await close_quietly(ExplodingStore())
        assert "Failed to close ExplodingStore" in caplog.text

    @pytest.mark.asyncio
    async def test_none_is_ignored(self):
        await close_quietly(None)
