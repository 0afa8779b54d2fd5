#!/usr/bin/env python3
"""
clock.py: Monotonic elapsed-time source anchored at process start.

All benchmark timings are expressed in milliseconds since the epoch captured
the first time this module is imported, so they never move backwards when the
wall clock is adjusted.
"""

import time
from typing import Callable

NANOS_PER_MILLI = 1_000_000
MILLIS_PER_SECOND = 1000.0

_EPOCH_NS = time.monotonic_ns()


class Clock:
    """Elapsed milliseconds since a fixed epoch."""

    def __init__(self, time_source: Callable[[], int] = time.monotonic_ns, epoch_ns: int = _EPOCH_NS):
        self._time_source = time_source
        self._epoch_ns = epoch_ns

    def now(self) -> float:
        """Return elapsed milliseconds since the epoch."""
        return (self._time_source() - self._epoch_ns) / NANOS_PER_MILLI


PROCESS_CLOCK = Clock()


def now() -> float:
    """Milliseconds elapsed since process start on the process-wide clock."""
    return PROCESS_CLOCK.now()
