"""
Throughput and progress metrics for benchmark phases.

Every phase and every backend goes through the same arithmetic:

- in flight: ``elapsed = now - start`` and ``op/s = ops * 1000 / elapsed``;
  when a planned end is known and not yet reached, also
  ``remain = end - now`` and ``percent = remain * 100 / (end - start)``
- finished: ``elapsed = end - start`` and ``op/s = ops * 1000 / elapsed``

All times are milliseconds on the kvbench Clock.
"""

import logging
import threading
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Tuple

import psutil

from ..core.clock import MILLIS_PER_SECOND, PROCESS_CLOCK, Clock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressSample:
    """Read-only snapshot of a running phase."""

    elapsed_ms: float
    ops_done: int
    ops_total: int

    ops_per_second: Optional[float] = None
    remain_ms: Optional[float] = None
    percent_remaining: Optional[float] = None

    memory_mb: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def ops_per_second(ops: int, elapsed_ms: float) -> float:
    """Throughput for ops completed in elapsed_ms; 0.0 when no time has passed."""
    if elapsed_ms <= 0:
        return 0.0
    return ops * MILLIS_PER_SECOND / elapsed_ms


def progress_stats(
    start: float,
    now: float,
    end: Optional[float],
    ops_done: int,
    ops_total: int = 0,
    memory_mb: Optional[float] = None,
) -> ProgressSample:
    """In-flight progress for a phase started at ``start`` and planned to end at ``end``."""
    elapsed = now - start
    rate = ops_done * MILLIS_PER_SECOND / elapsed if elapsed > 0 else None

    remain = percent = None
    if end is not None and now < end:
        remain = end - now
        percent = remain * 100.0 / (end - start)

    return ProgressSample(
        elapsed_ms=elapsed,
        ops_done=ops_done,
        ops_total=ops_total,
        ops_per_second=rate,
        remain_ms=remain,
        percent_remaining=percent,
        memory_mb=memory_mb,
    )


def final_stats(start: float, end: float, ops_done: int) -> Tuple[float, float]:
    """Return (elapsed_ms, ops_per_second) for a completed phase."""
    elapsed = end - start
    return elapsed, ops_per_second(ops_done, elapsed)


def format_perf(start: float, end: float, ops_done: int, now: Optional[float] = None) -> str:
    """
    One-line performance text.

    While ``now < end`` the line reads ``"<elapsed> → <remain> : <pct>%, op/s=<rate>"``,
    afterwards ``"<elapsed>, op/s=<rate>"``.
    """
    if start > end:
        raise ValueError(f"start must not be after end: {start} > {end}")

    if now is not None and now < end:
        sample = progress_stats(start, now, end, ops_done)
        rate = sample.ops_per_second or 0.0
        return (
            f"{sample.elapsed_ms:.0f} → {sample.remain_ms:.0f} : "
            f"{sample.percent_remaining:.2f}%, op/s={rate:.2f}"
        )

    elapsed, rate = final_stats(start, end, ops_done)
    return f"{elapsed:.0f}, op/s={rate:.2f}"


class MetricsCollector:
    """Aggregates worker op counts into progress samples for one phase."""

    def __init__(self, ops_total: int, clock: Clock = PROCESS_CLOCK, track_memory: bool = True):
        self.ops_total = ops_total
        self.clock = clock
        self.start_ms: Optional[float] = None
        self.planned_end_ms: Optional[float] = None

        self._ops_done = 0
        self._lock = threading.Lock()
        self._process = psutil.Process() if track_memory else None

    def start(self, planned_duration_ms: Optional[float] = None) -> float:
        """Mark the phase start; the planned end is derived from the duration if given."""
        self.start_ms = self.clock.now()
        if planned_duration_ms is not None:
            self.planned_end_ms = self.start_ms + planned_duration_ms
        return self.start_ms

    def add(self, ops: int) -> None:
        with self._lock:
            self._ops_done += ops

    @property
    def ops_done(self) -> int:
        with self._lock:
            return self._ops_done

    def sample(self) -> ProgressSample:
        if self.start_ms is None:
            raise RuntimeError("MetricsCollector.sample() called before start()")
        return progress_stats(
            self.start_ms,
            self.clock.now(),
            self.planned_end_ms,
            self.ops_done,
            self.ops_total,
            memory_mb=self._memory_mb(),
        )

    def finish(self, ops_completed: int, end_ms: Optional[float] = None) -> Tuple[float, float]:
        """Return (elapsed_ms, ops_per_second) using the final-summary formula."""
        if self.start_ms is None:
            raise RuntimeError("MetricsCollector.finish() called before start()")
        end = self.clock.now() if end_ms is None else end_ms
        return final_stats(self.start_ms, end, ops_completed)

    def _memory_mb(self) -> Optional[float]:
        if self._process is None:
            return None
        try:
            return self._process.memory_info().rss / 1024 / 1024
        except psutil.Error as e:
            logger.debug(f"Memory sample unavailable: {e}")
            return None
