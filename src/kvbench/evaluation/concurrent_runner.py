"""
Concurrent execution of benchmark phases.

A phase's iterations are partitioned across a fixed pool of asyncio worker
tasks. Each worker runs its share in order, counting completed operations
locally and publishing them to the MetricsCollector every ``progress_every``
operations. The runner waits for every worker under the phase timeout:

- the first exception raised by any worker is held in a single-assignment
  slot; later ones are logged and dropped
- sibling workers are never cancelled because one of them failed
- when the wait expires the op counts are snapshotted, the abandoned tasks
  are cancelled and the phase is reported with a PhaseTimeoutError
"""

import asyncio
import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Sequence, Tuple

from ..core.clock import PROCESS_CLOCK, Clock
from ..core.utils import partition
from ..core.verifier import VerificationFailure
from ..core.workload import PhaseKind, WorkloadSpec
from ..interfaces.store_adapter import PhaseTimeoutError
from .metrics import MetricsCollector, ProgressSample, format_perf

logger = logging.getLogger(__name__)


@dataclass
class StepResult:
    """Outcome of one iteration of a worker's unit of work."""

    ops: int = 1
    failures: Sequence[VerificationFailure] = field(default_factory=tuple)


# (worker_index, local_iteration) -> StepResult
WorkUnit = Callable[[int, int], Awaitable[StepResult]]


@dataclass(frozen=True)
class BenchmarkResult:
    """Terminal result of one phase."""

    phase_kind: PhaseKind
    elapsed_ms: float
    ops_completed: int
    ops_per_second: float
    failures: Tuple[VerificationFailure, ...] = ()
    error: Optional[BaseException] = None

    ops_planned: int = 0
    worker_count: int = 1
    backend_name: str = ""

    @property
    def failed(self) -> bool:
        """True when a phase-fatal error was captured."""
        return self.error is not None

    @property
    def passed(self) -> bool:
        return not self.failed and not self.failures

    def summary(self) -> str:
        """Throughput line, or a failure line naming the fatal error."""
        perf = format_perf(0.0, self.elapsed_ms, self.ops_completed)
        line = (
            f"{self.phase_kind.value} [{self.backend_name}] {self.ops_completed}/{self.ops_planned} ops "
            f"on {self.worker_count} worker(s): {perf}"
        )
        if self.failures:
            line += f", {len(self.failures)} verification failure(s)"
        if self.error is not None:
            line += f", FAILED: {type(self.error).__name__}: {self.error}"
        return line

    def to_dict(self, failure_limit: Optional[int] = None) -> Dict[str, Any]:
        failures = self.failures if failure_limit is None else self.failures[:failure_limit]
        return {
            "phase_kind": self.phase_kind.value,
            "backend_name": self.backend_name,
            "elapsed_ms": self.elapsed_ms,
            "ops_completed": self.ops_completed,
            "ops_planned": self.ops_planned,
            "ops_per_second": self.ops_per_second,
            "worker_count": self.worker_count,
            "failure_count": len(self.failures),
            "failures": [f.to_dict() for f in failures],
            "error": None if self.error is None else f"{type(self.error).__name__}: {self.error}",
            "passed": self.passed,
        }


class FirstFailure:
    """Single-assignment slot for the first fatal error of a phase."""

    def __init__(self):
        self._lock = threading.Lock()
        self._error: Optional[BaseException] = None

    def offer(self, error: BaseException) -> bool:
        """Store error if the slot is empty; return True if it was stored."""
        with self._lock:
            if self._error is not None:
                return False
            self._error = error
            return True

    @property
    def error(self) -> Optional[BaseException]:
        return self._error


class ConcurrentRunner:
    """Runs one phase's unit of work across the phase's worker pool."""

    def __init__(
        self,
        spec: WorkloadSpec,
        clock: Clock = PROCESS_CLOCK,
        progress_every: int = 10_000,
        progress_interval_seconds: float = 5.0,
        track_memory: bool = True,
    ):
        """
        Initialize the runner.

        Args:
            spec: Phase description; worker_count and timeout_seconds are used here
            clock: Time source for elapsed/throughput arithmetic
            progress_every: Ops a worker completes before publishing its count
            progress_interval_seconds: How often the progress reporter logs a sample
            track_memory: Include process RSS in progress samples
        """
        if progress_every < 1:
            raise ValueError(f"progress_every must be >= 1, got {progress_every}")
        self.spec = spec
        self.clock = clock
        self.progress_every = progress_every
        self.progress_interval_seconds = progress_interval_seconds
        self.track_memory = track_memory

        self.samples: Deque[ProgressSample] = deque(maxlen=1000)

    async def run(
        self,
        work: WorkUnit,
        iterations: int,
        ops_total: Optional[int] = None,
        backend_name: str = "",
    ) -> BenchmarkResult:
        """
        Execute ``iterations`` calls of ``work`` across the worker pool.

        Args:
            work: Unit of work, called with (worker_index, local_iteration)
            iterations: Total iterations, partitioned evenly across workers
            ops_total: Planned operation count for progress reporting (defaults to iterations)
            backend_name: Name recorded in the result

        Returns:
            BenchmarkResult for the phase; never raises for worker or timeout failures
        """
        kind = self.spec.phase_kind
        workers = self.spec.worker_count
        ops_total = iterations if ops_total is None else ops_total

        collector = MetricsCollector(ops_total, self.clock, self.track_memory)
        shares = partition(iterations, workers)
        counts = [0] * workers
        failures: Deque[VerificationFailure] = deque()
        first_failure = FirstFailure()

        logger.info(f"Starting {kind.value}: {ops_total} ops across {workers} worker(s)")
        start = collector.start(planned_duration_ms=self.spec.timeout_seconds * 1000.0)

        tasks = [
            asyncio.create_task(
                self._worker(w, shares[w], work, counts, failures, first_failure, collector),
                name=f"{kind.value}-worker-{w}",
            )
            for w in range(workers)
        ]
        reporter = asyncio.create_task(self._report_progress(collector), name=f"{kind.value}-progress")

        try:
            _, pending = await asyncio.wait(tasks, timeout=self.spec.timeout_seconds)
            # Snapshot before the next await; abandoned workers keep running until cancelled
            end = self.clock.now()
            ops_completed = sum(counts)
            phase_failures = tuple(failures)
            error = first_failure.error
        finally:
            reporter.cancel()
            await asyncio.gather(reporter, return_exceptions=True)

        if pending:
            timeout_error = PhaseTimeoutError(kind.value, self.spec.timeout_seconds, ops_completed)
            logger.error(f"{timeout_error}; abandoning {len(pending)} worker(s)")
            if error is not None:
                logger.warning(f"{kind.value} also had a worker failure before the timeout: {error}")
            error = timeout_error
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        elapsed, rate = collector.finish(ops_completed, end_ms=end)
        return BenchmarkResult(
            phase_kind=kind,
            elapsed_ms=elapsed,
            ops_completed=ops_completed,
            ops_per_second=rate,
            failures=phase_failures,
            error=error,
            ops_planned=ops_total,
            worker_count=workers,
            backend_name=backend_name,
        )

    async def _worker(
        self,
        worker_index: int,
        iterations: int,
        work: WorkUnit,
        counts: List[int],
        failures: Deque[VerificationFailure],
        first_failure: FirstFailure,
        collector: MetricsCollector,
    ) -> None:
        unpublished = 0
        try:
            for iteration in range(iterations):
                try:
                    step = await work(worker_index, iteration)
                except Exception as e:
                    if first_failure.offer(e):
                        logger.error(
                            f"{self.spec.phase_kind.value} worker {worker_index} failed at "
                            f"iteration {iteration}: {e}"
                        )
                    else:
                        logger.warning(
                            f"{self.spec.phase_kind.value} worker {worker_index} failed at "
                            f"iteration {iteration} (not held, first failure already captured): {e}"
                        )
                    return

                counts[worker_index] += step.ops
                unpublished += step.ops
                if step.failures:
                    failures.extend(step.failures)
                if unpublished >= self.progress_every:
                    collector.add(unpublished)
                    unpublished = 0
        finally:
            collector.add(unpublished)

    async def _report_progress(self, collector: MetricsCollector) -> None:
        """Log a progress sample every progress_interval_seconds until cancelled."""
        while True:
            await asyncio.sleep(self.progress_interval_seconds)
            sample = collector.sample()
            self.samples.append(sample)

            rate = f"{sample.ops_per_second:.2f}" if sample.ops_per_second is not None else "n/a"
            line = (
                f"{self.spec.phase_kind.value} progress: {sample.ops_done}/{sample.ops_total} ops, "
                f"elapsed={sample.elapsed_ms:.0f}ms, op/s={rate}"
            )
            if sample.remain_ms is not None:
                line += f", deadline in {sample.remain_ms:.0f}ms ({sample.percent_remaining:.2f}%)"
            if sample.memory_mb is not None:
                line += f", rss={sample.memory_mb:.1f}MB"
            logger.info(line)
