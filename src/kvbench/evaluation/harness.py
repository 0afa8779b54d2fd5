"""
Benchmark harness: runs the configured phases against one store adapter.

Phases run in the configured order (by default LOAD, READ_SEQUENTIAL,
READ_RANDOM, BATCH_READ, READ_RANDOM_CONCURRENT). Each phase produces a
BenchmarkResult; a failed phase does not block the next one unless
``stop_on_first_failure`` is set.
"""

import logging
import math
import random
from typing import List, Optional, Tuple

from ..core.clock import PROCESS_CLOCK, Clock
from ..core.utils import close_quietly
from ..core.verifier import Verifier
from ..core.workload import PhaseKind, WorkloadGenerator, WorkloadSpec
from ..interfaces.store_adapter import ReadError, StoreAdapter, StoreConnectionError
from .concurrent_runner import BenchmarkResult, ConcurrentRunner, StepResult, WorkUnit
from .config import HarnessConfig

logger = logging.getLogger(__name__)

# (unit of work, iterations, planned ops)
PhasePlan = Tuple[WorkUnit, int, int]


class Harness:
    """Orchestrates benchmark phases against a single StoreAdapter."""

    def __init__(
        self,
        adapter: StoreAdapter,
        config: HarnessConfig,
        clock: Clock = PROCESS_CLOCK,
        track_memory: bool = True,
    ):
        self.adapter = adapter
        self.config = config
        self.clock = clock
        self.track_memory = track_memory

        self.generator = WorkloadGenerator(config.base_key_offset, config.value_repeat_factor)
        self.verifier = Verifier(self.generator)
        self.results: List[BenchmarkResult] = []

    async def run(self) -> List[BenchmarkResult]:
        """
        Initialize the adapter, run every configured phase and release the adapter.

        Returns:
            One BenchmarkResult per phase that ran. If the backend cannot be
            reached, every configured phase is reported failed with the
            connection error.
        """
        self.results = []
        phases = list(self.config.phase_sequence)
        logger.info(
            f"Benchmarking backend '{self.adapter.backend_name}': "
            f"{self.config.key_count} keys, phases={[p.value for p in phases]}"
        )

        try:
            await self.adapter.initialize()
        except Exception as e:
            error = e
            if not isinstance(e, StoreConnectionError):
                error = StoreConnectionError(self.adapter.backend_name, f"initialize failed: {e}", e)
            logger.error(f"Backend '{self.adapter.backend_name}' unavailable, no phase started: {error}")
            self.results = [self._not_started(phase, error) for phase in phases]
            return self.results

        try:
            for index, phase in enumerate(phases):
                result = await self.run_phase(phase)
                self.results.append(result)
                self._log_result(result)

                if self.config.stop_on_first_failure and not result.passed:
                    skipped = [p.value for p in phases[index + 1:]]
                    if skipped:
                        logger.warning(f"Stopping after failed phase {phase.value}; skipping {skipped}")
                    break
        finally:
            await close_quietly(self.adapter)

        return self.results

    async def run_phase(self, phase: PhaseKind) -> BenchmarkResult:
        """Run a single phase; the adapter must already be initialized."""
        spec = self.config.workload_spec(phase)
        runner = ConcurrentRunner(
            spec,
            clock=self.clock,
            progress_every=self.config.progress_every,
            progress_interval_seconds=self.config.progress_interval_seconds,
            track_memory=self.track_memory,
        )
        work, iterations, ops_total = self._plan(spec)
        return await runner.run(work, iterations, ops_total, backend_name=self.adapter.backend_name)

    def _plan(self, spec: WorkloadSpec) -> PhasePlan:
        if spec.phase_kind == PhaseKind.LOAD:
            if spec.batch_size:
                return self._plan_batch_load(spec)
            return self._plan_load(spec)
        if spec.phase_kind == PhaseKind.READ_SEQUENTIAL:
            return self._plan_sequential_read(spec)
        if spec.phase_kind == PhaseKind.READ_RANDOM:
            return self._plan_random_read(spec, spec.key_count)
        if spec.phase_kind == PhaseKind.BATCH_READ:
            return self._plan_batch_read(spec)
        if spec.phase_kind == PhaseKind.READ_RANDOM_CONCURRENT:
            return self._plan_random_read(spec, spec.key_count * spec.worker_count)
        raise ValueError(f"Unsupported phase: {spec.phase_kind}")

    def _plan_load(self, spec: WorkloadSpec) -> PhasePlan:
        workers = spec.worker_count

        async def put_one(worker: int, iteration: int) -> StepResult:
            key = self.generator.key_for(iteration * workers + worker)
            await self.adapter.put(key, self.generator.value_for(key))
            return StepResult()

        return put_one, spec.key_count, spec.key_count

    def _plan_batch_load(self, spec: WorkloadSpec) -> PhasePlan:
        workers = spec.worker_count
        batch_size = spec.batch_size
        batches = math.ceil(spec.key_count / batch_size)

        async def put_batch(worker: int, iteration: int) -> StepResult:
            first = (iteration * workers + worker) * batch_size
            last = min(first + batch_size, spec.key_count)
            items = []
            for index in range(first, last):
                key = self.generator.key_for(index)
                items.append((key, self.generator.value_for(key)))
            await self.adapter.multi_put(items)
            return StepResult(ops=len(items))

        return put_batch, batches, spec.key_count

    def _plan_sequential_read(self, spec: WorkloadSpec) -> PhasePlan:
        workers = spec.worker_count

        async def read_next(worker: int, iteration: int) -> StepResult:
            key = self.generator.key_for(iteration * workers + worker)
            return self._verified(key, await self.adapter.get(key))

        return read_next, spec.key_count, spec.key_count

    def _plan_random_read(self, spec: WorkloadSpec, iterations: int) -> PhasePlan:
        rngs = self._worker_rngs(spec)

        async def read_random(worker: int, iteration: int) -> StepResult:
            key = self.generator.key_for(self.generator.sample_index(spec, rngs[worker]))
            return self._verified(key, await self.adapter.get(key))

        return read_random, iterations, iterations

    def _plan_batch_read(self, spec: WorkloadSpec) -> PhasePlan:
        workers = spec.worker_count
        batch_size = spec.batch_size
        batches = math.ceil(spec.key_count / batch_size)
        rngs = self._worker_rngs(spec)

        async def read_batch(worker: int, iteration: int) -> StepResult:
            first = (iteration * workers + worker) * batch_size
            size = min(batch_size, spec.key_count - first)
            keys = [
                self.generator.key_for(self.generator.sample_index(spec, rngs[worker]))
                for _ in range(size)
            ]
            values = await self.adapter.multi_get(keys)
            if len(values) != len(keys):
                raise ReadError(
                    self.adapter.backend_name,
                    f"multi_get returned {len(values)} values for {len(keys)} keys",
                )

            failures = []
            for key, value in zip(keys, values):
                failure = self.verifier.check(key, value)
                if failure is not None:
                    failures.append(failure)
            return StepResult(ops=len(keys), failures=failures)

        return read_batch, batches, spec.key_count

    def _verified(self, key: bytes, observed: Optional[bytes]) -> StepResult:
        failure = self.verifier.check(key, observed)
        return StepResult(failures=(failure,) if failure is not None else ())

    def _worker_rngs(self, spec: WorkloadSpec) -> List[random.Random]:
        """One RNG per worker; seeded per phase and worker when a seed is configured."""
        if self.config.seed is None:
            return [random.Random() for _ in range(spec.worker_count)]
        phase_offset = list(PhaseKind).index(spec.phase_kind) * 1_000_003
        return [random.Random(self.config.seed + phase_offset + w) for w in range(spec.worker_count)]

    def _not_started(self, phase: PhaseKind, error: BaseException) -> BenchmarkResult:
        spec = self.config.workload_spec(phase)
        _, _, ops_total = self._plan(spec)
        return BenchmarkResult(
            phase_kind=phase,
            elapsed_ms=0.0,
            ops_completed=0,
            ops_per_second=0.0,
            error=error,
            ops_planned=ops_total,
            worker_count=spec.worker_count,
            backend_name=self.adapter.backend_name,
        )

    def _log_result(self, result: BenchmarkResult) -> None:
        if result.passed:
            logger.info(result.summary())
            return

        logger.error(result.summary())
        limit = self.config.report_failure_limit
        for failure in result.failures[:limit]:
            logger.error(f"  mismatch: {failure.describe()}")
        if len(result.failures) > limit:
            logger.error(f"  ... {len(result.failures) - limit} more mismatch(es)")
