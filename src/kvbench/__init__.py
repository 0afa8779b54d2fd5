"""
kvbench: load and verification harness for key-value storage backends.

Drives a pluggable StoreAdapter through load, sequential read, random read,
batch read and concurrent random read phases, verifies every value read back
and reports throughput per phase.
"""

from .core.workload import PhaseKind, WorkloadGenerator, WorkloadSpec
from .evaluation.concurrent_runner import BenchmarkResult
from .evaluation.config import HarnessConfig, load_config
from .evaluation.harness import Harness
from .interfaces.store_adapter import StoreAdapter

__version__ = "0.1.0"
__all__ = [
    "BenchmarkResult",
    "Harness",
    "HarnessConfig",
    "PhaseKind",
    "StoreAdapter",
    "WorkloadGenerator",
    "WorkloadSpec",
    "load_config",
]
