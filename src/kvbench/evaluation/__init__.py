"""
Benchmark evaluation infrastructure.

Core Components:
- MetricsCollector: progress samples and throughput arithmetic
- ConcurrentRunner: runs a phase across a worker pool with a timeout
- Harness: orchestrates the phase sequence against one store adapter
- HarnessConfig: validated run configuration
"""

from .concurrent_runner import BenchmarkResult, ConcurrentRunner, StepResult
from .config import HarnessConfig, load_config
from .harness import Harness
from .metrics import MetricsCollector, ProgressSample, format_perf

__all__ = [
    "BenchmarkResult",
    "ConcurrentRunner",
    "Harness",
    "HarnessConfig",
    "MetricsCollector",
    "ProgressSample",
    "StepResult",
    "format_perf",
    "load_config",
]
