#!/usr/bin/env python3
"""
kvbench command line entry point

Run the benchmark phases against a configured backend:

    python -m kvbench --config bench.yaml --backend sqlite --key-count 100000
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from .evaluation.concurrent_runner import BenchmarkResult
from .evaluation.config import HarnessConfig, load_config
from .evaluation.harness import Harness
from .interfaces.store_adapter import ConfigurationError
from .storage import ADAPTER_TYPES, create_adapter

EXIT_OK = 0
EXIT_PHASE_FAILED = 1
EXIT_CONFIG_ERROR = 2


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure logging for kvbench."""
    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    return logging.getLogger("kvbench")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Key-value store load and verification harness")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--backend", choices=sorted(ADAPTER_TYPES), help="Backend to benchmark")
    parser.add_argument("--key-count", type=int, help="Number of distinct keys")
    parser.add_argument("--workers", type=int, help="Workers for the concurrent random read phase")
    parser.add_argument("--load-workers", type=int, help="Workers for the load phase")
    parser.add_argument("--batch-size", type=int, help="Keys per multi_get in the batch read phase")
    parser.add_argument("--timeout", type=float, help="Per-phase timeout in seconds")
    parser.add_argument("--seed", type=int, help="Seed for random index sampling")
    parser.add_argument("--phases", help="Comma-separated phase sequence, e.g. LOAD,READ_RANDOM")
    parser.add_argument("--stop-on-first-failure", action="store_true", default=None,
                        help="Skip remaining phases after a phase fails")
    parser.add_argument("--log-level", help="Logging level (default: LOG_LEVEL or INFO)")
    return parser


def overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """Translate command line flags into config overrides; unset flags are None."""
    overrides: Dict[str, Any] = {
        "key_count": args.key_count,
        "worker_count": args.workers,
        "load_worker_count": args.load_workers,
        "batch_size": args.batch_size,
        "timeout_seconds": args.timeout,
        "seed": args.seed,
        "stop_on_first_failure": args.stop_on_first_failure,
    }
    if args.phases:
        overrides["phase_sequence"] = [p.strip().upper() for p in args.phases.split(",") if p.strip()]
    if args.backend:
        overrides["backend"] = {"type": args.backend}
    return overrides


async def run_benchmark(config: HarnessConfig) -> List[BenchmarkResult]:
    harness = Harness(create_adapter(config.backend), config)
    return await harness.run()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point; returns the process exit status."""
    args = build_parser().parse_args(argv)
    logger = setup_logging(args.log_level)

    try:
        config = load_config(args.config, overrides_from_args(args))
    except ConfigurationError as e:
        logger.error(f"❌ {e}")
        return EXIT_CONFIG_ERROR

    logger.info(f"🚀 Starting kvbench against '{config.backend.type}' backend")
    try:
        results = asyncio.run(run_benchmark(config))
    except KeyboardInterrupt:
        logger.info("⚠️ Interrupted")
        return EXIT_PHASE_FAILED

    logger.info("=" * 60)
    for result in results:
        logger.info(result.summary())
    passed = all(result.passed for result in results)
    logger.info("✅ All phases passed" if passed else "❌ Some phases failed")
    return EXIT_OK if passed else EXIT_PHASE_FAILED


if __name__ == "__main__":
    sys.exit(main())
