#!/usr/bin/env python3
"""
utils.py: Common helpers for kvbench
"""

import logging
from typing import List, Optional

from ..interfaces.store_adapter import StoreAdapter

logger = logging.getLogger(__name__)


async def close_quietly(adapter: Optional[StoreAdapter]) -> None:
    """Release an adapter's resources, logging instead of raising on failure."""
    if adapter is None:
        return
    try:
        await adapter.cleanup()
    except Exception as e:
        logger.warning(f"Failed to close {type(adapter).__name__} ({adapter.backend_name}): {e}")


def partition(total: int, workers: int) -> List[int]:
    """
    Split total operations as evenly as possible across workers.

    The first ``total % workers`` workers get one extra operation.
    """
    if workers < 1:
        raise ValueError(f"workers must be >= 1, got {workers}")
    base, extra = divmod(total, workers)
    return [base + (1 if w < extra else 0) for w in range(workers)]
