#!/usr/bin/env python3
"""
workload.py: Deterministic key/value synthesis for benchmark phases

Keys are the decimal text of ``base_key_offset + index`` and values are the
key text repeated ``value_repeat_factor`` times, so any value read back can be
checked without keeping a table of what was written.
"""

import random
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Single byte per character so key length is fixed for a given number width
KEY_ENCODING = "latin-1"


class PhaseKind(str, Enum):
    """Benchmark phases in their default execution order."""

    LOAD = "LOAD"
    READ_SEQUENTIAL = "READ_SEQUENTIAL"
    READ_RANDOM = "READ_RANDOM"
    BATCH_READ = "BATCH_READ"
    READ_RANDOM_CONCURRENT = "READ_RANDOM_CONCURRENT"


class WorkloadSpec(BaseModel):
    """Immutable description of one phase's key range, concurrency and timing."""

    model_config = ConfigDict(frozen=True)

    phase_kind: PhaseKind
    base_key_offset: int = Field(default=0, description="Numeric value the first key is derived from")
    key_count: int = Field(..., gt=0, description="Number of distinct keys")
    value_repeat_factor: int = Field(default=7, gt=0, description="Key repetitions forming a value")
    worker_count: int = Field(default=1, ge=1, description="Concurrent workers for the phase")
    batch_size: Optional[int] = Field(default=None, gt=0, description="Keys per multi_get/multi_put")
    timeout_seconds: float = Field(default=900.0, gt=0, description="Maximum wait for phase completion")

    @model_validator(mode="after")
    def _check_batch_size(self) -> "WorkloadSpec":
        if self.phase_kind == PhaseKind.BATCH_READ and self.batch_size is None:
            raise ValueError("batch_size is required for BATCH_READ phases")
        return self


class WorkloadGenerator:
    """Reproducible keys and values for a WorkloadSpec."""

    def __init__(self, base_key_offset: int = 0, value_repeat_factor: int = 7):
        if value_repeat_factor <= 0:
            raise ValueError(f"value_repeat_factor must be positive, got {value_repeat_factor}")
        self.base_key_offset = base_key_offset
        self.value_repeat_factor = value_repeat_factor

    @classmethod
    def from_spec(cls, spec: WorkloadSpec) -> "WorkloadGenerator":
        return cls(spec.base_key_offset, spec.value_repeat_factor)

    def key_for(self, index: int) -> bytes:
        return str(self.base_key_offset + index).encode(KEY_ENCODING)

    def value_for(self, key: bytes) -> bytes:
        return key * self.value_repeat_factor

    @staticmethod
    def sample_index(spec: WorkloadSpec, rng: random.Random) -> int:
        """Uniform draw over [0, key_count), with replacement."""
        return rng.randrange(spec.key_count)


def decode_key(data: Optional[bytes]) -> str:
    """Render key or value bytes as text for log messages."""
    if data is None:
        return "<absent>"
    return data.decode(KEY_ENCODING)
