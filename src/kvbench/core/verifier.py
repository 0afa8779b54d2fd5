#!/usr/bin/env python3
"""
verifier.py: Compare observed values against the generator's expectation
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .workload import WorkloadGenerator, decode_key


@dataclass(frozen=True)
class VerificationFailure:
    """A key whose observed value did not match the expected value."""

    key: bytes
    expected_value: bytes
    actual_value: Optional[bytes]

    @property
    def is_absent(self) -> bool:
        return self.actual_value is None

    def describe(self) -> str:
        return (
            f"key={decode_key(self.key)} expected={decode_key(self.expected_value)} "
            f"actual={decode_key(self.actual_value)}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": decode_key(self.key),
            "expected_value": decode_key(self.expected_value),
            "actual_value": None if self.actual_value is None else decode_key(self.actual_value),
        }


class Verifier:
    """Pure check of (key, observed) against the generator; never touches a store."""

    def __init__(self, generator: WorkloadGenerator):
        self.generator = generator

    def check(self, key: bytes, observed: Optional[bytes]) -> Optional[VerificationFailure]:
        """
        Check an observed value.

        Returns:
            None when observed is present and byte-equal to the expected value,
            otherwise a VerificationFailure describing the mismatch
        """
        expected = self.generator.value_for(key)
        if observed is not None and observed == expected:
            return None
        return VerificationFailure(key=key, expected_value=expected, actual_value=observed)
