"""
Workload core: clock, deterministic key/value synthesis and verification.
"""

from .clock import Clock, now
from .verifier import VerificationFailure, Verifier
from .workload import PhaseKind, WorkloadGenerator, WorkloadSpec

__all__ = [
    "Clock",
    "now",
    "PhaseKind",
    "VerificationFailure",
    "Verifier",
    "WorkloadGenerator",
    "WorkloadSpec",
]
