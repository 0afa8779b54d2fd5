"""
Configuration management for kvbench runs.

Handles loading and validation of harness configurations from YAML files,
providing structured access to the workload, phase and backend settings.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..core.workload import PhaseKind, WorkloadSpec
from ..interfaces.store_adapter import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_PHASE_SEQUENCE = [
    PhaseKind.LOAD,
    PhaseKind.READ_SEQUENTIAL,
    PhaseKind.READ_RANDOM,
    PhaseKind.BATCH_READ,
    PhaseKind.READ_RANDOM_CONCURRENT,
]

# Phases that always run on a single worker
SINGLE_WORKER_PHASES = {PhaseKind.READ_SEQUENTIAL, PhaseKind.READ_RANDOM, PhaseKind.BATCH_READ}


class SQLiteSettings(BaseModel):
    """SQLite backend settings."""

    path: str = Field(default=":memory:", description="Database file, or :memory:")
    table: str = Field(default="keyvalue", pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")
    journal_mode: str = Field(default="WAL", pattern=r"^(DELETE|TRUNCATE|PERSIST|MEMORY|WAL|OFF)$")
    synchronous: str = Field(default="NORMAL", pattern=r"^(OFF|NORMAL|FULL|EXTRA)$")
    busy_timeout_ms: int = Field(default=129_000, ge=0)
    recreate_table: bool = Field(default=True, description="Drop any existing table at startup")


class RedisSettings(BaseModel):
    """Redis backend settings; defaults come from REDIS_* environment variables."""

    host: str = Field(default_factory=lambda: os.getenv("REDIS_HOST", "localhost"))
    port: int = Field(default_factory=lambda: int(os.getenv("REDIS_PORT", "6379")))
    db: int = Field(default_factory=lambda: int(os.getenv("REDIS_DB", "0")))
    password: Optional[str] = Field(default_factory=lambda: os.getenv("REDIS_PASSWORD"))
    socket_timeout: float = Field(default=5.0, gt=0)
    max_connections: int = Field(default=20, ge=1)
    flush_on_start: bool = Field(default=False, description="FLUSHDB before the first phase")


class BackendSettings(BaseModel):
    """Which store adapter to build and how."""

    type: str = Field(default="memory", pattern=r"^(memory|sqlite|redis)$")
    sqlite: SQLiteSettings = Field(default_factory=SQLiteSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)


class HarnessConfig(BaseModel):
    """Complete configuration for one harness run."""

    base_key_offset: int = Field(default=7_900_000_000_000)
    key_count: int = Field(default=10_000, gt=0)
    value_repeat_factor: int = Field(default=7, gt=0)
    worker_count: int = Field(default=10, ge=1, description="Workers for READ_RANDOM_CONCURRENT")
    load_worker_count: int = Field(default=1, ge=1, description="Workers for LOAD")
    batch_size: int = Field(default=50, gt=0, description="Keys per multi_get in BATCH_READ")
    load_batch_size: int = Field(default=1, gt=0, description="Keys per multi_put in LOAD; 1 disables batching")
    timeout_seconds: float = Field(default=900.0, gt=0)
    phase_sequence: List[PhaseKind] = Field(default_factory=lambda: list(DEFAULT_PHASE_SEQUENCE))
    stop_on_first_failure: bool = False

    seed: Optional[int] = Field(default=None, description="Seed for random-read index sampling")
    progress_every: int = Field(default=10_000, ge=1)
    progress_interval_seconds: float = Field(default=5.0, gt=0)
    report_failure_limit: int = Field(default=10, ge=0)

    backend: BackendSettings = Field(default_factory=BackendSettings)

    @field_validator("phase_sequence")
    @classmethod
    def _unique_phases(cls, value: List[PhaseKind]) -> List[PhaseKind]:
        seen = set()
        for phase in value:
            if phase in seen:
                raise ValueError(f"phase {phase.value} appears more than once in phase_sequence")
            seen.add(phase)
        return value

    def workload_spec(self, phase: PhaseKind) -> WorkloadSpec:
        """Build the immutable WorkloadSpec for one phase."""
        if phase == PhaseKind.LOAD:
            workers = self.load_worker_count
            batch_size = self.load_batch_size if self.load_batch_size > 1 else None
        elif phase in SINGLE_WORKER_PHASES:
            workers = 1
            batch_size = self.batch_size if phase == PhaseKind.BATCH_READ else None
        else:
            workers = self.worker_count
            batch_size = None

        return WorkloadSpec(
            phase_kind=phase,
            base_key_offset=self.base_key_offset,
            key_count=self.key_count,
            value_repeat_factor=self.value_repeat_factor,
            worker_count=workers,
            batch_size=batch_size,
            timeout_seconds=self.timeout_seconds,
        )


def merge_configs(base: Dict[str, Any], override: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Merge configuration dictionaries, with overrides taking precedence.

    Nested dictionaries are merged recursively; None override values are ignored.
    """
    if not override:
        return dict(base)

    result = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> HarnessConfig:
    """
    Load a harness configuration.

    Args:
        config_path: YAML file to read; a missing file falls back to defaults
        overrides: Values (e.g. from the command line) that win over the file

    Returns:
        Validated HarnessConfig

    Raises:
        ConfigurationError: If the file cannot be parsed or values are invalid
    """
    file_data: Dict[str, Any] = {}

    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            logger.warning(f"Config file not found: {path}, using defaults")
        else:
            try:
                with open(path, "r") as f:
                    file_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Could not parse {path}: {e}") from e

            if not isinstance(file_data, dict):
                raise ConfigurationError(f"{path} must contain a mapping, got {type(file_data).__name__}")
            logger.info(f"Loaded harness config from {path}")

    try:
        return HarnessConfig(**merge_configs(file_data, overrides))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid harness configuration: {e}") from e
