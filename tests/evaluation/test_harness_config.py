#!/usr/bin/env python3
"""
Tests for harness configuration loading and per-phase workload specs.
"""

import pytest
import yaml

from kvbench.core.workload import PhaseKind
from kvbench.evaluation.config import (
    DEFAULT_PHASE_SEQUENCE,
    HarnessConfig,
    load_config,
    merge_configs,
)
from kvbench.interfaces.store_adapter import ConfigurationError


class TestHarnessConfig:
    """Test HarnessConfig defaults and validation."""

    def test_defaults(self):
        config = HarnessConfig()

        assert config.base_key_offset == 7_900_000_000_000
        assert config.key_count == 10_000
        assert config.value_repeat_factor == 7
        assert config.worker_count == 10
        assert config.load_worker_count == 1
        assert config.batch_size == 50
        assert config.timeout_seconds == 900.0
        assert config.phase_sequence == DEFAULT_PHASE_SEQUENCE
        assert config.stop_on_first_failure is False
        assert config.backend.type == "memory"

    def test_workload_spec_worker_counts(self, small_config):
        assert small_config.workload_spec(PhaseKind.LOAD).worker_count == 1
        assert small_config.workload_spec(PhaseKind.READ_SEQUENTIAL).worker_count == 1
        assert small_config.workload_spec(PhaseKind.READ_RANDOM).worker_count == 1
        assert small_config.workload_spec(PhaseKind.BATCH_READ).worker_count == 1
        assert small_config.workload_spec(PhaseKind.READ_RANDOM_CONCURRENT).worker_count == 10

    def test_workload_spec_batch_sizes(self, small_config):
        assert small_config.workload_spec(PhaseKind.BATCH_READ).batch_size == 16
        assert small_config.workload_spec(PhaseKind.READ_RANDOM).batch_size is None
        assert small_config.workload_spec(PhaseKind.LOAD).batch_size is None

        batched = small_config.model_copy(update={"load_batch_size": 25})
        assert batched.workload_spec(PhaseKind.LOAD).batch_size == 25

    def test_workload_spec_carries_shared_fields(self, small_config):
        spec = small_config.workload_spec(PhaseKind.READ_RANDOM_CONCURRENT)

        assert spec.base_key_offset == small_config.base_key_offset
        assert spec.key_count == small_config.key_count
        assert spec.value_repeat_factor == small_config.value_repeat_factor
        assert spec.timeout_seconds == small_config.timeout_seconds

    def test_duplicate_phases_rejected(self):
        with pytest.raises(ValueError, match="more than once"):
            HarnessConfig(phase_sequence=["LOAD", "READ_RANDOM", "LOAD"])

    def test_phase_names_parsed(self):
        config = HarnessConfig(phase_sequence=["LOAD", "BATCH_READ"])
        assert config.phase_sequence == [PhaseKind.LOAD, PhaseKind.BATCH_READ]

    @pytest.mark.parametrize("field,value", [
        ("key_count", 0),
        ("worker_count", 0),
        ("batch_size", 0),
        ("timeout_seconds", 0),
        ("value_repeat_factor", -1),
    ])
    def test_invalid_values_rejected(self, field, value):
        with pytest.raises(ValueError):
            HarnessConfig(**{field: value})

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValueError):
            HarnessConfig(backend={"type": "cassandra"})

    @pytest.mark.parametrize("sqlite", [
        {"journal_mode": "WAL; DROP TABLE keyvalue"},
        {"journal_mode": "wal"},
        {"synchronous": "NORMAL; PRAGMA writable_schema=ON"},
        {"table": "keyvalue; --"},
    ])
    def test_sqlite_pragmas_restricted(self, sqlite):
        with pytest.raises(ValueError):
            HarnessConfig(backend={"type": "sqlite", "sqlite": sqlite})

    def test_sqlite_pragmas_accepted(self):
        config = HarnessConfig(
            backend={"type": "sqlite", "sqlite": {"journal_mode": "DELETE", "synchronous": "FULL"}}
        )

        assert config.backend.sqlite.journal_mode == "DELETE"
        assert config.backend.sqlite.synchronous == "FULL"


class TestMergeConfigs:
    """Test recursive config merging."""

    def test_override_wins(self):
        assert merge_configs({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_none_values_ignored(self):
        assert merge_configs({"a": 1}, {"a": None, "b": None}) == {"a": 1}

    def test_nested_merge(self):
        base = {"backend": {"type": "sqlite", "sqlite": {"path": "a.db"}}}
        merged = merge_configs(base, {"backend": {"type": "redis"}})

        assert merged == {"backend": {"type": "redis", "sqlite": {"path": "a.db"}}}
        assert base["backend"]["type"] == "sqlite"

    def test_empty_override(self):
        assert merge_configs({"a": 1}) == {"a": 1}


class TestLoadConfig:
    """Test YAML config loading."""

    def test_load_from_yaml(self, tmp_path):
        path = tmp_path / "bench.yaml"
        path.write_text(yaml.safe_dump({
            "key_count": 5000,
            "phase_sequence": ["LOAD", "READ_SEQUENTIAL"],
            "backend": {"type": "sqlite", "sqlite": {"path": str(tmp_path / "kv.db")}},
        }))

        config = load_config(path)

        assert config.key_count == 5000
        assert config.phase_sequence == [PhaseKind.LOAD, PhaseKind.READ_SEQUENTIAL]
        assert config.backend.type == "sqlite"
        assert config.backend.sqlite.path == str(tmp_path / "kv.db")
        assert config.backend.sqlite.journal_mode == "WAL"

    def test_overrides_take_precedence(self, tmp_path):
        path = tmp_path / "bench.yaml"
        path.write_text("key_count: 5000\nworker_count: 4\n")

        config = load_config(path, {"key_count": 10, "worker_count": None})

        assert config.key_count == 10
        assert config.worker_count == 4

    def test_missing_file_uses_defaults(self, tmp_path, caplog):
        config = load_config(tmp_path / "absent.yaml")

        assert config == HarnessConfig()
        assert "Config file not found" in caplog.text

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_config(path).key_count == 10_000

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("key_count: [1, 2\n")

        with pytest.raises(ConfigurationError, match="Could not parse"):
            load_config(path)

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- LOAD\n- READ_RANDOM\n")

        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            load_config(path)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("key_count: 0\n")

        with pytest.raises(ConfigurationError, match="Invalid harness configuration"):
            load_config(path)

    def test_no_path(self):
        assert load_config(None, {"seed": 3}).seed == 3
