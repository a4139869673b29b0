"""
Tests for scheduling configuration.

Validates the SchedulingConfig schema, the parse_config / load_config
loader, and get_active_config resolution (explicit path, environment
variable, packaged defaults).
"""

import logging
from dataclasses import FrozenInstanceError

import pytest
import yaml

from backoffice_config import CONFIG_ENV_VAR, get_active_config
from backoffice_config.loader import compute_checksum, load_config, parse_config
from backoffice_config.schema import SchedulingConfig


# =============================================================================
# SchedulingConfig tests
# =============================================================================


class TestSchedulingConfig:
    def test_defaults(self):
        config = SchedulingConfig()
        assert config.max_occurrences == 120
        assert config.duplicate_cost_center_policy == "reject"
        assert config.amount_places == 2

    def test_frozen(self):
        config = SchedulingConfig()
        with pytest.raises(FrozenInstanceError):
            config.max_occurrences = 5  # type: ignore[misc]

    def test_max_occurrences_positive(self):
        with pytest.raises(ValueError, match="max_occurrences"):
            SchedulingConfig(max_occurrences=0)

    def test_unknown_duplicate_policy(self):
        with pytest.raises(ValueError, match="duplicate_cost_center_policy"):
            SchedulingConfig(duplicate_cost_center_policy="ignore")

    def test_negative_places(self):
        with pytest.raises(ValueError, match="amount_places"):
            SchedulingConfig(amount_places=-1)


# =============================================================================
# parse_config tests
# =============================================================================


class TestParseConfig:
    def test_empty_mapping_uses_defaults(self):
        config = parse_config({})
        assert config.max_occurrences == 120
        assert config.checksum == compute_checksum({})

    def test_sections(self):
        config = parse_config({
            "config_id": "acme",
            "version": 3,
            "recurrence": {"max_occurrences": 24},
            "allocation": {"duplicate_cost_center_policy": "MERGE", "amount_places": 4},
        })
        assert config.config_id == "acme"
        assert config.version == 3
        assert config.max_occurrences == 24
        assert config.duplicate_cost_center_policy == "merge"
        assert config.amount_places == 4

    def test_unknown_top_level_key(self):
        with pytest.raises(ValueError, match="Unknown configuration keys: ledger"):
            parse_config({"ledger": {}})

    def test_unknown_section_key(self):
        with pytest.raises(ValueError, match="max_count"):
            parse_config({"recurrence": {"max_count": 10}})

    def test_section_must_be_mapping(self):
        with pytest.raises(ValueError, match="must be a mapping"):
            parse_config({"allocation": ["reject"]})

    @pytest.mark.parametrize("value", ["12", 12.0, True])
    def test_integer_required(self, value):
        with pytest.raises(ValueError, match="recurrence.max_occurrences"):
            parse_config({"recurrence": {"max_occurrences": value}})

    def test_checksum_is_deterministic(self):
        a = parse_config({"recurrence": {"max_occurrences": 24}, "version": 2})
        b = parse_config({"version": 2, "recurrence": {"max_occurrences": 24}})
        c = parse_config({"version": 2, "recurrence": {"max_occurrences": 36}})
        assert a.checksum == b.checksum
        assert a.checksum != c.checksum


# =============================================================================
# File loading and active config
# =============================================================================


def _write(tmp_path, data, name="scheduling.yaml"):
    path = tmp_path / name
    path.write_text(yaml.safe_dump(data))
    return path


class TestLoadConfig:
    def test_load_from_file(self, tmp_path):
        path = _write(tmp_path, {"recurrence": {"max_occurrences": 36}})
        assert load_config(path).max_occurrences == 36

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml")

    def test_root_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="root must be a mapping"):
            load_config(path)

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("recurrence: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_config(path)


class TestGetActiveConfig:
    def test_packaged_defaults(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        config = get_active_config()
        assert config.config_id == "backoffice-default"
        assert config.max_occurrences == 120
        assert config.duplicate_cost_center_policy == "reject"
        assert config.checksum

    def test_environment_variable(self, tmp_path, monkeypatch):
        path = _write(tmp_path, {"config_id": "from-env"})
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert get_active_config().config_id == "from-env"

    def test_explicit_path_wins(self, tmp_path, monkeypatch):
        env_path = _write(tmp_path, {"config_id": "from-env"}, "env.yaml")
        explicit = _write(tmp_path, {"config_id": "explicit"}, "explicit.yaml")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(env_path))
        assert get_active_config(explicit).config_id == "explicit"

    def test_emits_config_trace(self, tmp_path, caplog):
        path = _write(tmp_path, {"config_id": "traced", "version": 7})
        with caplog.at_level(logging.INFO, logger="backoffice_kernel"):
            config = get_active_config(path)

        traces = [r for r in caplog.records if r.getMessage() == "BACKOFFICE_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0].config_id == "traced"
        assert traces[0].config_version == 7
        assert traces[0].checksum == config.checksum
        assert traces[0].source == str(path)
