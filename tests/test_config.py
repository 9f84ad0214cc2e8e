"""Tests for tuning configuration loading and saving."""

import json

import pytest
import yaml

from praxisflow.core.config import (
    CONFIG_ENV_VAR,
    TuningConfig,
    load_tuning_config,
    save_tuning_config,
)
from praxisflow.core.errors import ConfigError


class TestTuningConfig:
    """Tests for TuningConfig validation."""

    def test_defaults(self):
        """Defaults reproduce the production constants."""
        config = TuningConfig()

        assert config.floor_penalty == 15.0
        assert config.layout_base_score == 50.0
        assert config.circulation_bonuses["reception_waiting"] == [15.0, 10.0, -5.0]
        assert config.empty_connections_score == 70
        assert sum(config.aggregate_weights().values()) == pytest.approx(1.0)

    @pytest.mark.parametrize("overrides", [
        {"floor_penalty": -1},
        {"short_threshold": 10, "medium_threshold": 5},
        {"optimal_tolerance": 1.5},
        {"quality_min": 1.5},
        {"wait_min_minutes": 90},
        {"weight_efficiency": 0, "weight_room_size": 0, "weight_staffing": 0, "weight_capacity": 0},
    ])
    def test_invalid_values(self, overrides):
        """Inconsistent values are rejected."""
        with pytest.raises(ValueError):
            TuningConfig(**overrides)

    def test_from_dict_partial(self):
        """Unspecified keys keep their defaults."""
        config = TuningConfig.from_dict({"floor_penalty": 20})

        assert config.floor_penalty == 20
        assert config.medium_threshold == 8.0

    def test_from_dict_unknown_key(self):
        """Unknown keys raise ConfigError."""
        with pytest.raises(ConfigError, match="floor_penality"):
            TuningConfig.from_dict({"floor_penality": 20})

    def test_from_dict_invalid_value(self):
        """Invalid values are reported as ConfigError."""
        with pytest.raises(ConfigError):
            TuningConfig.from_dict({"floor_penalty": -5})

    def test_circulation_bonuses_merged(self):
        """Overriding one pair keeps the other defaults."""
        config = TuningConfig.from_dict({"circulation_bonuses": {"exam_lab": [20, 10, -10]}})

        assert config.circulation_bonuses["exam_lab"] == [20, 10, -10]
        assert config.circulation_bonuses["waiting_exam"] == [15.0, 8.0, -5.0]


class TestLoadSave:
    """Tests for load_tuning_config() and save_tuning_config()."""

    def test_load_yaml(self, tmp_path):
        """YAML overrides are applied."""
        path = tmp_path / "tuning.yaml"
        path.write_text(yaml.safe_dump({"floor_penalty": 12.5, "privacy_distance": 2.0}))

        config = load_tuning_config(path)

        assert config.floor_penalty == 12.5
        assert config.privacy_distance == 2.0

    def test_load_json(self, tmp_path):
        """JSON overrides are applied."""
        path = tmp_path / "tuning.json"
        path.write_text(json.dumps({"weight_capacity": 0.3}))

        assert load_tuning_config(path).weight_capacity == 0.3

    def test_empty_yaml(self, tmp_path):
        """An empty file gives the defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_tuning_config(path) == TuningConfig()

    def test_missing_file(self, tmp_path):
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_tuning_config(tmp_path / "nope.yaml")

    def test_unsupported_format(self, tmp_path):
        """Only YAML and JSON are accepted."""
        path = tmp_path / "tuning.toml"
        path.write_text("floor_penalty = 1")
        with pytest.raises(ConfigError, match="Unsupported"):
            load_tuning_config(path)

    def test_malformed_yaml(self, tmp_path):
        """Unparseable YAML raises ConfigError."""
        path = tmp_path / "bad.yaml"
        path.write_text("floor_penalty: [1, 2\n")
        with pytest.raises(ConfigError):
            load_tuning_config(path)

    def test_env_var(self, tmp_path, monkeypatch):
        """PRAXISFLOW_CONFIG is used when no path is given."""
        path = tmp_path / "env.yaml"
        path.write_text(yaml.safe_dump({"backtrack_penalty": 7.0}))
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        assert load_tuning_config().backtrack_penalty == 7.0

    def test_no_path_no_env(self, monkeypatch):
        """Without a path or env var the defaults are returned."""
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        assert load_tuning_config() == TuningConfig()

    @pytest.mark.parametrize("suffix", [".yaml", ".json"])
    def test_save_and_reload(self, tmp_path, suffix):
        """A saved config loads back unchanged."""
        config = TuningConfig(floor_penalty=18.0, wait_max_minutes=45)
        path = tmp_path / "nested" / f"tuning{suffix}"

        save_tuning_config(config, path)

        assert load_tuning_config(path) == config

    def test_save_unsupported(self, tmp_path):
        """Saving to an unknown format raises ConfigError."""
        with pytest.raises(ConfigError):
            save_tuning_config(TuningConfig(), tmp_path / "tuning.txt")
