"""
tests/test_config.py - Tests for AgentConfig loading

Validates:
- Defaults
- YAML and JSON files
- Self-heal with warnings vs strict ValueError
- Overrides and archive path resolution
"""

import json

import pytest

from mind.types_config import DEFAULT_CONFIG, AgentConfig, config_from_dict, load_config


def test_defaults():
    config = AgentConfig()
    assert config.save_every == 2
    assert config.reflect_every == 3
    assert config.lookup_timeout_s == 30.0
    assert config.on_malformed == "reinitialize"
    assert config.on_save_error == "retry"
    assert config.retention_limit is None


def test_config_is_frozen():
    with pytest.raises(Exception):
        DEFAULT_CONFIG.save_every = 5


class TestLoadConfig:
    """File loading."""

    def test_yaml(self, tmp_path):
        path = tmp_path / "agent.yaml"
        path.write_text("state_path: /tmp/mind.json\nsave_every: 5\non_malformed: backup\nretention_limit: 100\n")
        config = load_config(str(path))

        assert config.state_path == "/tmp/mind.json"
        assert config.save_every == 5
        assert config.on_malformed == "backup"
        assert config.retention_limit == 100

    def test_json(self, tmp_path):
        path = tmp_path / "agent.json"
        path.write_text(json.dumps({"reflect_every": 7, "lookup_timeout_s": 5}))
        config = load_config(str(path))

        assert config.reflect_every == 7
        assert config.lookup_timeout_s == 5.0

    def test_empty_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "agent.yml"
        path.write_text("")
        assert load_config(str(path)) == DEFAULT_CONFIG

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "agent.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            load_config(str(path))

    def test_overrides_win_and_none_ignored(self, tmp_path):
        path = tmp_path / "agent.yaml"
        path.write_text("state_path: from_file.json\n")
        config = load_config(str(path), state_path="from_cli.json", receipts_path=None)

        assert config.state_path == "from_cli.json"
        assert config.receipts_path is None


class TestValidation:
    """Self-heal vs strict."""

    @pytest.mark.parametrize("data", [
        {"unknown_key": 1},
        {"save_every": 0},
        {"reflect_every": "three"},
        {"sleep_floor_s": -1.0},
        {"lookup_timeout_s": 0},
        {"on_malformed": "ignore"},
        {"on_save_error": "explode"},
        {"retention_limit": 0},
        {"save_every": True},
        {"retention_limit": True},
        {"sleep_jitter_s": False},
    ])
    def test_invalid_self_heals(self, data):
        with pytest.warns(UserWarning):
            config = config_from_dict(data)
        assert config == DEFAULT_CONFIG

    @pytest.mark.parametrize("data", [
        {"save_every": -2},
        {"on_save_error": "explode"},
        {"lookup_timeout_s": 0},
    ])
    def test_invalid_strict_raises(self, data):
        with pytest.raises(ValueError):
            config_from_dict(data, strict=True)

    def test_yaml_boolean_rejected_for_cadence(self, tmp_path):
        path = tmp_path / "agent.yaml"
        path.write_text("save_every: true\n")
        with pytest.raises(ValueError):
            load_config(str(path), strict=True)

    def test_valid_values_kept_beside_invalid(self):
        with pytest.warns(UserWarning):
            config = config_from_dict({"save_every": 4, "on_save_error": "explode"})
        assert config.save_every == 4
        assert config.on_save_error == "retry"


def test_resolved_archive_path():
    assert AgentConfig(state_path="a.json").resolved_archive_path() == "a.json.archive.jsonl"
    assert AgentConfig(archive_path="arch.jsonl").resolved_archive_path() == "arch.jsonl"
