"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() precedence and validation
- get_db_path() function
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from semtag.config.loader import PROJECT_DIRNAME, _deep_merge, _load_yaml, get_db_path, load_config
from semtag.core.errors import ConfigError, ErrorCode


@pytest.fixture(autouse=True)
def _no_global_config(tmp_path: Path) -> object:
    """Point the global config at a path that does not exist."""
    with patch("semtag.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml") as p:
        yield p


def _write_project_config(root: Path, content: str) -> Path:
    path = root / PROJECT_DIRNAME / "config.yaml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


class TestLoadYaml:
    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("queue:\n  batch_size: 4\n")
        assert _load_yaml(yaml_file) == {"queue": {"batch_size": 4}}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("queue:\n  batch_size:\n    - invalid: [unclosed")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(yaml_file)
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR


class TestDeepMerge:
    def test_nested_dicts_merge_recursively(self) -> None:
        base = {"queue": {"batch_size": 2, "interval_sec": 1.0}}
        override = {"queue": {"batch_size": 8}}
        assert _deep_merge(base, override) == {"queue": {"batch_size": 8, "interval_sec": 1.0}}

    def test_base_is_not_mutated(self) -> None:
        base = {"a": {"b": 1}}
        _deep_merge(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}


class TestLoadConfig:
    def test_given_no_sources_when_loaded_then_defaults(self, tmp_path: Path) -> None:
        # When
        config = load_config(tmp_path)

        # Then
        assert config.queue.batch_size == 2
        assert config.tuning.tag_threshold == 0.3
        assert config.auto_apply.enabled is False

    def test_given_project_yaml_when_loaded_then_values_applied(self, tmp_path: Path) -> None:
        # Given
        _write_project_config(tmp_path, "queue:\n  batch_size: 5\ntuning:\n  tag_threshold: 0.4\n")

        # When
        config = load_config(tmp_path)

        # Then
        assert config.queue.batch_size == 5
        assert config.tuning.tag_threshold == 0.4

    def test_given_env_var_when_loaded_then_env_beats_yaml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        # Given
        _write_project_config(tmp_path, "queue:\n  batch_size: 5\n")
        monkeypatch.setenv("SEMTAG__QUEUE__BATCH_SIZE", "9")

        # When
        config = load_config(tmp_path)

        # Then
        assert config.queue.batch_size == 9

    def test_given_kwargs_when_loaded_then_kwargs_win(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SEMTAG__LOGGING__LEVEL", "DEBUG")
        config = load_config(tmp_path, logging={"level": "ERROR"})
        assert config.logging.level == "ERROR"

    def test_given_global_and_project_yaml_when_loaded_then_project_wins(
        self, tmp_path: Path, _no_global_config: Path
    ) -> None:
        # Given
        _no_global_config.write_text("queue:\n  batch_size: 3\n  interval_sec: 7.5\n")
        _write_project_config(tmp_path, "queue:\n  batch_size: 4\n")

        # When
        config = load_config(tmp_path)

        # Then
        assert config.queue.batch_size == 4
        assert config.queue.interval_sec == 7.5

    def test_given_invalid_value_when_loaded_then_config_error(self, tmp_path: Path) -> None:
        _write_project_config(tmp_path, "queue:\n  batch_size: 0\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path)

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE
        assert "batch_size" in exc_info.value.details["field"]

    def test_given_out_of_range_tuning_when_loaded_then_clamped(self, tmp_path: Path) -> None:
        _write_project_config(tmp_path, "tuning:\n  tag_threshold: 0.9\n  up_beta: 0.01\n")

        config = load_config(tmp_path)

        assert config.tuning.tag_threshold == 0.65
        assert config.tuning.up_beta == 0.15


class TestGetDbPath:
    def test_given_default_config_when_resolved_then_under_project_dir(self, tmp_path: Path) -> None:
        assert get_db_path(tmp_path) == tmp_path / PROJECT_DIRNAME / "semtag.db"

    def test_given_configured_path_when_resolved_then_used(self, tmp_path: Path) -> None:
        custom = tmp_path / "elsewhere" / "tags.db"
        config = load_config(tmp_path, database={"path": str(custom)})
        assert get_db_path(tmp_path, config) == custom

    def test_given_relative_path_when_resolved_then_anchored_at_project_root(self, tmp_path: Path) -> None:
        config = load_config(tmp_path, database={"path": "data/tags.db"})
        assert get_db_path(tmp_path, config) == tmp_path / "data" / "tags.db"


class TestExplicitConfigFile:
    def test_given_missing_explicit_file_when_loaded_then_file_not_found(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path, config_file=tmp_path / "missing.yaml")
        assert exc_info.value.code == ErrorCode.CONFIG_FILE_NOT_FOUND

    def test_given_explicit_file_when_loaded_then_replaces_project_yaml(self, tmp_path: Path) -> None:
        # Given
        _write_project_config(tmp_path, "queue:\n  batch_size: 4\n")
        explicit = tmp_path / "ci.yaml"
        explicit.write_text("queue:\n  batch_size: 7\n")

        # When
        config = load_config(tmp_path, config_file=explicit)

        # Then
        assert config.queue.batch_size == 7

    def test_given_non_mapping_yaml_when_loaded_then_parse_error(self, tmp_path: Path) -> None:
        _write_project_config(tmp_path, "- just\n- a list\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path)

        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR
