"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() precedence: defaults < global < repo < env < kwargs
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from testreporter.config.loader import GLOBAL_CONFIG_PATH, _deep_merge, _load_yaml, load_config
from testreporter.core.errors import ConfigError, ErrorCode


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        """Returns empty dict when file doesn't exist."""
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        """Loads valid YAML content."""
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("report:\n  list_tests: failed\n")
        assert _load_yaml(yaml_file) == {"report": {"list_tests": "failed"}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        """Returns empty dict for empty file."""
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")
        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        """Raises ConfigError for invalid YAML syntax."""
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("report:\n  list_tests:\n    - invalid: [unclosed")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(yaml_file)
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_raises_config_error_for_non_mapping(self, tmp_path: Path) -> None:
        """Top level must be a mapping."""
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            _load_yaml(yaml_file)


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_override_wins(self) -> None:
        """Override values replace base values."""
        assert _deep_merge({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_nested_merge(self) -> None:
        """Nested dicts are merged recursively."""
        base = {"report": {"list_tests": "all", "format": "text"}}
        override = {"report": {"list_tests": "failed"}}
        assert _deep_merge(base, override) == {
            "report": {"list_tests": "failed", "format": "text"}
        }

    def test_override_replaces_non_dict(self) -> None:
        """Non-dict override replaces dict base."""
        base: dict[str, Any] = {"a": {"nested": 1}}
        assert _deep_merge(base, {"a": "simple"}) == {"a": "simple"}

    def test_does_not_mutate_base(self) -> None:
        """Base dict is not mutated."""
        base = {"a": 1}
        _deep_merge(base, {"b": 2})
        assert base == {"a": 1}


class TestLoadConfig:
    """Tests for load_config function."""

    def test_returns_default_config_when_no_files(self, tmp_path: Path) -> None:
        """Returns default config when no config files exist."""
        config = load_config(tmp_path)
        assert config.logging.level == "INFO"
        assert config.report.list_tests == "all"
        assert config.annotations.max_annotations == 10
        assert config.parsing.reporter is None
        assert config.run.fail_on_error is True

    def test_loads_repo_config(self, tmp_path: Path) -> None:
        """Loads .test-reporter.yaml from the working directory."""
        (tmp_path / ".test-reporter.yaml").write_text("parsing:\n  reporter: jest-junit\n")
        assert load_config(tmp_path).parsing.reporter == "jest-junit"

    def test_repo_config_overrides_global(self, tmp_path: Path) -> None:
        """Repo YAML wins over global YAML, section by section."""
        global_file = tmp_path / "global.yaml"
        global_file.write_text("report:\n  format: text\n  list_tests: failed\n")
        work_dir = tmp_path / "repo"
        work_dir.mkdir()
        (work_dir / ".test-reporter.yaml").write_text("report:\n  list_tests: none\n")

        with patch("testreporter.config.loader.GLOBAL_CONFIG_PATH", global_file):
            config = load_config(work_dir)
        assert config.report.format == "text"
        assert config.report.list_tests == "none"

    def test_env_vars_override_yaml(self, tmp_path: Path) -> None:
        """Environment variables override YAML config."""
        (tmp_path / ".test-reporter.yaml").write_text("logging:\n  level: INFO\n")

        with patch.dict(os.environ, {"TEST_REPORTER__LOGGING__LEVEL": "WARNING"}):
            config = load_config(tmp_path)
        assert config.logging.level == "WARNING"

    def test_kwargs_override_all(self, tmp_path: Path) -> None:
        """Keyword arguments override everything."""
        (tmp_path / ".test-reporter.yaml").write_text("report:\n  list_tests: none\n")

        with patch.dict(os.environ, {"TEST_REPORTER__REPORT__LIST_TESTS": "all"}):
            config = load_config(tmp_path, report={"list_tests": "failed"})
        assert config.report.list_tests == "failed"

    def test_explicit_config_file(self, tmp_path: Path) -> None:
        """An explicit file replaces the repo config lookup."""
        (tmp_path / ".test-reporter.yaml").write_text("parsing:\n  reporter: jest-junit\n")
        explicit = tmp_path / "ci.yaml"
        explicit.write_text("parsing:\n  reporter: dotnet-trx\n")
        assert load_config(tmp_path, config_file=explicit).parsing.reporter == "dotnet-trx"

    def test_missing_explicit_config_file(self, tmp_path: Path) -> None:
        """A missing explicit file is an error, not an empty config."""
        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path, config_file=tmp_path / "missing.yaml")
        assert exc_info.value.code == ErrorCode.CONFIG_FILE_NOT_FOUND

    def test_raises_config_error_for_invalid_value(self, tmp_path: Path) -> None:
        """Raises ConfigError naming the invalid field."""
        (tmp_path / ".test-reporter.yaml").write_text("parsing:\n  workers: 0\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path)
        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE
        assert exc_info.value.details["field"] == "parsing.workers"


class TestGlobalConfigPath:
    """Tests for GLOBAL_CONFIG_PATH constant."""

    def test_is_in_user_config(self) -> None:
        """Path is in the user config directory."""
        assert isinstance(GLOBAL_CONFIG_PATH, Path)
        assert "test-reporter" in str(GLOBAL_CONFIG_PATH)
