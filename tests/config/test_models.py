"""Tests for config/models.py module.

Covers:
- LogOutputConfig model
- LoggingConfig model
- ReportConfig model
- AnnotationsConfig model
- ParsingConfig model
- RunConfig model
- ReporterConfig root model
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from testreporter.config.models import (
    AnnotationsConfig,
    LoggingConfig,
    LogOutputConfig,
    ParsingConfig,
    ReportConfig,
    ReporterConfig,
    RunConfig,
)


class TestLogOutputConfig:
    """Tests for LogOutputConfig model."""

    def test_defaults(self) -> None:
        """Default values."""
        config = LogOutputConfig()
        assert config.format == "console"
        assert config.destination == "stderr"
        assert config.level is None

    def test_relative_file_destination_rejected(self) -> None:
        """File destinations must be absolute."""
        with pytest.raises(ValidationError):
            LogOutputConfig(destination="logs/out.log")

    def test_absolute_file_destination(self) -> None:
        """Absolute paths are accepted."""
        assert LogOutputConfig(destination="/tmp/out.log").destination == "/tmp/out.log"


class TestLoggingConfig:
    """Tests for LoggingConfig model."""

    def test_defaults(self) -> None:
        """One console output at INFO."""
        config = LoggingConfig()
        assert config.level == "INFO"
        assert len(config.outputs) == 1

    def test_invalid_level(self) -> None:
        """Unknown levels are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(level="VERBOSE")  # type: ignore[arg-type]


class TestReportConfig:
    """Tests for ReportConfig model."""

    def test_defaults(self) -> None:
        """Default values."""
        config = ReportConfig()
        assert config.list_suites == "all"
        assert config.list_tests == "all"
        assert config.only_summary is False
        assert config.format == "markdown"
        assert config.max_length == 65535

    @pytest.mark.parametrize("field", ["list_suites", "list_tests", "format"])
    def test_invalid_choice(self, field: str) -> None:
        """Choice fields reject unknown values."""
        with pytest.raises(ValidationError):
            ReportConfig(**{field: "some"})

    def test_max_length_floor(self) -> None:
        """max_length below 100 is rejected."""
        with pytest.raises(ValidationError):
            ReportConfig(max_length=99)
        assert ReportConfig(max_length=100).max_length == 100


class TestAnnotationsConfig:
    """Tests for AnnotationsConfig model."""

    @pytest.mark.parametrize("value", [0, 10, 50])
    def test_valid(self, value: int) -> None:
        """0-50 are accepted."""
        assert AnnotationsConfig(max_annotations=value).max_annotations == value

    @pytest.mark.parametrize("value", [-1, 51])
    def test_out_of_range(self, value: int) -> None:
        """Values outside 0-50 are rejected."""
        with pytest.raises(ValidationError):
            AnnotationsConfig(max_annotations=value)


class TestParsingConfig:
    """Tests for ParsingConfig model."""

    def test_defaults(self) -> None:
        """No reporter until one is configured."""
        config = ParsingConfig()
        assert config.reporter is None
        assert config.workers == 1
        assert config.on_parse_error == "fail"
        assert config.path_replace_backslashes is False

    def test_workers_must_be_positive(self) -> None:
        """workers < 1 is rejected."""
        with pytest.raises(ValidationError):
            ParsingConfig(workers=0)

    def test_on_parse_error_choice(self) -> None:
        """Only fail/skip are accepted."""
        with pytest.raises(ValidationError):
            ParsingConfig(on_parse_error="ignore")  # type: ignore[arg-type]


class TestReporterConfig:
    """Tests for ReporterConfig root model."""

    def test_all_sections_present(self) -> None:
        """Root model holds every section with defaults."""
        config = ReporterConfig()
        assert isinstance(config.logging, LoggingConfig)
        assert isinstance(config.report, ReportConfig)
        assert isinstance(config.annotations, AnnotationsConfig)
        assert isinstance(config.parsing, ParsingConfig)
        assert isinstance(config.run, RunConfig)

    def test_from_dict(self) -> None:
        """Nested dicts validate into section models."""
        config = ReporterConfig.model_validate(
            {"report": {"list_tests": "failed"}, "run": {"fail_on_empty": False}}
        )
        assert config.report.list_tests == "failed"
        assert config.run.fail_on_empty is False
