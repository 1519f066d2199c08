"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config() (CLI options)
2. Environment variables (TEST_REPORTER__SECTION__KEY)
3. Repo YAML (.test-reporter.yaml in the working directory)
4. Global YAML (~/.config/test-reporter/config.yaml)
5. Built-in defaults (this file)

Examples:
    TEST_REPORTER__LOGGING__LEVEL=DEBUG
    TEST_REPORTER__REPORT__LIST_TESTS=failed
    TEST_REPORTER__ANNOTATIONS__MAX_ANNOTATIONS=20
    TEST_REPORTER__PARSING__REPORTER=java-junit
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from testreporter.config.constants import MAX_ANNOTATIONS, MAX_REPORT_LENGTH

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        TEST_REPORTER__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ReportConfig(BaseModel):
    """Rendered report options.

    Env vars:
        TEST_REPORTER__REPORT__LIST_SUITES: all | failed
        TEST_REPORTER__REPORT__LIST_TESTS: all | failed | none
        TEST_REPORTER__REPORT__ONLY_SUMMARY: true | false
        TEST_REPORTER__REPORT__FORMAT: markdown | text
    """

    list_suites: Literal["all", "failed"] = Field(
        default="all",
        description="Include all suites, or only suites with failed tests.",
    )
    list_tests: Literal["all", "failed", "none"] = Field(
        default="all",
        description="Include all test cases, only failed ones, or none.",
    )
    only_summary: bool = Field(
        default=False,
        description="Emit only aggregate counts, no per-suite tree.",
    )
    format: Literal["markdown", "text"] = Field(
        default="markdown",
        description="Output markup. 'text' has no anchors or collapsible blocks.",
    )
    max_length: int = Field(
        default=MAX_REPORT_LENGTH,
        description="Character cap for the rendered report. "
        "Longer reports first drop passing tests, then are trimmed with a marker.",
    )
    base_url: str = Field(
        default="",
        description="Prefix for anchor links (e.g. the check run or job summary URL).",
    )
    id_prefix: str = Field(
        default="",
        description="Prefix for anchor ids when several reports share one page.",
    )

    @field_validator("max_length")
    @classmethod
    def validate_max_length(cls, v: int) -> int:
        if v < 100:
            raise ValueError(f"max_length must be at least 100, got {v}")
        return v


class AnnotationsConfig(BaseModel):
    """Annotation options.

    Env vars:
        TEST_REPORTER__ANNOTATIONS__MAX_ANNOTATIONS: 0-50
    """

    max_annotations: int = Field(
        default=10,
        description="Maximum number of annotations for failed tests. 0 disables them.",
    )

    @field_validator("max_annotations")
    @classmethod
    def validate_max_annotations(cls, v: int) -> int:
        if not (0 <= v <= MAX_ANNOTATIONS):
            raise ValueError(f"max_annotations must be 0-{MAX_ANNOTATIONS}, got {v}")
        return v


class ParsingConfig(BaseModel):
    """Input parsing options.

    Env vars:
        TEST_REPORTER__PARSING__REPORTER: Reporter name (java-junit, dotnet-trx, ...)
        TEST_REPORTER__PARSING__WORKERS: Parallel parse workers per report group
        TEST_REPORTER__PARSING__ON_PARSE_ERROR: fail | skip
    """

    reporter: str | None = Field(
        default=None,
        description="Test result format. Required before any file is parsed.",
    )
    workers: int = Field(
        default=1,
        description="Parse files of one report group on this many threads.",
    )
    on_parse_error: Literal["fail", "skip"] = Field(
        default="fail",
        description="'fail' aborts the run after the group is parsed; "
        "'skip' reports the broken file and continues.",
    )
    path_replace_backslashes: bool = Field(
        default=False,
        description="Convert backslashes in path patterns to forward slashes.",
    )

    @field_validator("workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"workers must be >= 1, got {v}")
        return v


class RunConfig(BaseModel):
    """Run outcome options.

    Env vars:
        TEST_REPORTER__RUN__FAIL_ON_ERROR: Exit non-zero when tests failed
        TEST_REPORTER__RUN__FAIL_ON_EMPTY: Exit non-zero when no report was found
    """

    fail_on_error: bool = True
    fail_on_empty: bool = True


class ReporterConfig(BaseModel):
    """Root configuration."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    annotations: AnnotationsConfig = Field(default_factory=AnnotationsConfig)
    parsing: ParsingConfig = Field(default_factory=ParsingConfig)
    run: RunConfig = Field(default_factory=RunConfig)
