"""Core module exports."""

from testreporter.core.errors import (
    ConfigError,
    ErrorCode,
    InternalError,
    ParseError,
    ReporterError,
    UnsupportedFormatError,
)
from testreporter.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    report_context,
    set_run_id,
)
from testreporter.core.progress import status, task

__all__ = [
    # Errors
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "ParseError",
    "ReporterError",
    "UnsupportedFormatError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "report_context",
    "set_run_id",
    # Progress
    "status",
    "task",
]
