"""Config module exports."""

from testreporter.config.loader import ReporterSettings, load_config
from testreporter.config.models import (
    AnnotationsConfig,
    LoggingConfig,
    ParsingConfig,
    ReportConfig,
    ReporterConfig,
    RunConfig,
)

__all__ = [
    "load_config",
    "AnnotationsConfig",
    "LoggingConfig",
    "ParsingConfig",
    "ReportConfig",
    "ReporterConfig",
    "ReporterSettings",
    "RunConfig",
]
