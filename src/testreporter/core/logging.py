"""Structured logging for report runs.

structlog renders through stdlib handlers, one per configured output, each
with its own level and renderer. Records carry the run id of the CLI
invocation, and records logged while a report group is processed also
carry the group name and the reporter, including those from parser threads.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, TextIO
from uuid import uuid4

import structlog
from structlog.contextvars import (
    bind_contextvars,
    bound_contextvars,
    get_contextvars,
    unbind_contextvars,
)

if TYPE_CHECKING:
    from testreporter.config.models import LoggingConfig, LogOutputConfig

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
]


# =============================================================================
# Context
# =============================================================================


def get_run_id() -> str | None:
    return get_contextvars().get("run_id")


def set_run_id(run_id: str | None = None) -> str:
    """Tag every following record with a run id (generated when not given)."""
    rid = run_id or uuid4().hex[:12]
    bind_contextvars(run_id=rid)
    return rid


def clear_run_id() -> None:
    unbind_contextvars("run_id")


@contextmanager
def report_context(group: str, reporter: str) -> Iterator[None]:
    """Tag records logged inside the block with the report group and reporter."""
    with bound_contextvars(group=group, reporter=reporter):
        yield


# =============================================================================
# Configuration
# =============================================================================


def _level(name: str) -> int:
    return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Route structlog through one stdlib handler per configured output.

    Without ``config`` a single stderr output at ``level`` is used, rendered
    as JSON when ``json_format`` is set. Calling it again replaces all
    handlers.
    """
    from testreporter.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,  # type: ignore[arg-type]
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )
    default_level = _level(config.level)

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(default_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Uncached so that a later configure_logging() call takes effect
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()
    root.setLevel(default_level)
    for output in config.outputs:
        root.addHandler(_handler(output, _level(output.level or config.level)))


def _handler(output: LogOutputConfig, level: int) -> logging.Handler:
    """Handler for stderr, stdout or an absolute file path."""
    streams: dict[str, TextIO] = {"stderr": sys.stderr, "stdout": sys.stdout}
    stream = streams.get(output.destination)

    handler: logging.Handler
    if stream is not None:
        handler = logging.StreamHandler(stream)
    else:
        path = Path(output.destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, mode="a", encoding="utf-8")

    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        colors = stream is not None and hasattr(stream, "isatty") and stream.isatty()
        renderer = structlog.dev.ConsoleRenderer(colors=colors, pad_event_to=0, pad_level=False)

    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=_SHARED_PROCESSORS,
        )
    )
    handler.setLevel(level)
    return handler


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger  # type: ignore[no-any-return]
