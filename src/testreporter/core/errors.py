"""Test reporter error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Parse
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_MISSING_REQUIRED = 2003
    CONFIG_FILE_NOT_FOUND = 2004

    # Parse (3xxx)
    PARSE_MALFORMED_INPUT = 3001
    PARSE_MISSING_ELEMENT = 3002
    UNSUPPORTED_FORMAT = 3003

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class ReporterError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'PARSE_MALFORMED_INPUT')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(ReporterError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def missing_required(cls, field: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_MISSING_REQUIRED,
            message=f"Missing required config field: {field}",
            details={"field": field},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class ParseError(ReporterError):
    """A single test result file could not be parsed.

    Carries the file identifier and, when the underlying decoder reports it,
    the line/column or byte offset of the problem.
    """

    @property
    def file(self) -> str:
        return str(self.details.get("file", ""))

    @classmethod
    def malformed(
        cls,
        file: str,
        reason: str,
        *,
        line: int | None = None,
        column: int | None = None,
        offset: int | None = None,
    ) -> "ParseError":
        where = ""
        if line is not None:
            where = f" (line {line}" + (f", column {column})" if column is not None else ")")
        elif offset is not None:
            where = f" (offset {offset})"
        details: dict[str, Any] = {"file": file, "reason": reason}
        if line is not None:
            details["line"] = line
        if column is not None:
            details["column"] = column
        if offset is not None:
            details["offset"] = offset
        return cls(
            code=ErrorCode.PARSE_MALFORMED_INPUT,
            message=f"Malformed test results in {file}{where}: {reason}",
            details=details,
        )

    @classmethod
    def missing_element(cls, file: str, element: str) -> "ParseError":
        return cls(
            code=ErrorCode.PARSE_MISSING_ELEMENT,
            message=f"Test results in {file} have no {element}",
            details={"file": file, "element": element},
        )


class UnsupportedFormatError(ReporterError):
    """Reporter name does not map to any parser."""

    @classmethod
    def unknown_reporter(cls, reporter: str, valid: list[str]) -> "UnsupportedFormatError":
        return cls(
            code=ErrorCode.UNSUPPORTED_FORMAT,
            message=f"Unknown reporter {reporter!r}. Valid reporters: {', '.join(valid)}",
            details={"reporter": reporter, "valid": valid},
        )


class InternalError(ReporterError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
