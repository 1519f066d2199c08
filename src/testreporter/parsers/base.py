"""Test result parser protocol and shared decoding helpers."""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol

from testreporter.core.errors import ParseError
from testreporter.resolve import TrackedFiles, resolve, resolve_first
from testreporter.results.models import TestCaseError, TestRunResult


@dataclass(frozen=True, slots=True)
class ParseOptions:
    """Inputs shared by every parser call of one run.

    Attributes:
        tracked_files: Repository files stack locations may resolve to.
        work_dir: Directory absolute paths in reports are relative to.
                  None lets the resolver infer it from the tracked files.
    """

    tracked_files: TrackedFiles = field(default_factory=TrackedFiles)
    work_dir: str | None = None

    @classmethod
    def create(
        cls,
        tracked_files: TrackedFiles | Iterable[str] | None = None,
        work_dir: str | None = None,
    ) -> ParseOptions:
        return cls(tracked_files=TrackedFiles.coerce(tracked_files), work_dir=work_dir)


class TestParser(Protocol):
    """Protocol for test result format parsers.

    Each parser handles one reporter dialect and converts a whole file into
    the canonical TestRunResult. Parsers hold only their ParseOptions, so one
    instance may parse many files, also from several threads.
    """

    __test__ = False

    @property
    def reporter(self) -> str:
        """Reporter name (e.g., 'java-junit', 'dotnet-trx')."""
        ...

    def parse(self, file_id: str, content: bytes | str) -> TestRunResult:
        """Parse one result file.

        Args:
            file_id: Identifier of the file (usually its repository path);
                     becomes the TestRunResult name.
            content: Raw file content.

        Raises:
            ParseError: If the content is not valid for this format.
        """
        ...


# =============================================================================
# Decoding
# =============================================================================


def decode_text(file_id: str, content: bytes | str) -> str:
    """Decode raw bytes as UTF-8 (BOM tolerated)."""
    if isinstance(content, str):
        return content.lstrip("\ufeff")
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError.malformed(file_id, f"invalid UTF-8: {e.reason}", offset=e.start) from e


def parse_xml(file_id: str, content: bytes | str) -> ET.Element:
    """Parse an XML document and strip namespaces from every tag."""
    if isinstance(content, str):
        # Let the parser honour the encoding declaration only for raw bytes
        content = content.lstrip("\ufeff").encode("utf-8")
        content = _drop_encoding_declaration(content)
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        line, column = getattr(e, "position", (None, None))
        raise ParseError.malformed(file_id, f"invalid XML: {e}", line=line, column=column) from e

    for elem in root.iter():
        if isinstance(elem.tag, str) and "}" in elem.tag:
            elem.tag = elem.tag.split("}", 1)[1]
    return root


def _drop_encoding_declaration(content: bytes) -> bytes:
    if content.startswith(b"<?xml"):
        end = content.find(b"?>")
        if end != -1:
            return b'<?xml version="1.0"?>' + content[end + 2 :]
    return content


def load_json(file_id: str, content: bytes | str) -> Any:
    """Parse a JSON document."""
    text = decode_text(file_id, content)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError.malformed(
            file_id, f"invalid JSON: {e.msg}", line=e.lineno, column=e.colno
        ) from e


# =============================================================================
# Field helpers
# =============================================================================


def parse_float(value: Any) -> float:
    """Parse a number attribute, tolerating thousands separators; 0 if invalid."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        number = float(value)
    else:
        try:
            number = float(str(value).strip().replace(",", ""))
        except ValueError:
            return 0.0
    if number != number or number < 0 or number == float("inf"):
        return 0.0
    return number


def element_text(elem: ET.Element | None) -> str | None:
    """Text content of an element, or None when it has none."""
    if elem is None:
        return None
    text = "".join(elem.itertext())
    return text if text.strip() else None


def build_error(
    options: ParseOptions,
    *,
    message: str | None,
    details: str | None,
    frames: Iterable[str] = (),
    fallback: str | None = None,
) -> TestCaseError:
    """Build a TestCaseError, resolving the first stack frame that maps to a tracked file.

    When no frame resolves, ``fallback`` (usually the test's class/module
    path) is tried. The raw location of the first frame is kept even when it
    cannot be resolved.
    """
    frames = list(frames)
    location = frames[0] if frames else fallback
    path = line = column = None

    hit = resolve_first(frames, options.tracked_files, work_dir=options.work_dir)
    if hit is not None:
        location, resolved = hit
        path, line, column = resolved.path, resolved.line, resolved.column
    elif fallback:
        resolved_fallback = resolve(fallback, options.tracked_files, work_dir=options.work_dir)
        if resolved_fallback is not None:
            location = fallback
            path, line, column = (
                resolved_fallback.path,
                resolved_fallback.line,
                resolved_fallback.column,
            )

    return TestCaseError(
        message=message or None,
        details=details or None,
        location=location or None,
        path=path,
        line=line,
        column=column,
    )
