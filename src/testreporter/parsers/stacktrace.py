"""Stack frame extraction per runtime.

Each function yields raw locations (``path:line[:column]``) from a stack
trace, top frame first. Frames that point into runtime internals or
third-party packages are skipped. Nothing here touches the file system or
the tracked files; resolution happens in ``resolve``.
"""

from __future__ import annotations

import re
from collections.abc import Iterator

from testreporter.core.formatting import fix_eol
from testreporter.resolve import format_location

# at Object.<anonymous> (/repo/src/app.test.js:10:5)
# at /repo/src/app.test.js:10:5
_NODE_FRAME_RE = re.compile(r"^\s*at (?:.*?\()?(?P<file>[^()]+?):(?P<line>\d+):(?P<col>\d+)\)?\s*$")

# at com.example.FooTest.testBar(FooTest.java:42)
# at app//com.example.FooTest.testBar(FooTest.java:42)
_JAVA_FRAME_RE = re.compile(r"^\s*at (?P<trace>\S+?)\((?P<file>[^():]+):(?P<line>\d+)\)\s*$")

# at Example.Tests.CalculatorTests.Add() in /src/CalculatorTests.cs:line 14
_DOTNET_FRAME_RE = re.compile(r"^\s*at (?P<member>.*) in (?P<file>.+):line (?P<line>\d+)\s*$")

# test/calculator_test.dart 12:5   main.<fn>
_DART_FRAME_RE = re.compile(r"^(?P<file>\S+)\s+(?P<line>\d+):(?P<col>\d+)\s+")

_NODE_INTERNAL = ("node:", "internal/")


def _lines(stack: str | None) -> list[str]:
    return fix_eol(stack).split("\n") if stack else []


def node_frames(stack: str | None) -> Iterator[str]:
    """Frames of a V8/Node stack trace, skipping node internals and node_modules."""
    for text in _lines(stack):
        match = _NODE_FRAME_RE.match(text)
        if match is None:
            continue
        file = match.group("file")
        if file.startswith(_NODE_INTERNAL) or "/node_modules/" in file.replace("\\", "/"):
            continue
        yield format_location(file, int(match.group("line")), int(match.group("col")))


def java_frames(stack: str | None) -> Iterator[str]:
    """Frames of a JVM stack trace as ``package/dirs/File.java:line``.

    The package is taken from the fully-qualified method name, so the
    resulting path is the source file path relative to its source root.
    """
    for text in _lines(stack):
        match = _JAVA_FRAME_RE.match(text)
        if match is None:
            continue
        trace = match.group("trace").rsplit("/", 1)[-1]
        package = trace.split(".")[:-2]
        file = "/".join([*package, match.group("file")])
        yield format_location(file, int(match.group("line")))


def dotnet_frames(stack: str | None) -> Iterator[str]:
    """Frames of a .NET stack trace that carry source file information."""
    for text in _lines(stack):
        match = _DOTNET_FRAME_RE.match(text)
        if match is None:
            continue
        yield format_location(match.group("file").strip(), int(match.group("line")))


def dart_frames(stack: str | None) -> Iterator[str]:
    """Frames of a Dart stack trace, skipping SDK and package frames."""
    for text in _lines(stack):
        match = _DART_FRAME_RE.match(text)
        if match is None:
            continue
        file = match.group("file")
        if file.startswith(("dart:", "package:", "org-dartlang-sdk:")):
            continue
        yield format_location(file, int(match.group("line")), int(match.group("col")))
