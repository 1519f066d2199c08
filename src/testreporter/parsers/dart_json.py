"""Dart/Flutter JSON reporter parser (`dart test --reporter json`).

The report is a stream of JSON events, one per line:

{"type":"suite","suite":{"id":0,"platform":"vm","path":"test/calc_test.dart"}}
{"type":"group","group":{"id":2,"suiteID":0,"parentID":null,"name":""}}
{"type":"group","group":{"id":3,"suiteID":0,"parentID":2,"name":"Calculator"}}
{"type":"testStart","test":{"id":4,"name":"Calculator adds","suiteID":0,"groupIDs":[2,3],
                            "line":10,"column":5,"url":"file:///.../test/calc_test.dart"},"time":120}
{"type":"error","testID":4,"error":"Expected: <3> ...","stackTrace":"...","isFailure":true}
{"type":"print","testID":4,"messageType":"print","message":"..."}
{"type":"testDone","testID":4,"result":"failure","hidden":false,"skipped":false,"time":130}
{"type":"done","success":false,"time":200}

Suites map to top-level suites (named by path), groups to nested child
suites. Hidden tests (loading, setUpAll, tearDownAll) are dropped unless
they failed.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Literal

from testreporter.core.errors import ParseError
from testreporter.core.logging import get_logger
from testreporter.parsers.base import ParseOptions, build_error, decode_text, parse_float
from testreporter.parsers.stacktrace import dart_frames
from testreporter.resolve import format_location, make_relative
from testreporter.results.models import (
    SuiteBuilder,
    TestCase,
    TestCaseError,
    TestRunResult,
    TestStatus,
    clean_duration,
    clean_name,
)

log = get_logger("parsers.dart_json")

Sdk = Literal["dart", "flutter"]

_FLUTTER_GENERIC_RE = re.compile(
    r"^Test failed\. See exception logs above\.\nThe test description was:", re.MULTILINE
)
_FLUTTER_EXCEPTION_RE = re.compile(
    r"^══╡ EXCEPTION CAUGHT BY FLUTTER TEST FRAMEWORK ╞═+\s+(.*?)\s+^═+$",
    re.MULTILINE | re.DOTALL,
)


@dataclass(slots=True)
class _Group:
    name: str
    builder: SuiteBuilder


@dataclass(slots=True)
class _Test:
    name: str
    suite_id: Any
    group_ids: list[Any]
    start: float
    position: str | None
    done: dict[str, Any] | None = None
    errors: list[dict[str, Any]] = field(default_factory=list)
    prints: list[str] = field(default_factory=list)


_PAYLOADS = {"suite": "suite", "group": "group", "testStart": "test"}
_PAYLOAD_IDS = {
    "suite": ("id",),
    "group": ("id", "suiteID", "parentID"),
    "test": ("id", "suiteID"),
}


def _is_id(value: Any) -> bool:
    return value is None or (isinstance(value, int | str) and not isinstance(value, bool))


def _check_event(file_id: str, event: dict[str, Any], lineno: int) -> None:
    """Reject events whose payload or ids have the wrong JSON type."""
    key = _PAYLOADS.get(event["type"])
    payload = event.get(key) if key is not None else None
    if payload is not None:
        if not isinstance(payload, dict):
            raise ParseError.malformed(file_id, f"'{key}' is not an object", line=lineno)
        for id_key in _PAYLOAD_IDS[key]:
            if not _is_id(payload.get(id_key)):
                raise ParseError.malformed(file_id, f"invalid '{key}.{id_key}'", line=lineno)
        group_ids = payload.get("groupIDs")
        if group_ids is not None and (
            not isinstance(group_ids, list) or not all(_is_id(g) for g in group_ids)
        ):
            raise ParseError.malformed(file_id, "invalid 'test.groupIDs'", line=lineno)
    if not _is_id(event.get("testID")):
        raise ParseError.malformed(file_id, "invalid 'testID'", line=lineno)


class DartJsonParser:
    """Parser for Dart (`dart-json`) and Flutter (`flutter-json`) event streams."""

    def __init__(self, options: ParseOptions | None = None, sdk: Sdk = "dart") -> None:
        self._options = options or ParseOptions()
        self._sdk = sdk

    @property
    def reporter(self) -> str:
        return f"{self._sdk}-json"

    def parse(self, file_id: str, content: bytes | str) -> TestRunResult:
        events = self._events(file_id, content)

        suites: dict[Any, SuiteBuilder] = {}
        groups: dict[Any, _Group] = {}
        tests: dict[Any, _Test] = {}
        run_time: float | None = None

        for event in events:
            kind = event.get("type")
            if kind == "suite":
                suite = event.get("suite") or {}
                path = suite.get("path") or ""
                name = (
                    make_relative(str(path), self._options.work_dir, self._options.tracked_files)
                    if path
                    else ""
                )
                suites[suite.get("id")] = SuiteBuilder(name=name)
            elif kind == "group":
                self._add_group(event.get("group") or {}, suites, groups)
            elif kind == "testStart":
                test = event.get("test") or {}
                tests[test.get("id")] = _Test(
                    name=str(test.get("name") or ""),
                    suite_id=test.get("suiteID"),
                    group_ids=list(test.get("groupIDs") or []),
                    start=parse_float(event.get("time")),
                    position=self._position(test),
                )
            elif kind == "testDone":
                if (entry := tests.get(event.get("testID"))) is not None:
                    entry.done = event
            elif kind == "error":
                if (entry := tests.get(event.get("testID"))) is not None:
                    entry.errors.append(event)
                else:
                    log.debug("orphan_error_event", file=file_id, test_id=event.get("testID"))
            elif kind == "print":
                if (entry := tests.get(event.get("testID"))) is not None:
                    entry.prints.append(str(event.get("message") or ""))
            elif kind == "done":
                run_time = parse_float(event.get("time")) / 1000

        for entry in tests.values():
            owner = self._owner(entry, suites, groups)
            if owner is None:
                continue
            case = self._case(entry, owner.name)
            if case is not None:
                owner.builder.cases.append(case)

        built = tuple(s.build() for s in suites.values())
        run = TestRunResult(name=file_id, suites=built, duration=run_time)
        log.debug(
            "parsed", reporter=self.reporter, file=file_id, suites=len(built), tests=run.tests
        )
        return run

    def _events(self, file_id: str, content: bytes | str) -> list[dict[str, Any]]:
        text = decode_text(file_id, content)
        events: list[dict[str, Any]] = []
        for lineno, line in enumerate(text.split("\n"), start=1):
            line = line.strip()
            if not line:
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError as e:
                raise ParseError.malformed(
                    file_id, f"invalid JSON event: {e.msg}", line=lineno, column=e.colno
                ) from e
            if not isinstance(event, dict) or "type" not in event:
                raise ParseError.malformed(file_id, "event has no 'type'", line=lineno)
            _check_event(file_id, event, lineno)
            events.append(event)
        if not events:
            raise ParseError.missing_element(file_id, "test events")
        return events

    def _add_group(
        self,
        group: dict[str, Any],
        suites: dict[Any, SuiteBuilder],
        groups: dict[Any, _Group],
    ) -> None:
        suite = suites.get(group.get("suiteID"))
        if suite is None:
            suite = suites[group.get("suiteID")] = SuiteBuilder(name="")
        full_name = str(group.get("name") or "")
        parent = groups.get(group.get("parentID"))

        if parent is None or not full_name:
            # Root group of a suite: its tests belong to the suite itself
            groups[group.get("id")] = _Group(name=full_name, builder=suite)
            return

        short_name = full_name
        if parent.name and full_name.startswith(parent.name + " "):
            short_name = full_name[len(parent.name) + 1 :]
        child = parent.builder.add_child(SuiteBuilder(name=short_name))
        groups[group.get("id")] = _Group(name=full_name, builder=child)

    def _owner(
        self,
        entry: _Test,
        suites: dict[Any, SuiteBuilder],
        groups: dict[Any, _Group],
    ) -> _Group | None:
        for group_id in reversed(entry.group_ids):
            if (group := groups.get(group_id)) is not None:
                return group
        suite = suites.get(entry.suite_id)
        return _Group(name="", builder=suite) if suite is not None else None

    def _case(self, entry: _Test, group_name: str) -> TestCase | None:
        done = entry.done
        if done is None:
            status = TestStatus.FAILED
        elif done.get("skipped"):
            status = TestStatus.SKIPPED
        elif done.get("result") == "success":
            status = TestStatus.PASSED
        else:
            status = TestStatus.FAILED

        if done is not None and done.get("hidden") and status is not TestStatus.FAILED:
            return None

        error = None
        if status is TestStatus.FAILED:
            error = self._error(entry)

        duration = 0.0
        if done is not None:
            duration = clean_duration((parse_float(done.get("time")) - entry.start) / 1000)

        name = entry.name
        if group_name and name.startswith(group_name + " "):
            name = name[len(group_name) + 1 :]

        return TestCase(
            name=clean_name(name),
            classname="",
            status=status,
            duration=duration,
            error=error,
        )

    def _error(self, entry: _Test) -> TestCaseError:
        messages = [str(e.get("error") or "") for e in entry.errors]
        stacks = [str(e.get("stackTrace") or "") for e in entry.errors]
        message = "\n".join(m for m in messages if m) or None
        stack = "\n".join(s for s in stacks if s) or None
        if entry.done is None and message is None:
            message = "Test did not complete"

        printed = "\n".join(entry.prints)
        message = self._error_message(message or "", printed) or None

        frames = list(dart_frames(stack))
        if entry.position:
            frames.append(entry.position)
        return build_error(self._options, message=message, details=stack, frames=frames)

    def _error_message(self, message: str, printed: str) -> str:
        if self._sdk == "flutter" and _FLUTTER_GENERIC_RE.search(message):
            match = _FLUTTER_EXCEPTION_RE.search(printed)
            if match is not None:
                return match.group(1)
        return message or printed

    @staticmethod
    def _position(test: dict[str, Any]) -> str | None:
        # root_* points at the test inside the test file when `line` is in a helper
        url = test.get("root_url") or test.get("url")
        line = test.get("root_line") if test.get("root_url") else test.get("line")
        column = test.get("root_column") if test.get("root_url") else test.get("column")
        if not url or not isinstance(line, int):
            return None
        return format_location(str(url), line, column if isinstance(column, int) else None)
