"""Tests for the Dart/Flutter JSON event stream parser."""

import json
from typing import Any

import pytest

from testreporter.core.errors import ErrorCode, ParseError
from testreporter.parsers.base import ParseOptions
from testreporter.parsers.dart_json import DartJsonParser
from testreporter.results.models import TestStatus

_URL = "file:///ci/repo/test/calc_test.dart"


def _ndjson(*events: dict[str, Any]) -> str:
    return "\n".join(json.dumps(e) for e in events) + "\n"


def _test_start(test_id: int, name: str, groups: list[int], time: int, line: int = 1) -> dict:
    return {
        "type": "testStart",
        "time": time,
        "test": {
            "id": test_id,
            "name": name,
            "suiteID": 0,
            "groupIDs": groups,
            "line": line,
            "column": 5,
            "url": _URL,
        },
    }


def _done(test_id: int, time: int, result: str = "success", **extra: Any) -> dict:
    return {
        "type": "testDone",
        "testID": test_id,
        "result": result,
        "skipped": False,
        "hidden": False,
        "time": time,
        **extra,
    }


_HEADER = (
    {"type": "start", "protocolVersion": "0.1.1", "runnerVersion": "1.24.0", "pid": 1, "time": 0},
    {"type": "suite", "suite": {"id": 0, "platform": "vm", "path": "test/calc_test.dart"}, "time": 0},
    {
        "type": "testStart",
        "time": 1,
        "test": {"id": 1, "name": "loading test/calc_test.dart", "suiteID": 0, "groupIDs": []},
    },
    _done(1, 100, hidden=True),
    {"type": "group", "group": {"id": 2, "suiteID": 0, "parentID": None, "name": ""}, "time": 101},
    {
        "type": "group",
        "group": {"id": 3, "suiteID": 0, "parentID": 2, "name": "Calculator"},
        "time": 101,
    },
)

DART = _ndjson(
    *_HEADER,
    _test_start(4, "Calculator adds", [2, 3], 102, line=6),
    _done(4, 110),
    _test_start(5, "Calculator divides", [2, 3], 111, line=10),
    {
        "type": "error",
        "testID": 5,
        "error": "Expected: <2>\n  Actual: <3>\n",
        "stackTrace": "package:test_api  expect\ntest/calc_test.dart 12:7  main.<fn>.<fn>\n",
        "isFailure": True,
        "time": 120,
    },
    _done(5, 125, result="failure"),
    _test_start(6, "Calculator skips", [2, 3], 126),
    _done(6, 126, skipped=True),
    _test_start(7, "top level", [2], 127, line=20),
    {"type": "print", "testID": 7, "messageType": "print", "message": "hello", "time": 128},
    _done(7, 130),
    {"type": "done", "success": False, "time": 2000},
)


class TestDartJsonParser:
    """Tests for DartJsonParser with the dart SDK."""

    def test_reporter_name(self) -> None:
        assert DartJsonParser().reporter == "dart-json"
        assert DartJsonParser(sdk="flutter").reporter == "flutter-json"

    def test_suites_groups_and_tests(self) -> None:
        result = DartJsonParser().parse("dart.json", DART)

        assert [s.name for s in result.suites] == ["test/calc_test.dart"]
        suite = result.suites[0]
        # hidden "loading" test dropped, root group tests stay on the suite
        assert [c.name for c in suite.cases] == ["top level"]
        group = suite.suites[0]
        assert group.name == "Calculator"
        assert [c.name for c in group.cases] == ["adds", "divides", "skips"]
        assert [c.status for c in group.cases] == [
            TestStatus.PASSED,
            TestStatus.FAILED,
            TestStatus.SKIPPED,
        ]
        assert (result.passed, result.failed, result.skipped) == (2, 1, 1)

    def test_durations(self) -> None:
        result = DartJsonParser().parse("dart.json", DART)
        assert result.suites[0].suites[0].cases[1].duration == pytest.approx(0.014)
        assert result.time == pytest.approx(2.0)

    def test_error_from_stack_trace(self) -> None:
        options = ParseOptions.create(["test/calc_test.dart"])
        result = DartJsonParser(options).parse("dart.json", DART)
        error = result.suites[0].suites[0].cases[1].error
        assert error is not None
        assert error.message is not None
        assert error.message.startswith("Expected: <2>")
        assert error.details is not None
        assert "main.<fn>.<fn>" in error.details
        assert (error.path, error.line, error.column) == ("test/calc_test.dart", 12, 7)

    def test_nested_groups_strip_parent_prefix(self) -> None:
        content = _ndjson(
            *_HEADER,
            {
                "type": "group",
                "group": {"id": 8, "suiteID": 0, "parentID": 3, "name": "Calculator division"},
                "time": 102,
            },
            _test_start(9, "Calculator division by zero", [2, 3, 8], 103),
            _done(9, 104),
        )
        group = DartJsonParser().parse("dart.json", content).suites[0].suites[0]
        assert group.suites[0].name == "division"
        assert group.suites[0].cases[0].name == "by zero"

    def test_unfinished_test_fails(self) -> None:
        content = _ndjson(*_HEADER, _test_start(4, "Calculator hangs", [2, 3], 102))
        case = DartJsonParser().parse("dart.json", content).suites[0].suites[0].cases[0]
        assert case.status is TestStatus.FAILED
        assert case.message == "Test did not complete"
        assert case.duration == 0.0

    def test_failed_hidden_test_kept(self) -> None:
        content = _ndjson(
            *_HEADER,
            {
                "type": "testStart",
                "time": 102,
                "test": {"id": 4, "name": "(setUpAll)", "suiteID": 0, "groupIDs": [2, 3]},
            },
            {"type": "error", "testID": 4, "error": "setup failed", "stackTrace": "", "time": 103},
            _done(4, 104, result="error", hidden=True),
        )
        case = DartJsonParser().parse("dart.json", content).suites[0].suites[0].cases[0]
        assert case.name == "(setUpAll)"
        assert case.status is TestStatus.FAILED
        assert case.message == "setup failed"

    def test_blank_lines_ignored(self) -> None:
        assert DartJsonParser().parse("dart.json", "\n\n" + DART + "\n\n").tests == 4


class TestDartJsonErrors:
    """Malformed event streams."""

    def test_invalid_line_reports_line_number(self) -> None:
        content = json.dumps(_HEADER[0]) + "\nnot json\n"
        with pytest.raises(ParseError) as exc_info:
            DartJsonParser().parse("dart.json", content)
        assert exc_info.value.code == ErrorCode.PARSE_MALFORMED_INPUT
        assert exc_info.value.details["line"] == 2

    def test_event_without_type(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            DartJsonParser().parse("dart.json", '{"suite": {}}\n')
        assert exc_info.value.code == ErrorCode.PARSE_MALFORMED_INPUT

    @pytest.mark.parametrize(
        "event",
        [
            {"type": "suite", "suite": "oops"},
            {"type": "group", "group": [1, 2]},
            {"type": "testStart", "test": "t"},
            {"type": "testStart", "test": {"id": [4], "name": "x"}},
            {"type": "testStart", "test": {"id": 4, "groupIDs": 3}},
            {"type": "testDone", "testID": {"id": 4}},
        ],
    )
    def test_wrong_payload_shape(self, event: dict[str, Any]) -> None:
        """Events with the wrong JSON types are malformed input, not crashes."""
        content = json.dumps(_HEADER[0]) + "\n" + json.dumps(event) + "\n"
        with pytest.raises(ParseError) as exc_info:
            DartJsonParser().parse("dart.json", content)
        assert exc_info.value.code == ErrorCode.PARSE_MALFORMED_INPUT
        assert exc_info.value.details["line"] == 2

    def test_no_events(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            DartJsonParser().parse("dart.json", "  \n")
        assert exc_info.value.code == ErrorCode.PARSE_MISSING_ELEMENT


class TestFlutterJson:
    """Flutter specific failure messages."""

    def test_generic_message_replaced_by_exception_text(self) -> None:
        exception = (
            "══╡ EXCEPTION CAUGHT BY FLUTTER TEST FRAMEWORK ╞════════════════════════\n"
            "The following TestFailure was thrown running a test:\n"
            "Expected: exactly one matching node\n"
            "\n"
            "════════════════════════════════════════════════════════════════════"
        )
        content = _ndjson(
            *_HEADER,
            _test_start(4, "Calculator renders", [2, 3], 102),
            {"type": "print", "testID": 4, "messageType": "print", "message": exception},
            {
                "type": "error",
                "testID": 4,
                "error": "Test failed. See exception logs above.\n"
                "The test description was: renders",
                "stackTrace": "",
                "isFailure": False,
            },
            _done(4, 110, result="error"),
        )
        case = DartJsonParser(sdk="flutter").parse("f.json", content).suites[0].suites[0].cases[0]
        assert case.message == (
            "The following TestFailure was thrown running a test:\n"
            "Expected: exactly one matching node"
        )

    def test_dart_sdk_keeps_generic_message(self) -> None:
        content = _ndjson(
            *_HEADER,
            _test_start(4, "Calculator renders", [2, 3], 102),
            {
                "type": "error",
                "testID": 4,
                "error": "Test failed. See exception logs above.\nThe test description was: x",
            },
            _done(4, 110, result="error"),
        )
        case = DartJsonParser().parse("d.json", content).suites[0].suites[0].cases[0]
        assert case.message is not None
        assert case.message.startswith("Test failed.")
