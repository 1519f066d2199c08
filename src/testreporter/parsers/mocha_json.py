"""Mocha JSON reporter parsers (mocha --reporter json, mochawesome).

mocha-json structure:
{
  "stats": {"tests": 3, "passes": 2, "failures": 1, "duration": 12, ...},
  "tests":    [{"title": "...", "fullTitle": "...", "file": "...", "duration": 1, "err": {}}],
  "passes":   [...],
  "failures": [{..., "err": {"message": "...", "stack": "..."}}],
  "pending":  [...]
}

mochawesome structure:
{
  "stats": {...},
  "results": [
    {"file": "...", "fullFile": "...", "title": "", "tests": [...],
     "suites": [{"title": "...", "tests": [{"title": "...", "state": "failed",
                 "duration": 3, "err": {"message": "...", "estack": "..."}}],
                 "suites": [...]}]}
  ]
}
"""

from __future__ import annotations

from typing import Any

from testreporter.core.errors import ParseError
from testreporter.core.logging import get_logger
from testreporter.parsers.base import ParseOptions, build_error, load_json, parse_float
from testreporter.parsers.stacktrace import node_frames
from testreporter.resolve import make_relative
from testreporter.results.models import (
    SuiteBuilder,
    TestCase,
    TestRunResult,
    TestStatus,
    clean_name,
)

log = get_logger("parsers.mocha_json")

_MOCHA_LISTS = ("tests", "passes", "failures", "pending")


def _ms(value: Any) -> float:
    return parse_float(value) / 1000


def _dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


class MochaJsonParser:
    """Parser for the built-in mocha JSON reporter.

    One suite per spec file; the describe path of each test (its full title
    without the test title) becomes a child suite. Tests keep the order of
    the ``tests`` array; failures that are not tests (hook failures) follow.
    """

    def __init__(self, options: ParseOptions | None = None) -> None:
        self._options = options or ParseOptions()

    @property
    def reporter(self) -> str:
        return "mocha-json"

    def parse(self, file_id: str, content: bytes | str) -> TestRunResult:
        data = load_json(file_id, content)
        if not isinstance(data, dict) or not isinstance(data.get("stats"), dict):
            raise ParseError.missing_element(file_id, "'stats' object")
        if not any(isinstance(data.get(key), list) for key in _MOCHA_LISTS):
            raise ParseError.missing_element(file_id, "'tests' array")

        failed_keys = {self._key(t) for t in _list(data.get("failures"))}
        pending_keys = {self._key(t) for t in _list(data.get("pending"))}

        if isinstance(data.get("tests"), list):
            # Failures not in the tests array are hook failures
            ordered = _list(data.get("tests"))
            test_keys = {self._key(t) for t in ordered}
            ordered += [f for f in _list(data.get("failures")) if self._key(f) not in test_keys]
        else:
            ordered = [
                *_list(data.get("passes")),
                *_list(data.get("failures")),
                *_list(data.get("pending")),
            ]

        suites: dict[str, SuiteBuilder] = {}
        for test in ordered:
            path = self._relative(test.get("file"))
            suite = suites.get(path)
            if suite is None:
                suite = suites[path] = SuiteBuilder(name=path)
            key = self._key(test)
            if key in pending_keys or test.get("pending") is True:
                status = TestStatus.SKIPPED
            elif _dict(test.get("err")):
                status = TestStatus.FAILED
            elif "err" not in test and key in failed_keys:
                status = TestStatus.FAILED
            else:
                status = TestStatus.PASSED
            self._add(suite, test, status, path)

        built = tuple(s.build() for s in suites.values())
        stats = _dict(data.get("stats"))
        duration = _ms(stats["duration"]) if "duration" in stats else None
        run = TestRunResult(name=file_id, suites=built, duration=duration)
        log.debug(
            "parsed", reporter=self.reporter, file=file_id, suites=len(built), tests=run.tests
        )
        return run

    @staticmethod
    def _key(test: dict[str, Any]) -> tuple[str, str, str]:
        return (
            str(test.get("file") or ""),
            str(test.get("fullTitle") or ""),
            str(test.get("title") or ""),
        )

    def _relative(self, file: Any) -> str:
        if not file:
            return ""
        return make_relative(str(file), self._options.work_dir, self._options.tracked_files)

    def _add(
        self, suite: SuiteBuilder, test: dict[str, Any], status: TestStatus, path: str
    ) -> None:
        title = str(test.get("title") or "")
        full_title = str(test.get("fullTitle") or title)
        group = ""
        if full_title != title and full_title.endswith(title):
            group = full_title[: len(full_title) - len(title)].rstrip()

        error = None
        if status is TestStatus.FAILED:
            err = _dict(test.get("err"))
            stack = _text(err.get("stack"))
            error = build_error(
                self._options,
                message=_text(err.get("message")),
                details=stack,
                frames=node_frames(stack),
                fallback=path or None,
            )

        case = TestCase(
            name=clean_name(title),
            classname=group,
            status=status,
            duration=_ms(test.get("duration")),
            error=error,
        )
        target = suite.child(group) if group else suite
        target.cases.append(case)


class MochawesomeJsonParser:
    """Parser for mochawesome JSON reports.

    Every entry of ``results`` (one per spec file) becomes a top-level suite;
    nested ``suites`` keep their nesting as child suites.
    """

    def __init__(self, options: ParseOptions | None = None) -> None:
        self._options = options or ParseOptions()

    @property
    def reporter(self) -> str:
        return "mochawesome-json"

    def parse(self, file_id: str, content: bytes | str) -> TestRunResult:
        data = load_json(file_id, content)
        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            raise ParseError.missing_element(file_id, "'results' array")

        suites = []
        for result in _list(data.get("results")):
            file = result.get("fullFile") or result.get("file") or ""
            path = (
                make_relative(str(file), self._options.work_dir, self._options.tracked_files)
                if file
                else ""
            )
            builder = self._suite(result, name=path or str(result.get("title") or ""), path=path)
            suites.append(builder.build())

        stats = _dict(data.get("stats"))
        duration = _ms(stats["duration"]) if "duration" in stats else None
        run = TestRunResult(name=file_id, suites=tuple(suites), duration=duration)
        log.debug(
            "parsed", reporter=self.reporter, file=file_id, suites=len(suites), tests=run.tests
        )
        return run

    def _suite(self, data: dict[str, Any], *, name: str, path: str) -> SuiteBuilder:
        builder = SuiteBuilder(name=name)
        for test in _list(data.get("tests")):
            builder.cases.append(self._case(test, path))
        for child in _list(data.get("suites")):
            child_file = child.get("fullFile") or child.get("file") or ""
            child_path = (
                make_relative(str(child_file), self._options.work_dir, self._options.tracked_files)
                if child_file
                else path
            )
            child_name = str(child.get("title") or "")
            builder.add_child(self._suite(child, name=child_name, path=child_path))
        return builder

    def _case(self, test: dict[str, Any], path: str) -> TestCase:
        state = str(test.get("state") or "").lower()
        if state == "failed" or test.get("fail") is True:
            status = TestStatus.FAILED
        elif state in ("pending", "skipped") or test.get("pending") or test.get("skipped"):
            status = TestStatus.SKIPPED
        else:
            status = TestStatus.PASSED

        error = None
        if status is TestStatus.FAILED:
            err = _dict(test.get("err"))
            stack = _text(err.get("estack")) or _text(err.get("stack"))
            error = build_error(
                self._options,
                message=_text(err.get("message")),
                details=stack,
                frames=node_frames(stack),
                fallback=path or None,
            )

        full_title = str(test.get("fullTitle") or "")
        title = str(test.get("title") or "")
        classname = ""
        if full_title != title and full_title.endswith(title):
            classname = full_title[: len(full_title) - len(title)].rstrip()

        return TestCase(
            name=clean_name(title),
            classname=classname,
            status=status,
            duration=_ms(test.get("duration")),
            error=error,
        )
