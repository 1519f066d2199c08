"""Visual Studio TRX (.NET test results) parser.

Structure (namespace http://microsoft.com/schemas/VisualStudio/TeamTest/2010):
<TestRun>
  <Times start="2021-01-01T10:00:00.000+00:00" finish="..."/>
  <Results>
    <UnitTestResult testId="..." testName="Ns.Class.Method" duration="00:00:00.0123" outcome="Passed">
      <Output>
        <ErrorInfo><Message>...</Message><StackTrace>...</StackTrace></ErrorInfo>
      </Output>
    </UnitTestResult>
  </Results>
  <TestDefinitions>
    <UnitTest id="..."><TestMethod className="Ns.Class" name="Method"/></UnitTest>
  </TestDefinitions>
</TestRun>

Each test class becomes one suite, in the order its first result appears.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from datetime import datetime

from testreporter.core.errors import ParseError
from testreporter.core.logging import get_logger
from testreporter.parsers.base import ParseOptions, build_error, element_text, parse_xml
from testreporter.parsers.stacktrace import dotnet_frames
from testreporter.results.models import (
    SuiteBuilder,
    TestCase,
    TestRunResult,
    TestStatus,
    clean_duration,
    clean_name,
)

log = get_logger("parsers.dotnet_trx")

# [d.]hh:mm:ss[.fffffff]
_DURATION_RE = re.compile(r"^(?:(\d+)\.)?(\d+):(\d{2}):(\d{2}(?:\.\d+)?)$")

_OUTCOMES = {
    "passed": TestStatus.PASSED,
    "notexecuted": TestStatus.SKIPPED,
}


def parse_net_duration(value: str | None) -> float:
    """Parse a TimeSpan string into seconds (0 when missing or invalid)."""
    if not value:
        return 0.0
    match = _DURATION_RE.match(value.strip())
    if match is None:
        return 0.0
    days, hours, minutes, seconds = match.groups()
    total = int(days or 0) * 86400 + int(hours) * 3600 + int(minutes) * 60 + float(seconds)
    return clean_duration(total)


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        return None


class DotnetTrxParser:
    """Parser for .trx files produced by `dotnet test --logger trx`."""

    def __init__(self, options: ParseOptions | None = None) -> None:
        self._options = options or ParseOptions()

    @property
    def reporter(self) -> str:
        return "dotnet-trx"

    def parse(self, file_id: str, content: bytes | str) -> TestRunResult:
        root = parse_xml(file_id, content)
        if root.tag != "TestRun":
            raise ParseError.missing_element(file_id, "<TestRun> root element")
        results = root.find("Results")
        if results is None:
            raise ParseError.missing_element(file_id, "<Results>")

        class_by_test_id = self._test_classes(root)

        suites: dict[str, SuiteBuilder] = {}
        for result in results.iterfind("UnitTestResult"):
            test_name = (result.get("testName") or "").strip()
            class_name = class_by_test_id.get(result.get("testId") or "")
            if class_name is None:
                class_name = test_name.rsplit(".", 1)[0] if "." in test_name else ""
            suite = suites.get(class_name)
            if suite is None:
                suite = suites[class_name] = SuiteBuilder(name=class_name)
            suite.cases.append(self._case(result, test_name, class_name))

        built = tuple(s.build() for s in suites.values())
        run = TestRunResult(name=file_id, suites=built, duration=self._run_duration(root))
        log.debug(
            "parsed", reporter=self.reporter, file=file_id, suites=len(built), tests=run.tests
        )
        return run

    def _test_classes(self, root: ET.Element) -> dict[str, str]:
        classes: dict[str, str] = {}
        for unit_test in root.iterfind("TestDefinitions/UnitTest"):
            method = unit_test.find("TestMethod")
            if method is None:
                continue
            # "Ns.Class, Assembly, Version=..." -> "Ns.Class"
            class_name = (method.get("className") or "").split(",", 1)[0].strip()
            classes[unit_test.get("id") or ""] = class_name
        return classes

    def _case(self, result: ET.Element, test_name: str, class_name: str) -> TestCase:
        name = test_name
        if class_name and test_name.startswith(class_name + "."):
            name = test_name[len(class_name) + 1 :]

        outcome = (result.get("outcome") or "").strip().lower()
        status = _OUTCOMES.get(outcome, TestStatus.FAILED)

        error = None
        if status is TestStatus.FAILED:
            info = result.find("Output/ErrorInfo")
            message = element_text(info.find("Message")) if info is not None else None
            stack = element_text(info.find("StackTrace")) if info is not None else None
            error = build_error(
                self._options,
                message=message,
                details=stack,
                frames=dotnet_frames(stack),
                fallback=class_name or None,
            )

        return TestCase(
            name=clean_name(name),
            classname=class_name,
            status=status,
            duration=parse_net_duration(result.get("duration")),
            error=error,
        )

    def _run_duration(self, root: ET.Element) -> float | None:
        times = root.find("Times")
        if times is None:
            return None
        start = _parse_timestamp(times.get("start"))
        finish = _parse_timestamp(times.get("finish"))
        if start is None or finish is None:
            return None
        try:
            return clean_duration((finish - start).total_seconds())
        except TypeError:
            # naive vs aware timestamps
            return None
