"""JUnit XML dialect parsers.

Structure:
<testsuites time="...">
  <testsuite name="..." time="...">
    <testsuite name="...">...</testsuite>          (nested suites, some tools)
    <testcase classname="..." name="..." time="..." file="..." line="...">
      <failure message="..." type="...">stack</failure>
      <error message="...">stack</error>
      <skipped message="..."/>
      <system-out>...</system-out>
    </testcase>
  </testsuite>
</testsuites>

java-junit (Maven surefire, Gradle, pytest --junitxml) and jest-junit share
the layout and differ in how test cases are grouped and how stack traces
look.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterator

from testreporter.core.errors import ParseError
from testreporter.core.logging import get_logger
from testreporter.parsers.base import (
    ParseOptions,
    build_error,
    element_text,
    parse_float,
    parse_xml,
)
from testreporter.parsers.stacktrace import java_frames, node_frames
from testreporter.resolve import format_location
from testreporter.results.models import (
    SuiteBuilder,
    TestCase,
    TestRunResult,
    TestStatus,
    clean_duration,
    clean_name,
)

log = get_logger("parsers.junit")


class _JunitXmlParser:
    """Shared JUnit XML walk; subclasses pick grouping and stack format."""

    reporter_id = ""

    def __init__(self, options: ParseOptions | None = None) -> None:
        self._options = options or ParseOptions()

    @property
    def reporter(self) -> str:
        return self.reporter_id

    def parse(self, file_id: str, content: bytes | str) -> TestRunResult:
        root = parse_xml(file_id, content)

        duration: float | None = None
        if root.tag == "testsuites":
            suite_elems = root.findall("testsuite")
            if root.get("time") is not None:
                duration = parse_float(root.get("time"))
        elif root.tag == "testsuite":
            suite_elems = [root]
        else:
            raise ParseError.missing_element(file_id, "<testsuites> or <testsuite> root element")

        suites = tuple(self._suite(elem).build() for elem in suite_elems)
        result = TestRunResult(name=file_id, suites=suites, duration=duration)
        log.debug(
            "parsed",
            reporter=self.reporter,
            file=file_id,
            suites=len(suites),
            tests=result.tests,
        )
        return result

    def _suite(self, elem: ET.Element) -> SuiteBuilder:
        name = (elem.get("name") or "").strip()
        time_attr = elem.get("time")
        builder = SuiteBuilder(
            name=name,
            duration=parse_float(time_attr) if time_attr is not None else None,
        )
        for child in elem:
            if child.tag == "testsuite":
                builder.add_child(self._suite(child))
            elif child.tag == "testcase":
                case = self._case(child)
                group = self._group_name(child, name, case.name)
                if group:
                    builder.child(group).cases.append(case)
                else:
                    builder.cases.append(case)
        return builder

    def _case(self, elem: ET.Element) -> TestCase:
        failure = elem.find("failure")
        if failure is None:
            failure = elem.find("error")

        if failure is not None:
            status = TestStatus.FAILED
        elif elem.find("skipped") is not None:
            status = TestStatus.SKIPPED
        else:
            status = TestStatus.PASSED

        classname = (elem.get("classname") or "").strip()
        error = None
        if failure is not None:
            details = element_text(failure)
            error = build_error(
                self._options,
                message=failure.get("message"),
                details=details,
                frames=self._frames(elem, details),
                fallback=classname or None,
            )

        return TestCase(
            name=clean_name(elem.get("name")),
            classname=classname,
            status=status,
            duration=clean_duration(parse_float(elem.get("time"))),
            error=error,
        )

    def _frames(self, elem: ET.Element, details: str | None) -> Iterator[str]:
        file = elem.get("file")
        if file:
            line = elem.get("line")
            yield format_location(file, int(line) if line and line.isdigit() else None)
        yield from self._stack_frames(details)

    def _stack_frames(self, details: str | None) -> Iterator[str]:
        raise NotImplementedError

    def _group_name(self, elem: ET.Element, suite_name: str, case_name: str) -> str:
        raise NotImplementedError


class JavaJunitParser(_JunitXmlParser):
    """Parser for JUnit XML written by JVM tools (and other JUnit producers).

    Test cases whose classname equals the suite name belong to the suite
    itself; other classnames become child suites.
    """

    reporter_id = "java-junit"

    def _stack_frames(self, details: str | None) -> Iterator[str]:
        return java_frames(details)

    def _group_name(self, elem: ET.Element, suite_name: str, case_name: str) -> str:  # noqa: ARG002
        classname = (elem.get("classname") or "").strip()
        return "" if classname == suite_name else classname


class JestJunitParser(_JunitXmlParser):
    """Parser for jest-junit output.

    The classname carries the describe block path; cases are grouped by it
    unless it just repeats the test name.
    """

    reporter_id = "jest-junit"

    def _stack_frames(self, details: str | None) -> Iterator[str]:
        return node_frames(details)

    def _group_name(self, elem: ET.Element, suite_name: str, case_name: str) -> str:  # noqa: ARG002
        classname = (elem.get("classname") or "").strip()
        return "" if classname == case_name else classname
