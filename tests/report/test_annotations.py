"""Tests for annotation building."""

import pytest

from testreporter.report.annotations import REPO_ROOT, Annotation, build_annotations
from testreporter.report.render import ReportOptions, render_report
from testreporter.results.models import (
    TestCase,
    TestCaseError,
    TestRunResult,
    TestStatus,
    TestSuite,
)


def _failed(name: str, **error: object) -> TestCase:
    return TestCase(name, status=TestStatus.FAILED, error=TestCaseError(**error))  # type: ignore[arg-type]


def _run(name: str, failures: int) -> TestRunResult:
    cases = tuple(_failed(f"{name} #{i}", message=f"failure {i}") for i in range(failures))
    return TestRunResult(name, suites=(TestSuite("suite", cases=cases),))


class TestBuildAnnotations:
    """Tests for build_annotations."""

    def test_zero_disables(self) -> None:
        assert build_annotations([_run("a.xml", 3)], 0) == []

    def test_negative_rejected(self) -> None:
        with pytest.raises(ValueError):
            build_annotations([_run("a.xml", 3)], -1)

    def test_no_failures(self) -> None:
        run = TestRunResult("a.xml", suites=(TestSuite("s", cases=(TestCase("ok"),)),))
        assert build_annotations([run], 10) == []

    def test_cap_takes_first_failures_in_file_order(self) -> None:
        results = [_run("first.xml", 60), _run("second.xml", 60)]
        annotations = build_annotations(results, 50)
        assert len(annotations) == 50
        assert [a.title for a in annotations] == [f"first.xml #{i}" for i in range(50)]
        assert {a.report_name for a in annotations} == {"first.xml"}

    def test_report_still_lists_every_failure(self) -> None:
        results = [_run("first.xml", 60), _run("second.xml", 60)]
        build_annotations(results, 50)
        text = render_report(results, ReportOptions(list_tests="failed", max_length=1_000_000))
        assert text.count("- ❌ ") == 120

    def test_smaller_cap_is_prefix_of_larger(self) -> None:
        results = [_run("a.xml", 7), _run("b.xml", 4)]
        small = build_annotations(results, 3)
        large = build_annotations(results, 10)
        assert large[:3] == small

    def test_idempotent(self) -> None:
        results = [_run("a.xml", 5)]
        assert build_annotations(results, 5) == build_annotations(results, 5)

    def test_resolved_location(self) -> None:
        case = _failed("t", message="boom", path="src/a.js", line=12, column=3, location="x")
        run = TestRunResult("r.json", suites=(TestSuite("s", cases=(case,)),))
        (annotation,) = build_annotations([run], 10)
        assert annotation == Annotation(
            path="src/a.js",
            start_line=12,
            end_line=12,
            start_column=3,
            end_column=3,
            title="t",
            message="boom",
            suite_name="s",
            report_name="r.json",
        )

    def test_unresolved_location_points_at_repo_root(self) -> None:
        run = TestRunResult("r", suites=(TestSuite("s", cases=(_failed("t", location="x.js:1"),)),))
        (annotation,) = build_annotations([run], 1)
        assert annotation.path == REPO_ROOT == "."
        assert (annotation.start_line, annotation.end_line) == (1, 1)
        assert annotation.start_column is None

    def test_message_falls_back_to_details_then_default(self) -> None:
        with_details = _failed("a", details="\n  Error: boom\n  at x\n")
        bare = TestCase("b", status=TestStatus.FAILED)
        run = TestRunResult("r", suites=(TestSuite("s", cases=(with_details, bare)),))
        first, second = build_annotations([run], 10)
        assert first.message == "Error: boom"
        assert first.raw_details == "\n  Error: boom\n  at x\n"
        assert second.message == "Test failed"
        assert second.raw_details is None

    def test_long_fields_truncated(self) -> None:
        case = _failed("n" * 300, message="m" * 70000, details="d" * 70000)
        run = TestRunResult("r", suites=(TestSuite("s", cases=(case,)),))
        (annotation,) = build_annotations([run], 1)
        assert len(annotation.title) == 255
        assert annotation.title.endswith("...")
        assert len(annotation.message) == 65535
        assert annotation.raw_details is not None
        assert len(annotation.raw_details) == 65535

    def test_suite_path_joined(self) -> None:
        inner = TestSuite("inner", cases=(_failed("t"),))
        run = TestRunResult("r", suites=(TestSuite("outer", suites=(inner,)),))
        (annotation,) = build_annotations([run], 1)
        assert annotation.suite_name == "outer > inner"


class TestAnnotationToDict:
    """Tests for Annotation.to_dict."""

    def test_drops_empty_fields(self) -> None:
        annotation = Annotation(path=".", start_line=1, end_line=1, title="t", message="m")
        assert annotation.to_dict() == {
            "path": ".",
            "start_line": 1,
            "end_line": 1,
            "title": "t",
            "message": "m",
            "annotation_level": "failure",
            "suite_name": "",
            "report_name": "",
        }
