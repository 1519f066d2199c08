"""Annotation builder.

Turns failed test cases into inline code annotations for the hosting
system. Annotations follow case order in the source documents, runs in the
order given; when there are more failed cases than ``max_count`` the first
``max_count`` are kept, so a smaller cap always yields a prefix of a larger
one.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import asdict, dataclass
from itertools import islice
from typing import Any, Literal

from testreporter.config.constants import ANNOTATION_MESSAGE_MAX, ANNOTATION_TITLE_MAX
from testreporter.core.formatting import ellipsis, first_non_empty_line, fix_eol
from testreporter.core.logging import get_logger
from testreporter.results.models import TestCase, TestRunResult, TestSuite

log = get_logger("report.annotations")

REPO_ROOT = "."
"""Path of annotations whose location could not be resolved."""


@dataclass(frozen=True, slots=True)
class Annotation:
    """One inline annotation for a failed test case."""

    path: str
    start_line: int
    end_line: int
    title: str
    message: str
    start_column: int | None = None
    end_column: int | None = None
    annotation_level: Literal["failure"] = "failure"
    raw_details: str | None = None
    suite_name: str = ""
    report_name: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Publisher payload; fields without a value are left out."""
        return {k: v for k, v in asdict(self).items() if v is not None}


def build_annotations(results: Sequence[TestRunResult], max_count: int) -> list[Annotation]:
    """Build annotations for the first ``max_count`` failed cases.

    Raises:
        ValueError: If max_count is negative.
    """
    if max_count < 0:
        raise ValueError(f"max_count must be >= 0, got {max_count}")
    if max_count == 0:
        return []

    annotations = [
        _annotation(run, suites, case)
        for run, suites, case in islice(_failed_cases(results), max_count)
    ]
    total = sum(r.failed for r in results)
    if total > len(annotations):
        log.info("annotations_capped", failed=total, annotations=len(annotations))
    return annotations


def _failed_cases(
    results: Sequence[TestRunResult],
) -> Iterator[tuple[TestRunResult, tuple[TestSuite, ...], TestCase]]:
    for run in results:
        for suites, case in run.iter_cases():
            if case.failed:
                yield run, suites, case


def _annotation(
    run: TestRunResult, suites: tuple[TestSuite, ...], case: TestCase
) -> Annotation:
    error = case.error
    path = REPO_ROOT
    line = 1
    column = None
    if error is not None and error.path:
        path = error.path
        line = error.line or 1
        column = error.column

    message = fix_eol(case.message).strip() or first_non_empty_line(case.details) or "Test failed"
    details = fix_eol(case.details) or None

    return Annotation(
        path=path,
        start_line=line,
        end_line=line,
        start_column=column,
        end_column=column,
        title=ellipsis(case.name, ANNOTATION_TITLE_MAX),
        message=ellipsis(message, ANNOTATION_MESSAGE_MAX),
        raw_details=ellipsis(details, ANNOTATION_MESSAGE_MAX) if details else None,
        suite_name=" > ".join(s.name for s in suites),
        report_name=run.name,
    )
