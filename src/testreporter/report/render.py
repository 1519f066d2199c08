"""Report renderer.

Folds parsed TestRunResults into one human readable report:

    headline          aggregate counts and time over all runs
    summary table     one row per run (result file)
    per run           heading, run summary line, suite table, suite trees

Anchors are ``<id_prefix>r<run>`` for runs and ``<id_prefix>r<run>s<i>``
for suites, with ``-<j>`` appended per nesting level. Indices are positions
in the source document, so anchors stay stable when filters hide entries.
"""

from __future__ import annotations

import hashlib
from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Literal

from testreporter.config.constants import MAX_REPORT_LENGTH
from testreporter.config.models import ReportConfig
from testreporter.core.formatting import first_non_empty_line, format_duration
from testreporter.core.logging import get_logger
from testreporter.report.formats import FormatName, ReportFormat, get_format
from testreporter.results.models import (
    RunResult,
    TestCase,
    TestRunResult,
    TestSuite,
    Totals,
)

log = get_logger("report.render")

ListSuites = Literal["all", "failed"]
ListTests = Literal["all", "failed", "none"]


@dataclass(frozen=True, slots=True)
class ReportOptions:
    """Verbosity and layout of a rendered report.

    Attributes:
        list_suites: 'failed' hides suites (and runs) without failed tests.
        list_tests: 'failed' lists only failed cases, 'none' drops suite trees.
        only_summary: Emit only the headline and the summary table.
        base_url: Prefix for anchor links.
        id_prefix: Prefix for anchor ids, see make_id_prefix().
        max_length: Character cap for the whole report.
        format: Output markup.
    """

    list_suites: ListSuites = "all"
    list_tests: ListTests = "all"
    only_summary: bool = False
    base_url: str = ""
    id_prefix: str = ""
    max_length: int = MAX_REPORT_LENGTH
    format: FormatName = "markdown"

    @classmethod
    def from_config(cls, config: ReportConfig) -> ReportOptions:
        return cls(
            list_suites=config.list_suites,
            list_tests=config.list_tests,
            only_summary=config.only_summary,
            base_url=config.base_url,
            id_prefix=config.id_prefix,
            max_length=config.max_length,
            format=config.format,
        )


def make_id_prefix(seed: str) -> str:
    """Derive a short, stable anchor prefix for reports sharing one page."""
    digest = hashlib.sha1(seed.encode("utf-8")).hexdigest()
    return f"{digest[:8]}-"


def summary_line(totals: Totals, *, with_time: bool = True) -> str:
    """``"2 passed, 1 failed, 0 skipped in 12ms"``."""
    text = f"{totals.passed} passed, {totals.failed} failed, {totals.skipped} skipped"
    if with_time:
        text += f" in {format_duration(totals.time)}"
    return text


def render_report(
    results: Sequence[TestRunResult], options: ReportOptions | None = None
) -> str:
    """Render results into report text no longer than ``options.max_length``.

    A report over the cap is rendered again listing only failed tests; if
    that is still too long it is cut at a line boundary, open blocks are
    closed and a truncation marker is appended.
    """
    options = options or ReportOptions()
    fmt = get_format(options.format, base_url=options.base_url)

    text = _Renderer(options, fmt).render(results)
    if len(text) <= options.max_length:
        return text

    if options.list_tests == "all":
        log.info(
            "report_too_long",
            length=len(text),
            max_length=options.max_length,
            retry="list_tests=failed",
        )
        text = _Renderer(replace(options, list_tests="failed"), fmt).render(results)
        if len(text) <= options.max_length:
            return text

    log.warning("report_trimmed", length=len(text), max_length=options.max_length)
    return _trim(text, options.max_length, fmt)


def _trim(text: str, max_length: int, fmt: ReportFormat) -> str:
    marker = "\n\n" + fmt.truncation_marker(max_length)
    cut = text[:max_length]
    if len(text) > max_length:
        # Only keep complete lines
        cut = cut[: max(cut.rfind("\n"), 0)]

    while True:
        closing = "".join("\n" + line for line in fmt.close_blocks(cut))
        if len(cut) + len(closing) + len(marker) <= max_length or not cut:
            break
        cut = cut[: max(cut.rfind("\n"), 0)]

    trimmed = cut + closing + marker if cut else marker.lstrip("\n")
    return trimmed[:max_length]


class _Renderer:
    """One render pass with fixed options."""

    def __init__(self, options: ReportOptions, fmt: ReportFormat) -> None:
        self._opts = options
        self._fmt = fmt

    def render(self, results: Sequence[TestRunResult]) -> str:
        fmt = self._fmt
        totals = Totals.of(results)
        result = RunResult.FAILED if totals.failed > 0 else RunResult.SUCCESS

        sections = [
            fmt.heading(f"{fmt.icon(result.value)} {summary_line(totals)}", 2),
        ]

        listed = [
            (i, run)
            for i, run in enumerate(results)
            if not self._opts.only_summary
            and (self._opts.list_suites == "all" or run.result is RunResult.FAILED)
        ]
        if results:
            sections.append(self._runs_table(results, {i for i, _ in listed}))

        for i, run in listed:
            sections.append(self._run(i, run))

        return "\n\n".join(sections) + "\n"

    # -------------------------------------------------------------------------
    # Anchors
    # -------------------------------------------------------------------------

    def _run_anchor(self, run_index: int) -> str:
        return f"{self._opts.id_prefix}r{run_index}"

    def _suite_anchor(self, run_index: int, path: Sequence[int]) -> str:
        return f"{self._run_anchor(run_index)}s" + "-".join(str(i) for i in path)

    # -------------------------------------------------------------------------
    # Sections
    # -------------------------------------------------------------------------

    def _counts(self, totals: Totals | TestSuite | TestRunResult) -> list[str]:
        fmt = self._fmt
        cells = []
        for status, count in (
            ("passed", totals.passed),
            ("failed", totals.failed),
            ("skipped", totals.skipped),
        ):
            cells.append(f"{count} {fmt.icon(status)}" if count else "")
        cells.append(format_duration(totals.time))
        return cells

    def _runs_table(self, results: Sequence[TestRunResult], linked: set[int]) -> str:
        fmt = self._fmt
        rows = []
        for i, run in enumerate(results):
            name = f"{fmt.icon(run.result.value)} {fmt.escape(run.name)}"
            if i in linked:
                name = fmt.link(name, self._run_anchor(i))
            rows.append([name, *self._counts(run)])
        return fmt.table(
            ["Report", "Passed", "Failed", "Skipped", "Time"],
            rows,
            ["left", "right", "right", "right", "right"],
        )

    def _run(self, run_index: int, run: TestRunResult) -> str:
        fmt = self._fmt
        parts = [
            fmt.heading(
                f"{fmt.icon(run.result.value)} {fmt.escape(run.name)}",
                2,
                anchor=self._run_anchor(run_index),
            ),
            fmt.strong(summary_line(run.totals)),
        ]

        suites = [
            (i, suite)
            for i, suite in enumerate(run.suites)
            if self._opts.list_suites == "all" or suite.result is RunResult.FAILED
        ]
        if not suites:
            return "\n\n".join(parts)

        trees = {
            i: suite
            for i, suite in suites
            if self._opts.list_tests == "all"
            or (self._opts.list_tests == "failed" and suite.failed > 0)
        }

        rows = []
        for i, suite in suites:
            name = f"{fmt.icon(suite.result.value)} {fmt.escape(suite.name)}"
            if i in trees:
                name = fmt.link(name, self._suite_anchor(run_index, [i]))
            rows.append([name, *self._counts(suite)])
        parts.append(
            fmt.table(
                ["Test suite", "Passed", "Failed", "Skipped", "Time"],
                rows,
                ["left", "right", "right", "right", "right"],
            )
        )

        for i, suite in trees.items():
            parts.append(self._suite_tree(run_index, i, suite))
        return "\n\n".join(parts)

    def _suite_tree(self, run_index: int, suite_index: int, suite: TestSuite) -> str:
        fmt = self._fmt
        lines = [
            fmt.heading(
                f"{fmt.icon(suite.result.value)} {fmt.escape(suite.name)}",
                3,
                anchor=self._suite_anchor(run_index, [suite_index]),
            ),
            "",
            summary_line(Totals(suite.passed, suite.failed, suite.skipped, suite.time)),
            "",
        ]
        body = self._suite_body(run_index, [suite_index], suite, depth=0)
        lines.extend(body)
        return "\n".join(lines).rstrip("\n")

    def _suite_body(
        self, run_index: int, path: list[int], suite: TestSuite, depth: int
    ) -> list[str]:
        fmt = self._fmt
        lines: list[str] = []
        for case in suite.cases:
            if self._opts.list_tests == "failed" and not case.failed:
                continue
            lines.extend(self._case(case, depth))

        for j, child in enumerate(suite.suites):
            if child.failed == 0 and (
                self._opts.list_suites == "failed" or self._opts.list_tests == "failed"
            ):
                continue
            counts = summary_line(
                Totals(child.passed, child.failed, child.skipped, child.time)
            )
            lines.append(
                fmt.list_item(
                    f"{fmt.icon(child.result.value)} {fmt.escape(child.name)} ({counts})",
                    depth,
                    anchor=self._suite_anchor(run_index, [*path, j]),
                )
            )
            lines.extend(self._suite_body(run_index, [*path, j], child, depth + 1))
        return lines

    def _case(self, case: TestCase, depth: int) -> list[str]:
        fmt = self._fmt
        lines = [
            fmt.list_item(
                f"{fmt.icon(case.status.value)} {fmt.escape(case.name)} "
                f"({format_duration(case.duration)})",
                depth,
            )
        ]
        if case.failed:
            summary = first_non_empty_line(case.message) or first_non_empty_line(
                case.details
            )
            body = "\n".join(t for t in (case.message, case.details) if t)
            lines.append(fmt.details(summary or "Test failed", body or None, depth + 1))
        return lines
