"""Report operations - parse result files and derive report and annotations.

One ReportOps instance serves one run: the reporter is chosen once, every
report group (a named set of result files) is parsed with the same parser,
then rendered and annotated independently.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextvars import copy_context
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Literal

from testreporter.config.models import ReporterConfig
from testreporter.core.errors import ConfigError, InternalError, ParseError
from testreporter.core.logging import get_logger, report_context
from testreporter.inputs import InputFile
from testreporter.parsers import ParseOptions, TestParser, get_parser
from testreporter.report.annotations import Annotation, build_annotations
from testreporter.report.render import ReportOptions, make_id_prefix, render_report
from testreporter.resolve import TrackedFiles
from testreporter.results.models import TestRunResult, Totals

log = get_logger("ops")

Conclusion = Literal["success", "failure"]


@dataclass(frozen=True, slots=True)
class GroupParse:
    """Parsed files of one group, in the order the files were given."""

    results: list[TestRunResult] = field(default_factory=list)
    errors: list[ParseError] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class GroupReport:
    """Everything derived from one report group."""

    name: str
    results: list[TestRunResult]
    errors: list[ParseError]
    report: str
    annotations: list[Annotation]
    conclusion: Conclusion
    totals: Totals

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "conclusion": self.conclusion,
            "passed": self.totals.passed,
            "failed": self.totals.failed,
            "skipped": self.totals.skipped,
            "time": self.totals.time,
            "files": [r.name for r in self.results],
            "errors": [e.to_dict() for e in self.errors],
            "annotations": [a.to_dict() for a in self.annotations],
            "report": self.report,
        }


@dataclass(frozen=True, slots=True)
class RunOutcome:
    """Aggregate over all groups of one run."""

    groups: list[GroupReport]

    @property
    def totals(self) -> Totals:
        total = Totals()
        for group in self.groups:
            total = total + group.totals
        return total

    @property
    def found(self) -> bool:
        """Whether any result file was parsed (or at least attempted)."""
        return any(g.results or g.errors for g in self.groups)

    @property
    def conclusion(self) -> Conclusion:
        if any(g.conclusion == "failure" for g in self.groups):
            return "failure"
        return "success"

    def to_dict(self) -> dict[str, object]:
        totals = self.totals
        return {
            "conclusion": self.conclusion,
            "passed": totals.passed,
            "failed": totals.failed,
            "skipped": totals.skipped,
            "time": totals.time,
            "groups": [g.to_dict() for g in self.groups],
        }


class ReportOps:
    """Parse, render and annotate report groups."""

    def __init__(
        self,
        config: ReporterConfig,
        tracked_files: Iterable[str] | TrackedFiles = (),
        work_dir: Path | str | None = None,
    ) -> None:
        self._config = config
        self._options = ParseOptions.create(
            tracked_files,
            work_dir=str(work_dir) if work_dir is not None else None,
        )
        self._parser: TestParser | None = None

    def get_parser(self) -> TestParser:
        """The parser for the configured reporter.

        Raises:
            ConfigError: If no reporter is configured.
            UnsupportedFormatError: If the reporter name is unknown.
        """
        if self._parser is None:
            reporter = self._config.parsing.reporter
            if not reporter:
                raise ConfigError.missing_required("parsing.reporter")
            self._parser = get_parser(reporter, self._options)
        return self._parser

    # =========================================================================
    # Parsing
    # =========================================================================

    def parse_group(self, name: str, files: Sequence[InputFile]) -> GroupParse:
        """Parse every file of a group; a broken file never stops its siblings.

        Raises:
            ParseError: The first failure, after all files were parsed, when
                        ``parsing.on_parse_error`` is 'fail'.
        """
        parser = self.get_parser()
        workers = min(self._config.parsing.workers, len(files))
        if workers > 1:
            outcomes = self._parallel_parse(parser, files, workers)
        else:
            outcomes = [self._parse_one(parser, f) for f in files]

        results = [o for o in outcomes if isinstance(o, TestRunResult)]
        errors = [o for o in outcomes if isinstance(o, ParseError)]
        for error in errors:
            log.warning("parse_failed", group=name, file=error.file, error=error.message)

        if errors and self._config.parsing.on_parse_error == "fail":
            raise errors[0]
        return GroupParse(results=results, errors=errors)

    def _parse_one(self, parser: TestParser, file: InputFile) -> TestRunResult | ParseError:
        try:
            return parser.parse(file.file_id, file.content)
        except ParseError as e:
            return e
        except Exception as e:
            raise InternalError.unexpected(
                f"{parser.reporter} parser failed on {file.file_id}: {e!r}",
                file=file.file_id,
                reporter=parser.reporter,
            ) from e

    def _parallel_parse(
        self, parser: TestParser, files: Sequence[InputFile], workers: int
    ) -> list[TestRunResult | ParseError]:
        """Parse on a thread pool; outcomes keep the order of ``files``.

        Each task runs in a copy of the caller's context so that parser logs
        keep the run and group tags.
        """
        outcomes: list[TestRunResult | ParseError | None] = [None] * len(files)

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(copy_context().run, self._parse_one, parser, file): index
                for index, file in enumerate(files)
            }
            for future in as_completed(futures):
                outcomes[futures[future]] = future.result()

        return [o for o in outcomes if o is not None]

    # =========================================================================
    # Reports
    # =========================================================================

    def create_report(
        self,
        name: str,
        files: Sequence[InputFile],
        *,
        id_prefix: str | None = None,
    ) -> GroupReport:
        """Parse a group and derive its report text and annotations."""
        reporter = self.get_parser().reporter
        options = ReportOptions.from_config(self._config.report)
        if id_prefix is not None:
            options = replace(options, id_prefix=id_prefix)

        with report_context(name, reporter):
            parsed = self.parse_group(name, files)
            results = parsed.results
            report = render_report(results, options)
            annotations = build_annotations(results, self._config.annotations.max_annotations)

        totals = Totals.of(results)
        conclusion: Conclusion = "failure" if totals.failed > 0 or parsed.errors else "success"
        log.info(
            "report_created",
            group=name,
            reporter=reporter,
            files=len(files),
            passed=totals.passed,
            failed=totals.failed,
            skipped=totals.skipped,
            annotations=len(annotations),
            conclusion=conclusion,
        )
        return GroupReport(
            name=name,
            results=results,
            errors=parsed.errors,
            report=report,
            annotations=annotations,
            conclusion=conclusion,
            totals=totals,
        )

    def run(self, groups: Mapping[str, Sequence[InputFile]]) -> RunOutcome:
        """Create one report per group.

        Groups rendered into one page get distinct anchor prefixes unless a
        prefix is configured explicitly.
        """
        self.get_parser()
        shared_page = len(groups) > 1 and not self._config.report.id_prefix
        reports = []
        for name, files in groups.items():
            if not files:
                log.info("no_files", group=name)
            prefix = make_id_prefix(name) if shared_page else None
            reports.append(self.create_report(name, files, id_prefix=prefix))
        return RunOutcome(groups=reports)
