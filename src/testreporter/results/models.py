"""Canonical test result model.

Every format parser produces these structures and every renderer consumes
them. The tree is owned top-down (run -> suites -> child suites -> cases)
and immutable once built. Aggregate counts are always derived from the
cases, never stored.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

UNNAMED = "<unnamed>"
"""Placeholder for suites/cases whose source document has no name."""


class TestStatus(str, Enum):
    """Outcome of a single test case."""

    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class RunResult(str, Enum):
    """Overall outcome of a suite or run."""

    SUCCESS = "success"
    FAILED = "failed"


def clean_name(name: str | None) -> str:
    """Strip a parsed name, substituting the placeholder when nothing is left."""
    if name is None:
        return UNNAMED
    name = name.strip()
    return name or UNNAMED


def clean_duration(value: float | None) -> float:
    """Clamp a parsed duration (seconds) to a non-negative finite number."""
    if value is None or value != value or value < 0 or value == float("inf"):
        return 0.0
    return float(value)


# =============================================================================
# Cases
# =============================================================================


@dataclass(frozen=True, slots=True)
class TestCaseError:
    """Failure detail of a test case.

    ``location`` is the raw raising location as found in the report
    (``<target>[:<line>[:<column>]]``); ``path``/``line``/``column`` hold the
    resolved repository location when the target matched a tracked file.
    """

    __test__ = False

    message: str | None = None
    details: str | None = None
    location: str | None = None
    path: str | None = None
    line: int | None = None
    column: int | None = None


@dataclass(frozen=True, slots=True)
class TestCase:
    """A single test case result."""

    __test__ = False

    name: str
    classname: str = ""
    status: TestStatus = TestStatus.PASSED
    duration: float = 0.0  # seconds
    error: TestCaseError | None = None

    @property
    def message(self) -> str | None:
        return self.error.message if self.error else None

    @property
    def details(self) -> str | None:
        return self.error.details if self.error else None

    @property
    def failed(self) -> bool:
        return self.status is TestStatus.FAILED


# =============================================================================
# Suites
# =============================================================================


@dataclass(frozen=True, slots=True)
class TestSuite:
    """A suite of cases, optionally containing nested child suites.

    ``duration`` is the time reported by the source document for the whole
    suite, if any; ``time`` falls back to the recursive sum of the cases.
    """

    __test__ = False

    name: str
    cases: tuple[TestCase, ...] = ()
    suites: tuple[TestSuite, ...] = ()
    duration: float | None = None

    def _count(self, status: TestStatus) -> int:
        own = sum(1 for c in self.cases if c.status is status)
        return own + sum(s._count(status) for s in self.suites)

    @property
    def passed(self) -> int:
        return self._count(TestStatus.PASSED)

    @property
    def failed(self) -> int:
        return self._count(TestStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(TestStatus.SKIPPED)

    @property
    def tests(self) -> int:
        return len(self.cases) + sum(s.tests for s in self.suites)

    @property
    def time(self) -> float:
        if self.duration is not None:
            return self.duration
        return sum(c.duration for c in self.cases) + sum(s.time for s in self.suites)

    @property
    def result(self) -> RunResult:
        return RunResult.FAILED if self.failed > 0 else RunResult.SUCCESS

    @property
    def failed_suites(self) -> list[TestSuite]:
        return [s for s in self.suites if s.result is RunResult.FAILED]

    @property
    def failed_cases(self) -> list[TestCase]:
        return [c for c in self.iter_cases() if c.failed]

    def iter_cases(self) -> Iterator[TestCase]:
        """Own cases first, then each child suite depth-first, in source order."""
        yield from self.cases
        for child in self.suites:
            yield from child.iter_cases()


# =============================================================================
# Runs
# =============================================================================


@dataclass(frozen=True, slots=True)
class Totals:
    """Aggregate counts over one or more runs."""

    passed: int = 0
    failed: int = 0
    skipped: int = 0
    time: float = 0.0

    @property
    def tests(self) -> int:
        return self.passed + self.failed + self.skipped

    def __add__(self, other: Totals) -> Totals:
        return Totals(
            passed=self.passed + other.passed,
            failed=self.failed + other.failed,
            skipped=self.skipped + other.skipped,
            time=self.time + other.time,
        )

    @classmethod
    def of(cls, results: list[TestRunResult] | tuple[TestRunResult, ...]) -> Totals:
        total = cls()
        for result in results:
            total = total + result.totals
        return total


@dataclass(frozen=True, slots=True)
class TestRunResult:
    """All suites parsed from one result file."""

    __test__ = False

    name: str
    suites: tuple[TestSuite, ...] = ()
    duration: float | None = None

    @property
    def passed(self) -> int:
        return sum(s.passed for s in self.suites)

    @property
    def failed(self) -> int:
        return sum(s.failed for s in self.suites)

    @property
    def skipped(self) -> int:
        return sum(s.skipped for s in self.suites)

    @property
    def tests(self) -> int:
        return sum(s.tests for s in self.suites)

    @property
    def time(self) -> float:
        if self.duration is not None:
            return self.duration
        return sum(s.time for s in self.suites)

    @property
    def totals(self) -> Totals:
        return Totals(
            passed=self.passed,
            failed=self.failed,
            skipped=self.skipped,
            time=self.time,
        )

    @property
    def result(self) -> RunResult:
        return RunResult.FAILED if self.failed > 0 else RunResult.SUCCESS

    @property
    def failed_suites(self) -> list[TestSuite]:
        return [s for s in self.suites if s.result is RunResult.FAILED]

    def iter_cases(self) -> Iterator[tuple[tuple[TestSuite, ...], TestCase]]:
        """Yield ``(suite_path, case)`` pairs in document order.

        ``suite_path`` runs from the top-level suite down to the suite that
        owns the case.
        """
        for suite in self.suites:
            yield from _walk(suite, (suite,))


def _walk(
    suite: TestSuite, path: tuple[TestSuite, ...]
) -> Iterator[tuple[tuple[TestSuite, ...], TestCase]]:
    for case in suite.cases:
        yield path, case
    for child in suite.suites:
        yield from _walk(child, (*path, child))


# =============================================================================
# Builders
# =============================================================================


@dataclass(slots=True)
class SuiteBuilder:
    """Mutable accumulator used by parsers while walking one document.

    Children keep insertion order; ``build()`` freezes the subtree into a
    TestSuite. Builders never leave the parser call that created them.
    """

    name: str
    cases: list[TestCase] = field(default_factory=list)
    children: list[SuiteBuilder] = field(default_factory=list)
    duration: float | None = None

    def child(self, name: str) -> SuiteBuilder:
        """Return the child suite with this name, creating it on first use."""
        for existing in self.children:
            if existing.name == name:
                return existing
        created = SuiteBuilder(name=name)
        self.children.append(created)
        return created

    def add_child(self, child: SuiteBuilder) -> SuiteBuilder:
        """Append a new child even if a sibling of the same name exists."""
        self.children.append(child)
        return child

    def build(self) -> TestSuite:
        return TestSuite(
            name=clean_name(self.name),
            cases=tuple(self.cases),
            suites=tuple(c.build() for c in self.children),
            duration=None if self.duration is None else clean_duration(self.duration),
        )
