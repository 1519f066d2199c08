"""Canonical result model shared by parsers and renderers."""

from testreporter.results.models import (
    UNNAMED,
    RunResult,
    SuiteBuilder,
    TestCase,
    TestCaseError,
    TestRunResult,
    TestStatus,
    TestSuite,
    Totals,
    clean_duration,
    clean_name,
)

__all__ = [
    "UNNAMED",
    "RunResult",
    "SuiteBuilder",
    "TestCase",
    "TestCaseError",
    "TestRunResult",
    "TestStatus",
    "TestSuite",
    "Totals",
    "clean_duration",
    "clean_name",
]
