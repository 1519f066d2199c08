"""Tests for core/progress.py module.

Covers:
- _is_tty() function
- status() function
- task() context manager and its spinner
"""

from __future__ import annotations

import sys
from io import StringIO
from unittest.mock import patch

import pytest

from testreporter.core import progress
from testreporter.core.progress import _STYLES, _is_tty, status, task


class TestIsTty:
    """Tests for _is_tty function."""

    def test_returns_bool(self) -> None:
        """Returns a boolean."""
        assert isinstance(_is_tty(), bool)

    def test_false_for_stringio(self) -> None:
        """Returns False for non-TTY stderr."""
        original = sys.stderr
        try:
            sys.stderr = StringIO()
            assert _is_tty() is False
        finally:
            sys.stderr = original


class TestStyles:
    """Tests for _STYLES constant."""

    def test_has_expected_styles(self) -> None:
        """Contains expected style keys."""
        assert set(_STYLES.keys()) == {"success", "error", "info", "warning", "none"}

    def test_success_style(self) -> None:
        """Success style has checkmark."""
        assert "✓" in _STYLES["success"]

    def test_error_style(self) -> None:
        """Error style has X mark."""
        assert "✗" in _STYLES["error"]


class TestStatus:
    """Tests for status function."""

    def test_prints_message(self) -> None:
        """Prints a message to console."""
        with patch("testreporter.core.progress._console") as mock_console:
            status("Found 3 report files")
            mock_console.print.assert_called_once()

    def test_success_style(self) -> None:
        """Applies success style."""
        with patch("testreporter.core.progress._console") as mock_console:
            status("Done", style="success")
            assert "✓" in mock_console.print.call_args[0][0]

    def test_error_style(self) -> None:
        """Applies error style."""
        with patch("testreporter.core.progress._console") as mock_console:
            status("Failed", style="error")
            assert "✗" in mock_console.print.call_args[0][0]

    def test_unknown_style_has_no_prefix(self) -> None:
        """Unknown styles print the bare message."""
        with patch("testreporter.core.progress._console") as mock_console:
            status("Plain", style="bogus")
            assert mock_console.print.call_args[0][0] == "Plain"

    def test_with_indent(self) -> None:
        """Applies indentation."""
        with patch("testreporter.core.progress._console") as mock_console:
            status("Indented", indent=4)
            assert "    Indented" in mock_console.print.call_args[0][0]

    def test_console_writes_to_stderr(self) -> None:
        """The shared console never writes to stdout."""
        assert progress._console.stderr is True


class TestTask:
    """Tests for task context manager."""

    def test_completes_successfully(self) -> None:
        """Task prints a success line with the task name."""
        with patch("testreporter.core.progress.status") as mock_status:
            with task("Parsing results"):
                pass

            message = mock_status.call_args[0][0]
            assert message.startswith("Parsing results (")
            assert mock_status.call_args[1].get("style") == "success"

    def test_prints_error_on_failure(self) -> None:
        """Task prints error on exception."""
        with patch("testreporter.core.progress.status") as mock_status:
            with pytest.raises(ValueError), task("Failing task"):
                raise ValueError("test error")

            last_call = mock_status.call_args_list[-1]
            assert last_call[1].get("style") == "error"
            assert "test error" in last_call[0][0]

    def test_spinner_on_tty(self) -> None:
        """A terminal gets a spinner for the duration of the task."""
        with (
            patch("testreporter.core.progress._is_tty", return_value=True),
            patch("testreporter.core.progress._console") as mock_console,
        ):
            with task("Creating report"):
                mock_console.status.assert_called_once_with("Creating report")
                mock_console.status.return_value.__exit__.assert_not_called()
            mock_console.status.return_value.__exit__.assert_called_once()

    def test_no_spinner_without_tty(self) -> None:
        """Redirected stderr only gets the summary line."""
        with (
            patch("testreporter.core.progress._is_tty", return_value=False),
            patch("testreporter.core.progress._console") as mock_console,
        ):
            with task("Creating report"):
                pass
            mock_console.status.assert_not_called()
            mock_console.print.assert_called_once()

    def test_re_raises_exception(self) -> None:
        """Task re-raises the original exception."""
        with pytest.raises(RuntimeError, match="original"), task("Error task"):
            raise RuntimeError("original")
