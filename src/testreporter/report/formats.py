"""Output formats for the report renderer.

The renderer decides what goes into a report (which runs, suites and cases,
in which order, with which counts); a ReportFormat decides how it looks.
Aggregation code never emits markup directly, so a new markup only needs a
new ReportFormat.

Design principles:
- Every method returns complete lines without a trailing newline
- User text (test names, messages) is escaped by the format, never by callers
- Block structures (collapsible sections, code fences) can be re-balanced
  after the report has been cut, see close_blocks()
"""

from __future__ import annotations

import html
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Literal

from testreporter.core.formatting import fix_eol, indent

Align = Literal["left", "right"]
FormatName = Literal["markdown", "text"]

_BACKTICK_RUN_RE = re.compile(r"`+")


class ReportFormat(ABC):
    """Abstract base for report markup."""

    name: FormatName

    @abstractmethod
    def icon(self, status: str) -> str:
        """Icon for a case status or run result ('passed', 'success', ...)."""
        ...

    @abstractmethod
    def heading(self, text: str, level: int, *, anchor: str | None = None) -> str:
        """Section heading; ``anchor`` makes it a link target."""
        ...

    @abstractmethod
    def link(self, text: str, anchor: str) -> str:
        """Inline reference to an anchor created by heading()/list_item()."""
        ...

    @abstractmethod
    def strong(self, text: str) -> str: ...

    @abstractmethod
    def table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        align: Sequence[Align],
    ) -> str:
        """Table; cells are already formatted (links, icons)."""
        ...

    @abstractmethod
    def list_item(self, text: str, depth: int, *, anchor: str | None = None) -> str: ...

    @abstractmethod
    def details(self, summary: str, body: str | None, depth: int) -> str:
        """Collapsible block holding failure details, nested under a list item."""
        ...

    @abstractmethod
    def truncation_marker(self, max_length: int) -> str: ...

    def escape(self, text: str) -> str:
        return text

    def close_blocks(self, text: str) -> list[str]:
        """Lines that close blocks left open at the end of ``text``."""
        return []


# =============================================================================
# Markdown (GitHub flavored, with inline HTML)
# =============================================================================


class MarkdownFormat(ReportFormat):
    """GitHub flavored markdown with HTML anchors and <details> blocks."""

    name: FormatName = "markdown"

    _ICONS = {
        "passed": "✅",
        "success": "✅",
        "failed": "❌",
        "skipped": "⚪",
    }

    def __init__(self, base_url: str = "") -> None:
        self._base_url = base_url

    def icon(self, status: str) -> str:
        return self._ICONS.get(status, "⚪")

    def escape(self, text: str) -> str:
        return html.escape(fix_eol(text).replace("\n", " "), quote=False)

    def _anchor(self, text: str, anchor: str) -> str:
        anchor = html.escape(anchor)
        return f'<a id="{anchor}" href="{html.escape(self._base_url)}#{anchor}">{text}</a>'

    def heading(self, text: str, level: int, *, anchor: str | None = None) -> str:
        if anchor is not None:
            text = self._anchor(text, anchor)
        return f"{'#' * level} {text}"

    def link(self, text: str, anchor: str) -> str:
        return f'<a href="{html.escape(self._base_url)}#{html.escape(anchor)}">{text}</a>'

    def strong(self, text: str) -> str:
        return f"**{text}**"

    def table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        align: Sequence[Align],
    ) -> str:
        lines = [
            _md_row(headers),
            "|" + "|".join(":---" if a == "left" else "---:" for a in align) + "|",
        ]
        lines.extend(_md_row(row) for row in rows)
        return "\n".join(lines)

    def list_item(self, text: str, depth: int, *, anchor: str | None = None) -> str:
        if anchor is not None:
            text = self._anchor(text, anchor)
        return f"{'  ' * depth}- {text}"

    def details(self, summary: str, body: str | None, depth: int) -> str:
        prefix = "  " * depth
        lines = [f"<details><summary>{self.escape(summary)}</summary>", ""]
        if body:
            body = fix_eol(body).rstrip("\n")
            fence = _fence_for(body)
            lines.extend([fence, body, fence, ""])
        lines.append("</details>")
        return indent("\n".join(lines), prefix)

    def truncation_marker(self, max_length: int) -> str:
        return (
            f":warning: _Report exceeds the limit of {max_length} characters and was "
            "trimmed. Use `list-tests: failed` or `only-summary` to shorten it._"
        )

    def close_blocks(self, text: str) -> list[str]:
        fence: str | None = None
        open_details = 0
        for line in text.split("\n"):
            stripped = line.strip()
            if fence is not None:
                if stripped.startswith(fence) and not stripped.strip("`"):
                    fence = None
                continue
            if stripped.startswith("```"):
                run = _BACKTICK_RUN_RE.match(stripped)
                fence = run.group(0) if run else "```"
                continue
            open_details += stripped.count("<details>") - stripped.count("</details>")

        closing: list[str] = []
        if fence is not None:
            closing.append(fence)
        closing.extend(["</details>"] * max(open_details, 0))
        return closing


def _md_cell(text: str) -> str:
    return fix_eol(text).replace("\n", " ").replace("|", "\\|")


def _md_row(cells: Sequence[str]) -> str:
    return "|" + "|".join(_md_cell(c) for c in cells) + "|"


def _fence_for(body: str) -> str:
    longest = max((len(m.group(0)) for m in _BACKTICK_RUN_RE.finditer(body)), default=0)
    return "`" * max(3, longest + 1)


# =============================================================================
# Plain text
# =============================================================================


class PlainTextFormat(ReportFormat):
    """Markup-free text: no anchors, no collapsible blocks."""

    name: FormatName = "text"

    _ICONS = {
        "passed": "✓",
        "success": "✓",
        "failed": "✗",
        "skipped": "-",
    }

    def icon(self, status: str) -> str:
        return self._ICONS.get(status, "-")

    def escape(self, text: str) -> str:
        return fix_eol(text).replace("\n", " ")

    def heading(self, text: str, level: int, *, anchor: str | None = None) -> str:  # noqa: ARG002
        if level <= 2:
            underline = "=" if level == 1 else "-"
            return f"{text}\n{underline * len(text)}"
        return text

    def link(self, text: str, anchor: str) -> str:  # noqa: ARG002
        return text

    def strong(self, text: str) -> str:
        return text

    def table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        align: Sequence[Align],
    ) -> str:
        widths = [len(h) for h in headers]
        for row in rows:
            for i, cell in enumerate(row):
                widths[i] = max(widths[i], len(cell))

        def fmt(cells: Sequence[str]) -> str:
            parts = [
                cell.ljust(widths[i]) if align[i] == "left" else cell.rjust(widths[i])
                for i, cell in enumerate(cells)
            ]
            return "  ".join(parts).rstrip()

        lines = [fmt(headers), "  ".join("-" * w for w in widths)]
        lines.extend(fmt(row) for row in rows)
        return "\n".join(lines)

    def list_item(self, text: str, depth: int, *, anchor: str | None = None) -> str:  # noqa: ARG002
        return f"{'  ' * depth}{text}"

    def details(self, summary: str, body: str | None, depth: int) -> str:
        prefix = "  " * depth
        lines = [prefix + self.escape(summary)]
        if body:
            lines.append(indent(fix_eol(body).rstrip("\n"), prefix + "    "))
        return "\n".join(lines)

    def truncation_marker(self, max_length: int) -> str:
        return f"[report exceeds the limit of {max_length} characters and was trimmed]"


def get_format(name: FormatName, *, base_url: str = "") -> ReportFormat:
    """Create the ReportFormat for a format name."""
    if name == "markdown":
        return MarkdownFormat(base_url=base_url)
    if name == "text":
        return PlainTextFormat()
    raise ValueError(f"Unknown report format: {name}")
