"""Text formatting utilities shared by the renderers.

Design principles:
- Durations are seconds internally and rendered as "ms" or "s"
- Truncation is explicit (ellipsis), never silent
- Line endings are normalized before text is embedded anywhere
"""

from __future__ import annotations

import math
import re

_EOL_RE = re.compile(r"\r\n?")


def format_duration(seconds: float) -> str:
    """Format a duration in seconds for report tables.

    Examples:
        0.0123 -> "12ms"
        0.9996 -> "1000ms"
        12.4 -> "12s"
    """
    if seconds < 0:
        raise ValueError("Duration must be non-negative")

    if seconds > 1:
        return f"{_round_half_up(seconds)}s"
    return f"{_round_half_up(seconds * 1000)}ms"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return grammatically correct singular/plural form.

    Args:
        count: The number of items
        singular: Singular form (e.g., "test")
        plural: Plural form (default: singular + "s")

    Returns:
        Formatted string like "1 test" or "3 tests"
    """
    if plural is None:
        plural = singular + "s"
    word = singular if count == 1 else plural
    return f"{count} {word}"


def ellipsis(text: str, max_len: int, suffix: str = "...") -> str:
    """Cut text to max_len characters, marking the cut with suffix."""
    if len(text) <= max_len:
        return text
    cut_at = max_len - len(suffix)
    if cut_at <= 0:
        return suffix[:max_len]
    return text[:cut_at] + suffix


def fix_eol(text: str | None) -> str:
    """Normalize CRLF/CR line endings to LF."""
    if not text:
        return ""
    return _EOL_RE.sub("\n", text)


def first_non_empty_line(text: str | None) -> str | None:
    """Return the first line with non-whitespace content, stripped."""
    if not text:
        return None
    for line in fix_eol(text).split("\n"):
        if line.strip():
            return line.strip()
    return None


def indent(text: str, prefix: str) -> str:
    """Prefix every line of text (including empty ones)."""
    return "\n".join(prefix + line for line in fix_eol(text).split("\n"))
