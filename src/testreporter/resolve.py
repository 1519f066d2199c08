"""File/line resolution against the set of tracked repository files.

A raw location is ``<target>[:<line>[:<column>]]`` where the target is either
a file path (absolute, relative, ``file://`` URL) taken from a stack frame,
or a dotted class/module path such as ``com.example.FooTest`` or
``tests.test_api.TestLogin``. Resolution only ever returns paths from the
tracked list; anything else is unresolved (``None``).

Matching policy:
- exact tracked path wins
- otherwise the candidate whose trailing path segments align longest with
  the target's segments
- ties go to the candidate listed first in the tracked files
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

from testreporter.core.logging import get_logger

log = get_logger("resolve")

_LOCATION_RE = re.compile(r"^(?P<target>.*?)(?::(?P<line>\d+))?(?::(?P<column>\d+))?$", re.DOTALL)
_FILE_URL_PREFIX = "file://"


@dataclass(frozen=True, slots=True)
class ResolvedLocation:
    """A repository-relative file position (1-based line)."""

    path: str
    line: int = 1
    column: int | None = None


# =============================================================================
# Path helpers
# =============================================================================


def normalize_file_path(path: str) -> str:
    """Normalize separators and strip URL / ``./`` prefixes."""
    path = path.strip()
    if path.startswith(_FILE_URL_PREFIX):
        path = path[len(_FILE_URL_PREFIX) :]
        # file:///C:/x -> C:/x, file:///home/x -> /home/x
        if re.match(r"^/[A-Za-z]:", path):
            path = path[1:]
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path


def normalize_dir_path(path: str, add_trailing_slash: bool) -> str:
    """Normalize a directory path, optionally ensuring a trailing slash."""
    path = normalize_file_path(path)
    if add_trailing_slash and path and not path.endswith("/"):
        path += "/"
    return path


def get_base_path(path: str, tracked_files: Iterable[str]) -> str | None:
    """Infer the directory that tracked paths are relative to.

    Returns the prefix of ``path`` left over after removing the longest
    tracked file it ends with, ``""`` when ``path`` is itself tracked, or
    ``None`` when no tracked file is a suffix of ``path``.
    """
    best = ""
    for file in tracked_files:
        if path == file:
            return ""
        if path.endswith("/" + file) and len(file) > len(best):
            best = file
    if not best:
        return None
    return path[: len(path) - len(best)]


def make_relative(
    path: str,
    work_dir: str | None = None,
    tracked_files: Iterable[str] = (),
) -> str:
    """Make a normalized path relative to work_dir (or the inferred base)."""
    path = normalize_file_path(path)
    base = normalize_dir_path(work_dir, True) if work_dir else get_base_path(path, tracked_files)
    if base and path.startswith(base):
        return path[len(base) :]
    return path


def _segments(path: str) -> list[str]:
    return [s for s in path.split("/") if s and s != "."]


def _common_suffix(a: Sequence[str], b: Sequence[str]) -> int:
    n = 0
    for x, y in zip(reversed(a), reversed(b), strict=False):
        if x != y:
            break
        n += 1
    return n


def _stem(filename: str) -> str:
    return filename.split(".", 1)[0]


# =============================================================================
# Tracked files
# =============================================================================


class TrackedFiles:
    """Tracked repository paths indexed for basename/stem lookups.

    Listing order is preserved and used as the final tie-break.
    """

    def __init__(self, files: Iterable[str] = ()) -> None:
        self._files: tuple[str, ...] = tuple(normalize_file_path(f) for f in files if f)
        self._set = frozenset(self._files)
        self._by_name: dict[str, list[str]] = {}
        self._by_stem: dict[str, list[str]] = {}
        for file in self._files:
            name = file.rsplit("/", 1)[-1]
            self._by_name.setdefault(name, []).append(file)
            self._by_stem.setdefault(_stem(name), []).append(file)

    @classmethod
    def coerce(cls, files: TrackedFiles | Iterable[str] | None) -> TrackedFiles:
        if isinstance(files, TrackedFiles):
            return files
        return cls(files or ())

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[str]:
        return iter(self._files)

    def __contains__(self, path: object) -> bool:
        return path in self._set

    def __bool__(self) -> bool:
        return bool(self._files)

    def with_name(self, name: str) -> list[str]:
        """Tracked files whose basename equals name, in listing order."""
        return self._by_name.get(name, [])

    def with_stem(self, stem: str) -> list[str]:
        """Tracked files whose basename up to the first dot equals stem."""
        return self._by_stem.get(stem, [])


# =============================================================================
# Resolution
# =============================================================================


def _best(candidates: list[str], segments: Sequence[str], *, offset: int = 0) -> tuple[str, int]:
    """Pick the candidate with the longest aligned segment suffix (first wins ties)."""
    best_path = candidates[0]
    best_score = -1
    for candidate in candidates:
        cand_segments = _segments(candidate)
        if offset:
            cand_segments = cand_segments[:-offset]
        score = _common_suffix(cand_segments, segments)
        if score > best_score:
            best_path, best_score = candidate, score
    return best_path, best_score


def _resolve_file(target: str, tracked: TrackedFiles, work_dir: str | None) -> str | None:
    path = make_relative(target, work_dir, tracked)
    if path in tracked:
        return path

    segments = _segments(path)
    if not segments:
        return None
    candidates = []
    for candidate in tracked.with_name(segments[-1]):
        cand_segments = _segments(candidate)
        shared = _common_suffix(cand_segments, segments)
        # The whole of the shorter path has to line up
        if shared >= min(len(cand_segments), len(segments)):
            candidates.append(candidate)
    if not candidates:
        return None
    best, _ = _best(candidates, segments)
    return best


def _resolve_dotted(target: str, tracked: TrackedFiles) -> str | None:
    # Foo$Inner / Foo$1 refer to the file of the outer class
    segments = [s.split("$", 1)[0] for s in target.split(".") if s]
    for i in range(len(segments), 0, -1):
        candidates = tracked.with_stem(segments[i - 1])
        if not candidates:
            continue
        package = segments[: i - 1]
        best, score = _best(candidates, package, offset=1)
        # A package has to line up with the directories of the file
        if not package or score > 0:
            return best
    return None


def _is_file_target(target: str, tracked: TrackedFiles) -> bool:
    return (
        "/" in target
        or "\\" in target
        or target.startswith(_FILE_URL_PREFIX)
        or normalize_file_path(target) in tracked
    )


def parse_location(raw_location: str) -> tuple[str, int | None, int | None]:
    """Split ``target[:line[:column]]`` into its parts."""
    match = _LOCATION_RE.match(raw_location.strip())
    if match is None:
        return raw_location.strip(), None, None
    line = match.group("line")
    column = match.group("column")
    return (
        match.group("target"),
        int(line) if line else None,
        int(column) if column else None,
    )


def format_location(target: str, line: int | None = None, column: int | None = None) -> str:
    """Inverse of parse_location."""
    text = target
    if line is not None:
        text += f":{line}"
        if column is not None:
            text += f":{column}"
    return text


def resolve(
    raw_location: str | None,
    tracked_files: TrackedFiles | Iterable[str] | None,
    *,
    work_dir: str | None = None,
) -> ResolvedLocation | None:
    """Map a raw location to a tracked file, or None when nothing matches.

    Args:
        raw_location: ``<target>[:<line>[:<column>]]``; target is a file path
            or a dotted class/module path.
        tracked_files: Repository-relative paths known to exist.
        work_dir: Directory absolute stack paths are relative to. When not
            given it is inferred from the tracked files.

    Returns:
        ResolvedLocation with line 1 when no line is known, or None.
    """
    if not raw_location:
        return None
    tracked = TrackedFiles.coerce(tracked_files)
    if not tracked:
        return None

    target, line, column = parse_location(raw_location)
    if "::" in target:
        # pytest node ids: tests/test_x.py::TestA::test_b
        target = target.split("::", 1)[0]
    if not target:
        return None

    if _is_file_target(target, tracked):
        path = _resolve_file(target, tracked, work_dir)
    else:
        path = _resolve_dotted(target, tracked)

    if path is None:
        log.debug("location_unresolved", location=raw_location)
        return None
    return ResolvedLocation(path=path, line=line if line and line > 0 else 1, column=column)


def resolve_first(
    raw_locations: Iterable[str],
    tracked_files: TrackedFiles | Iterable[str] | None,
    *,
    work_dir: str | None = None,
) -> tuple[str, ResolvedLocation] | None:
    """Resolve the first location (e.g. stack frame) that maps to a tracked file."""
    tracked = TrackedFiles.coerce(tracked_files)
    if not tracked:
        return None
    for raw in raw_locations:
        resolved = resolve(raw, tracked, work_dir=work_dir)
        if resolved is not None:
            return raw, resolved
    return None
