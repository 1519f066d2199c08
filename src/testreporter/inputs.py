"""Input acquisition: result files from the local file system, tracked files from git."""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

import pygit2

from testreporter.core.logging import get_logger

log = get_logger("inputs")

_SKIP_DIRS = frozenset({"node_modules"})


@dataclass(frozen=True, slots=True)
class InputFile:
    """Raw content of one result file.

    ``file_id`` is the path relative to the provider root (forward slashes),
    or the absolute path when the file lies outside the root.
    """

    file_id: str
    content: bytes


def split_patterns(path: str, *, replace_backslashes: bool = False) -> list[str]:
    """Split a comma separated pattern list; ``!`` marks an exclusion."""
    patterns = []
    for raw in path.split(","):
        pattern = raw.strip()
        if not pattern:
            continue
        if replace_backslashes:
            pattern = pattern.replace("\\", "/")
        patterns.append(pattern)
    return patterns


class LocalFileProvider:
    """Collects result files matching glob patterns below a root directory.

    Files inside ``node_modules`` are never collected. Matches are returned
    in sorted path order so runs over the same tree are reproducible.
    """

    def __init__(self, name: str, patterns: list[str], root: Path | str | None = None) -> None:
        self.name = name
        self.patterns = patterns
        self.root = Path(root) if root is not None else Path.cwd()

    def list_files(self) -> list[Path]:
        include = [p for p in self.patterns if not p.startswith("!")]
        exclude = [p[1:] for p in self.patterns if p.startswith("!")]

        found: set[Path] = set()
        for pattern in include:
            for path in self._glob(pattern):
                if not path.is_file():
                    continue
                if _SKIP_DIRS.intersection(path.parts):
                    continue
                file_id = self._file_id(path)
                if any(fnmatch.fnmatchcase(file_id, ex) for ex in exclude):
                    continue
                found.add(path)

        files = sorted(found, key=self._file_id)
        log.debug("files_matched", name=self.name, patterns=self.patterns, count=len(files))
        return files

    def load(self) -> dict[str, list[InputFile]]:
        """Read all matching files: ``{name: [InputFile, ...]}``."""
        files = [InputFile(self._file_id(p), p.read_bytes()) for p in self.list_files()]
        return {self.name: files}

    def _glob(self, pattern: str) -> list[Path]:
        path = Path(pattern)
        if path.is_absolute():
            relative = str(path.relative_to(path.anchor))
            if not relative or relative == ".":
                return []
            return list(Path(path.anchor).glob(relative))
        return list(self.root.glob(pattern))

    def _file_id(self, path: Path) -> str:
        try:
            return PurePosixPath(path.resolve().relative_to(self.root.resolve())).as_posix()
        except ValueError:
            return path.resolve().as_posix()


def list_tracked_files(root: Path | str) -> list[str]:
    """Paths in the git index, relative to ``root``.

    Returns an empty list when ``root`` is not inside a git repository; the
    resolver then leaves every location unresolved.
    """
    root = Path(root).resolve()
    repo_path = pygit2.discover_repository(str(root))
    if repo_path is None:
        log.info("not_a_repository", root=str(root))
        return []

    try:
        repo = pygit2.Repository(repo_path)
    except pygit2.GitError as e:
        log.warning("repository_open_failed", root=str(root), error=str(e))
        return []
    if repo.workdir is None:
        return []

    workdir = Path(repo.workdir).resolve()
    try:
        prefix = root.relative_to(workdir).as_posix()
    except ValueError:
        return []
    prefix = "" if prefix == "." else prefix + "/"

    files = [
        entry.path[len(prefix) :]
        for entry in repo.index
        if entry.path.startswith(prefix)
    ]
    log.debug("tracked_files", root=str(root), count=len(files))
    return files
