"""Include/exclude glob filtering of files below a base directory.

Pattern syntax (Ant style, matched against POSIX paths relative to the base):
- ``*`` matches any run of characters within one path segment
- ``?`` matches exactly one character other than ``/``
- ``**`` as a whole segment matches zero or more segments
- a trailing ``/`` is shorthand for ``/**``

A path is selected when at least one include matches and no exclude does.
Matching is kept separate from directory traversal so that listings can be
filtered without touching the filesystem. Traversal only descends into the
literal directory prefixes of the includes (``target`` for ``target/*.exec``).
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from reactorcov.core.errors import ConfigError


class PathMatcher(Protocol):
    """Decides whether a relative POSIX path is selected."""

    def match(self, relative_path: str) -> bool: ...


def validate_pattern(pattern: str) -> None:
    """Raise ConfigError for patterns that can never select a relative path."""
    if not pattern or not pattern.strip():
        raise ConfigError.invalid_pattern(pattern, "pattern is empty")
    if "\\" in pattern:
        raise ConfigError.invalid_pattern(pattern, "use '/' as path separator")
    if pattern.startswith("/") or re.match(r"^[A-Za-z]:/", pattern):
        raise ConfigError.invalid_pattern(pattern, "pattern must be relative to the base directory")
    if ".." in pattern.split("/"):
        raise ConfigError.invalid_pattern(pattern, "'..' segments escape the base directory")


def _translate_segment(segment: str) -> str:
    parts: list[str] = []
    for ch in segment:
        if ch == "*":
            # Consecutive stars inside a segment behave like one
            if not parts or parts[-1] != "[^/]*":
                parts.append("[^/]*")
        elif ch == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(ch))
    return "".join(parts)


def translate(pattern: str) -> str:
    """Translate a glob pattern into an anchored-by-fullmatch regex."""
    if pattern.endswith("/"):
        pattern += "**"
    segments: list[str] = []
    for segment in pattern.split("/"):
        # Adjacent '**' segments match the same paths as one
        if segment == "**" and segments and segments[-1] == "**":
            continue
        segments.append(segment)
    regex = ""
    last = len(segments) - 1
    for i, segment in enumerate(segments):
        if segment == "**":
            if i != last:
                regex += "(?:.*/)?"
            elif i == 0:
                regex += ".*"
            else:
                # The previous segment is literal and ended with '/'
                regex = regex[:-1] + "(?:/.*)?"
            continue
        regex += _translate_segment(segment)
        if i != last:
            regex += "/"
    return regex


def literal_prefix(pattern: str) -> str:
    """Leading directory segments of ``pattern`` that contain no wildcard."""
    if pattern.endswith("/"):
        pattern += "**"
    prefix: list[str] = []
    for segment in pattern.split("/")[:-1]:
        if "*" in segment or "?" in segment:
            break
        prefix.append(segment)
    return "/".join(prefix)


class GlobMatcher:
    """PathMatcher for a single glob pattern."""

    __slots__ = ("pattern", "_regex")

    def __init__(self, pattern: str) -> None:
        validate_pattern(pattern)
        self.pattern = pattern
        self._regex = re.compile(translate(pattern))

    def match(self, relative_path: str) -> bool:
        return self._regex.fullmatch(relative_path) is not None

    def __repr__(self) -> str:
        return f"GlobMatcher({self.pattern!r})"


class FileFilter:
    """Selects files by include and exclude glob patterns.

    Excludes take precedence. An empty include list selects nothing.
    """

    def __init__(self, includes: Sequence[str], excludes: Sequence[str] = ()) -> None:
        self._includes: tuple[PathMatcher, ...] = tuple(GlobMatcher(p) for p in includes)
        self._excludes: tuple[PathMatcher, ...] = tuple(GlobMatcher(p) for p in excludes)
        self.includes: tuple[str, ...] = tuple(includes)
        self.excludes: tuple[str, ...] = tuple(excludes)

    def matches(self, relative_path: str) -> bool:
        if not any(m.match(relative_path) for m in self._includes):
            return False
        return not any(m.match(relative_path) for m in self._excludes)

    def filter(self, relative_paths: Iterable[str]) -> list[str]:
        """Apply the filter to an in-memory listing; sorted, without duplicates."""
        return sorted({p for p in relative_paths if self.matches(p)})

    def get_files(self, base_dir: Path) -> list[Path]:
        """Matching regular files below ``base_dir``, sorted by relative path.

        A base directory that does not exist (a module without build output)
        yields an empty list.
        """
        if not base_dir.is_dir():
            return []

        matched: list[tuple[str, Path]] = []
        for root in self._walk_roots(base_dir):
            for dirpath, _dirnames, filenames in root.walk():
                for name in filenames:
                    path = dirpath / name
                    rel = path.relative_to(base_dir).as_posix()
                    if self.matches(rel) and path.is_file():
                        matched.append((rel, path))

        matched.sort(key=lambda item: item[0])
        return [path for _, path in matched]

    def _walk_roots(self, base_dir: Path) -> list[Path]:
        """Directories that can hold a match: the includes' literal prefixes."""
        prefixes: set[str] = set()
        for pattern in self.includes:
            prefix = literal_prefix(pattern)
            if not prefix:
                return [base_dir]
            prefixes.add(prefix)

        kept: list[str] = []
        for prefix in sorted(prefixes):
            # Sorting puts a prefix before the ones nested below it
            if any(prefix.startswith(k + "/") for k in kept):
                continue
            kept.append(prefix)
        roots = [base_dir / p for p in kept]
        return [r for r in roots if r.is_dir() and not r.is_symlink()]

    def __repr__(self) -> str:
        return f"FileFilter(includes={list(self.includes)!r}, excludes={list(self.excludes)!r})"


@dataclass(frozen=True, slots=True)
class FilterSpec:
    """Immutable include/exclude pattern pair."""

    includes: tuple[str, ...]
    excludes: tuple[str, ...] = ()

    @classmethod
    def of(cls, includes: Iterable[str], excludes: Iterable[str] = ()) -> FilterSpec:
        return cls(tuple(includes), tuple(excludes))

    def build(self) -> FileFilter:
        """Compile the patterns; raises ConfigError for a malformed one."""
        return FileFilter(self.includes, self.excludes)
