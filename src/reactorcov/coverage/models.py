"""Coverage data model.

File-centric: every supported format is converted into per-file line,
branch and method counters keyed by the file's source-root-relative path
(``com/example/Foo.java`` for JaCoCo, the recorded path for LCOV).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field


class CoverageParseError(Exception):
    """Error parsing coverage data."""


def _rate(hit: int, found: int) -> float:
    return hit / found if found else 0.0


@dataclass(frozen=True, slots=True)
class BranchCoverage:
    """One outcome of a branch point at a line."""

    line: int
    block_id: int
    branch_id: int
    hits: int


@dataclass(frozen=True, slots=True)
class FunctionCoverage:
    """Method/function coverage."""

    name: str
    start_line: int
    hits: int


@dataclass(slots=True)
class FileCoverage:
    """Coverage data for a single source file.

    ``lines`` maps 1-based line numbers to hit counts.
    """

    path: str
    lines: dict[int, int] = field(default_factory=dict)
    branches: list[BranchCoverage] = field(default_factory=list)
    functions: dict[str, FunctionCoverage] = field(default_factory=dict)

    @property
    def lines_found(self) -> int:
        return len(self.lines)

    @property
    def lines_hit(self) -> int:
        return sum(1 for hits in self.lines.values() if hits > 0)

    @property
    def line_rate(self) -> float:
        return _rate(self.lines_hit, self.lines_found)

    @property
    def uncovered_lines(self) -> list[int]:
        """Sorted line numbers with zero hits."""
        return sorted(line for line, hits in self.lines.items() if hits == 0)

    @property
    def branches_found(self) -> int:
        return len(self.branches)

    @property
    def branches_hit(self) -> int:
        return sum(1 for b in self.branches if b.hits > 0)

    @property
    def functions_found(self) -> int:
        return len(self.functions)

    @property
    def functions_hit(self) -> int:
        return sum(1 for f in self.functions.values() if f.hits > 0)


@dataclass(frozen=True, slots=True)
class CoverageSummary:
    """Aggregate counters over a set of files."""

    lines_found: int = 0
    lines_hit: int = 0
    branches_found: int = 0
    branches_hit: int = 0
    functions_found: int = 0
    functions_hit: int = 0

    @property
    def line_rate(self) -> float:
        return _rate(self.lines_hit, self.lines_found)

    @property
    def branch_rate(self) -> float:
        return _rate(self.branches_hit, self.branches_found)

    @property
    def function_rate(self) -> float:
        return _rate(self.functions_hit, self.functions_found)

    @classmethod
    def of(cls, files: Iterable[FileCoverage]) -> CoverageSummary:
        files = list(files)
        return cls(
            lines_found=sum(f.lines_found for f in files),
            lines_hit=sum(f.lines_hit for f in files),
            branches_found=sum(f.branches_found for f in files),
            branches_hit=sum(f.branches_hit for f in files),
            functions_found=sum(f.functions_found for f in files),
            functions_hit=sum(f.functions_hit for f in files),
        )

    def __add__(self, other: CoverageSummary) -> CoverageSummary:
        return CoverageSummary(
            lines_found=self.lines_found + other.lines_found,
            lines_hit=self.lines_hit + other.lines_hit,
            branches_found=self.branches_found + other.branches_found,
            branches_hit=self.branches_hit + other.branches_hit,
            functions_found=self.functions_found + other.functions_found,
            functions_hit=self.functions_hit + other.functions_hit,
        )

    def to_dict(self) -> dict[str, int | float]:
        return {
            "lines_found": self.lines_found,
            "lines_hit": self.lines_hit,
            "line_rate": round(self.line_rate, 4),
            "branches_found": self.branches_found,
            "branches_hit": self.branches_hit,
            "branch_rate": round(self.branch_rate, 4),
            "functions_found": self.functions_found,
            "functions_hit": self.functions_hit,
            "function_rate": round(self.function_rate, 4),
        }


@dataclass(slots=True)
class CoverageReport:
    """Coverage from one or more sources, keyed by file path."""

    source_format: str  # "jacoco", "lcov" or "merged"
    files: dict[str, FileCoverage] = field(default_factory=dict)

    @property
    def summary(self) -> CoverageSummary:
        return CoverageSummary.of(self.files.values())
