"""Report tree: a named group of per-module sub-reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from reactorcov.coverage.execdata import ClassExecution
from reactorcov.coverage.models import CoverageSummary, FileCoverage
from reactorcov.project.models import ModuleId


@dataclass(slots=True)
class SourceFileReport:
    """A source file of a module with the coverage recorded for it."""

    path: str  # relative to its source root
    line_count: int
    coverage: FileCoverage

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "line_count": self.line_count,
            "lines_found": self.coverage.lines_found,
            "lines_hit": self.coverage.lines_hit,
            "missed_lines": self.coverage.uncovered_lines,
            "branches_found": self.coverage.branches_found,
            "branches_hit": self.coverage.branches_hit,
        }


@dataclass(slots=True)
class ClassReport:
    """A compiled class of a module and its execution data, if any was recorded."""

    name: str  # VM name, e.g. com/example/Foo
    execution: ClassExecution | None = None

    @property
    def executed(self) -> bool:
        return self.execution is not None and self.execution.probes_hit > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "executed": self.executed,
            "probes_found": self.execution.probes_found if self.execution else None,
            "probes_hit": self.execution.probes_hit if self.execution else None,
        }


@dataclass(slots=True)
class ModuleReport:
    """Sub-report of one source-contributing module."""

    name: str
    module_id: ModuleId
    source_encoding: str
    sources: list[SourceFileReport] = field(default_factory=list)
    classes: list[ClassReport] = field(default_factory=list)

    @property
    def summary(self) -> CoverageSummary:
        return CoverageSummary.of(s.coverage for s in self.sources)

    @property
    def classes_executed(self) -> int:
        return sum(1 for c in self.classes if c.executed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "module": str(self.module_id),
            "summary": self.summary.to_dict(),
            "classes_found": len(self.classes),
            "classes_executed": self.classes_executed,
            "sources": [s.to_dict() for s in self.sources],
            "classes": [c.to_dict() for c in self.classes],
        }


@dataclass(slots=True)
class ReportGroupNode:
    """Named aggregation group; children keep insertion order."""

    name: str
    children: list[ModuleReport] = field(default_factory=list)

    def add(self, child: ModuleReport) -> None:
        self.children.append(child)

    @property
    def summary(self) -> CoverageSummary:
        total = CoverageSummary()
        for child in self.children:
            total = total + child.summary
        return total

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "summary": self.summary.to_dict(),
            "modules": [child.to_dict() for child in self.children],
        }
