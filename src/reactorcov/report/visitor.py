"""Report visitor backed by a CoverageAccumulator.

For every source-contributing module the visitor walks the module's source
and class directories, keeps the files selected by the include/exclude
patterns (one list, matched relative to each root of either kind, so a
``*.java`` include leaves no classes) and pairs them with the accumulated
coverage: line data for sources, execution data for classes.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import structlog

from reactorcov.aggregate.filters import FileFilter
from reactorcov.core.errors import ReportCompositionError
from reactorcov.coverage.accumulator import CoverageAccumulator
from reactorcov.coverage.models import FileCoverage
from reactorcov.project.models import Module
from reactorcov.report.tree import ClassReport, ModuleReport, ReportGroupNode, SourceFileReport

log = structlog.get_logger(__name__)

ALL_FILES = ("**",)
CLASS_SUFFIX = ".class"


class ReportBuilder:
    """Concrete ReportVisitor producing a ReportGroupNode tree."""

    def __init__(self, accumulator: CoverageAccumulator) -> None:
        self._accumulator = accumulator
        self.roots: list[ReportGroupNode] = []

    def visit_group(self, title: str) -> ReportGroupNode:
        group = ReportGroupNode(name=title)
        self.roots.append(group)
        return group

    def process_project(
        self,
        group: ReportGroupNode,
        name: str,
        module: Module,
        includes: Sequence[str],
        excludes: Sequence[str],
        source_encoding: str,
    ) -> None:
        file_filter = FileFilter(includes or ALL_FILES, excludes)
        report = ModuleReport(name=name, module_id=module.id, source_encoding=source_encoding)

        for source_dir in module.source_dirs():
            for path in file_filter.get_files(source_dir):
                report.sources.append(
                    self._source_report(module, source_dir, path, source_encoding)
                )

        seen_classes: set[str] = set()
        for class_dir in module.class_dirs():
            for path in file_filter.get_files(class_dir):
                if path.suffix != CLASS_SUFFIX:
                    continue
                class_name = path.relative_to(class_dir).with_suffix("").as_posix()
                if class_name in seen_classes:
                    continue
                seen_classes.add(class_name)
                report.classes.append(
                    ClassReport(
                        name=class_name,
                        execution=self._accumulator.execution_data.get(class_name),
                    )
                )

        group.add(report)
        log.debug(
            "module_report_built",
            module=str(module.id),
            sources=len(report.sources),
            classes=len(report.classes),
        )

    def _source_report(
        self, module: Module, source_dir: Path, path: Path, encoding: str
    ) -> SourceFileReport:
        rel = path.relative_to(source_dir).as_posix()
        try:
            text = path.read_text(encoding=encoding)
        except (OSError, UnicodeDecodeError, LookupError) as e:
            raise ReportCompositionError.module_failed(
                str(module.id), f"cannot read source {path} as {encoding}: {e}"
            ) from e

        # Reports key files by source-root, module or absolute path depending on the tool
        candidates = [rel]
        if path.is_relative_to(module.base_dir):
            candidates.append(path.relative_to(module.base_dir).as_posix())
        candidates.append(path.as_posix())
        coverage = self._accumulator.coverage_for(*candidates)
        return SourceFileReport(
            path=rel,
            line_count=len(text.splitlines()),
            coverage=coverage if coverage is not None else FileCoverage(path=rel),
        )
