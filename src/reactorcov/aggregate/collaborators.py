"""Protocols for the collaborators the aggregation pipeline drives.

The pipeline never parses coverage data or renders reports itself; it feeds
files to a DataLoader, asks a ReportVisitor to build module sub-reports and
hands rendering settings to a FormatterRegistrar. Concrete implementations
live in reactorcov.coverage and reactorcov.report.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from reactorcov.project.models import Module
    from reactorcov.report.tree import ReportGroupNode


class DataLoader(Protocol):
    """Merges coverage-data files into a session-wide accumulator."""

    def load_execution_data(self, path: Path) -> None:
        """Load one file.

        Raises:
            DataLoadError: The file cannot be read or parsed.
        """
        ...


class ReportVisitor(Protocol):
    """Builds the report tree."""

    def visit_group(self, title: str) -> ReportGroupNode:
        """Create a new, empty group node."""
        ...

    def process_project(
        self,
        group: ReportGroupNode,
        name: str,
        module: Module,
        includes: Sequence[str],
        excludes: Sequence[str],
        source_encoding: str,
    ) -> None:
        """Append the sub-report of ``module`` to ``group``.

        Raises:
            ReportCompositionError: Sources or coverage of the module cannot be processed.
        """
        ...


class FormatterRegistrar(Protocol):
    """Configures output renderers; opaque to the pipeline."""

    def add_all_formatters(
        self,
        output_directory: Path,
        encoding: str,
        footer: str,
        locale: str,
    ) -> None: ...
