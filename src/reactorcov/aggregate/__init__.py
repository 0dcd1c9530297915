"""Coverage aggregation across reactor modules.

Usage:
    from reactorcov.aggregate import aggregate
    from reactorcov.coverage import CoverageAccumulator
    from reactorcov.report import FormatterRegistry, ReportBuilder

    accumulator = CoverageAccumulator()
    formatters = FormatterRegistry()
    group = aggregate(
        config.report,
        load_maven_reactor(root, project="coverage-report"),
        accumulator,
        ReportBuilder(accumulator),
        formatters=formatters,
    )
    formatters.render(group)
"""

from reactorcov.aggregate.collaborators import DataLoader, FormatterRegistrar, ReportVisitor
from reactorcov.aggregate.filters import (
    FileFilter,
    FilterSpec,
    GlobMatcher,
    PathMatcher,
    translate,
)
from reactorcov.aggregate.pipeline import (
    DATA_SCOPES,
    REPORT_SCOPES,
    aggregate,
    check_output_directory,
)
from reactorcov.aggregate.scope import find_dependencies, unique_modules

__all__ = [
    "DATA_SCOPES",
    "REPORT_SCOPES",
    "DataLoader",
    "FileFilter",
    "FilterSpec",
    "FormatterRegistrar",
    "GlobMatcher",
    "PathMatcher",
    "ReportVisitor",
    "aggregate",
    "check_output_directory",
    "find_dependencies",
    "translate",
    "unique_modules",
]
