"""Report tree, the accumulator-backed report visitor and output formatters."""

from reactorcov.report.formatters import (
    CSV_COLUMNS,
    CsvFormatter,
    FormatterRegistry,
    JsonFormatter,
    OutputSettings,
)
from reactorcov.report.tree import ClassReport, ModuleReport, ReportGroupNode, SourceFileReport
from reactorcov.report.visitor import ReportBuilder

__all__ = [
    "CSV_COLUMNS",
    "ClassReport",
    "CsvFormatter",
    "FormatterRegistry",
    "JsonFormatter",
    "ModuleReport",
    "OutputSettings",
    "ReportBuilder",
    "ReportGroupNode",
    "SourceFileReport",
]
