"""Report formatters.

The registry receives the output settings before composition starts and
writes its files only once a complete group node is handed to ``render``,
so a failed aggregation leaves no partial report behind.

Outputs:
- index.json: title, footer, locale, group summary, per-module details
- index.csv: one row per source file
"""

from __future__ import annotations

import csv
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import structlog

from reactorcov.report.tree import ReportGroupNode

log = structlog.get_logger(__name__)

CSV_COLUMNS = (
    "GROUP",
    "MODULE",
    "FILE",
    "LINES_MISSED",
    "LINES_COVERED",
    "BRANCH_MISSED",
    "BRANCH_COVERED",
)


@dataclass(frozen=True, slots=True)
class OutputSettings:
    output_directory: Path
    encoding: str
    footer: str
    locale: str


class Formatter(Protocol):
    def write(self, group: ReportGroupNode, settings: OutputSettings) -> Path: ...


class JsonFormatter:
    file_name = "index.json"

    def write(self, group: ReportGroupNode, settings: OutputSettings) -> Path:
        payload: dict[str, Any] = {
            "title": group.name,
            "footer": settings.footer,
            "locale": settings.locale,
            **group.to_dict(),
        }
        path = settings.output_directory / self.file_name
        path.write_text(json.dumps(payload, indent=2), encoding=settings.encoding)
        return path


class CsvFormatter:
    file_name = "index.csv"

    def write(self, group: ReportGroupNode, settings: OutputSettings) -> Path:
        path = settings.output_directory / self.file_name
        with path.open("w", encoding=settings.encoding, newline="") as f:
            writer = csv.writer(f)
            writer.writerow(CSV_COLUMNS)
            for module in group.children:
                for source in module.sources:
                    cov = source.coverage
                    writer.writerow(
                        (
                            group.name,
                            module.name,
                            source.path,
                            cov.lines_found - cov.lines_hit,
                            cov.lines_hit,
                            cov.branches_found - cov.branches_hit,
                            cov.branches_hit,
                        )
                    )
        return path


class FormatterRegistry:
    """Concrete FormatterRegistrar writing JSON and CSV."""

    def __init__(self) -> None:
        self.settings: OutputSettings | None = None
        self.formatters: list[Formatter] = []

    def add_all_formatters(
        self,
        output_directory: Path,
        encoding: str,
        footer: str,
        locale: str,
    ) -> None:
        self.settings = OutputSettings(
            output_directory=output_directory,
            encoding=encoding,
            footer=footer,
            locale=locale,
        )
        self.formatters = [JsonFormatter(), CsvFormatter()]

    def render(self, group: ReportGroupNode) -> list[Path]:
        """Write every registered format; returns the written files."""
        if self.settings is None:
            raise RuntimeError("add_all_formatters() must be called before render()")
        self.settings.output_directory.mkdir(parents=True, exist_ok=True)
        written = [formatter.write(group, self.settings) for formatter in self.formatters]
        log.info(
            "report_written",
            directory=str(self.settings.output_directory),
            files=len(written),
        )
        return written
