"""Session-wide coverage accumulator.

The accumulator is the DataLoader of an aggregation run: every matched
coverage-data file is parsed and merged into it, then the report visitor
reads from it. JaCoCo ``.exec`` files go to the execution data store; JaCoCo
XML and LCOV reports are merged into the line-level report.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from reactorcov.core.errors import DataLoadError
from reactorcov.coverage.execdata import ExecutionDataStore, is_exec_file, read_exec_file
from reactorcov.coverage.merge import merge
from reactorcov.coverage.models import CoverageParseError, CoverageReport, FileCoverage
from reactorcov.coverage.parsers import parse_artifact

log = structlog.get_logger(__name__)


class CoverageAccumulator:
    """Merges coverage-data files loaded during one aggregation run."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        """Forget everything loaded so far."""
        self.report = CoverageReport(source_format="merged")
        self.execution_data = ExecutionDataStore()
        self.loaded_files: list[Path] = []

    def load_execution_data(self, path: Path) -> None:
        """Parse ``path`` and merge it into the accumulator.

        Raises:
            DataLoadError: The file is missing, unreadable or not a supported format.
        """
        if not path.is_file():
            raise DataLoadError.unreadable(str(path), "file does not exist")
        try:
            if path.suffix == ".exec" or is_exec_file(path):
                store = read_exec_file(path)
                self.execution_data.update(store)
                log.debug("exec_file_loaded", path=str(path), classes=len(store.classes))
            else:
                report = parse_artifact(path)
                self.report = merge(self.report, report)
                log.debug(
                    "coverage_report_loaded",
                    path=str(path),
                    format=report.source_format,
                    files=len(report.files),
                )
        except CoverageParseError as e:
            raise DataLoadError.unparseable(str(path), str(e)) from e
        except OSError as e:
            raise DataLoadError.unreadable(str(path), e.strerror or str(e)) from e
        self.loaded_files.append(path)

    def coverage_for(self, *candidates: str) -> FileCoverage | None:
        """Line coverage recorded under the first candidate path present."""
        for candidate in candidates:
            fc = self.report.files.get(candidate)
            if fc is not None:
                return fc
        return None
