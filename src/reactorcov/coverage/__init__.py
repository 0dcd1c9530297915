"""Coverage-data loading: models, parsers, max-hit merging and the accumulator.

Usage:
    from reactorcov.coverage import CoverageAccumulator

    accumulator = CoverageAccumulator()
    accumulator.load_execution_data(Path("app/target/jacoco.exec"))
    accumulator.load_execution_data(Path("app/target/site/jacoco/jacoco.xml"))

Supported inputs:
    - JaCoCo execution data (*.exec, format version 0x1007)
    - JaCoCo XML reports
    - LCOV tracefiles
"""

from reactorcov.coverage.accumulator import CoverageAccumulator
from reactorcov.coverage.execdata import (
    ClassExecution,
    ExecutionDataStore,
    SessionInfo,
    is_exec_file,
    read_exec_file,
)
from reactorcov.coverage.merge import merge, merge_file_coverage, merge_reports
from reactorcov.coverage.models import (
    BranchCoverage,
    CoverageParseError,
    CoverageReport,
    CoverageSummary,
    FileCoverage,
    FunctionCoverage,
)
from reactorcov.coverage.parsers import (
    PARSER_BY_FORMAT,
    PARSER_REGISTRY,
    CoverageParser,
    detect_parser,
    parse_artifact,
)

__all__ = [
    # Accumulator
    "CoverageAccumulator",
    # Execution data
    "ClassExecution",
    "ExecutionDataStore",
    "SessionInfo",
    "is_exec_file",
    "read_exec_file",
    # Models
    "BranchCoverage",
    "CoverageParseError",
    "CoverageReport",
    "CoverageSummary",
    "FileCoverage",
    "FunctionCoverage",
    # Parsers
    "CoverageParser",
    "PARSER_BY_FORMAT",
    "PARSER_REGISTRY",
    "detect_parser",
    "parse_artifact",
    # Merge
    "merge",
    "merge_file_coverage",
    "merge_reports",
]
