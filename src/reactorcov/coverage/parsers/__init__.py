"""Coverage report parser registry and auto-detection."""

from collections.abc import Sequence
from pathlib import Path

from reactorcov.coverage.models import CoverageParseError, CoverageReport

from .base import CoverageParser
from .jacoco import JacocoParser
from .lcov import LcovParser

# Detection order: specific XML first, LCOV text last
PARSER_REGISTRY: Sequence[CoverageParser] = (
    JacocoParser(),
    LcovParser(),
)

PARSER_BY_FORMAT: dict[str, CoverageParser] = {p.format_id: p for p in PARSER_REGISTRY}

__all__ = [
    "PARSER_REGISTRY",
    "PARSER_BY_FORMAT",
    "CoverageParser",
    "JacocoParser",
    "LcovParser",
    "detect_parser",
    "parse_artifact",
]


def detect_parser(path: Path) -> CoverageParser | None:
    """First registered parser that claims ``path``, or None."""
    for parser in PARSER_REGISTRY:
        if parser.can_parse(path):
            return parser
    return None


def parse_artifact(path: Path, *, format_id: str | None = None) -> CoverageReport:
    """Parse a coverage report, auto-detecting its format unless ``format_id`` is given.

    Raises:
        CoverageParseError: Unknown format or invalid content.
        OSError: The file cannot be read.
    """
    if format_id:
        parser = PARSER_BY_FORMAT.get(format_id)
        if parser is None:
            valid = ", ".join(sorted(PARSER_BY_FORMAT))
            raise CoverageParseError(
                f"Unknown coverage format: {format_id!r}. Valid formats: {valid}"
            )
    else:
        parser = detect_parser(path)
        if parser is None:
            raise CoverageParseError(
                f"Could not detect coverage format for: {path}. Supported formats: jacoco exec, "
                + ", ".join(sorted(PARSER_BY_FORMAT))
            )
    return parser.parse(path)
