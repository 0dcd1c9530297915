"""Coverage parser protocol."""

from pathlib import Path
from typing import Protocol

from reactorcov.coverage.models import CoverageReport


class CoverageParser(Protocol):
    """Converts one report format into the CoverageReport model."""

    @property
    def format_id(self) -> str:
        """Format identifier (e.g., 'jacoco', 'lcov')."""
        ...

    def can_parse(self, path: Path) -> bool:
        """Check by extension and content sniffing whether ``path`` is this format."""
        ...

    def parse(self, path: Path) -> CoverageReport:
        """Parse a coverage file.

        Raises:
            CoverageParseError: The content is not valid for this format.
            OSError: The file cannot be read.
        """
        ...
