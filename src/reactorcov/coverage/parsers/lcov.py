"""LCOV tracefile parser.

Records used::

    SF:<source file>
    FN:<line>,<name>
    FNDA:<hits>,<name>
    DA:<line>,<hits>[,<checksum>]
    BRDA:<line>,<block>,<branch>,<taken or ->
    end_of_record

Summary records (LF, LH, BRF, ...) are recomputed from the data and ignored.
"""

from pathlib import Path

from reactorcov.coverage.models import (
    BranchCoverage,
    CoverageParseError,
    CoverageReport,
    FileCoverage,
    FunctionCoverage,
)

LCOV_SUFFIXES = (".info", ".lcov")


def _hits(value: str) -> int:
    return 0 if value == "-" else int(value)


class LcovParser:
    """Parser for LCOV tracefiles."""

    @property
    def format_id(self) -> str:
        return "lcov"

    def can_parse(self, path: Path) -> bool:
        if not path.is_file():
            return False
        if path.suffix in LCOV_SUFFIXES:
            return True
        try:
            with path.open(encoding="utf-8") as f:
                for raw in f:
                    line = raw.strip()
                    if not line or line.startswith("#"):
                        continue
                    return line.startswith(("TN:", "SF:"))
        except (OSError, UnicodeDecodeError):
            return False
        return False

    def parse(self, path: Path) -> CoverageReport:
        try:
            content = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise CoverageParseError(f"LCOV file is not UTF-8 text: {e}") from e

        files: dict[str, FileCoverage] = {}
        current: FileCoverage | None = None
        fn_lines: dict[str, int] = {}

        for lineno, raw in enumerate(content.splitlines(), start=1):
            line = raw.strip()
            if not line:
                continue
            tag, _, value = line.partition(":")
            try:
                if tag == "SF":
                    current = files.setdefault(value, FileCoverage(path=value))
                    fn_lines = {}
                elif line == "end_of_record":
                    current = None
                elif current is None:
                    # TN and anything outside a record
                    continue
                elif tag == "DA":
                    nr, hits = value.split(",")[:2]
                    current.lines[int(nr)] = max(current.lines.get(int(nr), 0), _hits(hits))
                elif tag == "BRDA":
                    nr, block, branch, taken = value.split(",")[:4]
                    current.branches.append(
                        BranchCoverage(
                            line=int(nr),
                            block_id=int(block),
                            branch_id=int(branch),
                            hits=_hits(taken),
                        )
                    )
                elif tag == "FN":
                    nr, name = value.split(",", 1)
                    fn_lines[name] = int(nr)
                elif tag == "FNDA":
                    hits, name = value.split(",", 1)
                    current.functions[name] = FunctionCoverage(
                        name=name, start_line=fn_lines.get(name, 0), hits=int(hits)
                    )
            except ValueError as e:
                raise CoverageParseError(
                    f"{path}:{lineno}: malformed {tag} record: {line!r}"
                ) from e

        return CoverageReport(source_format="lcov", files=files)
