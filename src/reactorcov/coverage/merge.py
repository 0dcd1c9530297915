"""Coverage merging with max-hit semantics.

Data files from several modules (unit tests in one module, integration
tests in another) often describe the same classes. Merging keeps, per line,
branch outcome and method, the highest hit count seen, so the result means
"covered by any run".
"""

from collections.abc import Iterable

from reactorcov.coverage.models import (
    BranchCoverage,
    CoverageReport,
    FileCoverage,
    FunctionCoverage,
)


def merge_file_coverage(files: Iterable[FileCoverage]) -> FileCoverage:
    """Merge FileCoverage objects describing the same path."""
    files_list = list(files)
    if not files_list:
        raise ValueError("Cannot merge empty file coverage list")

    result = FileCoverage(path=files_list[0].path)
    branches: dict[tuple[int, int, int], int] = {}

    for fc in files_list:
        for line, hits in fc.lines.items():
            result.lines[line] = max(result.lines.get(line, 0), hits)

        for branch in fc.branches:
            key = (branch.line, branch.block_id, branch.branch_id)
            branches[key] = max(branches.get(key, 0), branch.hits)

        for name, func in fc.functions.items():
            existing = result.functions.get(name)
            if existing is None:
                result.functions[name] = func
            else:
                # Earliest start line, max hits
                result.functions[name] = FunctionCoverage(
                    name=name,
                    start_line=min(existing.start_line, func.start_line),
                    hits=max(existing.hits, func.hits),
                )

    result.branches.extend(
        BranchCoverage(line=line, block_id=block, branch_id=branch, hits=hits)
        for (line, block, branch), hits in sorted(branches.items())
    )
    return result


def merge_reports(reports: Iterable[CoverageReport]) -> CoverageReport:
    """Merge reports; files present in several reports are merged per path."""
    reports_list = list(reports)
    if not reports_list:
        return CoverageReport(source_format="merged")
    if len(reports_list) == 1:
        return reports_list[0]

    by_path: dict[str, list[FileCoverage]] = {}
    formats = {report.source_format for report in reports_list}
    for report in reports_list:
        for path, fc in report.files.items():
            by_path.setdefault(path, []).append(fc)

    merged = {
        path: group[0] if len(group) == 1 else merge_file_coverage(group)
        for path, group in by_path.items()
    }
    source_format = formats.pop() if len(formats) == 1 else "merged"
    return CoverageReport(source_format=source_format, files=merged)


def merge(*reports: CoverageReport) -> CoverageReport:
    """Varargs form of merge_reports."""
    return merge_reports(reports)
