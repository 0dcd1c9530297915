"""JaCoCo XML report parser.

Reads the per-line counters of ``<sourcefile>`` elements and the method
counters of ``<class>`` elements::

    <report name="app">
      <package name="com/example">
        <class name="com/example/Foo" sourcefilename="Foo.java">
          <method name="bar" desc="()V" line="10">
            <counter type="METHOD" missed="0" covered="1"/>
          </method>
        </class>
        <sourcefile name="Foo.java">
          <line nr="10" mi="0" ci="3" mb="1" cb="1"/>
        </sourcefile>
      </package>
    </report>

Files are keyed ``<package>/<sourcefile>``, i.e. relative to a source root.
Reports without ``<line>`` elements carry no per-line data and produce
files with method coverage only.
"""

import xml.etree.ElementTree as ET
from pathlib import Path

from reactorcov.coverage.models import (
    BranchCoverage,
    CoverageParseError,
    CoverageReport,
    FileCoverage,
    FunctionCoverage,
)


def _int(el: ET.Element, attr: str) -> int:
    value = el.get(attr, "0")
    try:
        return int(value)
    except ValueError as e:
        raise CoverageParseError(f"Invalid {attr}={value!r} on <{el.tag}>") from e


def _file_path(package: str, filename: str) -> str:
    return f"{package}/{filename}" if package else filename


class JacocoParser:
    """Parser for JaCoCo XML reports."""

    @property
    def format_id(self) -> str:
        return "jacoco"

    def can_parse(self, path: Path) -> bool:
        if not path.is_file() or path.suffix != ".xml":
            return False
        try:
            with path.open("rb") as f:
                header = f.read(2048).decode("utf-8", errors="ignore")
        except OSError:
            return False
        markers = ("JACOCO", "<package", "<counter")
        return "<report" in header and any(m in header for m in markers)

    def parse(self, path: Path) -> CoverageReport:
        try:
            root = ET.parse(path).getroot()
        except ET.ParseError as e:
            raise CoverageParseError(f"Invalid JaCoCo XML: {e}") from e
        if root.tag != "report":
            raise CoverageParseError(f"Expected <report> root element, got <{root.tag}>")

        files: dict[str, FileCoverage] = {}
        for package in root.iter("package"):
            package_name = package.get("name", "")

            for sourcefile in package.findall("sourcefile"):
                filename = sourcefile.get("name", "")
                if not filename:
                    continue
                fc = FileCoverage(path=_file_path(package_name, filename))
                for line in sourcefile.findall("line"):
                    nr = _int(line, "nr")
                    fc.lines[nr] = _int(line, "ci")
                    covered_branches = _int(line, "cb")
                    total_branches = _int(line, "mb") + covered_branches
                    fc.branches.extend(
                        BranchCoverage(
                            line=nr,
                            block_id=0,
                            branch_id=branch_id,
                            hits=1 if branch_id < covered_branches else 0,
                        )
                        for branch_id in range(total_branches)
                    )
                files[fc.path] = fc

            for cls in package.findall("class"):
                source_filename = cls.get("sourcefilename")
                if not source_filename:
                    continue
                path_key = _file_path(package_name, source_filename)
                fc = files.setdefault(path_key, FileCoverage(path=path_key))
                class_name = cls.get("name", "").rsplit("/", 1)[-1]
                for method in cls.findall("method"):
                    name = method.get("name", "")
                    if not name:
                        continue
                    counter = method.find("counter[@type='METHOD']")
                    hits = _int(counter, "covered") if counter is not None else 0
                    # Overloads and nested classes share a source file
                    key = f"{class_name}.{name}{method.get('desc', '')}"
                    fc.functions[key] = FunctionCoverage(
                        name=key, start_line=_int(method, "line"), hits=hits
                    )

        return CoverageReport(source_format="jacoco", files=files)
