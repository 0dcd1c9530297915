"""Tests for the accumulator-backed report visitor."""

from collections.abc import Callable
from pathlib import Path

import pytest

from reactorcov.core.errors import ReportCompositionError
from reactorcov.coverage.accumulator import CoverageAccumulator
from reactorcov.project.models import Module, ModuleId
from reactorcov.report.visitor import ReportBuilder


@pytest.fixture
def module(tmp_path: Path) -> Module:
    base = tmp_path / "app"
    sources = base / "src" / "main" / "java" / "com" / "example"
    sources.mkdir(parents=True)
    (sources / "Greeter.java").write_text("package com.example;\nclass Greeter {\n}\n")
    (sources / "Unused.java").write_text("package com.example;\nclass Unused {}\n")
    (sources / "generated").mkdir()
    (sources / "generated" / "Stub.java").write_text("class Stub {}\n")
    classes = base / "target" / "classes" / "com" / "example"
    classes.mkdir(parents=True)
    (classes / "Greeter.class").write_bytes(b"\xca\xfe\xba\xbe")
    (classes / "Unused.class").write_bytes(b"\xca\xfe\xba\xbe")
    (classes / "messages.properties").write_text("greeting=hi\n")
    return Module(id=ModuleId("com.example", "app", "1.0"), base_dir=base)


@pytest.fixture
def accumulator(tmp_path: Path, write_exec: Callable[..., Path]) -> CoverageAccumulator:
    acc = CoverageAccumulator()
    acc.load_execution_data(
        write_exec(tmp_path / "data" / "jacoco.exec", {"com/example/Greeter": [True, True]})
    )
    lcov = tmp_path / "data" / "lcov.info"
    lcov.write_text("SF:com/example/Greeter.java\nDA:2,1\nDA:3,0\nend_of_record\n")
    acc.load_execution_data(lcov)
    return acc


class TestReportBuilder:
    """ReportBuilder.process_project tests."""

    def test_group_collects_module_reports(
        self, module: Module, accumulator: CoverageAccumulator
    ) -> None:
        # Given
        builder = ReportBuilder(accumulator)
        group = builder.visit_group("Coverage")

        # When
        builder.process_project(group, "app", module, [], [], "UTF-8")

        # Then
        assert builder.roots == [group]
        (report,) = group.children
        assert report.name == "app"
        assert [s.path for s in report.sources] == [
            "com/example/Greeter.java",
            "com/example/Unused.java",
            "com/example/generated/Stub.java",
        ]

    def test_sources_paired_with_line_coverage(
        self, module: Module, accumulator: CoverageAccumulator
    ) -> None:
        builder = ReportBuilder(accumulator)
        group = builder.visit_group("Coverage")

        builder.process_project(group, "app", module, [], [], "UTF-8")

        greeter, unused, _stub = group.children[0].sources
        assert greeter.line_count == 3
        assert greeter.coverage.lines == {2: 1, 3: 0}
        assert unused.coverage.lines_found == 0
        assert group.summary.lines_found == 2
        assert group.summary.lines_hit == 1

    def test_classes_paired_with_execution_data(
        self, module: Module, accumulator: CoverageAccumulator
    ) -> None:
        builder = ReportBuilder(accumulator)
        group = builder.visit_group("Coverage")

        builder.process_project(group, "app", module, [], [], "UTF-8")

        report = group.children[0]
        assert [(c.name, c.executed) for c in report.classes] == [
            ("com/example/Greeter", True),
            ("com/example/Unused", False),
        ]
        assert report.classes_executed == 1

    def test_includes_and_excludes_apply_per_root(
        self, module: Module, accumulator: CoverageAccumulator
    ) -> None:
        builder = ReportBuilder(accumulator)
        group = builder.visit_group("Coverage")

        builder.process_project(
            group, "app", module, ["com/**"], ["**/generated/**", "**/Unused.*"], "UTF-8"
        )

        report = group.children[0]
        assert [s.path for s in report.sources] == ["com/example/Greeter.java"]
        assert [c.name for c in report.classes] == ["com/example/Greeter"]

    def test_one_pattern_list_serves_both_roots(
        self, module: Module, accumulator: CoverageAccumulator
    ) -> None:
        # Given
        builder = ReportBuilder(accumulator)
        group = builder.visit_group("Coverage")

        # When
        builder.process_project(group, "java-only", module, ["**/*.java"], [], "UTF-8")
        builder.process_project(group, "suffix-free", module, ["**/Greeter.*"], [], "UTF-8")

        # Then - a suffix pattern selects one kind, a suffix-free one selects both
        java_only, suffix_free = group.children
        assert len(java_only.sources) == 3
        assert java_only.classes == []
        assert [s.path for s in suffix_free.sources] == ["com/example/Greeter.java"]
        assert [c.name for c in suffix_free.classes] == ["com/example/Greeter"]

    def test_module_without_sources(self, tmp_path: Path) -> None:
        empty = Module(id=ModuleId("g", "empty", "1"), base_dir=tmp_path / "empty")
        builder = ReportBuilder(CoverageAccumulator())
        group = builder.visit_group("Coverage")

        builder.process_project(group, "empty", empty, [], [], "UTF-8")

        assert group.children[0].sources == []
        assert group.children[0].classes == []

    def test_undecodable_source(self, module: Module) -> None:
        bad = module.base_dir / "src" / "main" / "java" / "Bad.java"
        bad.write_bytes(b"class Bad { String s = \"\xff\xfe\"; }")
        builder = ReportBuilder(CoverageAccumulator())

        with pytest.raises(ReportCompositionError, match="Bad.java"):
            builder.process_project(builder.visit_group("g"), "app", module, [], [], "UTF-8")
