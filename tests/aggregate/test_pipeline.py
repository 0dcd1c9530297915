"""Tests for the two-phase aggregation pipeline."""

from __future__ import annotations

import shutil
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from reactorcov.aggregate.pipeline import aggregate, check_output_directory
from reactorcov.config.models import OUTPUT_SUFFIX, ReportConfig
from reactorcov.core.errors import (
    ConfigError,
    DataLoadError,
    ErrorCode,
    ReportCompositionError,
)
from reactorcov.core.logging import get_run_id
from reactorcov.coverage.accumulator import CoverageAccumulator
from reactorcov.project.models import (
    DependencyRecord,
    Module,
    ModuleId,
    ProjectModel,
    Reactor,
    Scope,
)
from reactorcov.report.tree import ModuleReport, ReportGroupNode
from reactorcov.report.visitor import ReportBuilder


class RecordingLoader:
    """DataLoader that records every path it is given."""

    def __init__(self, events: list[str] | None = None, fail_on: str | None = None) -> None:
        self.loaded: list[Path] = []
        self.events = events if events is not None else []
        self.fail_on = fail_on

    def load_execution_data(self, path: Path) -> None:
        if self.fail_on and path.name == self.fail_on:
            raise PermissionError(13, "Permission denied", str(path))
        self.events.append(f"load:{path.name}")
        self.loaded.append(path)


class RecordingVisitor:
    """ReportVisitor that records the modules it is asked to process."""

    def __init__(self, events: list[str] | None = None, fail_on: str | None = None) -> None:
        self.processed: list[tuple[str, tuple[str, ...], tuple[str, ...], str]] = []
        self.events = events if events is not None else []
        self.fail_on = fail_on

    def visit_group(self, title: str) -> ReportGroupNode:
        self.events.append(f"group:{title}")
        return ReportGroupNode(name=title)

    def process_project(
        self,
        group: ReportGroupNode,
        name: str,
        module: Module,
        includes: Sequence[str],
        excludes: Sequence[str],
        source_encoding: str,
    ) -> None:
        if name == self.fail_on:
            raise OSError(f"cannot list {module.base_dir}")
        self.events.append(f"process:{name}")
        self.processed.append((name, tuple(includes), tuple(excludes), source_encoding))
        group.add(ModuleReport(name=name, module_id=module.id, source_encoding=source_encoding))


class RecordingFormatters:
    """FormatterRegistrar that records its settings."""

    def __init__(self, events: list[str]) -> None:
        self.events = events
        self.settings: tuple[Path, str, str, str] | None = None

    def add_all_formatters(
        self, output_directory: Path, encoding: str, footer: str, locale: str
    ) -> None:
        self.events.append("formatters")
        self.settings = (output_directory, encoding, footer, locale)


def _dep(artifact: str, scope: Scope) -> DependencyRecord:
    return DependencyRecord("com.example", artifact, "1.0", scope)


def _module(root: Path, artifact: str, *deps: DependencyRecord) -> Module:
    return Module(
        id=ModuleId("com.example", artifact, "1.0"), base_dir=root / artifact, dependencies=deps
    )


@pytest.fixture
def reactor_dir(tmp_path: Path, write_exec: Callable[..., Path]) -> Path:
    """modA (compile) and modB (test) with one exec file each, plus sources for modA."""
    write_exec(tmp_path / "modA" / "target" / "a.exec", {"com/example/a/Greeter": [True, False]})
    write_exec(tmp_path / "modB" / "target" / "b.exec", {"com/example/a/Greeter": [False, True]})
    source = tmp_path / "modA" / "src" / "main" / "java" / "com" / "example" / "a" / "Greeter.java"
    source.parent.mkdir(parents=True)
    source.write_text("package com.example.a;\n\nclass Greeter {}\n")
    classes = tmp_path / "modA" / "target" / "classes" / "com" / "example" / "a"
    classes.mkdir(parents=True)
    (classes / "Greeter.class").write_bytes(b"\xca\xfe\xba\xbe")
    (tmp_path / "root").mkdir()
    return tmp_path


@pytest.fixture
def project_model(reactor_dir: Path) -> ProjectModel:
    root = _module(
        reactor_dir,
        "root",
        _dep("modA", Scope.CONTRIBUTES_SOURCE),
        _dep("modB", Scope.DATA_ONLY),
    )
    reactor = Reactor.of(
        [_module(reactor_dir, "modA"), _module(reactor_dir, "modB"), root]
    )
    return ProjectModel(project=root, reactor=reactor)


@pytest.fixture
def config() -> ReportConfig:
    return ReportConfig(data_file_includes=["target/*.exec"], title="All modules")


class TestAggregate:
    """End-to-end pipeline behavior."""

    def test_loads_data_from_both_reports_only_source_module(
        self, config: ReportConfig, project_model: ProjectModel, reactor_dir: Path
    ) -> None:
        # Given
        loader = RecordingLoader()
        visitor = RecordingVisitor()

        # When
        group = aggregate(config, project_model, loader, visitor)

        # Then
        assert loader.loaded == [
            reactor_dir / "modA" / "target" / "a.exec",
            reactor_dir / "modB" / "target" / "b.exec",
        ]
        assert group is not None
        assert group.name == "All modules"
        assert [child.name for child in group.children] == ["modA"]

    def test_real_accumulator_merges_both_exec_files(
        self, config: ReportConfig, project_model: ProjectModel
    ) -> None:
        # Given
        accumulator = CoverageAccumulator()

        # When
        group = aggregate(config, project_model, accumulator, ReportBuilder(accumulator))

        # Then
        execution = accumulator.execution_data.get("com/example/a/Greeter")
        assert execution is not None
        assert execution.probes == (True, True)
        assert len(accumulator.loaded_files) == 2
        assert group is not None
        (module_report,) = group.children
        assert [s.path for s in module_report.sources] == ["com/example/a/Greeter.java"]
        assert module_report.classes_executed == 1

    def test_deleted_data_file_yields_no_error(
        self, config: ReportConfig, project_model: ProjectModel, reactor_dir: Path
    ) -> None:
        # Given
        (reactor_dir / "modB" / "target" / "b.exec").unlink()
        loader = RecordingLoader()

        # When
        group = aggregate(config, project_model, loader, RecordingVisitor())

        # Then
        assert [p.name for p in loader.loaded] == ["a.exec"]
        assert group is not None
        assert [child.name for child in group.children] == ["modA"]

    def test_module_without_base_dir_contributes_nothing(
        self, config: ReportConfig, project_model: ProjectModel, reactor_dir: Path
    ) -> None:
        shutil.rmtree(reactor_dir / "modB")
        loader = RecordingLoader()

        aggregate(config, project_model, loader, RecordingVisitor())

        assert [p.name for p in loader.loaded] == ["a.exec"]

    def test_repeated_runs_are_identical(
        self, config: ReportConfig, project_model: ProjectModel
    ) -> None:
        results = []
        for _ in range(2):
            accumulator = CoverageAccumulator()
            group = aggregate(config, project_model, accumulator, ReportBuilder(accumulator))
            assert group is not None
            results.append(group.to_dict())

        assert results[0] == results[1]

    def test_config_passed_through_to_visitor(
        self, project_model: ProjectModel
    ) -> None:
        config = ReportConfig(
            includes=["com/**/*.java"],
            excludes=["**/generated/**"],
            source_encoding="ISO-8859-1",
        )
        visitor = RecordingVisitor()

        aggregate(config, project_model, RecordingLoader(), visitor)

        assert visitor.processed == [
            ("modA", ("com/**/*.java",), ("**/generated/**",), "ISO-8859-1")
        ]

    def test_phases_run_in_order(
        self, config: ReportConfig, project_model: ProjectModel, tmp_path: Path
    ) -> None:
        # Given
        events: list[str] = []
        formatters = RecordingFormatters(events)
        out = tmp_path / "out"

        # When
        aggregate(
            config,
            project_model,
            RecordingLoader(events),
            RecordingVisitor(events),
            formatters=formatters,
            output_directory=out,
        )

        # Then
        assert events == [
            "load:a.exec",
            "load:b.exec",
            "formatters",
            "group:All modules",
            "process:modA",
        ]
        assert formatters.settings == (out, "UTF-8", "", "en_US")

    def test_default_output_directory_below_project(
        self, config: ReportConfig, project_model: ProjectModel, reactor_dir: Path
    ) -> None:
        formatters = RecordingFormatters([])

        aggregate(
            config, project_model, RecordingLoader(), RecordingVisitor(), formatters=formatters
        )

        assert formatters.settings is not None
        assert formatters.settings[0] == reactor_dir / "root" / "target" / "site" / OUTPUT_SUFFIX

    def test_duplicate_declarations_processed_once(self, reactor_dir: Path) -> None:
        root = _module(
            reactor_dir,
            "root",
            _dep("modA", Scope.CONTRIBUTES_SOURCE),
            _dep("modA", Scope.DATA_ONLY),
        )
        model = ProjectModel(
            project=root, reactor=Reactor.of([_module(reactor_dir, "modA"), root])
        )
        loader = RecordingLoader()
        visitor = RecordingVisitor()

        aggregate(ReportConfig(), model, loader, visitor)

        assert [p.name for p in loader.loaded] == ["a.exec"]
        assert [name for name, *_ in visitor.processed] == ["modA"]

    def test_unresolved_dependency_skipped(self, reactor_dir: Path) -> None:
        # Given
        missing = DependencyRecord("org.example", "published", "2.0", Scope.CONTRIBUTES_SOURCE)
        root = _module(reactor_dir, "root", missing, _dep("modA", Scope.CONTRIBUTES_SOURCE))
        model = ProjectModel(
            project=root, reactor=Reactor.of([_module(reactor_dir, "modA"), root])
        )
        unresolved: list[DependencyRecord] = []
        visitor = RecordingVisitor()

        # When
        aggregate(
            ReportConfig(),
            model,
            RecordingLoader(),
            visitor,
            on_unresolved=unresolved.append,
        )

        # Then - reported once, from the data phase
        assert unresolved == [missing]
        assert [name for name, *_ in visitor.processed] == ["modA"]

    def test_no_dependencies_gives_empty_group(self, reactor_dir: Path) -> None:
        root = _module(reactor_dir, "root")
        model = ProjectModel(project=root, reactor=Reactor.of([root]))

        group = aggregate(ReportConfig(), model, RecordingLoader(), RecordingVisitor())

        assert group is not None
        assert group.children == []

    def test_skip_touches_nothing(
        self, project_model: ProjectModel, tmp_path: Path
    ) -> None:
        events: list[str] = []

        result = aggregate(
            ReportConfig(skip=True, data_file_includes=["/invalid"]),
            project_model,
            RecordingLoader(events),
            RecordingVisitor(events),
            formatters=RecordingFormatters(events),
            output_directory=tmp_path / "out",
        )

        assert result is None
        assert events == []

    def test_run_id_cleared_afterwards(
        self, config: ReportConfig, project_model: ProjectModel
    ) -> None:
        aggregate(config, project_model, RecordingLoader(), RecordingVisitor())

        assert get_run_id() is None


class TestAggregateFailures:
    """Failure semantics: abort, no retry, config errors before any phase."""

    def test_invalid_data_pattern_raises_before_loading(
        self, project_model: ProjectModel
    ) -> None:
        events: list[str] = []

        with pytest.raises(ConfigError) as exc_info:
            aggregate(
                ReportConfig(data_file_includes=["../escape/*.exec"]),
                project_model,
                RecordingLoader(events),
                RecordingVisitor(events),
            )

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_PATTERN
        assert events == []

    def test_invalid_source_pattern_raises_before_loading(
        self, project_model: ProjectModel
    ) -> None:
        events: list[str] = []

        with pytest.raises(ConfigError):
            aggregate(
                ReportConfig(excludes=["C:/src/**"]),
                project_model,
                RecordingLoader(events),
                RecordingVisitor(events),
            )

        assert events == []

    def test_unusable_output_directory_raises_before_loading(
        self, config: ReportConfig, project_model: ProjectModel, tmp_path: Path
    ) -> None:
        # Given
        blocker = tmp_path / "occupied"
        blocker.write_text("not a directory")
        events: list[str] = []

        # When
        with pytest.raises(ConfigError) as exc_info:
            aggregate(
                config,
                project_model,
                RecordingLoader(events),
                RecordingVisitor(events),
                formatters=RecordingFormatters(events),
                output_directory=blocker / "report",
            )

        # Then
        assert exc_info.value.code == ErrorCode.CONFIG_OUTPUT_UNUSABLE
        assert events == []

    def test_unreadable_data_file_aborts(
        self, config: ReportConfig, project_model: ProjectModel
    ) -> None:
        # Given
        events: list[str] = []

        # When
        with pytest.raises(DataLoadError) as exc_info:
            aggregate(
                config,
                project_model,
                RecordingLoader(events, fail_on="b.exec"),
                RecordingVisitor(events),
                formatters=RecordingFormatters(events),
            )

        # Then - no composition, no formatter setup
        assert exc_info.value.code == ErrorCode.DATA_UNREADABLE
        assert exc_info.value.details["path"].endswith("b.exec")
        assert events == ["load:a.exec"]

    def test_corrupt_data_file_aborts(
        self, config: ReportConfig, project_model: ProjectModel, reactor_dir: Path
    ) -> None:
        (reactor_dir / "modB" / "target" / "b.exec").write_bytes(b"\x01\xc0\xc0\x10\x06")
        accumulator = CoverageAccumulator()

        with pytest.raises(DataLoadError) as exc_info:
            aggregate(config, project_model, accumulator, ReportBuilder(accumulator))

        assert exc_info.value.code == ErrorCode.DATA_UNPARSEABLE

    def test_visitor_failure_aborts(
        self, config: ReportConfig, project_model: ProjectModel
    ) -> None:
        with pytest.raises(ReportCompositionError) as exc_info:
            aggregate(
                config, project_model, RecordingLoader(), RecordingVisitor(fail_on="modA")
            )

        assert exc_info.value.details["module"] == "com.example:modA:1.0"
        assert get_run_id() is None


class TestCheckOutputDirectory:
    def test_missing_directory_under_writable_parent(self, tmp_path: Path) -> None:
        check_output_directory(tmp_path / "a" / "b" / "c")

    def test_existing_directory(self, tmp_path: Path) -> None:
        check_output_directory(tmp_path)

    def test_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "report"
        target.write_text("")

        with pytest.raises(ConfigError):
            check_output_directory(target)
