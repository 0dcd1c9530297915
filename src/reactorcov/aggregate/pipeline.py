"""Two-phase aggregation of coverage across reactor modules.

Phases, strictly sequential:

1. Data loading: every reactor module the project depends on with scope
   CONTRIBUTES_SOURCE or DATA_ONLY contributes the coverage-data files
   matched below its base directory.
2. Report composition: every CONTRIBUTES_SOURCE module gets one sub-report
   in a single group named by the configured title.

Configuration problems are raised before phase 1. Any data-loading or
composition failure aborts the run; nothing is retried and no partial
report is rendered.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from reactorcov.aggregate.filters import FilterSpec
from reactorcov.aggregate.scope import UnresolvedCallback, find_dependencies, unique_modules
from reactorcov.config.models import ReportConfig, resolve_output_directory
from reactorcov.core.errors import ConfigError, DataLoadError, ReportCompositionError
from reactorcov.core.logging import clear_run_id, set_run_id
from reactorcov.project.models import ProjectModel, Scope

if TYPE_CHECKING:
    from reactorcov.aggregate.collaborators import DataLoader, FormatterRegistrar, ReportVisitor
    from reactorcov.report.tree import ReportGroupNode

log = structlog.get_logger(__name__)

DATA_SCOPES = frozenset({Scope.CONTRIBUTES_SOURCE, Scope.DATA_ONLY})
REPORT_SCOPES = frozenset({Scope.CONTRIBUTES_SOURCE})


def check_output_directory(path: Path) -> None:
    """Raise ConfigError unless ``path`` is, or can become, a writable directory."""
    if path.exists():
        if not path.is_dir():
            raise ConfigError.output_unusable(str(path), "exists and is not a directory")
        existing = path
    else:
        existing = path.parent
        while not existing.exists() and existing != existing.parent:
            existing = existing.parent
        if not existing.is_dir():
            raise ConfigError.output_unusable(str(path), f"{existing} is not a directory")
    if not os.access(existing, os.W_OK):
        raise ConfigError.output_unusable(str(path), f"{existing} is not writable")


def aggregate(
    config: ReportConfig,
    project_model: ProjectModel,
    loader: DataLoader,
    visitor: ReportVisitor,
    *,
    formatters: FormatterRegistrar | None = None,
    output_directory: Path | None = None,
    on_unresolved: UnresolvedCallback | None = None,
) -> ReportGroupNode | None:
    """Load coverage data from the reactor and compose the grouped report.

    Args:
        config: Patterns, title, encodings and output settings.
        project_model: The aggregating project and its reactor.
        loader: Receives every matched coverage-data file.
        visitor: Builds the report group and the module sub-reports.
        formatters: Optional renderer registrar, configured between the phases.
        output_directory: Overrides the directory derived from the config.
        on_unresolved: Called for each dependency not found in the reactor.

    Returns:
        The composed group node, or None when ``config.skip`` is set.

    Raises:
        ConfigError: Invalid patterns or unusable output directory.
        DataLoadError: A matched coverage-data file cannot be loaded.
        ReportCompositionError: A module sub-report cannot be built.
    """
    project = project_model.project
    if config.skip:
        log.info("aggregation_skipped", project=project.artifact_id)
        return None

    data_filter = FilterSpec.of(config.data_file_includes, config.data_file_excludes).build()
    source_spec = FilterSpec.of(config.includes, config.excludes)
    # Validate source patterns up front; the visitor applies them
    source_spec.build()
    if formatters is not None:
        output_directory = output_directory or resolve_output_directory(config, project.base_dir)
        check_output_directory(output_directory)

    set_run_id()
    try:
        log.info("aggregation_started", project=str(project.id), title=config.title)

        loaded = 0
        data_modules = unique_modules(
            find_dependencies(
                project, project_model.reactor, DATA_SCOPES, on_unresolved=on_unresolved
            )
        )
        for module in data_modules:
            files = data_filter.get_files(module.base_dir)
            for path in files:
                try:
                    loader.load_execution_data(path)
                except OSError as e:
                    raise DataLoadError.unreadable(str(path), e.strerror or str(e)) from e
            loaded += len(files)
            log.debug("module_data_loaded", module=str(module.id), files=len(files))
        log.info("aggregation_data_loaded", modules=len(data_modules), files=loaded)

        if formatters is not None and output_directory is not None:
            formatters.add_all_formatters(
                output_directory, config.output_encoding, config.footer, config.locale
            )

        group = visitor.visit_group(config.title)
        report_modules = unique_modules(
            find_dependencies(project, project_model.reactor, REPORT_SCOPES)
        )
        for module in report_modules:
            try:
                visitor.process_project(
                    group,
                    module.artifact_id,
                    module,
                    source_spec.includes,
                    source_spec.excludes,
                    config.source_encoding,
                )
            except (OSError, UnicodeDecodeError) as e:
                raise ReportCompositionError.module_failed(str(module.id), str(e)) from e

        log.info("aggregation_complete", group=group.name, modules=len(group.children))
        return group
    finally:
        clear_run_id()
