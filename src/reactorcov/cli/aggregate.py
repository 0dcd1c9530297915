"""rcov aggregate command - build the aggregate coverage report of a reactor."""

import json
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from reactorcov.aggregate import aggregate
from reactorcov.config import load_config
from reactorcov.core.errors import ReactorCovError
from reactorcov.core.logging import configure_logging, get_log_file_path
from reactorcov.coverage import CoverageAccumulator
from reactorcov.project import (
    DependencyRecord,
    ProjectModel,
    load_manifest,
    load_maven_reactor,
)
from reactorcov.report import FormatterRegistry, ReportBuilder, ReportGroupNode


def _load_project_model(root: Path, manifest: Path | None, project: str | None) -> ProjectModel:
    if manifest is None:
        return load_maven_reactor(root, project)
    model = load_manifest(manifest)
    if project is None:
        return model
    module = model.reactor.find_artifact(project)
    if module is None:
        raise click.ClickException(f"No module '{project}' in manifest {manifest}")
    return ProjectModel(project=module, reactor=model.reactor)


def _percent(hit: int, found: int) -> str:
    return f"{hit / found * 100:.1f}%" if found else "-"


def _summary_table(group: ReportGroupNode) -> Table:
    table = Table(title=group.name)
    table.add_column("Module")
    table.add_column("Sources", justify="right")
    table.add_column("Lines", justify="right")
    table.add_column("Line %", justify="right")
    table.add_column("Branch %", justify="right")
    table.add_column("Classes run", justify="right")

    for module in group.children:
        summary = module.summary
        table.add_row(
            module.name,
            str(len(module.sources)),
            f"{summary.lines_hit}/{summary.lines_found}",
            _percent(summary.lines_hit, summary.lines_found),
            _percent(summary.branches_hit, summary.branches_found),
            f"{module.classes_executed}/{len(module.classes)}",
        )

    total = group.summary
    sources = sum(len(m.sources) for m in group.children)
    classes = sum(len(m.classes) for m in group.children)
    executed = sum(m.classes_executed for m in group.children)
    table.add_section()
    table.add_row(
        "Total",
        str(sources),
        f"{total.lines_hit}/{total.lines_found}",
        _percent(total.lines_hit, total.lines_found),
        _percent(total.branches_hit, total.branches_found),
        f"{executed}/{classes}",
    )
    return table


@click.command()
@click.argument(
    "root", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path)
)
@click.option(
    "--manifest",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML reactor manifest (default: read ROOT/pom.xml)",
)
@click.option("--project", "project_name", help="Artifact id of the aggregating module")
@click.option(
    "--config", "config_path", type=click.Path(path_type=Path), help="Config file to use"
)
@click.option("--data-include", multiple=True, help="Coverage-data include pattern (repeatable)")
@click.option("--data-exclude", multiple=True, help="Coverage-data exclude pattern (repeatable)")
@click.option("--title", help="Report group title")
@click.option(
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    help="Output directory (default: below the aggregating module's reporting directory)",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def aggregate_command(
    ctx: click.Context,
    root: Path,
    manifest: Path | None,
    project_name: str | None,
    config_path: Path | None,
    data_include: tuple[str, ...],
    data_exclude: tuple[str, ...],
    title: str | None,
    output: Path | None,
    as_json: bool,
) -> None:
    """Aggregate coverage of the modules ROOT's project depends on.

    ROOT is the reactor root (default: current directory).
    """
    root = root.resolve()
    unresolved: list[DependencyRecord] = []

    try:
        config = load_config(root, config_path)
        if not (ctx.obj or {}).get("verbose"):
            configure_logging(config=config.logging)

        overrides: dict[str, Any] = {}
        if data_include:
            overrides["data_file_includes"] = list(data_include)
        if data_exclude:
            overrides["data_file_excludes"] = list(data_exclude)
        if title:
            overrides["title"] = title
        report_config = config.report.model_copy(update=overrides)

        project_model = _load_project_model(root, manifest, project_name)

        accumulator = CoverageAccumulator()
        formatters = FormatterRegistry()
        group = aggregate(
            report_config,
            project_model,
            accumulator,
            ReportBuilder(accumulator),
            formatters=formatters,
            output_directory=output.resolve() if output else None,
            on_unresolved=unresolved.append,
        )
        if group is None:
            click.echo("Aggregation skipped (report.skip is set)")
            return
        written = formatters.render(group)
    except ReactorCovError as e:
        message = str(e)
        if log_file := get_log_file_path():
            message += f"\nSee log: {log_file}"
        raise click.ClickException(message) from e
    except OSError as e:
        raise click.ClickException(f"Cannot write report: {e}") from e

    if as_json:
        click.echo(
            json.dumps(
                {
                    **group.to_dict(),
                    "data_files": [str(p) for p in accumulator.loaded_files],
                    "unresolved": [str(d.module_id) for d in unresolved],
                    "output": [str(p) for p in written],
                }
            )
        )
        return

    console = Console()
    for dependency in unresolved:
        console.print(
            f"[yellow]![/yellow] {dependency.module_id} ({dependency.scope.value}) "
            "is not part of the reactor, skipped",
            highlight=False,
        )
    console.print(_summary_table(group))
    console.print(f"Loaded {len(accumulator.loaded_files)} data file(s)", highlight=False)
    console.print(f"Report written to {written[0].parent}", highlight=False)
