"""reactorcov CLI - rcov command."""

import click

from reactorcov import __version__
from reactorcov.cli.aggregate import aggregate_command
from reactorcov.core.logging import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="rcov")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """reactorcov - Aggregate coverage of a multi-module build into one report."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(aggregate_command, name="aggregate")


if __name__ == "__main__":
    cli()
