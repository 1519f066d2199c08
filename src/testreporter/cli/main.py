"""test-reporter CLI."""

import click

from testreporter.cli.report import report_command
from testreporter.cli.reporters import reporters_command
from testreporter.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="test-reporter")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """test-reporter - Turn test result files into a report and code annotations."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "INFO")


cli.add_command(report_command, name="report")
cli.add_command(reporters_command, name="reporters")


if __name__ == "__main__":
    cli()
