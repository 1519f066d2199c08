"""test-reporter reporters command - list supported result formats."""

import json

import click

from testreporter.parsers import REPORTERS


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def reporters_command(as_json: bool) -> None:
    """List the reporter names accepted by --reporter."""
    if as_json:
        click.echo(json.dumps(REPORTERS))
        return
    for name in REPORTERS:
        click.echo(name)
