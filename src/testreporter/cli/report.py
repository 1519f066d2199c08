"""test-reporter report command - parse result files and write the report."""

import json
from pathlib import Path
from typing import Any

import click
from rich.markup import escape

from testreporter.config import load_config
from testreporter.core.errors import ReporterError
from testreporter.core.formatting import pluralize
from testreporter.core.logging import configure_logging, set_run_id
from testreporter.core.progress import status, task
from testreporter.inputs import LocalFileProvider, list_tracked_files, split_patterns
from testreporter.ops import ReportOps, RunOutcome
from testreporter.parsers import REPORTERS
from testreporter.report.render import summary_line


def _overrides(**sections: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Drop options that were not given so lower config layers apply."""
    result = {}
    for section, values in sections.items():
        given = {k: v for k, v in values.items() if v is not None}
        if given:
            result[section] = given
    return result


@click.command()
@click.option("-n", "--name", default="test results", show_default=True, help="Report name")
@click.option(
    "-p",
    "--path",
    "path_patterns",
    required=True,
    help="Comma separated glob patterns of result files; prefix with ! to exclude",
)
@click.option(
    "-r",
    "--reporter",
    type=click.Choice(REPORTERS, case_sensitive=False),
    help="Format of the result files",
)
@click.option("--list-suites", type=click.Choice(["all", "failed"]), help="Suites to list")
@click.option("--list-tests", type=click.Choice(["all", "failed", "none"]), help="Tests to list")
@click.option("--max-annotations", type=int, help="Maximum annotations (0-50)")
@click.option("--only-summary/--full", default=None, help="Only write the summary table")
@click.option("--format", "report_format", type=click.Choice(["markdown", "text"]))
@click.option(
    "-d",
    "--working-directory",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory patterns and report paths are relative to (default: current directory)",
)
@click.option(
    "--path-replace-backslashes/--no-path-replace-backslashes",
    default=None,
    help="Convert backslashes in --path to forward slashes",
)
@click.option("--fail-on-error/--no-fail-on-error", default=None, help="Exit 1 when tests failed")
@click.option(
    "--fail-on-empty/--no-fail-on-empty",
    default=None,
    help="Exit 1 when no result file was found",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the report to this file instead of stdout",
)
@click.option(
    "--annotations-output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write annotations as JSON to this file",
)
@click.option("--id-prefix", help="Prefix for anchor ids in the report")
@click.option("--base-url", help="Prefix for anchor links in the report")
@click.option("--workers", type=int, help="Parse files on this many threads")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: .test-reporter.yaml in the working directory)",
)
@click.option("--json", "as_json", is_flag=True, help="Output the outcome as JSON")
@click.pass_context
def report_command(
    ctx: click.Context,
    name: str,
    path_patterns: str,
    reporter: str | None,
    list_suites: str | None,
    list_tests: str | None,
    max_annotations: int | None,
    only_summary: bool | None,
    report_format: str | None,
    working_directory: Path | None,
    path_replace_backslashes: bool | None,
    fail_on_error: bool | None,
    fail_on_empty: bool | None,
    output: Path | None,
    annotations_output: Path | None,
    id_prefix: str | None,
    base_url: str | None,
    workers: int | None,
    config_file: Path | None,
    as_json: bool,
) -> None:
    """Parse test result files and write a report.

    The report goes to stdout (or --output); status lines go to stderr.
    """
    work_dir = (working_directory or Path.cwd()).resolve()
    overrides = _overrides(
        report={
            "list_suites": list_suites,
            "list_tests": list_tests,
            "only_summary": only_summary,
            "format": report_format,
            "id_prefix": id_prefix,
            "base_url": base_url,
        },
        annotations={"max_annotations": max_annotations},
        parsing={
            "reporter": reporter.lower() if reporter else None,
            "workers": workers,
            "path_replace_backslashes": path_replace_backslashes,
        },
        run={"fail_on_error": fail_on_error, "fail_on_empty": fail_on_empty},
    )

    try:
        config = load_config(work_dir, config_file=config_file, **overrides)
    except ReporterError as e:
        raise click.ClickException(str(e)) from e

    log_config = config.logging
    if ctx.obj and ctx.obj.get("verbose"):
        log_config = log_config.model_copy(update={"level": "DEBUG"})
    configure_logging(config=log_config)
    set_run_id()

    try:
        ops = ReportOps(config, list_tracked_files(work_dir), work_dir)
        ops.get_parser()

        patterns = split_patterns(
            path_patterns, replace_backslashes=config.parsing.path_replace_backslashes
        )
        groups = LocalFileProvider(name, patterns, work_dir).load()
        found = sum(len(files) for files in groups.values())
        if found:
            status(f"Found {pluralize(found, 'result file')} for {escape(name)}")
        else:
            status(f"No file matches path {escape(path_patterns)}", style="warning")

        with task(f"Creating report {escape(name)}"):
            outcome = ops.run(groups)
    except ReporterError as e:
        raise click.ClickException(str(e)) from e

    _print_status(outcome)
    _write_outputs(outcome, output=output, annotations_output=annotations_output, as_json=as_json)

    if not outcome.found and config.run.fail_on_empty:
        status("No test report files were found", style="error")
        ctx.exit(1)
    if outcome.conclusion == "failure" and config.run.fail_on_error:
        ctx.exit(1)


def _print_status(outcome: RunOutcome) -> None:
    for group in outcome.groups:
        style = "error" if group.conclusion == "failure" else "success"
        status(f"{escape(group.name)}: {summary_line(group.totals)}", style=style)
        for error in group.errors:
            status(escape(str(error)), style="warning", indent=2)


def _write_outputs(
    outcome: RunOutcome,
    *,
    output: Path | None,
    annotations_output: Path | None,
    as_json: bool,
) -> None:
    report = "\n".join(group.report for group in outcome.groups)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(report, encoding="utf-8")

    if annotations_output is not None:
        annotations = [a.to_dict() for group in outcome.groups for a in group.annotations]
        annotations_output.parent.mkdir(parents=True, exist_ok=True)
        annotations_output.write_text(json.dumps(annotations, indent=2), encoding="utf-8")

    if as_json:
        click.echo(json.dumps(outcome.to_dict(), indent=2))
    elif output is None:
        click.echo(report, nl=False)
