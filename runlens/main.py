"""runlens command line entrypoint."""

from __future__ import annotations

import json
import sys

import click
import structlog

from runlens import __version__
from runlens.aggregator.aggregate import ResultAggregator
from runlens.config.logging import setup_logging
from runlens.config.settings import get_settings
from runlens.exceptions import ConfigError, OutputWriteError, ReadError
from runlens.render.html import write_html

logger = structlog.get_logger(__name__)

_folder = click.Path(exists=False, file_okay=False, dir_okay=True)
_history_option = click.option(
    "--history",
    "history_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="JSON history series used for the trend view.",
)


def _report_skipped(skipped: int, total: int) -> None:
    if skipped:
        click.echo(f"Skipped {skipped} of {total} input files.", err=True)


@click.group(help="Aggregate JSON test run reports into dashboards.")
@click.version_option(version=__version__, package_name="runlens")
@click.option("--log-level", default=None, help="Log level (defaults to RUNLENS_LOG_LEVEL).")
@click.option("--json-logs", is_flag=True, default=False, help="Emit logs as JSON lines.")
def cli(log_level: str | None, json_logs: bool) -> None:
    settings = get_settings()
    try:
        setup_logging(
            log_level=log_level or settings.log_level,
            json_output=json_logs or settings.json_logs,
        )
    except ConfigError as exc:
        raise click.BadParameter(str(exc), param_hint="--log-level") from exc


@cli.command("generate-html")
@click.argument("input_folder", type=_folder)
@click.argument("output_file", type=click.Path(dir_okay=False))
@_history_option
@click.option("--title", default="Test Execution Report", show_default=True)
def generate_html(
    input_folder: str, output_file: str, history_path: str | None, title: str
) -> None:
    """Build an HTML dashboard from every JSON report in INPUT_FOLDER."""
    try:
        model = ResultAggregator().aggregate_folder(input_folder, history_path=history_path)
        path = write_html(model, output_file, title=title)
    except (ReadError, OutputWriteError) as exc:
        logger.error("generate_html_failed", error=str(exc))
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    _report_skipped(model.files_skipped, model.files_read + model.files_skipped)
    click.echo(f"HTML report written to {path}")


@cli.command("summarize")
@click.argument("input_folder", type=_folder)
@_history_option
@click.option("--with-results", is_flag=True, default=False, help="Include every merged result.")
def summarize(input_folder: str, history_path: str | None, with_results: bool) -> None:
    """Print the aggregated report model for INPUT_FOLDER as JSON."""
    try:
        model = ResultAggregator().aggregate_folder(input_folder, history_path=history_path)
    except ReadError as exc:
        logger.error("summarize_failed", error=str(exc))
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    exclude = None if with_results else {"merged_results"}
    payload = model.model_dump(mode="json", by_alias=True, exclude=exclude)
    click.echo(json.dumps(payload, indent=2))
    _report_skipped(model.files_skipped, model.files_read + model.files_skipped)


if __name__ == "__main__":
    cli()
