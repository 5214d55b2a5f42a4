"""
CLI interface for ocusage.

Provides command-line access to session, period and live usage reports.
"""

import logging
from datetime import date
from typing import Optional

import typer
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.logging import RichHandler

from ocusage.config.loader import OutputMode, ReportConfig, load_report_config
from ocusage.core.periods import Granularity
from ocusage.core.reports import (
    Report,
    ReportKind,
    ReportStatus,
    build_period_report,
    build_session_report
)
from ocusage.core.timefilter import TimeWindow, parse_date, parse_time_of_day
from ocusage.live.monitor import LiveMonitor
from ocusage.output.console import emit_report
from ocusage.storage.discovery import DataDirectoryNotFoundError
from ocusage.storage.repository import get_repository

logger = logging.getLogger(__name__)

app = typer.Typer()
console = Console()
err_console = Console(stderr=True)

# Reports never fail the process; only a broken config file does
EXIT_CODE_OK = 0
EXIT_CODE_CONFIG_ERROR = 1


def _validate_date(value: Optional[str]) -> Optional[str]:
    if value is not None:
        try:
            parse_date(value)
        except ValueError as e:
            raise typer.BadParameter(str(e))
    return value


def _validate_time(value: Optional[str]) -> Optional[str]:
    if value is not None:
        try:
            parse_time_of_day(value)
        except ValueError as e:
            raise typer.BadParameter(str(e))
    return value


SINCE_OPTION = typer.Option(
    None, "--since", callback=_validate_date,
    help="Start date for the report (YYYY-MM-DD)"
)
UNTIL_OPTION = typer.Option(
    None, "--until", callback=_validate_date,
    help="End date for the report (YYYY-MM-DD)"
)
START_TIME_OPTION = typer.Option(
    None, "--start-time", callback=_validate_time,
    help="Time of day (HH:MM) the --since date starts at"
)
END_TIME_OPTION = typer.Option(
    None, "--end-time", callback=_validate_time,
    help="Time of day (HH:MM) the --until date ends at"
)
JSON_OPTION = typer.Option(False, "--json", help="Output report in JSON format")
XML_OPTION = typer.Option(False, "--xml", help="Output report in XML format (overrides --json)")
SHOW_MODELS_OPTION = typer.Option(
    True, "--show-models/--no-show-models",
    help="Show detailed model breakdown in reports"
)
DATA_DIR_OPTION = typer.Option(
    None, "--data-dir", envvar="OCUSAGE_DATA_DIR",
    help="Specify the data directory for opencode usage files"
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)]
    )


def _settings(ctx: typer.Context) -> ReportConfig:
    return ctx.obj if isinstance(ctx.obj, ReportConfig) else ReportConfig()


def _explicit(ctx: typer.Context, name: str, value: bool) -> Optional[bool]:
    """The flag value if given on the command line, else None so config applies."""
    if ctx.get_parameter_source(name) in (ParameterSource.DEFAULT, None):
        return None
    return value


def _build_window(
    since: Optional[str],
    until: Optional[str],
    start_time: Optional[str],
    end_time: Optional[str]
) -> TimeWindow:
    return TimeWindow(
        since=parse_date(since) if since else None,
        until=parse_date(until) if until else None,
        start_time=parse_time_of_day(start_time) if start_time else None,
        end_time=parse_time_of_day(end_time) if end_time else None
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        envvar="OCUSAGE_CONFIG",
        help="Path to a YAML config file"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging"
    )
):
    """Usage and cost reports for opencode."""
    _configure_logging(verbose)
    try:
        ctx.obj = load_report_config(config)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        err_console.print(f"[red]Error loading config:[/] {str(e)}", highlight=False)
        raise typer.Exit(code=EXIT_CODE_CONFIG_ERROR)

    if ctx.invoked_subcommand is None:
        console.print("ocusage - Use --help to see available commands")


@app.command()
def session(
    ctx: typer.Context,
    since: Optional[str] = SINCE_OPTION,
    until: Optional[str] = UNTIL_OPTION,
    start_time: Optional[str] = START_TIME_OPTION,
    end_time: Optional[str] = END_TIME_OPTION,
    json_output: bool = JSON_OPTION,
    xml_output: bool = XML_OPTION,
    show_models: bool = SHOW_MODELS_OPTION,
    data_dir: Optional[str] = DATA_DIR_OPTION
):
    """Generate a report of opencode session usage."""
    settings = _settings(ctx)
    repository = get_repository(settings.resolve_data_dir(data_dir))
    report = build_session_report(repository, _build_window(since, until, start_time, end_time))
    emit_report(
        report,
        settings.resolve_output(json_output, xml_output),
        settings.resolve_show_models(_explicit(ctx, "show_models", show_models)),
        console,
        err_console
    )


def _period_report(
    ctx: typer.Context,
    granularity: Granularity,
    window: TimeWindow,
    json_output: bool,
    xml_output: bool,
    show_models: bool,
    data_dir: Optional[str]
) -> None:
    settings = _settings(ctx)
    mode = settings.resolve_output(json_output, xml_output)
    if mode is OutputMode.TABLE:
        console.print(f"Generating {granularity.adjective} report...")

    repository = get_repository(settings.resolve_data_dir(data_dir))
    report = build_period_report(repository, granularity, window)
    show = settings.resolve_show_models(_explicit(ctx, "show_models", show_models))
    emit_report(report, mode, show, console, err_console)


@app.command()
def daily(
    ctx: typer.Context,
    since: Optional[str] = SINCE_OPTION,
    until: Optional[str] = UNTIL_OPTION,
    start_time: Optional[str] = START_TIME_OPTION,
    end_time: Optional[str] = END_TIME_OPTION,
    json_output: bool = JSON_OPTION,
    xml_output: bool = XML_OPTION,
    show_models: bool = SHOW_MODELS_OPTION,
    data_dir: Optional[str] = DATA_DIR_OPTION
):
    """Generate a daily report of opencode usage."""
    window = _build_window(since, until, start_time, end_time)
    _period_report(ctx, Granularity.DAY, window, json_output, xml_output, show_models, data_dir)


@app.command()
def weekly(
    ctx: typer.Context,
    since: Optional[str] = SINCE_OPTION,
    until: Optional[str] = UNTIL_OPTION,
    start_time: Optional[str] = START_TIME_OPTION,
    end_time: Optional[str] = END_TIME_OPTION,
    json_output: bool = JSON_OPTION,
    xml_output: bool = XML_OPTION,
    show_models: bool = SHOW_MODELS_OPTION,
    data_dir: Optional[str] = DATA_DIR_OPTION
):
    """Generate a weekly report of opencode usage."""
    window = _build_window(since, until, start_time, end_time)
    _period_report(ctx, Granularity.WEEK, window, json_output, xml_output, show_models, data_dir)


@app.command()
def monthly(
    ctx: typer.Context,
    since: Optional[str] = SINCE_OPTION,
    until: Optional[str] = UNTIL_OPTION,
    start_time: Optional[str] = START_TIME_OPTION,
    end_time: Optional[str] = END_TIME_OPTION,
    json_output: bool = JSON_OPTION,
    xml_output: bool = XML_OPTION,
    show_models: bool = SHOW_MODELS_OPTION,
    data_dir: Optional[str] = DATA_DIR_OPTION
):
    """Generate a monthly report of opencode usage."""
    window = _build_window(since, until, start_time, end_time)
    _period_report(ctx, Granularity.MONTH, window, json_output, xml_output, show_models, data_dir)


@app.command()
def hourly(
    ctx: typer.Context,
    since: Optional[str] = SINCE_OPTION,
    until: Optional[str] = UNTIL_OPTION,
    start_time: Optional[str] = START_TIME_OPTION,
    end_time: Optional[str] = END_TIME_OPTION,
    json_output: bool = JSON_OPTION,
    xml_output: bool = XML_OPTION,
    show_models: bool = SHOW_MODELS_OPTION,
    data_dir: Optional[str] = DATA_DIR_OPTION
):
    """Generate an hourly report of opencode usage."""
    window = _build_window(since, until, start_time, end_time)
    _period_report(ctx, Granularity.HOUR, window, json_output, xml_output, show_models, data_dir)


@app.command()
def minutely(
    ctx: typer.Context,
    since: Optional[str] = SINCE_OPTION,
    until: Optional[str] = UNTIL_OPTION,
    start_time: Optional[str] = START_TIME_OPTION,
    end_time: Optional[str] = END_TIME_OPTION,
    json_output: bool = JSON_OPTION,
    xml_output: bool = XML_OPTION,
    show_models: bool = SHOW_MODELS_OPTION,
    data_dir: Optional[str] = DATA_DIR_OPTION
):
    """Generate a per-minute report of opencode usage."""
    window = _build_window(since, until, start_time, end_time)
    _period_report(ctx, Granularity.MINUTE, window, json_output, xml_output, show_models, data_dir)


@app.command()
def today(
    ctx: typer.Context,
    json_output: bool = JSON_OPTION,
    xml_output: bool = XML_OPTION,
    show_models: bool = SHOW_MODELS_OPTION,
    data_dir: Optional[str] = DATA_DIR_OPTION
):
    """Generate a report for today's opencode usage."""
    local_today = date.today()
    window = TimeWindow(since=local_today, until=local_today)
    _period_report(ctx, Granularity.DAY, window, json_output, xml_output, show_models, data_dir)


@app.command()
def live(
    ctx: typer.Context,
    json_output: bool = JSON_OPTION,
    xml_output: bool = XML_OPTION,
    show_models: bool = SHOW_MODELS_OPTION,
    data_dir: Optional[str] = DATA_DIR_OPTION
):
    """(experimental) Monitor opencode usage in real-time."""
    settings = _settings(ctx)
    mode = settings.resolve_output(json_output, xml_output)
    show = settings.resolve_show_models(_explicit(ctx, "show_models", show_models))

    monitor = LiveMonitor(
        get_repository(settings.resolve_data_dir(data_dir)),
        output_mode=mode,
        show_models=show,
        console=console
    )
    try:
        monitor.run()
    except DataDirectoryNotFoundError as e:
        report = Report(kind=ReportKind.LIVE, status=ReportStatus.MISSING_DATA_DIR, error=str(e))
        emit_report(report, mode, show, console, err_console)
    except OSError as e:
        logger.error("Could not watch opencode data directory: %s", e)
        report = Report(kind=ReportKind.LIVE, status=ReportStatus.UNREADABLE_DATA_DIR, error=str(e))
        emit_report(report, mode, show, console, err_console)


if __name__ == "__main__":
    app()
