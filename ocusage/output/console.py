"""
Report output.

Writes a built report to the console in the requested mode, including the
"no data" messages for missing data directories and empty session lists.
"""

from typing import Optional

from rich.console import Console
from rich.markup import escape

from ocusage.config.loader import OutputMode
from ocusage.core.reports import Report, ReportKind, ReportStatus
from .serializers import entries_to_xml, message_document, to_json, to_xml_node
from .tables import build_table

INSTALL_URL = "https://github.com/sst/opencode"

_EMPTY_XML_MESSAGE = {
    ReportKind.SESSION: "No sessions found",
    ReportKind.PERIOD: "No data found",
    ReportKind.LIVE: "No sessions found",
}


def render_report(report: Report, mode: OutputMode, show_models: bool = True) -> str:
    """Serialize report entries as JSON or XML."""
    if mode is OutputMode.XML:
        nodes = [to_xml_node(entry.to_dict(show_models)) for entry in report.entries]
        return entries_to_xml(report.kind.root_tag, nodes)
    return to_json([entry.to_dict(show_models) for entry in report.entries])


def _print_missing_data_dir(report: Report, err_console: Console) -> None:
    err_console.print(f"[red]Error:[/] {escape(report.error or '')}", highlight=False, soft_wrap=True)
    err_console.print("\nTo use ocusage, you need opencode installed and some usage data generated.")
    err_console.print(f"Visit: {INSTALL_URL} for installation instructions.")


def _print_no_sessions(report: Report, console: Console) -> None:
    if report.kind is ReportKind.PERIOD:
        console.print("No opencode usage data found.")
        console.print("\nTo generate usage data:")
        last_step = "3. Run ocusage again to see your usage statistics"
    else:
        console.print("No opencode session data found.")
        console.print("\nTo generate session data:")
        last_step = "3. Run ocusage session to see your session statistics"
    console.print(f"1. Install opencode: {INSTALL_URL}")
    console.print("2. Use opencode to generate some coding sessions")
    console.print(last_step)


def emit_report(
    report: Report,
    mode: OutputMode,
    show_models: bool = True,
    console: Optional[Console] = None,
    err_console: Optional[Console] = None
) -> None:
    """Print a report to the console.

    Machine-readable modes are written with ``Console.out``, which applies
    no markup or wrapping, so the output stays valid JSON or XML.
    """
    console = console or Console()
    err_console = err_console or Console(stderr=True)

    if report.status in (ReportStatus.MISSING_DATA_DIR, ReportStatus.UNREADABLE_DATA_DIR):
        if mode is OutputMode.JSON:
            console.out("[]", highlight=False)
        else:
            _print_missing_data_dir(report, err_console)
        return

    if report.status is ReportStatus.NO_SESSIONS:
        if mode is OutputMode.JSON:
            console.out("[]", highlight=False)
        elif mode is OutputMode.XML:
            console.out(message_document(report.kind.root_tag, _EMPTY_XML_MESSAGE[report.kind]), highlight=False)
        else:
            _print_no_sessions(report, console)
        return

    if mode is OutputMode.TABLE:
        console.print(build_table(report, show_models))
    else:
        console.out(render_report(report, mode, show_models), highlight=False)
