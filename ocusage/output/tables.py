"""
Table rendering for the terminal.

Builds rich tables for session and period reports, with optional per-model
sub-rows and a grand total row.
"""

from typing import List

from rich.markup import escape
from rich.table import Table

from ocusage.core.aggregation import AggregatedUsage, ModelUsage
from ocusage.core.reports import Report, ReportKind

NUMERIC_HEADERS = ["Total Cost", "Input Tokens", "Output Tokens", "Cache Read", "Cache Write"]


def format_cost(amount: float) -> str:
    """Format a cost with six decimals, e.g. ``$ 0.030000``."""
    return f"$ {amount:.6f}"


def _usage_cells(usage: AggregatedUsage) -> List[str]:
    return [
        format_cost(usage.total_cost),
        str(usage.total_input_tokens),
        str(usage.total_output_tokens),
        str(usage.total_cache_read_tokens),
        str(usage.total_cache_write_tokens),
    ]


def _model_cells(model: ModelUsage) -> List[str]:
    return [
        format_cost(model.cost),
        str(model.input_tokens),
        str(model.output_tokens),
        str(model.cache_read_tokens),
        str(model.cache_write_tokens),
    ]


def _new_table(leading_headers: List[str]) -> Table:
    table = Table(show_lines=False)
    for header in leading_headers:
        table.add_column(header, overflow="fold")
    for header in NUMERIC_HEADERS:
        table.add_column(header, justify="right", no_wrap=True)
    return table


def build_session_table(report: Report, show_models: bool = True, show_total: bool = True) -> Table:
    """Session ID, Title, Created, then the usage columns."""
    table = _new_table(["Session ID", "Title", "Created"])

    for entry in report.entries:
        table.add_row(escape(entry.id), escape(entry.title), entry.created, *_usage_cells(entry.usage))
        if show_models:
            for model_id, model in entry.usage.models.items():
                table.add_row("", f"  Model: {escape(model_id)}", "", *_model_cells(model), style="dim")

    if show_total:
        table.add_section()
        table.add_row("Total", "", "", *_usage_cells(report.totals()), style="bold")
    return table


def build_period_table(report: Report, show_models: bool = True, show_total: bool = True) -> Table:
    """Date/Period, then the usage columns."""
    table = _new_table(["Date/Period"])

    for entry in report.entries:
        table.add_row(escape(entry.period), *_usage_cells(entry.usage))
        if show_models:
            for model_id, model in entry.usage.models.items():
                table.add_row(f"  Model: {escape(model_id)}", *_model_cells(model), style="dim")

    if show_total:
        table.add_section()
        table.add_row("Total", *_usage_cells(report.totals()), style="bold")
    return table


def build_table(report: Report, show_models: bool = True) -> Table:
    """Table for any report kind; live reports carry no total row."""
    if report.kind is ReportKind.PERIOD:
        return build_period_table(report, show_models)
    return build_session_table(report, show_models, show_total=report.kind is ReportKind.SESSION)
