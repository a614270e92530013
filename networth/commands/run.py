"""Run and check commands for projecting a plan."""

import json
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from networth.config import OUTPUT_MODES, get_setting
from networth.dates import time_range_label
from networth.domain.errors import NetWorthError, format_error_chain
from networth.domain.model import ModelReport, YearlyReport
from networth.domain.money import Money
from networth.domain.report import NetWorthSummary, monthly_rows, report_to_dict, summarize_changes
from networth.domain.time import TimeRange, Year
from networth.plan import Plan, load_plan

console = Console()


def resolve_plan_path(plan_path: str | None) -> Path:
    """Pick the plan to use: the argument if given, else the configured default."""
    if plan_path:
        return Path(plan_path).expanduser()

    default_plan = get_setting("default_plan")
    if not default_plan:
        console.print("[red]No plan given and no default_plan configured.[/red]", style="bold")
        console.print("[dim]Pass a plan file or run 'networth init DIRECTORY' first[/dim]")
        sys.exit(1)

    return Path(default_plan).expanduser()


def resolve_output(output: str | None) -> str:
    """Pick the output mode: the option if given, else the configured one, else yearly."""
    mode = output or get_setting("output") or "yearly"
    if mode not in OUTPUT_MODES:
        console.print(f"[red]Unknown output mode '{mode}'. Options are {', '.join(OUTPUT_MODES)}[/red]", style="bold")
        sys.exit(1)
    return mode


def load_or_exit(plan_path: Path) -> Plan:
    try:
        return load_plan(plan_path)
    except NetWorthError as e:
        console.print(f"[red]Error: {escape(format_error_chain(e))}[/red]", style="bold")
        sys.exit(1)


def format_delta(delta: Money) -> str:
    if delta.cents > 0:
        return f"[green]+{delta}[/green]"
    if delta.cents < 0:
        return f"[red]{delta}[/red]"
    return str(delta)


def render_summary(title: str, summary: NetWorthSummary) -> None:
    table = Table(title=title)
    table.add_column("Category", style="cyan")
    table.add_column("Start", justify="right")
    table.add_column("End", justify="right")
    table.add_column("Change", justify="right")

    for change in summary.changes:
        table.add_row(change.category, str(change.start), str(change.end), format_delta(change.delta))

    table.add_section()
    table.add_row(
        "[bold]Total[/bold]",
        f"[bold]{summary.total_start}[/bold]",
        f"[bold]{summary.total_end}[/bold]",
        format_delta(summary.total_delta),
    )
    console.print(table)


def render_tax(year: Year, yearly: YearlyReport) -> None:
    adjustment = yearly.tax_adjustment
    summary = yearly.tax_summary

    table = Table(title=f"Tax {year}", show_header=False)
    table.add_column("Item", style="cyan")
    table.add_column("Amount", justify="right")
    table.add_row("Net income", str(summary.net_amount))
    table.add_row("Taxable income", str(summary.taxable_income))
    table.add_row("Tax withheld", str(adjustment.withheld))
    table.add_row("Tax owed", str(adjustment.owed))
    table.add_row("Refund / (debt)", format_delta(adjustment.delta))
    table.add_row("Effective rate", str(adjustment.effective_rate))
    console.print(table)


def render_months(year: Year, yearly: YearlyReport, show_flows: bool, show_tax: bool) -> None:
    for row in monthly_rows(year, yearly):
        console.print(f"[bold]{row.time}[/bold] {row.category}: {row.start} → {row.end} ({format_delta(row.delta)})")
        if not show_flows:
            continue

        for flow_name, tx in row.transactions:
            line = f"    {flow_name}: {tx.amount}"
            if show_tax:
                line += f" [dim](taxable {tx.tax_tx.taxable_income}, withheld {tx.tax_tx.tax_withheld})[/dim]"
            console.print(line)


def render_report(report: ModelReport, output: str, show_tax: bool, show_flows: bool) -> None:
    """Render a finished run in one of the non-JSON output modes."""
    if output != "end-only":
        for year, yearly in report.years.items():
            if output == "monthly":
                render_months(year, yearly, show_flows, show_tax)
            render_summary(f"Year {year}", summarize_changes(yearly.start_values, yearly.end_values))
            if show_tax:
                render_tax(year, yearly)

    render_summary("Net worth", summarize_changes(report.start_values, report.end_values))


def run_command(
    plan_path: str | None = None,
    output: str | None = None,
    show_tax: bool = False,
    show_flows: bool = False,
) -> None:
    """Load a plan, run it and render the report."""
    path = resolve_plan_path(plan_path)
    mode = resolve_output(output)
    plan = load_or_exit(path)

    try:
        report = plan.model.run(plan.years)
    except NetWorthError as e:
        console.print(f"[red]Error: {escape(format_error_chain(e))}[/red]", style="bold")
        sys.exit(1)

    if mode == "json":
        # Plain echo keeps the JSON free of console markup and wrapping
        typer.echo(json.dumps(report_to_dict(report), indent=2))
        return

    console.print(f"[dim]Plan: {path}[/dim]")
    console.print(f"[dim]Years: {plan.years.start} until {plan.years.end}[/dim]\n")
    render_report(report, mode, show_tax, show_flows)


def check_command(plan_path: str | None = None) -> None:
    """Load and validate a plan without running it."""
    path = resolve_plan_path(plan_path)
    plan = load_or_exit(path)
    model = plan.model

    flow_count = sum(len(flows) for flows in model.flows.values())
    first_start = min((flow.start for flows in model.flows.values() for flow in flows), default=None)
    last_end = max((flow.end for flows in model.flows.values() for flow in flows), default=None)

    console.print(f"[green]✓[/green] Plan is valid: {path}")
    console.print(f"  Categories: {len(model.categories)}")
    console.print(f"  Flows: {flow_count}")
    console.print(f"  Years: {plan.years.start} until {plan.years.end}")
    if first_start is not None and last_end is not None:
        console.print(f"  Flows span: {time_range_label(TimeRange(first_start, last_end))}")
    console.print(f"  Tax category: {model.tax_category}")

