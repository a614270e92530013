"""CLI entry point for networth."""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from networth.commands.admin import init_command
from networth.commands.run import check_command, run_command

app = typer.Typer(
    name="networth",
    help="Net worth projection - simulate your balances month by month",
    add_completion=False,
)


def setup_logging(verbose: bool) -> None:
    """Send log records to stderr through rich, at DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )


@app.callback()
def main() -> None:
    """Net worth projection - simulate your balances month by month."""
    pass


@app.command()
def run(
    plan: str = typer.Argument(None, help="Plan file (default: default_plan from config)"),
    output: str = typer.Option(None, "--output", "-o", help="Output mode: end-only, yearly, monthly or json"),
    tax: bool = typer.Option(False, "--tax", help="Show yearly tax summaries and per-transaction tax"),
    flows: bool = typer.Option(False, "--flows", help="Show each transaction in monthly output"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Project your plan forward and show the results."""
    setup_logging(verbose)
    run_command(plan, output, tax, flows)


@app.command()
def check(
    plan: str = typer.Argument(None, help="Plan file (default: default_plan from config)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Validate your plan without running it."""
    setup_logging(verbose)
    check_command(plan)


@app.command(name="init")
def init(
    directory: str = typer.Argument(..., help="Directory to write the example plan to"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing plan"),
    start_year: int = typer.Option(2025, "--start-year", help="First year of the example plan"),
) -> None:
    """Write an example plan and make it your default."""
    init_command(directory, force, start_year)


if __name__ == "__main__":
    app()
