"""Admin command for creating an example plan."""

import os
import sys
from pathlib import Path
from typing import Any

import tomli_w
from rich.console import Console

from networth.config import get_config_path, set_setting
from networth.dates import format_time
from networth.domain.time import Month, Time

console = Console()

PLAN_FILE = "plan.toml"


def example_plan_files(start_year: int) -> dict[str, dict[str, Any]]:
    """Build the documents of a small but complete example plan.

    Args:
        start_year: First simulated year.

    Returns:
        Mapping of file name to TOML document.
    """
    start = Time.of(start_year, Month.JANUARY)
    switch = Time.of(start_year + 3, Month.JANUARY)
    end_year = start_year + 6

    plan = {
        "time_range": {"start": start_year, "end": end_year},
        "tax": {"policy": "fixed_rate", "rate": "30", "standard_deduction": 12000},
        "common": {
            "categories": ["Cash", "Savings", "Investments", "House", "Mortgage"],
            "tax_category": "Cash",
            "assets_file": "assets.toml",
            "flows_file": "flows.toml",
            "times_file": "times.toml",
            "tables_file": "tables.toml",
            "events_file": "events.toml",
        },
    }

    assets = {
        "Everyday account": {"category": "Cash", "value": 8000},
        "Emergency fund": {"category": "Savings", "value": 15000},
        "House deposit": {"category": "Savings", "value": 110000},
        "Index fund": {"category": "Investments", "value": 40000},
    }

    times = {
        "plan_start": {"year": start_year, "month": "January"},
        "plan_end": {"year": end_year, "month": "January"},
        "house_purchase": {"year": start_year + 2, "month": "July"},
        "mortgage_end": {"year": start_year + 32, "month": "July"},
    }

    tables = {
        "index_returns": [
            {"start": "plan_start", "end": format_time(switch), "rate": "0.5"},
            {"start": format_time(switch), "end": "plan_end", "rate": "0.4"},
        ],
        "rent": [
            {"start": "plan_start", "end": "house_purchase", "dollars": -2200},
        ],
    }

    flows = {
        "Salary": {
            "description": "Take-home pay",
            "category": "Cash",
            "start": "plan_start",
            "end": "plan_end",
            "frequency": "monthly",
            "value": {"type": "fixed", "value": 7500},
            "tax": {"policy": "fixed_rate", "rate": "28"},
        },
        "Living costs": {
            "description": "Groceries, bills and transport",
            "category": "Cash",
            "start": "plan_start",
            "end": "plan_end",
            "frequency": "monthly",
            "value": {"type": "fixed", "value": -2500},
            "tax": {"policy": "tax_exempt"},
        },
        "Rent": {
            "description": "Rent until the house purchase",
            "category": "Cash",
            "start": "plan_start",
            "end": "house_purchase",
            "frequency": "monthly",
            "value": {"type": "table", "table": "rent"},
            "tax": {"policy": "tax_exempt"},
        },
        "Insurance": {
            "description": "Yearly contents insurance",
            "category": "Cash",
            "start": format_time(start),
            "end": "plan_end",
            "frequency": "yearly",
            "value": {"type": "fixed", "value": "-950.50"},
            "tax": {"policy": "tax_exempt"},
        },
        "Savings interest": {
            "description": "Interest on savings",
            "category": "Savings",
            "start": "plan_start",
            "end": "plan_end",
            "frequency": "monthly",
            "value": {"type": "rate", "rate": "0.3"},
            "tax": {"policy": "no_withholding"},
        },
        "Index returns": {
            "description": "Monthly growth of the index fund",
            "category": "Investments",
            "start": "plan_start",
            "end": "plan_end",
            "frequency": "monthly",
            "value": {"type": "rate_table", "table": "index_returns"},
            "tax": {"policy": "partially_taxed", "taxed_proportion": "50", "withholding_rate": "0"},
        },
    }

    events = {
        "Investment top up": {
            "type": "transfer",
            "source": "Cash",
            "target": "Investments",
            "time": {"year": start_year, "month": "June"},
            "value": 5000,
        },
        "Home": {
            "type": "house_purchase",
            "start": "house_purchase",
            "end": "mortgage_end",
            "mortgage_rate": "6.5",
            "purchase_price": 550000,
            "setup_cost": 6000,
            "down_payment": 100000,
            "house_value_category": "House",
            "mortgage_category": "Mortgage",
            "down_payment_category": "Savings",
            "regular_payment_category": "Cash",
        },
    }

    return {
        PLAN_FILE: plan,
        "assets.toml": assets,
        "times.toml": times,
        "tables.toml": tables,
        "flows.toml": flows,
        "events.toml": events,
    }


def write_plan_files(directory: Path, documents: dict[str, dict[str, Any]]) -> list[Path]:
    """Write each document as a TOML file in directory."""
    directory.mkdir(parents=True, exist_ok=True)

    written = []
    for name, document in documents.items():
        path = directory / name
        with open(path, "wb") as f:
            tomli_w.dump(document, f)
        written.append(path)
    return written


def init_command(directory: str, force: bool = False, start_year: int = 2025) -> None:
    """Write an example plan and make it the default plan."""
    target = Path(directory).expanduser()
    plan_path = target / PLAN_FILE

    # Guard: refuse to overwrite without force flag
    if plan_path.exists() and not force:
        console.print("[red]Initialization failed:[/red]", style="bold")
        console.print(f"  Plan already exists: {plan_path}")
        console.print("\n[yellow]Use 'networth init --force' to overwrite[/yellow]")
        sys.exit(1)

    try:
        console.print(f"[cyan]Writing example plan to {target}...[/cyan]")
        for path in write_plan_files(target, example_plan_files(start_year)):
            console.print(f"[green]✓[/green] {path.name}")

        set_setting("default_plan", os.fspath(plan_path.resolve()))
    except OSError as e:
        console.print(f"[red]Initialization failed: {e}[/red]", style="bold")
        sys.exit(1)

    console.print("\n[green]Initialization complete![/green]", style="bold")
    console.print(f"[dim]Plan: {plan_path}[/dim]")
    console.print(f"[dim]Config: {get_config_path()}[/dim]")
    console.print("[dim]Run 'networth run' to project it[/dim]")
