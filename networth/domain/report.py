"""Pure functions for turning simulation output into presentable data.

This module contains the functional core for reporting:
- No I/O operations (no console, no files)
- No side effects
- Pure data transformations
- Easy to test

All monetary amounts are Money values (exact cents).
"""

from dataclasses import dataclass
from typing import Any

from networth.domain.asset import Tx
from networth.domain.model import CategoriesSnapshot, ModelReport, MonthlyReport, YearlyReport
from networth.domain.models import CategoryName, FlowName
from networth.domain.money import Money
from networth.domain.tax import TaxAdjustment, TaxSummary
from networth.domain.time import Time, Year


@dataclass(frozen=True)
class CategoryChange:
    """Immutable change in one category's balance over a period."""

    category: CategoryName
    start: Money
    end: Money
    delta: Money


@dataclass(frozen=True)
class NetWorthSummary:
    """Immutable per-category and total change over a period."""

    changes: list[CategoryChange]
    total_start: Money
    total_end: Money
    total_delta: Money


@dataclass(frozen=True)
class MonthRow:
    """Immutable view of one category in one month."""

    time: Time
    category: CategoryName
    start: Money
    end: Money
    delta: Money
    transactions: list[tuple[FlowName, Tx]]


def summarize_changes(start: CategoriesSnapshot, end: CategoriesSnapshot) -> NetWorthSummary:
    """Compare two balance snapshots.

    Args:
        start: Balances at the start of the period.
        end: Balances at the end of the period.

    Returns:
        NetWorthSummary with categories sorted by name.

    Raises:
        ValueError: If the snapshots don't cover the same categories.
    """
    if start.keys() != end.keys():
        missing = sorted(start.keys() ^ end.keys())
        raise ValueError(f"Snapshots don't cover the same categories: {', '.join(missing)}")

    changes = [
        CategoryChange(
            category=category,
            start=start[category],
            end=end[category],
            delta=end[category] - start[category],
        )
        for category in sorted(start)
    ]

    total_start = Money.sum(change.start for change in changes)
    total_end = Money.sum(change.end for change in changes)

    return NetWorthSummary(
        changes=changes,
        total_start=total_start,
        total_end=total_end,
        total_delta=total_end - total_start,
    )


def monthly_rows(year: Year, yearly_report: YearlyReport) -> list[MonthRow]:
    """Flatten a year's category summaries into month-major rows.

    Args:
        year: The year the report covers.
        yearly_report: Report for that year.

    Returns:
        Rows ordered by month, then by category in simulation order.
    """
    rows: list[MonthRow] = []
    for time in year.months():
        for category, months in yearly_report.category_summary.items():
            month_report = months.get(time.month)
            if month_report is None:
                continue
            rows.append(
                MonthRow(
                    time=time,
                    category=category,
                    start=month_report.start_value,
                    end=month_report.value,
                    delta=month_report.value - month_report.start_value,
                    transactions=list(month_report.transactions.items()),
                )
            )
    return rows


def money_to_dict(money: Money) -> dict[str, Any]:
    return {"cents": money.as_cents(), "display": str(money)}


def _snapshot_to_dict(snapshot: CategoriesSnapshot) -> dict[str, Any]:
    return {category: money_to_dict(value) for category, value in snapshot.items()}


def _tx_to_dict(tx: Tx) -> dict[str, Any]:
    return {
        "amount": money_to_dict(tx.amount),
        "taxable_income": money_to_dict(tx.tax_tx.taxable_income),
        "tax_withheld": money_to_dict(tx.tax_tx.tax_withheld),
    }


def _month_to_dict(month_report: MonthlyReport) -> dict[str, Any]:
    return {
        "start_value": money_to_dict(month_report.start_value),
        "value": money_to_dict(month_report.value),
        "transactions": {name: _tx_to_dict(tx) for name, tx in month_report.transactions.items()},
    }


def _tax_to_dict(summary: TaxSummary, adjustment: TaxAdjustment) -> dict[str, Any]:
    return {
        "net_amount": money_to_dict(summary.net_amount),
        "taxable_income": money_to_dict(summary.taxable_income),
        "tax_withheld": money_to_dict(summary.tax_withheld),
        "owed": money_to_dict(adjustment.owed),
        "withheld": money_to_dict(adjustment.withheld),
        "delta": money_to_dict(adjustment.delta),
        "effective_rate": str(adjustment.effective_rate),
    }


def report_to_dict(report: ModelReport) -> dict[str, Any]:
    """Convert a model report into JSON-ready data.

    Money is rendered as integer cents plus a display string so consumers
    never need floats. Years and months are keyed by their display names.
    """
    years: dict[str, Any] = {}
    for year, yearly in report.years.items():
        years[str(year)] = {
            "start_values": _snapshot_to_dict(yearly.start_values),
            "end_values": _snapshot_to_dict(yearly.end_values),
            "categories": {
                category: {str(month): _month_to_dict(month_report) for month, month_report in months.items()}
                for category, months in yearly.category_summary.items()
            },
            "tax": _tax_to_dict(yearly.tax_summary, yearly.tax_adjustment),
        }

    return {
        "start_values": _snapshot_to_dict(report.start_values),
        "end_values": _snapshot_to_dict(report.end_values),
        "years": years,
    }
