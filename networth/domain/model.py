"""The simulation driver.

A Model is built once from fully resolved domain objects, validated, and run
exactly once over a range of years. Two orderings are strict:
- Months within a category-year: each month starts from the previous month's
  ending balance, and every flow in a month sees the same starting balance.
- Years within a run: a year's tax adjustment flow is added to the tax
  category before the next year is simulated.
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Sequence

from networth.domain.asset import Category, CategoryValue, Tx
from networth.domain.errors import ModelValidationError, NetWorthError, SimulationError
from networth.domain.flow import Flow
from networth.domain.models import TAX_ADJUSTMENT_FLOW, CategoryName, FlowName
from networth.domain.money import Money
from networth.domain.tax import AnnualTaxPolicy, TaxAdjustment, TaxSummary
from networth.domain.time import Month, Year, YearRange

logger = logging.getLogger(__name__)

CategoriesSnapshot = dict[CategoryName, Money]


@dataclass(frozen=True)
class MonthlyReport:
    start_value: Money
    # Ending balance after this month's transactions
    value: Money
    transactions: dict[FlowName, Tx]


@dataclass(frozen=True)
class YearlyReport:
    category_summary: dict[CategoryName, dict[Month, MonthlyReport]]
    tax_summary: TaxSummary
    tax_adjustment: TaxAdjustment
    start_values: CategoriesSnapshot
    end_values: CategoriesSnapshot


@dataclass(frozen=True)
class ModelReport:
    years: dict[Year, YearlyReport]
    start_values: CategoriesSnapshot
    end_values: CategoriesSnapshot


def snapshot(category_values: Sequence[CategoryValue]) -> CategoriesSnapshot:
    return {category_value.name: category_value.value for category_value in category_values}


class CategoryModel:
    """Simulates one category's flows against its running balance."""

    def __init__(self, category_value: CategoryValue, flows: Sequence[Flow]) -> None:
        self.category_value = category_value
        self.flows = flows

    def run(self, year: Year) -> dict[Month, MonthlyReport]:
        """Simulate every month of a year, mutating the running balance.

        Raises:
            SimulationError: If any flow fails to evaluate.
        """
        reports: dict[Month, MonthlyReport] = {}
        for time in year.months():
            start_value = self.category_value.value
            transactions: dict[FlowName, Tx] = {}

            for flow in self.flows:
                if not flow.applies_at(time):
                    continue
                if flow.name in transactions:
                    raise SimulationError(f"Two flows named {flow.name!r} apply in {time}")
                try:
                    transactions[flow.name] = flow.calculate_transaction(self.category_value, time)
                except NetWorthError as e:
                    raise SimulationError(f"Failed to simulate category {self.category_value.name!r}") from e

            self.category_value.apply(Money.sum(tx.amount for tx in transactions.values()))
            reports[time.month] = MonthlyReport(
                start_value=start_value,
                value=self.category_value.value,
                transactions=transactions,
            )
        return reports


class Model:
    """Projects category balances forward year by year."""

    def __init__(
        self,
        flows: Mapping[CategoryName, Sequence[Flow]],
        categories: Sequence[Category],
        tax_policy: AnnualTaxPolicy,
        tax_category: CategoryName,
    ) -> None:
        self.flows: dict[CategoryName, list[Flow]] = {name: list(f) for name, f in flows.items()}
        self.categories = list(categories)
        self.tax_policy = tax_policy
        self.tax_category = tax_category
        self._has_run = False

        try:
            self.validate()
        except ModelValidationError as e:
            raise ModelValidationError("Provided inputs were invalid") from e

    def validate(self) -> None:
        """Check every referenced category exists and flow names are unambiguous.

        Raises:
            ModelValidationError: On the first problem found.
        """
        names = [category.name for category in self.categories]
        valid = set(names)
        options = ", ".join(names)

        if len(valid) != len(names):
            duplicates = sorted({name for name in names if names.count(name) > 1})
            raise ModelValidationError(f"Categories listed more than once: {', '.join(duplicates)}")

        if self.tax_category not in valid:
            raise ModelValidationError(
                f'Tax category "{self.tax_category}" was not found in provided categories. Options are {options}'
            )

        for category, flows in self.flows.items():
            flow_names = [flow.name for flow in flows]
            if category not in valid:
                raise ModelValidationError(
                    f'Flows ({", ".join(flow_names)}) found with unknown category "{category}". '
                    f"Options are {options}"
                )

            seen: set[FlowName] = set()
            for flow_name in flow_names:
                if flow_name in seen:
                    raise ModelValidationError(f'Flow "{flow_name}" is defined more than once in category "{category}"')
                seen.add(flow_name)

            if category == self.tax_category and TAX_ADJUSTMENT_FLOW in seen:
                raise ModelValidationError(
                    f'Flow name "{TAX_ADJUSTMENT_FLOW}" is reserved in the tax category "{category}"'
                )

    def run(self, years: YearRange) -> ModelReport:
        """Simulate every year in the range, in order.

        Args:
            years: Half-open range of years to simulate.

        Returns:
            ModelReport with one YearlyReport per simulated year.

        Raises:
            SimulationError: If the model was already run or any year fails.
        """
        if self._has_run:
            raise SimulationError("Model has already been run")
        self._has_run = True

        category_values = [category.value() for category in self.categories]
        start_values = snapshot(category_values)

        reports: dict[Year, YearlyReport] = {}
        for year in years:
            try:
                report, tax_flow = self.run_year(year, category_values)
            except NetWorthError as e:
                raise SimulationError(f"Failed to run year {year}") from e

            # Next year's simulation picks up this year's tax outcome
            self.flows.setdefault(self.tax_category, []).append(tax_flow)
            reports[year] = report

        return ModelReport(years=reports, start_values=start_values, end_values=snapshot(category_values))

    def run_year(self, year: Year, category_values: list[CategoryValue]) -> tuple[YearlyReport, Flow]:
        """Simulate one year for every category that has flows.

        Args:
            year: Year to simulate.
            category_values: Running balances, mutated in place.

        Returns:
            Tuple of (report, tax_flow). The caller must add tax_flow to the
            tax category before simulating the next year.
        """
        logger.debug("Simulating year %s", year)
        start_values = snapshot(category_values)
        category_summary: dict[CategoryName, dict[Month, MonthlyReport]] = {}
        tax_summary = TaxSummary()

        for category_value in category_values:
            flows = self.flows.get(category_value.name)
            if not flows:
                continue

            monthly = CategoryModel(category_value, flows).run(year)
            category_summary[category_value.name] = monthly

            for month_report in monthly.values():
                for tx in month_report.transactions.values():
                    tax_summary.apply_tx(tx.tax_tx, tx.amount)

        try:
            adjustment, tax_flow = self.tax_policy.calculate_adjustment(year, tax_summary)
        except NetWorthError as e:
            raise SimulationError(f"Failed to reconcile tax for {year}") from e

        logger.debug(
            "Tax for %s: owed %s, withheld %s, delta %s",
            year,
            adjustment.owed,
            adjustment.withheld,
            adjustment.delta,
        )

        report = YearlyReport(
            category_summary=category_summary,
            tax_summary=tax_summary,
            tax_adjustment=adjustment,
            start_values=start_values,
            end_values=snapshot(category_values),
        )
        return report, tax_flow
