"""Tests for networth.domain.model, the simulation driver."""

import logging

import pytest

from networth.domain.asset import Asset, Category
from networth.domain.errors import ModelValidationError, SimulationError, format_error_chain
from networth.domain.flow import FixedFlow, Flow, RateFlow, TableFlow
from networth.domain.lookup_table import LookupTable
from networth.domain.model import Model
from networth.domain.models import TAX_ADJUSTMENT_FLOW, AssetName, CategoryName, FlowName
from networth.domain.money import Money, Rate
from networth.domain.tax import FixedRateTaxPolicy, TaxAdjustment
from networth.domain.time import Frequency, Month, Time, TimeRange, Year
from networth.domain.withholding import ConstantRate

C1 = CategoryName("c1")
C2 = CategoryName("c2")


def flow(name: str, month: Month, frequency: Frequency, dollars: int) -> Flow:
    """A 10%-withheld flow running two years from month of 2021."""
    return Flow(
        name=FlowName(name),
        description=f"Flow {name}",
        start=Time.of(2021, month),
        end=Time.of(2023, month),
        frequency=frequency,
        value=FixedFlow(Money.from_dollars(dollars)),
        tax_policy=ConstantRate(Rate.from_percent(10)),
    )


def categories() -> list[Category]:
    return [
        Category.from_assets(C1, [Asset(AssetName("a1"), Money.from_dollars(123))]),
        Category.from_assets(C2, [Asset(AssetName("a2"), Money.from_dollars(456))]),
    ]


def tax_policy() -> FixedRateTaxPolicy:
    return FixedRateTaxPolicy(rate=Rate.from_percent(35), deduction=Money.from_dollars(3000))


@pytest.fixture
def model() -> Model:
    return Model(
        flows={
            C1: [
                flow("0", Month.JANUARY, Frequency.MONTHLY, 1),
                flow("1", Month.JANUARY, Frequency.MONTHLY, 20),
                flow("2", Month.MARCH, Frequency.QUARTERLY, 300),
                flow("3", Month.JULY, Frequency.YEARLY, 4000),
            ],
            C2: [
                flow("4", Month.FEBRUARY, Frequency.MONTHLY, 5),
                flow("5", Month.MARCH, Frequency.MONTHLY, 60),
                flow("6", Month.MAY, Frequency.QUARTERLY, 700),
                flow("7", Month.JULY, Frequency.YEARLY, 8000),
            ],
        },
        categories=categories(),
        tax_policy=tax_policy(),
        tax_category=C1,
    )


YEARS = TimeRange(Year(2020), Year(2024))


class TestModelRun:
    """End-to-end tests for Model.run."""

    def test_reports_every_year(self, model: Model) -> None:
        """Should produce one report per simulated year."""
        report = model.run(YEARS)

        assert list(report.years) == [Year(2020), Year(2021), Year(2022), Year(2023)]

    def test_monthly_balances(self, model: Model) -> None:
        """Should carry each month's ending balance into the next month."""
        c1 = model.run(YEARS).years[Year(2021)].category_summary[C1]

        assert c1[Month.JANUARY].start_value == Money.from_dollars(123)
        assert c1[Month.JANUARY].value == Money(14190)
        assert c1[Month.FEBRUARY].value == Money(16080)
        assert c1[Month.MARCH].value == Money(44970)
        assert c1[Month.APRIL].value == Money(46860)
        assert c1[Month.APRIL].start_value == c1[Month.MARCH].value

    @pytest.mark.parametrize(
        ("year", "category", "balances"),
        [
            (2020, C1, [12300] * 12),
            (2020, C2, [45600] * 12),
            (
                2021,
                C1,
                [14190, 16080, 44970, 46860, 48750, 77640, 439530, 441420, 470310, 472200, 474090, 502980],
            ),
            (
                2021,
                C2,
                [45600, 46050, 51900, 57750, 126600, 132450, 858300, 927150, 933000, 938850, 1007700, 1013550],
            ),
            # April carries the -$3,001.75 adjustment for 2021
            (
                2022,
                C1,
                [504870, 506760, 535650, 237365, 239255, 268145, 630035, 631925, 660815, 662705, 664595, 693485],
            ),
            (
                2022,
                C2,
                [1019400, 1088250, 1094100, 1099950, 1168800, 1174650]
                + [1900500, 1969350, 1975200, 1981050, 2049900, 2055750],
            ),
            (2023, C1, [693485] * 3 + [372685] * 9),
            (2023, C2, [2061600] + [2130000] * 11),
        ],
    )
    def test_every_month_balance(self, model: Model, year: int, category: CategoryName, balances: list[int]) -> None:
        """Should end every month of every year on the exact balance."""
        months = model.run(YEARS).years[Year(year)].category_summary[category]

        assert [months[month].value for month in Month] == [Money(cents) for cents in balances]
        for previous, month in zip(Month, list(Month)[1:]):
            assert months[month].start_value == months[previous].value

    def test_other_category_balances(self, model: Model) -> None:
        """Should only apply flows inside their windows."""
        c2 = model.run(YEARS).years[Year(2021)].category_summary[C2]

        assert c2[Month.JANUARY].value == Money.from_dollars(456)
        assert c2[Month.JANUARY].transactions == {}
        assert c2[Month.FEBRUARY].value == Money(46050)
        assert c2[Month.MARCH].value == Money(51900)

    def test_transactions_are_net_of_withholding(self, model: Model) -> None:
        """Should record the net amount and the tax withheld per flow."""
        c1 = model.run(YEARS).years[Year(2021)].category_summary[C1]
        tx = c1[Month.MARCH].transactions[FlowName("2")]

        assert tx.amount == Money.from_dollars(270)
        assert tx.tax_tx.taxable_income == Money.from_dollars(300)
        assert tx.tax_tx.tax_withheld == Money.from_dollars(30)

    def test_tax_adjustments(self, model: Model) -> None:
        """Should reconcile each year's tax exactly."""
        years = model.run(YEARS).years

        assert years[Year(2020)].tax_adjustment == TaxAdjustment(
            owed=Money.zero(), withheld=Money.zero(), delta=Money.zero(), effective_rate=Rate.zero()
        )
        assert years[Year(2021)].tax_adjustment == TaxAdjustment(
            owed=Money(462245),
            withheld=Money(162070),
            delta=Money(-300175),
            effective_rate=Rate.from_percent(35),
        )
        assert years[Year(2022)].tax_adjustment.owed == Money(491120)
        assert years[Year(2022)].tax_adjustment.withheld == Money(170320)
        assert years[Year(2022)].tax_adjustment.delta == Money(-320800)
        assert years[Year(2023)].tax_adjustment == TaxAdjustment(
            owed=Money.zero(), withheld=Money(8250), delta=Money(8250), effective_rate=Rate.zero()
        )

    def test_tax_summary(self, model: Model) -> None:
        """Should total taxable income across all categories."""
        summary = model.run(YEARS).years[Year(2021)].tax_summary

        assert summary.taxable_income == Money.from_dollars(16207)
        assert summary.tax_withheld == Money(162070)
        assert summary.net_amount == Money(1458630)

    def test_adjustment_settles_next_april(self, model: Model) -> None:
        """Should post the previous year's delta in April of the tax category."""
        years = model.run(YEARS).years

        april_2021 = years[Year(2021)].category_summary[C1][Month.APRIL].transactions
        april_2022 = years[Year(2022)].category_summary[C1][Month.APRIL].transactions
        may_2022 = years[Year(2022)].category_summary[C1][Month.MAY].transactions

        assert april_2021[TAX_ADJUSTMENT_FLOW].amount == Money.zero()
        assert april_2022[TAX_ADJUSTMENT_FLOW].amount == Money(-300175)
        assert april_2022[TAX_ADJUSTMENT_FLOW].tax_tx.taxable_income == Money.zero()
        assert TAX_ADJUSTMENT_FLOW not in may_2022
        assert TAX_ADJUSTMENT_FLOW not in years[Year(2022)].category_summary[C2][Month.APRIL].transactions

    def test_snapshots(self, model: Model) -> None:
        """Should snapshot balances at the start and end of the run and of each year."""
        report = model.run(YEARS)

        assert report.start_values == {C1: Money(12300), C2: Money(45600)}
        assert report.years[Year(2021)].end_values == {C1: Money(502980), C2: Money(1013550)}
        assert report.years[Year(2022)].start_values == report.years[Year(2021)].end_values
        assert report.end_values == {C1: Money(372685), C2: Money(2130000)}

    def test_categories_without_flows_are_skipped(self) -> None:
        """Should leave flowless categories out of the summary but in snapshots."""
        empty = CategoryName("empty")
        model = Model(
            flows={C1: [flow("0", Month.JANUARY, Frequency.MONTHLY, 1)]},
            categories=[*categories(), Category(empty)],
            tax_policy=tax_policy(),
            tax_category=C1,
        )
        report = model.run(TimeRange(Year(2021), Year(2022)))

        assert empty not in report.years[Year(2021)].category_summary
        assert C2 not in report.years[Year(2021)].category_summary
        assert report.end_values[empty] == Money.zero()

    def test_flows_in_a_month_share_the_starting_balance(self) -> None:
        """Should value every flow in a month against the balance before it."""
        model = Model(
            flows={
                C1: [
                    Flow(
                        name=FlowName("deposit"),
                        description="",
                        start=Time.of(2021, Month.JANUARY),
                        end=Time.of(2021, Month.FEBRUARY),
                        frequency=Frequency.MONTHLY,
                        value=FixedFlow(Money.from_dollars(1000)),
                    ),
                    Flow(
                        name=FlowName("interest"),
                        description="",
                        start=Time.of(2021, Month.JANUARY),
                        end=Time.of(2021, Month.FEBRUARY),
                        frequency=Frequency.MONTHLY,
                        value=RateFlow(Rate.from_percent(10)),
                    ),
                ]
            },
            categories=[Category(C1)],
            tax_policy=tax_policy(),
            tax_category=C1,
        )
        january = model.run(TimeRange(Year(2021), Year(2022))).years[Year(2021)].category_summary[C1][Month.JANUARY]

        assert january.transactions[FlowName("interest")].amount == Money.zero()
        assert january.value == Money.from_dollars(1000)

    def test_logs_each_year(self, model: Model, caplog: pytest.LogCaptureFixture) -> None:
        """Should log a debug line per simulated year."""
        with caplog.at_level(logging.DEBUG, logger="networth.domain.model"):
            model.run(YEARS)

        assert "Simulating year 2021" in caplog.text

    def test_cannot_run_twice(self, model: Model) -> None:
        """Should refuse a second run."""
        model.run(YEARS)

        with pytest.raises(SimulationError, match="already been run"):
            model.run(YEARS)

    def test_failure_aborts_with_chain(self) -> None:
        """Should abort the run and name the year, category and flow."""
        table = LookupTable(
            [(TimeRange(Time.of(2021, Month.JANUARY), Time.of(2021, Month.JUNE)), Money.from_dollars(1))]
        )
        model = Model(
            flows={
                C1: [
                    Flow(
                        name=FlowName("short table"),
                        description="",
                        start=Time.of(2021, Month.JANUARY),
                        end=Time.of(2022, Month.JANUARY),
                        frequency=Frequency.MONTHLY,
                        value=TableFlow(table),
                    )
                ]
            },
            categories=[Category(C1)],
            tax_policy=tax_policy(),
            tax_category=C1,
        )

        with pytest.raises(SimulationError) as exc_info:
            model.run(TimeRange(Year(2021), Year(2022)))

        chain = format_error_chain(exc_info.value)
        assert chain.startswith("Failed to run year 2021")
        assert "'c1'" in chain
        assert "'short table'" in chain
        assert "June 2021" in chain


class TestModelValidation:
    """Tests for Model construction checks."""

    def test_unknown_tax_category(self) -> None:
        """Should reject a tax category that isn't configured."""
        with pytest.raises(ModelValidationError) as exc_info:
            Model(flows={}, categories=categories(), tax_policy=tax_policy(), tax_category=CategoryName("nope"))

        assert "Provided inputs were invalid" in str(exc_info.value)
        assert "nope" in str(exc_info.value.__cause__)

    def test_unknown_flow_category(self) -> None:
        """Should reject flows for a category that isn't configured."""
        with pytest.raises(ModelValidationError) as exc_info:
            Model(
                flows={CategoryName("ghost"): [flow("0", Month.JANUARY, Frequency.MONTHLY, 1)]},
                categories=categories(),
                tax_policy=tax_policy(),
                tax_category=C1,
            )

        assert "ghost" in format_error_chain(exc_info.value)

    def test_duplicate_flow_names(self) -> None:
        """Should reject two flows with the same name in one category."""
        with pytest.raises(ModelValidationError) as exc_info:
            Model(
                flows={
                    C1: [
                        flow("same", Month.JANUARY, Frequency.MONTHLY, 1),
                        flow("same", Month.MARCH, Frequency.MONTHLY, 2),
                    ]
                },
                categories=categories(),
                tax_policy=tax_policy(),
                tax_category=C1,
            )

        assert "more than once" in format_error_chain(exc_info.value)

    def test_same_flow_name_in_different_categories(self) -> None:
        """Should allow a name to be reused across categories."""
        Model(
            flows={
                C1: [flow("same", Month.JANUARY, Frequency.MONTHLY, 1)],
                C2: [flow("same", Month.JANUARY, Frequency.MONTHLY, 1)],
            },
            categories=categories(),
            tax_policy=tax_policy(),
            tax_category=C1,
        )

    def test_reserved_tax_adjustment_name(self) -> None:
        """Should reserve the tax adjustment flow name in the tax category."""
        with pytest.raises(ModelValidationError) as exc_info:
            Model(
                flows={C1: [flow(TAX_ADJUSTMENT_FLOW, Month.JANUARY, Frequency.MONTHLY, 1)]},
                categories=categories(),
                tax_policy=tax_policy(),
                tax_category=C1,
            )

        assert "reserved" in format_error_chain(exc_info.value)

    def test_duplicate_categories(self) -> None:
        """Should reject a category listed twice."""
        with pytest.raises(ModelValidationError):
            Model(flows={}, categories=[Category(C1), Category(C1)], tax_policy=tax_policy(), tax_category=C1)
