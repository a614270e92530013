"""Events that expand into sets of category-tagged flows.

Event expansion is pure: it only produces (category, flow) pairs that get
merged into the model's flow map before a run starts.
"""

from dataclasses import dataclass
from typing import Iterable

from networth.domain.errors import ModelValidationError, MoneyOverflowError, NetWorthError
from networth.domain.flow import FixedFlow, Flow, RateFlow
from networth.domain.models import CategoryName, FlowName
from networth.domain.money import Money, Rate
from networth.domain.time import Frequency, Time, TimeRange
from networth.domain.withholding import TaxExempt

CategoryFlows = list[tuple[CategoryName, Flow]]


def calculate_repayment(loan: Money, term: TimeRange[Time], annual_rate: Rate) -> Money:
    """Calculate the fixed monthly payment that amortizes a loan over its term.

    Uses the annuity formula payment = loan * r * (1+r)^n / ((1+r)^n - 1) with
    r the monthly rate and n the term in months. The exponentiation needs real
    numbers, so the monthly rate goes to float and the resulting payment rate
    comes back as a Rate, truncated to RATE_PRECISION. That truncation is the
    only precision lost; the payment itself is an exact rate application.

    Args:
        loan: Principal borrowed.
        term: Months over which the loan is repaid.
        annual_rate: Nominal yearly interest rate.

    Returns:
        Monthly payment.

    Raises:
        ModelValidationError: If the term is shorter than one month.
        MoneyOverflowError: If the compounding or applying the payment rate
            overflows.
    """
    months = (term.end - term.start).count
    if months < 1:
        raise ModelValidationError(f"Loan term {term} must be at least one month")

    monthly_rate = (annual_rate / 12).to_float()
    if monthly_rate == 0.0:
        payment_rate = 1.0 / months
    else:
        try:
            growth = (1.0 + monthly_rate) ** months
        except OverflowError as e:
            raise MoneyOverflowError(f"Compounding {annual_rate} over {months} months overflows") from e
        payment_rate = monthly_rate * (growth / (growth - 1.0))

    return loan.at_rate(Rate.from_float(payment_rate))


def _once_off(name: str, description: str, time: Time, value: Money) -> Flow:
    return Flow(
        name=FlowName(name),
        description=description,
        start=time,
        end=time.next(),
        frequency=Frequency.MONTHLY,
        value=FixedFlow(value),
        tax_policy=TaxExempt(),
    )


@dataclass(frozen=True)
class HousePurchase:
    """Buying a property with a mortgage.

    At the start month the house value category gains the purchase price, the
    down payment category pays the down payment and setup cost, and the
    mortgage category takes on the remaining debt as a negative balance. From
    the following month the regular payment category pays a fixed amortized
    amount that reduces the debt, while interest accrues on the balance.
    """

    property_name: str
    # Whole mortgage term, starting at the purchase month
    time_range: TimeRange[Time]
    mortgage_rate: Rate
    purchase_price: Money
    # Non-refundable, paid from the down payment category
    setup_cost: Money
    down_payment: Money
    house_value_category: CategoryName
    mortgage_category: CategoryName
    down_payment_category: CategoryName
    regular_payment_category: CategoryName

    def build_flows(self) -> CategoryFlows:
        name = self.property_name
        start = self.time_range.start
        principal = self.purchase_price - self.down_payment

        flows: CategoryFlows = [
            (
                self.mortgage_category,
                _once_off(
                    f"{name} initial mortgage setup",
                    f"The initial setup of the mortgage for {name}",
                    start,
                    principal.negate(),
                ),
            ),
            (
                self.house_value_category,
                _once_off(
                    f"{name} initial house value",
                    f"The initial purchase price of the house {name}",
                    start,
                    self.purchase_price,
                ),
            ),
            (
                self.down_payment_category,
                _once_off(
                    f"{name} down payment",
                    f"Down payment for house {name}",
                    start,
                    self.down_payment.negate(),
                ),
            ),
            (
                self.down_payment_category,
                _once_off(
                    f"{name} mortgage setup cost",
                    f"Costs involved with creating the mortgage {name}",
                    start,
                    self.setup_cost.negate(),
                ),
            ),
        ]

        try:
            payment = calculate_repayment(principal, self.time_range, self.mortgage_rate)
        except NetWorthError as e:
            raise ModelValidationError(f"Failed to calculate mortgage repayment for {name}") from e

        # Payments start the month after purchase and run for the full term
        payments_start = start.next()
        payments_end = self.time_range.end.next()

        def recurring(flow_name: str, description: str, value: FixedFlow | RateFlow) -> Flow:
            return Flow(
                name=FlowName(flow_name),
                description=description,
                start=payments_start,
                end=payments_end,
                frequency=Frequency.MONTHLY,
                value=value,
                tax_policy=TaxExempt(),
            )

        flows.append(
            (
                self.regular_payment_category,
                recurring(
                    f"{name} loan payment",
                    f"The regular repayments for the loan on {name}",
                    FixedFlow(payment.negate()),
                ),
            )
        )
        flows.append(
            (
                self.mortgage_category,
                recurring(
                    f"{name} loan payment",
                    f"The regular repayments for the loan on {name}",
                    FixedFlow(payment),
                ),
            )
        )
        flows.append(
            (
                self.mortgage_category,
                recurring(
                    f"{name} mortgage interest",
                    f"The regular interest costs for the loan on {name}",
                    RateFlow(self.mortgage_rate / 12),
                ),
            )
        )
        return flows


@dataclass(frozen=True)
class Transfer:
    """A once-off movement of money from one category to another."""

    name: str
    source: CategoryName
    target: CategoryName
    time: Time
    value: Money

    def build_flows(self) -> CategoryFlows:
        return [
            (
                self.source,
                _once_off(
                    f"{self.name} source",
                    f"Source side of once off transfer from {self.source} to {self.target}",
                    self.time,
                    self.value.negate(),
                ),
            ),
            (
                self.target,
                _once_off(
                    f"{self.name} target",
                    f"Target side of once off transfer from {self.source} to {self.target}",
                    self.time,
                    self.value,
                ),
            ),
        ]


Event = HousePurchase | Transfer


def build_event_flows(events: Iterable[Event]) -> CategoryFlows:
    """Expand every event into its (category, flow) pairs, in order."""
    flows: CategoryFlows = []
    for event in events:
        flows.extend(event.build_flows())
    return flows


def merge_flows(flows: dict[CategoryName, list[Flow]], extra: CategoryFlows) -> dict[CategoryName, list[Flow]]:
    """Return a new flow map with extra flows appended to their categories."""
    merged = {category: list(category_flows) for category, category_flows in flows.items()}
    for category, flow in extra:
        merged.setdefault(category, []).append(flow)
    return merged
