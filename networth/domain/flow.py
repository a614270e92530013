"""Flows and their valuation policies.

A flow is a named, time-windowed, frequency-gated source of cash movement
for one category. Its valuation policy decides the gross amount of each
occurrence; its withholding policy splits that into net amount and tax
bookkeeping. Valuation policies are a closed set of variants:
- FixedFlow: a constant amount
- RateFlow: a rate of the category's current balance
- TableFlow: an amount looked up by time
- RateTableFlow: a rate looked up by time, applied to the current balance
- UnitsTableFlow: a per-unit amount looked up by time, times a unit count
"""

from dataclasses import dataclass, field

from networth.domain.asset import CategoryValue, Tx
from networth.domain.errors import FlowEvaluationError, NetWorthError
from networth.domain.lookup_table import LookupTable
from networth.domain.models import FlowName
from networth.domain.money import Money, Rate
from networth.domain.time import Frequency, Time, TimeRange
from networth.domain.withholding import NoWithholding, WithholdingPolicy, calculate_tax


@dataclass(frozen=True)
class FixedFlow:
    value: Money


@dataclass(frozen=True)
class RateFlow:
    rate: Rate


@dataclass(frozen=True)
class TableFlow:
    table: LookupTable[Time, Money]


@dataclass(frozen=True)
class RateTableFlow:
    table: LookupTable[Time, Rate]


@dataclass(frozen=True)
class UnitsTableFlow:
    """A holding of units (e.g. shares) valued by a per-unit price series."""

    units: int
    table: LookupTable[Time, Money]


FlowValue = FixedFlow | RateFlow | TableFlow | RateTableFlow | UnitsTableFlow


def value_at(flow_value: FlowValue, time: Time, category: CategoryValue) -> Money:
    """Compute the gross amount of a flow occurrence.

    Args:
        flow_value: Valuation policy of the flow.
        time: Month being evaluated.
        category: Running balance of the flow's category before this month.

    Returns:
        Gross amount for the occurrence.

    Raises:
        MoneyOverflowError: If applying a rate or unit count overflows.
        TimeNotInRangeError: If a table does not cover time.
    """
    match flow_value:
        case FixedFlow(value=value):
            return value
        case RateFlow(rate=rate):
            return category.value.at_rate(rate)
        case TableFlow(table=table):
            return table.value_at(time)
        case RateTableFlow(table=table):
            return category.value.at_rate(table.value_at(time))
        case UnitsTableFlow(units=units, table=table):
            return table.value_at(time).times(units)
        case _:
            raise TypeError(f"Unknown flow value {flow_value!r}")


@dataclass(frozen=True)
class Flow:
    """An immutable recurring or one-off cash movement."""

    name: FlowName
    description: str
    # Window is half-open: [start, end)
    start: Time
    end: Time
    frequency: Frequency
    value: FlowValue
    tax_policy: WithholdingPolicy = field(default_factory=NoWithholding)

    def applies_at(self, time: Time) -> bool:
        """Check whether the flow has an occurrence in this month.

        Occurrences fall inside [start, end) on every whole multiple of the
        frequency counted from start.
        """
        if time not in TimeRange(self.start, self.end):
            return False
        return (time - self.start).even_freq(self.frequency)

    def calculate_transaction(self, category: CategoryValue, time: Time) -> Tx:
        """Value, then tax, one occurrence of this flow.

        Args:
            category: Running balance of the category before this month.
            time: Month being evaluated.

        Returns:
            Tx with the net amount and its tax bookkeeping.

        Raises:
            FlowEvaluationError: If valuation or withholding fails.
        """
        try:
            gross = value_at(self.value, time, category)
            net, tax_tx = calculate_tax(self.tax_policy, gross)
        except NetWorthError as e:
            raise FlowEvaluationError(f"Failed to evaluate flow {self.name!r} at {time}") from e

        return Tx(time=time, amount=net, tax_tx=tax_tx)
