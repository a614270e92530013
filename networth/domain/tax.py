"""Annual tax reconciliation.

Once per simulated year the tax withheld from individual transactions is
reconciled against the tax actually owed. The difference becomes a one-off
flow in April of the following year, which is how one year's tax outcome
feeds into the next year's balances.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from networth.domain.flow import FixedFlow, Flow
from networth.domain.models import TAX_ADJUSTMENT_FLOW
from networth.domain.money import Money, Rate
from networth.domain.time import Frequency, Month, Time, Year
from networth.domain.withholding import TaxExempt, TaxTx


@dataclass
class TaxSummary:
    """Running tax totals for one year across all categories."""

    net_amount: Money = field(default_factory=Money.zero)
    taxable_income: Money = field(default_factory=Money.zero)
    tax_withheld: Money = field(default_factory=Money.zero)

    def apply_tx(self, tax_tx: TaxTx, net: Money) -> None:
        self.taxable_income = self.taxable_income + tax_tx.taxable_income
        self.tax_withheld = self.tax_withheld + tax_tx.tax_withheld
        self.net_amount = self.net_amount + net


@dataclass(frozen=True)
class TaxAdjustment:
    """Outcome of reconciling one year's tax."""

    owed: Money
    withheld: Money
    # withheld - owed: positive is a refund, negative is more tax due
    delta: Money
    effective_rate: Rate


def tax_adjustment_flow(year: Year, delta: Money) -> Flow:
    """Build the one-off, tax-exempt flow settling a year's tax in April of the next year."""
    settled = Time(year.next(), Month.APRIL)
    return Flow(
        name=TAX_ADJUSTMENT_FLOW,
        description=f"Estimated tax refund/debt from {year}",
        start=settled,
        end=settled.next(),
        frequency=Frequency.MONTHLY,
        value=FixedFlow(delta),
        tax_policy=TaxExempt(),
    )


class AnnualTaxPolicy(ABC):
    """Yearly rule reconciling withheld tax against tax owed."""

    def calculate_adjustment(self, year: Year, summary: TaxSummary) -> tuple[TaxAdjustment, Flow]:
        """Reconcile a year's tax.

        Args:
            year: The year being reconciled.
            summary: Totals accumulated over every transaction of the year.

        Returns:
            Tuple of (adjustment, flow) where flow settles the delta next April.

        Raises:
            MoneyOverflowError: If a rate calculation overflows.
        """
        taxable_income = self.calculate_taxable_income(summary)
        owed = self.calculate_owed(taxable_income, summary)
        delta = summary.tax_withheld - owed

        if taxable_income == Money.zero():
            effective_rate = Rate.zero()
        else:
            effective_rate = owed / taxable_income

        adjustment = TaxAdjustment(
            owed=owed,
            withheld=summary.tax_withheld,
            delta=delta,
            effective_rate=effective_rate,
        )
        return adjustment, tax_adjustment_flow(year, delta)

    @abstractmethod
    def calculate_taxable_income(self, summary: TaxSummary) -> Money: ...

    @abstractmethod
    def calculate_owed(self, taxable_income: Money, summary: TaxSummary) -> Money: ...


@dataclass(frozen=True)
class FixedRateTaxPolicy(AnnualTaxPolicy):
    """Flat tax on income above a standard deduction."""

    rate: Rate
    deduction: Money

    def calculate_taxable_income(self, summary: TaxSummary) -> Money:
        return max(summary.taxable_income - self.deduction, Money.zero())

    def calculate_owed(self, taxable_income: Money, summary: TaxSummary) -> Money:
        return taxable_income.at_rate(self.rate)
