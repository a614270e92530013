"""Per-flow tax withholding policies.

Each policy turns the gross amount of one transaction into the net amount
that reaches the category plus the bookkeeping (taxable income and tax
withheld) that feeds the annual reconciliation. Policies are a closed set of
variants dispatched with match.
"""

from dataclasses import dataclass

from networth.domain.money import Money, Rate


@dataclass(frozen=True)
class TaxTx:
    """Tax bookkeeping for a single transaction."""

    taxable_income: Money
    tax_withheld: Money

    @classmethod
    def zero(cls) -> "TaxTx":
        return cls(taxable_income=Money.zero(), tax_withheld=Money.zero())


@dataclass(frozen=True)
class NoWithholding:
    """Fully taxable, nothing withheld at source."""


@dataclass(frozen=True)
class TaxExempt:
    """Invisible to tax accounting (transfers, setup transactions)."""


@dataclass(frozen=True)
class ConstantRate:
    """Fully taxable, withheld at a constant rate."""

    rate: Rate


@dataclass(frozen=True)
class PartiallyTaxed:
    """Only a proportion is taxable; withholding applies to that part."""

    taxed_proportion: Rate
    withholding_rate: Rate


WithholdingPolicy = NoWithholding | TaxExempt | ConstantRate | PartiallyTaxed


def tax_withheld(policy: WithholdingPolicy, gross: Money) -> TaxTx:
    """Calculate taxable income and tax withheld for a gross amount.

    Args:
        policy: Withholding policy of the flow.
        gross: Gross transaction amount.

    Returns:
        TaxTx for the transaction.

    Raises:
        MoneyOverflowError: If applying a rate overflows.
    """
    match policy:
        case NoWithholding():
            return TaxTx(taxable_income=gross, tax_withheld=Money.zero())
        case TaxExempt():
            return TaxTx.zero()
        case ConstantRate(rate=rate):
            return TaxTx(taxable_income=gross, tax_withheld=gross.at_rate(rate))
        case PartiallyTaxed(taxed_proportion=proportion, withholding_rate=rate):
            taxable = gross.at_rate(proportion)
            return TaxTx(taxable_income=taxable, tax_withheld=taxable.at_rate(rate))
        case _:
            raise TypeError(f"Unknown withholding policy {policy!r}")


def calculate_tax(policy: WithholdingPolicy, gross: Money) -> tuple[Money, TaxTx]:
    """Split a gross amount into net amount and tax bookkeeping.

    Returns:
        Tuple of (net, tax_tx) where net is gross minus tax withheld.
    """
    tax_tx = tax_withheld(policy, gross)
    return gross - tax_tx.tax_withheld, tax_tx
