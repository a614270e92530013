"""Assets, categories and the running balance of a category."""

from dataclasses import dataclass, field

from networth.domain.models import AssetName, CategoryName
from networth.domain.money import Money
from networth.domain.time import Time
from networth.domain.withholding import TaxTx


@dataclass(frozen=True)
class Asset:
    name: AssetName
    value: Money


@dataclass(frozen=True)
class Tx:
    """The result of evaluating one flow at one time."""

    time: Time
    amount: Money
    tax_tx: TaxTx


@dataclass(frozen=True)
class Category:
    """A named group of assets tracked as one balance."""

    name: CategoryName
    assets: tuple[Asset, ...] = field(default=())

    @classmethod
    def from_assets(cls, name: CategoryName, assets: list[Asset]) -> "Category":
        return cls(name=name, assets=tuple(assets))

    def total(self) -> Money:
        return Money.sum(asset.value for asset in self.assets)

    def value(self) -> "CategoryValue":
        """Start a running balance at the sum of this category's assets."""
        return CategoryValue(name=self.name, value=self.total())


@dataclass
class CategoryValue:
    """Mutable running balance of a category during a simulation run."""

    name: CategoryName
    value: Money

    def apply(self, amount: Money) -> None:
        self.value = self.value + amount

    def apply_tx(self, tx: Tx) -> None:
        self.apply(tx.amount)
