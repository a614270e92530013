"""Pydantic models describing the plan file formats.

Every model is immutable and rejects fields it doesn't know. Scalars that map
straight onto domain types (amounts, rates, months, frequencies) are converted
while validating. Times and table names are kept as written, since they can
refer to other files; the plan loader resolves them.
"""

import re
from typing import Annotated, Any, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    PlainValidator,
    StrictInt,
    TypeAdapter,
    model_validator,
)

from networth.domain.errors import NetWorthError, PlanError
from networth.domain.money import Money, Rate
from networth.domain.time import Frequency, Month, Time

_MONEY_TEXT = re.compile(r"(-?)([0-9]+)(?:\.([0-9]{1,2}))?")


def _whole_number(value: Any) -> int | None:
    # bool is an int subclass, but true/false is never a valid number here
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def parse_money(value: Any) -> Money:
    """Parse a plan amount.

    Whole numbers are dollars. Text such as "12.34" or "-0.5" allows cents.

    Raises:
        PlanError: If the value is neither form.
    """
    if isinstance(value, str):
        match = _MONEY_TEXT.fullmatch(value.strip())
        if match is None:
            raise PlanError(f"{value!r} is not a valid amount")
        sign, dollars, cents = match.groups()
        total = int(dollars) * 100 + int((cents or "0").ljust(2, "0"))
        return Money.from_cents(-total if sign else total)

    dollars = _whole_number(value)
    if dollars is None:
        raise PlanError(f"Expected whole dollars or decimal text, got {value!r}")
    return Money.from_dollars(dollars)


def parse_rate(value: Any) -> Rate:
    """Parse a plan rate: a whole number of percent or percentage text.

    Raises:
        PlanError: If the value is neither form.
    """
    if isinstance(value, str):
        try:
            return Rate.parse(value)
        except NetWorthError as e:
            raise PlanError(f"Invalid rate {value!r}") from e

    percent = _whole_number(value)
    if percent is None:
        raise PlanError(f"Expected a whole percent or percentage text, got {value!r}")
    return Rate.from_percent(percent)


def parse_month(value: Any) -> Month:
    """Parse a month name or a number from 1 to 12."""
    if isinstance(value, str):
        try:
            return Month.parse(value)
        except ValueError as e:
            raise PlanError(f"Invalid month {value!r}") from e

    number = _whole_number(value)
    if number is None or not 1 <= number <= 12:
        raise PlanError(f"Invalid month {value!r}")
    return Month(number)


def parse_frequency(value: Any) -> Frequency:
    if not isinstance(value, str):
        raise PlanError(f"Expected a frequency name, got {value!r}")
    return Frequency.parse(value)


MoneyField = Annotated[Money, PlainValidator(parse_money)]
RateField = Annotated[Rate, PlainValidator(parse_rate)]
MonthField = Annotated[Month, PlainValidator(parse_month)]
FrequencyField = Annotated[Frequency, PlainValidator(parse_frequency)]


class PlanModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class TimeLiteral(PlanModel):
    """A {year, month} table."""

    year: StrictInt
    month: MonthField

    def to_time(self) -> Time:
        return Time.of(self.year, self.month)


# A {year, month} table, "YYYY-MM" text or the name of a time in the times file
TimeRef = TimeLiteral | str


class FixedValue(PlanModel):
    type: Literal["fixed"]
    value: MoneyField


class RateValue(PlanModel):
    type: Literal["rate"]
    rate: RateField


class TableValue(PlanModel):
    type: Literal["table"]
    table: str


class RateTableValue(PlanModel):
    type: Literal["rate_table"]
    table: str


class UnitsTableValue(PlanModel):
    type: Literal["units_table"]
    units: StrictInt
    table: str


FlowValueEntry = Annotated[
    FixedValue | RateValue | TableValue | RateTableValue | UnitsTableValue,
    Field(discriminator="type"),
]


class NoWithholdingEntry(PlanModel):
    policy: Literal["no_withholding"]


class TaxExemptEntry(PlanModel):
    policy: Literal["tax_exempt"]


class FixedRateEntry(PlanModel):
    policy: Literal["fixed_rate"]
    rate: RateField


class PartiallyTaxedEntry(PlanModel):
    policy: Literal["partially_taxed"]
    taxed_proportion: RateField
    withholding_rate: RateField


WithholdingEntry = Annotated[
    NoWithholdingEntry | TaxExemptEntry | FixedRateEntry | PartiallyTaxedEntry,
    Field(discriminator="policy"),
]


class FlowEntry(PlanModel):
    """One flow in the flows file."""

    description: str
    category: str
    start: TimeRef
    end: TimeRef
    frequency: FrequencyField
    value: FlowValueEntry
    tax: WithholdingEntry = Field(default_factory=lambda: NoWithholdingEntry(policy="no_withholding"))


class AssetEntry(PlanModel):
    category: str
    value: MoneyField


class TableRow(PlanModel):
    """One entry of a lookup table, holding either dollars or a rate."""

    start: TimeRef
    end: TimeRef
    dollars: MoneyField | None = None
    rate: RateField | None = None

    @model_validator(mode="after")
    def _one_value(self) -> "TableRow":
        if (self.dollars is None) == (self.rate is None):
            raise PlanError("Table entries need exactly one of dollars or rate")
        return self

    @property
    def kind(self) -> str:
        return "dollars" if self.dollars is not None else "rate"


def _same_kind(rows: list[TableRow]) -> list[TableRow]:
    kind = rows[0].kind
    for i, row in enumerate(rows):
        if row.kind != kind:
            raise PlanError(f"Expected a {kind} entry for entry {i} (decided by the first entry)")
    return rows


TableRows = Annotated[list[TableRow], Field(min_length=1), AfterValidator(_same_kind)]


class HousePurchaseEntry(PlanModel):
    type: Literal["house_purchase"]
    start: TimeRef
    end: TimeRef
    mortgage_rate: RateField
    purchase_price: MoneyField
    setup_cost: MoneyField
    down_payment: MoneyField
    house_value_category: str
    mortgage_category: str
    down_payment_category: str
    regular_payment_category: str


class TransferEntry(PlanModel):
    type: Literal["transfer"]
    source: str
    target: str
    time: TimeRef
    value: MoneyField


EventEntry = Annotated[HousePurchaseEntry | TransferEntry, Field(discriminator="type")]


class YearRangeSection(PlanModel):
    """[time_range]: simulated years, end excluded."""

    start: StrictInt
    end: StrictInt


class AnnualTaxSection(PlanModel):
    """[tax]: the policy reconciling each year's tax."""

    policy: Literal["fixed_rate"]
    rate: RateField
    standard_deduction: MoneyField


class CommonSection(PlanModel):
    """[common]: categories and the files making up the plan."""

    categories: list[str]
    tax_category: str
    assets_file: str
    flows_file: str
    times_file: str | None = None
    tables_file: str | None = None
    events_file: str | None = None


class PlanFile(PlanModel):
    time_range: YearRangeSection
    tax: AnnualTaxSection
    common: CommonSection


PLAN_SCHEMA = TypeAdapter(PlanFile)
ASSETS_SCHEMA = TypeAdapter(dict[str, AssetEntry])
TIMES_SCHEMA = TypeAdapter(dict[str, TimeLiteral])
TABLES_SCHEMA = TypeAdapter(dict[str, TableRows])
FLOWS_SCHEMA = TypeAdapter(dict[str, FlowEntry])
EVENTS_SCHEMA = TypeAdapter(dict[str, EventEntry])
