"""Loading plan files into a runnable model.

A plan is a top-level TOML file plus sub-files named relative to it:
- plan.toml: time range, annual tax policy and the [common] section
- assets file: starting balances grouped into categories
- flows file: recurring and one-off flows
- times file (optional): named months referenced by flows and tables
- tables file (optional): named money or rate lookup tables
- events file (optional): house purchases and transfers

Each file is checked against its schema in networth.schema, then everything
is resolved into plain domain objects before the Model is built, so the
simulation never sees plan syntax.
"""

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeVar

from pydantic import TypeAdapter, ValidationError

from networth.dates import is_time_literal, parse_time
from networth.domain.asset import Asset, Category
from networth.domain.errors import NetWorthError, PlanError
from networth.domain.events import Event, HousePurchase, Transfer, build_event_flows, merge_flows
from networth.domain.flow import FixedFlow, Flow, FlowValue, RateFlow, RateTableFlow, TableFlow, UnitsTableFlow
from networth.domain.lookup_table import LookupTable
from networth.domain.model import Model
from networth.domain.models import AssetName, CategoryName, FlowName
from networth.domain.money import Money, Rate
from networth.domain.tax import AnnualTaxPolicy, FixedRateTaxPolicy
from networth.domain.time import Time, TimeRange, Year, YearRange
from networth.domain.withholding import ConstantRate, NoWithholding, PartiallyTaxed, TaxExempt, WithholdingPolicy
from networth.schema import (
    ASSETS_SCHEMA,
    EVENTS_SCHEMA,
    FLOWS_SCHEMA,
    PLAN_SCHEMA,
    TABLES_SCHEMA,
    TIMES_SCHEMA,
    AnnualTaxSection,
    AssetEntry,
    CommonSection,
    EventEntry,
    FixedRateEntry,
    FixedValue,
    FlowEntry,
    FlowValueEntry,
    HousePurchaseEntry,
    NoWithholdingEntry,
    PartiallyTaxedEntry,
    RateTableValue,
    RateValue,
    TableRow,
    TableValue,
    TaxExemptEntry,
    TimeLiteral,
    TimeRef,
    TransferEntry,
    UnitsTableValue,
    WithholdingEntry,
)

logger = logging.getLogger(__name__)

D = TypeVar("D")


@dataclass(frozen=True)
class Plan:
    """A loaded plan, ready to run."""

    path: Path
    years: YearRange
    model: Model


@dataclass
class PlanTables:
    """Named lookup tables, split by the kind of value they hold."""

    money: dict[str, LookupTable[Time, Money]] = field(default_factory=dict)
    rate: dict[str, LookupTable[Time, Rate]] = field(default_factory=dict)


def describe_validation_error(error: ValidationError) -> str:
    """Render each validation failure as "location: message" on one line."""
    problems = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"])
        problems.append(f"{location}: {detail['msg']}" if location else detail["msg"])
    return "; ".join(problems)


def read_document(path: Path, kind: str, schema: TypeAdapter[D]) -> D:
    """Read one TOML file and validate it against its schema.

    Args:
        path: File to read.
        kind: What the file holds, used in error messages (e.g. "flows").
        schema: Adapter for the file's top-level shape.

    Returns:
        The validated document.

    Raises:
        PlanError: If the file can't be read, isn't valid TOML or doesn't
            match the schema.
    """
    logger.debug("Reading %s file %s", kind, path)
    try:
        with open(path, "rb") as f:
            document = tomllib.load(f)
    except OSError as e:
        raise PlanError(f"Failed to read {kind} file {path}") from e
    except tomllib.TOMLDecodeError as e:
        raise PlanError(f"Failed to parse {kind} file {path}") from e

    try:
        return schema.validate_python(document)
    except ValidationError as e:
        raise PlanError(f"Invalid {kind} file {path}: {describe_validation_error(e)}") from e


class TimeResolver:
    """Resolves plan times: {year, month} tables, "YYYY-MM" text or a named time."""

    def __init__(self, named: dict[str, Time] | None = None) -> None:
        self.named = named or {}

    @classmethod
    def from_document(cls, document: dict[str, TimeLiteral]) -> "TimeResolver":
        return cls({name: literal.to_time() for name, literal in document.items()})

    def resolve(self, value: TimeRef, where: str) -> Time:
        """Resolve one time value.

        Raises:
            PlanError: If the text is a malformed month or names an unknown time.
        """
        if isinstance(value, TimeLiteral):
            return value.to_time()

        if is_time_literal(value):
            try:
                return parse_time(value)
            except ValueError as e:
                raise PlanError(f"Invalid time {value!r} for {where}") from e

        if value not in self.named:
            options = ", ".join(sorted(self.named)) or "none defined"
            raise PlanError(f'Unknown named time "{value}" for {where}. Options are {options}')
        return self.named[value]


def load_tables(document: dict[str, list[TableRow]], times: TimeResolver) -> PlanTables:
    """Build every named lookup table.

    The schema has already checked every table holds a single kind of value;
    the first row tells which.

    Raises:
        PlanError: If a time can't be resolved or a table isn't contiguous.
    """
    tables = PlanTables()
    for name, rows in document.items():
        where = f"table {name!r}"
        ranges = [
            (
                TimeRange(
                    times.resolve(row.start, f"start of entry {i} of {where}"),
                    times.resolve(row.end, f"end of entry {i} of {where}"),
                ),
                row.rate if row.kind == "rate" else row.dollars,
            )
            for i, row in enumerate(rows)
        ]

        try:
            table = LookupTable(ranges)
        except NetWorthError as e:
            raise PlanError(f"Failed to build {where}") from e

        if rows[0].kind == "rate":
            tables.rate[name] = table
        else:
            tables.money[name] = table

    return tables


def _money_table(tables: PlanTables, name: str, where: str) -> LookupTable[Time, Money]:
    if name not in tables.money:
        raise PlanError(f'Unknown money table "{name}" for {where}. Options are {", ".join(sorted(tables.money))}')
    return tables.money[name]


def _rate_table(tables: PlanTables, name: str, where: str) -> LookupTable[Time, Rate]:
    if name not in tables.rate:
        raise PlanError(f'Unknown rate table "{name}" for {where}. Options are {", ".join(sorted(tables.rate))}')
    return tables.rate[name]


def build_flow_value(entry: FlowValueEntry, where: str, tables: PlanTables) -> FlowValue:
    """Turn a validated flow value into its valuation policy, resolving tables."""
    match entry:
        case FixedValue(value=value):
            return FixedFlow(value)
        case RateValue(rate=rate):
            return RateFlow(rate)
        case TableValue(table=name):
            return TableFlow(_money_table(tables, name, where))
        case RateTableValue(table=name):
            return RateTableFlow(_rate_table(tables, name, where))
        case UnitsTableValue(units=units, table=name):
            return UnitsTableFlow(units=units, table=_money_table(tables, name, where))


def build_withholding(entry: WithholdingEntry) -> WithholdingPolicy:
    match entry:
        case NoWithholdingEntry():
            return NoWithholding()
        case TaxExemptEntry():
            return TaxExempt()
        case FixedRateEntry(rate=rate):
            return ConstantRate(rate)
        case PartiallyTaxedEntry(taxed_proportion=taxed_proportion, withholding_rate=withholding_rate):
            return PartiallyTaxed(taxed_proportion=taxed_proportion, withholding_rate=withholding_rate)


def load_flows(
    document: dict[str, FlowEntry], times: TimeResolver, tables: PlanTables
) -> dict[CategoryName, list[Flow]]:
    """Build every flow, grouped by category in file order."""
    flows: dict[CategoryName, list[Flow]] = {}
    for name, entry in document.items():
        where = f"flow {name!r}"
        flow = Flow(
            name=FlowName(name),
            description=entry.description,
            start=times.resolve(entry.start, f"start of {where}"),
            end=times.resolve(entry.end, f"end of {where}"),
            frequency=entry.frequency,
            value=build_flow_value(entry.value, f"value of {where}", tables),
            tax_policy=build_withholding(entry.tax),
        )
        flows.setdefault(CategoryName(entry.category), []).append(flow)
    return flows


def build_event(name: str, entry: EventEntry, times: TimeResolver) -> Event:
    """Turn a validated event into its domain event, resolving times."""
    where = f"event {name!r}"

    match entry:
        case HousePurchaseEntry():
            return HousePurchase(
                property_name=name,
                time_range=TimeRange(
                    times.resolve(entry.start, f"start of {where}"),
                    times.resolve(entry.end, f"end of {where}"),
                ),
                mortgage_rate=entry.mortgage_rate,
                purchase_price=entry.purchase_price,
                setup_cost=entry.setup_cost,
                down_payment=entry.down_payment,
                house_value_category=CategoryName(entry.house_value_category),
                mortgage_category=CategoryName(entry.mortgage_category),
                down_payment_category=CategoryName(entry.down_payment_category),
                regular_payment_category=CategoryName(entry.regular_payment_category),
            )
        case TransferEntry():
            return Transfer(
                name=name,
                source=CategoryName(entry.source),
                target=CategoryName(entry.target),
                time=times.resolve(entry.time, f"time of {where}"),
                value=entry.value,
            )


def load_events(document: dict[str, EventEntry], times: TimeResolver) -> list[Event]:
    return [build_event(name, entry, times) for name, entry in document.items()]


def load_categories(listed: list[str], document: dict[str, AssetEntry]) -> list[Category]:
    """Group assets into the listed categories, keeping the listed order.

    Raises:
        PlanError: If an asset names a category that isn't listed.
    """
    grouped: dict[str, list[Asset]] = {name: [] for name in listed}
    for name, entry in document.items():
        if entry.category not in grouped:
            raise PlanError(
                f'Asset "{name}" has category "{entry.category}" which isn\'t listed in categories '
                f"({', '.join(listed)})"
            )
        grouped[entry.category].append(Asset(name=AssetName(name), value=entry.value))

    return [Category.from_assets(CategoryName(name), assets) for name, assets in grouped.items()]


def build_tax_policy(section: AnnualTaxSection) -> AnnualTaxPolicy:
    return FixedRateTaxPolicy(rate=section.rate, deduction=section.standard_deduction)


def _subfile(plan_path: Path, name: str) -> Path:
    return plan_path.parent / name


def load_plan(path: Path) -> Plan:
    """Read a plan and every file it references, and build the model.

    Args:
        path: Path to the top-level plan file.

    Returns:
        Plan with the simulated year range and a validated Model.

    Raises:
        PlanError: If any file is unreadable or invalid, or the resulting
            model fails validation.
    """
    document = read_document(path, "plan", PLAN_SCHEMA)
    years = YearRange(Year(document.time_range.start), Year(document.time_range.end))
    tax_policy = build_tax_policy(document.tax)
    common: CommonSection = document.common

    times = TimeResolver()
    if common.times_file is not None:
        times = TimeResolver.from_document(read_document(_subfile(path, common.times_file), "times", TIMES_SCHEMA))

    tables = PlanTables()
    if common.tables_file is not None:
        tables = load_tables(read_document(_subfile(path, common.tables_file), "tables", TABLES_SCHEMA), times)

    categories = load_categories(
        common.categories, read_document(_subfile(path, common.assets_file), "assets", ASSETS_SCHEMA)
    )
    flows = load_flows(read_document(_subfile(path, common.flows_file), "flows", FLOWS_SCHEMA), times, tables)

    if common.events_file is not None:
        events = load_events(read_document(_subfile(path, common.events_file), "events", EVENTS_SCHEMA), times)
        try:
            flows = merge_flows(flows, build_event_flows(events))
        except NetWorthError as e:
            raise PlanError("Failed to expand events") from e
        logger.debug("Expanded %d event(s)", len(events))

    try:
        model = Model(
            flows=flows,
            categories=categories,
            tax_policy=tax_policy,
            tax_category=CategoryName(common.tax_category),
        )
    except NetWorthError as e:
        raise PlanError(f"Failed to build model from {path}") from e

    return Plan(path=path, years=years, model=model)
