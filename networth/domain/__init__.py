"""Domain models and the simulation engine for networth.

This package contains the functional core:
- Exact fixed-point arithmetic (Money, Rate)
- The calendar model and lookup tables
- Flows, withholding and annual tax policies, events
- The year/month simulation driver
- No I/O operations
"""

from networth.domain.asset import Asset, Category, CategoryValue, Tx
from networth.domain.flow import Flow
from networth.domain.model import Model, ModelReport, MonthlyReport, YearlyReport
from networth.domain.models import AssetName, CategoryName, FlowName
from networth.domain.money import Money, Rate
from networth.domain.time import Frequency, Month, Time, TimeRange, Year, YearRange

__all__ = [
    "Asset",
    "AssetName",
    "Category",
    "CategoryName",
    "CategoryValue",
    "Flow",
    "FlowName",
    "Frequency",
    "Model",
    "ModelReport",
    "Money",
    "Month",
    "MonthlyReport",
    "Rate",
    "Time",
    "TimeRange",
    "Tx",
    "Year",
    "YearRange",
    "YearlyReport",
]
