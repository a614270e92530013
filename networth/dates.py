"""Date utilities for networth.

Pure functions for converting between calendar text and simulation times.
"""

import re
from datetime import datetime

from networth.domain.time import Month, Time, TimeRange

_TIME_LITERAL = re.compile(r"\d{4}-\d{2}")


def is_time_literal(text: str) -> bool:
    """Check whether text looks like a YYYY-MM time literal."""
    return _TIME_LITERAL.fullmatch(text.strip()) is not None


def parse_time(text: str) -> Time:
    """Parse a YYYY-MM string into a Time.

    Args:
        text: Month in YYYY-MM format.

    Returns:
        The Time for that month.

    Raises:
        ValueError: If the text is not a valid YYYY-MM month.
    """
    dt = datetime.strptime(text.strip(), "%Y-%m")
    return Time.of(dt.year, Month(dt.month))


def format_time(time: Time) -> str:
    """Format a Time as YYYY-MM."""
    return f"{time.year.number:04d}-{time.month.value:02d}"


def time_label(time: Time) -> str:
    """Human-readable month (e.g. "January 2025")."""
    return f"{time.month} {time.year}"


def time_range_label(time_range: TimeRange[Time]) -> str:
    """Human-readable half-open range, e.g. "January 2025 until March 2025"."""
    return f"{time_label(time_range.start)} until {time_label(time_range.end)}"
