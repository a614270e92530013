"""Piecewise-constant functions of time.

A LookupTable is built once from (range, value) entries that may arrive in
any order. After sorting by start the entries must tile exactly one
contiguous interval: no gaps, no overlaps, no empty or inverted ranges.
"""

from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from networth.domain.errors import LookupTableError, TimeNotInRangeError
from networth.domain.time import T, TimeRange

V = TypeVar("V")


def validate_contiguous_ranges(entries: Sequence[tuple[TimeRange[T], V]]) -> list[tuple[TimeRange[T], V]]:
    """Sort entries by start and check they form one seamless interval.

    Args:
        entries: Unordered (range, value) pairs.

    Returns:
        The entries sorted by range start.

    Raises:
        LookupTableError: If entries are empty, any range is empty or inverted,
            or consecutive ranges leave a gap or overlap.
    """
    if not entries:
        raise LookupTableError("Got empty ranges, which isn't allowed")

    ordered = sorted(entries, key=lambda entry: entry[0].start)

    previous_end: T | None = None
    for i, (time_range, _) in enumerate(ordered):
        if time_range.end < time_range.start:
            raise LookupTableError(f"Table entry {i} {time_range} has end before start")
        if time_range.start == time_range.end:
            raise LookupTableError(f"Table entry {i} {time_range} has an empty range (end == start)")

        if previous_end is not None and previous_end != time_range.start:
            raise LookupTableError(
                f"Table has non-contiguous ranges. Entry {i} starts at {time_range.start} "
                f"but the previous entry ends at {previous_end}"
            )
        previous_end = time_range.end

    return ordered


@dataclass(frozen=True, init=False)
class LookupTable(Generic[T, V]):
    """Immutable, validated lookup of a value by point in time."""

    entries: tuple[tuple[TimeRange[T], V], ...]

    def __init__(self, entries: Sequence[tuple[TimeRange[T], V]]) -> None:
        try:
            ordered = validate_contiguous_ranges(entries)
        except LookupTableError as e:
            raise LookupTableError("Failed to validate ranges were contiguous") from e
        object.__setattr__(self, "entries", tuple(ordered))

    def range(self) -> TimeRange[T]:
        """The interval covered by the whole table."""
        return TimeRange(self.entries[0][0].start, self.entries[-1][0].end)

    def value_at(self, time: T) -> V:
        """Look up the value in force at a point in time.

        Raises:
            TimeNotInRangeError: If time falls outside the covered interval.
        """
        for time_range, value in self.entries:
            if time in time_range:
                return value

        raise TimeNotInRangeError(f"Time {time} was not within our range {self.range()}")
