"""Calendar model for the simulation.

Time advances one month at a time. Everything here is totally ordered and has
a successor, which is all TimeRange needs to iterate a half-open interval.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Generic, Iterator, Protocol, TypeVar


class Month(IntEnum):
    """Calendar month, ordered January to December."""

    JANUARY = 1
    FEBRUARY = 2
    MARCH = 3
    APRIL = 4
    MAY = 5
    JUNE = 6
    JULY = 7
    AUGUST = 8
    SEPTEMBER = 9
    OCTOBER = 10
    NOVEMBER = 11
    DECEMBER = 12

    @classmethod
    def parse(cls, name: str) -> "Month":
        """Parse a month name, ignoring case and surrounding whitespace.

        Raises:
            ValueError: If the name is not a month.
        """
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown month {name!r}") from None

    @property
    def index(self) -> int:
        """Zero-based position in the year (January is 0)."""
        return self.value - 1

    def next(self) -> "Month":
        """The following month; December wraps to January."""
        return Month(self.value % 12 + 1)

    def __str__(self) -> str:
        return self.name.capitalize()

    # IntEnum formats as a plain int otherwise
    def __format__(self, format_spec: str) -> str:
        return format(str(self), format_spec)


class Frequency(Enum):
    """How often a flow recurs within its window."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @classmethod
    def parse(cls, name: str) -> "Frequency":
        """Parse a frequency name, ignoring case.

        Raises:
            ValueError: If the name is not a frequency.
        """
        try:
            return cls(name.strip().lower())
        except ValueError:
            options = ", ".join(f.value for f in cls)
            raise ValueError(f"Unknown frequency {name!r}. Options are {options}") from None


@dataclass(frozen=True, order=True, slots=True)
class Year:
    number: int

    def next(self) -> "Year":
        return Year(self.number + 1)

    def months(self) -> list["Time"]:
        """The twelve months of this year, January first."""
        return list(TimeRange(Time(self, Month.JANUARY), Time(self.next(), Month.JANUARY)))

    def __str__(self) -> str:
        return str(self.number)


@dataclass(frozen=True, order=True, slots=True)
class Months:
    """A signed count of months between two times."""

    count: int

    def even_freq(self, frequency: Frequency) -> bool:
        """Check whether this many months lands on an occurrence of frequency."""
        match frequency:
            case Frequency.MONTHLY:
                return True
            case Frequency.QUARTERLY:
                return self.count % 3 == 0
            case Frequency.YEARLY:
                return self.count % 12 == 0


@dataclass(frozen=True, order=True, slots=True)
class Time:
    """A single month of a single year, ordered by (year, month)."""

    year: Year
    month: Month

    @classmethod
    def of(cls, year: int, month: Month) -> "Time":
        return cls(Year(year), month)

    def next(self) -> "Time":
        year = self.year.next() if self.month is Month.DECEMBER else self.year
        return Time(year, self.month.next())

    def __sub__(self, other: "Time") -> Months:
        if not isinstance(other, Time):
            return NotImplemented
        return Months(
            (self.year.number * 12 + self.month.index) - (other.year.number * 12 + other.month.index)
        )

    def __str__(self) -> str:
        return f"{self.month} {self.year}"


class Successor(Protocol):
    def next(self: Any) -> Any: ...

    def __lt__(self, other: Any) -> bool: ...


T = TypeVar("T", bound=Successor)


@dataclass(frozen=True)
class TimeRange(Generic[T]):
    """Half-open interval [start, end) over any ordered type with a successor.

    Iterating yields start, start.next(), ... up to but excluding end. A range
    whose start is not before its end is empty.
    """

    start: T
    end: T

    def __iter__(self) -> Iterator[T]:
        current = self.start
        while current < self.end:
            yield current
            current = current.next()

    def __contains__(self, item: object) -> bool:
        return bool(self.start <= item < self.end)  # type: ignore[operator]

    def is_empty(self) -> bool:
        return not self.start < self.end

    def __str__(self) -> str:
        return f"[{self.start}, {self.end})"


YearRange = TimeRange[Year]
