"""Fixed-point money and rate types.

Money is a whole number of cents and Rate is a percentage with six decimal
places stored as an integer. All arithmetic is exact integer arithmetic:
- Adding and subtracting money never rounds
- Applying a rate multiplies first, then truncates toward zero once
- Products outside the signed 64-bit range raise MoneyOverflowError

Floats appear only in Rate.to_float/Rate.from_float, which exist for the
single amortization formula that needs real exponentiation.
"""

import math
import re
from dataclasses import dataclass
from typing import Iterable

from networth.domain.errors import MoneyOverflowError, RateParseError

CENTS_PER_DOLLAR = 100

# More precision means more overflows when applying rates to large balances
RATE_PRECISION = 6
RATE_SCALE = 10**RATE_PRECISION

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_RATE_PATTERN = re.compile(r"([+-]?)([0-9]+)(?:\.([0-9]+))?")


def _trunc_div(numerator: int, denominator: int) -> int:
    """Divide integers rounding toward zero (Python's // floors)."""
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator < 0) == (denominator < 0) else -quotient


def _checked_mul(left: int, right: int, operation: str) -> int:
    """Multiply two integers, refusing results outside the 64-bit range.

    Raises:
        MoneyOverflowError: If the product does not fit in a signed 64-bit integer.
    """
    product = left * right
    if not _INT64_MIN <= product <= _INT64_MAX:
        raise MoneyOverflowError(f"{operation} would overflow ({left} * {right})")
    return product


@dataclass(frozen=True, order=True, slots=True)
class Money:
    """An amount of money in cents."""

    cents: int

    @classmethod
    def from_dollars(cls, amount: int) -> "Money":
        return cls(amount * CENTS_PER_DOLLAR)

    @classmethod
    def from_cents(cls, amount: int) -> "Money":
        return cls(amount)

    @classmethod
    def zero(cls) -> "Money":
        return cls(0)

    @classmethod
    def sum(cls, amounts: Iterable["Money"]) -> "Money":
        """Add up amounts exactly; an empty iterable sums to zero."""
        return cls(sum(amount.cents for amount in amounts))

    def as_dollars(self) -> int:
        """Whole dollars, truncated toward zero."""
        return _trunc_div(self.cents, CENTS_PER_DOLLAR)

    def as_cents(self) -> int:
        return self.cents

    def at_rate(self, rate: "Rate") -> "Money":
        """Apply a rate to this amount.

        Raises:
            MoneyOverflowError: If the intermediate product overflows.
        """
        return rate.at_rate(self)

    def times(self, units: int) -> "Money":
        """Multiply by a whole number of units (e.g. a share count).

        Raises:
            MoneyOverflowError: If the product overflows.
        """
        return Money(_checked_mul(self.cents, units, "Multiplying money by units"))

    def negate(self) -> "Money":
        return Money(-self.cents)

    def __neg__(self) -> "Money":
        return self.negate()

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.cents + other.cents)

    def __sub__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.cents - other.cents)

    def __truediv__(self, other: "Money") -> "Rate":
        """Express this amount as a rate of another.

        The numerator is scaled to the rate's full precision before dividing,
        otherwise most of the fractional precision would be rounded away.

        Raises:
            MoneyOverflowError: If scaling the numerator overflows.
            ZeroDivisionError: If other is zero.
        """
        if not isinstance(other, Money):
            return NotImplemented
        if other.cents == 0:
            raise ZeroDivisionError(f"Cannot express {self} as a rate of $0")
        scaled = _checked_mul(self.cents, CENTS_PER_DOLLAR * RATE_SCALE, "Scaling money to a rate")
        return Rate(_trunc_div(scaled, other.cents))

    def __str__(self) -> str:
        sign = "-" if self.cents < 0 else ""
        dollars, cents = divmod(abs(self.cents), CENTS_PER_DOLLAR)
        suffix = f".{cents:02d}" if cents else ""
        return f"{sign}${dollars:,}{suffix}"


@dataclass(frozen=True, order=True, slots=True)
class Rate:
    """A percentage with RATE_PRECISION decimal places.

    ``value`` counts millionths of a percent, so Rate.from_percent(1).value is
    RATE_SCALE and 100% is 100 * RATE_SCALE.
    """

    value: int

    @classmethod
    def from_percent(cls, pct: int) -> "Rate":
        return cls(pct * RATE_SCALE)

    @classmethod
    def zero(cls) -> "Rate":
        return cls(0)

    @classmethod
    def parse(cls, text: str) -> "Rate":
        """Parse percentage text such as "10", " 6.5% " or "-0.25%".

        Accepts surrounding whitespace, one optional trailing "%", a sign that
        touches the digits and at most RATE_PRECISION fractional digits.

        Raises:
            RateParseError: If the text is not a valid percentage.
        """
        clean = text.strip()
        if clean.endswith("%"):
            clean = clean[:-1].rstrip()

        match = _RATE_PATTERN.fullmatch(clean)
        if match is None:
            raise RateParseError(f"{text!r} is not a valid percentage")

        sign, whole, fraction = match.groups()
        fraction = fraction or ""
        if len(fraction) > RATE_PRECISION:
            raise RateParseError(
                f"Found more than {RATE_PRECISION} decimal places in {text!r}, which isn't allowed"
            )

        value = int(whole) * RATE_SCALE + int(fraction.ljust(RATE_PRECISION, "0"))
        return cls(-value if sign == "-" else value)

    @classmethod
    def from_float(cls, fraction: float) -> "Rate":
        """Convert a real fraction (0.05 == 5%) to a Rate, truncating toward zero.

        Raises:
            MoneyOverflowError: If the value is not finite or does not fit.
        """
        if not math.isfinite(fraction):
            raise MoneyOverflowError(f"Cannot convert {fraction} to a rate")
        value = int(fraction * 100.0 * RATE_SCALE)
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise MoneyOverflowError(f"Rate {fraction} is out of range")
        return cls(value)

    def to_float(self) -> float:
        """The rate as a real fraction (5% == 0.05)."""
        return self.value / RATE_SCALE / 100.0

    def as_percent(self) -> int:
        """Whole percent, truncated toward zero."""
        return _trunc_div(self.value, RATE_SCALE)

    def inverse(self) -> "Rate":
        """100% minus this rate."""
        return Rate.from_percent(100) - self

    def negate(self) -> "Rate":
        return Rate(-self.value)

    def at_rate(self, money: Money) -> Money:
        """Apply this rate to an amount, truncating toward zero.

        Raises:
            MoneyOverflowError: If the intermediate product overflows.
        """
        product = _checked_mul(money.cents, self.value, "Applying rate")
        return Money(_trunc_div(product, RATE_SCALE * 100))

    def __neg__(self) -> "Rate":
        return self.negate()

    def __add__(self, other: "Rate") -> "Rate":
        if not isinstance(other, Rate):
            return NotImplemented
        return Rate(self.value + other.value)

    def __sub__(self, other: "Rate") -> "Rate":
        if not isinstance(other, Rate):
            return NotImplemented
        return Rate(self.value - other.value)

    def __truediv__(self, divisor: int) -> "Rate":
        if not isinstance(divisor, int):
            return NotImplemented
        return Rate(_trunc_div(self.value, divisor))

    def __str__(self) -> str:
        sign = "-" if self.value < 0 else ""
        whole, fraction = divmod(abs(self.value), RATE_SCALE)
        suffix = f".{fraction:0{RATE_PRECISION}d}".rstrip("0") if fraction else ""
        return f"{sign}{whole}{suffix}%"
