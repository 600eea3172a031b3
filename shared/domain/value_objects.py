"""
Common Value Objects

Value objects used across multiple domains:
- Money: Represents monetary amounts with currency
- DateRange: Half-open range of dates (check-in to check-out)
- DayRange: Lazy, restartable enumeration of calendar days
"""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP

from shared.domain.base import ValueObject

CENT = Decimal('0.01')


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Represents a monetary amount with currency.
    Immutable and supports arithmetic operations within one currency.
    """
    amount: Decimal
    currency: str = 'USD'

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        if not self.currency:
            raise ValueError("Currency is required")

    def __add__(self, other: 'Money') -> 'Money':
        """Add two money objects"""
        if not isinstance(other, Money):
            raise TypeError("Can only add Money to Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot add different currencies: {self.currency} and {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, factor) -> 'Money':
        """Multiply money by a factor"""
        if not isinstance(factor, (int, Decimal)):
            raise TypeError("Can only multiply Money by int or Decimal")
        return Money(self.amount * Decimal(factor), self.currency)

    def quantized(self) -> 'Money':
        return Money(self.amount.quantize(CENT, rounding=ROUND_HALF_UP), self.currency)

    def to_dict(self) -> dict:
        return {'amount': str(self.amount), 'currency': self.currency}

    def __str__(self):
        return f"{self.amount:,.2f} {self.currency}"

    def __repr__(self):
        return f"Money({self.amount}, '{self.currency}')"


def overlaps(a: 'DateRange', b: 'DateRange') -> bool:
    """
    Half-open overlap test: ``a.start < b.end and b.start < a.end``.

    Adjacent ranges (one ends the day the other starts) do not overlap.
    """
    return a.start_date < b.end_date and b.start_date < a.end_date


class DayRange:
    """
    Lazy sequence of the days in ``[start, end)``.

    Finite and restartable: every ``iter()`` call starts again from ``start``.
    Meant for calendar display only; conflict tests use ``overlaps``.
    """

    __slots__ = ('start', 'end')

    def __init__(self, start: date, end: date):
        self.start = start
        self.end = end

    def __iter__(self) -> Iterator[date]:
        current = self.start
        while current < self.end:
            yield current
            current += timedelta(days=1)

    def __len__(self) -> int:
        return max((self.end - self.start).days, 0)

    def __repr__(self):
        return f"DayRange({self.start}, {self.end})"


def day_range(start: date, end: date) -> DayRange:
    return DayRange(start, end)


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Date range value object

    Represents a range from start_date (inclusive) to end_date (exclusive).
    Used for booking periods, blocked periods and availability checks.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date >= self.end_date:
            raise ValueError(f"Start date ({self.start_date}) must be before end date ({self.end_date})")

    def overlaps_with(self, other: 'DateRange') -> bool:
        """
        Check if this range overlaps with another

        Examples:
            - DateRange(25, 28) overlaps with DateRange(27, 30) -> True
            - DateRange(25, 28) overlaps with DateRange(28, 31) -> False (adjacent)
        """
        if not isinstance(other, DateRange):
            raise TypeError("Can only check overlap with another DateRange")
        return overlaps(self, other)

    def contains(self, check_date: date) -> bool:
        """start_date is inclusive, end_date is exclusive"""
        return self.start_date <= check_date < self.end_date

    def within(self, outer_start: date | None, outer_end: date | None) -> bool:
        """True when the whole range fits inside an (optionally open) window."""
        if outer_start is not None and self.start_date < outer_start:
            return False
        if outer_end is not None and self.end_date > outer_end:
            return False
        return True

    @property
    def nights(self) -> int:
        return (self.end_date - self.start_date).days

    def __len__(self) -> int:
        """Number of nights in this range"""
        return self.nights

    def to_dict(self) -> dict:
        return {'start_date': self.start_date.isoformat(), 'end_date': self.end_date.isoformat()}

    def __str__(self):
        return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"

    def __repr__(self):
        return f"DateRange({self.start_date}, {self.end_date})"
