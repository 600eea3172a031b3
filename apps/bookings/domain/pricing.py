"""
Pricing Calculator

Pure functions deriving the charge of a reservation. No database access and
no clock: the same inputs always give the same total.
"""

import math
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal('0.01')
SECONDS_PER_DAY = 24 * 60 * 60


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_nights(check_in: date, check_out: date) -> int:
    """
    Number of nights between check-in and check-out, rounded up.

    Plain dates always differ by whole days; datetimes with a partial
    trailing day count that day as a night.
    """
    if isinstance(check_in, datetime) and isinstance(check_out, datetime):
        return math.ceil((check_out - check_in).total_seconds() / SECONDS_PER_DAY)
    return (check_out - check_in).days


def compute_property_price(nights: int, price_per_night, price_per_two_nights=None) -> Decimal:
    """
    Total price of a stay.

    A configured two-night rate is the *total* for a stay of exactly two
    nights, not a per-night price.

    >>> compute_property_price(2, Decimal('100'), Decimal('180'))
    Decimal('180.00')
    >>> compute_property_price(3, Decimal('100'), Decimal('180'))
    Decimal('300.00')
    """
    if nights < 1:
        raise ValueError("A stay must last at least one night")
    if nights == 2 and price_per_two_nights is not None:
        return _quantize(_to_decimal(price_per_two_nights))
    return _quantize(_to_decimal(price_per_night) * nights)


def compute_tour_amount(tour_price, schedule_price, participants: int) -> Decimal:
    """Schedule price overrides the tour price; the result is per participant times head count."""
    if participants < 1:
        raise ValueError("At least one participant is required")
    unit = schedule_price if schedule_price is not None else tour_price
    return _quantize(_to_decimal(unit) * participants)
