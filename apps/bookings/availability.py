"""Availability checker for properties.

Read-only: decides whether a property can be reserved for a date range by
reading the current live bookings and active blocked ranges. Nothing is
cached between calls. When the check must be atomic with an insert, call it
after the property row has been locked.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Optional, Tuple

from django.utils import timezone  # type: ignore

from apps.properties.ledger import BlockedRangeLedger, booking_tag
from apps.properties.models import Property
from shared.domain.value_objects import DateRange

from .errors import InvalidInput, InvalidRange, NotAvailable

logger = logging.getLogger(__name__)

BOOKED = "booked"
BLOCKED = "blocked"
OUTSIDE_WINDOW = "outside_window"
INACTIVE = "inactive"


@dataclass(frozen=True)
class BlockedPeriod:
    dates: DateRange
    reason: str

    def to_dict(self) -> dict:
        return {**self.dates.to_dict(), "reason": self.reason}


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    reason: Optional[str] = None
    blocked_periods: Tuple[BlockedPeriod, ...] = field(default_factory=tuple)

    @classmethod
    def ok(cls) -> "AvailabilityResult":
        return cls(available=True)

    @classmethod
    def conflict(cls, reason: str, blocked_periods=()) -> "AvailabilityResult":
        periods = tuple(sorted(blocked_periods, key=lambda p: (p.dates.start_date, p.dates.end_date)))
        return cls(available=False, reason=reason, blocked_periods=periods)

    def raise_if_unavailable(self) -> None:
        if not self.available:
            raise NotAvailable(self.reason, f"Property is not available for the selected dates ({self.reason}).")


def to_date_range(check_in: date, check_out: date) -> DateRange:
    """Build a DateRange, turning an inverted or empty range into InvalidRange."""
    if check_in is None or check_out is None:
        raise InvalidRange("Check-in and check-out dates are required.")
    if check_in >= check_out:
        raise InvalidRange("Check-out date must be after check-in date.")
    return DateRange(check_in, check_out)


class AvailabilityChecker:
    def __init__(self, repository=None, ledger: Optional[BlockedRangeLedger] = None, clock: Optional[Callable] = None):
        if repository is None:
            from .repositories import DjangoReservationRepository

            repository = DjangoReservationRepository()
        self.repository = repository
        self.ledger = ledger or BlockedRangeLedger()
        self.clock = clock or timezone.now

    def today(self) -> date:
        return timezone.localdate(self.clock())

    def validate(self, prop: Property, check_in: date, check_out: date, guest_count: int) -> DateRange:
        """Input checks; failures raise instead of returning a conflict."""
        period = to_date_range(check_in, check_out)
        if period.start_date < self.today():
            raise InvalidRange("Check-in date cannot be in the past.")
        if not isinstance(guest_count, int) or guest_count < 1:
            raise InvalidInput("At least one guest is required.")
        if guest_count > prop.max_guests:
            raise InvalidInput(f"Maximum {prop.max_guests} guests allowed for this property.")
        if period.nights < prop.min_stay:
            raise InvalidRange(f"Minimum stay for this property is {prop.min_stay} night(s).")
        return period

    def check(
        self,
        prop: Property,
        check_in: date,
        check_out: date,
        guest_count: int,
        exclude_booking_id=None,
    ) -> AvailabilityResult:
        period = self.validate(prop, check_in, check_out, guest_count)

        if not prop.is_bookable:
            return AvailabilityResult.conflict(INACTIVE)

        bookings = self.repository.overlapping_live_bookings(prop.pk, period, exclude_booking_id)
        if bookings:
            logger.info(f"Property {prop.pk}: {period} overlaps booking {bookings[0].pk}")
            return AvailabilityResult.conflict(
                BOOKED,
                [BlockedPeriod(b.dates, f"Booking {b.pk}") for b in bookings],
            )

        exclude_tag = booking_tag(exclude_booking_id) if exclude_booking_id is not None else None
        blocks = self.ledger.active_ranges_for(prop.pk, period, exclude_tag=exclude_tag)
        if blocks:
            logger.info(f"Property {prop.pk}: {period} overlaps blocked range {blocks[0].tag}")
            return AvailabilityResult.conflict(
                BLOCKED,
                [BlockedPeriod(b.date_range, b.reason or "Blocked by host") for b in blocks],
            )

        if not period.within(prop.available_from, prop.available_to):
            return AvailabilityResult.conflict(OUTSIDE_WINDOW)

        return AvailabilityResult.ok()
