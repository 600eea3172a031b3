"""Host-side property operations.

Everything here that touches the calendar locks the property row first, the
same lock the reservation engine takes, so host blocks and guest
reservations on one property never interleave.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional

from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.errors import AccessDenied, InvalidInput, InvalidRange, NotAvailable, NotFound
from apps.bookings.repositories import DjangoReservationRepository
from shared.domain.value_objects import DateRange

from .ledger import MANUAL_TAG_PREFIX, BlockedRangeLedger, manual_tag
from .models import BlockedRange, Property

logger = logging.getLogger(__name__)


def _money(value, field: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidInput(f"{field} must be a number.")
    if amount < 0:
        raise InvalidInput(f"{field} cannot be negative.")
    return amount


class PropertyService:
    """Calendar, pricing and status management for a host's properties."""

    def __init__(
        self,
        ledger: Optional[BlockedRangeLedger] = None,
        repository: Optional[DjangoReservationRepository] = None,
        clock: Optional[Callable] = None,
    ):
        self.ledger = ledger or BlockedRangeLedger()
        self.repository = repository or DjangoReservationRepository()
        self.clock = clock or timezone.now

    def _owned(self, property_id, host_id, *, lock: bool = False) -> Property:
        queryset = Property.objects.filter(pk=property_id, deleted_at__isnull=True)
        if lock:
            queryset = queryset.select_for_update()
        prop = queryset.first()
        if prop is None:
            raise NotFound(f"Property {property_id} not found.")
        if prop.host_id != host_id:
            raise AccessDenied("You do not own this property.")
        return prop

    # ----- calendar -----

    @transaction.atomic
    def block_dates(self, property_id, host_id, start_date: date, end_date: date, reason: str = "") -> BlockedRange:
        """Block ``[start_date, end_date)``; refused where a live reservation already holds the dates."""
        if start_date is None or end_date is None or start_date >= end_date:
            raise InvalidRange("End date must be after start date.")
        period = DateRange(start_date, end_date)

        prop = self._owned(property_id, host_id, lock=True)
        if self.repository.overlapping_live_bookings(prop.pk, period):
            raise NotAvailable("booked", "A reservation already holds some of these dates.")

        blocked = self.ledger.create(
            prop.pk,
            period,
            manual_tag(),
            reason=reason or "Blocked by host",
            kind=BlockedRange.Kind.MANUAL,
        )
        logger.info(f"Host {host_id} blocked {period} on property {prop.pk}")
        return blocked

    @transaction.atomic
    def unblock(self, tag: str, host_id) -> int:
        """Remove a host block. Ranges derived from reservations cannot be removed here."""
        if not tag.startswith(MANUAL_TAG_PREFIX):
            raise InvalidInput("Only manual blocks can be removed.")
        blocked = BlockedRange.objects.filter(tag=tag, is_active=True).first()
        if blocked is None:
            return 0
        self._owned(blocked.property_id, host_id, lock=True)
        count = self.ledger.retract(tag)
        logger.info(f"Host {host_id} removed block {tag}")
        return count

    def blocked_calendar(self, property_id, today: Optional[date] = None) -> List[date]:
        """Every blocked day from today on, for calendar display."""
        if not Property.objects.filter(pk=property_id, deleted_at__isnull=True).exists():
            raise NotFound(f"Property {property_id} not found.")
        return self.ledger.blocked_days(property_id, today or timezone.localdate(self.clock()))

    @transaction.atomic
    def update_availability_window(
        self,
        property_id,
        host_id,
        available_from: Optional[date],
        available_to: Optional[date],
    ) -> Property:
        if available_from and available_to and available_from >= available_to:
            raise InvalidRange("Availability window must end after it starts.")
        prop = self._owned(property_id, host_id, lock=True)
        prop.available_from = available_from
        prop.available_to = available_to
        prop.save(update_fields=["available_from", "available_to", "updated_at"])
        return prop

    # ----- pricing & status -----

    @transaction.atomic
    def update_pricing(self, property_id, host_id, price_per_night, price_per_two_nights=None) -> Property:
        """New prices apply to reservations created or rescheduled from now on."""
        nightly = _money(price_per_night, "Price per night")
        two_nights = _money(price_per_two_nights, "Price for two nights") if price_per_two_nights is not None else None
        prop = self._owned(property_id, host_id, lock=True)
        prop.price_per_night = nightly
        prop.price_per_two_nights = two_nights
        prop.save(update_fields=["price_per_night", "price_per_two_nights", "updated_at"])
        logger.info(f"Property {prop.pk} pricing updated: {nightly} per night, two nights {two_nights}")
        return prop

    @transaction.atomic
    def set_status(self, property_id, host_id, status: str) -> Property:
        if status not in Property.Status.values:
            raise InvalidInput(f"Unknown property status '{status}'.")
        prop = self._owned(property_id, host_id, lock=True)
        if status == Property.Status.ACTIVE:
            prop.activate()
        elif status == Property.Status.INACTIVE:
            prop.deactivate()
        else:
            prop.status = status
            prop.save(update_fields=["status", "updated_at"])
        return prop

    @transaction.atomic
    def delete_property(self, property_id, host_id) -> None:
        """Soft-delete; refused while any pending or confirmed reservation remains."""
        prop = self._owned(property_id, host_id, lock=True)
        if self.repository.count_live_bookings_for_property(prop.pk):
            raise NotAvailable("active_reservations", "Cannot delete a property with active reservations.")
        prop.mark_deleted()
        BlockedRange.objects.filter(property=prop, is_active=True).update(is_active=False)
        logger.info(f"Property {prop.pk} deleted by host {host_id}")
