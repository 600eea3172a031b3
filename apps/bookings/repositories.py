"""
Reservation persistence port.

Everything the lifecycle manager reads or writes goes through
:class:`DjangoReservationRepository`, which is injected at construction so
tests and other entry points can substitute their own. Locking helpers take
row locks with ``select_for_update`` and must run inside a transaction.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Union
from uuid import UUID

from django.db.models import F, Q  # type: ignore

from apps.properties.models import Property
from apps.tours.models import Tour, TourSchedule
from shared.domain.value_objects import DateRange

from .domain.status import LIVE_STATUSES
from .errors import NotFound
from .models import Booking, TourBooking

AnyReservation = Union[Booking, TourBooking]


def _as_uuid(value) -> Optional[UUID]:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


class DjangoReservationRepository:
    """Django ORM implementation of the reservation persistence port."""

    # ----- properties -----

    def get_property(self, property_id) -> Property:
        prop = Property.objects.filter(pk=property_id, deleted_at__isnull=True).first()
        if prop is None:
            raise NotFound(f"Property {property_id} not found.")
        return prop

    def lock_property(self, property_id) -> Property:
        """Row-lock the property; serializes every reservation write on it."""
        prop = (
            Property.objects.select_for_update()
            .filter(pk=property_id, deleted_at__isnull=True)
            .first()
        )
        if prop is None:
            raise NotFound(f"Property {property_id} not found.")
        return prop

    def overlapping_live_bookings(
        self,
        property_id,
        period: DateRange,
        exclude_booking_id=None,
    ) -> List[Booking]:
        queryset = Booking.objects.filter(
            property_id=property_id,
            status__in=LIVE_STATUSES,
        ).filter(Q(check_in__lt=period.end_date) & Q(check_out__gt=period.start_date))
        if exclude_booking_id is not None:
            queryset = queryset.exclude(pk=exclude_booking_id)
        return list(queryset.order_by("check_in", "created_at"))

    def count_live_bookings_for_property(self, property_id) -> int:
        return Booking.objects.filter(property_id=property_id, status__in=LIVE_STATUSES).count()

    def increment_property_bookings(self, property_id) -> None:
        Property.objects.filter(pk=property_id).update(total_bookings=F("total_bookings") + 1)

    # ----- tours -----

    def lock_schedule(self, schedule_id) -> Optional[TourSchedule]:
        return (
            TourSchedule.objects.select_for_update()
            .select_related("tour")
            .filter(pk=schedule_id)
            .first()
        )

    def count_live_tour_bookings(self, *, tour_id=None, schedule_id=None) -> int:
        queryset = TourBooking.objects.filter(status__in=LIVE_STATUSES)
        if tour_id is not None:
            queryset = queryset.filter(tour_id=tour_id)
        if schedule_id is not None:
            queryset = queryset.filter(schedule_id=schedule_id)
        return queryset.count()

    def increment_tour_bookings(self, tour_id) -> None:
        Tour.objects.filter(pk=tour_id).update(total_bookings=F("total_bookings") + 1)

    # ----- reservations -----

    def find_reservation(self, reservation_id) -> Optional[AnyReservation]:
        """Property bookings are looked up first, then tour bookings."""
        pk = _as_uuid(reservation_id)
        if pk is None:
            return None
        booking = Booking.objects.select_related("property").filter(pk=pk).first()
        if booking is not None:
            return booking
        return TourBooking.objects.select_related("schedule", "tour").filter(pk=pk).first()

    def lock_reservation(self, reservation_id) -> AnyReservation:
        """
        Lock the inventory row the reservation belongs to, then re-read the
        reservation under that lock.

        Inventory rows are always locked before reservation rows so that
        concurrent transitions on one property or schedule queue up instead
        of deadlocking.
        """
        found = self.find_reservation(reservation_id)
        if found is None:
            raise NotFound(f"Reservation {reservation_id} not found.")

        if isinstance(found, Booking):
            prop = Property.objects.select_for_update().filter(pk=found.property_id).first()
            booking = Booking.objects.select_for_update().get(pk=found.pk)
            booking.property = prop
            return booking

        schedule = self.lock_schedule(found.schedule_id)
        tour_booking = TourBooking.objects.select_for_update().get(pk=found.pk)
        tour_booking.schedule = schedule
        tour_booking.tour = schedule.tour
        return tour_booking

    def stale_pending_ids(self, model, now: datetime, created_before: Optional[datetime] = None) -> List[UUID]:
        """Pending reservations whose hold expired (or, if given, created before a cutoff)."""
        expired = Q(expires_at__lte=now)
        if created_before is not None:
            expired |= Q(created_at__lte=created_before)
        return list(
            model.objects.filter(status="pending")
            .filter(expired)
            .order_by("created_at")
            .values_list("pk", flat=True)
        )

    def save(self, reservation: AnyReservation) -> None:
        reservation.save()
