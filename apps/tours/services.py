"""Guide-side tour and schedule operations."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from django.db import transaction  # type: ignore

from apps.bookings.errors import AccessDenied, InvalidInput, InvalidRange, NotAvailable, NotFound
from apps.bookings.repositories import DjangoReservationRepository

from .models import Tour, TourSchedule

logger = logging.getLogger(__name__)

# Fields a guide may change on an existing schedule
SCHEDULE_FIELDS = ("start_date", "end_date", "available_slots", "is_available", "price", "special_notes")


class TourService:
    """Schedules and soft deletion for a guide's tours."""

    def __init__(self, repository: Optional[DjangoReservationRepository] = None):
        self.repository = repository or DjangoReservationRepository()

    def _owned_tour(self, tour_id, guide_id, *, lock: bool = False) -> Tour:
        queryset = Tour.objects.filter(pk=tour_id)
        if lock:
            queryset = queryset.select_for_update()
        tour = queryset.first()
        if tour is None:
            raise NotFound(f"Tour {tour_id} not found.")
        if tour.guide_id != guide_id:
            raise AccessDenied("You do not run this tour.")
        return tour

    def _owned_schedule(self, schedule_id, guide_id) -> TourSchedule:
        schedule = TourSchedule.objects.select_for_update().select_related("tour").filter(pk=schedule_id).first()
        if schedule is None:
            raise NotFound(f"Tour schedule {schedule_id} not found.")
        if schedule.tour.guide_id != guide_id:
            raise AccessDenied("You do not run this tour.")
        return schedule

    @staticmethod
    def _validate_window(start_date: datetime, end_date: datetime) -> None:
        if start_date is None or end_date is None or start_date >= end_date:
            raise InvalidRange("Schedule must end after it starts.")

    @transaction.atomic
    def create_schedule(
        self,
        tour_id,
        guide_id,
        start_date: datetime,
        end_date: datetime,
        available_slots: int,
        price: Optional[Decimal] = None,
        special_notes: str = "",
    ) -> TourSchedule:
        tour = self._owned_tour(tour_id, guide_id)
        if not tour.is_active:
            raise NotAvailable("tour_inactive", "Cannot add schedules to an inactive tour.")
        self._validate_window(start_date, end_date)
        if available_slots is None or available_slots < 1:
            raise InvalidInput("A schedule needs at least one slot.")
        schedule = TourSchedule.objects.create(
            tour=tour,
            start_date=start_date,
            end_date=end_date,
            available_slots=available_slots,
            price=price,
            special_notes=special_notes or "",
        )
        logger.info(f"Guide {guide_id} scheduled tour {tour.pk} at {start_date} with {available_slots} slot(s)")
        return schedule

    @transaction.atomic
    def update_schedule(self, schedule_id, guide_id, **changes) -> TourSchedule:
        """Change a schedule; capacity can never drop below the slots already booked."""
        unknown = set(changes) - set(SCHEDULE_FIELDS)
        if unknown:
            raise InvalidInput(f"Cannot change {', '.join(sorted(unknown))} on a schedule.")

        schedule = self._owned_schedule(schedule_id, guide_id)
        for name, value in changes.items():
            setattr(schedule, name, value)

        self._validate_window(schedule.start_date, schedule.end_date)
        if schedule.available_slots < schedule.booked_slots:
            raise InvalidInput(
                f"Cannot reduce capacity to {schedule.available_slots}: "
                f"{schedule.booked_slots} slot(s) are already booked."
            )
        schedule.save()
        return schedule

    @transaction.atomic
    def delete_schedule(self, schedule_id, guide_id) -> bool:
        """
        Remove a schedule without live bookings.

        Schedules that still have past reservations are closed instead of
        deleted; returns True when the row was actually deleted.
        """
        schedule = self._owned_schedule(schedule_id, guide_id)
        if self.repository.count_live_tour_bookings(schedule_id=schedule.pk):
            raise NotAvailable("active_reservations", "Cannot delete a schedule with active bookings.")
        if schedule.bookings.exists():
            schedule.is_available = False
            schedule.save(update_fields=["is_available", "updated_at"])
            return False
        schedule.delete()
        return True

    @transaction.atomic
    def deactivate_tour(self, tour_id, guide_id) -> Tour:
        """Soft delete: the tour stays for history but takes no more bookings."""
        tour = self._owned_tour(tour_id, guide_id, lock=True)
        if self.repository.count_live_tour_bookings(tour_id=tour.pk):
            raise NotAvailable("active_reservations", "Cannot delete a tour with active bookings.")
        tour.is_active = False
        tour.status = Tour.Status.INACTIVE
        tour.save(update_fields=["is_active", "status", "updated_at"])
        logger.info(f"Tour {tour.pk} deactivated by guide {guide_id}")
        return tour
