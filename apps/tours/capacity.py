"""Capacity manager for tour schedules.

Slots are taken and given back with single guarded ``UPDATE`` statements, so
the counter itself refuses to go past ``available_slots`` or below zero no
matter how many workers race on the same schedule.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sized

from django.db.models import F  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.errors import (
    GroupSizeViolation,
    InsufficientCapacity,
    InternalConsistency,
    InvalidInput,
    NotAvailable,
    NotFound,
)

from .models import TourSchedule

logger = logging.getLogger(__name__)


class CapacityManager:
    """Validate, reserve and release participant slots on tour schedules."""

    def __init__(self, clock: Optional[Callable] = None):
        self.clock = clock or timezone.now

    def remaining(self, schedule: TourSchedule) -> int:
        return schedule.remaining_slots

    def validate(self, schedule: Optional[TourSchedule], n: int, participants: Sized) -> None:
        """Checks run in a fixed order; the first failing one is raised."""
        if schedule is None:
            raise NotFound("Tour schedule not found.")
        if not schedule.is_available or not schedule.tour.is_active:
            raise NotAvailable("schedule_unavailable", "This tour schedule is not available for booking.")
        if schedule.start_date < self.clock():
            raise NotAvailable("schedule_started", "This tour schedule has already started.")
        remaining = self.remaining(schedule)
        if remaining < n:
            raise InsufficientCapacity(
                "insufficient_capacity",
                f"Only {remaining} slot(s) left on this schedule, {n} requested.",
            )
        tour = schedule.tour
        if not tour.min_group_size <= n <= tour.max_group_size:
            raise GroupSizeViolation(
                f"Group size must be between {tour.min_group_size} and {tour.max_group_size}."
            )
        if len(participants) != n:
            raise InvalidInput(
                f"Number of participants ({n}) does not match participant details ({len(participants)})."
            )

    def reserve(self, schedule: TourSchedule, n: int) -> None:
        """Take ``n`` slots or raise InsufficientCapacity; nothing is written on failure."""
        updated = TourSchedule.objects.filter(
            pk=schedule.pk,
            booked_slots__lte=F("available_slots") - n,
        ).update(booked_slots=F("booked_slots") + n, updated_at=timezone.now())
        if not updated:
            logger.info(f"Schedule {schedule.pk} could not take {n} more slot(s)")
            raise InsufficientCapacity("insufficient_capacity", "Not enough slots left on this schedule.")
        schedule.refresh_from_db(fields=["booked_slots", "updated_at"])
        logger.debug(f"Schedule {schedule.pk}: reserved {n}, booked {schedule.booked_slots}/{schedule.available_slots}")

    def release(self, schedule: TourSchedule, n: int) -> None:
        """
        Give back ``n`` slots.

        A release larger than the booked count means the counter and the
        reservations have drifted apart: the counter is left untouched and
        InternalConsistency aborts the surrounding transaction.
        """
        updated = TourSchedule.objects.filter(
            pk=schedule.pk,
            booked_slots__gte=n,
        ).update(booked_slots=F("booked_slots") - n, updated_at=timezone.now())
        if not updated:
            schedule.refresh_from_db(fields=["booked_slots"])
            raise InternalConsistency(
                f"Releasing {n} slot(s) on schedule {schedule.pk} would make booked slots negative "
                f"(booked: {schedule.booked_slots})."
            )
        schedule.refresh_from_db(fields=["booked_slots", "updated_at"])
        logger.debug(f"Schedule {schedule.pk}: released {n}, booked {schedule.booked_slots}/{schedule.available_slots}")
