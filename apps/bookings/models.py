"""Reservation models.

``Booking`` reserves a property for a half-open date range and ``TourBooking``
reserves participant slots on a tour schedule. Both are aggregate roots: their
transition methods validate the move through the status machine, update the
row in memory and record the domain event. Persisting the row and the
compensating ledger or capacity writes is the lifecycle manager's job.
"""

from __future__ import annotations

import builtins
import uuid
from datetime import datetime
from decimal import Decimal

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.properties.ledger import booking_tag
from shared.domain.base import Aggregate
from shared.domain.value_objects import DateRange, Money

from .domain.events import (
    PropertyReservationCancelled,
    PropertyReservationCompleted,
    PropertyReservationConfirmed,
    PropertyReservationCreated,
    PropertyReservationRescheduled,
    TourReservationCancelled,
    TourReservationCompleted,
    TourReservationConfirmed,
    TourReservationCreated,
    TourReservationNoShow,
)
from .domain.participants import ParticipantList
from .domain.status import (
    ActorRole,
    CheckInStatus,
    PaymentStatus,
    PropertyBookingStatus,
    ReservationKind,
    TourBookingStatus,
    ensure_check_in_transition,
    ensure_transition,
    is_live,
)
from .errors import InvalidTransition


class Reservation(Aggregate, models.Model):
    """Fields and transition plumbing shared by both reservation kinds."""

    kind: ReservationKind

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    currency = models.CharField(max_length=3, default="USD")
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices(),
        default=PaymentStatus.PENDING.value,
    )
    payment_reference = models.CharField(max_length=100, blank=True)
    special_requests = models.TextField(blank=True)
    expires_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_("Pending reservations still unconfirmed at this time are cancelled by the sweep."),
    )
    confirmed_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.CharField(max_length=20, choices=ActorRole.choices(), blank=True)
    cancellation_reason = models.CharField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    @property
    def is_live(self) -> bool:
        return is_live(self.status)

    @property
    def customer_id(self) -> int:
        raise NotImplementedError

    @property
    def owner_id(self) -> int:
        raise NotImplementedError

    def _move_to(self, new_status) -> str:
        previous = self.status
        self.status = ensure_transition(self.kind, previous, new_status).value
        return previous

    def _event_context(self) -> dict:
        return {
            "aggregate_id": self.pk,
            "reservation_id": self.pk,
            "kind": self.kind.value,
            "customer_id": self.customer_id,
            "owner_id": self.owner_id,
            "status": self.status,
        }

    def _mark_cancelled(self, reason: str, cancelled_by: str, at: datetime) -> str:
        previous = self._move_to(self.Status.CANCELLED)
        self.cancellation_reason = reason[:500]
        self.cancelled_by = ActorRole(cancelled_by).value
        self.cancelled_at = at
        self.expires_at = None
        if self.payment_status == PaymentStatus.PAID:
            self.payment_status = PaymentStatus.REFUNDED.value
        return previous

    def _mark_confirmed(self, at: datetime) -> None:
        self._move_to(self.Status.CONFIRMED)
        self.confirmed_at = at
        self.expires_at = None

    def _mark_completed(self, at: datetime) -> None:
        self._move_to(self.Status.COMPLETED)
        self.completed_at = at


class Booking(Reservation):
    """Reservation of a property for ``[check_in, check_out)``."""

    kind = ReservationKind.PROPERTY
    Status = PropertyBookingStatus

    # Shadows the builtin for the rest of the class body
    property = models.ForeignKey(
        "properties.Property",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    guest_id = models.PositiveBigIntegerField(db_index=True)
    check_in = models.DateField()
    check_out = models.DateField()
    guest_count = models.PositiveSmallIntegerField(default=1)
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    status = models.CharField(
        max_length=20,
        choices=PropertyBookingStatus.choices(),
        default=PropertyBookingStatus.PENDING.value,
    )
    message = models.TextField(blank=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(check_out__gt=models.F("check_in")),
                name="booking_valid_dates",
            ),
            models.CheckConstraint(
                condition=models.Q(guest_count__gte=1),
                name="booking_guest_count_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["property", "status", "check_in", "check_out"], name="bookings_bo_propert_8e2c41_idx"),
            models.Index(fields=["status", "expires_at"], name="bookings_bo_status_2b7f90_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking {self.pk} for property {self.property_id}"

    @builtins.property
    def customer_id(self) -> int:
        return self.guest_id

    @builtins.property
    def owner_id(self) -> int:
        return self.property.host_id

    @builtins.property
    def dates(self) -> DateRange:
        return DateRange(self.check_in, self.check_out)

    @builtins.property
    def tag(self) -> str:
        """Tag of the blocked range derived from this booking."""
        return booking_tag(self.pk)

    @builtins.property
    def price(self) -> Money:
        return Money(self.total_price, self.currency)

    def record_created(self) -> None:
        self.add_event(PropertyReservationCreated(
            **self._event_context(),
            property_id=self.property_id,
            dates=self.dates,
            guest_count=self.guest_count,
            total_price=self.price,
        ))

    def confirm(self, at: datetime) -> None:
        """PENDING -> CONFIRMED"""
        self._mark_confirmed(at)
        self.add_event(PropertyReservationConfirmed(
            **self._event_context(),
            property_id=self.property_id,
            dates=self.dates,
        ))

    def complete(self, at: datetime) -> None:
        """CONFIRMED -> COMPLETED"""
        self._mark_completed(at)
        self.add_event(PropertyReservationCompleted(
            **self._event_context(),
            property_id=self.property_id,
            dates=self.dates,
        ))

    def cancel(self, reason: str, cancelled_by: str, at: datetime) -> None:
        """PENDING|CONFIRMED -> CANCELLED"""
        previous = self._mark_cancelled(reason, cancelled_by, at)
        self.add_event(PropertyReservationCancelled(
            **self._event_context(),
            property_id=self.property_id,
            dates=self.dates,
            reason=self.cancellation_reason,
            cancelled_by=self.cancelled_by,
            previous_status=previous,
        ))

    def reschedule(self, dates: DateRange, total_price: Decimal) -> DateRange:
        """Move a live booking to new dates; returns the previous range."""
        if not self.is_live:
            raise InvalidTransition(f"Cannot change the dates of a {self.status} reservation.")
        previous = self.dates
        self.check_in = dates.start_date
        self.check_out = dates.end_date
        self.total_price = total_price
        self.add_event(PropertyReservationRescheduled(
            **self._event_context(),
            property_id=self.property_id,
            previous_dates=previous,
            dates=self.dates,
            total_price=self.price,
        ))
        return previous


class TourBooking(Reservation):
    """Reservation of ``number_of_participants`` slots on one tour schedule."""

    kind = ReservationKind.TOUR
    Status = TourBookingStatus

    schedule = models.ForeignKey(
        "tours.TourSchedule",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    tour = models.ForeignKey(
        "tours.Tour",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    user_id = models.PositiveBigIntegerField(db_index=True)
    guide_id = models.PositiveBigIntegerField(db_index=True)
    number_of_participants = models.PositiveSmallIntegerField()
    participants = models.JSONField(default=list)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    status = models.CharField(
        max_length=20,
        choices=TourBookingStatus.choices(),
        default=TourBookingStatus.PENDING.value,
    )
    check_in_status = models.CharField(
        max_length=20,
        choices=CheckInStatus.choices(),
        default=CheckInStatus.NOT_CHECKED_IN.value,
    )
    check_in_time = models.DateTimeField(null=True, blank=True)
    check_out_time = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = _("Tour booking")
        verbose_name_plural = _("Tour bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(number_of_participants__gte=1),
                name="tour_booking_participants_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["schedule", "status"], name="bookings_to_schedul_6a3d15_idx"),
            models.Index(fields=["status", "expires_at"], name="bookings_to_status_c41e07_idx"),
        ]

    def __str__(self) -> str:
        return f"Tour booking {self.pk} on schedule {self.schedule_id}"

    @property
    def customer_id(self) -> int:
        return self.user_id

    @property
    def owner_id(self) -> int:
        return self.guide_id

    @property
    def amount(self) -> Money:
        return Money(self.total_amount, self.currency)

    def participant_list(self) -> ParticipantList:
        return ParticipantList.parse(self.participants or [])

    def _tour_context(self) -> dict:
        return {**self._event_context(), "tour_id": self.tour_id, "schedule_id": self.schedule_id}

    def record_created(self) -> None:
        self.add_event(TourReservationCreated(
            **self._tour_context(),
            participants=self.number_of_participants,
            total_amount=self.amount,
        ))

    def confirm(self, at: datetime) -> None:
        self._mark_confirmed(at)
        self.add_event(TourReservationConfirmed(**self._tour_context()))

    def complete(self, at: datetime) -> None:
        self._mark_completed(at)
        self.add_event(TourReservationCompleted(**self._tour_context()))

    def cancel(self, reason: str, cancelled_by: str, at: datetime) -> None:
        previous = self._mark_cancelled(reason, cancelled_by, at)
        self.add_event(TourReservationCancelled(
            **self._tour_context(),
            participants=self.number_of_participants,
            reason=self.cancellation_reason,
            cancelled_by=self.cancelled_by,
            previous_status=previous,
        ))

    def mark_no_show(self, at: datetime, reason: str | None = None) -> None:
        """CONFIRMED -> NO_SHOW"""
        self._move_to(self.Status.NO_SHOW)
        self.completed_at = at
        self.add_event(TourReservationNoShow(**self._tour_context(), reason=reason))

    def update_check_in(self, new_status: str, at: datetime) -> None:
        if self.status != TourBookingStatus.CONFIRMED:
            raise InvalidTransition("Only confirmed tour bookings can be checked in or out.")
        target = ensure_check_in_transition(self.check_in_status, new_status)
        self.check_in_status = target.value
        if target == CheckInStatus.CHECKED_IN:
            self.check_in_time = at
        else:
            self.check_out_time = at
