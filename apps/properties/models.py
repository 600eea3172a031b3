"""Property domain models.

A property is nightly-rate lodging owned by a host. Its calendar is the
combination of live bookings (``apps.bookings``) and the blocked ranges
recorded here, either placed by the host or derived from a booking.
"""

from __future__ import annotations

import builtins
from decimal import Decimal

from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.value_objects import DateRange


class Property(models.Model):
    """Lodging listed for nightly rental."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending review")
        ACTIVE = "active", _("Active")
        INACTIVE = "inactive", _("Inactive")

    host_id = models.PositiveBigIntegerField(db_index=True)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    price_per_night = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    price_per_two_nights = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text=_("Total price for a stay of exactly two nights."),
    )
    currency = models.CharField(max_length=3, default="USD")
    max_guests = models.PositiveSmallIntegerField(default=1)
    min_stay = models.PositiveSmallIntegerField(default=1, help_text=_("Minimum number of nights."))
    available_from = models.DateField(null=True, blank=True)
    available_to = models.DateField(null=True, blank=True)
    total_bookings = models.PositiveIntegerField(default=0)
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Property")
        verbose_name_plural = _("Properties")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(max_guests__gte=1),
                name="property_max_guests_positive",
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(available_from__isnull=True)
                    | models.Q(available_to__isnull=True)
                    | models.Q(available_to__gt=models.F("available_from"))
                ),
                name="property_valid_availability_window",
            ),
        ]
        indexes = [
            models.Index(fields=["status"], name="properties__status_1f2a6b_idx"),
            models.Index(fields=["host_id", "status"], name="properties__host_id_7c9e1d_idx"),
        ]

    def __str__(self) -> str:
        return self.title

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def is_bookable(self) -> bool:
        return self.status == self.Status.ACTIVE and not self.is_deleted

    def activate(self) -> None:
        if self.status != self.Status.ACTIVE:
            self.status = self.Status.ACTIVE
            self.save(update_fields=["status", "updated_at"])

    def deactivate(self) -> None:
        if self.status == self.Status.ACTIVE:
            self.status = self.Status.INACTIVE
            self.save(update_fields=["status", "updated_at"])

    def mark_deleted(self) -> None:
        self.deleted_at = timezone.now()
        self.status = self.Status.INACTIVE
        self.save(update_fields=["deleted_at", "status", "updated_at"])


class BlockedRange(models.Model):
    """Half-open ``[start_date, end_date)`` period in which a property cannot be booked.

    Rows are tagged so that whoever created them can retract exactly their
    own ranges: ``booking:<uuid>`` for ranges derived from a reservation and
    ``manual:<uuid>`` for ranges placed by the host.
    """

    class Kind(models.TextChoices):
        MANUAL = "manual", _("Manual block")
        BOOKING = "booking", _("Reservation")

    # Shadows the builtin for the rest of the class body
    property = models.ForeignKey(
        Property,
        on_delete=models.CASCADE,
        related_name="blocked_ranges",
    )
    start_date = models.DateField()
    end_date = models.DateField()
    reason = models.CharField(max_length=255, blank=True)
    tag = models.CharField(max_length=64, db_index=True)
    kind = models.CharField(max_length=20, choices=Kind.choices, default=Kind.MANUAL)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Blocked range")
        verbose_name_plural = _("Blocked ranges")
        ordering = ["start_date"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gt=models.F("start_date")),
                name="blocked_range_valid_date_range",
            ),
        ]
        indexes = [
            models.Index(fields=["property", "is_active", "start_date", "end_date"], name="properties__propert_3b8d0e_idx"),
            models.Index(fields=["tag", "is_active"], name="properties__tag_5e4f2a_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.property_id}: {self.start_date} - {self.end_date} ({self.tag})"

    @builtins.property
    def date_range(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)
