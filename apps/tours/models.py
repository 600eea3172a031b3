"""Tour domain models.

A tour is an activity run by a guide; every concrete occurrence is a
schedule with a fixed number of participant slots.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Tour(models.Model):
    """Guided activity offered by a guide."""

    class Status(models.TextChoices):
        DRAFT = "draft", _("Draft")
        ACTIVE = "active", _("Active")
        INACTIVE = "inactive", _("Inactive")

    guide_id = models.PositiveBigIntegerField(db_index=True)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    currency = models.CharField(max_length=3, default="USD")
    min_group_size = models.PositiveSmallIntegerField(default=1)
    max_group_size = models.PositiveSmallIntegerField(default=10)
    is_active = models.BooleanField(default=True)
    total_bookings = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Tour")
        verbose_name_plural = _("Tours")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(min_group_size__gte=1),
                name="tour_min_group_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(max_group_size__gte=models.F("min_group_size")),
                name="tour_group_size_min_max_valid",
            ),
        ]
        indexes = [
            models.Index(fields=["guide_id", "is_active"], name="tours_tour_guide_i_4a1c7e_idx"),
        ]

    def __str__(self) -> str:
        return self.title


class TourSchedule(models.Model):
    """One occurrence of a tour with its slot counter.

    ``booked_slots`` is only ever changed through the capacity manager's
    guarded updates; the check constraints keep it within
    ``[0, available_slots]`` even if that is bypassed.
    """

    tour = models.ForeignKey(Tour, on_delete=models.CASCADE, related_name="schedules")
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    available_slots = models.PositiveIntegerField()
    booked_slots = models.PositiveIntegerField(default=0)
    is_available = models.BooleanField(default=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text=_("Overrides the tour price for this occurrence."),
    )
    special_notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Tour schedule")
        verbose_name_plural = _("Tour schedules")
        ordering = ["start_date"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gt=models.F("start_date")),
                name="tour_schedule_valid_date_range",
            ),
            models.CheckConstraint(
                condition=models.Q(booked_slots__gte=0),
                name="tour_schedule_booked_slots_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(booked_slots__lte=models.F("available_slots")),
                name="tour_schedule_booked_within_capacity",
            ),
        ]
        indexes = [
            models.Index(fields=["tour", "start_date"], name="tours_tours_tour_id_9d3b2f_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.tour_id}: {self.start_date:%Y-%m-%d %H:%M}"

    @property
    def remaining_slots(self) -> int:
        return max(self.available_slots - self.booked_slots, 0)
