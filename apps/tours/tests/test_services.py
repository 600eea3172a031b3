"""Tests for guide-side schedule management."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.test import TestCase

from apps.bookings.errors import AccessDenied, InvalidInput, InvalidRange, NotAvailable
from apps.bookings.lifecycle import ReservationLifecycleManager
from apps.bookings.tests.factories import FIXED_NOW, GUEST_ID, GUIDE_ID, fixed_clock, make_schedule, make_tour, participants
from apps.tours.models import Tour, TourSchedule
from apps.tours.services import TourService
from shared.application.message_bus import MessageBus


class TourServiceTests(TestCase):
    def setUp(self) -> None:
        self.tour = make_tour()
        self.service = TourService()
        self.manager = ReservationLifecycleManager(bus=MessageBus(), clock=fixed_clock)
        self.start = FIXED_NOW + timedelta(days=7)

    def test_create_schedule(self) -> None:
        schedule = self.service.create_schedule(
            self.tour.pk, GUIDE_ID, self.start, self.start + timedelta(hours=2), 8, price=Decimal("30.00")
        )
        self.assertEqual(schedule.available_slots, 8)
        self.assertEqual(schedule.booked_slots, 0)
        self.assertTrue(schedule.is_available)

    def test_create_schedule_validation(self) -> None:
        with self.assertRaises(AccessDenied):
            self.service.create_schedule(self.tour.pk, GUIDE_ID + 1, self.start, self.start + timedelta(hours=2), 8)
        with self.assertRaises(InvalidRange):
            self.service.create_schedule(self.tour.pk, GUIDE_ID, self.start, self.start, 8)
        with self.assertRaises(InvalidInput):
            self.service.create_schedule(self.tour.pk, GUIDE_ID, self.start, self.start + timedelta(hours=2), 0)

    def test_capacity_cannot_drop_below_booked(self) -> None:
        schedule = make_schedule(self.tour, available_slots=6)
        self.manager.create_tour_reservation(schedule.pk, GUEST_ID, participants(4))

        with self.assertRaises(InvalidInput):
            self.service.update_schedule(schedule.pk, GUIDE_ID, available_slots=3)

        updated = self.service.update_schedule(schedule.pk, GUIDE_ID, available_slots=4, special_notes="Bring water")
        self.assertEqual(updated.available_slots, 4)
        with self.assertRaises(InvalidInput):
            self.service.update_schedule(schedule.pk, GUIDE_ID, booked_slots=0)

    def test_delete_schedule(self) -> None:
        empty = make_schedule(self.tour)
        self.assertTrue(self.service.delete_schedule(empty.pk, GUIDE_ID))
        self.assertFalse(TourSchedule.objects.filter(pk=empty.pk).exists())

        busy = make_schedule(self.tour)
        booking = self.manager.create_tour_reservation(busy.pk, GUEST_ID, participants(2))
        with self.assertRaises(NotAvailable):
            self.service.delete_schedule(busy.pk, GUIDE_ID)

        self.manager.change_reservation_status(booking.pk, GUEST_ID, "guest", "cancelled", reason="x")
        self.assertFalse(self.service.delete_schedule(busy.pk, GUIDE_ID))
        busy.refresh_from_db()
        self.assertFalse(busy.is_available)

    def test_deactivate_tour(self) -> None:
        schedule = make_schedule(self.tour)
        booking = self.manager.create_tour_reservation(schedule.pk, GUEST_ID, participants(1))
        with self.assertRaises(NotAvailable):
            self.service.deactivate_tour(self.tour.pk, GUIDE_ID)

        self.manager.change_reservation_status(booking.pk, GUEST_ID, "guest", "cancelled", reason="x")
        tour = self.service.deactivate_tour(self.tour.pk, GUIDE_ID)

        self.assertFalse(tour.is_active)
        self.assertEqual(tour.status, Tour.Status.INACTIVE)
        with self.assertRaises(NotAvailable):
            self.manager.create_tour_reservation(schedule.pk, GUEST_ID, participants(1))
