"""Tests for host-side property operations."""

from __future__ import annotations

from decimal import Decimal

from django.test import TestCase

from apps.bookings.errors import AccessDenied, InvalidInput, InvalidRange, NotAvailable, NotFound
from apps.bookings.lifecycle import ReservationLifecycleManager
from apps.bookings.models import Booking
from apps.bookings.tests.factories import GUEST_ID, HOST_ID, day, fixed_clock, make_property
from apps.properties.models import BlockedRange, Property
from apps.properties.services import PropertyService
from shared.application.message_bus import MessageBus


class PropertyServiceTests(TestCase):
    def setUp(self) -> None:
        self.property = make_property()
        self.service = PropertyService(clock=fixed_clock)
        self.manager = ReservationLifecycleManager(bus=MessageBus(), clock=fixed_clock)

    def test_block_dates_makes_them_unavailable(self) -> None:
        blocked = self.service.block_dates(self.property.pk, HOST_ID, day(10), day(12), reason="Repairs")

        self.assertTrue(blocked.tag.startswith("manual:"))
        self.assertEqual(blocked.kind, BlockedRange.Kind.MANUAL)
        result = self.manager.check_property_availability(self.property.pk, day(11), day(13), 2)
        self.assertEqual(result.reason, "blocked")

    def test_block_over_live_reservation_is_refused(self) -> None:
        self.manager.create_property_reservation(self.property.pk, GUEST_ID, day(5), day(8), 2)

        with self.assertRaises(NotAvailable) as ctx:
            self.service.block_dates(self.property.pk, HOST_ID, day(7), day(9))

        self.assertEqual(ctx.exception.reason, "booked")
        self.assertEqual(BlockedRange.objects.filter(kind=BlockedRange.Kind.MANUAL).count(), 0)

    def test_block_needs_owner_and_valid_range(self) -> None:
        with self.assertRaises(AccessDenied):
            self.service.block_dates(self.property.pk, HOST_ID + 1, day(10), day(12))
        with self.assertRaises(InvalidRange):
            self.service.block_dates(self.property.pk, HOST_ID, day(12), day(10))
        with self.assertRaises(NotFound):
            self.service.block_dates(999999, HOST_ID, day(10), day(12))

    def test_unblock_manual_only(self) -> None:
        blocked = self.service.block_dates(self.property.pk, HOST_ID, day(10), day(12))
        booking = self.manager.create_property_reservation(self.property.pk, GUEST_ID, day(5), day(8), 2)

        with self.assertRaises(InvalidInput):
            self.service.unblock(booking.tag, HOST_ID)
        with self.assertRaises(AccessDenied):
            self.service.unblock(blocked.tag, HOST_ID + 1)

        self.assertEqual(self.service.unblock(blocked.tag, HOST_ID), 1)
        self.assertEqual(self.service.unblock(blocked.tag, HOST_ID), 0)
        self.assertTrue(self.manager.check_property_availability(self.property.pk, day(10), day(12), 2).available)

    def test_blocked_calendar_lists_reservations_and_blocks(self) -> None:
        self.manager.create_property_reservation(self.property.pk, GUEST_ID, day(2), day(4), 2)
        self.service.block_dates(self.property.pk, HOST_ID, day(4), day(6))

        self.assertEqual(self.service.blocked_calendar(self.property.pk), [day(2), day(3), day(4), day(5)])

    def test_availability_window(self) -> None:
        self.service.update_availability_window(self.property.pk, HOST_ID, day(1), day(30))

        self.assertEqual(
            self.manager.check_property_availability(self.property.pk, day(29), day(31), 1).reason,
            "outside_window",
        )
        with self.assertRaises(InvalidRange):
            self.service.update_availability_window(self.property.pk, HOST_ID, day(30), day(1))

    def test_new_prices_apply_to_new_reservations(self) -> None:
        before = self.manager.create_property_reservation(self.property.pk, GUEST_ID, day(2), day(4), 2)

        self.service.update_pricing(self.property.pk, HOST_ID, "120.00")
        after = self.manager.create_property_reservation(self.property.pk, GUEST_ID, day(10), day(12), 2)

        before.refresh_from_db()
        self.assertEqual(before.total_price, Decimal("180.00"))
        self.assertEqual(after.total_price, Decimal("240.00"))
        with self.assertRaises(InvalidInput):
            self.service.update_pricing(self.property.pk, HOST_ID, "-5")
        with self.assertRaises(InvalidInput):
            self.service.update_pricing(self.property.pk, HOST_ID, "cheap")

    def test_status_changes(self) -> None:
        self.service.set_status(self.property.pk, HOST_ID, "inactive")
        self.property.refresh_from_db()
        self.assertEqual(self.property.status, Property.Status.INACTIVE)
        with self.assertRaises(InvalidInput):
            self.service.set_status(self.property.pk, HOST_ID, "archived")

    def test_delete_refused_with_upcoming_reservation(self) -> None:
        booking = self.manager.create_property_reservation(self.property.pk, GUEST_ID, day(5), day(8), 2)

        with self.assertRaises(NotAvailable):
            self.service.delete_property(self.property.pk, HOST_ID)

        self.manager.change_reservation_status(booking.pk, GUEST_ID, "guest", "cancelled", reason="x")
        self.service.block_dates(self.property.pk, HOST_ID, day(10), day(12))
        self.service.delete_property(self.property.pk, HOST_ID)

        self.property.refresh_from_db()
        self.assertTrue(self.property.is_deleted)
        self.assertFalse(BlockedRange.objects.filter(property=self.property, is_active=True).exists())
        with self.assertRaises(NotFound):
            self.manager.create_property_reservation(self.property.pk, GUEST_ID, day(5), day(8), 2)

    def test_delete_refused_while_past_reservation_is_still_live(self) -> None:
        booking = self.manager.create_property_reservation(self.property.pk, GUEST_ID, day(5), day(8), 2)
        self.manager.change_reservation_status(booking.pk, HOST_ID, "host", "confirmed")
        Booking.objects.filter(pk=booking.pk).update(check_in=day(-5), check_out=day(-2))

        with self.assertRaises(NotAvailable):
            self.service.delete_property(self.property.pk, HOST_ID)

        self.manager.change_reservation_status(booking.pk, HOST_ID, "host", "completed")
        self.service.delete_property(self.property.pk, HOST_ID)
        self.property.refresh_from_db()
        self.assertTrue(self.property.is_deleted)
