"""Races between reservation writers.

Each worker thread gets its own database connection, so these tests need
real commits and a file-backed test database.
"""

import threading

from django.db import connection
from django.test import TransactionTestCase

from apps.bookings.errors import InsufficientCapacity, InvalidTransition, NotAvailable
from apps.bookings.lifecycle import ReservationLifecycleManager
from apps.bookings.models import Booking, TourBooking
from apps.properties.models import BlockedRange
from shared.application.message_bus import MessageBus
from shared.domain.value_objects import DateRange, overlaps

from .factories import GUEST_ID, day, fixed_clock, make_property, make_schedule, participants


def run_concurrently(*calls):
    """Start every call at the same moment; return (results, errors) in call order."""
    barrier = threading.Barrier(len(calls))
    results = [None] * len(calls)
    errors = [None] * len(calls)

    def worker(index, call):
        try:
            barrier.wait()
            results[index] = call()
        except Exception as e:
            errors[index] = e
        finally:
            connection.close()

    threads = [threading.Thread(target=worker, args=(i, call)) for i, call in enumerate(calls)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return results, errors


class ConcurrentReservationTests(TransactionTestCase):
    def setUp(self) -> None:
        self.manager = ReservationLifecycleManager(bus=MessageBus(), clock=fixed_clock)

    def test_overlapping_requests_admit_exactly_one(self) -> None:
        prop = make_property()
        calls = [
            lambda guest=GUEST_ID + i: self.manager.create_property_reservation(prop.pk, guest, day(5), day(8), 2)
            for i in range(4)
        ]

        results, errors = run_concurrently(*calls)

        self.assertEqual(len([r for r in results if r is not None]), 1)
        self.assertEqual(len([e for e in errors if e is not None]), 3)
        for error in filter(None, errors):
            self.assertIsInstance(error, NotAvailable)
            self.assertEqual(error.reason, "booked")
        self.assertEqual(Booking.objects.filter(property=prop, status="pending").count(), 1)
        self.assertEqual(BlockedRange.objects.filter(property=prop, is_active=True).count(), 1)

    def test_staggered_requests_never_overlap(self) -> None:
        prop = make_property()
        requested = [(5, 8), (7, 10), (9, 12), (11, 14), (6, 7)]
        calls = [
            lambda guest=GUEST_ID + i, start=start, end=end: self.manager.create_property_reservation(
                prop.pk, guest, day(start), day(end), 2
            )
            for i, (start, end) in enumerate(requested)
        ]

        results, errors = run_concurrently(*calls)

        accepted = [r.dates for r in results if r is not None]
        self.assertGreaterEqual(len(accepted), 1)
        for i, first in enumerate(accepted):
            for second in accepted[i + 1:]:
                self.assertFalse(overlaps(first, second), f"{first} overlaps {second}")
        for (start, end), error in zip(requested, errors):
            if error is None:
                continue
            self.assertIsInstance(error, NotAvailable)
            rejected = DateRange(day(start), day(end))
            self.assertTrue(any(overlaps(rejected, dates) for dates in accepted))

        live = Booking.objects.filter(property=prop, status="pending")
        self.assertEqual(sorted((b.check_in, b.check_out) for b in live), sorted((d.start_date, d.end_date) for d in accepted))

    def test_tour_capacity_is_never_exceeded(self) -> None:
        schedule = make_schedule(available_slots=10, booked_slots=7)
        calls = [
            lambda user=GUEST_ID + i: self.manager.create_tour_reservation(schedule.pk, user, participants(2))
            for i in range(2)
        ]

        results, errors = run_concurrently(*calls)

        self.assertEqual(len([r for r in results if r is not None]), 1)
        self.assertEqual(len([e for e in errors if e is not None]), 1)
        self.assertIsInstance(next(filter(None, errors)), InsufficientCapacity)
        schedule.refresh_from_db()
        self.assertEqual(schedule.booked_slots, 9)
        self.assertEqual(TourBooking.objects.filter(schedule=schedule).count(), 1)

    def test_reschedule_and_new_reservation_race(self) -> None:
        prop = make_property()
        existing = self.manager.create_property_reservation(prop.pk, GUEST_ID, day(2), day(4), 2)

        results, errors = run_concurrently(
            lambda: self.manager.reschedule_reservation(existing.pk, day(10), day(12), GUEST_ID, "guest"),
            lambda: self.manager.create_property_reservation(prop.pk, GUEST_ID + 1, day(11), day(13), 2),
        )

        self.assertEqual(len([r for r in results if r is not None]), 1)
        self.assertEqual(len([e for e in errors if e is not None]), 1)
        self.assertIsInstance(next(filter(None, errors)), NotAvailable)
        live = Booking.objects.filter(property=prop, status="pending").order_by("check_in")
        ranges = [(b.check_in, b.check_out) for b in live]
        for (_, first_end), (second_start, _) in zip(ranges, ranges[1:]):
            self.assertLessEqual(first_end, second_start)
        blocked = sorted(
            BlockedRange.objects.filter(property=prop, is_active=True).values_list("start_date", "end_date")
        )
        self.assertEqual(blocked, sorted(ranges))

    def test_concurrent_cancellations_release_once(self) -> None:
        schedule = make_schedule(available_slots=10)
        booking = self.manager.create_tour_reservation(schedule.pk, GUEST_ID, participants(3))

        results, errors = run_concurrently(
            lambda: self.manager.change_reservation_status(booking.pk, GUEST_ID, "guest", "cancelled", reason="a"),
            lambda: self.manager.change_reservation_status(booking.pk, GUEST_ID, "guest", "cancelled", reason="b"),
        )

        self.assertEqual(len([r for r in results if r is not None]), 1)
        self.assertEqual(len([e for e in errors if e is not None]), 1)
        self.assertIsInstance(next(filter(None, errors)), InvalidTransition)
        schedule.refresh_from_db()
        self.assertEqual(schedule.booked_slots, 0)
