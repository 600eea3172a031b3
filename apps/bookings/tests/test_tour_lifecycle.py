from datetime import timedelta
from decimal import Decimal

from django.test import TestCase

from apps.bookings.domain.events import TourReservationCancelled, TourReservationCreated
from apps.bookings.errors import (
    AccessDenied,
    GroupSizeViolation,
    InsufficientCapacity,
    InvalidInput,
    InvalidTransition,
    NotAvailable,
    NotFound,
)
from apps.bookings.lifecycle import ReservationLifecycleManager
from apps.bookings.models import TourBooking
from apps.tours.models import TourSchedule
from shared.application.message_bus import MessageBus
from shared.domain.base import DomainEvent

from .factories import FIXED_NOW, GUEST_ID, GUIDE_ID, OTHER_GUEST_ID, fixed_clock, make_schedule, make_tour, participants


class TourReservationTests(TestCase):
    def setUp(self) -> None:
        self.tour = make_tour()
        self.schedule = make_schedule(self.tour, available_slots=10)
        self.published = []
        self.bus = MessageBus()
        self.bus.register_event_handler(DomainEvent, self.published.append)
        self.manager = ReservationLifecycleManager(bus=self.bus, clock=fixed_clock)

    def _reserve(self, count: int = 2, user_id: int = GUEST_ID, schedule: TourSchedule | None = None) -> TourBooking:
        return self.manager.create_tour_reservation((schedule or self.schedule).pk, user_id, participants(count))

    def _booked(self) -> int:
        self.schedule.refresh_from_db()
        return self.schedule.booked_slots

    def test_create_takes_slots(self) -> None:
        booking = self._reserve(3)

        self.assertEqual(booking.status, "pending")
        self.assertEqual(booking.number_of_participants, 3)
        self.assertEqual(booking.total_amount, Decimal("75.00"))
        self.assertEqual(booking.guide_id, GUIDE_ID)
        self.assertEqual(len(booking.participant_list()), 3)
        self.assertEqual(booking.expires_at, FIXED_NOW + timedelta(minutes=30))
        self.assertEqual(self._booked(), 3)
        self.tour.refresh_from_db()
        self.assertEqual(self.tour.total_bookings, 1)

    def test_schedule_price_overrides_tour_price(self) -> None:
        schedule = make_schedule(self.tour, price=Decimal("40.00"))
        booking = self._reserve(2, schedule=schedule)
        self.assertEqual(booking.total_amount, Decimal("80.00"))

    def test_no_overbooking(self) -> None:
        self.schedule.booked_slots = 9
        self.schedule.save()

        with self.assertRaises(InsufficientCapacity):
            self._reserve(2)

        self.assertEqual(self._booked(), 9)
        self._reserve(1)
        self.assertEqual(self._booked(), 10)
        with self.assertRaises(InsufficientCapacity):
            self._reserve(1, user_id=OTHER_GUEST_ID)

    def test_group_size_limits(self) -> None:
        tour = make_tour(min_group_size=2, max_group_size=4)
        schedule = make_schedule(tour)
        with self.assertRaises(GroupSizeViolation):
            self._reserve(1, schedule=schedule)
        with self.assertRaises(GroupSizeViolation):
            self._reserve(5, schedule=schedule)
        self._reserve(4, schedule=schedule)

    def test_participant_count_must_match_details(self) -> None:
        with self.assertRaises(InvalidInput):
            self.manager.create_tour_reservation(self.schedule.pk, GUEST_ID, participants(2), number_of_participants=3)
        with self.assertRaises(InvalidInput):
            self.manager.create_tour_reservation(self.schedule.pk, GUEST_ID, [])
        with self.assertRaises(InvalidInput):
            self.manager.create_tour_reservation(self.schedule.pk, GUEST_ID, "two people")
        self.assertEqual(self._booked(), 0)

    def test_unavailable_schedules(self) -> None:
        with self.assertRaises(NotFound):
            self.manager.create_tour_reservation(999999, GUEST_ID, participants(1))

        closed = make_schedule(self.tour, is_available=False)
        with self.assertRaises(NotAvailable) as ctx:
            self._reserve(1, schedule=closed)
        self.assertEqual(ctx.exception.reason, "schedule_unavailable")

        started = make_schedule(
            self.tour,
            start_date=FIXED_NOW - timedelta(hours=1),
            end_date=FIXED_NOW + timedelta(hours=2),
        )
        with self.assertRaises(NotAvailable) as ctx:
            self._reserve(1, schedule=started)
        self.assertEqual(ctx.exception.reason, "schedule_started")

    def test_inactive_tour(self) -> None:
        self.tour.is_active = False
        self.tour.save()
        with self.assertRaises(NotAvailable):
            self._reserve(1)

    def test_cancel_releases_slots(self) -> None:
        booking = self._reserve(3)

        cancelled = self.manager.change_reservation_status(booking.pk, GUEST_ID, "guest", "cancelled", reason="Ill")

        self.assertEqual(cancelled.status, "cancelled")
        self.assertEqual(self._booked(), 0)

    def test_guide_confirm_then_no_show_releases_slots(self) -> None:
        booking = self._reserve(2)
        self.manager.change_reservation_status(booking.pk, GUIDE_ID, "guide", "confirmed")
        self.assertEqual(self._booked(), 2)

        no_show = self.manager.change_reservation_status(booking.pk, GUIDE_ID, "guide", "no_show", reason="Did not arrive")

        self.assertEqual(no_show.status, "no_show")
        self.assertEqual(self._booked(), 0)
        with self.assertRaises(InvalidTransition):
            self.manager.change_reservation_status(booking.pk, GUIDE_ID, "guide", "completed")

    def test_complete_releases_slots(self) -> None:
        booking = self._reserve(2)
        self.manager.change_reservation_status(booking.pk, GUIDE_ID, "guide", "confirmed")
        self.manager.change_reservation_status(booking.pk, GUIDE_ID, "guide", "completed")
        self.assertEqual(self._booked(), 0)

    def test_no_show_needs_confirmation_first(self) -> None:
        booking = self._reserve(2)
        with self.assertRaises(InvalidTransition):
            self.manager.change_reservation_status(booking.pk, GUIDE_ID, "guide", "no_show")
        self.assertEqual(self._booked(), 2)

    def test_only_the_guide_confirms(self) -> None:
        booking = self._reserve(2)
        with self.assertRaises(AccessDenied):
            self.manager.change_reservation_status(booking.pk, GUEST_ID, "guest", "confirmed")
        with self.assertRaises(AccessDenied):
            self.manager.change_reservation_status(booking.pk, GUIDE_ID, "host", "confirmed")

    def test_tour_bookings_cannot_be_rescheduled(self) -> None:
        booking = self._reserve(2)
        with self.assertRaises(InvalidInput):
            self.manager.reschedule_reservation(booking.pk, FIXED_NOW.date(), FIXED_NOW.date() + timedelta(days=1))

    def test_check_in_flow(self) -> None:
        booking = self._reserve(2)
        with self.assertRaises(InvalidTransition):
            self.manager.update_tour_check_in(booking.pk, GUIDE_ID, "checked_in")

        self.manager.change_reservation_status(booking.pk, GUIDE_ID, "guide", "confirmed")
        with self.assertRaises(AccessDenied):
            self.manager.update_tour_check_in(booking.pk, GUEST_ID, "checked_in")

        checked_in = self.manager.update_tour_check_in(booking.pk, GUIDE_ID, "checked_in")
        self.assertEqual(checked_in.check_in_status, "checked_in")
        self.assertEqual(checked_in.check_in_time, FIXED_NOW)

        checked_out = self.manager.update_tour_check_in(booking.pk, GUIDE_ID, "checked_out")
        self.assertEqual(checked_out.check_out_time, FIXED_NOW)
        with self.assertRaises(InvalidTransition):
            self.manager.update_tour_check_in(booking.pk, GUIDE_ID, "checked_in")

    def test_expiry_returns_slots(self) -> None:
        self._reserve(4)
        later = ReservationLifecycleManager(bus=self.bus, clock=lambda: FIXED_NOW + timedelta(hours=1))

        self.assertEqual(later.expire_stale_reservations(), 1)
        self.assertEqual(self._booked(), 0)

    def test_events(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            booking = self._reserve(2)
        with self.captureOnCommitCallbacks(execute=True):
            self.manager.change_reservation_status(booking.pk, GUEST_ID, "guest", "cancelled", reason="x")

        created, cancelled = self.published
        self.assertIsInstance(created, TourReservationCreated)
        self.assertEqual(created.participants, 2)
        self.assertEqual(created.owner_id, GUIDE_ID)
        self.assertIsInstance(cancelled, TourReservationCancelled)
        self.assertEqual(cancelled.to_dict()["kind"], "tour")
