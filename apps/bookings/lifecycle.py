"""
Reservation Lifecycle Manager

The only writer of reservations, their derived blocked ranges and tour slot
counters. Every public operation is one unit of work:

1. Open a transaction and lock the inventory row (property or schedule)
2. Re-read and validate current state under that lock
3. Write the reservation together with its compensating ledger or
   capacity change
4. Commit; domain events are published to the message bus afterwards

A failure at any step rolls back everything written so far, so callers never
see a reservation without its block or a slot count that disagrees with the
live tour bookings. Transient serialization failures re-run the whole unit.
"""

import logging
from datetime import date, timedelta
from typing import Callable, Iterable, Optional

from django.conf import settings
from django.utils import timezone

from apps.properties.ledger import BlockedRangeLedger
from apps.properties.models import BlockedRange
from apps.tours.capacity import CapacityManager
from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork, retry_on_conflict
from shared.domain.value_objects import DateRange

from .availability import AvailabilityChecker, AvailabilityResult
from .domain.participants import ParticipantList
from .domain.pricing import compute_nights, compute_property_price, compute_tour_amount
from .domain.status import ActorRole, PropertyBookingStatus, TourBookingStatus, status_enum
from .errors import AccessDenied, InvalidInput, InvalidTransition, ReservationError
from .models import Booking, TourBooking
from .repositories import AnyReservation, DjangoReservationRepository

logger = logging.getLogger(__name__)

# Status changes only the owner of the inventory may make
OWNER_ONLY_STATUSES = frozenset({'confirmed', 'completed', 'no_show'})


def _parse_role(actor_role) -> ActorRole:
    try:
        return ActorRole(str(actor_role))
    except ValueError:
        raise InvalidInput(f"Unknown actor role '{actor_role}'.")


class ReservationLifecycleManager:
    """
    Create, transition and reschedule property and tour reservations.

    Collaborators are injected; the defaults are the Django-backed
    implementations and the process-wide message bus.
    """

    def __init__(
        self,
        repository: Optional[DjangoReservationRepository] = None,
        ledger: Optional[BlockedRangeLedger] = None,
        checker: Optional[AvailabilityChecker] = None,
        capacity: Optional[CapacityManager] = None,
        bus: Optional[MessageBus] = None,
        clock: Optional[Callable] = None,
    ):
        self.clock = clock or timezone.now
        self.repository = repository or DjangoReservationRepository()
        self.ledger = ledger or BlockedRangeLedger()
        self.checker = checker or AvailabilityChecker(self.repository, self.ledger, self.clock)
        self.capacity = capacity or CapacityManager(self.clock)
        self.bus = bus

    @property
    def pending_timeout(self) -> timedelta:
        return timedelta(minutes=getattr(settings, 'RESERVATION_PENDING_TIMEOUT_MINUTES', 30))

    # ===== Queries =====

    def check_property_availability(
        self,
        property_id,
        check_in: date,
        check_out: date,
        guest_count: int,
    ) -> AvailabilityResult:
        prop = self.repository.get_property(property_id)
        return self.checker.check(prop, check_in, check_out, guest_count)

    # ===== Property reservations =====

    @retry_on_conflict
    def create_property_reservation(
        self,
        property_id,
        guest_id: int,
        check_in: date,
        check_out: date,
        guest_count: int,
        message: str = '',
        special_requests: str = '',
    ) -> Booking:
        logger.info(
            f"Creating reservation for property {property_id}, guest {guest_id}, "
            f"dates {check_in} - {check_out}, guests {guest_count}"
        )
        if not guest_id:
            raise InvalidInput("Guest is required.")

        with DjangoUnitOfWork(self.bus) as uow:
            prop = self.repository.lock_property(property_id)

            # Checked after the lock: nothing can slip in before our insert
            self.checker.check(prop, check_in, check_out, guest_count).raise_if_unavailable()

            dates = DateRange(check_in, check_out)
            total_price = compute_property_price(
                compute_nights(check_in, check_out),
                prop.price_per_night,
                prop.price_per_two_nights,
            )
            booking = Booking(
                property=prop,
                guest_id=guest_id,
                check_in=check_in,
                check_out=check_out,
                guest_count=guest_count,
                total_price=total_price,
                currency=prop.currency,
                message=message or '',
                special_requests=special_requests or '',
                expires_at=self.clock() + self.pending_timeout,
            )
            self.repository.save(booking)
            self.ledger.create(
                prop.pk,
                dates,
                booking.tag,
                reason=f"Reservation {booking.pk}",
                kind=BlockedRange.Kind.BOOKING,
            )
            self.repository.increment_property_bookings(prop.pk)

            booking.record_created()
            uow.collect_events(booking)

        logger.info(f"Reservation {booking.pk} created for property {property_id}: {dates}, {total_price}")
        return booking

    @retry_on_conflict
    def reschedule_reservation(
        self,
        reservation_id,
        check_in: date,
        check_out: date,
        actor_id: Optional[int] = None,
        actor_role=ActorRole.SYSTEM,
    ) -> Booking:
        role = _parse_role(actor_role)
        logger.info(f"Rescheduling reservation {reservation_id} to {check_in} - {check_out} by {role.value}")

        with DjangoUnitOfWork(self.bus) as uow:
            booking = self.repository.lock_reservation(reservation_id)
            if not isinstance(booking, Booking):
                raise InvalidInput("Only property reservations can change dates.")
            self._authorize_reschedule(booking, actor_id, role)
            if not booking.is_live:
                raise InvalidTransition(f"Cannot change the dates of a {booking.status} reservation.")

            prop = booking.property
            self.checker.check(
                prop, check_in, check_out, booking.guest_count, exclude_booking_id=booking.pk
            ).raise_if_unavailable()

            total_price = compute_property_price(
                compute_nights(check_in, check_out),
                prop.price_per_night,
                prop.price_per_two_nights,
            )
            previous = booking.reschedule(DateRange(check_in, check_out), total_price)
            self.repository.save(booking)

            self.ledger.retract(booking.tag)
            self.ledger.create(
                prop.pk,
                booking.dates,
                booking.tag,
                reason=f"Reservation {booking.pk}",
                kind=BlockedRange.Kind.BOOKING,
            )
            uow.collect_events(booking)

        logger.info(f"Reservation {booking.pk} moved from {previous} to {booking.dates}")
        return booking

    # ===== Tour reservations =====

    @retry_on_conflict
    def create_tour_reservation(
        self,
        schedule_id,
        user_id: int,
        participants: Iterable,
        number_of_participants: Optional[int] = None,
        special_requests: str = '',
    ) -> TourBooking:
        if not user_id:
            raise InvalidInput("User is required.")
        participant_list = ParticipantList.parse(participants)
        n = len(participant_list) if number_of_participants is None else number_of_participants
        if not isinstance(n, int) or isinstance(n, bool) or n < 1:
            raise InvalidInput("At least one participant is required.")

        logger.info(f"Creating tour reservation on schedule {schedule_id} for user {user_id}, {n} participant(s)")

        with DjangoUnitOfWork(self.bus) as uow:
            schedule = self.repository.lock_schedule(schedule_id)
            self.capacity.validate(schedule, n, participant_list)

            tour = schedule.tour
            total_amount = compute_tour_amount(tour.price, schedule.price, n)

            # Guarded increment; fails instead of overbooking
            self.capacity.reserve(schedule, n)

            tour_booking = TourBooking(
                schedule=schedule,
                tour=tour,
                user_id=user_id,
                guide_id=tour.guide_id,
                number_of_participants=n,
                participants=participant_list.to_json(),
                special_requests=special_requests or '',
                total_amount=total_amount,
                currency=tour.currency,
                expires_at=self.clock() + self.pending_timeout,
            )
            self.repository.save(tour_booking)
            self.repository.increment_tour_bookings(tour.pk)

            tour_booking.record_created()
            uow.collect_events(tour_booking)

        logger.info(
            f"Tour reservation {tour_booking.pk} created on schedule {schedule_id}: "
            f"{n} slot(s), {total_amount}"
        )
        return tour_booking

    @retry_on_conflict
    def update_tour_check_in(self, reservation_id, actor_id: int, check_in_status: str) -> TourBooking:
        with DjangoUnitOfWork(self.bus):
            tour_booking = self.repository.lock_reservation(reservation_id)
            if not isinstance(tour_booking, TourBooking):
                raise InvalidInput("Check-in tracking applies to tour reservations only.")
            if actor_id != tour_booking.guide_id:
                raise AccessDenied("Only the guide of this tour can update check-in status.")
            tour_booking.update_check_in(check_in_status, self.clock())
            self.repository.save(tour_booking)

        logger.info(f"Tour reservation {tour_booking.pk} check-in status is now {tour_booking.check_in_status}")
        return tour_booking

    # ===== Status transitions =====

    @retry_on_conflict
    def change_reservation_status(
        self,
        reservation_id,
        actor_id: Optional[int],
        actor_role,
        new_status: str,
        reason: Optional[str] = None,
    ) -> AnyReservation:
        role = _parse_role(actor_role)
        logger.info(f"Changing reservation {reservation_id} to {new_status} by {role.value} {actor_id}")

        with DjangoUnitOfWork(self.bus) as uow:
            reservation = self.repository.lock_reservation(reservation_id)

            try:
                target = status_enum(reservation.kind)(str(new_status))
            except ValueError:
                raise InvalidTransition(f"Unknown reservation status '{new_status}'.")

            self._authorize_transition(reservation, actor_id, role, target.value)
            if target.value == 'cancelled' and not (reason and reason.strip()):
                raise InvalidInput("A cancellation reason is required.")

            previous = reservation.status
            now = self.clock()
            if isinstance(reservation, Booking):
                self._transition_booking(reservation, target, role, reason, now)
            else:
                self._transition_tour_booking(reservation, target, role, reason, now)

            self.repository.save(reservation)
            uow.collect_events(reservation)

        logger.info(f"Reservation {reservation.pk}: {previous} -> {reservation.status}")
        return reservation

    def _transition_booking(self, booking: Booking, target, role: ActorRole, reason, now) -> None:
        if target == PropertyBookingStatus.CONFIRMED:
            booking.confirm(now)
            if not self.ledger.has_active(booking.tag):
                logger.warning(f"Reservation {booking.pk} had no active blocked range, recreating it")
                self.ledger.create(
                    booking.property_id,
                    booking.dates,
                    booking.tag,
                    reason=f"Reservation {booking.pk}",
                    kind=BlockedRange.Kind.BOOKING,
                )
        elif target == PropertyBookingStatus.CANCELLED:
            booking.cancel(reason.strip(), role.value, now)
            self.ledger.retract(booking.tag)
        elif target == PropertyBookingStatus.COMPLETED:
            booking.complete(now)
            # Row stays for reporting but no longer blocks the calendar
            self.ledger.retract(booking.tag)
        else:
            raise InvalidTransition(f"Unsupported status '{target.value}'.")

    def _transition_tour_booking(self, tour_booking: TourBooking, target, role: ActorRole, reason, now) -> None:
        if target == TourBookingStatus.CONFIRMED:
            tour_booking.confirm(now)
            return

        if target == TourBookingStatus.CANCELLED:
            tour_booking.cancel(reason.strip(), role.value, now)
        elif target == TourBookingStatus.COMPLETED:
            tour_booking.complete(now)
        elif target == TourBookingStatus.NO_SHOW:
            tour_booking.mark_no_show(now, reason)
        else:
            raise InvalidTransition(f"Unsupported status '{target.value}'.")

        # The reservation left the live set: its slots go back to the schedule
        self.capacity.release(tour_booking.schedule, tour_booking.number_of_participants)

    # ===== Expiry sweep =====

    def expire_stale_reservations(self, older_than: Optional[timedelta] = None) -> int:
        """
        Cancel pending reservations whose hold ran out.

        ``older_than`` additionally expires pending reservations created
        more than that long ago. Each reservation is cancelled in its own
        transaction; one failure does not stop the sweep.
        """
        now = self.clock()
        created_before = now - older_than if older_than is not None else None
        reason = f"Reservation expired: not confirmed within {int(self.pending_timeout.total_seconds() // 60)} minutes"
        expired = 0

        for model in (Booking, TourBooking):
            for reservation_id in self.repository.stale_pending_ids(model, now, created_before):
                try:
                    self.change_reservation_status(reservation_id, None, ActorRole.SYSTEM, 'cancelled', reason=reason)
                    expired += 1
                except ReservationError as e:
                    # Confirmed or cancelled by someone else in the meantime
                    logger.info(f"Skipping expiry of reservation {reservation_id}: {e.detail}")
                except Exception as e:
                    logger.error(f"Failed to expire reservation {reservation_id}: {e}", exc_info=True)

        if expired:
            logger.info(f"Expired {expired} pending reservation(s)")
        return expired

    # ===== Permissions =====

    @staticmethod
    def _is_owner(reservation: AnyReservation, actor_id, role: ActorRole) -> bool:
        expected_role = ActorRole.HOST if isinstance(reservation, Booking) else ActorRole.GUIDE
        return role == expected_role and actor_id is not None and actor_id == reservation.owner_id

    @staticmethod
    def _is_customer(reservation: AnyReservation, actor_id, role: ActorRole) -> bool:
        return role == ActorRole.GUEST and actor_id is not None and actor_id == reservation.customer_id

    def _authorize_transition(self, reservation: AnyReservation, actor_id, role: ActorRole, target: str) -> None:
        if target in OWNER_ONLY_STATUSES:
            allowed = self._is_owner(reservation, actor_id, role)
        else:
            allowed = (
                role == ActorRole.SYSTEM
                or self._is_owner(reservation, actor_id, role)
                or self._is_customer(reservation, actor_id, role)
            )
        if not allowed:
            logger.warning(
                f"Denied {role.value} {actor_id} moving reservation {reservation.pk} to {target}"
            )
            raise AccessDenied("You are not allowed to change the status of this reservation.")

    def _authorize_reschedule(self, booking: Booking, actor_id, role: ActorRole) -> None:
        if role == ActorRole.SYSTEM:
            return
        if self._is_owner(booking, actor_id, role) or self._is_customer(booking, actor_id, role):
            return
        logger.warning(f"Denied {role.value} {actor_id} rescheduling reservation {booking.pk}")
        raise AccessDenied("You are not allowed to change the dates of this reservation.")
