"""
Reservation Domain Events

Events that represent things that have happened to a reservation.
They are collected by the unit of work and published after commit.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from shared.domain.base import DomainEvent
from shared.domain.value_objects import DateRange, Money


@dataclass(kw_only=True)
class ReservationEvent(DomainEvent):
    """Common shape: which reservation, whose, and who else is involved."""
    reservation_id: UUID
    kind: str
    customer_id: int
    owner_id: int
    status: str


# ===== Property reservation events =====

@dataclass(kw_only=True)
class PropertyReservationCreated(ReservationEvent):
    """
    Event: A property reservation was accepted in pending state

    Triggers:
    - Notify guest and host
    - Request payment through the escrow gateway
    """
    property_id: int
    dates: DateRange
    guest_count: int
    total_price: Money


@dataclass(kw_only=True)
class PropertyReservationConfirmed(ReservationEvent):
    """Event: Host confirmed the reservation (PENDING -> CONFIRMED)"""
    property_id: int
    dates: DateRange


@dataclass(kw_only=True)
class PropertyReservationCancelled(ReservationEvent):
    """
    Event: Reservation cancelled by guest, host or the expiry sweep

    The derived blocked range was already retracted in the same transaction.
    """
    property_id: int
    dates: DateRange
    reason: str
    cancelled_by: str
    previous_status: str


@dataclass(kw_only=True)
class PropertyReservationCompleted(ReservationEvent):
    """Event: Stay finished (CONFIRMED -> COMPLETED)"""
    property_id: int
    dates: DateRange


@dataclass(kw_only=True)
class PropertyReservationRescheduled(ReservationEvent):
    """Event: Reservation moved to new dates and repriced"""
    property_id: int
    previous_dates: DateRange
    dates: DateRange
    total_price: Money


# ===== Tour reservation events =====

@dataclass(kw_only=True)
class TourReservationCreated(ReservationEvent):
    """
    Event: Slots were taken on a tour schedule

    Triggers:
    - Notify participant and guide
    - Request payment through the escrow gateway
    """
    tour_id: int
    schedule_id: int
    participants: int
    total_amount: Money


@dataclass(kw_only=True)
class TourReservationConfirmed(ReservationEvent):
    tour_id: int
    schedule_id: int


@dataclass(kw_only=True)
class TourReservationCancelled(ReservationEvent):
    """Event: Tour reservation cancelled; its slots are free again"""
    tour_id: int
    schedule_id: int
    participants: int
    reason: str
    cancelled_by: str
    previous_status: str


@dataclass(kw_only=True)
class TourReservationCompleted(ReservationEvent):
    tour_id: int
    schedule_id: int


@dataclass(kw_only=True)
class TourReservationNoShow(ReservationEvent):
    """Event: Participants did not show up (CONFIRMED -> NO_SHOW)"""
    tour_id: int
    schedule_id: int
    reason: Optional[str] = None


# Events that carry a new reservation (payment is requested for these)
RESERVATION_CREATED_EVENTS = (PropertyReservationCreated, TourReservationCreated)
