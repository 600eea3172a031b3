"""
Reservation Status Machine

Closed status enumerations per reservation kind and the one function that
decides whether a status change is legal:

    pending ──confirm──► confirmed ──complete──► completed
       │                     │
       └──cancel──► cancelled ◄──cancel──┘

Tour bookings may additionally move confirmed -> no_show.
"""

from enum import Enum
from typing import Dict, FrozenSet, List, Tuple

from apps.bookings.errors import InvalidTransition


class _Choices(str, Enum):
    """str-valued enum usable directly as Django field choices"""

    @classmethod
    def choices(cls) -> List[Tuple[str, str]]:
        return [(member.value, member.value.replace('_', ' ').capitalize()) for member in cls]

    def __str__(self):
        return self.value


class ReservationKind(_Choices):
    PROPERTY = 'property'
    TOUR = 'tour'


class PropertyBookingStatus(_Choices):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class TourBookingStatus(_Choices):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    NO_SHOW = 'no_show'


class PaymentStatus(_Choices):
    PENDING = 'pending'
    PAID = 'paid'
    FAILED = 'failed'
    REFUNDED = 'refunded'


class CheckInStatus(_Choices):
    NOT_CHECKED_IN = 'not_checked_in'
    CHECKED_IN = 'checked_in'
    CHECKED_OUT = 'checked_out'


class ActorRole(_Choices):
    GUEST = 'guest'
    HOST = 'host'
    GUIDE = 'guide'
    SYSTEM = 'system'


# Reservations in these states hold inventory (dates or slots)
LIVE_STATUSES: Tuple[str, ...] = ('pending', 'confirmed')

_TRANSITIONS: Dict[ReservationKind, Dict[str, FrozenSet[str]]] = {
    ReservationKind.PROPERTY: {
        'pending': frozenset({'confirmed', 'cancelled'}),
        'confirmed': frozenset({'completed', 'cancelled'}),
    },
    ReservationKind.TOUR: {
        'pending': frozenset({'confirmed', 'cancelled'}),
        'confirmed': frozenset({'completed', 'cancelled', 'no_show'}),
    },
}

_CHECK_IN_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    'not_checked_in': frozenset({'checked_in'}),
    'checked_in': frozenset({'checked_out'}),
}


def status_enum(kind: ReservationKind):
    return PropertyBookingStatus if kind == ReservationKind.PROPERTY else TourBookingStatus


def allowed_transitions(kind: ReservationKind, current: str) -> FrozenSet[str]:
    return _TRANSITIONS[ReservationKind(kind)].get(str(current), frozenset())


def is_terminal(kind: ReservationKind, current: str) -> bool:
    return not allowed_transitions(kind, current)


def is_live(status: str) -> bool:
    return str(status) in LIVE_STATUSES


def ensure_transition(kind: ReservationKind, current: str, new: str):
    """
    Validate ``current -> new`` for a reservation kind and return the new
    status as an enum member.

    Raises InvalidTransition for unknown statuses and illegal moves,
    including a move to the current status.
    """
    enum = status_enum(kind)
    try:
        target = enum(str(new))
    except ValueError:
        raise InvalidTransition(f"Unknown {ReservationKind(kind).value} reservation status '{new}'.")

    if target.value not in allowed_transitions(kind, current):
        raise InvalidTransition(
            f"Cannot move a {ReservationKind(kind).value} reservation from '{current}' to '{target.value}'."
        )
    return target


def ensure_check_in_transition(current: str, new: str) -> CheckInStatus:
    try:
        target = CheckInStatus(str(new))
    except ValueError:
        raise InvalidTransition(f"Unknown check-in status '{new}'.")

    if target.value not in _CHECK_IN_TRANSITIONS.get(str(current), frozenset()):
        raise InvalidTransition(f"Cannot move check-in status from '{current}' to '{target.value}'.")
    return target
