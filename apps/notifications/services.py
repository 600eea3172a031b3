"""Notification services turning reservation events into outbox rows."""

from __future__ import annotations

import logging
from typing import List, Tuple

from django.db import transaction  # type: ignore

from .models import Notification

logger = logging.getLogger(__name__)


# event_type -> (customer title, owner title)
_TITLES = {
    'PropertyReservationCreated': ("Reservation request sent", "New reservation request"),
    'PropertyReservationConfirmed': ("Reservation confirmed", "You confirmed a reservation"),
    'PropertyReservationCancelled': ("Reservation cancelled", "Reservation cancelled"),
    'PropertyReservationCompleted': ("Stay completed", "Stay completed"),
    'PropertyReservationRescheduled': ("Reservation dates changed", "Reservation dates changed"),
    'TourReservationCreated': ("Tour booking request sent", "New tour booking"),
    'TourReservationConfirmed': ("Tour booking confirmed", "You confirmed a tour booking"),
    'TourReservationCancelled': ("Tour booking cancelled", "Tour booking cancelled"),
    'TourReservationCompleted': ("Tour completed", "Tour completed"),
    'TourReservationNoShow': ("Marked as no-show", "Participants marked as no-show"),
}


def _describe(payload: dict) -> str:
    reference = payload.get('reservation_id')
    if payload.get('kind') == 'property':
        dates = payload.get('dates') or {}
        text = f"Reservation {reference} for {dates.get('start_date')} - {dates.get('end_date')}"
    else:
        text = f"Tour booking {reference} on schedule {payload.get('schedule_id')}"
    if payload.get('reason'):
        text += f". Reason: {payload['reason']}"
    return text + f". Status: {payload.get('status')}."


def build_messages(payload: dict) -> List[Tuple[int, str, str, str]]:
    """
    Work out who hears about an event.

    Returns ``(recipient_id, recipient_role, title, message)`` tuples: one for
    the customer and one for the owner.
    """
    event_type = payload.get('event_type', '')
    customer_title, owner_title = _TITLES.get(event_type, ("Reservation update", "Reservation update"))
    message = _describe(payload)
    return [
        (payload['customer_id'], Notification.RecipientRole.CUSTOMER, customer_title, message),
        (payload['owner_id'], Notification.RecipientRole.OWNER, owner_title, message),
    ]


@transaction.atomic
def record_reservation_event(payload: dict) -> List[Notification]:
    """Store one notification per party; a redelivered event is not stored twice."""
    created = []
    for recipient_id, role, title, message in build_messages(payload):
        notification, is_new = Notification.objects.get_or_create(
            event_id=payload.get('event_id'),
            recipient_role=role,
            defaults={
                'recipient_id': recipient_id,
                'event': payload.get('event_type', ''),
                'reservation_id': payload.get('reservation_id'),
                'title': title,
                'message': message,
                'payload': payload,
            },
        )
        if is_new:
            created.append(notification)
    logger.info(
        f"Recorded {len(created)} notification(s) for {payload.get('event_type')} "
        f"on reservation {payload.get('reservation_id')}"
    )
    return created
