"""
Reservation event handlers.

Registered on the message bus when the bookings app is ready. They run after
the reservation transaction has committed and only hand work to Celery, so a
slow or broken broker, mail provider or payment gateway cannot fail a
reservation. Anything they raise is caught and logged by the bus.
"""

import logging

from shared.application.message_bus import MessageBus

from .domain.events import RESERVATION_CREATED_EVENTS, ReservationEvent

logger = logging.getLogger(__name__)


def enqueue_notifications(event: ReservationEvent):
    from apps.notifications.tasks import deliver_reservation_event

    deliver_reservation_event.delay(event.to_dict())
    logger.debug(f"Queued notifications for {event.event_type} ({event.event_id})")


def enqueue_payment_request(event: ReservationEvent):
    from .tasks import request_payment

    request_payment.delay(str(event.reservation_id), event.kind)
    logger.debug(f"Queued payment request for reservation {event.reservation_id}")


def register_handlers(bus: MessageBus):
    bus.register_event_handler(ReservationEvent, enqueue_notifications)
    for event_type in RESERVATION_CREATED_EVENTS:
        bus.register_event_handler(event_type, enqueue_payment_request)
