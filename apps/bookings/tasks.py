"""Celery tasks for the reservation engine."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.db import transaction  # type: ignore

from .domain.status import PaymentStatus
from .gateways import EscrowPaymentGateway
from .lifecycle import ReservationLifecycleManager
from .models import Booking, TourBooking

logger = logging.getLogger(__name__)


@shared_task(name="bookings.request_payment")
def request_payment(reservation_id: str, kind: str) -> dict:
    """
    Ask the escrow gateway to collect payment for a new reservation.

    Only pending reservations still waiting for payment are sent; the
    gateway's payment id is stored for reconciliation.
    """
    model = Booking if kind == "property" else TourBooking
    reservation = model.objects.filter(pk=reservation_id).first()
    if reservation is None:
        logger.warning(f"Payment requested for unknown reservation {reservation_id}")
        return {"requested": False}
    if reservation.status != "pending" or reservation.payment_status != PaymentStatus.PENDING:
        return {"requested": False}

    amount = reservation.total_price if isinstance(reservation, Booking) else reservation.total_amount
    result = EscrowPaymentGateway().request_payment(
        reservation.pk,
        kind,
        amount,
        reservation.currency,
        reservation.customer_id,
    )
    if result is None:
        return {"requested": False}

    with transaction.atomic():
        model.objects.filter(pk=reservation.pk).update(payment_reference=result["payment_id"])
    return {"requested": True, "payment_id": result["payment_id"]}


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="bookings.expire_pending_reservations")
def expire_pending_reservations() -> dict[str, int]:
    """
    Cancel pending reservations whose hold expired.

    Each reservation is cancelled through the lifecycle manager exactly like
    a user cancellation, so its blocked range or slots are released too.

    Runs every minute through Celery Beat.
    """
    expired = ReservationLifecycleManager().expire_stale_reservations()
    return {"expired": expired}
