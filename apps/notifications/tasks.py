"""
Celery tasks for reservation notifications.

These tasks run after the reservation transaction has committed. A failure
here is logged and retried; it never affects the reservation itself.
"""

import logging
from datetime import timedelta

from celery import shared_task
from django.utils import timezone

from .models import Notification
from .services import record_reservation_event

logger = logging.getLogger(__name__)


@shared_task(
    name="notifications.deliver_reservation_event",
    bind=True,
    max_retries=3,
    default_retry_delay=30,
)
def deliver_reservation_event(self, payload: dict):
    """Write the outbox rows for one reservation event."""
    try:
        created = record_reservation_event(payload)
        return {"created": len(created), "event_id": payload.get("event_id")}
    except Exception as e:
        logger.error(
            f"Failed to record notifications for {payload.get('event_type')} "
            f"({payload.get('event_id')}): {e}",
            exc_info=True,
        )
        raise self.retry(exc=e)


@shared_task(name="notifications.purge_read")
def purge_read_notifications(older_than_days: int = 90):
    """Delete read notifications older than ``older_than_days``."""
    cutoff = timezone.now() - timedelta(days=older_than_days)
    deleted, _ = Notification.objects.filter(is_read=True, created_at__lt=cutoff).delete()
    logger.info(f"Purged {deleted} read notification(s) older than {older_than_days} days")
    return {"deleted": deleted}
