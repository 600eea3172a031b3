import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("reservation_engine")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Cancel pending reservations nobody confirmed in time - every minute
    "expire-pending-reservations": {
        "task": "bookings.expire_pending_reservations",
        "schedule": 60.0,
        "options": {"expires": 50},
    },
    # Drop old read notifications - nightly
    "purge-read-notifications": {
        "task": "notifications.purge_read",
        "schedule": crontab(minute=30, hour=3),
    },
}

app.conf.timezone = "UTC"
