"""Notification model.

Outbox entry telling one party of a reservation about something that
happened to it. Rows are created by the reservation event tasks and
consumed by the delivery channels and the recipient's inbox.
"""

from __future__ import annotations

from django.db import models  # type: ignore


class Notification(models.Model):
    """A message for one reservation party about one event."""

    class RecipientRole(models.TextChoices):
        CUSTOMER = 'customer', 'Customer'
        OWNER = 'owner', 'Owner'

    recipient_id = models.PositiveBigIntegerField(db_index=True)
    recipient_role = models.CharField(max_length=20, choices=RecipientRole.choices)
    event = models.CharField(max_length=64)
    event_id = models.UUIDField(null=True, blank=True)
    reservation_id = models.UUIDField(null=True, blank=True, db_index=True)
    title = models.CharField(max_length=255)
    message = models.TextField()
    payload = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['event_id', 'recipient_role'],
                name='notification_once_per_event_and_party',
            ),
        ]

    def __str__(self) -> str:
        return f"Notification to {self.recipient_id}: {self.title}"

    def mark_read(self) -> None:
        if not self.is_read:
            self.is_read = True
            self.save(update_fields=['is_read'])
