"""Notifications app package.

Keeps an outbox of messages for the parties of a reservation. Rows are
written by Celery tasks that react to reservation events after commit;
delivery over email or SMS is left to external channels reading the outbox.
"""
