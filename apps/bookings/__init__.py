"""Bookings app package.

This app holds the reservation engine: property bookings and tour bookings,
their status machine, pricing, the availability checker and the lifecycle
manager that commits every reservation together with its derived blocked
range or slot change in one transaction. Side effects (notifications and
payment requests) run as Celery tasks after commit.
"""
