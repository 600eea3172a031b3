"""
Unit of Work Pattern

Manages database transactions and ensures that domain events
are published only after successful transaction commit.
"""

from abc import ABC, abstractmethod
from typing import List
import functools
import logging
import time

from django.conf import settings
from django.db import OperationalError, transaction

from shared.application.message_bus import MessageBus
from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)

# SQLSTATE serialization_failure / deadlock_detected
RETRYABLE_SQLSTATES = frozenset({'40001', '40P01'})


class AbstractUnitOfWork(ABC):
    """Abstract Unit of Work pattern"""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def commit(self):
        """Commit the transaction"""
        pass

    @abstractmethod
    def rollback(self):
        """Rollback the transaction"""
        pass

    @abstractmethod
    def collect_events(self, aggregate):
        """Collect events from aggregate root"""
        pass


class DjangoUnitOfWork(AbstractUnitOfWork):
    """
    Django implementation of Unit of Work

    Manages Django database transactions and ensures domain events
    are published after successful commit.

    Usage:
        with DjangoUnitOfWork(bus) as uow:
            property_obj = repository.lock_property(property_id)
            booking = repository.create_booking(...)
            booking.add_event(PropertyReservationCreated(...))
            uow.collect_events(booking)
            # Transaction commits here
        # Events are published after commit
    """

    def __init__(self, bus: MessageBus | None = None):
        self._events: List[DomainEvent] = []
        self._transaction = None
        self._bus = bus

    def __enter__(self):
        """Start database transaction"""
        self._transaction = transaction.atomic()
        self._transaction.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Complete or rollback transaction"""
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            if self._transaction:
                self._transaction.__exit__(exc_type, exc_val, exc_tb)

    def commit(self):
        """
        Commit changes and publish events

        Events are published using Django's transaction.on_commit()
        to ensure they're only sent after database commit succeeds.
        """
        logger.debug(f"Committing transaction with {len(self._events)} events")

        events = self._events.copy()
        self._events.clear()

        if events:
            transaction.on_commit(lambda: self._publish_events(events))

    def rollback(self):
        """Rollback changes and discard events"""
        if self._events:
            logger.warning(f"Rolling back transaction, discarding {len(self._events)} events")
        self._events.clear()

    def add_event(self, event: DomainEvent):
        self._events.append(event)

    def collect_events(self, aggregate):
        """
        Collect events from aggregate root

        Extracts all domain events from the aggregate and
        clears them from the aggregate.
        """
        new_events = getattr(aggregate, 'events', None)
        if new_events:
            self._events.extend(new_events)
            aggregate.clear_events()
            logger.debug(
                f"Collected {len(new_events)} events from "
                f"{aggregate.__class__.__name__} (ID: {getattr(aggregate, 'pk', None)})"
            )

    def _publish_events(self, events: List[DomainEvent]):
        """
        Publish collected events to message bus

        Called after successful transaction commit.
        """
        bus = self._bus
        if bus is None:
            from shared.application.message_bus import message_bus as bus

        logger.info(f"Publishing {len(events)} domain events after commit")

        try:
            bus.publish_events(events)
        except Exception as e:
            logger.error(f"Error publishing events: {e}", exc_info=True)
            # The transition is already committed; publishing problems are
            # for monitoring, not for the caller


def is_retryable_error(exc: BaseException) -> bool:
    """True for serialization failures, deadlocks and SQLite write-lock timeouts."""
    if not isinstance(exc, OperationalError):
        return False
    cause = exc.__cause__
    sqlstate = getattr(cause, 'pgcode', None) or getattr(getattr(cause, 'diag', None), 'sqlstate', None)
    if sqlstate in RETRYABLE_SQLSTATES:
        return True
    return 'database is locked' in str(exc).lower()


def retry_on_conflict(func=None, *, attempts: int | None = None, backoff: float = 0.05):
    """
    Re-run a whole unit of work when the database aborts it for
    serialization reasons.

    Only retries at the outermost level: inside an enclosing atomic block the
    transaction is already poisoned, so the error propagates unchanged.
    """

    def decorator(wrapped):
        @functools.wraps(wrapped)
        def wrapper(*args, **kwargs):
            max_attempts = attempts or getattr(settings, 'RESERVATION_TRANSACTION_RETRIES', 3)
            attempt = 1
            while True:
                try:
                    return wrapped(*args, **kwargs)
                except OperationalError as e:
                    if (
                        attempt >= max_attempts
                        or not is_retryable_error(e)
                        or transaction.get_connection().in_atomic_block
                    ):
                        raise
                    logger.warning(
                        f"Retrying {wrapped.__name__} after transient database error "
                        f"(attempt {attempt}/{max_attempts}): {e}"
                    )
                    time.sleep(backoff * attempt)
                    attempt += 1

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator
