"""
Base Domain Classes

This module provides the foundational building blocks for Domain-Driven Design:
- ValueObject: Immutable objects compared by value
- Aggregate: Consistency boundaries that record domain events
- DomainEvent: Events that represent something that happened
"""

from abc import ABC
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List
from uuid import UUID, uuid4

from django.utils import timezone


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects

    Value objects are immutable and have no identity.
    Two value objects are equal if all their attributes are equal.
    """
    pass


class Aggregate:
    """
    Mixin for aggregate roots

    Aggregates are the consistency boundaries in DDD.
    They record domain events that are published after a successful
    transaction. The mixin works for plain classes and Django models alike:
    the event buffer lives on the instance and is never persisted.
    """

    @property
    def _pending_events(self) -> List['DomainEvent']:
        return self.__dict__.setdefault('_domain_events', [])

    def add_event(self, event: 'DomainEvent'):
        """Add a domain event to be published"""
        self._pending_events.append(event)

    def clear_events(self):
        """Clear all collected events (called after publishing)"""
        self._pending_events.clear()

    @property
    def events(self) -> List['DomainEvent']:
        """Get copy of collected events"""
        return list(self._pending_events)


def _serialize(value):
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, ValueObject) and hasattr(value, 'to_dict'):
        return value.to_dict()
    return value


@dataclass(kw_only=True)
class DomainEvent:
    """
    Base class for domain events

    Domain events represent something that happened in the domain.
    They are used to communicate between bounded contexts.
    """
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=timezone.now)
    aggregate_id: UUID = None

    @property
    def event_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict:
        """Convert event to a JSON-safe dictionary (Celery payloads)"""
        payload = {f.name: _serialize(getattr(self, f.name)) for f in fields(self)}
        payload['event_type'] = self.event_type
        return payload
