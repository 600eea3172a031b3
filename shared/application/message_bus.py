"""
Message Bus

Central hub for routing domain events to their handlers.
Reservation transitions publish here after commit; handlers hand the work
to Celery so that slow or failing side effects never touch the transition.
"""

from typing import Callable, Dict, Iterable, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class MessageBus:
    """
    Message bus for domain events

    Events: Multiple handlers per event (1:N). Handlers registered for a
    base class also receive its subclasses.
    """

    def __init__(self):
        self._event_handlers: Dict[Type[DomainEvent], List[EventHandler]] = {}

    def register_event_handler(self, event_type: Type[DomainEvent], handler: EventHandler):
        """
        Register an event handler

        Multiple handlers can be registered for the same event type.
        Registering the same handler twice is a no-op.
        """
        handlers = self._event_handlers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)
            logger.debug(f"Registered event handler for {event_type.__name__}")

    def subscribe(self, *event_types: Type[DomainEvent]):
        """Decorator form of register_event_handler"""

        def decorator(handler: EventHandler) -> EventHandler:
            for event_type in event_types:
                self.register_event_handler(event_type, handler)
            return handler

        return decorator

    def handlers_for(self, event: DomainEvent) -> List[EventHandler]:
        found: List[EventHandler] = []
        for event_type, handlers in self._event_handlers.items():
            if isinstance(event, event_type):
                found.extend(h for h in handlers if h not in found)
        return found

    def publish_events(self, events: Iterable[DomainEvent]):
        """
        Publish domain events

        All registered handlers for each event type will be called.
        Errors in handlers are logged but don't stop other handlers.
        """
        for event in events:
            handlers = self.handlers_for(event)

            if not handlers:
                logger.warning(f"No handlers registered for event {event.event_type}")
                continue

            logger.info(f"Publishing event: {event.event_type} (ID: {event.event_id})")

            for handler in handlers:
                try:
                    handler(event)
                    logger.debug(f"Event {event.event_type} handled by {handler.__name__}")
                except Exception as e:
                    logger.error(
                        f"Error in event handler {handler.__name__} "
                        f"for event {event.event_type}: {e}",
                        exc_info=True
                    )
                    # Don't raise - other handlers should still run

    def clear(self):
        self._event_handlers.clear()


# Global message bus instance
message_bus = MessageBus()
