"""
Event Publisher

Application service for publishing domain events to registered handlers.
Keeps side effects (logging, auditing) out of the authorization path.
"""

import logging
from threading import Lock
from typing import Callable, Dict, List, Type

from ..domain.events import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class EventPublisher:
    """
    Event publisher that dispatches domain events to registered handlers.

    Handlers subscribe to an event class and receive that class and its
    subclasses, so a handler registered for DomainEvent sees everything.
    Dispatch is synchronous; handler exceptions are logged and swallowed so
    a broken side effect never fails a download.

    Thread-safe for concurrent event publishing.
    """

    def __init__(self):
        self._handlers: Dict[Type[DomainEvent], List[EventHandler]] = {}
        self._lock = Lock()

    def subscribe(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        """
        Register a handler for an event type.

        Args:
            event_type: Domain event class to handle (subclasses included)
            handler: Callable that accepts the event

        Example:
            publisher = EventPublisher()
            publisher.subscribe(AccessDeniedEvent, audit_denial)
        """
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(
            f"Registered handler {getattr(handler, '__name__', repr(handler))} "
            f"for {event_type.__name__}"
        )

    def publish(self, event: DomainEvent) -> None:
        """
        Publish an event to every handler registered for its class hierarchy.

        Args:
            event: The domain event to publish
        """
        event_type = type(event)

        with self._lock:
            handlers = [
                handler
                for klass in event_type.__mro__
                for handler in self._handlers.get(klass, [])
            ]

        if not handlers:
            logger.debug(f"No handlers registered for {event_type.__name__}")
            return

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                # Side effects must not break the core flow
                logger.error(
                    f"Error in handler {getattr(handler, '__name__', repr(handler))} "
                    f"for {event_type.__name__}: {e}",
                    exc_info=True,
                )
