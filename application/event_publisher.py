"""
Event Publisher

Fans domain events out to subscribers such as the audit log handler.
Uploads and sweeps publish here and never learn who is listening.
"""

import logging
from threading import Lock
from typing import Callable, Dict, List, Type

from domain.events import DomainEvent

logger = logging.getLogger(__name__)


class EventPublisher:
    """
    Synchronous in-process dispatcher keyed by event class.

    A handler subscribed to an event type also receives every subclass of
    that type, so subscribing to DomainEvent catches all events. Handler
    exceptions are caught and logged to prevent side effects from breaking
    core business logic.

    Subscriptions and publishing may happen from any thread.
    """

    def __init__(self):
        """Initialize EventPublisher with empty handler registry."""
        self._handlers: Dict[Type[DomainEvent], List[Callable[[DomainEvent], None]]] = {}
        self._lock = Lock()

    def subscribe(
        self,
        event_type: Type[DomainEvent],
        handler: Callable[[DomainEvent], None]
    ) -> None:
        """
        Register a handler for a specific event type.

        Args:
            event_type: The type of domain event to handle
            handler: Callable that accepts the event as parameter
        """
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)

        logger.debug(
            f"Registered handler {getattr(handler, '__name__', handler)} for {event_type.__name__}"
        )

    def publish(self, event: DomainEvent) -> None:
        """
        Publish an event to all registered handlers.

        Dispatches synchronously, in subscription order, to handlers of the
        event's type and of each of its base classes.

        Args:
            event: The domain event to publish
        """
        with self._lock:
            handlers = [
                handler
                for event_type in type(event).__mro__
                for handler in self._handlers.get(event_type, [])
            ]

        if not handlers:
            logger.debug(f"No handlers registered for {type(event).__name__}")
            return

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                # Side effects must not break core logic
                logger.error(
                    f"Error in handler {getattr(handler, '__name__', handler)} "
                    f"for {type(event).__name__}: {e}",
                    exc_info=True
                )
