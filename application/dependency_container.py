"""
Dependency Injection Container

Holds the storage adapters and services wired up by create_app, so API
routes and Celery tasks look them up by interface instead of building
their own.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')

SINGLETON = "singleton"
LAZY_SINGLETON = "lazy_singleton"


class DependencyNotFoundError(Exception):
    """Raised when attempting to resolve an unregistered dependency."""
    pass


class _Registration(NamedTuple):
    kind: str
    provider: Any


class DependencyContainer:
    """
    Registry of services keyed by interface.

    A service is registered either as a ready instance or as a factory
    called once on first resolution.
    """

    def __init__(self):
        self._registrations: Dict[Type, _Registration] = {}
        # Reentrant so a lazy factory may resolve its own dependencies
        self._lock = threading.RLock()

    def register_singleton(self, interface: Type[T], implementation: T) -> None:
        """
        Register a ready-made instance shared by every resolution.

        Example:
            container.register_singleton(GarbageCollector, collector)
        """
        self._register(interface, _Registration(SINGLETON, implementation))

    def register_factory(self, interface: Type[T], factory: Callable[[], T]) -> None:
        """Register a factory whose first result is cached and shared."""
        self._register(interface, _Registration(LAZY_SINGLETON, factory))

    def _register(self, interface: Type, registration: _Registration) -> None:
        with self._lock:
            self._registrations[interface] = registration
        logger.debug(f"Registered {registration.kind}: {interface.__name__}")

    def resolve(self, interface: Type[T]) -> T:
        """
        Resolve a registered service.

        Raises:
            DependencyNotFoundError: If the interface is not registered
        """
        with self._lock:
            registration = self._registrations.get(interface)
            if registration is None:
                raise DependencyNotFoundError(
                    f"No registration found for type: {interface.__name__}"
                )

            if registration.kind == LAZY_SINGLETON:
                instance = registration.provider()
                self._registrations[interface] = _Registration(SINGLETON, instance)
                return instance

            return registration.provider

    def setup_event_handlers(self, event_publisher, handlers: Optional[List[Any]] = None) -> None:
        """
        Subscribe infrastructure event handlers to the event publisher.

        Args:
            event_publisher: EventPublisher instance to subscribe handlers to
            handlers: Handler instances exposing handle(event). Defaults to a
                LoggingEventHandler on the "droplink" logger.
        """
        from domain.events import DomainEvent
        from infrastructure.event_handlers.logging_handler import LoggingEventHandler

        if handlers is None:
            handlers = [LoggingEventHandler(logging.getLogger("droplink"))]

        for handler in handlers:
            event_publisher.subscribe(DomainEvent, handler.handle)
            logger.debug(f"Registered event handler: {handler.__class__.__name__}")
