"""
Event Publisher

Application service for publishing domain events to registered handlers.
"""

import logging
from threading import Lock
from typing import Callable, Dict, List, Type

from torrent_relay.domain.events import DomainEvent

logger = logging.getLogger(__name__)


class EventPublisher:
    """
    Dispatches domain events synchronously to the handlers registered for
    their type. Handler exceptions are logged and never propagate to the
    publisher. Thread-safe; events are published from request threads and
    agent watcher threads alike.
    """

    def __init__(self):
        self._handlers: Dict[Type[DomainEvent], List[Callable[[DomainEvent], None]]] = {}
        self._lock = Lock()

    def subscribe(
        self,
        event_type: Type[DomainEvent],
        handler: Callable[[DomainEvent], None]
    ) -> None:
        """
        Register a handler for a specific event type.

        Example:
            publisher.subscribe(DownloadFinishedEvent, handle_finished)
        """
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(
            f"Registered handler {getattr(handler, '__name__', handler)} for {event_type.__name__}"
        )

    def publish(self, event: DomainEvent) -> None:
        """
        Publish an event to all registered handlers.

        Args:
            event: The domain event to publish
        """
        event_type = type(event)

        with self._lock:
            handlers = list(self._handlers.get(event_type, []))

        if not handlers:
            logger.debug(f"No handlers registered for {event_type.__name__}")
            return

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Error in handler {getattr(handler, '__name__', handler)} "
                    f"for {event_type.__name__}: {e}",
                    exc_info=True,
                )

    def get_handler_count(self, event_type: Type[DomainEvent]) -> int:
        with self._lock:
            return len(self._handlers.get(event_type, []))
