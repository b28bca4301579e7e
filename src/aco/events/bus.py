"""Asset lifecycle events and the in-process bus that delivers them.

Publishers never see subscriber failures: a handler that raises is logged
and the remaining handlers still run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from aco.db.types import AssetRecord

logger = logging.getLogger(__name__)

# Event name constants
ASSET_CREATED = "asset.created"

# All valid event names
VALID_EVENTS = frozenset([ASSET_CREATED])


def is_valid_event(event_name: str) -> bool:
    """Check if an event name is valid."""
    return event_name in VALID_EVENTS


@dataclass
class AssetCreatedEvent:
    """Event data for asset.created.

    Fired after a new asset record has been committed to the store.
    """

    record: AssetRecord

    event_name = ASSET_CREATED


EventHandler = Callable[[Any], None]


class EventBus:
    """Synchronous publish/subscribe bus keyed by event name.

    Handlers must return quickly; long-running work belongs on a queue the
    handler feeds.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        """Register a handler for an event.

        Raises:
            ValueError: If the event name is unknown.
        """
        if not is_valid_event(event_name):
            raise ValueError(f"Unknown event: {event_name}")
        self._handlers.setdefault(event_name, []).append(handler)

    def unsubscribe(self, event_name: str, handler: EventHandler) -> bool:
        """Remove a handler. Returns False if it was not subscribed."""
        handlers = self._handlers.get(event_name, [])
        try:
            handlers.remove(handler)
        except ValueError:
            return False
        return True

    def subscriber_count(self, event_name: str) -> int:
        return len(self._handlers.get(event_name, []))

    def publish(self, event_name: str, event: Any) -> int:
        """Deliver an event to every subscriber.

        Returns:
            Number of handlers that completed without raising.
        """
        if not is_valid_event(event_name):
            raise ValueError(f"Unknown event: {event_name}")
        delivered = 0
        for handler in list(self._handlers.get(event_name, [])):
            try:
                handler(event)
            except Exception:
                logger.exception("Handler %r failed for event %s", handler, event_name)
                continue
            delivered += 1
        return delivered
