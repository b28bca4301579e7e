"""Asset events and the event-driven compression trigger."""

from aco.events.bus import (
    ASSET_CREATED,
    VALID_EVENTS,
    AssetCreatedEvent,
    EventBus,
    is_valid_event,
)
from aco.events.trigger import CompressionEventTrigger, TriggerStats

__all__ = [
    "ASSET_CREATED",
    "VALID_EVENTS",
    "AssetCreatedEvent",
    "CompressionEventTrigger",
    "EventBus",
    "TriggerStats",
    "is_valid_event",
]
