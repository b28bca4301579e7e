"""Tests for the asset event bus."""

import logging

import pytest

from aco.db.types import AssetRecord
from aco.events.bus import (
    ASSET_CREATED,
    VALID_EVENTS,
    AssetCreatedEvent,
    EventBus,
    is_valid_event,
)


def _event(asset_id: int = 1) -> AssetCreatedEvent:
    return AssetCreatedEvent(
        AssetRecord(id=asset_id, url=f"/uploads/{asset_id}.wav", content_hash="h")
    )


class TestEventNames:
    def test_asset_created_is_valid(self):
        assert is_valid_event(ASSET_CREATED)
        assert ASSET_CREATED in VALID_EVENTS

    def test_unknown_is_invalid(self):
        assert not is_valid_event("asset.deleted")

    def test_event_carries_its_name(self):
        assert _event().event_name == ASSET_CREATED


class TestEventBus:
    def test_publish_delivers_to_all_subscribers(self):
        bus = EventBus()
        seen_a, seen_b = [], []
        bus.subscribe(ASSET_CREATED, seen_a.append)
        bus.subscribe(ASSET_CREATED, seen_b.append)
        event = _event()

        delivered = bus.publish(ASSET_CREATED, event)

        assert delivered == 2
        assert seen_a == [event]
        assert seen_b == [event]

    def test_publish_without_subscribers(self):
        assert EventBus().publish(ASSET_CREATED, _event()) == 0

    def test_subscribe_unknown_event_raises(self):
        with pytest.raises(ValueError, match="Unknown event"):
            EventBus().subscribe("asset.renamed", lambda e: None)

    def test_publish_unknown_event_raises(self):
        with pytest.raises(ValueError, match="Unknown event"):
            EventBus().publish("asset.renamed", _event())

    def test_unsubscribe(self):
        bus = EventBus()
        seen = []
        bus.subscribe(ASSET_CREATED, seen.append)

        assert bus.unsubscribe(ASSET_CREATED, seen.append) is True
        assert bus.subscriber_count(ASSET_CREATED) == 0
        bus.publish(ASSET_CREATED, _event())
        assert seen == []

    def test_unsubscribe_unknown_handler(self):
        assert EventBus().unsubscribe(ASSET_CREATED, print) is False

    def test_failing_handler_is_isolated(self, caplog):
        """A raising subscriber neither reaches the publisher nor blocks others."""
        bus = EventBus()
        seen = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe(ASSET_CREATED, broken)
        bus.subscribe(ASSET_CREATED, seen.append)

        with caplog.at_level(logging.ERROR):
            delivered = bus.publish(ASSET_CREATED, _event())

        assert delivered == 1
        assert len(seen) == 1
        assert "boom" in caplog.text
