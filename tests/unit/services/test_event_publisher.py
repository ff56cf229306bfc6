"""Unit tests for EventPublisher."""

from unittest.mock import AsyncMock

from src.core.entities.events import EventKind, LedgerEvent
from src.core.services import EventPublisher
from src.infrastructure.events import RecordingEventSink


def make_event(kind: EventKind = EventKind.OUT_OF_STOCK) -> LedgerEvent:
    return LedgerEvent.create(kind, item_id="i1", location_id="kitchen")


class TestEventPublisher:
    async def test_publish_delivers_to_sink(self):
        sink = RecordingEventSink()
        publisher = EventPublisher(sink)

        assert await publisher.publish(make_event())
        assert len(sink.events) == 1

    async def test_no_sink_drops_events(self):
        publisher = EventPublisher()

        assert await publisher.publish(make_event()) is False

    async def test_failing_sink_is_swallowed(self):
        """A broken sink never fails the caller."""
        sink = AsyncMock()
        sink.publish.side_effect = RuntimeError("sink down")
        publisher = EventPublisher(sink)

        assert await publisher.publish(make_event()) is False
        sink.publish.assert_awaited_once()

    async def test_publish_all_counts_deliveries(self):
        sink = AsyncMock()
        sink.publish.side_effect = [None, RuntimeError("flaky"), None]
        publisher = EventPublisher(sink)

        published = await publisher.publish_all(make_event() for _ in range(3))

        assert published == 2
        assert sink.publish.await_count == 3
