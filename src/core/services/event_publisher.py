"""Best-effort delivery of ledger events to the configured sink."""

from collections.abc import Iterable

from src.config import get_logger
from src.core.entities.events import LedgerEvent
from src.core.interfaces.event_sink import IEventSink

logger = get_logger(__name__)


class EventPublisher:
    """
    Publishes events after the work that produced them has committed.

    A failing sink is logged and skipped; it never undoes or fails the
    operation that raised the event.
    """

    def __init__(self, sink: IEventSink | None = None):
        self._sink = sink

    async def publish(self, event: LedgerEvent) -> bool:
        if self._sink is None:
            return False
        try:
            await self._sink.publish(event)
        except Exception:
            logger.warning(
                "event_publish_failed",
                kind=event.kind.value,
                event_id=event.id,
                exc_info=True,
            )
            return False
        return True

    async def publish_all(self, events: Iterable[LedgerEvent]) -> int:
        published = 0
        for event in events:
            if await self.publish(event):
                published += 1
        return published
