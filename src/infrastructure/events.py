"""Event sink adapters."""

from src.config import get_logger
from src.core.entities.events import EventKind, LedgerEvent
from src.core.interfaces.event_sink import IEventSink

logger = get_logger(__name__)


class RecordingEventSink(IEventSink):
    """Keeps every published event in memory, in order."""

    def __init__(self):
        self.events: list[LedgerEvent] = []

    async def publish(self, event: LedgerEvent) -> None:
        self.events.append(event)

    def of_kind(self, kind: EventKind) -> list[LedgerEvent]:
        return [e for e in self.events if e.kind == kind]

    def clear(self) -> None:
        self.events.clear()


class LoggingEventSink(IEventSink):
    """Writes each event to the structured log."""

    async def publish(self, event: LedgerEvent) -> None:
        logger.info(
            "ledger_event",
            event_id=event.id,
            kind=event.kind.value,
            occurred_at=event.occurred_at.isoformat(),
            **event.payload,
        )


class FanOutEventSink(IEventSink):
    """
    Forwards each event to several sinks in order.

    A failing sink does not stop delivery to the others; the failure is
    logged and the event moves on.
    """

    def __init__(self, sinks: list[IEventSink]):
        self._sinks = list(sinks)

    async def publish(self, event: LedgerEvent) -> None:
        for sink in self._sinks:
            try:
                await sink.publish(event)
            except Exception:
                logger.warning(
                    "event_sink_failed",
                    sink=type(sink).__name__,
                    kind=event.kind.value,
                    exc_info=True,
                )
