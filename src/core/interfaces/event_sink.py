"""Abstract interface for publishing ledger events."""

from abc import ABC, abstractmethod

from src.core.entities.events import LedgerEvent


class IEventSink(ABC):
    """Fire-and-forget receiver of ledger events."""

    @abstractmethod
    async def publish(self, event: LedgerEvent) -> None:
        """Publish one event."""
        pass
