"""Abstract interface for the transaction journal."""

from abc import ABC, abstractmethod
from datetime import datetime

from src.core.entities.inventory import MovementType, StockMovement
from src.core.entities.transaction import InventoryTransaction


class ITransactionJournal(ABC):
    """Append-only record of committed transactions and their movements."""

    @abstractmethod
    async def record(
        self,
        transaction: InventoryTransaction,
        movements: list[StockMovement],
    ) -> None:
        """Append a committed transaction with its movements."""
        pass

    @abstractmethod
    async def get(self, transaction_id: str) -> InventoryTransaction | None:
        """Get a journaled transaction by ID."""
        pass

    @abstractmethod
    async def list_movements(
        self,
        item_id: str | None = None,
        location_id: str | None = None,
        movement_type: MovementType | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[StockMovement]:
        """List movements ordered by date ASC, filtered by the given fields."""
        pass

    @abstractmethod
    async def movements_for_batch_after(
        self, batch_id: str, after: datetime
    ) -> list[StockMovement]:
        """Movements against a batch dated strictly after ``after``."""
        pass

    @abstractmethod
    async def latest_receipt(self, item_id: str) -> StockMovement | None:
        """Most recent receive movement for an item."""
        pass
