"""In-memory transaction journal."""

from datetime import datetime

from src.config import get_logger
from src.core.entities.inventory import MovementType, StockMovement
from src.core.entities.transaction import InventoryTransaction, TransactionType
from src.core.interfaces.journal import ITransactionJournal

logger = get_logger(__name__)


class MemoryTransactionJournal(ITransactionJournal):
    """Append-only lists; entries are frozen so they are shared, not copied."""

    def __init__(self):
        self._transactions: dict[str, InventoryTransaction] = {}
        self._movements: list[StockMovement] = []

    async def record(
        self,
        transaction: InventoryTransaction,
        movements: list[StockMovement],
    ) -> None:
        self._transactions[transaction.id] = transaction
        self._movements.extend(movements)
        logger.debug(
            "transaction_journaled",
            transaction_id=transaction.id,
            movements=len(movements),
        )

    async def get(self, transaction_id: str) -> InventoryTransaction | None:
        return self._transactions.get(transaction_id)

    async def list_movements(
        self,
        item_id: str | None = None,
        location_id: str | None = None,
        movement_type: MovementType | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[StockMovement]:
        selected = [
            m
            for m in self._movements
            if (item_id is None or m.item_id == item_id)
            and (location_id is None or m.location_id == location_id)
            and (movement_type is None or m.movement_type == movement_type)
            and (start is None or m.movement_date >= start)
            and (end is None or m.movement_date <= end)
        ]
        return sorted(selected, key=lambda m: m.movement_date)

    async def movements_for_batch_after(
        self, batch_id: str, after: datetime
    ) -> list[StockMovement]:
        return sorted(
            (m for m in self._movements if m.batch_id == batch_id and m.movement_date > after),
            key=lambda m: m.movement_date,
        )

    async def latest_receipt(self, item_id: str) -> StockMovement | None:
        receipts = [
            m
            for m in self._movements
            if m.item_id == item_id
            and m.movement_type == MovementType.IN
            and m.transaction_type == TransactionType.RECEIVE.value
        ]
        # Last recorded wins among equal dates
        return max(reversed(receipts), key=lambda m: m.movement_date, default=None)
