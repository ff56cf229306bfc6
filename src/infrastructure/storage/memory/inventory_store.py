"""In-memory stock level and batch arenas."""

from src.core.entities.batch import Batch
from src.core.entities.inventory import StockLevel
from src.core.interfaces.inventory_store import IBatchStore, IStockLevelStore


class MemoryStockLevelStore(IStockLevelStore):
    """
    Stock levels keyed by (item_id, location_id).

    Reads hand out copies, so a level only changes through ``save``.
    """

    def __init__(self):
        self._levels: dict[tuple[str, str], StockLevel] = {}

    async def get(self, item_id: str, location_id: str) -> StockLevel | None:
        level = self._levels.get((item_id, location_id))
        return level.model_copy() if level else None

    async def save(self, level: StockLevel) -> StockLevel:
        self._levels[level.key] = level.model_copy()
        return level

    async def list_levels(
        self,
        item_id: str | None = None,
        location_id: str | None = None,
    ) -> list[StockLevel]:
        return [
            level.model_copy()
            for (i, loc), level in sorted(self._levels.items())
            if (item_id is None or i == item_id)
            and (location_id is None or loc == location_id)
        ]


class MemoryBatchStore(IBatchStore):
    """Lots keyed by id, in insertion order."""

    def __init__(self):
        self._batches: dict[str, Batch] = {}

    async def get(self, batch_id: str) -> Batch | None:
        batch = self._batches.get(batch_id)
        return batch.model_copy() if batch else None

    async def find_by_number(self, item_id: str, batch_number: str) -> Batch | None:
        for batch in self._batches.values():
            if batch.item_id == item_id and batch.batch_number == batch_number:
                return batch.model_copy()
        return None

    async def save(self, batch: Batch) -> Batch:
        self._batches[batch.id] = batch.model_copy()
        return batch

    async def list_batches(
        self,
        item_id: str | None = None,
        location_id: str | None = None,
        include_empty: bool = False,
    ) -> list[Batch]:
        return [
            batch.model_copy()
            for batch in self._batches.values()
            if (item_id is None or batch.item_id == item_id)
            and (location_id is None or batch.location_id == location_id)
            and (include_empty or batch.remaining_quantity > 0)
        ]
