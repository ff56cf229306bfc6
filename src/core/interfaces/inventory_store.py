"""Abstract interfaces for stock level and batch storage."""

from abc import ABC, abstractmethod

from src.core.entities.batch import Batch
from src.core.entities.inventory import StockLevel


class IStockLevelStore(ABC):
    """Interface for per item/location stock level persistence."""

    @abstractmethod
    async def get(self, item_id: str, location_id: str) -> StockLevel | None:
        """Get stock level for an item at a location."""
        pass

    @abstractmethod
    async def save(self, level: StockLevel) -> StockLevel:
        """Create or update a stock level."""
        pass

    @abstractmethod
    async def list_levels(
        self,
        item_id: str | None = None,
        location_id: str | None = None,
    ) -> list[StockLevel]:
        """List stock levels filtered by item and/or location."""
        pass


class IBatchStore(ABC):
    """Interface for batch (lot) persistence."""

    @abstractmethod
    async def get(self, batch_id: str) -> Batch | None:
        """Get batch by ID."""
        pass

    @abstractmethod
    async def find_by_number(self, item_id: str, batch_number: str) -> Batch | None:
        """Get batch by its number within an item."""
        pass

    @abstractmethod
    async def save(self, batch: Batch) -> Batch:
        """Create or update a batch."""
        pass

    @abstractmethod
    async def list_batches(
        self,
        item_id: str | None = None,
        location_id: str | None = None,
        include_empty: bool = False,
    ) -> list[Batch]:
        """List batches; empty lots are skipped unless requested."""
        pass
