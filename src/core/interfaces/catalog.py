"""Abstract interfaces for item, vendor and location catalogs."""

from abc import ABC, abstractmethod
from decimal import Decimal

from src.core.entities.inventory import InventoryItem
from src.core.entities.location import Location
from src.core.entities.vendor import Vendor


class IItemCatalog(ABC):
    """Interface for inventory item lookup and persistence."""

    @abstractmethod
    async def get_item(self, item_id: str) -> InventoryItem | None:
        """Get item by ID."""
        pass

    @abstractmethod
    async def find_by_sku(self, sku: str) -> InventoryItem | None:
        """Get item by SKU."""
        pass

    @abstractmethod
    async def list_items(
        self,
        categories: list[str] | None = None,
        active_only: bool = False,
    ) -> list[InventoryItem]:
        """List items, optionally filtered by category and active flag."""
        pass

    @abstractmethod
    async def save_item(self, item: InventoryItem) -> InventoryItem:
        """Create or update an item."""
        pass


class IVendorCatalog(ABC):
    """Interface for vendor lookup."""

    @abstractmethod
    async def get_vendor(self, vendor_id: str) -> Vendor | None:
        """Get vendor by ID."""
        pass

    @abstractmethod
    async def get_preferred_vendor(self, item_id: str) -> Vendor | None:
        """Get the vendor preferred for an item, if any."""
        pass

    @abstractmethod
    async def unit_cost(self, vendor_id: str, item_id: str) -> Decimal | None:
        """Get a vendor's unit cost for an item, if it supplies it."""
        pass


class ILocationCatalog(ABC):
    """Interface for location lookup."""

    @abstractmethod
    async def get_location(self, location_id: str) -> Location | None:
        """Get location by ID."""
        pass

    @abstractmethod
    async def list_locations(self, active_only: bool = True) -> list[Location]:
        """List locations."""
        pass
