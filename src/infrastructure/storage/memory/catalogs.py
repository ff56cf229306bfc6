"""In-memory item, vendor and location catalogs."""

from decimal import Decimal

from src.config import get_logger
from src.core.entities.inventory import InventoryItem
from src.core.entities.location import Location
from src.core.entities.vendor import Vendor
from src.core.interfaces.catalog import IItemCatalog, ILocationCatalog, IVendorCatalog

logger = get_logger(__name__)


class MemoryItemCatalog(IItemCatalog):
    """Items keyed by id with a SKU index."""

    def __init__(self, items: list[InventoryItem] | None = None):
        self._items: dict[str, InventoryItem] = {}
        self._by_sku: dict[str, str] = {}
        for item in items or []:
            self._put(item)

    def _put(self, item: InventoryItem) -> InventoryItem:
        previous = self._items.get(item.id)
        if previous is not None and previous.sku != item.sku:
            self._by_sku.pop(previous.sku, None)
        stored = item.model_copy(deep=True)
        self._items[item.id] = stored
        self._by_sku[item.sku] = item.id
        return stored.model_copy(deep=True)

    async def get_item(self, item_id: str) -> InventoryItem | None:
        item = self._items.get(item_id)
        return item.model_copy(deep=True) if item else None

    async def find_by_sku(self, sku: str) -> InventoryItem | None:
        item_id = self._by_sku.get(sku)
        return await self.get_item(item_id) if item_id else None

    async def list_items(
        self,
        categories: list[str] | None = None,
        active_only: bool = False,
    ) -> list[InventoryItem]:
        return [
            item.model_copy(deep=True)
            for item in self._items.values()
            if (not categories or item.category in categories)
            and (item.is_active or not active_only)
        ]

    async def save_item(self, item: InventoryItem) -> InventoryItem:
        logger.debug("item_saved", item_id=item.id, sku=item.sku)
        return self._put(item)


class MemoryVendorCatalog(IVendorCatalog):
    def __init__(self, vendors: list[Vendor] | None = None):
        self._vendors: dict[str, Vendor] = {v.id: v.model_copy(deep=True) for v in vendors or []}

    def add_vendor(self, vendor: Vendor) -> None:
        self._vendors[vendor.id] = vendor.model_copy(deep=True)

    async def get_vendor(self, vendor_id: str) -> Vendor | None:
        vendor = self._vendors.get(vendor_id)
        return vendor.model_copy(deep=True) if vendor else None

    async def get_preferred_vendor(self, item_id: str) -> Vendor | None:
        """The active vendor flagged preferred for the item, else the first supplying it."""
        suppliers = [
            v for v in self._vendors.values() if v.is_active and v.terms_for(item_id) is not None
        ]
        for vendor in suppliers:
            if vendor.terms_for(item_id).is_preferred:
                return vendor.model_copy(deep=True)
        return suppliers[0].model_copy(deep=True) if suppliers else None

    async def unit_cost(self, vendor_id: str, item_id: str) -> Decimal | None:
        vendor = self._vendors.get(vendor_id)
        terms = vendor.terms_for(item_id) if vendor else None
        return terms.unit_cost if terms else None


class MemoryLocationCatalog(ILocationCatalog):
    def __init__(self, locations: list[Location] | None = None):
        self._locations: dict[str, Location] = {
            loc.id: loc.model_copy() for loc in locations or []
        }

    def add_location(self, location: Location) -> None:
        self._locations[location.id] = location.model_copy()

    async def get_location(self, location_id: str) -> Location | None:
        location = self._locations.get(location_id)
        return location.model_copy() if location else None

    async def list_locations(self, active_only: bool = True) -> list[Location]:
        return [
            loc.model_copy()
            for loc in self._locations.values()
            if loc.is_active or not active_only
        ]
