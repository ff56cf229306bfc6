"""Item registry: creation and rule changes for inventory items."""

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from src.config import get_logger
from src.core.entities.inventory import CostingMethod, InventoryItem
from src.core.exceptions import (
    DuplicateSkuError,
    ItemNotFoundError,
    ValidationError,
    VendorNotFoundError,
)
from src.core.interfaces.catalog import IItemCatalog, IVendorCatalog

logger = get_logger(__name__)


def _as_validation_error(exc: PydanticValidationError) -> ValidationError:
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "item"
    return ValidationError(field, first.get("msg", str(exc)), first.get("input"))


class ItemRegistry:
    """Owns the lifecycle of items in the catalog."""

    def __init__(self, items: IItemCatalog, vendors: IVendorCatalog | None = None):
        self._items = items
        self._vendors = vendors

    async def get_item(self, item_id: str) -> InventoryItem:
        item = await self._items.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    async def create_item(self, **fields: Any) -> InventoryItem:
        """Create an item after checking its SKU is unused."""
        sku = str(fields.get("sku", "")).strip()
        existing = await self._items.find_by_sku(sku) if sku else None
        if existing is not None:
            raise DuplicateSkuError(sku, existing.id)
        try:
            item = InventoryItem.create(**fields)
        except PydanticValidationError as e:
            raise _as_validation_error(e) from e
        item = await self._items.save_item(item)
        logger.info("item_created", item_id=item.id, sku=item.sku)
        return item

    async def update_thresholds(
        self,
        item_id: str,
        reorder_threshold: float,
        min_stock_level: float,
        max_stock_level: float,
        lead_time_days: int,
    ) -> InventoryItem:
        item = await self.get_item(item_id)
        try:
            item.set_thresholds(reorder_threshold, min_stock_level, max_stock_level, lead_time_days)
        except ValueError as e:
            raise ValidationError("thresholds", str(e)) from e
        return await self._items.save_item(item)

    async def set_costing_method(self, item_id: str, method: CostingMethod) -> InventoryItem:
        item = await self.get_item(item_id)
        item.set_costing_method(method)
        return await self._items.save_item(item)

    async def discontinue(self, item_id: str) -> InventoryItem:
        item = await self.get_item(item_id)
        item.discontinue()
        logger.info("item_discontinued", item_id=item_id)
        return await self._items.save_item(item)

    async def reactivate(self, item_id: str) -> InventoryItem:
        item = await self.get_item(item_id)
        item.reactivate()
        return await self._items.save_item(item)

    async def add_alternative(self, item_id: str, alternative_id: str) -> InventoryItem:
        item = await self.get_item(item_id)
        await self.get_item(alternative_id)
        item.add_alternative_item(alternative_id)
        return await self._items.save_item(item)

    async def remove_alternative(self, item_id: str, alternative_id: str) -> InventoryItem:
        item = await self.get_item(item_id)
        item.remove_alternative_item(alternative_id)
        return await self._items.save_item(item)

    async def set_default_vendor(self, item_id: str, vendor_id: str | None) -> InventoryItem:
        """Point the item at a supplier; None clears it."""
        item = await self.get_item(item_id)
        if vendor_id is not None and self._vendors is not None:
            if await self._vendors.get_vendor(vendor_id) is None:
                raise VendorNotFoundError(vendor_id)
        item.set_default_vendor(vendor_id)
        logger.info("default_vendor_set", item_id=item_id, vendor_id=vendor_id)
        return await self._items.save_item(item)
