"""Vendor entities."""

from decimal import Decimal

from pydantic import BaseModel, Field

from src.core.entities.common import new_id


class VendorItem(BaseModel):
    """Vendor terms for one inventory item."""

    item_id: str
    unit_cost: Decimal = Field(ge=0)
    vendor_sku: str | None = None
    lead_time_days: int | None = Field(default=None, ge=0)
    is_preferred: bool = False


class Vendor(BaseModel):
    """Supplier of inventory items."""

    id: str = Field(default_factory=new_id)
    name: str
    contact_email: str | None = None
    is_active: bool = True
    items: dict[str, VendorItem] = Field(default_factory=dict)

    def add_item(self, vendor_item: VendorItem) -> None:
        self.items[vendor_item.item_id] = vendor_item

    def terms_for(self, item_id: str) -> VendorItem | None:
        return self.items.get(item_id)
