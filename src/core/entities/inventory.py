"""Inventory domain entities."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.core.entities.common import ZERO, new_id, utc_now
from src.core.exceptions import InvariantViolationError


class CostingMethod(str, Enum):
    """Rule for ordering lot consumption and costing issued stock."""

    FIFO = "FIFO"
    LIFO = "LIFO"
    FEFO = "FEFO"
    WEIGHTED_AVERAGE = "WeightedAverage"
    LAST_PURCHASE_PRICE = "LastPurchasePrice"


class InventoryItem(BaseModel):
    """
    A stocked item and the rules that govern it.

    New items go through ``create`` which validates every field; stores load
    persisted state through ``rehydrate`` which skips validation. Related
    items are referenced by id only.
    """

    id: str = Field(default_factory=new_id)
    name: str
    sku: str
    category: str
    unit_of_measure: str = "each"
    description: str | None = None

    reorder_threshold: float = Field(default=0.0, ge=0)
    min_stock_level: float = Field(default=0.0, ge=0)
    max_stock_level: float = Field(default=0.0, ge=0)
    lead_time_days: int = Field(default=0, ge=0)

    track_expiration: bool = False
    shelf_life_days: int | None = Field(default=None, gt=0)
    costing_method: CostingMethod = CostingMethod.FEFO

    average_cost: Decimal = ZERO
    last_cost: Decimal = ZERO

    default_vendor_id: str | None = None
    alternative_item_ids: list[str] = Field(default_factory=list)

    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("sku", "name", "category", "unit_of_measure")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @model_validator(mode="after")
    def check_levels(self) -> Self:
        if self.max_stock_level and self.max_stock_level < self.min_stock_level:
            raise ValueError("max_stock_level must be >= min_stock_level")
        return self

    @classmethod
    def create(cls, **fields: Any) -> "InventoryItem":
        """Validating factory for new items."""
        return cls(**fields)

    @classmethod
    def rehydrate(cls, **state: Any) -> "InventoryItem":
        """Rebuild persisted state without validation. Stores only."""
        return cls.model_construct(**state)

    def _touch(self, at: datetime | None = None) -> None:
        self.updated_at = at or utc_now()

    def set_thresholds(
        self,
        reorder_threshold: float,
        min_stock_level: float,
        max_stock_level: float,
        lead_time_days: int,
    ) -> None:
        if min(reorder_threshold, min_stock_level, max_stock_level, lead_time_days) < 0:
            raise ValueError("thresholds must be non-negative")
        if max_stock_level and max_stock_level < min_stock_level:
            raise ValueError("max_stock_level must be >= min_stock_level")
        self.reorder_threshold = reorder_threshold
        self.min_stock_level = min_stock_level
        self.max_stock_level = max_stock_level
        self.lead_time_days = lead_time_days
        self._touch()

    def set_costing_method(self, method: CostingMethod) -> None:
        self.costing_method = CostingMethod(method)
        self._touch()

    def set_expiration_tracking(self, track: bool, shelf_life_days: int | None = None) -> None:
        self.track_expiration = track
        self.shelf_life_days = shelf_life_days
        self._touch()

    def set_default_vendor(self, vendor_id: str | None) -> None:
        self.default_vendor_id = vendor_id
        self._touch()

    def add_alternative_item(self, item_id: str) -> None:
        if item_id == self.id or item_id in self.alternative_item_ids:
            return
        self.alternative_item_ids.append(item_id)
        self._touch()

    def remove_alternative_item(self, item_id: str) -> None:
        if item_id in self.alternative_item_ids:
            self.alternative_item_ids.remove(item_id)
            self._touch()

    def discontinue(self) -> None:
        self.is_active = False
        self._touch()

    def reactivate(self) -> None:
        self.is_active = True
        self._touch()

    def update_cost(self, last_cost: Decimal) -> None:
        self.last_cost = last_cost
        self._touch()

    def update_average_cost(self, average_cost: Decimal) -> None:
        self.average_cost = average_cost
        self._touch()


class StockLevel(BaseModel):
    """Quantity on hand and quantity promised for one item at one location."""

    item_id: str
    location_id: str
    current_quantity: float = Field(default=0.0, ge=0)
    reserved_quantity: float = Field(default=0.0, ge=0)
    updated_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def check_reservation_bound(self) -> Self:
        if self.reserved_quantity > self.current_quantity:
            raise ValueError("reserved_quantity must not exceed current_quantity")
        return self

    @classmethod
    def create(cls, item_id: str, location_id: str) -> "StockLevel":
        return cls(item_id=item_id, location_id=location_id)

    @classmethod
    def rehydrate(cls, **state: Any) -> "StockLevel":
        return cls.model_construct(**state)

    @property
    def key(self) -> tuple[str, str]:
        return (self.item_id, self.location_id)

    @property
    def available_quantity(self) -> float:
        return max(0.0, self.current_quantity - self.reserved_quantity)

    def is_available(self, required: float) -> bool:
        return self.available_quantity >= required

    def apply(self, current: float, reserved: float, at: datetime | None = None) -> None:
        """Set both quantities at once, refusing states that break the invariants."""
        if current < 0 or reserved < 0 or reserved > current:
            raise InvariantViolationError(
                f"Invalid stock state for {self.item_id}@{self.location_id}: "
                f"current={current}, reserved={reserved}",
                code="STOCK_INVARIANT",
                details={
                    "item_id": self.item_id,
                    "location_id": self.location_id,
                    "current": current,
                    "reserved": reserved,
                },
            )
        self.current_quantity = current
        self.reserved_quantity = reserved
        self.updated_at = at or utc_now()


class MovementType(str, Enum):
    """Types of stock movements."""

    IN = "in"
    OUT = "out"
    ADJUST = "adjust"


class StockMovement(BaseModel):
    """
    Journaled effect of one committed transaction line.

    ``quantity`` is positive for IN and OUT movements; for ADJUST it is the
    signed variance.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    transaction_id: str
    transaction_type: str
    movement_type: MovementType
    item_id: str
    location_id: str
    batch_id: str | None = None
    quantity: float
    unit_cost: Decimal = ZERO
    reference: str | None = None
    movement_date: datetime = Field(default_factory=utc_now)

    @property
    def signed_quantity(self) -> float:
        if self.movement_type == MovementType.OUT:
            return -self.quantity
        return self.quantity
