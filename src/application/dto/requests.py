"""Request DTOs for ledger use cases.

Pydantic v2 models validating the shape of incoming requests. Business
rules (quantities, unit cost rules, locations) are checked by the core
when the transaction is processed.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from src.core.entities.transaction import TransactionItem, WasteReason


class TransactionLineRequest(BaseModel):
    """One line of an inventory transaction."""

    item_id: str = Field(..., description="Item ID")
    quantity: float = Field(..., description="Quantity; the counted quantity for adjustments")
    location_id: str | None = Field(
        default=None,
        description="Line location; defaults to the transaction's location",
    )
    batch_id: str | None = Field(default=None, description="Explicit lot to draw from")
    unit_cost: Decimal | None = Field(default=None, description="Unit cost")
    batch_number: str | None = Field(default=None, description="Lot number for receipts")
    expiration_date: datetime | None = Field(default=None, description="Lot expiration")
    vendor_id: str | None = Field(default=None, description="Supplying vendor")
    purchase_order_id: str | None = Field(default=None, description="Purchase order")

    def to_item(self) -> TransactionItem:
        return TransactionItem(**self.model_dump())


class TransactionRequest(BaseModel):
    """Fields shared by every transaction request."""

    lines: list[TransactionLineRequest] = Field(default_factory=list)
    reference_number: str | None = Field(default=None, description="External reference")
    reference_type: str | None = Field(default=None, description="Kind of reference")
    user_id: str | None = Field(default=None, description="Acting user")
    notes: str | None = Field(default=None, description="Free-form notes")
    transaction_date: datetime | None = Field(
        default=None,
        description="When the transaction happened (default now)",
    )


class ReceiveInventoryRequest(TransactionRequest):
    destination_location_id: str = Field(..., description="Receiving location")


class ConsumeInventoryRequest(TransactionRequest):
    source_location_id: str = Field(..., description="Location stock is used from")


class TransferInventoryRequest(TransactionRequest):
    source_location_id: str = Field(..., description="Location stock leaves")
    destination_location_id: str = Field(..., description="Location stock arrives at")


class AdjustInventoryRequest(TransactionRequest):
    """Set counted quantities at a location; line quantities are absolute."""

    location_id: str = Field(..., description="Adjusted location")


class RecordWasteRequest(TransactionRequest):
    location_id: str = Field(..., description="Location the waste happened at")
    waste_reason: WasteReason = Field(default=WasteReason.OTHER, description="Why it was wasted")


class ReservationLineRequest(BaseModel):
    item_id: str = Field(..., description="Item ID")
    location_id: str = Field(..., description="Location holding the stock")
    quantity: float = Field(..., gt=0, description="Quantity to hold")


class ReserveInventoryRequest(BaseModel):
    reference_id: str = Field(..., description="Order or other reference the stock is held for")
    reference_type: str = Field(default="order", description="Kind of reference")
    lines: list[ReservationLineRequest] = Field(..., min_length=1)
    expires_at: datetime | None = Field(default=None, description="Automatic release time")


class ReleaseReservationRequest(BaseModel):
    reservation_id: str = Field(..., description="Reservation to release")


class ReorderSuggestionsRequest(BaseModel):
    location_id: str = Field(..., description="Location to plan for")
    categories: list[str] | None = Field(default=None, description="Limit to these categories")


class InventoryValuationRequest(BaseModel):
    location_id: str | None = Field(default=None, description="Limit to one location")
    categories: list[str] | None = Field(default=None, description="Limit to these categories")
    as_of: datetime | None = Field(default=None, description="Value stock as it stood then")


class ExpiringBatchesRequest(BaseModel):
    location_id: str | None = Field(default=None, description="Limit to one location")
    window_days: int | None = Field(
        default=None,
        ge=0,
        description="Expiring-soon window (default from settings)",
    )


class ReconcileInventoryRequest(BaseModel):
    location_id: str | None = Field(default=None, description="Limit to one location")
