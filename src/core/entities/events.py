"""
Ledger events.

Every event carries a kind, the time it happened and a flat payload. The keys
each kind must carry are registered in ``EVENT_PAYLOAD_KEYS`` and checked when
the event is built, so sinks can rely on them.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.core.entities.common import new_id, utc_now


class EventKind(str, Enum):
    """Kinds of events the ledger publishes."""

    ITEM_LOW_STOCK = "ItemLowStock"
    OUT_OF_STOCK = "OutOfStock"
    STOCK_RESERVED = "StockReserved"
    STOCK_RELEASED = "StockReleased"
    INSUFFICIENT_STOCK_AVAILABLE = "InsufficientStockAvailable"
    BATCH_CONSUMED = "BatchConsumed"
    BATCH_EXPIRED = "BatchExpired"
    BATCH_EXPIRING_SOON = "BatchExpiringSoon"
    TRANSACTION_COMPLETED = "TransactionCompleted"
    INVENTORY_ADJUSTED = "InventoryAdjusted"
    WASTE_RECORDED = "WasteRecorded"
    LARGE_VARIANCE_DETECTED = "LargeVarianceDetected"
    RECONCILIATION_MISMATCH = "ReconciliationMismatch"


EVENT_PAYLOAD_KEYS: dict[EventKind, frozenset[str]] = {
    EventKind.ITEM_LOW_STOCK: frozenset(
        {"item_id", "location_id", "available_quantity", "reorder_threshold"}
    ),
    EventKind.OUT_OF_STOCK: frozenset({"item_id", "location_id"}),
    EventKind.STOCK_RESERVED: frozenset(
        {"reservation_id", "reference_id", "item_id", "location_id", "quantity"}
    ),
    EventKind.STOCK_RELEASED: frozenset(
        {"reservation_id", "reference_id", "item_id", "location_id", "quantity"}
    ),
    EventKind.INSUFFICIENT_STOCK_AVAILABLE: frozenset(
        {"item_id", "location_id", "requested_quantity", "available_quantity"}
    ),
    EventKind.BATCH_CONSUMED: frozenset(
        {"batch_id", "item_id", "location_id", "quantity", "remaining_quantity"}
    ),
    EventKind.BATCH_EXPIRED: frozenset(
        {"batch_id", "item_id", "location_id", "remaining_quantity", "expiration_date"}
    ),
    EventKind.BATCH_EXPIRING_SOON: frozenset(
        {"batch_id", "item_id", "location_id", "remaining_quantity", "days_until_expiration"}
    ),
    EventKind.TRANSACTION_COMPLETED: frozenset(
        {"transaction_id", "transaction_type", "committed_lines", "unavailable_lines", "total_cost"}
    ),
    EventKind.INVENTORY_ADJUSTED: frozenset(
        {"transaction_id", "item_id", "location_id", "previous_quantity", "new_quantity", "variance"}
    ),
    EventKind.WASTE_RECORDED: frozenset(
        {"transaction_id", "item_id", "location_id", "quantity", "reason", "cost"}
    ),
    EventKind.LARGE_VARIANCE_DETECTED: frozenset(
        {"count_sheet_id", "item_id", "location_id", "variance", "variance_percentage"}
    ),
    EventKind.RECONCILIATION_MISMATCH: frozenset(
        {"item_id", "location_id", "ledger_quantity", "batch_quantity", "difference"}
    ),
}


class LedgerEvent(BaseModel):
    """An immutable fact published to event sinks."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    kind: EventKind
    occurred_at: datetime = Field(default_factory=utc_now)
    payload: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def create(
        cls,
        kind: EventKind,
        occurred_at: datetime | None = None,
        **payload: Any,
    ) -> "LedgerEvent":
        """Build an event, refusing payloads that miss a registered key."""
        missing = EVENT_PAYLOAD_KEYS[kind] - payload.keys()
        if missing:
            raise ValueError(f"{kind.value} event missing payload keys: {sorted(missing)}")
        return cls(kind=kind, occurred_at=occurred_at or utc_now(), payload=payload)
