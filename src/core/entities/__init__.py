"""Core domain entities."""

from src.core.entities.batch import Batch
from src.core.entities.common import ZERO, Money, new_id, utc_now
from src.core.entities.count_sheet import (
    CountSheet,
    CountSheetLine,
    CountSheetStatus,
    VarianceReasonCode,
)
from src.core.entities.events import EVENT_PAYLOAD_KEYS, EventKind, LedgerEvent
from src.core.entities.inventory import (
    CostingMethod,
    InventoryItem,
    MovementType,
    StockLevel,
    StockMovement,
)
from src.core.entities.location import Location, LocationType
from src.core.entities.reservation import (
    Reservation,
    ReservationLine,
    ReservationStatus,
)
from src.core.entities.transaction import (
    InventoryTransaction,
    TransactionItem,
    TransactionType,
    WasteReason,
    validate_transaction,
)
from src.core.entities.vendor import Vendor, VendorItem

__all__ = [
    # Value helpers
    "Money",
    "ZERO",
    "new_id",
    "utc_now",
    # Inventory entities
    "InventoryItem",
    "CostingMethod",
    "StockLevel",
    "StockMovement",
    "MovementType",
    "Batch",
    # Transaction entities
    "InventoryTransaction",
    "TransactionItem",
    "TransactionType",
    "WasteReason",
    "validate_transaction",
    # Reservation entities
    "Reservation",
    "ReservationLine",
    "ReservationStatus",
    # Supporting entities
    "Vendor",
    "VendorItem",
    "Location",
    "LocationType",
    "CountSheet",
    "CountSheetLine",
    "CountSheetStatus",
    "VarianceReasonCode",
    # Events
    "LedgerEvent",
    "EventKind",
    "EVENT_PAYLOAD_KEYS",
]
