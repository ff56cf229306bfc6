"""Application use cases."""

from src.application.use_cases.adjust_inventory import AdjustInventoryUseCase
from src.application.use_cases.base import LedgerUseCase, TransactionUseCase
from src.application.use_cases.check_expiring_batches import (
    CheckExpiringBatchesUseCase,
    ExpiringBatchesResult,
)
from src.application.use_cases.consume_inventory import ConsumeInventoryUseCase
from src.application.use_cases.generate_reorder_suggestions import (
    GenerateReorderSuggestionsUseCase,
    ReorderSuggestionsResult,
)
from src.application.use_cases.inventory_valuation import (
    InventoryValuationResult,
    InventoryValuationUseCase,
)
from src.application.use_cases.receive_inventory import ReceiveInventoryUseCase
from src.application.use_cases.reconcile_inventory import (
    ReconcileInventoryUseCase,
    ReconciliationResult,
)
from src.application.use_cases.record_waste import RecordWasteUseCase
from src.application.use_cases.release_reservation import ReleaseReservationUseCase
from src.application.use_cases.reserve_inventory import ReserveInventoryUseCase
from src.application.use_cases.transfer_inventory import TransferInventoryUseCase

__all__ = [
    "LedgerUseCase",
    "TransactionUseCase",
    # Transactions
    "ReceiveInventoryUseCase",
    "ConsumeInventoryUseCase",
    "TransferInventoryUseCase",
    "AdjustInventoryUseCase",
    "RecordWasteUseCase",
    # Reservations
    "ReserveInventoryUseCase",
    "ReleaseReservationUseCase",
    # Reporting
    "GenerateReorderSuggestionsUseCase",
    "ReorderSuggestionsResult",
    "InventoryValuationUseCase",
    "InventoryValuationResult",
    "CheckExpiringBatchesUseCase",
    "ExpiringBatchesResult",
    "ReconcileInventoryUseCase",
    "ReconciliationResult",
]
