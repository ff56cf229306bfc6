"""
Application layer - Use cases, DTOs, and service wiring.

This layer orchestrates the ledger by:
1. Defining request/response DTOs
2. Implementing use cases that coordinate core services
3. Wiring stores and services for dependency injection
"""

from src.application.dto import (
    AdjustInventoryRequest,
    ConsumeInventoryRequest,
    ErrorResponse,
    ExpiringBatchesRequest,
    InventoryValuationRequest,
    ReceiveInventoryRequest,
    ReconcileInventoryRequest,
    RecordWasteRequest,
    ReleaseReservationRequest,
    ReorderSuggestionsRequest,
    ReserveInventoryRequest,
    TransactionLineRequest,
    TransactionResponse,
    TransferInventoryRequest,
)
from src.application.services import (
    LedgerServices,
    LedgerStores,
    build_ledger_services,
    get_ledger_services,
    reset_services,
)
from src.application.use_cases import (
    AdjustInventoryUseCase,
    CheckExpiringBatchesUseCase,
    ConsumeInventoryUseCase,
    GenerateReorderSuggestionsUseCase,
    InventoryValuationUseCase,
    ReceiveInventoryUseCase,
    ReconcileInventoryUseCase,
    RecordWasteUseCase,
    ReleaseReservationUseCase,
    ReserveInventoryUseCase,
    TransferInventoryUseCase,
)

__all__ = [
    # Request DTOs
    "TransactionLineRequest",
    "ReceiveInventoryRequest",
    "ConsumeInventoryRequest",
    "TransferInventoryRequest",
    "AdjustInventoryRequest",
    "RecordWasteRequest",
    "ReserveInventoryRequest",
    "ReleaseReservationRequest",
    "ReorderSuggestionsRequest",
    "InventoryValuationRequest",
    "ExpiringBatchesRequest",
    "ReconcileInventoryRequest",
    # Response DTOs
    "TransactionResponse",
    "ErrorResponse",
    # Use Cases
    "ReceiveInventoryUseCase",
    "ConsumeInventoryUseCase",
    "TransferInventoryUseCase",
    "AdjustInventoryUseCase",
    "RecordWasteUseCase",
    "ReserveInventoryUseCase",
    "ReleaseReservationUseCase",
    "GenerateReorderSuggestionsUseCase",
    "InventoryValuationUseCase",
    "CheckExpiringBatchesUseCase",
    "ReconcileInventoryUseCase",
    # Service wiring
    "LedgerStores",
    "LedgerServices",
    "build_ledger_services",
    "get_ledger_services",
    "reset_services",
]
