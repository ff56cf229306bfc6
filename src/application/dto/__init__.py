"""Data Transfer Objects for the ledger use cases.

Request DTOs: Validate and parse incoming requests.
Response DTOs: Structure and serialize use case results.
"""

from src.application.dto.requests import (
    AdjustInventoryRequest,
    ConsumeInventoryRequest,
    ExpiringBatchesRequest,
    InventoryValuationRequest,
    ReceiveInventoryRequest,
    ReconcileInventoryRequest,
    RecordWasteRequest,
    ReleaseReservationRequest,
    ReorderSuggestionsRequest,
    ReservationLineRequest,
    ReserveInventoryRequest,
    TransactionLineRequest,
    TransferInventoryRequest,
)
from src.application.dto.responses import (
    BatchResponse,
    CommittedLineResponse,
    DiscrepancyResponse,
    ErrorResponse,
    ExpiringBatchesResponse,
    InventoryValuationResponse,
    ReconciliationResponse,
    ReorderSuggestionResponse,
    ReorderSuggestionsResponse,
    ReservationResponse,
    TransactionResponse,
    UnavailableLineResponse,
)

__all__ = [
    # Requests
    "TransactionLineRequest",
    "ReceiveInventoryRequest",
    "ConsumeInventoryRequest",
    "TransferInventoryRequest",
    "AdjustInventoryRequest",
    "RecordWasteRequest",
    "ReservationLineRequest",
    "ReserveInventoryRequest",
    "ReleaseReservationRequest",
    "ReorderSuggestionsRequest",
    "InventoryValuationRequest",
    "ExpiringBatchesRequest",
    "ReconcileInventoryRequest",
    # Responses
    "TransactionResponse",
    "CommittedLineResponse",
    "UnavailableLineResponse",
    "ReservationResponse",
    "ReorderSuggestionsResponse",
    "ReorderSuggestionResponse",
    "InventoryValuationResponse",
    "ExpiringBatchesResponse",
    "BatchResponse",
    "ReconciliationResponse",
    "DiscrepancyResponse",
    "ErrorResponse",
]
