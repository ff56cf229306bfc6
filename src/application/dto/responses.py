"""Response DTOs for ledger use cases.

Pydantic v2 models serializing use case results.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class AllocationResponse(BaseModel):
    batch_id: str
    batch_number: str
    quantity: float
    unit_cost: Decimal


class CommittedLineResponse(BaseModel):
    """A transaction line that changed stock."""

    line_index: int
    item_id: str
    location_id: str
    quantity: float
    cost: Decimal
    allocations: list[AllocationResponse] = Field(default_factory=list)
    unallocated_quantity: float = 0.0
    batch_id: str | None = Field(default=None, description="Lot created by a receipt")
    destination_location_id: str | None = None


class UnavailableLineResponse(BaseModel):
    """A line skipped for lack of available stock."""

    line_index: int
    item_id: str
    location_id: str
    requested_quantity: float
    available_quantity: float


class VarianceResponse(BaseModel):
    item_id: str
    location_id: str
    previous_quantity: float
    new_quantity: float
    variance: float
    value: Decimal


class MovementResponse(BaseModel):
    id: str
    movement_type: str
    item_id: str
    location_id: str
    batch_id: str | None = None
    quantity: float
    unit_cost: Decimal
    movement_date: datetime


class TransactionResponse(BaseModel):
    """Outcome of a processed transaction."""

    transaction_id: str
    transaction_type: str
    transaction_date: datetime
    success: bool = Field(..., description="False when any line was unavailable")
    committed_lines: list[CommittedLineResponse] = Field(default_factory=list)
    unavailable_lines: list[UnavailableLineResponse] = Field(default_factory=list)
    variances: list[VarianceResponse] = Field(default_factory=list)
    movements: list[MovementResponse] = Field(default_factory=list)
    created_batch_ids: list[str] = Field(default_factory=list)
    total_cost: Decimal = Decimal("0")


class ReservationLineResponse(BaseModel):
    item_id: str
    location_id: str
    quantity: float


class UnavailableReservationLineResponse(BaseModel):
    item_id: str
    location_id: str
    requested_quantity: float
    available_quantity: float


class ReservationResponse(BaseModel):
    success: bool
    reservation_id: str | None = None
    reference_id: str | None = None
    status: str | None = None
    lines: list[ReservationLineResponse] = Field(default_factory=list)
    unavailable_lines: list[UnavailableReservationLineResponse] = Field(default_factory=list)
    expires_at: datetime | None = None
    released_at: datetime | None = None


class ReorderSuggestionResponse(BaseModel):
    item_id: str
    item_name: str
    sku: str
    location_id: str
    available_quantity: float
    reorder_threshold: float
    suggested_quantity: float
    unit_of_measure: str
    estimated_cost: Decimal
    vendor_id: str | None = None
    vendor_name: str | None = None


class ReorderSuggestionsResponse(BaseModel):
    location_id: str
    suggestions: list[ReorderSuggestionResponse] = Field(default_factory=list)
    by_vendor: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Vendor ID (or 'unassigned') to suggested item IDs",
    )
    total_estimated_cost: Decimal = Decimal("0")


class InventoryValuationResponse(BaseModel):
    location_id: str | None = None
    as_of: datetime | None = None
    by_category: dict[str, Decimal] = Field(default_factory=dict)
    total: Decimal = Decimal("0")


class BatchResponse(BaseModel):
    id: str
    item_id: str
    location_id: str
    batch_number: str
    remaining_quantity: float
    unit_cost: Decimal
    expiration_date: datetime
    days_until_expiration: int


class ExpiringBatchesResponse(BaseModel):
    checked_at: datetime
    window_days: int
    expired: list[BatchResponse] = Field(default_factory=list)
    expiring_soon: list[BatchResponse] = Field(default_factory=list)
    active_count: int = 0


class DiscrepancyResponse(BaseModel):
    item_id: str
    location_id: str
    ledger_quantity: float
    batch_quantity: float
    difference: float


class ReconciliationResponse(BaseModel):
    location_id: str | None = None
    consistent: bool
    discrepancies: list[DiscrepancyResponse] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Serialized ``LedgerError``."""

    error: str
    message: str
    details: dict = Field(default_factory=dict)
