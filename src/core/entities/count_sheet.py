"""Physical count sheet entities."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from src.core.entities.common import ZERO, extend, new_id, utc_now
from src.core.exceptions import CountSheetStateError


class CountSheetStatus(str, Enum):
    """Lifecycle of a count sheet."""

    CREATED = "created"
    COMPLETED = "completed"
    APPROVED = "approved"
    CANCELED = "canceled"


class VarianceReasonCode(str, Enum):
    """Why a counted quantity differs from the system quantity."""

    COUNTING_ERROR = "counting_error"
    THEFT = "theft"
    SPOILAGE = "spoilage"
    BREAKAGE = "breakage"
    SYSTEM_ERROR = "system_error"
    MISSING_TRANSACTION = "missing_transaction"
    MISLABELED_ITEM = "mislabeled_item"
    RECORDING_ERROR = "recording_error"
    UNIT_OF_MEASURE_CONVERSION = "unit_of_measure_conversion"
    LOCATION_ERROR = "location_error"
    OTHER = "other"


class CountSheetLine(BaseModel):
    """System snapshot and physical count for one item."""

    item_id: str
    system_quantity: float
    unit_cost: Decimal = ZERO
    counted_quantity: float | None = None
    variance_approved: bool = False
    reason_code: VarianceReasonCode | None = None

    @property
    def is_counted(self) -> bool:
        return self.counted_quantity is not None

    @property
    def variance(self) -> float | None:
        if self.counted_quantity is None:
            return None
        return self.counted_quantity - self.system_quantity

    @property
    def has_variance(self) -> bool:
        return bool(self.variance)

    @property
    def variance_percentage(self) -> float | None:
        variance = self.variance
        if variance is None:
            return None
        if self.system_quantity == 0:
            return 100.0 if variance else 0.0
        return variance / self.system_quantity * 100

    @property
    def variance_value(self) -> Decimal | None:
        variance = self.variance
        if variance is None:
            return None
        return extend(self.unit_cost, variance)


class CountSheet(BaseModel):
    """A physical count of one location, optionally restricted to categories."""

    id: str = Field(default_factory=new_id)
    location_id: str
    categories: list[str] = Field(default_factory=list)
    status: CountSheetStatus = CountSheetStatus.CREATED
    count_date: datetime = Field(default_factory=utc_now)
    lines: dict[str, CountSheetLine] = Field(default_factory=dict)
    counted_by: str | None = None
    completed_at: datetime | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    adjustment_transaction_id: str | None = None
    notes: str | None = None

    @classmethod
    def rehydrate(cls, **state: Any) -> "CountSheet":
        return cls.model_construct(**state)

    def _require(self, status: CountSheetStatus, operation: str) -> None:
        if self.status != status:
            raise CountSheetStateError(self.id, self.status.value, operation)

    def complete(self, counted_by: str | None = None, at: datetime | None = None) -> None:
        self._require(CountSheetStatus.CREATED, "record counts on")
        self.status = CountSheetStatus.COMPLETED
        self.counted_by = counted_by
        self.completed_at = at or utc_now()

    def approve(
        self,
        approved_by: str | None = None,
        transaction_id: str | None = None,
        at: datetime | None = None,
    ) -> None:
        self._require(CountSheetStatus.COMPLETED, "approve")
        self.status = CountSheetStatus.APPROVED
        self.approved_by = approved_by
        self.approved_at = at or utc_now()
        self.adjustment_transaction_id = transaction_id

    def cancel(self) -> None:
        if self.status == CountSheetStatus.APPROVED:
            raise CountSheetStateError(self.id, self.status.value, "cancel")
        self.status = CountSheetStatus.CANCELED

    @property
    def variance_lines(self) -> list[CountSheetLine]:
        return [line for line in self.lines.values() if line.has_variance]

    @property
    def total_variance_value(self) -> Decimal:
        return sum((line.variance_value or ZERO for line in self.lines.values()), ZERO)
