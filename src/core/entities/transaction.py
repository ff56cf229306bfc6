"""Inventory transaction entities and structural validation."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.entities.common import ensure_utc, new_id, utc_now
from src.core.exceptions import (
    EmptyTransactionError,
    InvalidTransactionQuantityError,
    InvalidUnitCostError,
    MissingDestinationLocationError,
    MissingSourceLocationError,
    SameLocationTransferError,
    UnknownTransactionTypeError,
)


class TransactionType(str, Enum):
    """Kinds of stock-changing transactions."""

    RECEIVE = "Receive"
    CONSUME = "Consume"
    TRANSFER = "Transfer"
    ADJUSTMENT = "Adjustment"
    WASTE = "Waste"

    @classmethod
    def parse(cls, value: "str | TransactionType") -> "TransactionType":
        if isinstance(value, cls):
            return value
        for member in cls:
            if value in (member.value, member.name) or str(value).lower() == member.value.lower():
                return member
        raise UnknownTransactionTypeError(str(value))


class WasteReason(str, Enum):
    """Why stock was thrown away."""

    EXPIRED = "expired"
    SPOILED = "spoiled"
    DAMAGED = "damaged"
    QUALITY_ISSUE = "quality_issue"
    PREPARATION_ERROR = "preparation_error"
    CUSTOMER_RETURN = "customer_return"
    CONTAMINATION = "contamination"
    OVERPRODUCTION = "overproduction"
    SPILLAGE = "spillage"
    TRAINING = "training"
    TESTING = "testing"
    OTHER = "other"


# Unit cost rule per type: True = required, False = forbidden, None = optional
UNIT_COST_RULES: dict[TransactionType, bool | None] = {
    TransactionType.RECEIVE: True,
    TransactionType.CONSUME: False,
    TransactionType.TRANSFER: False,
    TransactionType.ADJUSTMENT: None,
    TransactionType.WASTE: None,
}


class TransactionItem(BaseModel):
    """One line of a transaction."""

    model_config = ConfigDict(frozen=True)

    item_id: str
    quantity: float
    location_id: str | None = None
    batch_id: str | None = None
    unit_cost: Decimal | None = None
    # Receive only: lot details for batch-tracked items
    batch_number: str | None = None
    expiration_date: datetime | None = None
    vendor_id: str | None = None
    purchase_order_id: str | None = None

    @field_validator("expiration_date")
    @classmethod
    def as_utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v) if v is not None else None


class InventoryTransaction(BaseModel):
    """
    A classified stock transaction.

    Frozen once built; the journal keeps it as the audit trail. Use
    ``create`` to build one, which runs the structural checks.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    transaction_type: TransactionType
    transaction_date: datetime = Field(default_factory=utc_now)
    source_location_id: str | None = None
    destination_location_id: str | None = None
    reference_number: str | None = None
    reference_type: str | None = None
    waste_reason: WasteReason | None = None
    user_id: str | None = None
    notes: str | None = None
    items: tuple[TransactionItem, ...]

    @field_validator("transaction_date")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @classmethod
    def create(
        cls,
        transaction_type: "str | TransactionType",
        items: list[TransactionItem] | list[dict[str, Any]],
        **fields: Any,
    ) -> "InventoryTransaction":
        """Build and validate a transaction."""
        txn_type = TransactionType.parse(transaction_type)
        lines = tuple(
            line if isinstance(line, TransactionItem) else TransactionItem(**line)
            for line in items
        )
        txn = cls(transaction_type=txn_type, items=lines, **fields)
        validate_transaction(txn)
        return txn

    @classmethod
    def rehydrate(cls, **state: Any) -> "InventoryTransaction":
        return cls.model_construct(**state)

    def line_location(self, line: TransactionItem) -> str | None:
        """Location a line acts on: its own, else the transaction's natural one."""
        if line.location_id:
            return line.location_id
        if self.transaction_type == TransactionType.RECEIVE:
            return self.destination_location_id
        return self.source_location_id


def validate_transaction(txn: InventoryTransaction) -> None:
    """
    Structural checks shared by every transaction type.

    Raises a typed validation error on the first violation; nothing has been
    mutated at that point.
    """
    txn_type = TransactionType.parse(txn.transaction_type)

    if not txn.items:
        raise EmptyTransactionError()

    if txn_type in (TransactionType.RECEIVE, TransactionType.TRANSFER):
        if not txn.destination_location_id:
            raise MissingDestinationLocationError(txn_type.value)

    if txn_type == TransactionType.TRANSFER:
        if not txn.source_location_id:
            raise MissingSourceLocationError(txn_type.value)
        if txn.source_location_id == txn.destination_location_id:
            raise SameLocationTransferError(txn.source_location_id)

    cost_rule = UNIT_COST_RULES[txn_type]
    for index, line in enumerate(txn.items):
        if txn_type == TransactionType.ADJUSTMENT:
            # New absolute total; zero is a legitimate count
            if line.quantity < 0:
                raise InvalidTransactionQuantityError(index, line.quantity)
        elif line.quantity <= 0:
            raise InvalidTransactionQuantityError(index, line.quantity)

        if line.unit_cost is not None and line.unit_cost < 0:
            raise InvalidUnitCostError(index, "Unit cost must not be negative", line.unit_cost)
        if cost_rule is True and line.unit_cost is None:
            raise InvalidUnitCostError(index, f"{txn_type.value} lines require a unit cost")
        if cost_rule is False and line.unit_cost is not None:
            raise InvalidUnitCostError(
                index, f"{txn_type.value} lines must not carry a unit cost", line.unit_cost
            )

        if txn.line_location(line) is None:
            if txn_type == TransactionType.RECEIVE:
                raise MissingDestinationLocationError(txn_type.value)
            raise MissingSourceLocationError(txn_type.value)
