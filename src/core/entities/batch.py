"""Batch (lot) entity."""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Self

from pydantic import BaseModel, Field, field_validator, model_validator

from src.core.entities.common import ensure_utc, extend, new_id, utc_now


class Batch(BaseModel):
    """
    A received quantity of one item held at one location.

    Identity, cost, dates and the initial quantity never change after
    creation. ``remaining_quantity`` only goes down and the lot may move to
    another location in place.
    """

    id: str = Field(default_factory=new_id, frozen=True)
    item_id: str = Field(frozen=True)
    location_id: str
    batch_number: str = Field(frozen=True)
    received_date: datetime = Field(frozen=True)
    expiration_date: datetime = Field(frozen=True)
    initial_quantity: float = Field(gt=0, frozen=True)
    remaining_quantity: float = Field(ge=0)
    unit_cost: Decimal = Field(ge=0, frozen=True)
    vendor_id: str | None = None
    purchase_order_id: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    split_from_batch_id: str | None = None

    @field_validator("received_date", "expiration_date", "created_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def check_bounds(self) -> Self:
        if self.expiration_date <= self.received_date:
            raise ValueError("expiration_date must be after received_date")
        if self.remaining_quantity > self.initial_quantity:
            raise ValueError("remaining_quantity must not exceed initial_quantity")
        return self

    @classmethod
    def create(
        cls,
        item_id: str,
        location_id: str,
        batch_number: str,
        quantity: float,
        unit_cost: Decimal,
        received_date: datetime,
        expiration_date: datetime,
        vendor_id: str | None = None,
        purchase_order_id: str | None = None,
    ) -> "Batch":
        """Validating factory for a freshly received lot."""
        return cls(
            item_id=item_id,
            location_id=location_id,
            batch_number=batch_number,
            initial_quantity=quantity,
            remaining_quantity=quantity,
            unit_cost=unit_cost,
            received_date=received_date,
            expiration_date=expiration_date,
            vendor_id=vendor_id,
            purchase_order_id=purchase_order_id,
            created_at=received_date,
        )

    @classmethod
    def rehydrate(cls, **state: Any) -> "Batch":
        return cls.model_construct(**state)

    def consume(self, quantity: float) -> float:
        """Take up to ``quantity`` from the lot; returns what was actually taken."""
        if quantity <= 0:
            return 0.0
        taken = min(quantity, self.remaining_quantity)
        self.remaining_quantity -= taken
        return taken

    def move_to(self, location_id: str) -> None:
        self.location_id = location_id

    def split(
        self,
        quantity: float,
        batch_number: str,
        location_id: str,
        at: datetime | None = None,
    ) -> "Batch":
        """Carve ``quantity`` off into a new lot at ``location_id``."""
        if quantity <= 0 or quantity > self.remaining_quantity:
            raise ValueError(
                f"cannot split {quantity} from batch {self.id} "
                f"holding {self.remaining_quantity}"
            )
        self.remaining_quantity -= quantity
        return Batch(
            item_id=self.item_id,
            location_id=location_id,
            batch_number=batch_number,
            initial_quantity=quantity,
            remaining_quantity=quantity,
            unit_cost=self.unit_cost,
            received_date=self.received_date,
            expiration_date=self.expiration_date,
            vendor_id=self.vendor_id,
            purchase_order_id=self.purchase_order_id,
            created_at=at or utc_now(),
            split_from_batch_id=self.id,
        )

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expiration_date

    def is_expiring_soon(self, now: datetime, days: int) -> bool:
        return now < self.expiration_date <= now + timedelta(days=days)

    def days_until_expiration(self, now: datetime) -> int:
        return max(0, (self.expiration_date - now).days)

    @property
    def total_value(self) -> Decimal:
        return extend(self.unit_cost, self.remaining_quantity)
