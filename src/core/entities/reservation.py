"""Reservation entities."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.core.entities.common import new_id, utc_now
from src.core.exceptions import ReservationStateError


class ReservationStatus(str, Enum):
    """Lifecycle of a reservation."""

    ACTIVE = "active"
    RELEASED = "released"
    EXPIRED = "expired"


class ReservationLine(BaseModel):
    """Quantity of one item promised at one location."""

    model_config = ConfigDict(frozen=True)

    item_id: str
    location_id: str
    quantity: float = Field(gt=0)

    @property
    def key(self) -> tuple[str, str]:
        return (self.item_id, self.location_id)


class Reservation(BaseModel):
    """A set of reserved lines held for an order or other reference."""

    id: str = Field(default_factory=new_id)
    reference_id: str
    reference_type: str = "order"
    lines: list[ReservationLine]
    status: ReservationStatus = ReservationStatus.ACTIVE
    created_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime | None = None
    released_at: datetime | None = None

    @classmethod
    def create(
        cls,
        reference_id: str,
        lines: list[ReservationLine],
        reference_type: str = "order",
        expires_at: datetime | None = None,
        created_at: datetime | None = None,
    ) -> "Reservation":
        return cls(
            reference_id=reference_id,
            reference_type=reference_type,
            lines=lines,
            expires_at=expires_at,
            created_at=created_at or utc_now(),
        )

    @classmethod
    def rehydrate(cls, **state: Any) -> "Reservation":
        return cls.model_construct(**state)

    @property
    def is_active(self) -> bool:
        return self.status == ReservationStatus.ACTIVE

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now >= self.expires_at

    def _finish(self, status: ReservationStatus, operation: str, at: datetime | None) -> None:
        if not self.is_active:
            raise ReservationStateError(self.id, self.status.value, operation)
        self.status = status
        self.released_at = at or utc_now()

    def mark_released(self, at: datetime | None = None) -> None:
        self._finish(ReservationStatus.RELEASED, "release", at)

    def mark_expired(self, at: datetime | None = None) -> None:
        self._finish(ReservationStatus.EXPIRED, "expire", at)
