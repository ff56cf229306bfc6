"""
Stock ledger.

Owns the (item, location) -> current / reserved quantities and is the only
writer of stock levels. Every mutation runs under the key's lock; callers that
need to group a ledger change with batch changes take the locks themselves
through ``hold`` and work on the returned handle.
"""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from src.config import LedgerSettings, get_logger, get_settings
from src.core.entities.common import utc_now
from src.core.entities.inventory import StockLevel
from src.core.exceptions import (
    InvalidQuantityError,
    LockNotHeldError,
    NegativeStockError,
)
from src.core.interfaces.clock import IClock
from src.core.interfaces.inventory_store import IStockLevelStore
from src.core.services.locks import KeyedLocks, StockKey

logger = get_logger(__name__)


class LedgerStatus(str, Enum):
    """Outcome of a reserve or release."""

    APPLIED = "applied"
    INSUFFICIENT = "insufficient"
    EXCESSIVE = "excessive"
    IGNORED = "ignored"


@dataclass
class ReserveResult:
    """Outcome of a reservation attempt. Nothing is reserved unless ``ok``."""

    status: LedgerStatus
    requested: float
    available_quantity: float
    level: StockLevel

    @property
    def ok(self) -> bool:
        return self.status == LedgerStatus.APPLIED


@dataclass
class ReleaseResult:
    """Outcome of a release."""

    status: LedgerStatus
    requested: float
    released: float
    level: StockLevel

    @property
    def ok(self) -> bool:
        return self.status == LedgerStatus.APPLIED


@dataclass
class AdjustmentResult:
    """Effect of setting an absolute quantity."""

    previous_quantity: float
    new_quantity: float
    reserved_truncated: float = 0.0

    @property
    def variance(self) -> float:
        return self.new_quantity - self.previous_quantity


class LedgerHandle:
    """
    Ledger operations for keys already locked by ``StockLedger.hold``.

    Only valid inside the ``async with`` block that produced it.
    """

    def __init__(self, ledger: "StockLedger", keys: tuple[StockKey, ...]):
        self._ledger = ledger
        self._keys = frozenset(keys)

    def _check(self, item_id: str, location_id: str) -> None:
        if (item_id, location_id) not in self._keys:
            raise LockNotHeldError(item_id, location_id)

    async def get_level(self, item_id: str, location_id: str) -> StockLevel:
        self._check(item_id, location_id)
        return await self._ledger._load(item_id, location_id)

    async def get_available(self, item_id: str, location_id: str) -> float:
        level = await self.get_level(item_id, location_id)
        return level.available_quantity

    async def increase(self, item_id: str, location_id: str, quantity: float) -> StockLevel:
        self._check(item_id, location_id)
        return await self._ledger._increase(item_id, location_id, quantity)

    async def decrease(self, item_id: str, location_id: str, quantity: float) -> StockLevel:
        self._check(item_id, location_id)
        return await self._ledger._decrease(item_id, location_id, quantity)

    async def reserve(self, item_id: str, location_id: str, quantity: float) -> ReserveResult:
        self._check(item_id, location_id)
        return await self._ledger._reserve(item_id, location_id, quantity)

    async def release(self, item_id: str, location_id: str, quantity: float) -> ReleaseResult:
        self._check(item_id, location_id)
        return await self._ledger._release(item_id, location_id, quantity)

    async def set_absolute(
        self, item_id: str, location_id: str, quantity: float
    ) -> AdjustmentResult:
        self._check(item_id, location_id)
        return await self._ledger._set_absolute(item_id, location_id, quantity)


class StockLedger:
    """
    Atomic source of truth for how much stock exists and how much is promised.

    Publishes no events; the transaction processor and reservation service
    derive them from the returned results.
    """

    def __init__(
        self,
        store: IStockLevelStore,
        settings: LedgerSettings | None = None,
        locks: KeyedLocks | None = None,
        clock: IClock | None = None,
    ):
        self._store = store
        self._settings = settings or get_settings().ledger
        self._locks = locks or KeyedLocks()
        self._now: Callable[[], datetime] = clock.now if clock else utc_now

    @property
    def locks(self) -> KeyedLocks:
        return self._locks

    @asynccontextmanager
    async def hold(self, *keys: StockKey) -> AsyncIterator[LedgerHandle]:
        """Lock ``keys`` (sorted) and yield a handle that works on them."""
        async with self._locks.acquire(*keys) as ordered:
            yield LedgerHandle(self, ordered)

    # Reads

    async def get_level(self, item_id: str, location_id: str) -> StockLevel:
        """Stored level, or an unsaved zero level when none exists yet."""
        return await self._load(item_id, location_id)

    async def find_level(self, item_id: str, location_id: str) -> StockLevel | None:
        """Stored level only; None if stock was never recorded for the key."""
        return await self._store.get(item_id, location_id)

    async def get_available(self, item_id: str, location_id: str) -> float:
        level = await self._load(item_id, location_id)
        return level.available_quantity

    async def list_levels(
        self,
        item_id: str | None = None,
        location_id: str | None = None,
    ) -> list[StockLevel]:
        return await self._store.list_levels(item_id=item_id, location_id=location_id)

    # Locked mutations

    async def increase(self, item_id: str, location_id: str, quantity: float) -> StockLevel:
        async with self.hold((item_id, location_id)) as handle:
            return await handle.increase(item_id, location_id, quantity)

    async def decrease(self, item_id: str, location_id: str, quantity: float) -> StockLevel:
        async with self.hold((item_id, location_id)) as handle:
            return await handle.decrease(item_id, location_id, quantity)

    async def reserve(self, item_id: str, location_id: str, quantity: float) -> ReserveResult:
        async with self.hold((item_id, location_id)) as handle:
            return await handle.reserve(item_id, location_id, quantity)

    async def release(self, item_id: str, location_id: str, quantity: float) -> ReleaseResult:
        async with self.hold((item_id, location_id)) as handle:
            return await handle.release(item_id, location_id, quantity)

    async def set_absolute(
        self, item_id: str, location_id: str, quantity: float
    ) -> AdjustmentResult:
        async with self.hold((item_id, location_id)) as handle:
            return await handle.set_absolute(item_id, location_id, quantity)

    # Unlocked implementations, reached only through a LedgerHandle

    async def _load(self, item_id: str, location_id: str) -> StockLevel:
        level = await self._store.get(item_id, location_id)
        if level is None:
            level = StockLevel.create(item_id, location_id)
        return level

    def _accept_quantity(
        self, operation: str, item_id: str, location_id: str, quantity: float
    ) -> bool:
        """False when the quantity is non-positive and the policy says ignore."""
        if quantity > 0:
            return True
        if self._settings.non_positive_policy == "reject":
            raise InvalidQuantityError(operation, quantity)
        logger.warning(
            "non_positive_quantity_ignored",
            operation=operation,
            item_id=item_id,
            location_id=location_id,
            quantity=quantity,
        )
        return False

    def _bounded_reserved(self, level: StockLevel, current: float) -> float:
        if level.reserved_quantity <= current:
            return level.reserved_quantity
        logger.warning(
            "reservation_truncated",
            item_id=level.item_id,
            location_id=level.location_id,
            reserved=level.reserved_quantity,
            current=current,
        )
        return current

    async def _increase(self, item_id: str, location_id: str, quantity: float) -> StockLevel:
        level = await self._load(item_id, location_id)
        if not self._accept_quantity("increase", item_id, location_id, quantity):
            return level
        level.apply(level.current_quantity + quantity, level.reserved_quantity, self._now())
        return await self._store.save(level)

    async def _decrease(self, item_id: str, location_id: str, quantity: float) -> StockLevel:
        level = await self._load(item_id, location_id)
        if not self._accept_quantity("decrease", item_id, location_id, quantity):
            return level

        current = level.current_quantity - quantity
        if current < -self._settings.quantity_epsilon:
            if self._settings.over_decrement_policy == "reject":
                raise NegativeStockError(item_id, location_id, quantity, level.current_quantity)
            logger.warning(
                "over_decrement_clamped",
                item_id=item_id,
                location_id=location_id,
                requested=quantity,
                current=level.current_quantity,
            )
        current = max(0.0, current)

        level.apply(current, self._bounded_reserved(level, current), self._now())
        return await self._store.save(level)

    async def _reserve(self, item_id: str, location_id: str, quantity: float) -> ReserveResult:
        level = await self._load(item_id, location_id)
        available = level.available_quantity
        if not self._accept_quantity("reserve", item_id, location_id, quantity):
            return ReserveResult(LedgerStatus.IGNORED, quantity, available, level)

        if available + self._settings.quantity_epsilon < quantity:
            logger.info(
                "reservation_insufficient",
                item_id=item_id,
                location_id=location_id,
                requested=quantity,
                available=available,
            )
            return ReserveResult(LedgerStatus.INSUFFICIENT, quantity, available, level)

        reserved = min(level.reserved_quantity + quantity, level.current_quantity)
        level.apply(level.current_quantity, reserved, self._now())
        level = await self._store.save(level)
        return ReserveResult(LedgerStatus.APPLIED, quantity, level.available_quantity, level)

    async def _release(self, item_id: str, location_id: str, quantity: float) -> ReleaseResult:
        level = await self._load(item_id, location_id)
        if not self._accept_quantity("release", item_id, location_id, quantity):
            return ReleaseResult(LedgerStatus.IGNORED, quantity, 0.0, level)

        reserved = level.reserved_quantity
        if quantity > reserved + self._settings.quantity_epsilon:
            if self._settings.over_decrement_policy == "reject":
                logger.warning(
                    "excessive_release_rejected",
                    item_id=item_id,
                    location_id=location_id,
                    requested=quantity,
                    reserved=reserved,
                )
                return ReleaseResult(LedgerStatus.EXCESSIVE, quantity, 0.0, level)
            logger.warning(
                "excessive_release_clamped",
                item_id=item_id,
                location_id=location_id,
                requested=quantity,
                reserved=reserved,
            )
            level.apply(level.current_quantity, 0.0, self._now())
            level = await self._store.save(level)
            return ReleaseResult(LedgerStatus.EXCESSIVE, quantity, reserved, level)

        level.apply(level.current_quantity, max(0.0, reserved - quantity), self._now())
        level = await self._store.save(level)
        return ReleaseResult(LedgerStatus.APPLIED, quantity, quantity, level)

    async def _set_absolute(
        self, item_id: str, location_id: str, quantity: float
    ) -> AdjustmentResult:
        if quantity < 0:
            raise InvalidQuantityError("set_absolute", quantity)

        level = await self._load(item_id, location_id)
        previous = level.current_quantity
        reserved = self._bounded_reserved(level, quantity)
        truncated = level.reserved_quantity - reserved

        level.apply(quantity, reserved, self._now())
        await self._store.save(level)

        logger.info(
            "stock_set_absolute",
            item_id=item_id,
            location_id=location_id,
            previous=previous,
            new=quantity,
        )
        return AdjustmentResult(previous, quantity, truncated)

