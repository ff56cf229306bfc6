"""
Batch allocator.

Chooses which lots satisfy a consumption and classifies lots by expiration.
Every method here is a read: remaining quantities only change when the
transaction processor commits an allocation.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from src.config import LedgerSettings, get_logger, get_settings
from src.core.entities.batch import Batch
from src.core.entities.common import ZERO, extend, utc_now
from src.core.entities.inventory import CostingMethod, InventoryItem
from src.core.exceptions import ItemNotFoundError
from src.core.interfaces.catalog import IItemCatalog
from src.core.interfaces.clock import IClock
from src.core.interfaces.inventory_store import IBatchStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class Allocation:
    """Quantity to take from one lot."""

    batch_id: str
    batch_number: str
    quantity: float
    unit_cost: Decimal

    @property
    def cost(self) -> Decimal:
        return extend(self.unit_cost, self.quantity)


@dataclass
class AllocationPlan:
    """Result of a planning query; ``unfulfilled`` > 0 means the lots fall short."""

    requested: float
    allocations: list[Allocation] = field(default_factory=list)
    unfulfilled: float = 0.0

    @property
    def success(self) -> bool:
        return self.unfulfilled <= 0

    @property
    def allocated(self) -> float:
        return sum(a.quantity for a in self.allocations)

    @property
    def total_cost(self) -> Decimal:
        return sum((a.cost for a in self.allocations), ZERO)


@dataclass
class ExpirationClassification:
    """Lots with stock left, partitioned by expiration."""

    expired: list[Batch] = field(default_factory=list)
    expiring_soon: list[Batch] = field(default_factory=list)
    active: list[Batch] = field(default_factory=list)


def _fifo_key(batch: Batch) -> tuple:
    return (batch.received_date, batch.created_at, batch.batch_number)


def _fefo_key(batch: Batch) -> tuple:
    return (batch.expiration_date, batch.received_date, batch.batch_number)


def sort_batches(batches: Iterable[Batch], method: CostingMethod) -> list[Batch]:
    """Order lots for consumption under a costing method."""
    if method == CostingMethod.FIFO:
        return sorted(batches, key=_fifo_key)
    if method == CostingMethod.LIFO:
        return sorted(batches, key=_fifo_key, reverse=True)
    # FEFO and every method that does not prescribe a lot order
    return sorted(batches, key=_fefo_key)


def greedy_allocate(batches: Iterable[Batch], quantity: float) -> AllocationPlan:
    """Walk lots in order taking min(remaining, still needed) from each."""
    plan = AllocationPlan(requested=quantity)
    needed = quantity
    for batch in batches:
        if needed <= 0:
            break
        if batch.remaining_quantity <= 0:
            continue
        take = min(batch.remaining_quantity, needed)
        plan.allocations.append(
            Allocation(
                batch_id=batch.id,
                batch_number=batch.batch_number,
                quantity=take,
                unit_cost=batch.unit_cost,
            )
        )
        needed -= take
    plan.unfulfilled = max(0.0, needed)
    return plan


class BatchAllocator:
    """Selects lots for consumption under the item's costing method."""

    def __init__(
        self,
        items: IItemCatalog,
        batches: IBatchStore,
        settings: LedgerSettings | None = None,
        clock: IClock | None = None,
    ):
        self._items = items
        self._batches = batches
        self._settings = settings or get_settings().ledger
        self._now: Callable[[], datetime] = clock.now if clock else utc_now

    @property
    def expiring_soon_days(self) -> int:
        return self._settings.expiring_soon_days

    async def _require_item(self, item_id: str) -> InventoryItem:
        item = await self._items.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    async def batches_at(self, item_id: str, location_id: str) -> list[Batch]:
        """Lots of an item at a location that still hold stock."""
        return await self._batches.list_batches(item_id=item_id, location_id=location_id)

    async def _eligible(
        self,
        item: InventoryItem,
        location_id: str,
        batch_ids: list[str] | None,
    ) -> list[Batch]:
        if batch_ids is None:
            return sort_batches(await self.batches_at(item.id, location_id), item.costing_method)

        eligible = []
        for batch_id in batch_ids:
            batch = await self._batches.get(batch_id)
            if (
                batch is not None
                and batch.item_id == item.id
                and batch.location_id == location_id
                and batch.remaining_quantity > 0
            ):
                eligible.append(batch)
            else:
                logger.debug("explicit_batch_skipped", batch_id=batch_id, item_id=item.id)
        return eligible

    async def try_select(
        self,
        item_id: str,
        total_quantity: float,
        location_id: str,
        batch_ids: list[str] | None = None,
    ) -> AllocationPlan:
        """
        Plan a consumption without touching any lot.

        Untracked items never allocate against lots, so their plan is empty
        with the whole quantity unfulfilled.
        """
        item = await self._require_item(item_id)
        if not item.track_expiration:
            return AllocationPlan(requested=total_quantity, unfulfilled=max(0.0, total_quantity))
        eligible = await self._eligible(item, location_id, batch_ids)
        return greedy_allocate(eligible, total_quantity)

    async def select_for_consumption(
        self,
        item_id: str,
        total_quantity: float,
        location_id: str,
        batch_ids: list[str] | None = None,
    ) -> list[Allocation]:
        plan = await self.try_select(item_id, total_quantity, location_id, batch_ids)
        return plan.allocations

    def classify(
        self,
        batches: Iterable[Batch],
        now: datetime | None = None,
        window_days: int | None = None,
    ) -> ExpirationClassification:
        """Partition lots with stock left into expired / expiring soon / active."""
        now = now or self._now()
        window = self._settings.expiring_soon_days if window_days is None else window_days
        result = ExpirationClassification()
        for batch in batches:
            if batch.remaining_quantity <= 0:
                continue
            if batch.is_expired(now):
                result.expired.append(batch)
            elif batch.is_expiring_soon(now, window):
                result.expiring_soon.append(batch)
            else:
                result.active.append(batch)
        return result

    async def find_expiring(
        self,
        window_days: int | None = None,
        location_id: str | None = None,
    ) -> list[Batch]:
        """Lots that expire within the window but have not expired yet."""
        batches = await self._batches.list_batches(location_id=location_id)
        classified = self.classify(batches, window_days=window_days)
        return sorted(classified.expiring_soon, key=_fefo_key)
