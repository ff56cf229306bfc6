"""
Costing engine.

Answers "what is this worth" under the item's costing method: average and
latest cost, the cost of a consumption and the value of inventory now or at
a past date. ``refresh_item_costs`` and ``apply_receipt`` are the only paths
that write, and they only touch the item's stored costs.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from src.config import get_logger
from src.core.entities.batch import Batch
from src.core.entities.common import ZERO, ensure_utc, extend, quantize_cost, to_money
from src.core.entities.inventory import CostingMethod, InventoryItem
from src.core.exceptions import ItemNotFoundError
from src.core.interfaces.catalog import IItemCatalog
from src.core.interfaces.inventory_store import IBatchStore, IStockLevelStore
from src.core.interfaces.journal import ITransactionJournal
from src.core.services.batch_allocator import Allocation, greedy_allocate, sort_batches
from src.core.services.locks import KeyedLocks

logger = get_logger(__name__)

# Key scope for item-wide cost updates in the shared lock table
ITEM_SCOPE = "*"


@dataclass
class LotCost:
    """Cost of the quantity taken from one lot."""

    batch_id: str
    quantity: float
    unit_cost: Decimal

    @property
    def cost(self) -> Decimal:
        return extend(self.unit_cost, self.quantity)


@dataclass
class ConsumptionCost:
    """Cost of consuming a quantity, broken down per lot where lots apply."""

    item_id: str
    quantity: float
    total: Decimal = ZERO
    per_lot: list[LotCost] = field(default_factory=list)
    # Quantity a lot walk could not cover; it carries no cost
    uncovered_quantity: float = 0.0

    @property
    def unit_cost(self) -> Decimal:
        if not self.quantity:
            return ZERO
        return quantize_cost(self.total / to_money(self.quantity))


class CostingEngine:
    """Cost and valuation calculations over lots, levels and the journal."""

    def __init__(
        self,
        items: IItemCatalog,
        batches: IBatchStore,
        levels: IStockLevelStore,
        journal: ITransactionJournal,
        locks: KeyedLocks | None = None,
    ):
        self._items = items
        self._batches = batches
        self._levels = levels
        self._journal = journal
        self._locks = locks or KeyedLocks()

    async def _require_item(self, item_id: str) -> InventoryItem:
        item = await self._items.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    async def average_cost(self, item_id: str) -> Decimal:
        """
        Weighted average unit cost over lots with stock left.

        Untracked items have no lots and answer with their running average.
        Zero when nothing is on hand.
        """
        item = await self._require_item(item_id)
        if not item.track_expiration:
            return item.average_cost
        return self._lot_average(await self._batches.list_batches(item_id=item_id))

    @staticmethod
    def _lot_average(batches: list[Batch]) -> Decimal:
        total_value = ZERO
        total_quantity = 0.0
        for batch in batches:
            if batch.remaining_quantity > 0:
                total_value += batch.total_value
                total_quantity += batch.remaining_quantity
        if total_quantity <= 0:
            return ZERO
        return quantize_cost(total_value / to_money(total_quantity))

    async def latest_cost(self, item_id: str) -> Decimal:
        """Unit cost of the most recent receipt, else zero."""
        movement = await self._journal.latest_receipt(item_id)
        if movement is None:
            return ZERO
        return movement.unit_cost

    async def consumption_cost(
        self,
        item_id: str,
        quantity: float,
        allocation: list[Allocation] | None = None,
        location_id: str | None = None,
    ) -> ConsumptionCost:
        """
        Cost of consuming ``quantity`` of an item.

        A given ``allocation`` is costed as-is, even when empty; otherwise the
        item's costing method decides.
        """
        item = await self._require_item(item_id)
        result = ConsumptionCost(item_id=item_id, quantity=quantity)

        if allocation is not None:
            for alloc in allocation:
                result.per_lot.append(LotCost(alloc.batch_id, alloc.quantity, alloc.unit_cost))
            result.total = sum((lot.cost for lot in result.per_lot), ZERO)
            return result

        method = item.costing_method
        if item.track_expiration and method in (
            CostingMethod.FIFO,
            CostingMethod.LIFO,
            CostingMethod.FEFO,
        ):
            batches = await self._batches.list_batches(item_id=item_id, location_id=location_id)
            plan = greedy_allocate(sort_batches(batches, method), quantity)
            result.per_lot = [
                LotCost(a.batch_id, a.quantity, a.unit_cost) for a in plan.allocations
            ]
            result.total = plan.total_cost
            result.uncovered_quantity = plan.unfulfilled
            return result

        if method == CostingMethod.LAST_PURCHASE_PRICE:
            unit_cost = await self.latest_cost(item_id)
        else:
            unit_cost = await self.average_cost(item_id)
        result.total = extend(unit_cost, quantity)
        return result

    async def inventory_value(
        self,
        location_id: str | None = None,
        category: str | None = None,
        as_of: datetime | None = None,
    ) -> dict[str, Decimal]:
        """
        Value per item id.

        Tracked items sum unit cost x remaining over their lots; for a past
        ``as_of`` each lot's remaining quantity is rebuilt by undoing every
        movement against it dated after that moment, and lots created later
        are left out. Untracked items are valued at their average cost times
        the quantity at the location(s).
        """
        as_of = ensure_utc(as_of) if as_of is not None else None
        items = await self._items.list_items(categories=[category] if category else None)
        values: dict[str, Decimal] = {}
        for item in items:
            if item.track_expiration:
                values[item.id] = await self._lot_value(item, location_id, as_of)
            else:
                values[item.id] = await self._average_value(item, location_id, as_of)
        return values

    async def _lot_value(
        self,
        item: InventoryItem,
        location_id: str | None,
        as_of: datetime | None,
    ) -> Decimal:
        if as_of is None:
            batches = await self._batches.list_batches(item_id=item.id, location_id=location_id)
            return sum((b.total_value for b in batches), ZERO)

        # Lots may have moved or emptied since as_of, so look at all of them
        batches = await self._batches.list_batches(item_id=item.id, include_empty=True)
        value = ZERO
        for batch in batches:
            if batch.created_at > as_of:
                continue
            quantity = await self._batch_quantity_as_of(batch, as_of, location_id)
            if quantity > 0:
                value += extend(batch.unit_cost, quantity)
        return value

    async def _batch_quantity_as_of(
        self,
        batch: Batch,
        as_of: datetime,
        location_id: str | None,
    ) -> float:
        movements = await self._journal.movements_for_batch_after(batch.id, as_of)
        if location_id is None:
            quantity = batch.remaining_quantity
        else:
            quantity = batch.remaining_quantity if batch.location_id == location_id else 0.0
            movements = [m for m in movements if m.location_id == location_id]
        quantity -= sum(m.signed_quantity for m in movements)
        return max(0.0, quantity)

    async def _average_value(
        self,
        item: InventoryItem,
        location_id: str | None,
        as_of: datetime | None,
    ) -> Decimal:
        levels = await self._levels.list_levels(item_id=item.id, location_id=location_id)
        quantity = sum(level.current_quantity for level in levels)
        if as_of is not None:
            later = await self._journal.list_movements(
                item_id=item.id, location_id=location_id, start=as_of
            )
            quantity -= sum(m.signed_quantity for m in later if m.movement_date > as_of)
        return extend(item.average_cost, max(0.0, quantity))

    async def valuation_report(
        self,
        location_id: str | None = None,
        categories: list[str] | None = None,
        as_of: datetime | None = None,
    ) -> dict[str, Decimal]:
        """Value per category plus a ``total`` entry."""
        items = await self._items.list_items(categories=categories)
        by_id = {item.id: item for item in items}
        values = await self.inventory_value(location_id=location_id, as_of=as_of)

        report: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for category in categories or []:
            report[category] = ZERO
        for item_id, value in values.items():
            item = by_id.get(item_id)
            if item is None:
                continue
            report[item.category] += value
        report["total"] = sum((v for k, v in report.items() if k != "total"), ZERO)
        return dict(report)

    async def refresh_item_costs(self, item_id: str) -> InventoryItem:
        """Recompute and persist the item's average (tracked items) and last cost."""
        async with self._locks.acquire((item_id, ITEM_SCOPE)):
            item = await self._require_item(item_id)
            if item.track_expiration:
                item.update_average_cost(
                    self._lot_average(await self._batches.list_batches(item_id=item_id))
                )
            latest = await self.latest_cost(item_id)
            if latest > 0:
                item.update_cost(latest)
            item = await self._items.save_item(item)

        logger.debug(
            "item_costs_refreshed",
            item_id=item_id,
            average_cost=str(item.average_cost),
            last_cost=str(item.last_cost),
        )
        return item

    async def apply_receipt(
        self,
        item_id: str,
        quantity: float,
        unit_cost: Decimal,
        on_hand: float,
    ) -> InventoryItem:
        """Fold a receipt into the running weighted average of an untracked item."""
        async with self._locks.acquire((item_id, ITEM_SCOPE)):
            item = await self._require_item(item_id)
            total_qty = on_hand + quantity
            if total_qty > 0:
                new_avg = (
                    extend(item.average_cost, on_hand) + extend(unit_cost, quantity)
                ) / to_money(total_qty)
            else:
                new_avg = unit_cost
            item.update_average_cost(quantize_cost(new_avg))
            item.update_cost(unit_cost)
            return await self._items.save_item(item)
