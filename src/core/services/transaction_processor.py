"""
Transaction processor.

Applies a classified inventory transaction against the stock ledger and the
lots. Each line runs as one atomic unit under the (item, location) locks it
touches; lines that cannot be covered are reported back instead of failing
the whole transaction. Committed movements are journaled, item costs are
refreshed and events are published once every lock is released.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal

from src.config import LedgerSettings, get_logger, get_settings, transaction_log_context
from src.core.entities.batch import Batch
from src.core.entities.common import ZERO, ensure_utc, extend, quantize_money, utc_now
from src.core.entities.events import EventKind, LedgerEvent
from src.core.entities.inventory import InventoryItem, MovementType, StockLevel, StockMovement
from src.core.entities.transaction import (
    InventoryTransaction,
    TransactionItem,
    TransactionType,
    WasteReason,
    validate_transaction,
)
from src.core.exceptions import (
    BatchLocationMismatchError,
    BatchNotFoundError,
    DuplicateBatchNumberError,
    InvalidExpirationDateError,
    ItemNotFoundError,
    LocationNotFoundError,
    MissingBatchError,
    SameLocationTransferError,
)
from src.core.interfaces.catalog import IItemCatalog, ILocationCatalog
from src.core.interfaces.clock import IClock
from src.core.interfaces.inventory_store import IBatchStore
from src.core.interfaces.journal import ITransactionJournal
from src.core.services.batch_allocator import Allocation, BatchAllocator
from src.core.services.costing_engine import CostingEngine
from src.core.services.event_publisher import EventPublisher
from src.core.services.stock_ledger import LedgerHandle, StockLedger

logger = get_logger(__name__)


@dataclass
class CommittedLine:
    """A line whose effect was applied."""

    line_index: int
    item_id: str
    location_id: str
    quantity: float
    cost: Decimal = ZERO
    allocations: list[Allocation] = field(default_factory=list)
    # Lot-tracked quantity no lot could cover; the ledger still moved it
    unallocated_quantity: float = 0.0
    batch_id: str | None = None
    destination_location_id: str | None = None


@dataclass
class UnavailableLine:
    """A line skipped because the location did not have enough available stock."""

    line_index: int
    item_id: str
    location_id: str
    requested_quantity: float
    available_quantity: float


@dataclass
class AdjustmentVariance:
    """Difference between the recorded and the counted quantity."""

    line_index: int
    item_id: str
    location_id: str
    previous_quantity: float
    new_quantity: float
    unit_cost: Decimal

    @property
    def variance(self) -> float:
        return self.new_quantity - self.previous_quantity

    @property
    def value(self) -> Decimal:
        return extend(self.unit_cost, self.variance)


@dataclass
class TransactionResult:
    """Outcome of processing one transaction."""

    transaction: InventoryTransaction
    committed_lines: list[CommittedLine] = field(default_factory=list)
    unavailable_lines: list[UnavailableLine] = field(default_factory=list)
    variances: list[AdjustmentVariance] = field(default_factory=list)
    movements: list[StockMovement] = field(default_factory=list)
    created_batches: list[Batch] = field(default_factory=list)
    total_cost: Decimal = ZERO

    @property
    def success(self) -> bool:
        return not self.unavailable_lines


@dataclass
class _Context:
    """Working state for one transaction."""

    transaction: InventoryTransaction
    items: dict[str, InventoryItem]
    result: TransactionResult
    events: list[LedgerEvent] = field(default_factory=list)
    # Final level of every key whose quantity went down
    decreased: dict[tuple[str, str], StockLevel] = field(default_factory=dict)
    batch_numbers: set[tuple[str, str]] = field(default_factory=set)

    @property
    def at(self) -> datetime:
        return self.transaction.transaction_date

    def movement(
        self,
        movement_type: MovementType,
        item_id: str,
        location_id: str,
        quantity: float,
        unit_cost: Decimal = ZERO,
        batch_id: str | None = None,
    ) -> None:
        txn = self.transaction
        self.result.movements.append(
            StockMovement(
                transaction_id=txn.id,
                transaction_type=TransactionType.parse(txn.transaction_type).value,
                movement_type=movement_type,
                item_id=item_id,
                location_id=location_id,
                batch_id=batch_id,
                quantity=quantity,
                unit_cost=unit_cost,
                reference=txn.reference_number,
                movement_date=txn.transaction_date,
            )
        )


class TransactionProcessor:
    """Applies Receive, Consume, Transfer, Adjustment and Waste transactions."""

    def __init__(
        self,
        items: IItemCatalog,
        ledger: StockLedger,
        batches: IBatchStore,
        allocator: BatchAllocator,
        costing: CostingEngine,
        journal: ITransactionJournal,
        publisher: EventPublisher | None = None,
        settings: LedgerSettings | None = None,
        clock: IClock | None = None,
        locations: ILocationCatalog | None = None,
    ):
        self._items = items
        self._locations = locations
        self._ledger = ledger
        self._batches = batches
        self._allocator = allocator
        self._costing = costing
        self._journal = journal
        self._publisher = publisher or EventPublisher()
        self._settings = settings or get_settings().ledger
        self._now: Callable[[], datetime] = clock.now if clock else utc_now

    async def process(self, transaction: InventoryTransaction) -> TransactionResult:
        """
        Apply a transaction.

        Structural problems and unknown references raise before anything is
        touched. Shortages come back in ``unavailable_lines``.
        """
        validate_transaction(transaction)
        txn_type = TransactionType.parse(transaction.transaction_type)

        with transaction_log_context(transaction.id, txn_type.value):
            return await self._process(transaction, txn_type)

    async def _process(
        self, transaction: InventoryTransaction, txn_type: TransactionType
    ) -> TransactionResult:
        logger.info(
            "transaction_processing_started",
            lines=len(transaction.items),
        )

        items = await self._resolve_items(transaction)
        await self._check_references(transaction, txn_type, items)

        ctx = _Context(
            transaction=transaction,
            items=items,
            result=TransactionResult(transaction=transaction),
        )
        handler = {
            TransactionType.RECEIVE: self._receive_line,
            TransactionType.CONSUME: self._consume_line,
            TransactionType.TRANSFER: self._transfer_line,
            TransactionType.ADJUSTMENT: self._adjust_line,
            TransactionType.WASTE: self._waste_line,
        }[txn_type]

        for index, line in enumerate(transaction.items):
            await handler(ctx, index, line)

        result = ctx.result
        result.total_cost = self._total_cost(txn_type, result)

        if result.committed_lines:
            await self._journal.record(transaction, result.movements)
            if txn_type != TransactionType.ADJUSTMENT:
                for item_id in {line.item_id for line in result.committed_lines}:
                    await self._costing.refresh_item_costs(item_id)

        self._stock_events(ctx)
        ctx.events.append(
            LedgerEvent.create(
                EventKind.TRANSACTION_COMPLETED,
                occurred_at=self._now(),
                transaction_id=transaction.id,
                transaction_type=txn_type.value,
                committed_lines=len(result.committed_lines),
                unavailable_lines=len(result.unavailable_lines),
                total_cost=str(result.total_cost),
            )
        )
        await self._publisher.publish_all(ctx.events)

        logger.info(
            "transaction_processed",
            committed=len(result.committed_lines),
            unavailable=len(result.unavailable_lines),
            total_cost=str(result.total_cost),
        )
        return result

    # Pre-checks

    async def _resolve_items(self, txn: InventoryTransaction) -> dict[str, InventoryItem]:
        items: dict[str, InventoryItem] = {}
        for line in txn.items:
            if line.item_id in items:
                continue
            item = await self._items.get_item(line.item_id)
            if item is None:
                raise ItemNotFoundError(line.item_id)
            items[line.item_id] = item
        return items

    async def _check_references(
        self,
        txn: InventoryTransaction,
        txn_type: TransactionType,
        items: dict[str, InventoryItem],
    ) -> None:
        if self._locations is not None and self._settings.require_known_locations:
            await self._check_locations(txn)

        batch_numbers: set[tuple[str, str]] = set()
        for index, line in enumerate(txn.items):
            item = items[line.item_id]
            location_id = txn.line_location(line)

            if txn_type == TransactionType.TRANSFER and location_id == txn.destination_location_id:
                raise SameLocationTransferError(location_id)

            if txn_type == TransactionType.WASTE and item.track_expiration and not line.batch_id:
                raise MissingBatchError(index, item.id)

            if txn_type == TransactionType.RECEIVE:
                if item.track_expiration:
                    self._expiration_for(item, line, txn.transaction_date)
                    if line.batch_number:
                        key = (item.id, line.batch_number)
                        if key in batch_numbers:
                            raise DuplicateBatchNumberError(*key)
                        batch_numbers.add(key)
                        existing = await self._batches.find_by_number(*key)
                        if existing is not None:
                            raise DuplicateBatchNumberError(*key)
                continue

            if line.batch_id:
                batch = await self._batches.get(line.batch_id)
                if batch is None:
                    raise BatchNotFoundError(line.batch_id)
                if batch.item_id != item.id or batch.location_id != location_id:
                    raise BatchLocationMismatchError(batch.id, item.id, location_id)

    async def _check_locations(self, txn: InventoryTransaction) -> None:
        referenced = {txn.line_location(line) for line in txn.items}
        if txn.destination_location_id:
            referenced.add(txn.destination_location_id)
        for location_id in sorted(referenced):
            location = await self._locations.get_location(location_id)
            if location is None or not location.is_active:
                raise LocationNotFoundError(location_id)

    @staticmethod
    def _expiration_for(
        item: InventoryItem, line: TransactionItem, received: datetime
    ) -> datetime:
        if line.expiration_date is not None:
            expiration = ensure_utc(line.expiration_date)
        elif item.shelf_life_days:
            expiration = received + timedelta(days=item.shelf_life_days)
        else:
            raise InvalidExpirationDateError(
                f"Item {item.id} tracks expiration but no expiration date or shelf life was given"
            )
        if expiration <= received:
            raise InvalidExpirationDateError(
                "Expiration date must be after the received date", expiration.isoformat()
            )
        return expiration

    # Line handlers

    async def _shortage(
        self,
        ctx: _Context,
        ledger: LedgerHandle,
        index: int,
        line: TransactionItem,
        location_id: str,
    ) -> bool:
        """Record an unavailable line when the location cannot cover it."""
        available = await ledger.get_available(line.item_id, location_id)
        if available + self._settings.quantity_epsilon >= line.quantity:
            return False
        ctx.result.unavailable_lines.append(
            UnavailableLine(
                line_index=index,
                item_id=line.item_id,
                location_id=location_id,
                requested_quantity=line.quantity,
                available_quantity=available,
            )
        )
        ctx.events.append(
            LedgerEvent.create(
                EventKind.INSUFFICIENT_STOCK_AVAILABLE,
                occurred_at=self._now(),
                item_id=line.item_id,
                location_id=location_id,
                requested_quantity=line.quantity,
                available_quantity=available,
            )
        )
        logger.info(
            "transaction_line_unavailable",
            transaction_id=ctx.transaction.id,
            line_index=index,
            item_id=line.item_id,
            location_id=location_id,
            requested=line.quantity,
            available=available,
        )
        return True

    async def _next_batch_number(self, ctx: _Context, item: InventoryItem) -> str:
        prefix = f"{item.sku}-{ctx.at:%Y%m%d}"
        n = 1
        while True:
            candidate = f"{prefix}-{n}"
            if (item.id, candidate) not in ctx.batch_numbers and (
                await self._batches.find_by_number(item.id, candidate) is None
            ):
                return candidate
            n += 1

    async def _split_number(self, ctx: _Context, batch: Batch) -> str:
        n = 1
        while True:
            candidate = f"{batch.batch_number}/T{n}"
            if (batch.item_id, candidate) not in ctx.batch_numbers and (
                await self._batches.find_by_number(batch.item_id, candidate) is None
            ):
                return candidate
            n += 1

    async def _receive_line(self, ctx: _Context, index: int, line: TransactionItem) -> None:
        item = ctx.items[line.item_id]
        location_id = ctx.transaction.line_location(line)
        unit_cost = line.unit_cost or ZERO
        batch: Batch | None = None

        async with self._ledger.hold((item.id, location_id)) as ledger:
            levels = await self._ledger.list_levels(item_id=item.id)
            on_hand = sum(level.current_quantity for level in levels)
            await ledger.increase(item.id, location_id, line.quantity)

            if item.track_expiration:
                if line.batch_number:
                    number = line.batch_number
                    if (item.id, number) in ctx.batch_numbers:
                        raise DuplicateBatchNumberError(item.id, number)
                else:
                    number = await self._next_batch_number(ctx, item)
                ctx.batch_numbers.add((item.id, number))
                batch = Batch.create(
                    item_id=item.id,
                    location_id=location_id,
                    batch_number=number,
                    quantity=line.quantity,
                    unit_cost=unit_cost,
                    received_date=ctx.at,
                    expiration_date=self._expiration_for(item, line, ctx.at),
                    vendor_id=line.vendor_id,
                    purchase_order_id=line.purchase_order_id,
                )
                batch = await self._batches.save(batch)
                ctx.result.created_batches.append(batch)

        if not item.track_expiration:
            await self._costing.apply_receipt(item.id, line.quantity, unit_cost, on_hand)

        ctx.movement(
            MovementType.IN,
            item.id,
            location_id,
            line.quantity,
            unit_cost,
            batch.id if batch else None,
        )
        ctx.result.committed_lines.append(
            CommittedLine(
                line_index=index,
                item_id=item.id,
                location_id=location_id,
                quantity=line.quantity,
                cost=extend(unit_cost, line.quantity),
                batch_id=batch.id if batch else None,
            )
        )

    async def _take_from_lots(
        self,
        ctx: _Context,
        item: InventoryItem,
        location_id: str,
        quantity: float,
        batch_ids: list[str] | None,
    ) -> tuple[list[Allocation], float]:
        """Allocate and decrement lots; caller holds the key's lock."""
        plan = await self._allocator.try_select(item.id, quantity, location_id, batch_ids)
        taken_allocations: list[Allocation] = []
        for alloc in plan.allocations:
            batch = await self._batches.get(alloc.batch_id)
            if batch is None:
                raise BatchNotFoundError(alloc.batch_id)
            taken = batch.consume(alloc.quantity)
            await self._batches.save(batch)
            taken_allocations.append(
                Allocation(alloc.batch_id, alloc.batch_number, taken, alloc.unit_cost)
            )
            ctx.movement(MovementType.OUT, item.id, location_id, taken, batch.unit_cost, batch.id)
            ctx.events.append(
                LedgerEvent.create(
                    EventKind.BATCH_CONSUMED,
                    occurred_at=self._now(),
                    batch_id=batch.id,
                    item_id=item.id,
                    location_id=location_id,
                    quantity=taken,
                    remaining_quantity=batch.remaining_quantity,
                )
            )
        unallocated = quantity - sum(a.quantity for a in taken_allocations)
        if unallocated > self._settings.quantity_epsilon:
            logger.warning(
                "consumption_unallocated",
                transaction_id=ctx.transaction.id,
                item_id=item.id,
                location_id=location_id,
                unallocated=unallocated,
            )
            ctx.movement(MovementType.OUT, item.id, location_id, unallocated, item.average_cost)
        else:
            unallocated = 0.0
        return taken_allocations, unallocated

    async def _consume_line(self, ctx: _Context, index: int, line: TransactionItem) -> None:
        item = ctx.items[line.item_id]
        location_id = ctx.transaction.line_location(line)
        key = (item.id, location_id)
        allocations: list[Allocation] = []
        unallocated = 0.0

        async with self._ledger.hold(key) as ledger:
            if await self._shortage(ctx, ledger, index, line, location_id):
                return
            ctx.decreased[key] = await ledger.decrease(item.id, location_id, line.quantity)

            if item.track_expiration:
                batch_ids = [line.batch_id] if line.batch_id else None
                allocations, unallocated = await self._take_from_lots(
                    ctx, item, location_id, line.quantity, batch_ids
                )
                cost = await self._costing.consumption_cost(
                    item.id, line.quantity, allocation=allocations, location_id=location_id
                )
                total = cost.total + extend(item.average_cost, unallocated)
            else:
                cost = await self._costing.consumption_cost(
                    item.id, line.quantity, location_id=location_id
                )
                total = cost.total
                ctx.movement(
                    MovementType.OUT, item.id, location_id, line.quantity, cost.unit_cost
                )

        ctx.result.committed_lines.append(
            CommittedLine(
                line_index=index,
                item_id=item.id,
                location_id=location_id,
                quantity=line.quantity,
                cost=total,
                allocations=allocations,
                unallocated_quantity=unallocated,
            )
        )

    async def _transfer_line(self, ctx: _Context, index: int, line: TransactionItem) -> None:
        item = ctx.items[line.item_id]
        source_id = ctx.transaction.line_location(line)
        destination_id = ctx.transaction.destination_location_id
        allocations: list[Allocation] = []
        unallocated = 0.0

        async with self._ledger.hold((item.id, source_id), (item.id, destination_id)) as ledger:
            if await self._shortage(ctx, ledger, index, line, source_id):
                return
            ctx.decreased[(item.id, source_id)] = await ledger.decrease(
                item.id, source_id, line.quantity
            )
            await ledger.increase(item.id, destination_id, line.quantity)

            if item.track_expiration:
                batch_ids = [line.batch_id] if line.batch_id else None
                plan = await self._allocator.try_select(
                    item.id, line.quantity, source_id, batch_ids
                )
                for alloc in plan.allocations:
                    moved = await self._move_lot(ctx, item, alloc, source_id, destination_id)
                    allocations.append(moved)
                unallocated = plan.unfulfilled
                if unallocated > self._settings.quantity_epsilon:
                    logger.warning(
                        "transfer_unallocated",
                        transaction_id=ctx.transaction.id,
                        item_id=item.id,
                        location_id=source_id,
                        unallocated=unallocated,
                    )
                    ctx.movement(MovementType.OUT, item.id, source_id, unallocated, item.average_cost)
                    ctx.movement(
                        MovementType.IN, item.id, destination_id, unallocated, item.average_cost
                    )
                else:
                    unallocated = 0.0
                cost = sum((a.cost for a in allocations), ZERO) + extend(
                    item.average_cost, unallocated
                )
            else:
                cost = extend(item.average_cost, line.quantity)
                ctx.movement(MovementType.OUT, item.id, source_id, line.quantity, item.average_cost)
                ctx.movement(
                    MovementType.IN, item.id, destination_id, line.quantity, item.average_cost
                )

        ctx.result.committed_lines.append(
            CommittedLine(
                line_index=index,
                item_id=item.id,
                location_id=source_id,
                quantity=line.quantity,
                cost=cost,
                allocations=allocations,
                unallocated_quantity=unallocated,
                destination_location_id=destination_id,
            )
        )

    async def _move_lot(
        self,
        ctx: _Context,
        item: InventoryItem,
        alloc: Allocation,
        source_id: str,
        destination_id: str,
    ) -> Allocation:
        """Move a whole lot in place, or split off the transferred part."""
        batch = await self._batches.get(alloc.batch_id)
        if batch is None:
            raise BatchNotFoundError(alloc.batch_id)

        if alloc.quantity >= batch.remaining_quantity - self._settings.quantity_epsilon:
            quantity = batch.remaining_quantity
            batch.move_to(destination_id)
            await self._batches.save(batch)
            moved_id, moved_number = batch.id, batch.batch_number
        else:
            quantity = alloc.quantity
            number = await self._split_number(ctx, batch)
            ctx.batch_numbers.add((batch.item_id, number))
            split = batch.split(quantity, number, destination_id, at=ctx.at)
            await self._batches.save(batch)
            split = await self._batches.save(split)
            ctx.result.created_batches.append(split)
            moved_id, moved_number = split.id, split.batch_number
            logger.debug(
                "batch_split_for_transfer",
                batch_id=batch.id,
                split_batch_id=split.id,
                quantity=quantity,
            )

        ctx.movement(MovementType.OUT, item.id, source_id, quantity, batch.unit_cost, batch.id)
        ctx.movement(MovementType.IN, item.id, destination_id, quantity, batch.unit_cost, moved_id)
        return Allocation(moved_id, moved_number, quantity, batch.unit_cost)

    async def _adjust_line(self, ctx: _Context, index: int, line: TransactionItem) -> None:
        item = ctx.items[line.item_id]
        location_id = ctx.transaction.line_location(line)
        key = (item.id, location_id)

        async with self._ledger.hold(key) as ledger:
            adjustment = await ledger.set_absolute(item.id, location_id, line.quantity)
            if adjustment.variance < 0:
                ctx.decreased[key] = await ledger.get_level(item.id, location_id)

        unit_cost = line.unit_cost if line.unit_cost is not None else item.average_cost
        variance = AdjustmentVariance(
            line_index=index,
            item_id=item.id,
            location_id=location_id,
            previous_quantity=adjustment.previous_quantity,
            new_quantity=adjustment.new_quantity,
            unit_cost=unit_cost,
        )
        ctx.result.variances.append(variance)

        if variance.variance:
            ctx.movement(MovementType.ADJUST, item.id, location_id, variance.variance, unit_cost)
            ctx.events.append(
                LedgerEvent.create(
                    EventKind.INVENTORY_ADJUSTED,
                    occurred_at=self._now(),
                    transaction_id=ctx.transaction.id,
                    item_id=item.id,
                    location_id=location_id,
                    previous_quantity=variance.previous_quantity,
                    new_quantity=variance.new_quantity,
                    variance=variance.variance,
                )
            )

        ctx.result.committed_lines.append(
            CommittedLine(
                line_index=index,
                item_id=item.id,
                location_id=location_id,
                quantity=line.quantity,
                cost=variance.value,
            )
        )

    async def _waste_line(self, ctx: _Context, index: int, line: TransactionItem) -> None:
        item = ctx.items[line.item_id]
        location_id = ctx.transaction.line_location(line)
        key = (item.id, location_id)
        allocations: list[Allocation] = []
        unallocated = 0.0

        async with self._ledger.hold(key) as ledger:
            if await self._shortage(ctx, ledger, index, line, location_id):
                return
            ctx.decreased[key] = await ledger.decrease(item.id, location_id, line.quantity)

            if line.batch_id:
                allocations, unallocated = await self._take_from_lots(
                    ctx, item, location_id, line.quantity, [line.batch_id]
                )
            else:
                ctx.movement(
                    MovementType.OUT, item.id, location_id, line.quantity, item.average_cost
                )

        if line.unit_cost is not None:
            cost = extend(line.unit_cost, line.quantity)
        elif allocations:
            cost = sum((a.cost for a in allocations), ZERO) + extend(
                item.average_cost, unallocated
            )
        else:
            cost = extend(item.average_cost, line.quantity)

        reason = ctx.transaction.waste_reason or WasteReason.OTHER
        ctx.events.append(
            LedgerEvent.create(
                EventKind.WASTE_RECORDED,
                occurred_at=self._now(),
                transaction_id=ctx.transaction.id,
                item_id=item.id,
                location_id=location_id,
                quantity=line.quantity,
                reason=WasteReason(reason).value,
                cost=str(cost),
            )
        )
        ctx.result.committed_lines.append(
            CommittedLine(
                line_index=index,
                item_id=item.id,
                location_id=location_id,
                quantity=line.quantity,
                cost=cost,
                allocations=allocations,
                unallocated_quantity=unallocated,
                batch_id=line.batch_id,
            )
        )

    # Summaries

    @staticmethod
    def _total_cost(txn_type: TransactionType, result: TransactionResult) -> Decimal:
        if txn_type == TransactionType.ADJUSTMENT:
            total = sum((v.value for v in result.variances), ZERO)
        else:
            total = sum((line.cost for line in result.committed_lines), ZERO)
        return quantize_money(total)

    def _stock_events(self, ctx: _Context) -> None:
        for (item_id, location_id), level in ctx.decreased.items():
            item = ctx.items[item_id]
            available = level.available_quantity
            if available <= self._settings.quantity_epsilon:
                ctx.events.append(
                    LedgerEvent.create(
                        EventKind.OUT_OF_STOCK,
                        occurred_at=self._now(),
                        item_id=item_id,
                        location_id=location_id,
                    )
                )
            elif available <= item.reorder_threshold:
                ctx.events.append(
                    LedgerEvent.create(
                        EventKind.ITEM_LOW_STOCK,
                        occurred_at=self._now(),
                        item_id=item_id,
                        location_id=location_id,
                        available_quantity=available,
                        reorder_threshold=item.reorder_threshold,
                    )
                )
