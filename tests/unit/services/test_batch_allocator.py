"""Unit tests for BatchAllocator."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from src.config import LedgerSettings
from src.core.entities.batch import Batch
from src.core.entities.inventory import CostingMethod, InventoryItem
from src.core.exceptions import ItemNotFoundError
from src.core.services import BatchAllocator
from src.core.services.batch_allocator import greedy_allocate, sort_batches
from src.infrastructure.clock import FixedClock
from src.infrastructure.storage.memory import MemoryBatchStore, MemoryItemCatalog

DAY0 = datetime(2024, 3, 1, 8, 0, tzinfo=UTC)


def make_batch(
    number: str,
    received_day: int,
    expires_day: int,
    quantity: float,
    unit_cost: str,
    location_id: str = "kitchen",
    item_id: str = "salmon",
) -> Batch:
    return Batch.create(
        item_id=item_id,
        location_id=location_id,
        batch_number=number,
        quantity=quantity,
        unit_cost=Decimal(unit_cost),
        received_date=DAY0 + timedelta(days=received_day),
        expiration_date=DAY0 + timedelta(days=expires_day),
    )


@pytest.fixture
def item() -> InventoryItem:
    return InventoryItem.create(
        id="salmon",
        name="Salmon fillet",
        sku="SAL-01",
        category="seafood",
        track_expiration=True,
        costing_method=CostingMethod.FIFO,
    )


@pytest.fixture
def lots() -> list[Batch]:
    # B1 arrived first but B2 expires first
    return [
        make_batch("B1", 0, 10, 5, "2.00"),
        make_batch("B2", 1, 5, 4, "3.00"),
    ]


@pytest.fixture
def catalog(item: InventoryItem) -> MemoryItemCatalog:
    return MemoryItemCatalog([item])


@pytest.fixture
async def allocator(catalog: MemoryItemCatalog, lots: list[Batch]) -> BatchAllocator:
    batches = MemoryBatchStore()
    for lot in lots:
        await batches.save(lot)
    return BatchAllocator(
        catalog,
        batches,
        settings=LedgerSettings(),
        clock=FixedClock(DAY0 + timedelta(days=2)),
    )


async def _set_method(catalog: MemoryItemCatalog, method: CostingMethod) -> None:
    item = await catalog.get_item("salmon")
    item.set_costing_method(method)
    await catalog.save_item(item)


class TestTrySelect:
    """Tests for lot selection."""

    async def test_fifo_takes_oldest_first(self, allocator: BatchAllocator):
        plan = await allocator.try_select("salmon", 7, "kitchen")

        assert [(a.batch_number, a.quantity) for a in plan.allocations] == [("B1", 5), ("B2", 2)]
        assert plan.success
        assert plan.total_cost == Decimal("16.00")

    async def test_fefo_takes_soonest_expiry_first(
        self, allocator: BatchAllocator, catalog: MemoryItemCatalog
    ):
        await _set_method(catalog, CostingMethod.FEFO)

        plan = await allocator.try_select("salmon", 7, "kitchen")

        assert [(a.batch_number, a.quantity) for a in plan.allocations] == [("B2", 4), ("B1", 3)]

    async def test_lifo_takes_newest_first(
        self, allocator: BatchAllocator, catalog: MemoryItemCatalog
    ):
        await _set_method(catalog, CostingMethod.LIFO)

        plan = await allocator.try_select("salmon", 6, "kitchen")

        assert [(a.batch_number, a.quantity) for a in plan.allocations] == [("B2", 4), ("B1", 2)]

    async def test_average_methods_fall_back_to_expiry_order(
        self, allocator: BatchAllocator, catalog: MemoryItemCatalog
    ):
        await _set_method(catalog, CostingMethod.WEIGHTED_AVERAGE)

        plan = await allocator.try_select("salmon", 1, "kitchen")

        assert plan.allocations[0].batch_number == "B2"

    async def test_shortfall_reported(self, allocator: BatchAllocator):
        """Asking for more than the lots hold leaves the rest unfulfilled."""
        plan = await allocator.try_select("salmon", 12, "kitchen")

        assert plan.allocated == 9
        assert plan.unfulfilled == 3
        assert not plan.success

    async def test_selection_does_not_touch_lots(self, allocator: BatchAllocator):
        await allocator.try_select("salmon", 7, "kitchen")

        batches = await allocator.batches_at("salmon", "kitchen")
        remaining = [b.remaining_quantity for b in batches]
        assert remaining == [5, 4]

    async def test_allocations_sum_to_request(self, allocator: BatchAllocator):
        for quantity in (0.5, 4, 5, 8.75, 9):
            plan = await allocator.try_select("salmon", quantity, "kitchen")
            assert plan.allocated == pytest.approx(quantity)

    async def test_other_location_ignored(self, allocator: BatchAllocator):
        plan = await allocator.try_select("salmon", 1, "bar")

        assert plan.allocations == []
        assert plan.unfulfilled == 1

    async def test_explicit_batch_ids(self, allocator: BatchAllocator, lots: list[Batch]):
        """Explicit lots are used as given; ones that do not fit are skipped."""
        plan = await allocator.try_select(
            "salmon", 3, "kitchen", batch_ids=["missing", lots[1].id]
        )

        assert [(a.batch_id, a.quantity) for a in plan.allocations] == [(lots[1].id, 3)]

    async def test_untracked_item_never_allocates(self):
        item = InventoryItem.create(id="flour", name="Flour", sku="FLR", category="dry")
        allocator = BatchAllocator(MemoryItemCatalog([item]), MemoryBatchStore())

        plan = await allocator.try_select("flour", 4, "kitchen")

        assert plan.allocations == []
        assert plan.unfulfilled == 4

    async def test_unknown_item_raises(self, allocator: BatchAllocator):
        with pytest.raises(ItemNotFoundError):
            await allocator.try_select("ghost", 1, "kitchen")

    async def test_select_for_consumption_returns_allocations(self, allocator: BatchAllocator):
        allocations = await allocator.select_for_consumption("salmon", 2, "kitchen")

        assert [a.batch_number for a in allocations] == ["B1"]


class TestClassify:
    """Tests for expiration classification."""

    async def test_classify_partitions_lots(self, allocator: BatchAllocator):
        now = DAY0 + timedelta(days=2)
        batches = [
            make_batch("OLD", 0, 1, 2, "1.00"),
            make_batch("SOON", 0, 6, 2, "1.00"),
            make_batch("LATER", 0, 30, 2, "1.00"),
        ]
        empty = make_batch("EMPTY", 0, 1, 2, "1.00")
        empty.consume(2)

        result = allocator.classify([*batches, empty], now=now)

        assert [b.batch_number for b in result.expired] == ["OLD"]
        assert [b.batch_number for b in result.expiring_soon] == ["SOON"]
        assert [b.batch_number for b in result.active] == ["LATER"]

    async def test_window_override(self, allocator: BatchAllocator):
        now = DAY0 + timedelta(days=2)
        batch = make_batch("SOON", 0, 6, 2, "1.00")

        assert allocator.classify([batch], now=now, window_days=2).active == [batch]

    async def test_find_expiring_sorted_by_expiry(self, allocator: BatchAllocator):
        """B2 expires in three days, B1 in eight; the default window is seven."""
        expiring = await allocator.find_expiring()

        assert [b.batch_number for b in expiring] == ["B2"]

        expiring = await allocator.find_expiring(window_days=10)
        assert [b.batch_number for b in expiring] == ["B2", "B1"]


class TestHelpers:
    def test_sort_batches_fifo_breaks_ties_by_number(self):
        first = make_batch("A", 0, 5, 1, "1.00")
        second = make_batch("B", 0, 5, 1, "1.00")

        assert sort_batches([second, first], CostingMethod.FIFO) == [first, second]

    def test_greedy_allocate_skips_empty_lots(self):
        empty = make_batch("E", 0, 5, 1, "1.00")
        empty.consume(1)
        full = make_batch("F", 0, 5, 3, "1.00")

        plan = greedy_allocate([empty, full], 2)

        assert [a.batch_number for a in plan.allocations] == ["F"]
