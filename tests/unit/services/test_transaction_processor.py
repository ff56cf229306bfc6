"""Unit tests for TransactionProcessor."""

from decimal import Decimal

import pytest

from src.application.services import build_ledger_services
from src.config import LedgerSettings, Settings
from src.core.entities.events import EventKind
from src.core.entities.inventory import CostingMethod, MovementType
from src.core.entities.location import Location
from src.core.entities.transaction import InventoryTransaction, WasteReason
from src.core.exceptions import (
    BatchLocationMismatchError,
    DuplicateBatchNumberError,
    InvalidExpirationDateError,
    ItemNotFoundError,
    LocationNotFoundError,
    MissingBatchError,
)


@pytest.fixture
def process(services, clock):
    """Build a transaction dated now on the test clock and run it."""

    async def _process(transaction_type: str, lines: list[dict], **fields):
        transaction = InventoryTransaction.create(
            transaction_type, lines, transaction_date=clock.now(), **fields
        )
        return await services.processor.process(transaction)

    return _process


async def level_of(services, item_id: str, location_id: str = "kitchen"):
    return await services.ledger.get_level(item_id, location_id)


class TestReceive:
    """Tests for Receive transactions."""

    async def test_receive_untracked(self, services, sink, add_item, receive):
        item = await add_item()

        result = await receive(item.id, 10, "2.50")

        assert result.success
        assert result.total_cost == Decimal("25.00")
        assert result.created_batches == []
        assert (await level_of(services, item.id)).current_quantity == 10
        movement = result.movements[0]
        assert movement.movement_type == MovementType.IN
        assert movement.transaction_type == "Receive"
        assert movement.batch_id is None
        assert await services.stores.journal.get(result.transaction.id) is not None
        assert len(sink.of_kind(EventKind.TRANSACTION_COMPLETED)) == 1

    async def test_receive_tracked_creates_lot(self, services, clock, add_item, receive):
        """Lots get a generated number and an expiration from the shelf life."""
        item = await add_item(sku="MLK", track_expiration=True, shelf_life_days=5)

        first = await receive(item.id, 6, "1.10")
        second = await receive(item.id, 4, "1.20")

        lot = first.created_batches[0]
        assert lot.batch_number == "MLK-20240301-1"
        assert second.created_batches[0].batch_number == "MLK-20240301-2"
        assert lot.remaining_quantity == 6
        assert lot.unit_cost == Decimal("1.10")
        assert (lot.expiration_date - clock.now()).days == 5
        assert first.movements[0].batch_id == lot.id
        assert first.committed_lines[0].batch_id == lot.id

    async def test_receive_tracked_explicit_number_and_expiry(
        self, services, clock, add_item, receive
    ):
        item = await add_item(track_expiration=True)
        expires = clock.now().replace(day=20)

        result = await receive(
            item.id, 3, "4.00", batch_number="LOT-7", expiration_date=expires, vendor_id="v1"
        )

        lot = result.created_batches[0]
        assert lot.batch_number == "LOT-7"
        assert lot.expiration_date == expires
        assert lot.vendor_id == "v1"

    async def test_receive_tracked_without_expiry_rejected(self, services, add_item, receive):
        """Nothing changes when no expiration can be worked out."""
        item = await add_item(track_expiration=True)

        with pytest.raises(InvalidExpirationDateError):
            await receive(item.id, 3, "4.00")

        assert (await level_of(services, item.id)).current_quantity == 0
        assert await services.stores.batches.list_batches(item_id=item.id) == []

    async def test_duplicate_batch_number_rejected(self, add_item, receive):
        item = await add_item(track_expiration=True, shelf_life_days=5)
        await receive(item.id, 3, "4.00", batch_number="LOT-7")

        with pytest.raises(DuplicateBatchNumberError):
            await receive(item.id, 3, "4.00", batch_number="LOT-7")

    async def test_batch_number_repeated_within_receipt(self, services, add_item, process):
        """Nothing is applied when two lines of one receipt share a lot number."""
        item = await add_item(track_expiration=True, shelf_life_days=5)
        lines = [
            {"item_id": item.id, "quantity": q, "unit_cost": Decimal("1.00"), "batch_number": "L1"}
            for q in (4, 6)
        ]

        with pytest.raises(DuplicateBatchNumberError):
            await process("Receive", lines, destination_location_id="kitchen")

        assert (await level_of(services, item.id)).current_quantity == 0
        assert await services.stores.batches.list_batches(item_id=item.id) == []
        assert await services.stores.journal.list_movements(item_id=item.id) == []

    async def test_unknown_item_rejected(self, services, receive):
        with pytest.raises(ItemNotFoundError):
            await receive("ghost", 1, "1.00")

        assert await services.stores.journal.list_movements() == []


class TestConsume:
    """Tests for Consume transactions."""

    async def test_partial_success(self, services, sink, add_item, receive, process):
        """A short line is reported; the other line still commits."""
        plenty = await add_item()
        scarce = await add_item()
        await receive(plenty.id, 10, "1.00")
        await receive(scarce.id, 2, "1.00")

        result = await process(
            "Consume",
            [{"item_id": plenty.id, "quantity": 4}, {"item_id": scarce.id, "quantity": 5}],
            source_location_id="kitchen",
        )

        assert not result.success
        assert [line.item_id for line in result.committed_lines] == [plenty.id]
        unavailable = result.unavailable_lines[0]
        assert (unavailable.line_index, unavailable.available_quantity) == (1, 2)
        assert (await level_of(services, plenty.id)).current_quantity == 6
        assert (await level_of(services, scarce.id)).current_quantity == 2
        assert len(sink.of_kind(EventKind.INSUFFICIENT_STOCK_AVAILABLE)) == 1
        assert await services.stores.journal.get(result.transaction.id) is not None

    async def test_nothing_committed_is_not_journaled(self, services, add_item, consume):
        item = await add_item()

        result = await consume(item.id, 1)

        assert not result.success
        assert await services.stores.journal.get(result.transaction.id) is None

    async def test_reserved_stock_is_not_available(self, services, add_item, receive, consume):
        item = await add_item()
        await receive(item.id, 10, "1.00")
        await services.ledger.reserve(item.id, "kitchen", 8)

        result = await consume(item.id, 3)

        assert result.unavailable_lines[0].available_quantity == 2

    async def test_untracked_cost_uses_average(self, add_item, receive, consume):
        item = await add_item()
        await receive(item.id, 10, "2.00")
        await receive(item.id, 10, "4.00")

        result = await consume(item.id, 5)

        assert result.total_cost == Decimal("15.00")
        assert result.movements[0].unit_cost == Decimal("3.00")

    async def test_tracked_fifo_allocates_lots(
        self, services, sink, clock, add_item, receive, consume
    ):
        item = await add_item(
            track_expiration=True, shelf_life_days=10, costing_method=CostingMethod.FIFO
        )
        first = (await receive(item.id, 5, "2.00")).created_batches[0]
        clock.advance(days=1)
        second = (await receive(item.id, 5, "4.00")).created_batches[0]

        result = await consume(item.id, 7)

        line = result.committed_lines[0]
        assert [(a.batch_id, a.quantity) for a in line.allocations] == [
            (first.id, 5),
            (second.id, 2),
        ]
        assert line.cost == Decimal("18.00")
        assert line.unallocated_quantity == 0
        assert [m.batch_id for m in result.movements] == [first.id, second.id]
        assert (await services.stores.batches.get(first.id)).remaining_quantity == 0
        assert (await services.stores.batches.get(second.id)).remaining_quantity == 3
        assert len(sink.of_kind(EventKind.BATCH_CONSUMED)) == 2
        stored = await services.stores.items.get_item(item.id)
        assert stored.average_cost == Decimal("4.00")

    async def test_explicit_batch(self, services, clock, add_item, receive, consume):
        item = await add_item(track_expiration=True, shelf_life_days=10)
        first = (await receive(item.id, 5, "2.00")).created_batches[0]
        second = (await receive(item.id, 5, "4.00")).created_batches[0]

        result = await consume(item.id, 2, batch_id=second.id)

        assert result.committed_lines[0].allocations[0].batch_id == second.id
        assert (await services.stores.batches.get(first.id)).remaining_quantity == 5

    async def test_batch_from_other_location_rejected(self, add_item, receive, consume):
        item = await add_item(track_expiration=True, shelf_life_days=10)
        lot = (await receive(item.id, 5, "2.00", location_id="bar")).created_batches[0]

        with pytest.raises(BatchLocationMismatchError):
            await consume(item.id, 1, batch_id=lot.id)

    async def test_unallocated_quantity_costed_at_average(
        self, services, add_item, receive, consume, process
    ):
        """Ledger stock the lots cannot cover still moves, at the average cost."""
        item = await add_item(track_expiration=True, shelf_life_days=10)
        await receive(item.id, 5, "2.00")
        await process(
            "Adjustment", [{"item_id": item.id, "quantity": 8}], source_location_id="kitchen"
        )

        result = await consume(item.id, 7)

        line = result.committed_lines[0]
        assert line.unallocated_quantity == 2
        assert line.cost == Decimal("14.00")
        unallocated = [m for m in result.movements if m.batch_id is None]
        assert [(m.quantity, m.unit_cost) for m in unallocated] == [(2, Decimal("2.00"))]
        assert (await level_of(services, item.id)).current_quantity == 1

    async def test_stock_without_lots_costed_once(
        self, services, add_item, receive, consume, process
    ):
        """Lots held elsewhere play no part in costing a location that has none."""
        item = await add_item(track_expiration=True, shelf_life_days=10)
        lot = (await receive(item.id, 10, "2.00")).created_batches[0]
        await process(
            "Adjustment", [{"item_id": item.id, "quantity": 10}], source_location_id="bar"
        )

        result = await consume(item.id, 5, location_id="bar")

        line = result.committed_lines[0]
        assert line.allocations == []
        assert line.unallocated_quantity == 5
        assert line.cost == Decimal("10.00")
        assert str(result.total_cost) == "10.00"
        assert (await services.stores.batches.get(lot.id)).remaining_quantity == 10

    async def test_out_of_stock_event(self, sink, add_item, receive, consume):
        item = await add_item()
        await receive(item.id, 3, "1.00")

        await consume(item.id, 3)

        events = sink.of_kind(EventKind.OUT_OF_STOCK)
        assert [e.payload["item_id"] for e in events] == [item.id]
        assert sink.of_kind(EventKind.ITEM_LOW_STOCK) == []

    async def test_low_stock_event(self, sink, add_item, receive, consume):
        item = await add_item(reorder_threshold=5)
        await receive(item.id, 10, "1.00")

        await consume(item.id, 6)

        (event,) = sink.of_kind(EventKind.ITEM_LOW_STOCK)
        assert event.payload["available_quantity"] == 4
        assert event.payload["reorder_threshold"] == 5

    async def test_events_published_after_locks_released(self, stores, clock, add_item):
        """Sinks never run while the ledger still holds a key."""
        held: list[bool] = []

        class ProbeSink:
            async def publish(self, event):
                held.append(services.ledger.locks.is_locked((item.id, "kitchen")))

        services = build_ledger_services(stores=stores, sink=ProbeSink(), clock=clock)
        item = await add_item()
        transaction = InventoryTransaction.create(
            "Receive",
            [{"item_id": item.id, "quantity": 1, "unit_cost": Decimal("1")}],
            destination_location_id="kitchen",
            transaction_date=clock.now(),
        )

        await services.processor.process(transaction)

        assert held and not any(held)


class TestTransfer:
    """Tests for Transfer transactions."""

    async def test_whole_lot_moves_in_place(self, services, add_item, receive, process):
        item = await add_item(track_expiration=True, shelf_life_days=10)
        lot = (await receive(item.id, 10, "2.00")).created_batches[0]

        result = await process(
            "Transfer",
            [{"item_id": item.id, "quantity": 10}],
            source_location_id="kitchen",
            destination_location_id="bar",
        )

        assert result.created_batches == []
        moved = await services.stores.batches.get(lot.id)
        assert moved.location_id == "bar"
        assert moved.remaining_quantity == 10
        assert (await level_of(services, item.id, "kitchen")).current_quantity == 0
        assert (await level_of(services, item.id, "bar")).current_quantity == 10
        assert [(m.movement_type, m.location_id, m.batch_id) for m in result.movements] == [
            (MovementType.OUT, "kitchen", lot.id),
            (MovementType.IN, "bar", lot.id),
        ]

    async def test_partial_lot_is_split(self, services, add_item, receive, process):
        item = await add_item(track_expiration=True, shelf_life_days=10)
        lot = (await receive(item.id, 10, "2.00", batch_number="LOT-1")).created_batches[0]

        result = await process(
            "Transfer",
            [{"item_id": item.id, "quantity": 4}],
            source_location_id="kitchen",
            destination_location_id="bar",
        )

        (split,) = result.created_batches
        assert split.batch_number == "LOT-1/T1"
        assert split.location_id == "bar"
        assert split.remaining_quantity == 4
        assert split.split_from_batch_id == lot.id
        assert (await services.stores.batches.get(lot.id)).remaining_quantity == 6
        assert result.committed_lines[0].allocations[0].batch_id == split.id
        assert result.total_cost == Decimal("8.00")

    async def test_second_split_gets_next_suffix(self, add_item, receive, process):
        item = await add_item(track_expiration=True, shelf_life_days=10)
        await receive(item.id, 10, "2.00", batch_number="LOT-1")
        transfer = {
            "source_location_id": "kitchen",
            "destination_location_id": "bar",
        }

        await process("Transfer", [{"item_id": item.id, "quantity": 2}], **transfer)
        result = await process("Transfer", [{"item_id": item.id, "quantity": 2}], **transfer)

        assert result.created_batches[0].batch_number == "LOT-1/T2"

    async def test_untracked_transfer(self, services, add_item, receive, process):
        item = await add_item()
        await receive(item.id, 10, "2.00")

        result = await process(
            "Transfer",
            [{"item_id": item.id, "quantity": 3}],
            source_location_id="kitchen",
            destination_location_id="bar",
        )

        assert result.total_cost == Decimal("6.00")
        assert (await level_of(services, item.id, "bar")).current_quantity == 3
        assert [m.movement_type for m in result.movements] == [MovementType.OUT, MovementType.IN]

    async def test_transfer_shortage(self, services, add_item, receive, process):
        item = await add_item()
        await receive(item.id, 2, "2.00")

        result = await process(
            "Transfer",
            [{"item_id": item.id, "quantity": 3}],
            source_location_id="kitchen",
            destination_location_id="bar",
        )

        assert not result.success
        assert (await level_of(services, item.id, "bar")).current_quantity == 0


class TestAdjustment:
    """Tests for Adjustment transactions."""

    async def test_adjustment_records_variance(self, services, sink, add_item, receive, process):
        item = await add_item()
        await receive(item.id, 10, "2.50")

        result = await process(
            "Adjustment", [{"item_id": item.id, "quantity": 14}], source_location_id="kitchen"
        )

        (variance,) = result.variances
        assert variance.previous_quantity == 10
        assert variance.variance == 4
        assert result.total_cost == Decimal("10.00")
        (movement,) = result.movements
        assert movement.movement_type == MovementType.ADJUST
        assert movement.quantity == 4
        assert (await level_of(services, item.id)).current_quantity == 14
        assert len(sink.of_kind(EventKind.INVENTORY_ADJUSTED)) == 1

    async def test_adjustment_line_cost_overrides_average(self, add_item, receive, process):
        item = await add_item()
        await receive(item.id, 10, "2.50")

        result = await process(
            "Adjustment",
            [{"item_id": item.id, "quantity": 8, "unit_cost": Decimal("3.00")}],
            source_location_id="kitchen",
        )

        assert result.total_cost == Decimal("-6.00")

    async def test_unchanged_count_has_no_movement(self, sink, add_item, receive, process):
        item = await add_item()
        await receive(item.id, 10, "2.50")

        result = await process(
            "Adjustment", [{"item_id": item.id, "quantity": 10}], source_location_id="kitchen"
        )

        assert result.movements == []
        assert result.variances[0].variance == 0
        assert sink.of_kind(EventKind.INVENTORY_ADJUSTED) == []

    async def test_adjustment_leaves_lots_alone(self, services, add_item, receive, process):
        item = await add_item(track_expiration=True, shelf_life_days=10)
        lot = (await receive(item.id, 10, "2.00")).created_batches[0]

        await process(
            "Adjustment", [{"item_id": item.id, "quantity": 6}], source_location_id="kitchen"
        )

        assert (await services.stores.batches.get(lot.id)).remaining_quantity == 10

    async def test_journal_movements_sum_to_quantity(
        self, services, add_item, receive, consume, process
    ):
        """Signed movements replay to the ledger quantity."""
        item = await add_item()
        await receive(item.id, 10, "1.00")
        await consume(item.id, 3)
        await process(
            "Adjustment", [{"item_id": item.id, "quantity": 5}], source_location_id="kitchen"
        )

        movements = await services.stores.journal.list_movements(item_id=item.id)

        assert sum(m.signed_quantity for m in movements) == 5
        assert (await level_of(services, item.id)).current_quantity == 5


class TestWaste:
    """Tests for Waste transactions."""

    async def test_tracked_waste_requires_batch(self, add_item, receive, process):
        item = await add_item(track_expiration=True, shelf_life_days=10)
        await receive(item.id, 10, "2.00")

        with pytest.raises(MissingBatchError):
            await process(
                "Waste", [{"item_id": item.id, "quantity": 1}], source_location_id="kitchen"
            )

    async def test_tracked_waste_draws_from_lot(
        self, services, sink, add_item, receive, process
    ):
        item = await add_item(track_expiration=True, shelf_life_days=10)
        lot = (await receive(item.id, 10, "2.00")).created_batches[0]

        result = await process(
            "Waste",
            [{"item_id": item.id, "quantity": 3, "batch_id": lot.id}],
            source_location_id="kitchen",
            waste_reason=WasteReason.SPOILED,
        )

        assert result.total_cost == Decimal("6.00")
        assert (await services.stores.batches.get(lot.id)).remaining_quantity == 7
        (event,) = sink.of_kind(EventKind.WASTE_RECORDED)
        assert event.payload["reason"] == "spoiled"

    async def test_untracked_waste_with_explicit_cost(
        self, services, sink, add_item, receive, process
    ):
        item = await add_item()
        await receive(item.id, 10, "2.00")

        result = await process(
            "Waste",
            [{"item_id": item.id, "quantity": 2, "unit_cost": Decimal("5.00")}],
            source_location_id="kitchen",
        )

        assert result.total_cost == Decimal("10.00")
        assert (await level_of(services, item.id)).current_quantity == 8
        assert sink.of_kind(EventKind.WASTE_RECORDED)[0].payload["reason"] == "other"


class TestKnownLocations:
    """Location checks enabled through ledger settings."""

    @pytest.fixture
    def settings(self):
        return Settings(ledger=LedgerSettings(require_known_locations=True))

    @pytest.fixture(autouse=True)
    def locations(self, stores):
        stores.locations.add_location(Location(id="kitchen", name="Kitchen"))
        stores.locations.add_location(Location(id="patio", name="Patio", is_active=False))

    async def test_known_location_accepted(self, services, add_item, receive):
        item = await add_item()

        await receive(item.id, 3, "1.00")

        assert (await level_of(services, item.id)).current_quantity == 3

    async def test_unknown_location_rejected(self, services, add_item, receive):
        item = await add_item()

        with pytest.raises(LocationNotFoundError) as exc_info:
            await receive(item.id, 3, "1.00", location_id="bar")

        assert exc_info.value.details["id"] == "bar"
        assert await services.stores.journal.list_movements(item_id=item.id) == []

    async def test_inactive_destination_rejected(self, add_item, receive, process):
        item = await add_item()
        await receive(item.id, 3, "1.00")

        with pytest.raises(LocationNotFoundError):
            await process(
                "Transfer",
                [{"item_id": item.id, "quantity": 1}],
                source_location_id="kitchen",
                destination_location_id="patio",
            )
