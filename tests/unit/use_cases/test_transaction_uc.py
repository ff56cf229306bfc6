"""Unit tests for the transaction use cases."""

from datetime import timedelta
from decimal import Decimal

import pytest

from src.application.dto.requests import (
    AdjustInventoryRequest,
    ConsumeInventoryRequest,
    ReceiveInventoryRequest,
    RecordWasteRequest,
    TransactionLineRequest,
    TransferInventoryRequest,
)
from src.application.use_cases import (
    AdjustInventoryUseCase,
    ConsumeInventoryUseCase,
    ReceiveInventoryUseCase,
    RecordWasteUseCase,
    TransferInventoryUseCase,
)
from src.core.entities.transaction import WasteReason
from src.core.exceptions import (
    InvalidUnitCostError,
    ItemNotFoundError,
    SameLocationTransferError,
)


def lines(*entries: dict) -> list[TransactionLineRequest]:
    return [TransactionLineRequest(**entry) for entry in entries]


@pytest.fixture
async def tracked_item(add_item):
    return await add_item(sku="CRM", track_expiration=True, shelf_life_days=5)


class TestReceiveInventoryUseCase:
    """Tests for ReceiveInventoryUseCase."""

    async def test_receive_creates_lot_and_response(self, services, clock, tracked_item):
        use_case = ReceiveInventoryUseCase(services=services)
        request = ReceiveInventoryRequest(
            destination_location_id="kitchen",
            reference_number="PO-12",
            lines=lines({"item_id": tracked_item.id, "quantity": 6, "unit_cost": "1.25"}),
        )

        result = await use_case.execute(request)
        response = use_case.to_response(result)

        assert response.success
        assert response.transaction_type == "Receive"
        assert response.transaction_date == clock.now()
        assert response.total_cost == Decimal("7.50")
        assert response.created_batch_ids == [result.created_batches[0].id]
        assert response.committed_lines[0].batch_id == result.created_batches[0].id
        assert response.movements[0].movement_type == "in"
        stored = await services.stores.journal.get(response.transaction_id)
        assert stored.reference_number == "PO-12"

    async def test_request_date_is_used(self, services, clock, add_item):
        item = await add_item()
        when = clock.now() - timedelta(days=2)
        use_case = ReceiveInventoryUseCase(services=services)

        result = await use_case.execute(
            ReceiveInventoryRequest(
                destination_location_id="kitchen",
                transaction_date=when,
                lines=lines({"item_id": item.id, "quantity": 1, "unit_cost": "1.00"}),
            )
        )

        assert result.movements[0].movement_date == when

    async def test_missing_unit_cost_rejected(self, services, add_item):
        item = await add_item()
        use_case = ReceiveInventoryUseCase(services=services)

        with pytest.raises(InvalidUnitCostError):
            await use_case.execute(
                ReceiveInventoryRequest(
                    destination_location_id="kitchen",
                    lines=lines({"item_id": item.id, "quantity": 1}),
                )
            )


class TestConsumeInventoryUseCase:
    async def test_consume_reports_allocations(self, services, tracked_item, receive):
        lot = (await receive(tracked_item.id, 6, "1.25")).created_batches[0]
        use_case = ConsumeInventoryUseCase(services=services)

        result = await use_case.execute(
            ConsumeInventoryRequest(
                source_location_id="kitchen",
                lines=lines({"item_id": tracked_item.id, "quantity": 4}),
            )
        )
        response = use_case.to_response(result)

        (allocation,) = response.committed_lines[0].allocations
        assert (allocation.batch_id, allocation.quantity) == (lot.id, 4)
        assert response.total_cost == Decimal("5.00")

    async def test_consume_shortage_in_response(self, services, add_item):
        item = await add_item()
        use_case = ConsumeInventoryUseCase(services=services)

        result = await use_case.execute(
            ConsumeInventoryRequest(
                source_location_id="kitchen",
                lines=lines({"item_id": item.id, "quantity": 4}),
            )
        )
        response = use_case.to_response(result)

        assert response.success is False
        assert response.unavailable_lines[0].requested_quantity == 4
        assert response.unavailable_lines[0].available_quantity == 0


class TestTransferInventoryUseCase:
    async def test_transfer_sets_destination(self, services, add_item, receive):
        item = await add_item()
        await receive(item.id, 10, "2.00")
        use_case = TransferInventoryUseCase(services=services)

        result = await use_case.execute(
            TransferInventoryRequest(
                source_location_id="kitchen",
                destination_location_id="bar",
                lines=lines({"item_id": item.id, "quantity": 4}),
            )
        )
        response = use_case.to_response(result)

        assert response.committed_lines[0].destination_location_id == "bar"
        assert [m.location_id for m in response.movements] == ["kitchen", "bar"]

    async def test_same_location_rejected(self, services, add_item, receive):
        item = await add_item()
        await receive(item.id, 10, "2.00")
        use_case = TransferInventoryUseCase(services=services)

        with pytest.raises(SameLocationTransferError):
            await use_case.execute(
                TransferInventoryRequest(
                    source_location_id="kitchen",
                    destination_location_id="kitchen",
                    lines=lines({"item_id": item.id, "quantity": 4}),
                )
            )


class TestAdjustInventoryUseCase:
    async def test_adjust_reports_variance(self, services, add_item, receive):
        item = await add_item()
        await receive(item.id, 10, "2.00")
        use_case = AdjustInventoryUseCase(services=services)

        result = await use_case.execute(
            AdjustInventoryRequest(
                location_id="kitchen",
                lines=lines({"item_id": item.id, "quantity": 7}),
            )
        )
        response = use_case.to_response(result)

        (variance,) = response.variances
        assert variance.variance == -3
        assert variance.value == Decimal("-6.00")
        assert response.total_cost == Decimal("-6.00")


class TestRecordWasteUseCase:
    async def test_waste_reason_is_kept(self, services, sink, add_item, receive):
        item = await add_item()
        await receive(item.id, 10, "2.00")
        use_case = RecordWasteUseCase(services=services)

        result = await use_case.execute(
            RecordWasteRequest(
                location_id="kitchen",
                waste_reason=WasteReason.DAMAGED,
                lines=lines({"item_id": item.id, "quantity": 1}),
            )
        )

        assert result.transaction.waste_reason == WasteReason.DAMAGED
        assert result.total_cost == Decimal("2.00")


class TestProcessWideServices:
    async def test_use_case_without_services_uses_process_wide_wiring(self):
        """Nothing injected: the in-memory singleton is built and used."""
        use_case = ConsumeInventoryUseCase()

        with pytest.raises(ItemNotFoundError):
            await use_case.execute(
                ConsumeInventoryRequest(
                    source_location_id="kitchen",
                    lines=lines({"item_id": "ghost", "quantity": 1}),
                )
            )
