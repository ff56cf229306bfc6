"""Tests for transaction entities and structural validation."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from src.core.entities.transaction import (
    InventoryTransaction,
    TransactionItem,
    TransactionType,
)
from src.core.exceptions import (
    EmptyTransactionError,
    InvalidTransactionQuantityError,
    InvalidUnitCostError,
    MissingDestinationLocationError,
    MissingSourceLocationError,
    SameLocationTransferError,
    UnknownTransactionTypeError,
    ValidationError,
)


class TestTransactionType:
    """Tests for TransactionType.parse."""

    def test_parse_accepts_value_name_and_case(self):
        """Values, member names and any casing resolve to the member."""
        assert TransactionType.parse("Consume") == TransactionType.CONSUME
        assert TransactionType.parse("ADJUSTMENT") == TransactionType.ADJUSTMENT
        assert TransactionType.parse("waste") == TransactionType.WASTE
        assert TransactionType.parse(TransactionType.RECEIVE) == TransactionType.RECEIVE

    def test_parse_unknown_raises(self):
        """Unknown names raise a typed validation error."""
        with pytest.raises(UnknownTransactionTypeError) as exc_info:
            TransactionType.parse("Sale")

        assert exc_info.value.code == "UNKNOWN_TRANSACTION_TYPE"
        assert isinstance(exc_info.value, ValidationError)


class TestValidateTransaction:
    """Structural checks run by InventoryTransaction.create."""

    def test_empty_transaction_rejected(self):
        with pytest.raises(EmptyTransactionError):
            InventoryTransaction.create("Receive", [], destination_location_id="kitchen")

    def test_receive_requires_destination(self):
        with pytest.raises(MissingDestinationLocationError):
            InventoryTransaction.create(
                "Receive", [{"item_id": "i1", "quantity": 1, "unit_cost": Decimal("1")}]
            )

    def test_receive_requires_unit_cost(self):
        """Receipts must say what the stock cost."""
        with pytest.raises(InvalidUnitCostError) as exc_info:
            InventoryTransaction.create(
                "Receive", [{"item_id": "i1", "quantity": 1}], destination_location_id="kitchen"
            )

        assert exc_info.value.details["field"] == "items[0].unit_cost"

    def test_consume_forbids_unit_cost(self):
        """Consumption cost comes from the costing method, never from the line."""
        with pytest.raises(InvalidUnitCostError):
            InventoryTransaction.create(
                "Consume",
                [{"item_id": "i1", "quantity": 1, "unit_cost": Decimal("2")}],
                source_location_id="kitchen",
            )

    def test_transfer_forbids_unit_cost(self):
        with pytest.raises(InvalidUnitCostError):
            InventoryTransaction.create(
                "Transfer",
                [{"item_id": "i1", "quantity": 1, "unit_cost": Decimal("2")}],
                source_location_id="kitchen",
                destination_location_id="bar",
            )

    def test_negative_unit_cost_rejected(self):
        with pytest.raises(InvalidUnitCostError):
            InventoryTransaction.create(
                "Waste",
                [{"item_id": "i1", "quantity": 1, "unit_cost": Decimal("-0.01")}],
                source_location_id="kitchen",
            )

    def test_transfer_requires_both_locations(self):
        with pytest.raises(MissingSourceLocationError):
            InventoryTransaction.create(
                "Transfer", [{"item_id": "i1", "quantity": 1}], destination_location_id="bar"
            )

    def test_transfer_to_same_location_rejected(self):
        with pytest.raises(SameLocationTransferError):
            InventoryTransaction.create(
                "Transfer",
                [{"item_id": "i1", "quantity": 1}],
                source_location_id="kitchen",
                destination_location_id="kitchen",
            )

    @pytest.mark.parametrize("quantity", [0, -1.5])
    def test_non_positive_line_quantity_rejected(self, quantity: float):
        """Everything but an adjustment needs a positive quantity."""
        with pytest.raises(InvalidTransactionQuantityError):
            InventoryTransaction.create(
                "Consume",
                [{"item_id": "i1", "quantity": quantity}],
                source_location_id="kitchen",
            )

    def test_adjustment_accepts_zero_count(self):
        """Zero is a legitimate physical count."""
        txn = InventoryTransaction.create(
            "Adjustment", [{"item_id": "i1", "quantity": 0}], source_location_id="kitchen"
        )

        assert txn.items[0].quantity == 0

    def test_adjustment_rejects_negative_count(self):
        with pytest.raises(InvalidTransactionQuantityError):
            InventoryTransaction.create(
                "Adjustment", [{"item_id": "i1", "quantity": -1}], source_location_id="kitchen"
            )

    def test_consume_line_location_satisfies_source(self):
        """A line can name its own location instead of the transaction's."""
        txn = InventoryTransaction.create(
            "Consume", [{"item_id": "i1", "quantity": 1, "location_id": "bar"}]
        )

        assert txn.line_location(txn.items[0]) == "bar"


class TestInventoryTransaction:
    """Tests for InventoryTransaction fields."""

    def test_line_location_defaults_by_type(self):
        """Receipts act on the destination, everything else on the source."""
        receive = InventoryTransaction.create(
            TransactionType.RECEIVE,
            [TransactionItem(item_id="i1", quantity=1, unit_cost=Decimal("1"))],
            destination_location_id="kitchen",
        )
        transfer = InventoryTransaction.create(
            TransactionType.TRANSFER,
            [TransactionItem(item_id="i1", quantity=1)],
            source_location_id="kitchen",
            destination_location_id="bar",
        )

        assert receive.line_location(receive.items[0]) == "kitchen"
        assert transfer.line_location(transfer.items[0]) == "kitchen"

    def test_naive_dates_become_utc(self):
        txn = InventoryTransaction.create(
            "Receive",
            [
                {
                    "item_id": "i1",
                    "quantity": 1,
                    "unit_cost": Decimal("1"),
                    "expiration_date": datetime(2024, 4, 1),
                }
            ],
            destination_location_id="kitchen",
            transaction_date=datetime(2024, 3, 1, 9, 30),
        )

        assert txn.transaction_date.tzinfo == UTC
        assert txn.items[0].expiration_date.tzinfo == UTC

    def test_transaction_is_frozen(self):
        txn = InventoryTransaction.create(
            "Consume", [{"item_id": "i1", "quantity": 1}], source_location_id="kitchen"
        )

        with pytest.raises(PydanticValidationError):
            txn.notes = "changed"
