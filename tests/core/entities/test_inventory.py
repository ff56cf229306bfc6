"""Tests for inventory item, stock level and movement entities."""

from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from src.core.entities.inventory import (
    CostingMethod,
    InventoryItem,
    MovementType,
    StockLevel,
    StockMovement,
)
from src.core.exceptions import InvariantViolationError


def make_item(**fields) -> InventoryItem:
    fields.setdefault("name", "Roma Tomatoes")
    fields.setdefault("sku", "TOM-01")
    fields.setdefault("category", "produce")
    return InventoryItem.create(**fields)


class TestInventoryItem:
    """Tests for InventoryItem."""

    def test_defaults(self):
        item = make_item()

        assert item.costing_method == CostingMethod.FEFO
        assert item.average_cost == Decimal("0")
        assert item.track_expiration is False
        assert item.is_active is True

    def test_blank_sku_rejected(self):
        with pytest.raises(PydanticValidationError):
            make_item(sku="   ")

    def test_values_are_stripped(self):
        item = make_item(name="  Basil ", sku=" BAS-1 ")

        assert item.name == "Basil"
        assert item.sku == "BAS-1"

    def test_max_below_min_rejected(self):
        with pytest.raises(PydanticValidationError):
            make_item(min_stock_level=10, max_stock_level=5)

    def test_zero_max_means_unbounded(self):
        item = make_item(min_stock_level=10, max_stock_level=0)

        assert item.max_stock_level == 0

    def test_set_thresholds_validates(self):
        item = make_item()

        with pytest.raises(ValueError):
            item.set_thresholds(-1, 0, 0, 0)
        with pytest.raises(ValueError):
            item.set_thresholds(5, 10, 4, 2)

        item.set_thresholds(5, 2, 20, 3)
        assert (item.reorder_threshold, item.min_stock_level, item.max_stock_level) == (5, 2, 20)
        assert item.lead_time_days == 3

    def test_alternatives_ignore_self_and_duplicates(self):
        item = make_item()

        item.add_alternative_item(item.id)
        item.add_alternative_item("other")
        item.add_alternative_item("other")

        assert item.alternative_item_ids == ["other"]

        item.remove_alternative_item("other")
        assert item.alternative_item_ids == []

    def test_discontinue_and_reactivate(self):
        item = make_item()

        item.discontinue()
        assert item.is_active is False

        item.reactivate()
        assert item.is_active is True

    def test_rehydrate_skips_validation(self):
        """Stores rebuild persisted state as-is."""
        item = InventoryItem.rehydrate(id="x", name="", sku="", category="")

        assert item.id == "x"


class TestStockLevel:
    """Tests for StockLevel."""

    def test_available_is_current_minus_reserved(self):
        level = StockLevel(
            item_id="i", location_id="kitchen", current_quantity=10, reserved_quantity=4
        )

        assert level.available_quantity == 6
        assert level.is_available(6) is True
        assert level.is_available(6.5) is False
        assert level.key == ("i", "kitchen")

    def test_reserved_above_current_rejected(self):
        with pytest.raises(PydanticValidationError):
            StockLevel(item_id="i", location_id="kitchen", current_quantity=1, reserved_quantity=2)

    @pytest.mark.parametrize(
        "current,reserved",
        [(-1.0, 0.0), (5.0, -1.0), (5.0, 6.0)],
    )
    def test_apply_refuses_broken_states(self, current: float, reserved: float):
        level = StockLevel.create("i", "kitchen")

        with pytest.raises(InvariantViolationError) as exc_info:
            level.apply(current, reserved)

        assert exc_info.value.code == "STOCK_INVARIANT"
        assert level.current_quantity == 0

    def test_apply_sets_both_quantities(self):
        level = StockLevel.create("i", "kitchen")

        level.apply(8, 3)

        assert level.current_quantity == 8
        assert level.reserved_quantity == 3


class TestStockMovement:
    """Tests for StockMovement."""

    def _movement(self, movement_type: MovementType, quantity: float) -> StockMovement:
        return StockMovement(
            transaction_id="t1",
            transaction_type="Consume",
            movement_type=movement_type,
            item_id="i",
            location_id="kitchen",
            quantity=quantity,
        )

    def test_signed_quantity(self):
        assert self._movement(MovementType.IN, 5).signed_quantity == 5
        assert self._movement(MovementType.OUT, 5).signed_quantity == -5
        assert self._movement(MovementType.ADJUST, -2).signed_quantity == -2

    def test_movement_is_frozen(self):
        movement = self._movement(MovementType.IN, 5)

        with pytest.raises(PydanticValidationError):
            movement.quantity = 6
