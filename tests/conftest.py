"""Pytest configuration and fixtures."""

from collections.abc import Awaitable, Callable, Generator
from datetime import UTC, datetime
from decimal import Decimal
from itertools import count
from typing import Any

import pytest

from src.application.services import (
    LedgerServices,
    LedgerStores,
    build_ledger_services,
    reset_services,
)
from src.config import Settings, reset_settings
from src.core.entities.inventory import InventoryItem
from src.core.entities.transaction import InventoryTransaction, TransactionType
from src.core.services import TransactionResult
from src.infrastructure.clock import FixedClock
from src.infrastructure.events import RecordingEventSink


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Every test starts with fresh settings and services."""
    reset_settings()
    reset_services()
    yield
    reset_settings()
    reset_services()


@pytest.fixture
def clock() -> FixedClock:
    """Clock pinned to 2024-03-01 12:00 UTC."""
    return FixedClock(datetime(2024, 3, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def sink() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def stores() -> LedgerStores:
    return LedgerStores.in_memory()


@pytest.fixture
def services(
    stores: LedgerStores,
    sink: RecordingEventSink,
    clock: FixedClock,
    settings: Settings,
) -> LedgerServices:
    """Core services wired over in-memory stores."""
    return build_ledger_services(stores=stores, sink=sink, clock=clock, settings=settings)


@pytest.fixture
def add_item(stores: LedgerStores) -> Callable[..., Awaitable[InventoryItem]]:
    """Save an item to the catalog; name, SKU and category get defaults."""
    numbers = count(1)

    async def _add(**fields: Any) -> InventoryItem:
        n = next(numbers)
        fields.setdefault("name", f"Item {n}")
        fields.setdefault("sku", f"SKU{n:03d}")
        fields.setdefault("category", "produce")
        return await stores.items.save_item(InventoryItem.create(**fields))

    return _add


@pytest.fixture
def receive(
    services: LedgerServices, clock: FixedClock
) -> Callable[..., Awaitable[TransactionResult]]:
    """Receive one line at a location, dated now on the test clock."""

    async def _receive(
        item_id: str,
        quantity: float,
        unit_cost: str | Decimal,
        location_id: str = "kitchen",
        **line: Any,
    ) -> TransactionResult:
        transaction = InventoryTransaction.create(
            TransactionType.RECEIVE,
            [{"item_id": item_id, "quantity": quantity, "unit_cost": Decimal(unit_cost), **line}],
            destination_location_id=location_id,
            transaction_date=clock.now(),
        )
        return await services.processor.process(transaction)

    return _receive


@pytest.fixture
def consume(
    services: LedgerServices, clock: FixedClock
) -> Callable[..., Awaitable[TransactionResult]]:
    """Consume one line at a location, dated now on the test clock."""

    async def _consume(
        item_id: str,
        quantity: float,
        location_id: str = "kitchen",
        **line: Any,
    ) -> TransactionResult:
        transaction = InventoryTransaction.create(
            TransactionType.CONSUME,
            [{"item_id": item_id, "quantity": quantity, **line}],
            source_location_id=location_id,
            transaction_date=clock.now(),
        )
        return await services.processor.process(transaction)

    return _consume
