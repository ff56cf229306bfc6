"""Integration test for the process-wide services over a SQLite journal."""

from decimal import Decimal
from pathlib import Path

import pytest

from src.application.dto.requests import (
    ConsumeInventoryRequest,
    ReceiveInventoryRequest,
    TransactionLineRequest,
)
from src.application.services import get_ledger_services
from src.application.use_cases import ConsumeInventoryUseCase, ReceiveInventoryUseCase
from src.core.entities.inventory import InventoryItem, MovementType
from src.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteTransactionJournal,
    close_journal_store,
    get_migration_status,
)


@pytest.fixture
def sqlite_env(monkeypatch, tmp_path: Path) -> Path:
    monkeypatch.setenv("STORAGE_JOURNAL_BACKEND", "sqlite")
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path))
    return tmp_path / "larder.db"


class TestSQLiteJournalFlow:
    async def test_transactions_survive_the_process(self, sqlite_env: Path):
        """Journal entries written through the use cases can be read back from disk."""
        try:
            services = await get_ledger_services()
            assert await get_ledger_services() is services
            item = await services.stores.items.save_item(
                InventoryItem.create(name="Rice", sku="RCE", category="dry goods")
            )

            await ReceiveInventoryUseCase(services=services).execute(
                ReceiveInventoryRequest(
                    destination_location_id="pantry",
                    lines=[TransactionLineRequest(item_id=item.id, quantity=25, unit_cost="1.20")],
                )
            )
            await ConsumeInventoryUseCase(services=services).execute(
                ConsumeInventoryRequest(
                    source_location_id="pantry",
                    lines=[TransactionLineRequest(item_id=item.id, quantity=5)],
                )
            )
        finally:
            await close_journal_store()

        status = await get_migration_status(sqlite_env)
        assert status["pending_migrations"] == []

        pool = ConnectionPool(sqlite_env, pool_size=1)
        try:
            journal = SQLiteTransactionJournal(pool)
            movements = await journal.list_movements(item_id=item.id)
            receipt = await journal.latest_receipt(item.id)
        finally:
            await pool.close()

        assert [m.movement_type for m in movements] == [MovementType.IN, MovementType.OUT]
        assert receipt.unit_cost == Decimal("1.20")
