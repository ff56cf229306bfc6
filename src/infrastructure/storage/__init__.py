"""Storage infrastructure implementations."""

from src.infrastructure.storage.memory import (
    MemoryBatchStore,
    MemoryCountSheetStore,
    MemoryItemCatalog,
    MemoryLocationCatalog,
    MemoryReservationStore,
    MemoryStockLevelStore,
    MemoryTransactionJournal,
    MemoryVendorCatalog,
)
from src.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteTransactionJournal,
    close_journal_store,
    get_journal_store,
    initialize_database,
)

__all__ = [
    # In-memory arenas
    "MemoryItemCatalog",
    "MemoryVendorCatalog",
    "MemoryLocationCatalog",
    "MemoryStockLevelStore",
    "MemoryBatchStore",
    "MemoryTransactionJournal",
    "MemoryReservationStore",
    "MemoryCountSheetStore",
    # SQLite journal
    "ConnectionPool",
    "SQLiteTransactionJournal",
    "get_journal_store",
    "close_journal_store",
    "initialize_database",
]
