"""In-memory arenas for every store interface."""

from src.infrastructure.storage.memory.catalogs import (
    MemoryItemCatalog,
    MemoryLocationCatalog,
    MemoryVendorCatalog,
)
from src.infrastructure.storage.memory.count_sheet_store import MemoryCountSheetStore
from src.infrastructure.storage.memory.inventory_store import (
    MemoryBatchStore,
    MemoryStockLevelStore,
)
from src.infrastructure.storage.memory.journal_store import MemoryTransactionJournal
from src.infrastructure.storage.memory.reservation_store import MemoryReservationStore

__all__ = [
    # Catalogs
    "MemoryItemCatalog",
    "MemoryVendorCatalog",
    "MemoryLocationCatalog",
    # Stores
    "MemoryStockLevelStore",
    "MemoryBatchStore",
    "MemoryTransactionJournal",
    "MemoryReservationStore",
    "MemoryCountSheetStore",
]
