"""Core interfaces (ports) for dependency injection."""

from src.core.interfaces.catalog import IItemCatalog, ILocationCatalog, IVendorCatalog
from src.core.interfaces.clock import IClock
from src.core.interfaces.count_sheet_store import ICountSheetStore
from src.core.interfaces.event_sink import IEventSink
from src.core.interfaces.inventory_store import IBatchStore, IStockLevelStore
from src.core.interfaces.journal import ITransactionJournal
from src.core.interfaces.reservation_store import IReservationStore

__all__ = [
    # Catalogs
    "IItemCatalog",
    "IVendorCatalog",
    "ILocationCatalog",
    # Storage interfaces
    "IStockLevelStore",
    "IBatchStore",
    "ITransactionJournal",
    "IReservationStore",
    "ICountSheetStore",
    # Collaborators
    "IEventSink",
    "IClock",
]
