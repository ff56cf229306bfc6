"""
Service factory functions for dependency injection.

Wires store implementations to the core services. Use cases get their
collaborators from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from dataclasses import dataclass

from src.config import Settings, configure_logging, get_logger, get_settings
from src.core.interfaces import (
    IBatchStore,
    IClock,
    ICountSheetStore,
    IEventSink,
    IItemCatalog,
    ILocationCatalog,
    IReservationStore,
    IStockLevelStore,
    ITransactionJournal,
    IVendorCatalog,
)
from src.core.services import (
    AvailabilityService,
    BatchAllocator,
    CostingEngine,
    CountSheetService,
    EventPublisher,
    ExpirationMonitor,
    ItemRegistry,
    PlanningEngine,
    ReconciliationService,
    ReservationService,
    StockLedger,
    TransactionProcessor,
)

logger = get_logger(__name__)


@dataclass
class LedgerStores:
    """Every store and catalog the ledger services read and write."""

    items: IItemCatalog
    vendors: IVendorCatalog
    locations: ILocationCatalog
    levels: IStockLevelStore
    batches: IBatchStore
    journal: ITransactionJournal
    reservations: IReservationStore
    count_sheets: ICountSheetStore

    @classmethod
    def in_memory(cls, journal: ITransactionJournal | None = None) -> "LedgerStores":
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

        return cls(
            items=MemoryItemCatalog(),
            vendors=MemoryVendorCatalog(),
            locations=MemoryLocationCatalog(),
            levels=MemoryStockLevelStore(),
            batches=MemoryBatchStore(),
            journal=journal or MemoryTransactionJournal(),
            reservations=MemoryReservationStore(),
            count_sheets=MemoryCountSheetStore(),
        )


@dataclass
class LedgerServices:
    """The wired core services sharing one set of stores, locks and clock."""

    stores: LedgerStores
    clock: IClock
    publisher: EventPublisher
    ledger: StockLedger
    allocator: BatchAllocator
    costing: CostingEngine
    processor: TransactionProcessor
    planning: PlanningEngine
    reservations: ReservationService
    availability: AvailabilityService
    expiration: ExpirationMonitor
    reconciliation: ReconciliationService
    count_sheets: CountSheetService
    registry: ItemRegistry


def build_ledger_services(
    stores: LedgerStores | None = None,
    sink: IEventSink | None = None,
    clock: IClock | None = None,
    settings: Settings | None = None,
) -> LedgerServices:
    """
    Wire the core services over the given stores.

    Args:
        stores: Store implementations (default: fresh in-memory arenas)
        sink: Event sink (default: events are dropped)
        clock: Time source (default: system UTC time)
        settings: Settings override (default: global settings)

    Returns:
        Configured LedgerServices
    """
    from src.infrastructure.clock import SystemClock

    settings = settings or get_settings()
    stores = stores or LedgerStores.in_memory()
    clock = clock or SystemClock()
    publisher = EventPublisher(sink)

    ledger = StockLedger(stores.levels, settings=settings.ledger, clock=clock)
    allocator = BatchAllocator(stores.items, stores.batches, settings=settings.ledger, clock=clock)
    # Item cost refreshes take the same locks as stock changes
    costing = CostingEngine(
        stores.items, stores.batches, stores.levels, stores.journal, locks=ledger.locks
    )
    processor = TransactionProcessor(
        stores.items,
        ledger,
        stores.batches,
        allocator,
        costing,
        stores.journal,
        publisher=publisher,
        settings=settings.ledger,
        clock=clock,
        locations=stores.locations,
    )

    return LedgerServices(
        stores=stores,
        clock=clock,
        publisher=publisher,
        ledger=ledger,
        allocator=allocator,
        costing=costing,
        processor=processor,
        planning=PlanningEngine(
            stores.items,
            stores.levels,
            stores.journal,
            vendors=stores.vendors,
            settings=settings.planning,
            clock=clock,
        ),
        reservations=ReservationService(
            ledger, stores.reservations, items=stores.items, publisher=publisher, clock=clock
        ),
        availability=AvailabilityService(ledger, stores.items),
        expiration=ExpirationMonitor(
            allocator, stores.batches, publisher=publisher, settings=settings.ledger, clock=clock
        ),
        reconciliation=ReconciliationService(
            stores.items,
            stores.levels,
            stores.batches,
            publisher=publisher,
            settings=settings.ledger,
            clock=clock,
        ),
        count_sheets=CountSheetService(
            stores.items,
            ledger,
            processor,
            stores.count_sheets,
            publisher=publisher,
            settings=settings.count,
            clock=clock,
        ),
        registry=ItemRegistry(stores.items, vendors=stores.vendors),
    )


# Singleton services instance
_services: LedgerServices | None = None


async def get_ledger_services() -> LedgerServices:
    """
    Get or create the process-wide LedgerServices.

    Catalogs and stock state live in memory; the journal is SQLite-backed
    when ``STORAGE_JOURNAL_BACKEND=sqlite``. Events go to the structured log.
    """
    global _services
    if _services is not None:
        return _services

    # Lazy import infrastructure to avoid circular imports
    from src.infrastructure.events import LoggingEventSink

    settings = get_settings()
    configure_logging()
    journal = None
    if settings.storage.journal_backend == "sqlite":
        from src.infrastructure.storage.sqlite import get_journal_store

        journal = await get_journal_store()

    _services = build_ledger_services(
        stores=LedgerStores.in_memory(journal=journal),
        sink=LoggingEventSink(),
        settings=settings,
    )
    logger.info("ledger_services_created", journal_backend=settings.storage.journal_backend)
    return _services


def reset_services() -> None:
    """Reset the singleton (for testing)."""
    global _services
    _services = None
