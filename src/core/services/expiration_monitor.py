"""Expiration monitor: classifies lots and raises expiration events."""

from collections.abc import Callable
from datetime import datetime

from src.config import LedgerSettings, get_logger, get_settings
from src.core.entities.common import utc_now
from src.core.entities.events import EventKind, LedgerEvent
from src.core.interfaces.clock import IClock
from src.core.interfaces.inventory_store import IBatchStore
from src.core.services.batch_allocator import BatchAllocator, ExpirationClassification
from src.core.services.event_publisher import EventPublisher

logger = get_logger(__name__)


class ExpirationMonitor:
    """On-demand scan of lots with stock left."""

    def __init__(
        self,
        allocator: BatchAllocator,
        batches: IBatchStore,
        publisher: EventPublisher | None = None,
        settings: LedgerSettings | None = None,
        clock: IClock | None = None,
    ):
        self._allocator = allocator
        self._batches = batches
        self._publisher = publisher or EventPublisher()
        self._settings = settings or get_settings().ledger
        self._now: Callable[[], datetime] = clock.now if clock else utc_now

    async def scan(
        self,
        location_id: str | None = None,
        window_days: int | None = None,
    ) -> ExpirationClassification:
        now = self._now()
        window = self._settings.expiring_soon_days if window_days is None else window_days
        batches = await self._batches.list_batches(location_id=location_id)
        classified = self._allocator.classify(batches, now=now, window_days=window)

        events = [
            LedgerEvent.create(
                EventKind.BATCH_EXPIRED,
                occurred_at=now,
                batch_id=batch.id,
                item_id=batch.item_id,
                location_id=batch.location_id,
                remaining_quantity=batch.remaining_quantity,
                expiration_date=batch.expiration_date.isoformat(),
            )
            for batch in classified.expired
        ]
        events.extend(
            LedgerEvent.create(
                EventKind.BATCH_EXPIRING_SOON,
                occurred_at=now,
                batch_id=batch.id,
                item_id=batch.item_id,
                location_id=batch.location_id,
                remaining_quantity=batch.remaining_quantity,
                days_until_expiration=batch.days_until_expiration(now),
            )
            for batch in classified.expiring_soon
        )
        await self._publisher.publish_all(events)

        logger.info(
            "expiration_scan_complete",
            location_id=location_id,
            expired=len(classified.expired),
            expiring_soon=len(classified.expiring_soon),
            active=len(classified.active),
        )
        return classified
