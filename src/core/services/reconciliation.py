"""Consistency check between the stock ledger and lot quantities."""

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from src.config import LedgerSettings, get_logger, get_settings
from src.core.entities.common import utc_now
from src.core.entities.events import EventKind, LedgerEvent
from src.core.interfaces.catalog import IItemCatalog
from src.core.interfaces.clock import IClock
from src.core.interfaces.inventory_store import IBatchStore, IStockLevelStore
from src.core.services.event_publisher import EventPublisher

logger = get_logger(__name__)


@dataclass
class Discrepancy:
    """Ledger quantity and lot total disagree for a lot-tracked key."""

    item_id: str
    location_id: str
    ledger_quantity: float
    batch_quantity: float

    @property
    def difference(self) -> float:
        return self.ledger_quantity - self.batch_quantity


class ReconciliationService:
    """
    Reports, but never corrects, drift between levels and lots.

    Only items that track expiration keep lots, so only they are checked.
    """

    def __init__(
        self,
        items: IItemCatalog,
        levels: IStockLevelStore,
        batches: IBatchStore,
        publisher: EventPublisher | None = None,
        settings: LedgerSettings | None = None,
        clock: IClock | None = None,
    ):
        self._items = items
        self._levels = levels
        self._batches = batches
        self._publisher = publisher or EventPublisher()
        self._settings = settings or get_settings().ledger
        self._now: Callable[[], datetime] = clock.now if clock else utc_now

    async def check(self, location_id: str | None = None) -> list[Discrepancy]:
        discrepancies: list[Discrepancy] = []
        for item in await self._items.list_items():
            if not item.track_expiration:
                continue

            ledger_qty: dict[str, float] = defaultdict(float)
            for level in await self._levels.list_levels(item_id=item.id, location_id=location_id):
                ledger_qty[level.location_id] += level.current_quantity

            lot_qty: dict[str, float] = defaultdict(float)
            for batch in await self._batches.list_batches(
                item_id=item.id, location_id=location_id
            ):
                lot_qty[batch.location_id] += batch.remaining_quantity

            for loc in sorted(set(ledger_qty) | set(lot_qty)):
                if abs(ledger_qty[loc] - lot_qty[loc]) > self._settings.quantity_epsilon:
                    discrepancies.append(
                        Discrepancy(item.id, loc, ledger_qty[loc], lot_qty[loc])
                    )

        for d in discrepancies:
            logger.warning(
                "reconciliation_mismatch",
                item_id=d.item_id,
                location_id=d.location_id,
                ledger_quantity=d.ledger_quantity,
                batch_quantity=d.batch_quantity,
            )
        await self._publisher.publish_all(
            LedgerEvent.create(
                EventKind.RECONCILIATION_MISMATCH,
                occurred_at=self._now(),
                item_id=d.item_id,
                location_id=d.location_id,
                ledger_quantity=d.ledger_quantity,
                batch_quantity=d.batch_quantity,
                difference=d.difference,
            )
            for d in discrepancies
        )
        logger.info(
            "reconciliation_complete",
            location_id=location_id,
            discrepancies=len(discrepancies),
        )
        return discrepancies
