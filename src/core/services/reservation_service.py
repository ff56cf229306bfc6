"""Reservation service: all-or-nothing multi-line reservations."""

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from src.config import get_logger
from src.core.entities.common import utc_now
from src.core.entities.events import EventKind, LedgerEvent
from src.core.entities.reservation import Reservation, ReservationLine
from src.core.exceptions import ItemNotFoundError, ReservationNotFoundError, ReservationStateError
from src.core.interfaces.catalog import IItemCatalog
from src.core.interfaces.clock import IClock
from src.core.interfaces.reservation_store import IReservationStore
from src.core.services.event_publisher import EventPublisher
from src.core.services.stock_ledger import LedgerHandle, LedgerStatus, StockLedger

logger = get_logger(__name__)


@dataclass
class UnavailableReservationLine:
    """A requested key that could not be covered."""

    item_id: str
    location_id: str
    requested_quantity: float
    available_quantity: float


@dataclass
class ReservationOutcome:
    """Result of a reservation request. Nothing is reserved unless ``success``."""

    success: bool
    reservation: Reservation | None = None
    unavailable_lines: list[UnavailableReservationLine] = field(default_factory=list)


class ReservationService:
    """
    Reserves stock for orders and releases it again.

    A request locks every key it touches and either reserves every line or
    none of them.
    """

    def __init__(
        self,
        ledger: StockLedger,
        store: IReservationStore,
        items: IItemCatalog | None = None,
        publisher: EventPublisher | None = None,
        clock: IClock | None = None,
    ):
        self._ledger = ledger
        self._store = store
        self._items = items
        self._publisher = publisher or EventPublisher()
        self._now: Callable[[], datetime] = clock.now if clock else utc_now

    async def reserve(
        self,
        reference_id: str,
        lines: list[ReservationLine],
        reference_type: str = "order",
        expires_at: datetime | None = None,
    ) -> ReservationOutcome:
        if self._items is not None:
            for line in lines:
                if await self._items.get_item(line.item_id) is None:
                    raise ItemNotFoundError(line.item_id)

        requested: dict[tuple[str, str], float] = defaultdict(float)
        for line in lines:
            requested[line.key] += line.quantity

        events: list[LedgerEvent] = []
        async with self._ledger.hold(*requested) as ledger:
            unavailable = await self._shortfalls(ledger, requested)
            if unavailable:
                outcome = ReservationOutcome(success=False, unavailable_lines=unavailable)
            else:
                for line in lines:
                    await ledger.reserve(line.item_id, line.location_id, line.quantity)
                reservation = Reservation.create(
                    reference_id=reference_id,
                    lines=lines,
                    reference_type=reference_type,
                    expires_at=expires_at,
                    created_at=self._now(),
                )
                reservation = await self._store.save(reservation)
                outcome = ReservationOutcome(success=True, reservation=reservation)

        if outcome.success:
            reservation = outcome.reservation
            for line in lines:
                events.append(
                    LedgerEvent.create(
                        EventKind.STOCK_RESERVED,
                        occurred_at=self._now(),
                        reservation_id=reservation.id,
                        reference_id=reference_id,
                        item_id=line.item_id,
                        location_id=line.location_id,
                        quantity=line.quantity,
                    )
                )
            logger.info(
                "stock_reserved",
                reservation_id=reservation.id,
                reference_id=reference_id,
                lines=len(lines),
            )
        else:
            for short in outcome.unavailable_lines:
                events.append(
                    LedgerEvent.create(
                        EventKind.INSUFFICIENT_STOCK_AVAILABLE,
                        occurred_at=self._now(),
                        item_id=short.item_id,
                        location_id=short.location_id,
                        requested_quantity=short.requested_quantity,
                        available_quantity=short.available_quantity,
                    )
                )
            logger.info(
                "reservation_rejected",
                reference_id=reference_id,
                unavailable=len(outcome.unavailable_lines),
            )

        await self._publisher.publish_all(events)
        return outcome

    @staticmethod
    async def _shortfalls(
        ledger: LedgerHandle,
        requested: dict[tuple[str, str], float],
    ) -> list[UnavailableReservationLine]:
        short = []
        for (item_id, location_id), quantity in requested.items():
            available = await ledger.get_available(item_id, location_id)
            if available < quantity:
                short.append(
                    UnavailableReservationLine(item_id, location_id, quantity, available)
                )
        return short

    async def get(self, reservation_id: str) -> Reservation:
        reservation = await self._store.get(reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(reservation_id)
        return reservation

    async def list_active(self, reference_id: str | None = None) -> list[Reservation]:
        return await self._store.list_active(reference_id=reference_id)

    async def release(self, reservation_id: str) -> Reservation:
        """Give back every line of an active reservation."""
        reservation = await self.get(reservation_id)
        if not reservation.is_active:
            raise ReservationStateError(reservation.id, reservation.status.value, "release")
        closed = await self._close(reservation, self._now())
        if closed is None:
            reservation = await self.get(reservation_id)
            raise ReservationStateError(reservation.id, reservation.status.value, "release")
        reservation = closed
        await self._publish_released(reservation)
        logger.info("stock_released", reservation_id=reservation.id)
        return reservation

    async def release_expired(self, now: datetime | None = None) -> list[Reservation]:
        """Expire every active reservation whose deadline has passed."""
        now = now or self._now()
        expired = []
        for reservation in await self._store.list_active():
            if not reservation.is_expired(now):
                continue
            closed = await self._close(reservation, now, expire=True)
            if closed is None:
                continue
            expired.append(closed)
            await self._publish_released(closed)
        if expired:
            logger.info("reservations_expired", count=len(expired))
        return expired

    async def _close(
        self, reservation: Reservation, now: datetime, expire: bool = False
    ) -> Reservation | None:
        """Return the stock and close the reservation; None if it closed meanwhile."""
        async with self._ledger.hold(*(line.key for line in reservation.lines)) as ledger:
            reservation = await self._store.get(reservation.id)
            if reservation is None or not reservation.is_active:
                return None
            for line in reservation.lines:
                result = await ledger.release(line.item_id, line.location_id, line.quantity)
                if result.status == LedgerStatus.EXCESSIVE:
                    logger.warning(
                        "reservation_release_exceeded_reserved",
                        reservation_id=reservation.id,
                        item_id=line.item_id,
                        location_id=line.location_id,
                        requested=line.quantity,
                        released=result.released,
                    )
            if expire:
                reservation.mark_expired(now)
            else:
                reservation.mark_released(now)
            return await self._store.save(reservation)

    async def _publish_released(self, reservation: Reservation) -> None:
        await self._publisher.publish_all(
            LedgerEvent.create(
                EventKind.STOCK_RELEASED,
                occurred_at=self._now(),
                reservation_id=reservation.id,
                reference_id=reservation.reference_id,
                item_id=line.item_id,
                location_id=line.location_id,
                quantity=line.quantity,
            )
            for line in reservation.lines
        )
