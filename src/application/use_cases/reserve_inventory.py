"""Reserve Inventory Use Case."""

from src.application.dto.requests import ReserveInventoryRequest
from src.application.dto.responses import (
    ReservationLineResponse,
    ReservationResponse,
    UnavailableReservationLineResponse,
)
from src.application.use_cases.base import LedgerUseCase
from src.config import get_logger
from src.core.entities.reservation import Reservation, ReservationLine
from src.core.services import ReservationOutcome

logger = get_logger(__name__)


def reservation_response(
    reservation: Reservation | None,
    outcome: ReservationOutcome | None = None,
) -> ReservationResponse:
    """Shared by the reserve and release use cases."""
    unavailable = outcome.unavailable_lines if outcome else []
    if reservation is None:
        return ReservationResponse(
            success=False,
            unavailable_lines=[
                UnavailableReservationLineResponse(
                    item_id=u.item_id,
                    location_id=u.location_id,
                    requested_quantity=u.requested_quantity,
                    available_quantity=u.available_quantity,
                )
                for u in unavailable
            ],
        )
    return ReservationResponse(
        success=True,
        reservation_id=reservation.id,
        reference_id=reservation.reference_id,
        status=reservation.status.value,
        lines=[
            ReservationLineResponse(
                item_id=line.item_id,
                location_id=line.location_id,
                quantity=line.quantity,
            )
            for line in reservation.lines
        ],
        expires_at=reservation.expires_at,
        released_at=reservation.released_at,
    )


class ReserveInventoryUseCase(LedgerUseCase):
    """Hold stock for an order; every line is reserved or none is."""

    async def execute(self, request: ReserveInventoryRequest) -> ReservationOutcome:
        logger.info(
            "reserve_inventory_started",
            reference_id=request.reference_id,
            lines=len(request.lines),
        )
        services = await self._get_services()
        outcome = await services.reservations.reserve(
            request.reference_id,
            [
                ReservationLine(
                    item_id=line.item_id,
                    location_id=line.location_id,
                    quantity=line.quantity,
                )
                for line in request.lines
            ],
            reference_type=request.reference_type,
            expires_at=request.expires_at,
        )
        logger.info(
            "reserve_inventory_complete",
            reference_id=request.reference_id,
            success=outcome.success,
        )
        return outcome

    def to_response(self, outcome: ReservationOutcome) -> ReservationResponse:
        return reservation_response(outcome.reservation, outcome)
