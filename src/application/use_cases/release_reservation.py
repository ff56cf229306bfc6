"""Release Reservation Use Case."""

from src.application.dto.requests import ReleaseReservationRequest
from src.application.dto.responses import ReservationResponse
from src.application.use_cases.base import LedgerUseCase
from src.application.use_cases.reserve_inventory import reservation_response
from src.config import get_logger
from src.core.entities.reservation import Reservation

logger = get_logger(__name__)


class ReleaseReservationUseCase(LedgerUseCase):
    """Give reserved stock back; also sweeps reservations past their expiry."""

    async def execute(self, request: ReleaseReservationRequest) -> Reservation:
        services = await self._get_services()
        reservation = await services.reservations.release(request.reservation_id)
        logger.info("release_reservation_complete", reservation_id=reservation.id)
        return reservation

    async def release_expired(self) -> list[Reservation]:
        services = await self._get_services()
        return await services.reservations.release_expired()

    def to_response(self, reservation: Reservation) -> ReservationResponse:
        return reservation_response(reservation)
