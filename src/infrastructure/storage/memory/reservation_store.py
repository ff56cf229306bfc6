"""In-memory reservation store."""

from src.core.entities.reservation import Reservation
from src.core.interfaces.reservation_store import IReservationStore


class MemoryReservationStore(IReservationStore):
    def __init__(self):
        self._reservations: dict[str, Reservation] = {}

    async def get(self, reservation_id: str) -> Reservation | None:
        reservation = self._reservations.get(reservation_id)
        return reservation.model_copy(deep=True) if reservation else None

    async def save(self, reservation: Reservation) -> Reservation:
        self._reservations[reservation.id] = reservation.model_copy(deep=True)
        return reservation

    async def list_active(self, reference_id: str | None = None) -> list[Reservation]:
        return [
            r.model_copy(deep=True)
            for r in self._reservations.values()
            if r.is_active and (reference_id is None or r.reference_id == reference_id)
        ]
