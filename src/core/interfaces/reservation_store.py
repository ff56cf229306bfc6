"""Abstract interface for reservation storage."""

from abc import ABC, abstractmethod

from src.core.entities.reservation import Reservation


class IReservationStore(ABC):
    """Interface for reservation persistence."""

    @abstractmethod
    async def get(self, reservation_id: str) -> Reservation | None:
        """Get reservation by ID."""
        pass

    @abstractmethod
    async def save(self, reservation: Reservation) -> Reservation:
        """Create or update a reservation."""
        pass

    @abstractmethod
    async def list_active(self, reference_id: str | None = None) -> list[Reservation]:
        """List active reservations, optionally for one reference."""
        pass
