"""Abstract interface for count sheet storage."""

from abc import ABC, abstractmethod

from src.core.entities.count_sheet import CountSheet


class ICountSheetStore(ABC):
    """Interface for count sheet persistence."""

    @abstractmethod
    async def get(self, sheet_id: str) -> CountSheet | None:
        """Get count sheet by ID."""
        pass

    @abstractmethod
    async def save(self, sheet: CountSheet) -> CountSheet:
        """Create or update a count sheet."""
        pass

    @abstractmethod
    async def list_sheets(self, location_id: str | None = None) -> list[CountSheet]:
        """List count sheets, newest first."""
        pass
