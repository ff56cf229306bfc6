"""Abstract time source."""

from abc import ABC, abstractmethod
from datetime import datetime


class IClock(ABC):
    """Supplies the current time (timezone-aware UTC)."""

    @abstractmethod
    def now(self) -> datetime:
        pass
