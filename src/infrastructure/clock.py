"""Clock adapters."""

from datetime import datetime, timedelta

from src.core.entities.common import ensure_utc, utc_now
from src.core.interfaces.clock import IClock


class SystemClock(IClock):
    def now(self) -> datetime:
        return utc_now()


class FixedClock(IClock):
    """Returns a set instant until moved; for tests and replays."""

    def __init__(self, at: datetime):
        self._at = ensure_utc(at)

    def now(self) -> datetime:
        return self._at

    def set(self, at: datetime) -> None:
        self._at = ensure_utc(at)

    def advance(self, **delta: float) -> datetime:
        """Move forward by ``timedelta`` keyword arguments, e.g. ``advance(days=1)``."""
        self._at += timedelta(**delta)
        return self._at
