"""Infrastructure layer implementations."""

from src.infrastructure import storage
from src.infrastructure.clock import FixedClock, SystemClock
from src.infrastructure.events import FanOutEventSink, LoggingEventSink, RecordingEventSink

__all__ = [
    "storage",
    # Clocks
    "SystemClock",
    "FixedClock",
    # Event sinks
    "RecordingEventSink",
    "LoggingEventSink",
    "FanOutEventSink",
]
