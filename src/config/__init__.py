"""Configuration module."""

from src.config.logging import configure_logging, get_logger, transaction_log_context
from src.config.settings import (
    CountSettings,
    LedgerSettings,
    PlanningSettings,
    Settings,
    StorageSettings,
    get_settings,
    reset_settings,
)

__all__ = [
    "Settings",
    "LedgerSettings",
    "PlanningSettings",
    "CountSettings",
    "StorageSettings",
    "get_settings",
    "reset_settings",
    "configure_logging",
    "get_logger",
    "transaction_log_context",
]
