"""
Structured logging configuration using structlog.

Console output in development, JSON lines elsewhere. Every entry carries the
application context; entries written while a transaction is processed also
carry its id and type.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import Processor

from src.config.settings import get_settings

_configured = False


def add_ledger_context(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add application and journal backend to log events."""
    settings = get_settings()
    event_dict["app"] = settings.app_name
    event_dict["version"] = settings.app_version
    event_dict["environment"] = settings.environment
    event_dict.setdefault("journal_backend", settings.storage.journal_backend)
    return event_dict


def configure_logging(force: bool = False) -> bool:
    """
    Configure structlog and stdlib logging once per process.

    Args:
        force: Reconfigure even if already configured (after settings change)

    Returns:
        True if configuration was applied by this call
    """
    global _configured
    if _configured and not force:
        return False

    settings = get_settings()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        add_ledger_context,
    ]

    if settings.environment == "development":
        renderer: Processor = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
        processors = shared_processors + [renderer]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
        force=force,
    )

    # The SQLite driver logs every statement at DEBUG
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)

    _configured = True
    return True


@contextmanager
def transaction_log_context(transaction_id: str, transaction_type: str) -> Iterator[None]:
    """Bind the transaction id and type to every log entry inside the block."""
    with structlog.contextvars.bound_contextvars(
        transaction_id=transaction_id,
        transaction_type=transaction_type,
    ):
        yield


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
