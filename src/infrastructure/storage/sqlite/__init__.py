"""SQLite storage implementations."""

from src.config import get_logger
from src.infrastructure.storage.sqlite.connection import ConnectionPool, close_pool, get_pool
from src.infrastructure.storage.sqlite.journal_store import SQLiteTransactionJournal
from src.infrastructure.storage.sqlite.migrations.migrator import (
    get_migration_status,
    initialize_database,
    verify_schema_integrity,
)

logger = get_logger(__name__)

# Singleton instance
_journal: SQLiteTransactionJournal | None = None


async def get_journal_store() -> SQLiteTransactionJournal:
    """Get the singleton journal, migrating the configured database first."""
    global _journal
    if _journal is None:
        results = await initialize_database()
        logger.info("journal_database_ready", migrations_applied=len(results))
        _journal = SQLiteTransactionJournal(await get_pool())
    return _journal


async def close_journal_store() -> None:
    global _journal
    _journal = None
    await close_pool()


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    # Migrations
    "initialize_database",
    "get_migration_status",
    "verify_schema_integrity",
    # Journal
    "SQLiteTransactionJournal",
    "get_journal_store",
    "close_journal_store",
]
