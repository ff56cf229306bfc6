"""
SQLite implementation of the transaction journal.

Money is stored as TEXT so Decimal values round-trip exactly; timestamps
are stored as fixed-width UTC ISO strings so they compare as text.
"""

from datetime import UTC, datetime
from decimal import Decimal

import aiosqlite

from src.config import get_logger
from src.core.entities.common import ensure_utc
from src.core.entities.inventory import MovementType, StockMovement
from src.core.entities.transaction import (
    InventoryTransaction,
    TransactionItem,
    TransactionType,
    WasteReason,
)
from src.core.exceptions import DatabaseError
from src.core.interfaces.journal import ITransactionJournal
from src.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool

logger = get_logger(__name__)

_TS_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"


def _ts(value: datetime | None) -> str | None:
    if value is None:
        return None
    return ensure_utc(value).astimezone(UTC).strftime(_TS_FORMAT)


def _dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _money(value: str | None) -> Decimal | None:
    return Decimal(value) if value is not None else None


class SQLiteTransactionJournal(ITransactionJournal):
    """Journal backed by the ``transactions``/``transaction_lines``/``stock_movements`` tables."""

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    async def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = await get_pool()
        return self._pool

    async def record(
        self,
        transaction: InventoryTransaction,
        movements: list[StockMovement],
    ) -> None:
        pool = await self._get_pool()
        try:
            async with pool.transaction() as conn:
                await self._insert(conn, transaction, movements)
        except aiosqlite.Error as e:
            logger.error("journal_record_failed", transaction_id=transaction.id, error=str(e))
            raise DatabaseError("record_transaction", str(e)) from e

        logger.info(
            "transaction_journaled",
            transaction_id=transaction.id,
            transaction_type=TransactionType.parse(transaction.transaction_type).value,
            movements=len(movements),
        )

    @staticmethod
    async def _insert(
        conn: aiosqlite.Connection,
        transaction: InventoryTransaction,
        movements: list[StockMovement],
    ) -> None:
        await conn.execute(
            """
            INSERT INTO transactions (
                id, transaction_type, transaction_date, source_location_id,
                destination_location_id, reference_number, reference_type,
                waste_reason, user_id, notes
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                transaction.id,
                TransactionType.parse(transaction.transaction_type).value,
                _ts(transaction.transaction_date),
                transaction.source_location_id,
                transaction.destination_location_id,
                transaction.reference_number,
                transaction.reference_type,
                transaction.waste_reason.value if transaction.waste_reason else None,
                transaction.user_id,
                transaction.notes,
            ),
        )
        await conn.executemany(
            """
            INSERT INTO transaction_lines (
                transaction_id, line_index, item_id, quantity, location_id,
                batch_id, unit_cost, batch_number, expiration_date,
                vendor_id, purchase_order_id
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    transaction.id,
                    index,
                    line.item_id,
                    line.quantity,
                    line.location_id,
                    line.batch_id,
                    str(line.unit_cost) if line.unit_cost is not None else None,
                    line.batch_number,
                    _ts(line.expiration_date),
                    line.vendor_id,
                    line.purchase_order_id,
                )
                for index, line in enumerate(transaction.items)
            ],
        )
        await conn.executemany(
            """
            INSERT INTO stock_movements (
                id, transaction_id, transaction_type, movement_type, item_id,
                location_id, batch_id, quantity, unit_cost, reference, movement_date
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    m.id,
                    m.transaction_id,
                    m.transaction_type,
                    m.movement_type.value,
                    m.item_id,
                    m.location_id,
                    m.batch_id,
                    m.quantity,
                    str(m.unit_cost),
                    m.reference,
                    _ts(m.movement_date),
                )
                for m in movements
            ],
        )

    async def get(self, transaction_id: str) -> InventoryTransaction | None:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT * FROM transactions WHERE id = ?",
                (transaction_id,),
            )
            row = await cursor.fetchone()
            if not row:
                return None
            cursor = await conn.execute(
                "SELECT * FROM transaction_lines WHERE transaction_id = ? ORDER BY line_index",
                (transaction_id,),
            )
            lines = await cursor.fetchall()
        return self._row_to_transaction(row, lines)

    async def list_movements(
        self,
        item_id: str | None = None,
        location_id: str | None = None,
        movement_type: MovementType | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[StockMovement]:
        sql = "SELECT * FROM stock_movements WHERE 1=1"
        params: list = []
        if item_id is not None:
            sql += " AND item_id = ?"
            params.append(item_id)
        if location_id is not None:
            sql += " AND location_id = ?"
            params.append(location_id)
        if movement_type is not None:
            sql += " AND movement_type = ?"
            params.append(MovementType(movement_type).value)
        if start is not None:
            sql += " AND movement_date >= ?"
            params.append(_ts(start))
        if end is not None:
            sql += " AND movement_date <= ?"
            params.append(_ts(end))
        sql += " ORDER BY movement_date, rowid"
        return await self._fetch_movements(sql, params)

    async def movements_for_batch_after(
        self, batch_id: str, after: datetime
    ) -> list[StockMovement]:
        return await self._fetch_movements(
            """
            SELECT * FROM stock_movements
            WHERE batch_id = ? AND movement_date > ?
            ORDER BY movement_date, rowid
            """,
            [batch_id, _ts(after)],
        )

    async def latest_receipt(self, item_id: str) -> StockMovement | None:
        movements = await self._fetch_movements(
            """
            SELECT * FROM stock_movements
            WHERE item_id = ? AND movement_type = ? AND transaction_type = ?
            ORDER BY movement_date DESC, rowid DESC
            LIMIT 1
            """,
            [item_id, MovementType.IN.value, TransactionType.RECEIVE.value],
        )
        return movements[0] if movements else None

    async def _fetch_movements(self, sql: str, params: list) -> list[StockMovement]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(sql, params)
            rows = await cursor.fetchall()
        return [self._row_to_movement(row) for row in rows]

    @staticmethod
    def _row_to_movement(row: aiosqlite.Row) -> StockMovement:
        return StockMovement.model_construct(
            id=row["id"],
            transaction_id=row["transaction_id"],
            transaction_type=row["transaction_type"],
            movement_type=MovementType(row["movement_type"]),
            item_id=row["item_id"],
            location_id=row["location_id"],
            batch_id=row["batch_id"],
            quantity=row["quantity"],
            unit_cost=Decimal(row["unit_cost"]),
            reference=row["reference"],
            movement_date=_dt(row["movement_date"]),
        )

    @staticmethod
    def _row_to_transaction(
        row: aiosqlite.Row, lines: list[aiosqlite.Row]
    ) -> InventoryTransaction:
        return InventoryTransaction.rehydrate(
            id=row["id"],
            transaction_type=TransactionType(row["transaction_type"]),
            transaction_date=_dt(row["transaction_date"]),
            source_location_id=row["source_location_id"],
            destination_location_id=row["destination_location_id"],
            reference_number=row["reference_number"],
            reference_type=row["reference_type"],
            waste_reason=WasteReason(row["waste_reason"]) if row["waste_reason"] else None,
            user_id=row["user_id"],
            notes=row["notes"],
            items=tuple(
                TransactionItem.model_construct(
                    item_id=line["item_id"],
                    quantity=line["quantity"],
                    location_id=line["location_id"],
                    batch_id=line["batch_id"],
                    unit_cost=_money(line["unit_cost"]),
                    batch_number=line["batch_number"],
                    expiration_date=_dt(line["expiration_date"]),
                    vendor_id=line["vendor_id"],
                    purchase_order_id=line["purchase_order_id"],
                )
                for line in lines
            ),
        )
