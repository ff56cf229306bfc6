"""Shared value helpers for money, identifiers and timestamps."""

from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from uuid import uuid4

Money = Decimal

ZERO = Decimal("0")

# Stored unit costs keep four decimal places
COST_QUANTUM = Decimal("0.0001")
MONEY_QUANTUM = Decimal("0.01")


def new_id() -> str:
    """Generate a new entity identifier."""
    return str(uuid4())


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def to_money(value: Decimal | float | int | str) -> Decimal:
    """Convert a number to Decimal without binary float artifacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def extend(unit_cost: Decimal, quantity: float) -> Decimal:
    """Monetary value of ``quantity`` units at ``unit_cost``."""
    return unit_cost * to_money(quantity)


def quantize_cost(value: Decimal) -> Decimal:
    return value.quantize(COST_QUANTUM, rounding=ROUND_HALF_UP)


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
