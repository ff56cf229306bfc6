"""
Planning engine.

Read-only analysis over the ledger and the journal: reorder suggestions,
turnover, reorder points and an optimization report.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal

from src.config import PlanningSettings, get_logger, get_settings
from src.core.entities.common import extend, utc_now
from src.core.entities.inventory import InventoryItem, MovementType
from src.core.entities.transaction import TransactionType
from src.core.entities.vendor import Vendor
from src.core.interfaces.catalog import IItemCatalog, IVendorCatalog
from src.core.interfaces.clock import IClock
from src.core.interfaces.inventory_store import IStockLevelStore
from src.core.interfaces.journal import ITransactionJournal

logger = get_logger(__name__)

UNASSIGNED_VENDOR = "unassigned"


@dataclass
class ReorderSuggestion:
    """How much of an item to order for a location, and from whom."""

    item_id: str
    item_name: str
    sku: str
    location_id: str
    available_quantity: float
    reorder_threshold: float
    suggested_quantity: float
    unit_of_measure: str
    estimated_cost: Decimal
    vendor_id: str | None = None
    vendor_name: str | None = None


@dataclass
class OptimizationReport:
    """Reorder needs, turnover and problem items for a location."""

    reorder_suggestions: list[ReorderSuggestion] = field(default_factory=list)
    turnover: dict[str, float] = field(default_factory=dict)
    slow_movers: list[str] = field(default_factory=list)
    overstocked: list[str] = field(default_factory=list)


class PlanningEngine:
    """Reorder and turnover planning."""

    def __init__(
        self,
        items: IItemCatalog,
        levels: IStockLevelStore,
        journal: ITransactionJournal,
        vendors: IVendorCatalog | None = None,
        settings: PlanningSettings | None = None,
        clock: IClock | None = None,
    ):
        self._items = items
        self._levels = levels
        self._journal = journal
        self._vendors = vendors
        self._settings = settings or get_settings().planning
        self._now: Callable[[], datetime] = clock.now if clock else utc_now

    async def _consumed(
        self,
        item_id: str,
        location_id: str | None,
        start: datetime,
        end: datetime,
    ) -> float:
        movements = await self._journal.list_movements(
            item_id=item_id,
            location_id=location_id,
            movement_type=MovementType.OUT,
            start=start,
            end=end,
        )
        return sum(
            m.quantity for m in movements if m.transaction_type == TransactionType.CONSUME.value
        )

    async def average_daily_usage(self, item_id: str, location_id: str | None = None) -> float:
        """Consumed quantity over the usage window divided by its length in days."""
        days = self._settings.usage_window_days
        end = self._now()
        consumed = await self._consumed(item_id, location_id, end - timedelta(days=days), end)
        return consumed / days

    def _order_quantity(
        self, item: InventoryItem, available: float, daily_usage: float
    ) -> float:
        up_to_max = item.max_stock_level - available
        coverage_days = max(item.lead_time_days, self._settings.min_coverage_days)
        usage_based = daily_usage * coverage_days - available
        # Always enough to get back above the threshold
        minimum = item.reorder_threshold - available + 1
        return max(up_to_max, usage_based, minimum)

    async def _vendor_for(self, item: InventoryItem) -> Vendor | None:
        if self._vendors is None:
            return None
        if item.default_vendor_id:
            vendor = await self._vendors.get_vendor(item.default_vendor_id)
            if vendor is not None:
                return vendor
        return await self._vendors.get_preferred_vendor(item.id)

    async def _estimate(
        self, item: InventoryItem, quantity: float, vendor: Vendor | None
    ) -> Decimal:
        if vendor is not None and self._vendors is not None:
            unit_cost = await self._vendors.unit_cost(vendor.id, item.id)
            if unit_cost is not None:
                return extend(unit_cost, quantity)
        return extend(item.last_cost, quantity)

    async def generate_reorder_suggestions(
        self,
        location_id: str,
        categories: list[str] | None = None,
    ) -> list[ReorderSuggestion]:
        """Suggest orders for active items at or below their reorder threshold."""
        suggestions: list[ReorderSuggestion] = []
        for level in await self._levels.list_levels(location_id=location_id):
            item = await self._items.get_item(level.item_id)
            if item is None or not item.is_active:
                continue
            if categories and item.category not in categories:
                continue

            available = level.available_quantity
            if available > item.reorder_threshold:
                continue

            usage = await self.average_daily_usage(item.id, location_id)
            quantity = self._order_quantity(item, available, usage)
            if quantity <= 0:
                continue

            vendor = await self._vendor_for(item)
            suggestions.append(
                ReorderSuggestion(
                    item_id=item.id,
                    item_name=item.name,
                    sku=item.sku,
                    location_id=location_id,
                    available_quantity=available,
                    reorder_threshold=item.reorder_threshold,
                    suggested_quantity=quantity,
                    unit_of_measure=item.unit_of_measure,
                    estimated_cost=await self._estimate(item, quantity, vendor),
                    vendor_id=vendor.id if vendor else None,
                    vendor_name=vendor.name if vendor else None,
                )
            )

        logger.info(
            "reorder_suggestions_generated",
            location_id=location_id,
            count=len(suggestions),
        )
        return suggestions

    @staticmethod
    def group_by_vendor(
        suggestions: list[ReorderSuggestion],
    ) -> dict[str, list[ReorderSuggestion]]:
        grouped: dict[str, list[ReorderSuggestion]] = {}
        for suggestion in suggestions:
            grouped.setdefault(suggestion.vendor_id or UNASSIGNED_VENDOR, []).append(suggestion)
        return grouped

    async def _items_for(self, item_ids: list[str] | None) -> list[InventoryItem]:
        if not item_ids:
            return await self._items.list_items(active_only=True)
        items = []
        for item_id in item_ids:
            item = await self._items.get_item(item_id)
            if item is not None:
                items.append(item)
        return items

    async def _quantity_on_hand(self, item_id: str, location_id: str | None) -> float:
        levels = await self._levels.list_levels(item_id=item_id, location_id=location_id)
        return sum(level.current_quantity for level in levels)

    async def average_inventory(
        self,
        item_id: str,
        location_id: str | None,
        start: datetime,
        end: datetime,
    ) -> float:
        """Mean of the on-hand quantity at ``start`` and at ``end``, rebuilt from the journal."""
        current = await self._quantity_on_hand(item_id, location_id)
        movements = await self._journal.list_movements(
            item_id=item_id, location_id=location_id, start=start
        )
        after_end = sum(m.signed_quantity for m in movements if m.movement_date > end)
        in_window = sum(
            m.signed_quantity for m in movements if start < m.movement_date <= end
        )
        closing = max(0.0, current - after_end)
        opening = max(0.0, closing - in_window)
        return (opening + closing) / 2

    async def calculate_turnover(
        self,
        item_ids: list[str] | None = None,
        location_id: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> dict[str, float]:
        """Consumption in the window over average inventory; zero when nothing was held."""
        end = end or self._now()
        start = start or end - timedelta(days=self._settings.turnover_window_days)

        turnover: dict[str, float] = {}
        for item in await self._items_for(item_ids):
            consumed = await self._consumed(item.id, location_id, start, end)
            average = await self.average_inventory(item.id, location_id, start, end)
            turnover[item.id] = consumed / average if average > 0 else 0.0
        return turnover

    async def calculate_reorder_points(
        self,
        item_ids: list[str] | None = None,
        location_id: str | None = None,
    ) -> dict[str, float]:
        """Lead-time demand plus safety stock."""
        points: dict[str, float] = {}
        for item in await self._items_for(item_ids):
            usage = await self.average_daily_usage(item.id, location_id)
            lead_time = item.lead_time_days or self._settings.default_lead_time_days
            demand = usage * lead_time
            points[item.id] = demand + self._settings.safety_stock_factor * demand
        return points

    async def optimization_report(
        self,
        location_id: str,
        categories: list[str] | None = None,
    ) -> OptimizationReport:
        report = OptimizationReport(
            reorder_suggestions=await self.generate_reorder_suggestions(location_id, categories),
        )
        items = await self._items.list_items(categories=categories, active_only=True)
        if items:
            report.turnover = await self.calculate_turnover(
                item_ids=[item.id for item in items],
                location_id=location_id,
            )
        report.slow_movers = [
            item_id
            for item_id, rate in report.turnover.items()
            if rate < self._settings.slow_mover_turnover
        ]
        for item in items:
            on_hand = await self._quantity_on_hand(item.id, location_id)
            if item.max_stock_level and on_hand > item.max_stock_level:
                report.overstocked.append(item.id)
        return report

