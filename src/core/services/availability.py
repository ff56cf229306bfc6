"""Availability queries over the stock ledger."""

from dataclasses import dataclass, field

from src.core.entities.inventory import InventoryItem, StockLevel
from src.core.exceptions import ItemNotFoundError, StockLevelNotFoundError
from src.core.interfaces.catalog import IItemCatalog
from src.core.services.stock_ledger import StockLedger


@dataclass
class LineAvailability:
    item_id: str
    location_id: str
    requested_quantity: float
    available_quantity: float

    @property
    def is_available(self) -> bool:
        return self.available_quantity >= self.requested_quantity


@dataclass
class AvailabilityCheck:
    lines: list[LineAvailability] = field(default_factory=list)

    @property
    def all_available(self) -> bool:
        return all(line.is_available for line in self.lines)

    @property
    def unavailable(self) -> list[LineAvailability]:
        return [line for line in self.lines if not line.is_available]


@dataclass
class LowStockEntry:
    item: InventoryItem
    level: StockLevel

    @property
    def shortfall(self) -> float:
        return self.item.reorder_threshold - self.level.available_quantity


class AvailabilityService:
    """Answers "how much can be promised" without changing anything."""

    def __init__(self, ledger: StockLedger, items: IItemCatalog):
        self._ledger = ledger
        self._items = items

    async def get_stock_level(self, item_id: str, location_id: str) -> StockLevel:
        """Recorded level for the key; a key never stocked is a missing reference."""
        level = await self._ledger.find_level(item_id, location_id)
        if level is None:
            raise StockLevelNotFoundError(item_id, location_id)
        return level

    async def is_available(self, item_id: str, location_id: str, quantity: float) -> bool:
        level = await self._ledger.get_level(item_id, location_id)
        return level.is_available(quantity)

    async def check_availability(
        self, requests: list[tuple[str, str, float]]
    ) -> AvailabilityCheck:
        """Check (item_id, location_id, quantity) requests one by one."""
        check = AvailabilityCheck()
        for item_id, location_id, quantity in requests:
            available = await self._ledger.get_available(item_id, location_id)
            check.lines.append(LineAvailability(item_id, location_id, quantity, available))
        return check

    async def are_all_available(self, requests: list[tuple[str, str, float]]) -> bool:
        check = await self.check_availability(requests)
        return check.all_available

    async def available_quantities(
        self, item_ids: list[str], location_id: str
    ) -> dict[str, float]:
        return {
            item_id: await self._ledger.get_available(item_id, location_id)
            for item_id in item_ids
        }

    async def find_alternative_locations(
        self,
        item_id: str,
        quantity: float,
        exclude_location_id: str | None = None,
    ) -> list[StockLevel]:
        """Other locations able to cover ``quantity``, most available first."""
        levels = [
            level
            for level in await self._ledger.list_levels(item_id=item_id)
            if level.location_id != exclude_location_id and level.is_available(quantity)
        ]
        return sorted(levels, key=lambda level: level.available_quantity, reverse=True)

    async def find_alternative_items(
        self, item_id: str, location_id: str, quantity: float
    ) -> list[InventoryItem]:
        """Registered substitutes that can cover ``quantity`` at the location."""
        item = await self._items.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)

        alternatives = []
        for alternative_id in item.alternative_item_ids:
            alternative = await self._items.get_item(alternative_id)
            if alternative is None or not alternative.is_active:
                continue
            if await self.is_available(alternative_id, location_id, quantity):
                alternatives.append(alternative)
        return alternatives

    async def low_stock(self, location_id: str | None = None) -> list[LowStockEntry]:
        """Active items whose available quantity is below their reorder threshold."""
        entries = []
        for level in await self._ledger.list_levels(location_id=location_id):
            item = await self._items.get_item(level.item_id)
            if item is None or not item.is_active:
                continue
            if level.available_quantity < item.reorder_threshold:
                entries.append(LowStockEntry(item, level))
        return entries
