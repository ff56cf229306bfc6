"""Inventory Valuation Use Case."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from src.application.dto.requests import InventoryValuationRequest
from src.application.dto.responses import InventoryValuationResponse
from src.application.use_cases.base import LedgerUseCase
from src.config import get_logger
from src.core.entities.common import ZERO

logger = get_logger(__name__)


@dataclass
class InventoryValuationResult:
    location_id: str | None
    as_of: datetime | None
    by_category: dict[str, Decimal] = field(default_factory=dict)
    total: Decimal = ZERO


class InventoryValuationUseCase(LedgerUseCase):
    """Value stock now or as it stood at a past moment."""

    async def execute(self, request: InventoryValuationRequest) -> InventoryValuationResult:
        services = await self._get_services()
        report = await services.costing.valuation_report(
            location_id=request.location_id,
            categories=request.categories,
            as_of=request.as_of,
        )
        total = report.pop("total", ZERO)
        logger.info(
            "inventory_valuation_complete",
            location_id=request.location_id,
            as_of=request.as_of.isoformat() if request.as_of else None,
            total=str(total),
        )
        return InventoryValuationResult(
            location_id=request.location_id,
            as_of=request.as_of,
            by_category=report,
            total=total,
        )

    def to_response(self, result: InventoryValuationResult) -> InventoryValuationResponse:
        return InventoryValuationResponse(
            location_id=result.location_id,
            as_of=result.as_of,
            by_category=result.by_category,
            total=result.total,
        )
