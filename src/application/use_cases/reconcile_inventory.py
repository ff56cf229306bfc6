"""Reconcile Inventory Use Case."""

from dataclasses import dataclass, field

from src.application.dto.requests import ReconcileInventoryRequest
from src.application.dto.responses import DiscrepancyResponse, ReconciliationResponse
from src.application.use_cases.base import LedgerUseCase
from src.core.services import Discrepancy


@dataclass
class ReconciliationResult:
    location_id: str | None
    discrepancies: list[Discrepancy] = field(default_factory=list)

    @property
    def consistent(self) -> bool:
        return not self.discrepancies


class ReconcileInventoryUseCase(LedgerUseCase):
    """Compare ledger quantities with lot totals; reports drift, never fixes it."""

    async def execute(self, request: ReconcileInventoryRequest) -> ReconciliationResult:
        services = await self._get_services()
        discrepancies = await services.reconciliation.check(location_id=request.location_id)
        return ReconciliationResult(location_id=request.location_id, discrepancies=discrepancies)

    def to_response(self, result: ReconciliationResult) -> ReconciliationResponse:
        return ReconciliationResponse(
            location_id=result.location_id,
            consistent=result.consistent,
            discrepancies=[
                DiscrepancyResponse(
                    item_id=d.item_id,
                    location_id=d.location_id,
                    ledger_quantity=d.ledger_quantity,
                    batch_quantity=d.batch_quantity,
                    difference=d.difference,
                )
                for d in result.discrepancies
            ],
        )
