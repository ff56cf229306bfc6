"""Check Expiring Batches Use Case."""

from dataclasses import dataclass
from datetime import datetime

from src.application.dto.requests import ExpiringBatchesRequest
from src.application.dto.responses import BatchResponse, ExpiringBatchesResponse
from src.application.use_cases.base import LedgerUseCase
from src.core.entities.batch import Batch
from src.core.services import ExpirationClassification


@dataclass
class ExpiringBatchesResult:
    checked_at: datetime
    window_days: int
    classification: ExpirationClassification


class CheckExpiringBatchesUseCase(LedgerUseCase):
    """Scan lots for expired and soon-to-expire stock, raising events for both."""

    async def execute(self, request: ExpiringBatchesRequest) -> ExpiringBatchesResult:
        services = await self._get_services()
        window = (
            services.allocator.expiring_soon_days
            if request.window_days is None
            else request.window_days
        )
        classification = await services.expiration.scan(
            location_id=request.location_id, window_days=window
        )
        return ExpiringBatchesResult(
            checked_at=services.clock.now(),
            window_days=window,
            classification=classification,
        )

    def to_response(self, result: ExpiringBatchesResult) -> ExpiringBatchesResponse:
        def to_batch(batch: Batch) -> BatchResponse:
            return BatchResponse(
                id=batch.id,
                item_id=batch.item_id,
                location_id=batch.location_id,
                batch_number=batch.batch_number,
                remaining_quantity=batch.remaining_quantity,
                unit_cost=batch.unit_cost,
                expiration_date=batch.expiration_date,
                days_until_expiration=batch.days_until_expiration(result.checked_at),
            )

        return ExpiringBatchesResponse(
            checked_at=result.checked_at,
            window_days=result.window_days,
            expired=[to_batch(b) for b in result.classification.expired],
            expiring_soon=[to_batch(b) for b in result.classification.expiring_soon],
            active_count=len(result.classification.active),
        )
