"""Adjust Inventory Use Case: set counted quantities and report variances."""

from src.application.dto.requests import AdjustInventoryRequest
from src.application.use_cases.base import TransactionUseCase
from src.core.entities.transaction import TransactionType
from src.core.services import TransactionResult


class AdjustInventoryUseCase(TransactionUseCase):
    transaction_type = TransactionType.ADJUSTMENT

    async def execute(self, request: AdjustInventoryRequest) -> TransactionResult:
        return await self._process(request, source_location_id=request.location_id)
