"""Consume Inventory Use Case: OUT movements costed by the item's costing method."""

from src.application.dto.requests import ConsumeInventoryRequest
from src.application.use_cases.base import TransactionUseCase
from src.core.entities.transaction import TransactionType
from src.core.services import TransactionResult


class ConsumeInventoryUseCase(TransactionUseCase):
    """Use stock from a location; lines without enough stock come back unavailable."""

    transaction_type = TransactionType.CONSUME

    async def execute(self, request: ConsumeInventoryRequest) -> TransactionResult:
        return await self._process(request, source_location_id=request.source_location_id)
