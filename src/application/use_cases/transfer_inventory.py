"""Transfer Inventory Use Case."""

from src.application.dto.requests import TransferInventoryRequest
from src.application.use_cases.base import TransactionUseCase
from src.core.entities.transaction import TransactionType
from src.core.services import TransactionResult


class TransferInventoryUseCase(TransactionUseCase):
    """Move stock, and the lots holding it, between two locations."""

    transaction_type = TransactionType.TRANSFER

    async def execute(self, request: TransferInventoryRequest) -> TransactionResult:
        return await self._process(
            request,
            source_location_id=request.source_location_id,
            destination_location_id=request.destination_location_id,
        )
