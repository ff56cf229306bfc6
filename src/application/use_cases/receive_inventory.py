"""Receive Inventory Use Case: IN movements, new lots and cost updates."""

from src.application.dto.requests import ReceiveInventoryRequest
from src.application.use_cases.base import TransactionUseCase
from src.core.entities.transaction import TransactionType
from src.core.services import TransactionResult


class ReceiveInventoryUseCase(TransactionUseCase):
    """
    Receive delivered stock at a location.

    Items that track expiration get one new lot per line; the others fold
    the receipt into their weighted average cost.
    """

    transaction_type = TransactionType.RECEIVE

    async def execute(self, request: ReceiveInventoryRequest) -> TransactionResult:
        return await self._process(
            request,
            destination_location_id=request.destination_location_id,
        )
