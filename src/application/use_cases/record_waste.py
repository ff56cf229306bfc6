"""Record Waste Use Case."""

from src.application.dto.requests import RecordWasteRequest
from src.application.use_cases.base import TransactionUseCase
from src.core.entities.transaction import TransactionType
from src.core.services import TransactionResult


class RecordWasteUseCase(TransactionUseCase):
    """Write off spoiled, damaged or otherwise lost stock with a reason."""

    transaction_type = TransactionType.WASTE

    async def execute(self, request: RecordWasteRequest) -> TransactionResult:
        return await self._process(
            request,
            source_location_id=request.location_id,
            waste_reason=request.waste_reason,
        )
