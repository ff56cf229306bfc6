"""Shared plumbing for ledger use cases."""

from typing import Any

from src.application.dto.requests import TransactionRequest
from src.application.dto.responses import (
    AllocationResponse,
    CommittedLineResponse,
    MovementResponse,
    TransactionResponse,
    UnavailableLineResponse,
    VarianceResponse,
)
from src.application.services import LedgerServices, get_ledger_services
from src.config import get_logger
from src.core.entities.transaction import InventoryTransaction, TransactionType
from src.core.services import TransactionResult

logger = get_logger(__name__)


class LedgerUseCase:
    """Holds the wired services, resolving the process-wide ones on first use."""

    def __init__(self, services: LedgerServices | None = None):
        self._services = services

    async def _get_services(self) -> LedgerServices:
        if self._services is None:
            self._services = await get_ledger_services()
        return self._services


class TransactionUseCase(LedgerUseCase):
    """Builds an InventoryTransaction from a request and runs it through the processor."""

    transaction_type: TransactionType

    async def _process(self, request: TransactionRequest, **fields: Any) -> TransactionResult:
        services = await self._get_services()
        transaction = InventoryTransaction.create(
            self.transaction_type,
            [line.to_item() for line in request.lines],
            reference_number=request.reference_number,
            reference_type=request.reference_type,
            user_id=request.user_id,
            notes=request.notes,
            transaction_date=request.transaction_date or services.clock.now(),
            **fields,
        )
        logger.info(
            "transaction_request_started",
            transaction_type=self.transaction_type.value,
            transaction_id=transaction.id,
            lines=len(transaction.items),
        )
        result = await services.processor.process(transaction)
        logger.info(
            "transaction_request_complete",
            transaction_type=self.transaction_type.value,
            transaction_id=transaction.id,
            committed=len(result.committed_lines),
            unavailable=len(result.unavailable_lines),
            total_cost=str(result.total_cost),
        )
        return result

    def to_response(self, result: TransactionResult) -> TransactionResponse:
        """Convert result to response DTO."""
        txn = result.transaction
        return TransactionResponse(
            transaction_id=txn.id,
            transaction_type=TransactionType.parse(txn.transaction_type).value,
            transaction_date=txn.transaction_date,
            success=result.success,
            committed_lines=[
                CommittedLineResponse(
                    line_index=line.line_index,
                    item_id=line.item_id,
                    location_id=line.location_id,
                    quantity=line.quantity,
                    cost=line.cost,
                    allocations=[
                        AllocationResponse(
                            batch_id=a.batch_id,
                            batch_number=a.batch_number,
                            quantity=a.quantity,
                            unit_cost=a.unit_cost,
                        )
                        for a in line.allocations
                    ],
                    unallocated_quantity=line.unallocated_quantity,
                    batch_id=line.batch_id,
                    destination_location_id=line.destination_location_id,
                )
                for line in result.committed_lines
            ],
            unavailable_lines=[
                UnavailableLineResponse(
                    line_index=line.line_index,
                    item_id=line.item_id,
                    location_id=line.location_id,
                    requested_quantity=line.requested_quantity,
                    available_quantity=line.available_quantity,
                )
                for line in result.unavailable_lines
            ],
            variances=[
                VarianceResponse(
                    item_id=v.item_id,
                    location_id=v.location_id,
                    previous_quantity=v.previous_quantity,
                    new_quantity=v.new_quantity,
                    variance=v.variance,
                    value=v.value,
                )
                for v in result.variances
            ],
            movements=[
                MovementResponse(
                    id=m.id,
                    movement_type=m.movement_type.value,
                    item_id=m.item_id,
                    location_id=m.location_id,
                    batch_id=m.batch_id,
                    quantity=m.quantity,
                    unit_cost=m.unit_cost,
                    movement_date=m.movement_date,
                )
                for m in result.movements
            ],
            created_batch_ids=[b.id for b in result.created_batches],
            total_cost=result.total_cost,
        )
