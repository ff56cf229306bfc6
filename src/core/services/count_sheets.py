"""
Physical count sheets.

A sheet snapshots the system quantities at a location, takes the counted
quantities and, once variances are approved, turns them into an Adjustment
transaction run through the transaction processor.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from src.config import CountSettings, get_logger, get_settings
from src.core.entities.common import utc_now
from src.core.entities.count_sheet import (
    CountSheet,
    CountSheetLine,
    CountSheetStatus,
    VarianceReasonCode,
)
from src.core.entities.events import EventKind, LedgerEvent
from src.core.entities.transaction import InventoryTransaction, TransactionItem, TransactionType
from src.core.exceptions import CountSheetNotFoundError, CountSheetStateError, ValidationError
from src.core.interfaces.catalog import IItemCatalog
from src.core.interfaces.clock import IClock
from src.core.interfaces.count_sheet_store import ICountSheetStore
from src.core.services.event_publisher import EventPublisher
from src.core.services.stock_ledger import StockLedger
from src.core.services.transaction_processor import TransactionProcessor, TransactionResult

logger = get_logger(__name__)


@dataclass
class VarianceApproval:
    item_id: str
    approve: bool = True
    reason_code: VarianceReasonCode | None = None


@dataclass
class CountResult:
    sheet: CountSheet
    variances: list[CountSheetLine] = field(default_factory=list)
    large_variances: list[CountSheetLine] = field(default_factory=list)


@dataclass
class ApprovalResult:
    sheet: CountSheet
    transaction: TransactionResult | None = None


class CountSheetService:
    """Generates, records and approves physical counts."""

    def __init__(
        self,
        items: IItemCatalog,
        ledger: StockLedger,
        processor: TransactionProcessor,
        store: ICountSheetStore,
        publisher: EventPublisher | None = None,
        settings: CountSettings | None = None,
        clock: IClock | None = None,
    ):
        self._items = items
        self._ledger = ledger
        self._processor = processor
        self._store = store
        self._publisher = publisher or EventPublisher()
        self._settings = settings or get_settings().count
        self._now: Callable[[], datetime] = clock.now if clock else utc_now

    async def get(self, sheet_id: str) -> CountSheet:
        sheet = await self._store.get(sheet_id)
        if sheet is None:
            raise CountSheetNotFoundError(sheet_id)
        return sheet

    async def generate(
        self,
        location_id: str,
        categories: list[str] | None = None,
        notes: str | None = None,
    ) -> CountSheet:
        """Snapshot system quantities of active items held at the location."""
        sheet = CountSheet(
            location_id=location_id,
            categories=categories or [],
            count_date=self._now(),
            notes=notes,
        )
        for level in await self._ledger.list_levels(location_id=location_id):
            item = await self._items.get_item(level.item_id)
            if item is None or not item.is_active:
                continue
            if categories and item.category not in categories:
                continue
            sheet.lines[item.id] = CountSheetLine(
                item_id=item.id,
                system_quantity=level.current_quantity,
                unit_cost=item.average_cost,
            )

        sheet = await self._store.save(sheet)
        logger.info(
            "count_sheet_generated",
            sheet_id=sheet.id,
            location_id=location_id,
            items=len(sheet.lines),
        )
        return sheet

    async def record_counts(
        self,
        sheet_id: str,
        counts: dict[str, float],
        counted_by: str | None = None,
    ) -> CountResult:
        """Store counted quantities and compute variances against the snapshot."""
        sheet = await self.get(sheet_id)
        for item_id, counted in counts.items():
            if item_id not in sheet.lines:
                raise ValidationError("counts", f"Item {item_id} is not on count sheet", item_id)
            if counted < 0:
                raise ValidationError("counts", "Counted quantity must not be negative", counted)
        sheet.complete(counted_by=counted_by, at=self._now())
        for item_id, counted in counts.items():
            sheet.lines[item_id].counted_quantity = counted
        sheet = await self._store.save(sheet)

        result = CountResult(sheet=sheet, variances=sheet.variance_lines)
        threshold = self._settings.large_variance_pct
        for line in result.variances:
            if abs(line.variance_percentage or 0.0) > threshold:
                result.large_variances.append(line)

        await self._publisher.publish_all(
            LedgerEvent.create(
                EventKind.LARGE_VARIANCE_DETECTED,
                occurred_at=self._now(),
                count_sheet_id=sheet.id,
                item_id=line.item_id,
                location_id=sheet.location_id,
                variance=line.variance,
                variance_percentage=line.variance_percentage,
            )
            for line in result.large_variances
        )
        logger.info(
            "count_recorded",
            sheet_id=sheet.id,
            variances=len(result.variances),
            large_variances=len(result.large_variances),
        )
        return result

    async def approve_variances(
        self,
        sheet_id: str,
        approvals: list[VarianceApproval],
        approved_by: str | None = None,
    ) -> ApprovalResult:
        """Approve variances and post the approved ones as one Adjustment."""
        sheet = await self.get(sheet_id)
        if sheet.status != CountSheetStatus.COMPLETED:
            raise CountSheetStateError(sheet.id, sheet.status.value, "approve")

        adjustment_lines = []
        for approval in approvals:
            line = sheet.lines.get(approval.item_id)
            if line is None:
                raise ValidationError(
                    "approvals", f"Item {approval.item_id} is not on count sheet", approval.item_id
                )
            if not approval.approve or not line.has_variance:
                continue
            line.variance_approved = True
            line.reason_code = approval.reason_code
            adjustment_lines.append(
                TransactionItem(
                    item_id=line.item_id,
                    quantity=line.counted_quantity,
                    location_id=sheet.location_id,
                )
            )

        result = ApprovalResult(sheet=sheet)
        if adjustment_lines:
            transaction = InventoryTransaction.create(
                TransactionType.ADJUSTMENT,
                adjustment_lines,
                source_location_id=sheet.location_id,
                reference_number=sheet.id,
                reference_type="count_sheet",
                user_id=approved_by,
                notes=f"Count sheet {sheet.id} variance approval",
                transaction_date=self._now(),
            )
            result.transaction = await self._processor.process(transaction)

        sheet.approve(
            approved_by=approved_by,
            transaction_id=result.transaction.transaction.id if result.transaction else None,
            at=self._now(),
        )
        result.sheet = await self._store.save(sheet)
        logger.info(
            "count_variances_approved",
            sheet_id=sheet.id,
            adjusted=len(adjustment_lines),
        )
        return result
