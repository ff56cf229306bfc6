"""
Core business logic services.

Layer-pure services that depend only on:
- src/core/entities/*
- src/core/interfaces/*
- src/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from src.core.services.availability import AvailabilityCheck, AvailabilityService
from src.core.services.batch_allocator import (
    Allocation,
    AllocationPlan,
    BatchAllocator,
    ExpirationClassification,
)
from src.core.services.costing_engine import ConsumptionCost, CostingEngine, LotCost
from src.core.services.count_sheets import CountSheetService, VarianceApproval
from src.core.services.event_publisher import EventPublisher
from src.core.services.expiration_monitor import ExpirationMonitor
from src.core.services.item_registry import ItemRegistry
from src.core.services.locks import KeyedLocks
from src.core.services.planning_engine import (
    OptimizationReport,
    PlanningEngine,
    ReorderSuggestion,
)
from src.core.services.reconciliation import Discrepancy, ReconciliationService
from src.core.services.reservation_service import ReservationOutcome, ReservationService
from src.core.services.stock_ledger import (
    AdjustmentResult,
    LedgerHandle,
    LedgerStatus,
    ReleaseResult,
    ReserveResult,
    StockLedger,
)
from src.core.services.transaction_processor import (
    AdjustmentVariance,
    CommittedLine,
    TransactionProcessor,
    TransactionResult,
    UnavailableLine,
)

__all__ = [
    # Stock ledger
    "StockLedger",
    "LedgerHandle",
    "LedgerStatus",
    "ReserveResult",
    "ReleaseResult",
    "AdjustmentResult",
    "KeyedLocks",
    # Lots and costing
    "BatchAllocator",
    "Allocation",
    "AllocationPlan",
    "ExpirationClassification",
    "CostingEngine",
    "ConsumptionCost",
    "LotCost",
    # Transactions
    "TransactionProcessor",
    "TransactionResult",
    "CommittedLine",
    "UnavailableLine",
    "AdjustmentVariance",
    # Planning
    "PlanningEngine",
    "ReorderSuggestion",
    "OptimizationReport",
    # Supporting services
    "ItemRegistry",
    "ReservationService",
    "ReservationOutcome",
    "AvailabilityService",
    "AvailabilityCheck",
    "ExpirationMonitor",
    "ReconciliationService",
    "Discrepancy",
    "CountSheetService",
    "VarianceApproval",
    "EventPublisher",
]
