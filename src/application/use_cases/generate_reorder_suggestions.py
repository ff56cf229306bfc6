"""Generate Reorder Suggestions Use Case."""

from dataclasses import dataclass, field

from src.application.dto.requests import ReorderSuggestionsRequest
from src.application.dto.responses import (
    ReorderSuggestionResponse,
    ReorderSuggestionsResponse,
)
from src.application.use_cases.base import LedgerUseCase
from src.config import get_logger
from src.core.entities.common import ZERO
from src.core.services import PlanningEngine, ReorderSuggestion

logger = get_logger(__name__)


@dataclass
class ReorderSuggestionsResult:
    location_id: str
    suggestions: list[ReorderSuggestion] = field(default_factory=list)
    by_vendor: dict[str, list[ReorderSuggestion]] = field(default_factory=dict)


class GenerateReorderSuggestionsUseCase(LedgerUseCase):
    """Suggest purchase quantities for a location, grouped by vendor."""

    async def execute(self, request: ReorderSuggestionsRequest) -> ReorderSuggestionsResult:
        services = await self._get_services()
        suggestions = await services.planning.generate_reorder_suggestions(
            request.location_id, categories=request.categories
        )
        return ReorderSuggestionsResult(
            location_id=request.location_id,
            suggestions=suggestions,
            by_vendor=PlanningEngine.group_by_vendor(suggestions),
        )

    def to_response(self, result: ReorderSuggestionsResult) -> ReorderSuggestionsResponse:
        return ReorderSuggestionsResponse(
            location_id=result.location_id,
            suggestions=[
                ReorderSuggestionResponse(
                    item_id=s.item_id,
                    item_name=s.item_name,
                    sku=s.sku,
                    location_id=s.location_id,
                    available_quantity=s.available_quantity,
                    reorder_threshold=s.reorder_threshold,
                    suggested_quantity=s.suggested_quantity,
                    unit_of_measure=s.unit_of_measure,
                    estimated_cost=s.estimated_cost,
                    vendor_id=s.vendor_id,
                    vendor_name=s.vendor_name,
                )
                for s in result.suggestions
            ],
            by_vendor={
                vendor: [s.item_id for s in group] for vendor, group in result.by_vendor.items()
            },
            total_estimated_cost=sum((s.estimated_cost for s in result.suggestions), ZERO),
        )
