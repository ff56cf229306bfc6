"""In-memory count sheet store."""

from src.core.entities.count_sheet import CountSheet
from src.core.interfaces.count_sheet_store import ICountSheetStore


class MemoryCountSheetStore(ICountSheetStore):
    """Sheets keyed by id; listed newest count first."""

    def __init__(self):
        self._sheets: dict[str, CountSheet] = {}

    async def get(self, sheet_id: str) -> CountSheet | None:
        sheet = self._sheets.get(sheet_id)
        return sheet.model_copy(deep=True) if sheet else None

    async def save(self, sheet: CountSheet) -> CountSheet:
        self._sheets[sheet.id] = sheet.model_copy(deep=True)
        return sheet

    async def list_sheets(self, location_id: str | None = None) -> list[CountSheet]:
        sheets = [
            s.model_copy(deep=True)
            for s in self._sheets.values()
            if location_id is None or s.location_id == location_id
        ]
        return sorted(sheets, key=lambda s: s.count_date, reverse=True)
