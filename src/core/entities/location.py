"""Storage location entity."""

from enum import Enum

from pydantic import BaseModel, Field

from src.core.entities.common import new_id


class LocationType(str, Enum):
    """Kinds of places stock is kept."""

    KITCHEN = "kitchen"
    WALK_IN_COOLER = "walk_in_cooler"
    FREEZER = "freezer"
    DRY_STORAGE = "dry_storage"
    BAR = "bar"
    WAREHOUSE = "warehouse"
    OTHER = "other"


class Location(BaseModel):
    """A place where stock is held."""

    id: str = Field(default_factory=new_id)
    name: str
    location_type: LocationType = LocationType.OTHER
    is_active: bool = True
