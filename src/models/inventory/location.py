"""Location record model."""

from datetime import datetime

from pydantic import BaseModel, Field


class InventoryLocation(BaseModel):
    """A node in the property's storage hierarchy (building, room, shelf...)."""

    id: str = Field(..., description="Opaque unique identifier")
    name: str = Field(..., description="Display label (not required to be unique)")
    parent_id: str | None = Field(
        default=None, description="Parent location ID, or None for a root"
    )
    sort_order: int | None = Field(
        default=None, description="Sibling display order (ascending)"
    )
    property_id: str | None = Field(default=None, description="Owning property")
    type: str | None = Field(default=None, description="Free-form kind, e.g. room")
    created_at: datetime | None = Field(default=None)
