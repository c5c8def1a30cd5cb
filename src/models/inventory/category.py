"""Item category model."""

from datetime import datetime

from pydantic import BaseModel, Field


class InventoryCategory(BaseModel):
    """User-defined item category scoped to a property."""

    id: str = Field(...)
    name: str = Field(...)
    property_id: str = Field(...)
    created_at: datetime | None = Field(default=None)
