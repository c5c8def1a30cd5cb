"""Property model."""

from datetime import datetime

from pydantic import BaseModel, Field


class InventoryProperty(BaseModel):
    """A tracked property (house, office...) owning locations and items."""

    id: str = Field(...)
    name: str = Field(...)
    address: str | None = Field(default=None)
    user_id: str | None = Field(default=None, description="Owning account")
    created_at: datetime | None = Field(default=None)
