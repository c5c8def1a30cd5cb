"""Point-in-time snapshot of a property's inventory data."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from models.inventory import (
    InventoryCategory,
    InventoryItem,
    InventoryLocation,
    InventoryProperty,
)


class InventorySnapshot(BaseModel):
    """Consistent set of records fetched together from the backend.

    The engine treats a snapshot as immutable and recomputes in full whenever
    a new one is loaded.
    """

    property_info: InventoryProperty | None = Field(default=None)
    locations: list[InventoryLocation] = Field(default_factory=list)
    items: list[InventoryItem] = Field(default_factory=list)
    categories: list[InventoryCategory] = Field(default_factory=list)
    fetched_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the snapshot was fetched",
    )

    def category_name(self, item: InventoryItem) -> str:
        """Resolve an item's category label (category table first, legacy text second)."""
        if item.category_id:
            for category in self.categories:
                if category.id == item.category_id:
                    return category.name
        return item.category or ""
