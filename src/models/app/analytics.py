"""Analytics result models."""

from datetime import date

from pydantic import BaseModel, Field


class LocationBreakdown(BaseModel):
    """Items and value stored directly at one location."""

    location_id: str = Field(...)
    location_name: str = Field(default="")
    item_count: int = Field(default=0, ge=0)
    value: float = Field(default=0.0)


class WarrantyStats(BaseModel):
    """Warranty coverage of a set of items."""

    with_warranty: int = Field(default=0, ge=0)
    expiring_soon: int = Field(default=0, ge=0)
    expired: int = Field(default=0, ge=0)


class AnalyticsSummary(BaseModel):
    """Valuation, depreciation and warranty figures for selected branches."""

    as_of: date = Field(...)
    selected_location_ids: list[str] = Field(default_factory=list)
    item_count: int = Field(default=0, ge=0)
    purchase_total: float = Field(default=0.0)
    book_total: float = Field(
        default=0.0, description="Depreciated value of items with a schedule"
    )
    tracked_count: int = Field(
        default=0, ge=0, description="Items with a depreciation schedule"
    )
    per_location: list[LocationBreakdown] = Field(
        default_factory=list, description="Sorted by value, highest first"
    )
    warranty: WarrantyStats = Field(default_factory=WarrantyStats)
