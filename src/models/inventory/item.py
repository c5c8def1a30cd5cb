"""Canonical inventory item model.

Backend rows come from several generations of the ``items`` schema. The
legacy columns are folded into the canonical fields here, once, so that no
consumer has to guess which column a value lives in.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, model_validator


class InventoryItem(BaseModel):
    """An item stored at (at most) one location."""

    id: str = Field(..., description="Opaque unique identifier")
    name: str = Field(default="", description="Display name")
    location_id: str | None = Field(
        default=None, description="Location holding the item (None = unassigned)"
    )
    property_id: str | None = Field(default=None)
    category_id: str | None = Field(default=None)
    category: str | None = Field(
        default=None, description="Legacy free-text category name"
    )
    quantity: int = Field(default=1, ge=0)

    price: float | None = Field(default=None, description="Current/listed price")
    purchase_price: float | None = Field(default=None)
    purchase_date: date | None = Field(default=None)
    salvage_value: float | None = Field(default=None, ge=0)
    depreciation_method: str | None = Field(default=None)
    useful_life_months: int | None = Field(default=None)
    warranty_expires_on: date | None = Field(default=None)

    vendor: str | None = Field(default=None)
    serial_number: str | None = Field(default=None)
    notes: str | None = Field(default=None)
    photos: list[str] = Field(default_factory=list)

    created_at: datetime | None = Field(default=None)
    updated_at: datetime | None = Field(default=None)

    depreciated_value: float | None = Field(
        default=None,
        exclude=True,
        description="Book value computed by the valuation service (never persisted)",
    )

    @model_validator(mode="before")
    @classmethod
    def _fold_legacy_columns(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)

        legacy_warranty = data.pop("warranty_expiration", None)
        if data.get("warranty_expires_on") is None and legacy_warranty:
            data["warranty_expires_on"] = legacy_warranty

        legacy_years = data.pop("depreciation_years", None)
        if data.get("useful_life_months") is None and legacy_years:
            data["useful_life_months"] = int(round(float(legacy_years) * 12))

        photos = list(data.get("photos") or [])
        legacy_photo = data.pop("photo_url", None)
        if legacy_photo and legacy_photo not in photos:
            photos.insert(0, legacy_photo)
        data["photos"] = photos

        if data.get("quantity") is None:
            data["quantity"] = 1
        return data

    @property
    def value(self) -> float:
        """Acquisition value: purchase price, else listed price, else 0."""
        if self.purchase_price is not None:
            return float(self.purchase_price)
        if self.price is not None:
            return float(self.price)
        return 0.0
