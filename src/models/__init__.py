"""Property inventory record models (domain layer)."""

from .inventory import (
    InventoryCategory,
    InventoryItem,
    InventoryLocation,
    InventoryProperty,
)

__all__ = [
    "InventoryCategory",
    "InventoryItem",
    "InventoryLocation",
    "InventoryProperty",
]
