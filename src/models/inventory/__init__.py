"""Inventory record models (backend table rows)."""

from .category import InventoryCategory
from .item import InventoryItem
from .location import InventoryLocation
from .property import InventoryProperty

__all__ = [
    "InventoryCategory",
    "InventoryItem",
    "InventoryLocation",
    "InventoryProperty",
]
