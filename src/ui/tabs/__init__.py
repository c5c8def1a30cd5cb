"""UI tabs package."""

from .location_tree_tab import LocationTreeTab

__all__ = [
    "LocationTreeTab",
]
