"""Application/business models (computed layer)."""

from .analytics import AnalyticsSummary, LocationBreakdown, WarrantyStats
from .location_tree import FlatNode, LocationRollup, RollupResult
from .snapshot import InventorySnapshot

__all__ = [
    "AnalyticsSummary",
    "FlatNode",
    "InventorySnapshot",
    "LocationBreakdown",
    "LocationRollup",
    "RollupResult",
    "WarrantyStats",
]
