"""Location hierarchy engine: index, rollups, flattening and queries."""

from .aggregator import aggregate, compute_rollups, direct_totals, find_cycles
from .flattener import build_filter, flatten, reachable_ids
from .queries import (
    ancestors_of,
    branch_ids,
    descendants_of,
    items_in_branches,
    location_path,
    toggle_branch,
)
from .tree_index import LocationIndex

__all__ = [
    "LocationIndex",
    "aggregate",
    "ancestors_of",
    "branch_ids",
    "build_filter",
    "compute_rollups",
    "descendants_of",
    "direct_totals",
    "find_cycles",
    "flatten",
    "items_in_branches",
    "location_path",
    "reachable_ids",
    "toggle_branch",
]
