"""Computed location-tree models: rollups and flattened display rows."""

from __future__ import annotations

from dataclasses import dataclass, field

from models.inventory import InventoryLocation


@dataclass(frozen=True)
class RollupResult:
    """Aggregate of one metric over every location.

    ``totals`` maps each location id to its metric summed over itself and all
    descendants. ``cycle_ids`` holds every location found on a parent cycle.
    """

    totals: dict[str, float] = field(default_factory=dict)
    cycle_ids: frozenset[str] = frozenset()

    def get(self, location_id: str) -> float:
        return self.totals.get(location_id, 0.0)


class LocationRollup:
    """Direct and aggregated statistics for one location.

    Direct figures count items whose ``location_id`` is this location;
    aggregated figures add every descendant reached without crossing a
    cyclic edge.
    """

    def __init__(
        self,
        location_id: str,
        direct_item_count: int = 0,
        direct_value: float = 0.0,
        direct_book_value: float = 0.0,
        item_count: int = 0,
        total_value: float = 0.0,
        total_book_value: float = 0.0,
        in_cycle: bool = False,
    ):
        """Initialize a location rollup.

        Args:
            location_id: ID of the location
            direct_item_count: Items stored directly at this location
            direct_value: Value of items stored directly here
            direct_book_value: Depreciated value of items stored directly here
            item_count: Items at this location and all descendants
            total_value: Value at this location and all descendants
            total_book_value: Depreciated value at this location and all descendants
            in_cycle: Whether the location sits on a parent cycle
        """
        self.location_id = location_id
        self.direct_item_count = direct_item_count
        self.direct_value = direct_value
        self.direct_book_value = direct_book_value
        self.item_count = item_count
        self.total_value = total_value
        self.total_book_value = total_book_value
        self.in_cycle = in_cycle

    def __repr__(self) -> str:
        return (
            f"LocationRollup(id={self.location_id}, "
            f"items={self.item_count}, "
            f"value={self.total_value:.2f}, "
            f"book={self.total_book_value:.2f}, "
            f"in_cycle={self.in_cycle})"
        )


@dataclass(frozen=True)
class FlatNode:
    """One visible row of the location tree."""

    location: InventoryLocation
    depth: int
    has_children: bool = False
    is_expanded: bool = False
    unreachable: bool = False
    matched: bool = False

    @property
    def location_id(self) -> str:
        return self.location.id
