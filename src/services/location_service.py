"""Service for the location hierarchy.

Loads inventory snapshots from the backend, runs the tree engine over them
(index, rollups, flattening) and performs guarded mutations of the tree.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Collection
from datetime import date
from typing import TYPE_CHECKING

from data.repositories import categories, items, locations, properties
from engine import LocationIndex, descendants_of
from engine import compute_rollups as engine_compute_rollups
from engine import flatten as engine_flatten
from models.app import FlatNode, InventorySnapshot, LocationRollup
from models.inventory import InventoryLocation
from utils.exceptions import BackendError, NotFoundError, ValidationError
from utils.metrics import MetricCategories, get_metrics

from .valuation import with_book_values

if TYPE_CHECKING:
    from data.clients import BackendClient
    from utils.metrics import MetricsCollector

logger = logging.getLogger(__name__)


def _clean_name(name: str | None, what: str = "Location") -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError(f"{what} name is required")
    return cleaned


class LocationService:
    """Loads the location tree and applies guarded edits to it.

    Reads:
    - load_snapshot: property, locations, items and categories in one go
    - build_index / compute_rollups / flatten: engine passes over a snapshot

    Writes (validated before they reach the backend):
    - create_location, rename_location
    - delete_location: only empty leaves
    - move_location: never under itself or a descendant
    - reorder_siblings
    """

    def __init__(
        self,
        backend_client: BackendClient,
        metrics: MetricsCollector | None = None,
    ) -> None:
        """Initialize location service.

        Args:
            backend_client: Client for backend requests
            metrics: Metrics collector for engine timings (defaults to shared)
        """
        self._client = backend_client
        self._metrics = metrics or get_metrics()
        # Last built index, reused while the same snapshot object is passed in
        self._index_cache: tuple[InventorySnapshot, LocationIndex] | None = None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def resolve_property_id(self) -> str:
        """Property of the signed-in user.

        Raises:
            NotFoundError: If nobody is signed in or the user has no property
        """
        user_id = self._client.current_user_id
        if user_id is None:
            raise NotFoundError("Not signed in")
        prop = await properties.get_property_for_user(self._client, user_id)
        if prop is None:
            raise NotFoundError(f"No property found for user {user_id}")
        return prop.id

    async def load_snapshot(self, property_id: str | None = None) -> InventorySnapshot:
        """Fetch everything the tree and analytics views need.

        Args:
            property_id: Property to load; defaults to the signed-in user's

        Returns:
            A consistent snapshot of the property's records
        """
        if property_id is None:
            property_id = await self.resolve_property_id()

        try:
            with self._metrics.time_operation(f"{MetricCategories.BACKEND}.load_snapshot"):
                prop, location_rows, item_rows, category_rows = await asyncio.gather(
                    properties.get_property(self._client, property_id),
                    locations.list_locations(self._client, property_id),
                    items.list_items(self._client, property_id),
                    categories.list_categories(self._client, property_id),
                )
        except BackendError as e:
            logger.error("Failed to load snapshot for property %s: %s", property_id, e)
            raise

        logger.info(
            "Loaded property %s: %d locations, %d items, %d categories",
            property_id,
            len(location_rows),
            len(item_rows),
            len(category_rows),
        )
        return InventorySnapshot(
            property_info=prop,
            locations=location_rows,
            items=item_rows,
            categories=category_rows,
        )

    def build_index(self, snapshot: InventorySnapshot) -> LocationIndex:
        """Tree index of a snapshot, cached for the last snapshot seen."""
        if self._index_cache is not None and self._index_cache[0] is snapshot:
            return self._index_cache[1]
        with self._metrics.time_operation(f"{MetricCategories.ENGINE}.build_index"):
            index = LocationIndex(snapshot.locations)
        self._index_cache = (snapshot, index)
        return index

    def compute_rollups(
        self, snapshot: InventorySnapshot, as_of: date | None = None
    ) -> dict[str, LocationRollup]:
        """Per-location item count, value and book value, direct and rolled up."""
        index = self.build_index(snapshot)
        valued = with_book_values(snapshot.items, as_of)
        with self._metrics.time_operation(f"{MetricCategories.ENGINE}.rollup"):
            return engine_compute_rollups(index, valued)

    def flatten(
        self,
        snapshot: InventorySnapshot,
        expanded: Collection[str] | None = None,
        query: str | None = None,
    ) -> list[FlatNode]:
        """Visible rows of the tree for the given expansion and name filter."""
        index = self.build_index(snapshot)
        with self._metrics.time_operation(f"{MetricCategories.ENGINE}.flatten"):
            return engine_flatten(index, expanded=expanded, query=query)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_location(
        self, property_id: str, name: str, parent_id: str | None = None
    ) -> InventoryLocation:
        """Add a location at the end of the property's sort order.

        Raises:
            ValidationError: If the name is blank or the parent does not exist
        """
        cleaned = _clean_name(name)
        existing = await locations.list_locations(self._client, property_id)
        if parent_id is not None and all(loc.id != parent_id for loc in existing):
            raise ValidationError(f"Parent location {parent_id} does not exist")

        return await locations.create_location(
            self._client,
            property_id,
            cleaned,
            parent_id=parent_id,
            sort_order=len(existing),
        )

    async def rename_location(self, location_id: str, name: str) -> InventoryLocation:
        return await locations.update_location(
            self._client, location_id, name=_clean_name(name)
        )

    async def delete_location(self, location_id: str) -> None:
        """Delete an empty leaf location.

        Raises:
            NotFoundError: If the location does not exist
            ValidationError: If it still has child locations or holds items
        """
        location = await locations.get_location(self._client, location_id)

        child_count = await locations.count_children(self._client, location_id)
        if child_count:
            raise ValidationError(
                f"Cannot delete '{location.name}': it has {child_count} child location(s)"
            )
        item_count = await items.count_in_location(self._client, location_id)
        if item_count:
            raise ValidationError(
                f"Cannot delete '{location.name}': it holds {item_count} item(s)"
            )

        await locations.delete_location(self._client, location_id)

    async def move_location(
        self, location_id: str, new_parent_id: str | None
    ) -> InventoryLocation:
        """Re-parent a location, appending it after its new siblings.

        Args:
            location_id: Location to move
            new_parent_id: New parent, or None to make it a root

        Raises:
            NotFoundError: If the location does not exist
            ValidationError: If the new parent is unknown, the location itself,
                or one of its descendants
        """
        location = await locations.get_location(self._client, location_id)
        if new_parent_id == location_id:
            raise ValidationError("Cannot move a location under itself")

        siblings_after_move = 0
        if location.property_id is not None:
            index = LocationIndex(
                await locations.list_locations(self._client, location.property_id)
            )
            if new_parent_id is not None:
                if new_parent_id not in index:
                    raise ValidationError(f"Parent location {new_parent_id} does not exist")
                if new_parent_id in descendants_of(index, location_id):
                    raise ValidationError(
                        f"Cannot move '{location.name}' under one of its descendants"
                    )
            siblings_after_move = sum(
                1 for child in index.children_of(new_parent_id) if child.id != location_id
            )
        elif new_parent_id is not None:
            # No property to index: only check that the parent exists
            try:
                await locations.get_location(self._client, new_parent_id)
            except NotFoundError as e:
                raise ValidationError(f"Parent location {new_parent_id} does not exist") from e

        moved = await locations.update_location(
            self._client,
            location_id,
            parent_id=new_parent_id,
            sort_order=siblings_after_move,
        )
        logger.info("Moved location %s under %s", location_id, new_parent_id)
        return moved

    async def reorder_siblings(self, ordered_ids: list[str]) -> None:
        """Persist a new sibling order (position in the list = sort_order)."""
        if len(set(ordered_ids)) != len(ordered_ids):
            raise ValidationError("Sibling order contains duplicate ids")
        await locations.set_sort_orders(self._client, ordered_ids)
