"""Location data access methods.

All functions accept a BackendClient instance as their first parameter.

Functions:
    - list_locations: All locations of a property
    - get_location: One location by id
    - create_location: Insert a location
    - update_location: Patch name/parent/sort order
    - delete_location: Remove a location
    - count_children: Number of direct child locations
    - set_sort_orders: Persist sibling order positions
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from models.inventory import InventoryLocation
from utils.exceptions import NotFoundError

from ..clients.backend_client import eq

if TYPE_CHECKING:
    from ..clients.backend_client import BackendClient

logger = logging.getLogger(__name__)

TABLE = "locations"


async def list_locations(client: BackendClient, property_id: str) -> list[InventoryLocation]:
    """Get every location of a property in stored sort order.

    The engine re-sorts siblings itself, so the order clause only keeps the
    raw listing stable.
    """
    rows = await client.select(
        TABLE,
        filters={"property_id": eq(property_id)},
        order="sort_order.asc.nullslast,name.asc",
    )
    return [InventoryLocation.model_validate(row) for row in rows]


async def get_location(client: BackendClient, location_id: str) -> InventoryLocation:
    """Get one location.

    Raises:
        NotFoundError: If no location has this id
    """
    rows = await client.select(TABLE, filters={"id": eq(location_id)}, limit=1)
    if not rows:
        raise NotFoundError(f"Location {location_id} not found")
    return InventoryLocation.model_validate(rows[0])


async def create_location(
    client: BackendClient,
    property_id: str,
    name: str,
    parent_id: str | None = None,
    sort_order: int | None = None,
) -> InventoryLocation:
    """Insert a location and return it as stored."""
    rows = await client.insert(
        TABLE,
        {
            "property_id": property_id,
            "name": name,
            "parent_id": parent_id,
            "sort_order": sort_order,
        },
    )
    location = InventoryLocation.model_validate(rows[0])
    logger.info("Created location %s (%s) under %s", location.id, name, parent_id)
    return location


async def update_location(
    client: BackendClient, location_id: str, **values: Any
) -> InventoryLocation:
    """Patch a location's columns and return the stored row."""
    rows = await client.update(TABLE, values, filters={"id": eq(location_id)})
    if not rows:
        raise NotFoundError(f"Location {location_id} not found")
    return InventoryLocation.model_validate(rows[0])


async def delete_location(client: BackendClient, location_id: str) -> None:
    rows = await client.delete(TABLE, filters={"id": eq(location_id)})
    if not rows:
        raise NotFoundError(f"Location {location_id} not found")
    logger.info("Deleted location %s", location_id)


async def count_children(client: BackendClient, location_id: str) -> int:
    """Number of locations whose parent is ``location_id``."""
    return await client.count(TABLE, filters={"parent_id": eq(location_id)})


async def set_sort_orders(client: BackendClient, ordered_ids: list[str]) -> None:
    """Write ``sort_order = position`` for each id, in list order."""
    for position, location_id in enumerate(ordered_ids):
        await client.update(
            TABLE, {"sort_order": position}, filters={"id": eq(location_id)}
        )
    logger.debug("Reordered %d sibling location(s)", len(ordered_ids))
