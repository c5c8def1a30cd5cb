"""Item data access methods.

All functions accept a BackendClient instance as their first parameter.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic_core import to_jsonable_python

from models.inventory import InventoryItem
from utils.exceptions import NotFoundError

from ..clients.backend_client import eq

if TYPE_CHECKING:
    from ..clients.backend_client import BackendClient

logger = logging.getLogger(__name__)

TABLE = "items"


async def list_items(client: BackendClient, property_id: str) -> list[InventoryItem]:
    """Get every item of a property, newest first."""
    rows = await client.select(
        TABLE,
        filters={"property_id": eq(property_id)},
        order="created_at.desc.nullslast",
    )
    return [InventoryItem.model_validate(row) for row in rows]


async def get_item(client: BackendClient, item_id: str) -> InventoryItem:
    rows = await client.select(TABLE, filters={"id": eq(item_id)}, limit=1)
    if not rows:
        raise NotFoundError(f"Item {item_id} not found")
    return InventoryItem.model_validate(rows[0])


async def update_item(
    client: BackendClient, item_id: str, changes: dict[str, Any]
) -> InventoryItem:
    """Patch an item's columns and return the stored row.

    Args:
        client: BackendClient instance
        item_id: Item to update
        changes: Column values; dates and datetimes are sent as ISO strings

    Returns:
        The updated item
    """
    rows = await client.update(
        TABLE, to_jsonable_python(changes), filters={"id": eq(item_id)}
    )
    if not rows:
        raise NotFoundError(f"Item {item_id} not found")
    logger.info("Updated item %s (%s)", item_id, ", ".join(sorted(changes)))
    return InventoryItem.model_validate(rows[0])


async def count_in_location(client: BackendClient, location_id: str) -> int:
    """Number of items stored directly at a location."""
    return await client.count(TABLE, filters={"location_id": eq(location_id)})


async def count_with_category(
    client: BackendClient, category_id: str, category_name: str | None = None
) -> int:
    """Number of items referencing a category by id or by legacy name."""
    total = await client.count(TABLE, filters={"category_id": eq(category_id)})
    if category_name:
        total += await client.count(TABLE, filters={"category": eq(category_name)})
    return total
