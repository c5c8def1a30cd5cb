"""Property data access methods."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from models.inventory import InventoryProperty
from utils.exceptions import NotFoundError

from ..clients.backend_client import eq

if TYPE_CHECKING:
    from ..clients.backend_client import BackendClient

logger = logging.getLogger(__name__)

TABLE = "properties"


async def get_property_for_user(
    client: BackendClient, user_id: str
) -> InventoryProperty | None:
    """Get the property owned by a user (the first one if several exist)."""
    rows = await client.select(
        TABLE, filters={"user_id": eq(user_id)}, order="created_at.asc", limit=1
    )
    if not rows:
        return None
    return InventoryProperty.model_validate(rows[0])


async def get_property(client: BackendClient, property_id: str) -> InventoryProperty:
    rows = await client.select(TABLE, filters={"id": eq(property_id)}, limit=1)
    if not rows:
        raise NotFoundError(f"Property {property_id} not found")
    return InventoryProperty.model_validate(rows[0])


async def update_property(
    client: BackendClient, property_id: str, **values: Any
) -> InventoryProperty:
    rows = await client.update(TABLE, values, filters={"id": eq(property_id)})
    if not rows:
        raise NotFoundError(f"Property {property_id} not found")
    logger.info("Updated property %s", property_id)
    return InventoryProperty.model_validate(rows[0])
