"""Category data access methods."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from models.inventory import InventoryCategory
from utils.exceptions import NotFoundError

from ..clients.backend_client import eq

if TYPE_CHECKING:
    from ..clients.backend_client import BackendClient

logger = logging.getLogger(__name__)

TABLE = "categories"


async def list_categories(client: BackendClient, property_id: str) -> list[InventoryCategory]:
    """Get a property's categories ordered by name."""
    rows = await client.select(
        TABLE, filters={"property_id": eq(property_id)}, order="name.asc"
    )
    return [InventoryCategory.model_validate(row) for row in rows]


async def create_category(
    client: BackendClient, property_id: str, name: str
) -> InventoryCategory:
    rows = await client.insert(TABLE, {"property_id": property_id, "name": name})
    category = InventoryCategory.model_validate(rows[0])
    logger.info("Created category %s (%s)", category.id, name)
    return category


async def rename_category(
    client: BackendClient, category_id: str, name: str
) -> InventoryCategory:
    rows = await client.update(TABLE, {"name": name}, filters={"id": eq(category_id)})
    if not rows:
        raise NotFoundError(f"Category {category_id} not found")
    return InventoryCategory.model_validate(rows[0])


async def delete_category(client: BackendClient, category_id: str) -> None:
    rows = await client.delete(TABLE, filters={"id": eq(category_id)})
    if not rows:
        raise NotFoundError(f"Category {category_id} not found")
    logger.info("Deleted category %s", category_id)
