"""Property settings and item categories."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from data.repositories import categories, items, properties
from models.inventory import InventoryCategory, InventoryProperty
from utils.exceptions import NotFoundError, ValidationError

if TYPE_CHECKING:
    from data.clients import BackendClient

logger = logging.getLogger(__name__)


class SettingsService:
    """Edits to the property record and its category list.

    Category names are trimmed, required and unique within a property
    (case-insensitively). A category cannot be deleted while any item still
    references it, by id or by its legacy free-text name.
    """

    def __init__(self, backend_client: BackendClient) -> None:
        self._client = backend_client

    async def get_property(self, user_id: str | None = None) -> InventoryProperty:
        """Property owned by ``user_id`` (defaults to the signed-in user)."""
        user_id = user_id or self._client.current_user_id
        if user_id is None:
            raise NotFoundError("Not signed in")
        prop = await properties.get_property_for_user(self._client, user_id)
        if prop is None:
            raise NotFoundError(f"No property found for user {user_id}")
        return prop

    async def update_property(
        self, property_id: str, name: str, address: str | None = None
    ) -> InventoryProperty:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError("Property name is required")
        return await properties.update_property(
            self._client,
            property_id,
            name=cleaned,
            address=(address or "").strip() or None,
        )

    async def list_categories(self, property_id: str) -> list[InventoryCategory]:
        return await categories.list_categories(self._client, property_id)

    async def _check_unique(
        self, property_id: str, name: str, exclude_id: str | None = None
    ) -> None:
        folded = name.casefold()
        for category in await categories.list_categories(self._client, property_id):
            if category.id != exclude_id and category.name.casefold() == folded:
                raise ValidationError(f"Category '{category.name}' already exists")

    async def create_category(self, property_id: str, name: str) -> InventoryCategory:
        """Add a category.

        Raises:
            ValidationError: If the name is blank or already used in the property
        """
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError("Category name is required")
        await self._check_unique(property_id, cleaned)
        return await categories.create_category(self._client, property_id, cleaned)

    async def rename_category(
        self, category: InventoryCategory, name: str
    ) -> InventoryCategory:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError("Category name is required")
        if cleaned == category.name:
            return category
        await self._check_unique(category.property_id, cleaned, exclude_id=category.id)
        return await categories.rename_category(self._client, category.id, cleaned)

    async def delete_category(self, category: InventoryCategory) -> None:
        """Delete an unused category.

        Raises:
            ValidationError: If any item references the category
        """
        in_use = await items.count_with_category(self._client, category.id, category.name)
        if in_use:
            raise ValidationError(
                f"Cannot delete category '{category.name}': {in_use} item(s) use it"
            )
        await categories.delete_category(self._client, category.id)
