"""Inventory item operations: listing, branch scoping, edits and photos."""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from data.repositories import items
from engine import LocationIndex, items_in_branches
from models.inventory import InventoryItem
from utils.config import get_config
from utils.exceptions import ValidationError
from utils.metrics import timed

if TYPE_CHECKING:
    from data.clients import BackendClient
    from models.app import InventorySnapshot
    from utils.config import BackendConfig

logger = logging.getLogger(__name__)

# Columns callers may change through update_item
EDITABLE_FIELDS = frozenset(
    {
        "name",
        "location_id",
        "category_id",
        "category",
        "quantity",
        "price",
        "purchase_price",
        "purchase_date",
        "salvage_value",
        "depreciation_method",
        "useful_life_months",
        "warranty_expires_on",
        "vendor",
        "serial_number",
        "notes",
        "photos",
    }
)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class InventoryService:
    """Item reads and writes against the backend."""

    def __init__(
        self,
        backend_client: BackendClient,
        backend_config: BackendConfig | None = None,
    ) -> None:
        self._client = backend_client
        self._photo_bucket = (backend_config or get_config().backend).photo_bucket

    async def list_items(self, property_id: str) -> list[InventoryItem]:
        return await items.list_items(self._client, property_id)

    def items_for_selection(
        self, snapshot: InventorySnapshot, selected_ids: Iterable[str]
    ) -> list[InventoryItem]:
        """Items stored anywhere inside the selected location branches."""
        index = LocationIndex(snapshot.locations)
        return items_in_branches(index, snapshot.items, selected_ids)

    async def update_item(self, item_id: str, changes: dict[str, Any]) -> InventoryItem:
        """Apply column changes to an item.

        Args:
            item_id: Item to update
            changes: Column values keyed by field name

        Returns:
            The updated item

        Raises:
            ValidationError: If a change targets a field that cannot be edited
                or breaks the item model's constraints
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot edit field(s): {', '.join(sorted(unknown))}")
        quantity = changes.get("quantity")
        if quantity is not None:
            if isinstance(quantity, bool) or not isinstance(quantity, int):
                raise ValidationError(f"Quantity must be a whole number, got {quantity!r}")
            if quantity < 0:
                raise ValidationError("Quantity cannot be negative")
        if not changes:
            return await items.get_item(self._client, item_id)
        return await items.update_item(self._client, item_id, changes)

    @timed("backend.attach_photo")
    async def attach_photo(
        self,
        item: InventoryItem,
        filename: str,
        content: bytes,
        content_type: str = "image/jpeg",
    ) -> InventoryItem:
        """Upload a photo and append its public URL to the item's photos.

        Objects are stored as ``<item_id>/<random>-<filename>`` so repeated
        uploads of the same file name never overwrite each other.
        """
        if not content:
            raise ValidationError("Photo is empty")

        safe_name = _UNSAFE_FILENAME_CHARS.sub("_", filename).strip("_") or "photo"
        path = f"{item.id}/{uuid.uuid4().hex[:12]}-{safe_name}"
        await self._client.upload_object(self._photo_bucket, path, content, content_type)

        url = self._client.public_url(self._photo_bucket, path)
        logger.info("Attached photo %s to item %s", path, item.id)
        return await items.update_item(
            self._client, item.id, {"photos": [*item.photos, url]}
        )
