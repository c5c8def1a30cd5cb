"""Repository layer over the hosted backend.

Each module groups the async access functions for one table. All functions
accept a BackendClient instance as their first parameter and return model
instances:

- locations: Location tree records
- items: Inventory items
- categories: Per-property item categories
- properties: Property settings

Usage:
    from data.clients import BackendClient
    from data.repositories import items, locations

    client = BackendClient()
    tree = await locations.list_locations(client, property_id)
    stock = await items.list_items(client, property_id)
"""

from __future__ import annotations

from . import categories, items, locations, properties

__all__ = [
    "categories",
    "items",
    "locations",
    "properties",
]
