"""Ancestor, descendant and branch-selection queries."""

from __future__ import annotations

from collections.abc import Iterable

from models.inventory import InventoryItem, InventoryLocation

from .tree_index import LocationIndex


def ancestors_of(index: LocationIndex, location_id: str) -> list[InventoryLocation]:
    """Return the chain from the furthest ancestor down to the location itself.

    The upward walk stops with the partial chain when it meets a missing
    parent or a location it already visited. Unknown ids give ``[]``.
    """
    chain: list[InventoryLocation] = []
    seen: set[str] = set()

    current = index.by_id(location_id)
    while current is not None and current.id not in seen:
        chain.append(current)
        seen.add(current.id)
        current = index.by_id(current.parent_id)

    chain.reverse()
    return chain


def descendants_of(index: LocationIndex, location_id: str) -> frozenset[str]:
    """Return ``location_id`` plus every id below it (empty for unknown ids)."""
    if location_id not in index:
        return frozenset()

    found: set[str] = {location_id}
    stack = [location_id]
    while stack:
        for child in index.children_of(stack.pop()):
            if child.id not in found:
                found.add(child.id)
                stack.append(child.id)
    return frozenset(found)


def branch_ids(index: LocationIndex, selected_ids: Iterable[str]) -> frozenset[str]:
    """Union of the subtrees rooted at each selected location."""
    scope: set[str] = set()
    for location_id in selected_ids:
        if location_id not in scope:
            scope |= descendants_of(index, location_id)
    return frozenset(scope)


def items_in_branches(
    index: LocationIndex,
    items: Iterable[InventoryItem],
    selected_ids: Iterable[str],
) -> list[InventoryItem]:
    """Items stored anywhere inside the selected branches, in input order."""
    scope = branch_ids(index, selected_ids)
    return [item for item in items if item.location_id in scope]


def toggle_branch(
    index: LocationIndex, selected: Iterable[str], location_id: str
) -> set[str]:
    """Select or deselect a whole branch.

    Args:
        index: Tree index of the snapshot
        selected: Currently selected location ids
        location_id: Location the user clicked

    Returns:
        New selection. If ``location_id`` was selected, it and all of its
        descendants are removed; otherwise they are all added.
    """
    result = set(selected)
    branch = descendants_of(index, location_id)
    if location_id in result:
        result -= branch
    else:
        result |= branch
    return result


def location_path(index: LocationIndex, location_id: str | None, separator: str = " > ") -> str:
    """Breadcrumb label such as ``House > Kitchen > Pantry``."""
    if not location_id:
        return ""
    return separator.join(location.name for location in ancestors_of(index, location_id))
