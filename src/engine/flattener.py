"""Flatten the location tree into depth-annotated display rows."""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection

from models.app import FlatNode
from models.inventory import InventoryLocation

from .queries import ancestors_of
from .tree_index import LocationIndex

logger = logging.getLogger(__name__)

Predicate = Callable[[InventoryLocation], bool]


def build_filter(query: str | None = None, predicate: Predicate | None = None) -> Predicate | None:
    """Combine a name query and a predicate into one matcher.

    The query matches a case-insensitive substring of the location name. When
    both are given a location must satisfy both. Returns None when there is
    nothing to filter on.
    """
    needle = (query or "").strip().casefold()
    if not needle and predicate is None:
        return None

    def matches(location: InventoryLocation) -> bool:
        if needle and needle not in location.name.casefold():
            return False
        return predicate is None or predicate(location)

    return matches


def reachable_ids(index: LocationIndex) -> set[str]:
    """Ids reachable from a root by following children, ignoring expansion."""
    seen: set[str] = set()
    stack = [root.id for root in index.roots]
    while stack:
        location_id = stack.pop()
        if location_id in seen:
            continue
        seen.add(location_id)
        stack.extend(child.id for child in index.children_of(location_id))
    return seen


def flatten(
    index: LocationIndex,
    expanded: Collection[str] | None = None,
    query: str | None = None,
    predicate: Predicate | None = None,
) -> list[FlatNode]:
    """Produce the visible rows of the tree in display order.

    Args:
        index: Tree index of the snapshot
        expanded: Ids whose children are shown; None shows every level
        query: Case-insensitive name filter
        predicate: Additional filter on the location record

    Returns:
        Rows from the root traversal followed by the unreachable bucket
        (locations no root leads to, in input order, at depth 0)
    """
    match = build_filter(query, predicate)

    matched: set[str] = set()
    visible: set[str] | None = None
    forced: set[str] = set()
    if match is not None:
        matched = {location.id for location in index if match(location)}
        visible = set()
        for location_id in matched:
            chain = ancestors_of(index, location_id)
            visible.update(location.id for location in chain)
            forced.update(location.id for location in chain[:-1])

    def is_open(location_id: str) -> bool:
        return expanded is None or location_id in expanded or location_id in forced

    rows: list[FlatNode] = []
    visited: set[str] = set()
    stack: list[tuple[InventoryLocation, int]] = [(root, 0) for root in reversed(index.roots)]

    while stack:
        location, depth = stack.pop()
        if location.id in visited:
            continue
        visited.add(location.id)
        if visible is not None and location.id not in visible:
            continue

        children = index.children_of(location.id)
        open_ = bool(children) and is_open(location.id)
        rows.append(
            FlatNode(
                location=location,
                depth=depth,
                has_children=bool(children),
                is_expanded=open_,
                matched=location.id in matched,
            )
        )
        if open_:
            stack.extend((child, depth + 1) for child in reversed(children))

    reachable = reachable_ids(index)
    unreachable = 0
    for location in index:
        if location.id in reachable:
            continue
        unreachable += 1
        if visible is not None and location.id not in visible:
            continue
        rows.append(
            FlatNode(
                location=location,
                depth=0,
                has_children=index.has_children(location.id),
                unreachable=True,
                matched=location.id in matched,
            )
        )

    if unreachable:
        logger.debug("%d location(s) are not reachable from any root", unreachable)
    return rows
