"""Parent/children index over a flat list of locations."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Iterator

from models.inventory import InventoryLocation

logger = logging.getLogger(__name__)


class LocationIndex:
    """Read-only tree index built from a snapshot of location records.

    Children are ordered by ascending ``sort_order`` (locations without one
    come last), then case-insensitive name, then input order. A location whose
    ``parent_id`` points at an id missing from the snapshot is not listed
    under any parent and is not a root; it is reported by :attr:`dangling`.

    The index never validates the parent relation. Cycles are left in place
    for the aggregator and the traversals to contain.
    """

    def __init__(self, locations: Iterable[InventoryLocation]) -> None:
        self._by_id: dict[str, InventoryLocation] = {}
        self._position: dict[str, int] = {}
        self._children: dict[str | None, list[InventoryLocation]] = defaultdict(list)
        self._dangling: list[InventoryLocation] = []

        duplicates: list[str] = []
        for location in locations:
            if location.id in self._by_id:
                duplicates.append(location.id)
                continue
            self._position[location.id] = len(self._by_id)
            self._by_id[location.id] = location

        if duplicates:
            logger.warning(
                "Ignored %d duplicate location record(s): %s",
                len(duplicates),
                ", ".join(duplicates[:10]),
            )

        for location in self._by_id.values():
            parent_id = location.parent_id or None
            if parent_id is None or parent_id in self._by_id:
                self._children[parent_id].append(location)
            else:
                self._dangling.append(location)

        for siblings in self._children.values():
            siblings.sort(key=self._sibling_key)

        logger.debug(
            "Indexed %d locations (%d roots, %d dangling)",
            len(self._by_id),
            len(self._children.get(None, [])),
            len(self._dangling),
        )

    def _sibling_key(self, location: InventoryLocation) -> tuple[bool, int, str, int]:
        return (
            location.sort_order is None,
            location.sort_order or 0,
            location.name.casefold(),
            self._position[location.id],
        )

    def by_id(self, location_id: str | None) -> InventoryLocation | None:
        """Return the location with ``location_id``, or None if absent."""
        if location_id is None:
            return None
        return self._by_id.get(location_id)

    def children_of(self, parent_id: str | None) -> list[InventoryLocation]:
        """Return the ordered children of ``parent_id`` (None lists the roots)."""
        return list(self._children.get(parent_id or None, ()))

    def has_children(self, location_id: str) -> bool:
        return bool(self._children.get(location_id))

    def position(self, location_id: str) -> int:
        """Input position of a location (used as the stable tie-breaker)."""
        return self._position[location_id]

    @property
    def roots(self) -> list[InventoryLocation]:
        """Locations without a parent, in sibling order."""
        return self.children_of(None)

    @property
    def dangling(self) -> list[InventoryLocation]:
        """Locations whose parent is missing from the snapshot, in input order."""
        return list(self._dangling)

    @property
    def ids(self) -> list[str]:
        """All location ids in input order."""
        return list(self._by_id)

    def __contains__(self, location_id: object) -> bool:
        return location_id in self._by_id

    def __iter__(self) -> Iterator[InventoryLocation]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    def __repr__(self) -> str:
        return (
            f"LocationIndex(locations={len(self._by_id)}, "
            f"roots={len(self._children.get(None, []))}, "
            f"dangling={len(self._dangling)})"
        )
