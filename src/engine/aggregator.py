"""Cycle-safe rollups over the location tree.

``aggregate(id) = metric(id) + sum(aggregate(child) for child in children)``.

Input data may contain parent cycles (A -> B -> A, or a location that is its
own parent). The pass first walks every location depth-first with a
"currently visiting" set; re-entering a visiting node closes a cycle and every
node on the path from it is recorded as a cycle participant. Rollups are then
summed with a memo, treating every edge into a cycle participant as absent,
so each participant contributes its direct metric plus its acyclic subtrees
and the result does not depend on which node the walk started from.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable, Iterator, Mapping

from models.app import LocationRollup, RollupResult
from models.inventory import InventoryItem, InventoryLocation

from .tree_index import LocationIndex

logger = logging.getLogger(__name__)

Metric = Callable[[str], float] | Mapping[str, float]


def _entry_order(index: LocationIndex) -> list[str]:
    """Roots first, then every location in input order."""
    return [root.id for root in index.roots] + index.ids


def _as_callable(metric: Metric) -> Callable[[str], float]:
    if isinstance(metric, Mapping):
        return lambda location_id: metric.get(location_id, 0.0)
    return metric


def find_cycles(index: LocationIndex) -> frozenset[str]:
    """Return the ids of every location that sits on a parent cycle.

    One full depth-first pass over all entry points; the participant set is
    shared across entry points so a cycle is reported the same way whichever
    node reaches it first.
    """
    done: set[str] = set()
    on_path: set[str] = set()
    cycle_ids: set[str] = set()

    for start in _entry_order(index):
        if start in done:
            continue

        path = [start]
        on_path.add(start)
        stack: list[Iterator[InventoryLocation]] = [iter(index.children_of(start))]

        while stack:
            child = next(stack[-1], None)
            if child is None:
                stack.pop()
                finished = path.pop()
                on_path.discard(finished)
                done.add(finished)
                continue

            if child.id in on_path:
                participants = path[path.index(child.id) :]
                cycle_ids.update(participants)
                logger.debug("Parent cycle detected: %s", " -> ".join(participants))
                continue
            if child.id in done:
                continue

            path.append(child.id)
            on_path.add(child.id)
            stack.append(iter(index.children_of(child.id)))

    if cycle_ids:
        logger.warning("Found %d location(s) on parent cycles", len(cycle_ids))
    return frozenset(cycle_ids)


def aggregate(
    index: LocationIndex,
    metric: Metric,
    cycle_ids: frozenset[str] | None = None,
) -> RollupResult:
    """Sum ``metric`` over every location and its descendants.

    Args:
        index: Tree index of the snapshot
        metric: Direct metric per location id (callable or mapping; missing
            ids count as 0)
        cycle_ids: Precomputed result of :func:`find_cycles`, to share one
            detection pass between several metrics

    Returns:
        RollupResult with a total for every location and the cycle participants
    """
    direct = _as_callable(metric)
    if cycle_ids is None:
        cycle_ids = find_cycles(index)

    totals: dict[str, float] = {}
    visiting: set[str] = set()

    for start in _entry_order(index):
        if start in totals:
            continue

        partial: dict[str, float] = {start: float(direct(start))}
        visiting.add(start)
        stack: list[tuple[str, Iterator[InventoryLocation]]] = [
            (start, iter(index.children_of(start)))
        ]

        while stack:
            node_id, children = stack[-1]
            child = next(children, None)
            if child is None:
                stack.pop()
                visiting.discard(node_id)
                totals[node_id] = partial.pop(node_id)
                if stack:
                    partial[stack[-1][0]] += totals[node_id]
                continue

            # Cyclic edge: treated as absent
            if child.id in cycle_ids or child.id in visiting:
                continue
            if child.id in totals:
                partial[node_id] += totals[child.id]
                continue

            visiting.add(child.id)
            partial[child.id] = float(direct(child.id))
            stack.append((child.id, iter(index.children_of(child.id))))

    return RollupResult(totals=totals, cycle_ids=cycle_ids)


def direct_totals(
    items: Iterable[InventoryItem],
    key: Callable[[InventoryItem], float],
) -> dict[str, float]:
    """Sum ``key(item)`` per ``location_id``; unassigned items are skipped."""
    totals: dict[str, float] = defaultdict(float)
    for item in items:
        if item.location_id:
            totals[item.location_id] += key(item)
    return dict(totals)


def compute_rollups(
    index: LocationIndex,
    items: Iterable[InventoryItem],
) -> dict[str, LocationRollup]:
    """Item count, value and book value per location, direct and rolled up.

    Each item record counts once. Value uses :attr:`InventoryItem.value`; book
    value uses ``depreciated_value`` and counts 0 for items without one.
    Items pointing at locations missing from the index are ignored.
    """
    items = [item for item in items if item.location_id in index]

    direct_count = direct_totals(items, lambda item: 1)
    direct_value = direct_totals(items, lambda item: item.value)
    direct_book = direct_totals(items, lambda item: item.depreciated_value or 0.0)

    cycle_ids = find_cycles(index)
    counts = aggregate(index, direct_count, cycle_ids)
    values = aggregate(index, direct_value, cycle_ids)
    books = aggregate(index, direct_book, cycle_ids)

    return {
        location_id: LocationRollup(
            location_id=location_id,
            direct_item_count=int(direct_count.get(location_id, 0)),
            direct_value=direct_value.get(location_id, 0.0),
            direct_book_value=direct_book.get(location_id, 0.0),
            item_count=int(counts.get(location_id)),
            total_value=values.get(location_id),
            total_book_value=books.get(location_id),
            in_cycle=location_id in cycle_ids,
        )
        for location_id in index.ids
    }
