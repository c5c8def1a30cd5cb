"""Tests for ancestor, descendant and branch-selection queries."""

import pytest
from conftest import item, loc

from engine import (
    LocationIndex,
    ancestors_of,
    branch_ids,
    descendants_of,
    items_in_branches,
    location_path,
    toggle_branch,
)


@pytest.fixture
def index(kitchen_tree):
    return LocationIndex(kitchen_tree)


class TestAncestors:
    """Tests for ancestors_of and location_path."""

    def test_chain_from_root(self):
        """Test the chain runs from the root down to the location."""
        index = LocationIndex([loc("a"), loc("b", parent_id="a"), loc("c", parent_id="b")])

        assert [location.id for location in ancestors_of(index, "c")] == ["a", "b", "c"]
        assert [location.id for location in ancestors_of(index, "a")] == ["a"]

    def test_unknown_id(self, index):
        """Test unknown ids give an empty chain."""
        assert ancestors_of(index, "nope") == []

    def test_cycle_stops(self):
        """Test the walk stops at a repeated location."""
        index = LocationIndex([loc("a", parent_id="b"), loc("b", parent_id="a")])

        assert [location.id for location in ancestors_of(index, "a")] == ["b", "a"]

    def test_missing_parent_stops(self):
        """Test a dangling parent ends the chain."""
        index = LocationIndex([loc("x", parent_id="ghost")])

        assert [location.id for location in ancestors_of(index, "x")] == ["x"]

    def test_location_path(self, index):
        """Test breadcrumb labels."""
        assert location_path(index, "shelf") == "House > Kitchen > Pantry > Top Shelf"
        assert location_path(index, "garage", separator="/") == "Garage"
        assert location_path(index, None) == ""
        assert location_path(index, "nope") == ""


class TestDescendants:
    """Tests for descendants_of and branch_ids."""

    def test_includes_self_and_all_levels(self):
        """Test the subtree contains the location and every level below it."""
        index = LocationIndex(
            [
                loc("r"),
                loc("x", parent_id="r"),
                loc("y", parent_id="r"),
                loc("z", parent_id="x"),
                loc("other"),
            ]
        )

        assert descendants_of(index, "r") == {"r", "x", "y", "z"}
        assert descendants_of(index, "y") == {"y"}

    def test_unknown_id(self, index):
        """Test unknown ids give an empty set."""
        assert descendants_of(index, "nope") == frozenset()

    def test_cycle_terminates(self):
        """Test the downward walk terminates on a cycle."""
        index = LocationIndex(
            [loc("a", parent_id="b"), loc("b", parent_id="a"), loc("c", parent_id="a")]
        )

        assert descendants_of(index, "a") == {"a", "b", "c"}

    def test_branch_ids_union(self, index):
        """Test several selected branches are merged."""
        assert branch_ids(index, ["pantry", "garage"]) == {"pantry", "shelf", "garage"}
        assert branch_ids(index, []) == frozenset()


class TestBranchSelection:
    """Tests for toggle_branch and items_in_branches."""

    def test_toggle_selects_whole_branch(self, index):
        """Test selecting a location selects its descendants."""
        assert toggle_branch(index, set(), "kitchen") == {"kitchen", "pantry", "shelf"}

    def test_toggle_deselects_whole_branch(self, index):
        """Test deselecting a selected location removes its descendants."""
        selected = {"kitchen", "pantry", "shelf", "garage"}

        assert toggle_branch(index, selected, "kitchen") == {"garage"}

    def test_toggle_inner_node_keeps_ancestors(self, index):
        """Test deselecting a child leaves its selected parent in place."""
        selected = {"kitchen", "pantry", "shelf"}

        assert toggle_branch(index, selected, "pantry") == {"kitchen"}

    def test_toggle_does_not_mutate_input(self, index):
        """Test the input selection is left untouched."""
        selected = {"garage"}

        toggle_branch(index, selected, "house")

        assert selected == {"garage"}

    def test_items_in_branches(self, index):
        """Test items are collected from anywhere below the selection."""
        items = [
            item("i1", "shelf"),
            item("i2", "garage"),
            item("i3", "kitchen"),
            item("i4", None),
        ]

        found = items_in_branches(index, items, ["kitchen"])

        assert [i.id for i in found] == ["i1", "i3"]
