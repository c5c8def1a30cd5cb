"""Tests for cycle detection and rollup aggregation."""

import pytest
from conftest import item, loc

from engine import LocationIndex, aggregate, compute_rollups, direct_totals, find_cycles


class TestAggregate:
    """Tests for aggregate() over acyclic and cyclic trees."""

    def test_chain_rolls_up(self):
        """Test a simple A -> B -> C chain sums every descendant."""
        index = LocationIndex([loc("a"), loc("b", parent_id="a"), loc("c", parent_id="b")])

        result = aggregate(index, {"a": 1, "b": 2, "c": 4})

        assert result.totals == {"a": 7, "b": 6, "c": 4}
        assert result.cycle_ids == frozenset()

    def test_callable_metric_and_missing_ids(self):
        """Test callable metrics and ids missing from a mapping metric."""
        index = LocationIndex([loc("a"), loc("b", parent_id="a")])

        assert aggregate(index, lambda location_id: 3).totals == {"a": 6, "b": 3}
        assert aggregate(index, {"b": 5}).totals == {"a": 5, "b": 5}

    def test_sibling_subtrees_sum(self, kitchen_tree):
        """Test totals over a branching tree."""
        index = LocationIndex([*kitchen_tree, loc("fridge", parent_id="kitchen")])

        result = aggregate(index, {"shelf": 10, "fridge": 5, "garage": 1})

        assert result.get("house") == 15
        assert result.get("kitchen") == 15
        assert result.get("pantry") == 10
        assert result.get("garage") == 1
        assert result.get("unknown") == 0.0

    def test_two_node_cycle(self):
        """Test A <-> B terminates and flags both participants."""
        index = LocationIndex([loc("a", parent_id="b"), loc("b", parent_id="a")])

        result = aggregate(index, {"a": 1, "b": 2})

        assert result.cycle_ids == {"a", "b"}
        assert result.totals == {"a": 1, "b": 2}

    def test_self_loop(self):
        """Test a location that is its own parent keeps its direct metric."""
        index = LocationIndex([loc("a", parent_id="a")])

        result = aggregate(index, {"a": 5})

        assert result.cycle_ids == {"a"}
        assert result.get("a") == 5

    def test_cycle_with_acyclic_subtree(self):
        """Test cycle participants still include their acyclic children."""
        index = LocationIndex(
            [
                loc("a", parent_id="b"),
                loc("b", parent_id="a"),
                loc("c", parent_id="a"),
            ]
        )

        result = aggregate(index, {"a": 1, "b": 2, "c": 10})

        assert result.cycle_ids == {"a", "b"}
        assert result.totals == {"a": 11, "b": 2, "c": 10}

    def test_result_independent_of_input_order(self):
        """Test reversing the input records yields identical totals."""
        records = [
            loc("a", parent_id="b"),
            loc("b", parent_id="a"),
            loc("c", parent_id="a"),
            loc("r"),
            loc("s", parent_id="r"),
        ]
        metric = {"a": 1, "b": 2, "c": 10, "r": 3, "s": 4}

        forward = aggregate(LocationIndex(records), metric)
        backward = aggregate(LocationIndex(list(reversed(records))), metric)

        assert forward.totals == backward.totals
        assert forward.cycle_ids == backward.cycle_ids

    def test_disjoint_cycles_and_healthy_tree(self, kitchen_tree):
        """Test several cycles alongside a normal tree are all detected."""
        index = LocationIndex(
            [
                *kitchen_tree,
                loc("a", parent_id="b"),
                loc("b", parent_id="a"),
                loc("x", parent_id="x"),
            ]
        )

        assert find_cycles(index) == {"a", "b", "x"}
        assert aggregate(index, {"shelf": 2}).get("house") == 2

    def test_long_chain_does_not_recurse(self):
        """Test a very deep chain is handled iteratively."""
        depth = 5000
        records = [loc("n0")] + [loc(f"n{i}", parent_id=f"n{i - 1}") for i in range(1, depth)]

        result = aggregate(LocationIndex(records), lambda location_id: 1)

        assert result.get("n0") == depth
        assert result.get(f"n{depth - 1}") == 1

    def test_shared_cycle_ids_are_reused(self):
        """Test precomputed cycle ids are passed through unchanged."""
        index = LocationIndex([loc("a"), loc("b", parent_id="a")])
        cycle_ids = frozenset()

        result = aggregate(index, {"a": 1}, cycle_ids)

        assert result.cycle_ids is cycle_ids


class TestComputeRollups:
    """Tests for item-based rollups."""

    @pytest.fixture
    def items(self):
        return [
            item("i1", "shelf", purchase_price=100.0, depreciated_value=80.0),
            item("i2", "kitchen", price=50.0),
            item("i3", "garage", purchase_price=20.0, price=99.0, depreciated_value=12.5),
            item("i4", None, purchase_price=1000.0),
            item("i5", "ghost", purchase_price=7.0),
        ]

    def test_direct_totals_skip_unassigned(self, items):
        """Test direct totals group by location and skip unassigned items."""
        totals = direct_totals(items, lambda i: i.value)

        assert totals == {"shelf": 100.0, "kitchen": 50.0, "garage": 20.0, "ghost": 7.0}

    def test_rollups_per_location(self, kitchen_tree, items):
        """Test counts, values and book values roll up the tree."""
        rollups = compute_rollups(LocationIndex(kitchen_tree), items)

        house = rollups["house"]
        assert house.item_count == 2
        assert house.direct_item_count == 0
        assert house.total_value == 150.0
        assert house.total_book_value == 80.0
        assert not house.in_cycle

        kitchen = rollups["kitchen"]
        assert kitchen.direct_item_count == 1
        assert kitchen.direct_value == 50.0
        assert kitchen.item_count == 2

        garage = rollups["garage"]
        assert garage.total_value == 20.0
        assert garage.total_book_value == 12.5

        assert set(rollups) == {"house", "kitchen", "pantry", "shelf", "garage"}

    def test_quantity_does_not_multiply(self, kitchen_tree):
        """Test each item record counts once regardless of quantity."""
        rollups = compute_rollups(
            LocationIndex(kitchen_tree),
            [item("i1", "garage", purchase_price=10.0, quantity=4)],
        )

        assert rollups["garage"].item_count == 1
        assert rollups["garage"].total_value == 10.0

    def test_cycle_flag_in_rollups(self):
        """Test rollups mark cycle participants."""
        index = LocationIndex([loc("a", parent_id="b"), loc("b", parent_id="a")])

        rollups = compute_rollups(index, [item("i1", "a", purchase_price=5.0)])

        assert rollups["a"].in_cycle
        assert rollups["b"].in_cycle
        assert rollups["a"].total_value == 5.0
        assert rollups["b"].total_value == 0.0
