"""Tests for CSV export of items and location rollups."""

import csv
import io
from datetime import date

import pytest
from conftest import item, loc

from export import CSVExporter
from models.app import InventorySnapshot
from models.inventory import InventoryCategory
from utils.exceptions import ExportError

AS_OF = date(2024, 7, 2)


def _parse(text, delimiter=","):
    return list(csv.DictReader(io.StringIO(text), delimiter=delimiter))


@pytest.fixture
def snapshot(kitchen_tree):
    return InventorySnapshot(
        locations=[*kitchen_tree, loc("box", "Box", parent_id="ghost")],
        categories=[InventoryCategory(id="c1", name="Tools", property_id="prop-1")],
        items=[
            item(
                "i1",
                "shelf",
                name="Mixer",
                purchase_price=240.0,
                purchase_date=date(2024, 1, 1),
                useful_life_months=12,
                warranty_expires_on=date(2024, 8, 1),
                category_id="c1",
            ),
            item("i2", "garage", name="=HYPERLINK(\"x\")", price=15.5, notes="-2 spare, blades"),
            item("i3", None, name="Loose", purchase_price=3.0),
        ],
    )


class TestItemExport:
    """Tests for item CSV rows."""

    def test_item_columns(self, snapshot):
        """Test item rows carry breadcrumb, category and valuation."""
        rows = _parse(CSVExporter().export_items(snapshot, as_of=AS_OF))

        mixer = rows[0]
        assert mixer["location"] == "House > Kitchen > Pantry > Top Shelf"
        assert mixer["category"] == "Tools"
        assert mixer["purchase_price"] == "240.00"
        assert mixer["price"] == ""
        assert mixer["purchase_date"] == "2024-01-01"
        assert mixer["book_value"] == "120.00"
        assert mixer["warranty_status"] == "expiring_soon"
        assert rows[2]["location"] == ""
        assert rows[2]["warranty_status"] == "none"

    def test_formula_cells_escaped(self, snapshot):
        """Test text cells starting with formula characters are neutralized."""
        rows = _parse(CSVExporter().export_items(snapshot, as_of=AS_OF))

        assert rows[1]["name"] == "'=HYPERLINK(\"x\")"
        assert rows[1]["notes"] == "'-2 spare, blades"
        assert rows[1]["price"] == "15.50"

    def test_subset_and_delimiter(self, snapshot):
        """Test exporting selected items with a custom delimiter."""
        text = CSVExporter(delimiter=";", float_precision=1).export_items(
            snapshot, items=snapshot.items[2:], as_of=AS_OF
        )

        rows = _parse(text, delimiter=";")
        assert [row["id"] for row in rows] == ["i3"]
        assert rows[0]["purchase_price"] == "3.0"

    def test_invalid_delimiter(self):
        """Test multi-character delimiters are refused."""
        with pytest.raises(ValueError):
            CSVExporter(delimiter="||")


class TestRollupExport:
    """Tests for location rollup rows."""

    def test_rows_in_tree_order(self, snapshot):
        """Test one row per location, unreachable locations last."""
        rows = _parse(CSVExporter().export_location_rollups(snapshot, as_of=AS_OF))

        assert [row["location_id"] for row in rows] == [
            "house",
            "kitchen",
            "pantry",
            "shelf",
            "garage",
            "box",
        ]
        assert rows[-1]["unreachable"] == "yes"
        assert rows[0]["unreachable"] == "no"
        assert rows[3]["depth"] == "3"
        assert rows[3]["path"] == "House > Kitchen > Pantry > Top Shelf"

    def test_rollup_values(self, snapshot):
        """Test direct and total figures per location."""
        rows = {row["location_id"]: row for row in _parse(
            CSVExporter().export_location_rollups(snapshot, as_of=AS_OF)
        )}

        assert rows["house"]["item_count"] == "1"
        assert rows["house"]["direct_item_count"] == "0"
        assert rows["house"]["total_value"] == "240.00"
        assert rows["house"]["total_book_value"] == "120.00"
        assert rows["garage"]["direct_value"] == "15.50"
        assert rows["garage"]["total_book_value"] == "0.00"
        assert rows["garage"]["in_cycle"] == "no"

    def test_cycle_flag(self):
        """Test cycle participants are flagged."""
        snapshot = InventorySnapshot(
            locations=[loc("a", "A", parent_id="b"), loc("b", "B", parent_id="a")]
        )

        rows = _parse(CSVExporter().export_location_rollups(snapshot, as_of=AS_OF))

        assert [(row["location_id"], row["in_cycle"]) for row in rows] == [
            ("a", "yes"),
            ("b", "yes"),
        ]


class TestFileOutput:
    """Tests for writing files."""

    def test_writes_file_atomically(self, snapshot, tmp_path):
        """Test the CSV lands at the target path with no temp files left."""
        target = tmp_path / "exports" / "items.csv"

        result = CSVExporter().export_items(snapshot, path=target, as_of=AS_OF)

        assert result == target
        assert _parse(target.read_text(encoding="utf-8"))[0]["id"] == "i1"
        assert list(target.parent.glob("*.tmp")) == []

    def test_unwritable_target(self, snapshot, tmp_path):
        """Test OS errors surface as ExportError."""
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")

        with pytest.raises(ExportError):
            CSVExporter().export_location_rollups(snapshot, path=blocker / "out.csv")
