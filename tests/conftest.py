"""Pytest configuration and shared fixtures."""

import os
import sys
from collections import defaultdict
from pathlib import Path

import pytest

# Add src to Python path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Run Qt in offscreen mode to avoid GUI plugin errors in CI/console runs
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from models.inventory import InventoryItem, InventoryLocation  # noqa: E402
from utils.config import reset_config  # noqa: E402
from utils.metrics import reset_metrics  # noqa: E402


def loc(location_id, name=None, parent_id=None, sort_order=None, property_id="prop-1"):
    """Shorthand for building a location record."""
    return InventoryLocation(
        id=location_id,
        name=name or location_id,
        parent_id=parent_id,
        sort_order=sort_order,
        property_id=property_id,
    )


def item(item_id, location_id=None, **fields):
    """Shorthand for building an item record."""
    return InventoryItem(id=item_id, name=fields.pop("name", item_id), location_id=location_id, **fields)


def _format(value):
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class FakeBackendClient:
    """In-memory stand-in for BackendClient with PostgREST filter semantics."""

    def __init__(self, tables=None, user_id="user-1"):
        self.tables = defaultdict(list)
        for name, rows in (tables or {}).items():
            self.tables[name] = [dict(row) for row in rows]
        self.current_user_id = user_id
        self.uploads = {}
        self.calls = []
        self._next_id = 1

    @staticmethod
    def _matches(row, filters):
        for column, expression in (filters or {}).items():
            op, _, value = expression.partition(".")
            actual = _format(row.get(column))
            if op == "eq" and actual != value:
                return False
            if op == "in" and actual not in value.strip("()").split(","):
                return False
        return True

    async def select(self, table, columns="*", filters=None, order=None, limit=None):
        self.calls.append(("select", table, dict(filters or {})))
        rows = [dict(r) for r in self.tables[table] if self._matches(r, filters)]
        return rows[:limit] if limit is not None else rows

    async def insert(self, table, rows):
        self.calls.append(("insert", table, rows))
        rows = [rows] if isinstance(rows, dict) else rows
        stored = []
        for row in rows:
            row = dict(row)
            if "id" not in row:
                row["id"] = f"{table}-{self._next_id}"
                self._next_id += 1
            self.tables[table].append(row)
            stored.append(dict(row))
        return stored

    async def update(self, table, values, filters):
        self.calls.append(("update", table, dict(values), dict(filters)))
        updated = []
        for row in self.tables[table]:
            if self._matches(row, filters):
                row.update(values)
                updated.append(dict(row))
        return updated

    async def delete(self, table, filters):
        self.calls.append(("delete", table, dict(filters)))
        kept, removed = [], []
        for row in self.tables[table]:
            (removed if self._matches(row, filters) else kept).append(row)
        self.tables[table] = kept
        return [dict(r) for r in removed]

    async def count(self, table, filters=None):
        return sum(1 for r in self.tables[table] if self._matches(r, filters))

    async def upload_object(self, bucket, path, content, content_type="application/octet-stream"):
        self.uploads[(bucket, path)] = (content, content_type)
        return path

    def public_url(self, bucket, path):
        return f"https://files.example.test/{bucket}/{path}"

    async def close(self):
        pass


@pytest.fixture(autouse=True)
def _isolated_state(tmp_path, monkeypatch):
    """Fresh config and metrics per test, with data written under tmp_path."""
    monkeypatch.setenv("APP_DATA_DIR", str(tmp_path / "data"))
    reset_config()
    reset_metrics()
    yield
    reset_config()
    reset_metrics()


@pytest.fixture
def kitchen_tree():
    """House > Kitchen > Pantry > Top Shelf, plus a Garage root."""
    return [
        loc("house", "House", sort_order=0),
        loc("kitchen", "Kitchen", parent_id="house", sort_order=0),
        loc("pantry", "Pantry", parent_id="kitchen", sort_order=0),
        loc("shelf", "Top Shelf", parent_id="pantry", sort_order=0),
        loc("garage", "Garage", sort_order=1),
    ]


@pytest.fixture
def fake_client():
    return FakeBackendClient()
