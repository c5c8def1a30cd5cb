"""Tests for LocationService reads and guarded tree edits."""

from datetime import date

import pytest
from conftest import FakeBackendClient

from models.app import InventorySnapshot
from services import LocationService
from utils.exceptions import BackendError, NotFoundError, ValidationError


def _location_rows():
    return [
        {"id": "house", "name": "House", "parent_id": None, "sort_order": 0, "property_id": "prop-1"},
        {"id": "kitchen", "name": "Kitchen", "parent_id": "house", "sort_order": 0, "property_id": "prop-1"},
        {"id": "pantry", "name": "Pantry", "parent_id": "kitchen", "sort_order": 0, "property_id": "prop-1"},
        {"id": "garage", "name": "Garage", "parent_id": None, "sort_order": 1, "property_id": "prop-1"},
        {"id": "elsewhere", "name": "Other House", "parent_id": None, "sort_order": 0, "property_id": "prop-2"},
    ]


@pytest.fixture
def client():
    return FakeBackendClient(
        tables={
            "properties": [
                {"id": "prop-1", "name": "Home", "user_id": "user-1"},
                {"id": "prop-2", "name": "Cabin", "user_id": "user-2"},
            ],
            "locations": _location_rows(),
            "items": [
                {"id": "i1", "name": "Flour", "location_id": "pantry", "property_id": "prop-1", "purchase_price": 4.0},
                {
                    "id": "i2",
                    "name": "Drill",
                    "location_id": "garage",
                    "property_id": "prop-1",
                    "purchase_price": 120.0,
                    "purchase_date": "2024-01-01",
                    "useful_life_months": 12,
                },
            ],
            "categories": [{"id": "c1", "name": "Tools", "property_id": "prop-1"}],
        }
    )


@pytest.fixture
def service(client):
    return LocationService(client)


def _sort_orders(client):
    return {row["id"]: row["sort_order"] for row in client.tables["locations"]}


class TestLoadSnapshot:
    """Tests for snapshot loading and engine passes."""

    @pytest.mark.asyncio
    async def test_loads_signed_in_users_property(self, service):
        """Test the snapshot holds only the signed-in user's records."""
        snapshot = await service.load_snapshot()

        assert snapshot.property_info.name == "Home"
        assert {location.id for location in snapshot.locations} == {
            "house",
            "kitchen",
            "pantry",
            "garage",
        }
        assert [i.id for i in snapshot.items] == ["i1", "i2"]
        assert [c.name for c in snapshot.categories] == ["Tools"]

    @pytest.mark.asyncio
    async def test_not_signed_in(self):
        """Test loading without a user fails clearly."""
        service = LocationService(FakeBackendClient(user_id=None))

        with pytest.raises(NotFoundError):
            await service.load_snapshot()

    @pytest.mark.asyncio
    async def test_backend_errors_propagate(self, client, service, caplog):
        """Test backend failures are logged and re-raised."""

        async def failing_select(*args, **kwargs):
            raise BackendError("unavailable", status_code=503)

        client.select = failing_select

        with pytest.raises(BackendError):
            await service.load_snapshot("prop-1")
        assert "Failed to load snapshot" in caplog.text

    @pytest.mark.asyncio
    async def test_rollups_and_flatten(self, service):
        """Test engine passes over a loaded snapshot."""
        snapshot = await service.load_snapshot("prop-1")

        rollups = service.compute_rollups(snapshot, as_of=date(2024, 7, 2))
        rows = service.flatten(snapshot, expanded={"house"})

        assert rollups["house"].total_value == 4.0
        assert rollups["house"].item_count == 1
        assert rollups["garage"].total_book_value == pytest.approx(60.0)
        assert [row.location_id for row in rows] == ["house", "kitchen", "garage"]

    def test_index_cached_per_snapshot(self, service):
        """Test the index is rebuilt only when a new snapshot arrives."""
        first = InventorySnapshot()
        second = InventorySnapshot()

        assert service.build_index(first) is service.build_index(first)
        assert service.build_index(second) is not service.build_index(first)


class TestCreateAndRename:
    """Tests for adding and renaming locations."""

    @pytest.mark.asyncio
    async def test_create_appends_sort_order(self, service, client):
        """Test new locations go after every existing one in the property."""
        created = await service.create_location("prop-1", "  Attic ", parent_id="house")

        assert created.name == "Attic"
        assert created.parent_id == "house"
        assert created.sort_order == 4
        assert created.property_id == "prop-1"

    @pytest.mark.asyncio
    async def test_create_requires_name(self, service):
        """Test blank names are rejected."""
        with pytest.raises(ValidationError):
            await service.create_location("prop-1", "   ")

    @pytest.mark.asyncio
    async def test_create_rejects_foreign_parent(self, service, client):
        """Test the parent must belong to the same property."""
        with pytest.raises(ValidationError):
            await service.create_location("prop-1", "Shed", parent_id="elsewhere")

        assert not [call for call in client.calls if call[0] == "insert"]

    @pytest.mark.asyncio
    async def test_rename(self, service):
        """Test renaming trims the new name."""
        renamed = await service.rename_location("garage", " Workshop ")

        assert renamed.name == "Workshop"

    @pytest.mark.asyncio
    async def test_rename_unknown(self, service):
        """Test renaming a missing location."""
        with pytest.raises(NotFoundError):
            await service.rename_location("nope", "Anything")


class TestDelete:
    """Tests for deleting locations."""

    @pytest.mark.asyncio
    async def test_delete_empty_leaf(self, service, client):
        """Test a leaf without items can be deleted."""
        await service.create_location("prop-1", "Closet")
        closet = client.tables["locations"][-1]["id"]

        await service.delete_location(closet)

        assert closet not in _sort_orders(client)

    @pytest.mark.asyncio
    async def test_delete_with_children_rejected(self, service, client):
        """Test a location with children cannot be deleted."""
        with pytest.raises(ValidationError, match="child location"):
            await service.delete_location("kitchen")

        assert "kitchen" in _sort_orders(client)

    @pytest.mark.asyncio
    async def test_delete_with_items_rejected(self, service):
        """Test a location holding items cannot be deleted."""
        with pytest.raises(ValidationError, match="item"):
            await service.delete_location("garage")

    @pytest.mark.asyncio
    async def test_delete_unknown(self, service):
        """Test deleting a missing location."""
        with pytest.raises(NotFoundError):
            await service.delete_location("nope")


class TestMoveAndReorder:
    """Tests for re-parenting and sibling ordering."""

    @pytest.mark.asyncio
    async def test_move_under_new_parent(self, service, client):
        """Test moving appends after the new parent's children."""
        moved = await service.move_location("garage", "house")

        assert moved.parent_id == "house"
        assert moved.sort_order == 1

    @pytest.mark.asyncio
    async def test_move_to_root(self, service):
        """Test a location can become a root."""
        moved = await service.move_location("pantry", None)

        assert moved.parent_id is None
        assert moved.sort_order == 2

    @pytest.mark.asyncio
    async def test_move_under_itself_rejected(self, service):
        """Test a location cannot become its own parent."""
        with pytest.raises(ValidationError, match="itself"):
            await service.move_location("kitchen", "kitchen")

    @pytest.mark.asyncio
    async def test_move_under_descendant_rejected(self, service, client):
        """Test moves that would create a cycle are refused."""
        with pytest.raises(ValidationError, match="descendants"):
            await service.move_location("house", "pantry")

        assert not [call for call in client.calls if call[0] == "update"]

    @pytest.mark.asyncio
    async def test_move_under_unknown_parent_rejected(self, service):
        """Test the new parent must exist in the property."""
        with pytest.raises(ValidationError, match="does not exist"):
            await service.move_location("garage", "elsewhere")

    @pytest.mark.asyncio
    async def test_reorder_siblings(self, service, client):
        """Test list position becomes the stored sort order."""
        await service.reorder_siblings(["garage", "house"])

        orders = _sort_orders(client)
        assert orders["garage"] == 0
        assert orders["house"] == 1

    @pytest.mark.asyncio
    async def test_reorder_rejects_duplicates(self, service):
        """Test duplicate ids in an ordering are refused."""
        with pytest.raises(ValidationError):
            await service.reorder_siblings(["garage", "garage"])
