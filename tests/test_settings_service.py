"""Tests for property and category settings."""

import pytest
from conftest import FakeBackendClient

from models.inventory import InventoryCategory
from services import SettingsService
from utils.exceptions import NotFoundError, ValidationError


@pytest.fixture
def client():
    return FakeBackendClient(
        tables={
            "properties": [{"id": "prop-1", "name": "Home", "user_id": "user-1"}],
            "categories": [
                {"id": "c1", "name": "Tools", "property_id": "prop-1"},
                {"id": "c2", "name": "Kitchenware", "property_id": "prop-1"},
                {"id": "c3", "name": "Boats", "property_id": "prop-2"},
            ],
            "items": [
                {"id": "i1", "category_id": "c1", "property_id": "prop-1"},
                {"id": "i2", "category": "Kitchenware", "property_id": "prop-1"},
            ],
        }
    )


@pytest.fixture
def service(client):
    return SettingsService(client)


def _category(category_id, name, property_id="prop-1"):
    return InventoryCategory(id=category_id, name=name, property_id=property_id)


class TestProperty:
    """Tests for property settings."""

    @pytest.mark.asyncio
    async def test_get_property_for_signed_in_user(self, service):
        """Test the signed-in user's property is returned."""
        prop = await service.get_property()

        assert prop.id == "prop-1"

    @pytest.mark.asyncio
    async def test_get_property_missing(self, service):
        """Test users without a property get NotFoundError."""
        with pytest.raises(NotFoundError):
            await service.get_property("user-9")

    @pytest.mark.asyncio
    async def test_update_property_trims(self, service):
        """Test name and address are trimmed and blank addresses cleared."""
        prop = await service.update_property("prop-1", "  Main House ", "   ")

        assert prop.name == "Main House"
        assert prop.address is None

    @pytest.mark.asyncio
    async def test_update_property_requires_name(self, service):
        """Test a blank property name is refused."""
        with pytest.raises(ValidationError):
            await service.update_property("prop-1", " ")


class TestCategories:
    """Tests for category management."""

    @pytest.mark.asyncio
    async def test_list_is_scoped_to_property(self, service):
        """Test categories of other properties are not listed."""
        names = [c.name for c in await service.list_categories("prop-1")]

        assert sorted(names) == ["Kitchenware", "Tools"]

    @pytest.mark.asyncio
    async def test_create_category(self, service):
        """Test a new trimmed category is stored."""
        category = await service.create_category("prop-1", " Garden ")

        assert category.name == "Garden"
        assert category.property_id == "prop-1"

    @pytest.mark.asyncio
    async def test_create_duplicate_case_insensitive(self, service):
        """Test names are unique within a property regardless of case."""
        with pytest.raises(ValidationError, match="already exists"):
            await service.create_category("prop-1", "tools")

    @pytest.mark.asyncio
    async def test_same_name_in_other_property(self, service):
        """Test uniqueness does not cross properties."""
        category = await service.create_category("prop-1", "Boats")

        assert category.name == "Boats"

    @pytest.mark.asyncio
    async def test_rename_unchanged_is_noop(self, service, client):
        """Test renaming to the same name does not write."""
        tools = _category("c1", "Tools")

        assert await service.rename_category(tools, " Tools ") is tools
        assert not [call for call in client.calls if call[0] == "update"]

    @pytest.mark.asyncio
    async def test_rename_case_only_change(self, service):
        """Test a category may change the case of its own name."""
        renamed = await service.rename_category(_category("c1", "Tools"), "TOOLS")

        assert renamed.name == "TOOLS"

    @pytest.mark.asyncio
    async def test_rename_to_existing_rejected(self, service):
        """Test renaming onto another category's name is refused."""
        with pytest.raises(ValidationError):
            await service.rename_category(_category("c1", "Tools"), "kitchenware")

    @pytest.mark.asyncio
    async def test_delete_in_use_by_id(self, service):
        """Test categories referenced by id cannot be deleted."""
        with pytest.raises(ValidationError, match="1 item"):
            await service.delete_category(_category("c1", "Tools"))

    @pytest.mark.asyncio
    async def test_delete_in_use_by_legacy_name(self, service):
        """Test categories referenced by legacy text cannot be deleted."""
        with pytest.raises(ValidationError):
            await service.delete_category(_category("c2", "Kitchenware"))

    @pytest.mark.asyncio
    async def test_delete_unused(self, service, client):
        """Test an unused category is removed."""
        garden = await service.create_category("prop-1", "Garden")

        await service.delete_category(garden)

        assert [c["id"] for c in client.tables["categories"]] == ["c1", "c2", "c3"]
