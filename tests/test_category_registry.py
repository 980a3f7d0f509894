"""
Unit tests for CategoryRegistry (usage types and anonymization methods)
"""

import pytest

from custodian.errors import NotAuthorized, CategoryNotFound, NotFound
from custodian.services.category_registry import (
    CategoryRegistry, USAGE_TYPES, ANONYMIZATION_METHODS
)


ADMIN = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
OTHER = "ST3NBRSFKX28FQ2ZJ1MAKX58HKHSDGNV5YC7TZ9JZ"


class TestCategoryRegistry:
    """Test suite shared by both category kinds"""

    @pytest.fixture(params=[USAGE_TYPES, ANONYMIZATION_METHODS])
    def registry(self, request, tmp_path):
        return CategoryRegistry(admin=ADMIN, kind=request.param, db_path=str(tmp_path / "categories.db"))

    @pytest.mark.asyncio
    async def test_register_category(self, registry):
        """Test registering a category"""
        result = await registry.register(ADMIN, 1, "Differential Privacy", "Adds noise to data")
        assert result is True

        category = await registry.get(1)
        assert category is not None
        assert category.name == "Differential Privacy"
        assert category.description == "Adds noise to data"
        assert category.active is True

    @pytest.mark.asyncio
    async def test_register_requires_admin(self, registry):
        with pytest.raises(NotAuthorized) as exc_info:
            await registry.register(OTHER, 1, "Research", "Academic research")

        assert exc_info.value.code == 100
        assert await registry.get(1) is None

    @pytest.mark.asyncio
    async def test_register_overwrites_existing(self, registry):
        """Registering an existing id replaces it and reactivates it"""
        await registry.register(ADMIN, 1, "Research", "Academic research")
        await registry.deactivate(ADMIN, 1)

        await registry.register(ADMIN, 1, "Commercial", "Commercial use")

        category = await registry.get(1)
        assert category.name == "Commercial"
        assert category.active is True

    @pytest.mark.asyncio
    async def test_deactivate(self, registry):
        """Deactivated categories remain readable"""
        await registry.register(ADMIN, 1, "Research", "Academic research")

        assert await registry.deactivate(ADMIN, 1) is True

        category = await registry.get(1)
        assert category is not None
        assert category.active is False
        assert await registry.exists(1) is True

    @pytest.mark.asyncio
    async def test_deactivate_nonexistent(self, registry):
        with pytest.raises(CategoryNotFound) as exc_info:
            await registry.deactivate(ADMIN, 999)

        assert exc_info.value.code == 101
        assert isinstance(exc_info.value, NotFound)

    @pytest.mark.asyncio
    async def test_deactivate_checks_admin_first(self, registry):
        with pytest.raises(NotAuthorized):
            await registry.deactivate(OTHER, 999)

    @pytest.mark.asyncio
    async def test_get_unknown_returns_none(self, registry):
        assert await registry.get(42) is None
        assert await registry.exists(42) is False

    @pytest.mark.asyncio
    async def test_out_of_range_category_id(self, registry):
        with pytest.raises(ValueError, match="Invalid"):
            await registry.register(ADMIN, 2 ** 63, "Research", "Academic research")

        assert await registry.exists(2 ** 63) is False
        with pytest.raises(CategoryNotFound):
            await registry.deactivate(ADMIN, 2 ** 63)

    @pytest.mark.asyncio
    async def test_transfer_admin(self, registry):
        await registry.transfer_admin(ADMIN, OTHER)

        with pytest.raises(NotAuthorized):
            await registry.register(ADMIN, 1, "Research", "Academic research")
        assert await registry.register(OTHER, 1, "Research", "Academic research") is True


def test_unknown_kind_rejected(tmp_path):
    with pytest.raises(ValueError, match="Unknown category kind"):
        CategoryRegistry(admin=ADMIN, kind="colours", db_path=str(tmp_path / "c.db"))


def test_default_db_path_per_kind(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    usage_types = CategoryRegistry(admin=ADMIN, kind=USAGE_TYPES)
    methods = CategoryRegistry(admin=ADMIN, kind=ANONYMIZATION_METHODS)

    assert usage_types.db_path == "custodian_usage_types.db"
    assert methods.db_path == "custodian_anonymization_methods.db"
