# ==============================================================================
# RELATIONAL REPOSITORY TESTS
# ==============================================================================
# Keyset pagination and integrity error mapping on SQLite
# ==============================================================================

from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from product_api.core.exceptions import NotFoundError
from product_api.database.adapters import RelationalAdapter
from product_api.domain_models.user import User
from product_api.schemas.product import ProductCreate
from product_api.schemas.user import UserCreate


@pytest_asyncio.fixture
async def adapter(tmp_path):
    adapter = RelationalAdapter(database_url=f"sqlite+aiosqlite:///{tmp_path / 'repo.db'}")
    await adapter.connect()
    yield adapter
    await adapter.disconnect()


@pytest_asyncio.fixture
async def owner(adapter):
    return await adapter.users.create(
        UserCreate(email="owner@example.com", password="SecurePass123")
    )


def new_product(**fields) -> ProductCreate:
    data = {"name": "Lamp", "price": Decimal("9.5"), "category": "home"}
    data.update(fields)
    return ProductCreate(**data)


class TestListing:
    """Tests for keyset pagination."""

    @pytest.mark.asyncio
    async def test_pages_follow_last_row(self, adapter, owner):
        created = [
            await adapter.products.create(new_product(name=f"L{i}"), owner.id)
            for i in range(5)
        ]

        first = await adapter.products.list(limit=2)
        second = await adapter.products.list(limit=2, cursor=first.next_cursor)
        third = await adapter.products.list(limit=2, cursor=second.next_cursor)

        ids = [p.id for page in (first, second, third) for p in page.items]
        assert ids == [p.id for p in reversed(created)]
        assert third.next_cursor is None
        assert first.total == 5

    @pytest.mark.asyncio
    async def test_exact_fit_has_no_next_page(self, adapter, owner):
        for i in range(2):
            await adapter.products.create(new_product(name=f"E{i}"), owner.id)

        page = await adapter.products.list(limit=2)

        assert len(page.items) == 2
        assert page.next_cursor is None

    @pytest.mark.asyncio
    async def test_insert_does_not_shift_later_pages(self, adapter, owner):
        for i in range(4):
            await adapter.products.create(new_product(name=f"S{i}"), owner.id)

        first = await adapter.products.list(limit=2)
        second = await adapter.products.list(limit=2, cursor=first.next_cursor)
        await adapter.products.create(new_product(name="Late"), owner.id)
        replay = await adapter.products.list(limit=2, cursor=first.next_cursor)

        assert [p.id for p in replay.items] == [p.id for p in second.items]
        assert replay.total == 5


class TestCreate:
    """Tests for product creation failures."""

    @pytest.mark.asyncio
    async def test_missing_owner(self, adapter):
        with pytest.raises(NotFoundError):
            await adapter.products.create(new_product(), "no-such-user")

    @pytest.mark.asyncio
    async def test_owner_removed_before_insert(self, adapter, monkeypatch):
        """The foreign key rejects the row once the owner lookup has passed."""
        real_get = AsyncSession.get

        async def stale_get(self, entity, ident, **kwargs):
            if entity is User:
                return User(id=ident, email="gone@example.com", password="x")
            return await real_get(self, entity, ident, **kwargs)

        monkeypatch.setattr(AsyncSession, "get", stale_get)

        with pytest.raises(NotFoundError) as exc_info:
            await adapter.products.create(new_product(), "deleted-user")

        assert exc_info.value.message == "User not found"
        assert (await adapter.products.list(limit=10)).total == 0
