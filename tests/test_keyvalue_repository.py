# ==============================================================================
# KEY-VALUE REPOSITORY TESTS
# ==============================================================================
# Index record maintenance in the single-table layout
# ==============================================================================

from decimal import Decimal

import pytest
import pytest_asyncio

from product_api.core.exceptions import (
    AlreadyExistsError,
    AuthorizationError,
    ConcurrentModificationError,
    NotFoundError,
)
from product_api.database.keyvalue import MemoryKeyValueTable, make_key
from product_api.database.repositories.keyvalue import (
    KeyValueProductRepository,
    KeyValueUserRepository,
    category_index_key,
    email_key,
    owner_index_key,
    product_key,
    user_key,
)
from product_api.schemas.product import ProductCreate
from product_api.schemas.user import UserCreate


class RacingTable(MemoryKeyValueTable):
    """Memory table that applies one foreign patch just before the next transaction."""

    def __init__(self) -> None:
        super().__init__("racing")
        self.race = None

    async def transact_write(self, operations):
        if self.race is not None:
            key, fields = self.race
            self.race = None
            await self.update_item(key, fields)
        await super().transact_write(operations)


@pytest_asyncio.fixture
async def table():
    table = RacingTable()
    await table.connect()
    yield table
    await table.disconnect()


@pytest.fixture
def users(table):
    return KeyValueUserRepository(table)


@pytest.fixture
def products(table):
    return KeyValueProductRepository(table)


@pytest_asyncio.fixture
async def owner(users):
    return await users.create(UserCreate(email="owner@example.com", password="SecurePass123"))


def new_product(**fields) -> ProductCreate:
    data = {"name": "Lamp", "price": Decimal("9.5"), "category": "home"}
    data.update(fields)
    return ProductCreate(**data)


class TestUsers:
    """Tests for user records and the email index."""

    @pytest.mark.asyncio
    async def test_create_writes_profile_and_email_index(self, table, users, owner):
        profile = await table.get_item(user_key(owner.id))
        index = await table.get_item(email_key("owner@example.com", owner.id))

        assert profile["email"] == "owner@example.com"
        assert profile["password"] != "SecurePass123"
        assert index == {**email_key("owner@example.com", owner.id), "id": owner.id}
        assert "firstName" not in profile

    @pytest.mark.asyncio
    async def test_duplicate_email(self, table, users, owner):
        before = len(table)

        with pytest.raises(AlreadyExistsError):
            await users.create(UserCreate(email="OWNER@example.com", password="OtherPass123"))

        assert len(table) == before

    @pytest.mark.asyncio
    async def test_credentials(self, users, owner):
        assert (await users.validate_credentials("owner@example.com", "SecurePass123")).id == owner.id
        assert await users.validate_credentials("owner@example.com", "WrongPass123") is None
        assert await users.validate_credentials("nobody@example.com", "SecurePass123") is None

    @pytest.mark.asyncio
    async def test_update_clears_optional_fields(self, table, users, owner):
        await users.update(owner.id, {"first_name": "Ann"})
        updated = await users.update(owner.id, {"first_name": None, "email": "x@example.com"})

        assert updated.first_name is None
        assert updated.email == "owner@example.com"
        assert "firstName" not in await table.get_item(user_key(owner.id))

    @pytest.mark.asyncio
    async def test_update_missing(self, users):
        with pytest.raises(NotFoundError):
            await users.update("ghost", {"first_name": "x"})

    @pytest.mark.asyncio
    async def test_delete_removes_email_index(self, table, users, owner):
        await users.delete(owner.id)

        assert len(table) == 0
        assert await users.find_by_email("owner@example.com") is None


class TestProducts:
    """Tests for product records and their index records."""

    @pytest.mark.asyncio
    async def test_create_writes_indexes(self, table, products, owner):
        product = await products.create(new_product(), owner.id)

        stored = await table.get_item(product_key(product.id))
        assert stored["price"] == "9.50"
        assert stored["userId"] == owner.id
        assert await table.get_item(owner_index_key(owner.id, product.id)) is not None
        assert await table.get_item(category_index_key("home", product.id)) is not None

    @pytest.mark.asyncio
    async def test_create_without_category(self, table, products, owner):
        product = await products.create(new_product(category=None), owner.id)

        assert await table.query("CATEGORY#home") == []
        assert "category" not in await table.get_item(product_key(product.id))

    @pytest.mark.asyncio
    async def test_create_for_missing_owner_writes_nothing(self, table, products):
        with pytest.raises(NotFoundError):
            await products.create(new_product(), "ghost")

        assert len(table) == 0

    @pytest.mark.asyncio
    async def test_dangling_index_is_skipped(self, table, products, owner):
        kept = await products.create(new_product(name="Kept"), owner.id)
        lost = await products.create(new_product(name="Lost"), owner.id)
        await table.delete_item(product_key(lost.id))

        by_owner = await products.find_by_user(owner.id)
        by_category = await products.find_by_category("home")

        assert [p.id for p in by_owner] == [kept.id]
        assert [p.id for p in by_category] == [kept.id]

    @pytest.mark.asyncio
    async def test_list_skips_non_product_records(self, products, owner):
        created = [await products.create(new_product(name=f"P{i}"), owner.id) for i in range(3)]

        page = await products.list(limit=100)

        assert page.next_cursor is None
        assert page.total is None
        assert {p.id for p in page.items} == {p.id for p in created}

    @pytest.mark.asyncio
    async def test_category_move(self, table, products, owner):
        product = await products.create(new_product(), owner.id)

        updated = await products.update(product.id, {"category": "office"}, owner.id)

        assert updated.category == "office"
        assert await table.get_item(category_index_key("home", product.id)) is None
        assert await table.get_item(category_index_key("office", product.id)) is not None

    @pytest.mark.asyncio
    async def test_update_ignores_protected_fields(self, products, owner):
        product = await products.create(new_product(), owner.id)

        updated = await products.update(
            product.id,
            {"user_id": "thief", "id": "other", "pk": "X", "price": Decimal("3")},
            owner.id,
        )

        assert updated.user_id == owner.id
        assert updated.id == product.id
        assert updated.price == Decimal("3.00")

    @pytest.mark.asyncio
    async def test_update_not_owner(self, users, products, owner):
        other = await users.create(UserCreate(email="other@example.com", password="SecurePass123"))
        product = await products.create(new_product(), owner.id)

        with pytest.raises(AuthorizationError):
            await products.update(product.id, {"name": "Mine"}, other.id)
        with pytest.raises(AuthorizationError):
            await products.delete(product.id, other.id)

    @pytest.mark.asyncio
    async def test_concurrent_category_change(self, table, products, owner):
        product = await products.create(new_product(), owner.id)
        table.race = (product_key(product.id), {"category": "garage"})

        with pytest.raises(ConcurrentModificationError):
            await products.update(product.id, {"category": "office"}, owner.id)

        assert await table.get_item(category_index_key("office", product.id)) is None
        assert (await table.get_item(product_key(product.id)))["category"] == "garage"

    @pytest.mark.asyncio
    async def test_delete_removes_indexes(self, table, products, owner):
        product = await products.create(new_product(), owner.id)
        before = len(table)

        await products.delete(product.id, owner.id)

        assert len(table) == before - 3
        assert await table.get_item(owner_index_key(owner.id, product.id)) is None
        assert await table.get_item(category_index_key("home", product.id)) is None
        assert await table.get_item(make_key(f"PRODUCT#{product.id}", f"DETAILS#{product.id}")) is None

    @pytest.mark.asyncio
    async def test_delete_missing(self, products, owner):
        with pytest.raises(NotFoundError):
            await products.delete("ghost", owner.id)
