# ==============================================================================
# KEY-VALUE REPOSITORIES - Single-Table Users and Products
# ==============================================================================
# Every entity is a primary record plus derived index records holding
# only the entity id. A primary record and its index records are always
# written, moved and removed together in one table transaction.
#
#   USER#<id>       / PROFILE#<id>   user primary record
#   EMAIL#<email>   / USER#<id>      email index (partition-unique)
#   PRODUCT#<id>    / DETAILS#<id>   product primary record
#   USER#<owner>    / PRODUCT#<id>   owner index
#   CATEGORY#<name> / PRODUCT#<id>   category index
# ==============================================================================

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import uuid4

from pydantic.alias_generators import to_camel

from product_api.core.constants import ErrorMessages, KeyPrefixes, UserRoles
from product_api.core.exceptions import (
    AlreadyExistsError,
    AuthorizationError,
    ConcurrentModificationError,
    NotFoundError,
    TransactionError,
)
from product_api.core.security import hash_password, verify_password
from product_api.database.keyvalue.cursor import decode_last_key, encode_last_key
from product_api.database.keyvalue.table import (
    ConditionCheck,
    ConditionFailedError,
    Delete,
    Item,
    Key,
    KeyValueTable,
    Operation,
    Put,
    TransactionCanceledError,
    Update,
    make_key,
)
from product_api.database.repositories.base_repository import (
    PRODUCT_PROTECTED_FIELDS,
    USER_PROTECTED_FIELDS,
    ProductRepository,
    UserRepository,
    strip_protected,
)
from product_api.schemas.product import (
    ProductCreate,
    ProductPage,
    ProductRecord,
    quantize_price,
)
from product_api.schemas.user import UserCreate, UserRecord, normalize_email

logger = logging.getLogger(__name__)

# Key attributes are never patchable either
KEY_FIELDS = frozenset({"pk", "sk"})


# ==============================================================================
# ITEM HELPERS
# ==============================================================================

def now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def to_attribute(value: Any) -> Any:
    """Convert a Python value to its stored form."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(quantize_price(value))
    return value


def compact(item: Item) -> Item:
    """Drop attributes without a value."""
    return {name: value for name, value in item.items() if value is not None}


def build_patch(updates: Dict[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
    """
    Split a snake_case patch into attributes to set and attributes to remove.

    Returns:
        Tuple of (camelCase set_fields, camelCase remove_fields)
    """
    set_fields: Dict[str, Any] = {}
    remove_fields: List[str] = []
    for name, value in updates.items():
        attr = to_camel(name)
        if value is None:
            remove_fields.append(attr)
        else:
            set_fields[attr] = to_attribute(value)
    return set_fields, remove_fields


def user_key(user_id: str) -> Key:
    return make_key(f"{KeyPrefixes.USER}{user_id}", f"{KeyPrefixes.PROFILE}{user_id}")


def email_key(email: str, user_id: str) -> Key:
    return make_key(f"{KeyPrefixes.EMAIL}{email}", f"{KeyPrefixes.USER}{user_id}")


def product_key(product_id: str) -> Key:
    return make_key(f"{KeyPrefixes.PRODUCT}{product_id}", f"{KeyPrefixes.DETAILS}{product_id}")


def owner_index_key(user_id: str, product_id: str) -> Key:
    return make_key(f"{KeyPrefixes.USER}{user_id}", f"{KeyPrefixes.PRODUCT}{product_id}")


def category_index_key(category: str, product_id: str) -> Key:
    return make_key(f"{KeyPrefixes.CATEGORY}{category}", f"{KeyPrefixes.PRODUCT}{product_id}")


def index_item(key: Key, entity_id: str) -> Item:
    """An index record: the key plus the id it points at, nothing else."""
    return {**key, "id": entity_id}


def is_product_record(item: Item) -> bool:
    """Scan filter selecting product primary records."""
    return (
        item.get("pk", "").startswith(KeyPrefixes.PRODUCT)
        and item.get("sk", "").startswith(KeyPrefixes.DETAILS)
    )


# ==============================================================================
# USER REPOSITORY
# ==============================================================================

class KeyValueUserRepository(UserRepository):
    """
    Users in the single table.

    Registration writes the profile and the email index in one
    transaction. The email index is partition-unique, so two concurrent
    registrations with one email cannot both commit.
    """

    def __init__(self, table: KeyValueTable) -> None:
        self._table = table

    @staticmethod
    def _to_record(item: Item) -> UserRecord:
        # The password attribute is ignored by the record schema
        return UserRecord.model_validate(item)

    async def _get_profile(self, user_id: str) -> Optional[Item]:
        return await self._table.get_item(user_key(user_id))

    async def _get_profile_by_email(self, email: str) -> Optional[Item]:
        email = normalize_email(email)
        index = await self._table.query(
            f"{KeyPrefixes.EMAIL}{email}",
            sk_prefix=KeyPrefixes.USER,
        )
        for entry in index:
            profile = await self._get_profile(entry["id"])
            if profile is not None:
                return profile
        return None

    async def create(self, data: UserCreate) -> UserRecord:
        """
        Register a user.

        Raises:
            AlreadyExistsError: If the email is already registered
        """
        user_id = str(uuid4())
        email = normalize_email(data.email)
        now = now_iso()

        profile = compact({
            **user_key(user_id),
            "id": user_id,
            "email": email,
            "password": hash_password(data.password),
            "firstName": data.first_name,
            "lastName": data.last_name,
            "role": UserRoles.USER,
            "isActive": True,
            "createdAt": now,
            "updatedAt": now,
        })

        try:
            await self._table.transact_write([
                Put(profile, must_not_exist=True),
                Put(
                    index_item(email_key(email, user_id), user_id),
                    must_not_exist=True,
                    unique_partition=True,
                ),
            ])
        except TransactionCanceledError:
            raise AlreadyExistsError(
                message=ErrorMessages.EMAIL_TAKEN,
                resource_type="User",
            )

        logger.info(f"Created user {user_id}")
        return self._to_record(profile)

    async def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        item = await self._get_profile(user_id)
        return self._to_record(item) if item else None

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        item = await self._get_profile_by_email(email)
        return self._to_record(item) if item else None

    async def validate_credentials(self, email: str, password: str) -> Optional[UserRecord]:
        item = await self._get_profile_by_email(email)
        if item is None or not verify_password(password, item["password"]):
            return None
        return self._to_record(item)

    async def update(self, user_id: str, updates: Dict[str, Any]) -> UserRecord:
        """
        Patch a profile.

        Raises:
            NotFoundError: If the user does not exist
        """
        updates = strip_protected(updates, USER_PROTECTED_FIELDS | KEY_FIELDS)
        password = updates.pop("password", None)

        set_fields, remove_fields = build_patch(updates)
        if password:
            set_fields["password"] = hash_password(password)
        set_fields["updatedAt"] = now_iso()

        try:
            item = await self._table.update_item(
                user_key(user_id),
                set_fields,
                remove_fields,
                expected={"id": user_id},
            )
        except ConditionFailedError:
            raise NotFoundError(
                message=ErrorMessages.USER_NOT_FOUND,
                resource_type="User",
                resource_id=user_id,
            )
        return self._to_record(item)

    async def update_last_login(self, user_id: str) -> None:
        try:
            await self._table.update_item(
                user_key(user_id),
                {"lastLogin": now_iso()},
                expected={"id": user_id},
            )
        except ConditionFailedError:
            raise NotFoundError(
                message=ErrorMessages.USER_NOT_FOUND,
                resource_type="User",
                resource_id=user_id,
            )

    async def delete(self, user_id: str) -> None:
        """
        Remove a profile and its email index together.

        Raises:
            NotFoundError: If the user does not exist
        """
        profile = await self._get_profile(user_id)
        if profile is None:
            raise NotFoundError(
                message=ErrorMessages.USER_NOT_FOUND,
                resource_type="User",
                resource_id=user_id,
            )

        try:
            await self._table.transact_write([
                Delete(user_key(user_id), expected={"email": profile["email"]}),
                Delete(email_key(profile["email"], user_id)),
            ])
        except TransactionCanceledError:
            raise NotFoundError(
                message=ErrorMessages.USER_NOT_FOUND,
                resource_type="User",
                resource_id=user_id,
            )
        logger.info(f"Deleted user {user_id}")


# ==============================================================================
# PRODUCT REPOSITORY
# ==============================================================================

class KeyValueProductRepository(ProductRepository):
    """
    Products in the single table.

    Owner and category lookups go through index records; an index record
    whose product is gone is skipped, never returned half-resolved.
    Listing scans the whole table and keeps product primary records, so
    a page may hold fewer items than requested.
    """

    def __init__(self, table: KeyValueTable) -> None:
        self._table = table

    @staticmethod
    def _to_record(item: Item) -> ProductRecord:
        return ProductRecord.model_validate(item)

    async def _get_item(self, product_id: str) -> Optional[Item]:
        return await self._table.get_item(product_key(product_id))

    async def _resolve(self, index: Sequence[Item]) -> List[ProductRecord]:
        """Resolve index records to products, dropping dangling ones."""
        items = await asyncio.gather(*(self._get_item(entry["id"]) for entry in index))
        dangling = sum(1 for item in items if item is None)
        if dangling:
            logger.debug(f"Skipped {dangling} dangling product index record(s)")

        products = [self._to_record(item) for item in items if item is not None]
        products.sort(key=lambda p: p.created_at, reverse=True)
        return products

    async def _get_owned(self, product_id: str, user_id: str, forbidden: str) -> Item:
        """
        Read a product for mutation by ``user_id``.

        Raises:
            NotFoundError: If the product does not exist
            AuthorizationError: If ``user_id`` is not the owner
        """
        current = await self._get_item(product_id)
        if current is None:
            raise NotFoundError(
                message=ErrorMessages.PRODUCT_NOT_FOUND,
                resource_type="Product",
                resource_id=product_id,
            )
        if current["userId"] != user_id:
            raise AuthorizationError(message=forbidden)
        return current

    async def create(self, data: ProductCreate, user_id: str) -> ProductRecord:
        """
        Create a product and its index records.

        Raises:
            NotFoundError: If the owner does not exist
        """
        product_id = str(uuid4())
        now = now_iso()

        product = compact({
            **product_key(product_id),
            "id": product_id,
            "name": data.name,
            "description": data.description,
            "price": to_attribute(data.price),
            "imageUrl": data.image_url,
            "category": data.category,
            "stock": data.stock,
            "isActive": True,
            "userId": user_id,
            "createdAt": now,
            "updatedAt": now,
        })

        operations: List[Operation] = [
            ConditionCheck(user_key(user_id), expected={"id": user_id}),
            Put(product, must_not_exist=True),
            Put(index_item(owner_index_key(user_id, product_id), product_id), must_not_exist=True),
        ]
        if data.category:
            operations.append(
                Put(
                    index_item(category_index_key(data.category, product_id), product_id),
                    must_not_exist=True,
                )
            )

        try:
            await self._table.transact_write(operations)
        except TransactionCanceledError as e:
            if 0 in e.failed_indexes:
                raise NotFoundError(
                    message=ErrorMessages.USER_NOT_FOUND,
                    resource_type="User",
                    resource_id=user_id,
                )
            raise TransactionError(message="Product id collision", details=e.details)

        logger.info(f"Created product {product_id} for user {user_id}")
        return self._to_record(product)

    async def find_by_id(self, product_id: str) -> Optional[ProductRecord]:
        item = await self._get_item(product_id)
        return self._to_record(item) if item else None

    async def find_by_user(self, user_id: str) -> List[ProductRecord]:
        index = await self._table.query(
            f"{KeyPrefixes.USER}{user_id}",
            sk_prefix=KeyPrefixes.PRODUCT,
        )
        return await self._resolve(index)

    async def find_by_category(self, category: str) -> List[ProductRecord]:
        index = await self._table.query(
            f"{KeyPrefixes.CATEGORY}{category}",
            sk_prefix=KeyPrefixes.PRODUCT,
        )
        return await self._resolve(index)

    async def list(self, limit: int, cursor: Optional[str] = None) -> ProductPage:
        """
        One scan step over the whole table, filtered to products.

        Raises:
            BadRequestError: If the cursor is invalid
        """
        page = await self._table.scan(
            limit=limit,
            exclusive_start_key=decode_last_key(cursor),
            predicate=is_product_record,
        )
        return ProductPage(
            items=[self._to_record(item) for item in page.items],
            next_cursor=encode_last_key(page.last_evaluated_key),
        )

    async def update(
        self,
        product_id: str,
        updates: Dict[str, Any],
        user_id: str,
    ) -> ProductRecord:
        """
        Patch a product, moving its category index when the category changes.

        The primary update is conditioned on the owner and on the category
        read here, so a concurrent category change cannot leave a stale
        index record behind.

        Raises:
            NotFoundError: If the product does not exist
            AuthorizationError: If ``user_id`` is not the owner
            ConcurrentModificationError: If the product changed meanwhile
        """
        current = await self._get_owned(
            product_id, user_id, ErrorMessages.PRODUCT_UPDATE_FORBIDDEN
        )

        updates = strip_protected(updates, PRODUCT_PROTECTED_FIELDS | KEY_FIELDS)
        set_fields, remove_fields = build_patch(updates)
        set_fields["updatedAt"] = now_iso()

        old_category = current.get("category")
        new_category = updates["category"] if "category" in updates else old_category

        operations: List[Operation] = [
            Update(
                product_key(product_id),
                set_fields=set_fields,
                remove_fields=remove_fields,
                expected={"userId": user_id, "category": old_category},
            ),
        ]
        if new_category != old_category:
            if old_category:
                operations.append(Delete(category_index_key(old_category, product_id)))
            if new_category:
                operations.append(
                    Put(index_item(category_index_key(new_category, product_id), product_id))
                )
            logger.debug(
                f"Moving product {product_id} category index: "
                f"{old_category!r} -> {new_category!r}"
            )

        try:
            await self._table.transact_write(operations)
        except TransactionCanceledError:
            raise ConcurrentModificationError(
                message=ErrorMessages.PRODUCT_MODIFIED,
                resource_type="Product",
            )

        updated = await self._get_item(product_id)
        if updated is None:
            raise NotFoundError(
                message=ErrorMessages.PRODUCT_NOT_FOUND,
                resource_type="Product",
                resource_id=product_id,
            )
        return self._to_record(updated)

    async def delete(self, product_id: str, user_id: str) -> None:
        """
        Remove a product together with its owner and category index records.

        Raises:
            NotFoundError: If the product does not exist
            AuthorizationError: If ``user_id`` is not the owner
            ConcurrentModificationError: If the product changed meanwhile
        """
        current = await self._get_owned(
            product_id, user_id, ErrorMessages.PRODUCT_DELETE_FORBIDDEN
        )
        category = current.get("category")

        operations: List[Operation] = [
            Delete(
                product_key(product_id),
                expected={"userId": user_id, "category": category},
            ),
            Delete(owner_index_key(user_id, product_id)),
        ]
        if category:
            operations.append(Delete(category_index_key(category, product_id)))

        try:
            await self._table.transact_write(operations)
        except TransactionCanceledError:
            raise ConcurrentModificationError(
                message=ErrorMessages.PRODUCT_MODIFIED,
                resource_type="Product",
            )
        logger.info(f"Deleted product {product_id}")
