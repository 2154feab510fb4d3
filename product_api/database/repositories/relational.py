# ==============================================================================
# RELATIONAL REPOSITORIES - SQLAlchemy Users and Products
# ==============================================================================
# Each call runs in one session scope from the adapter: committed on
# success, rolled back on any error.
# ==============================================================================

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError

from product_api.core.constants import ErrorMessages
from product_api.core.exceptions import (
    AlreadyExistsError,
    AuthorizationError,
    BadRequestError,
    NotFoundError,
)
from product_api.core.security import decode_cursor, encode_cursor, hash_password
from product_api.database.repositories.base_repository import (
    PRODUCT_PROTECTED_FIELDS,
    USER_PROTECTED_FIELDS,
    ProductRepository,
    UserRepository,
    strip_protected,
)
from product_api.domain_models.base import utcnow
from product_api.domain_models.product import Product
from product_api.domain_models.user import User
from product_api.schemas.base import ensure_utc
from product_api.schemas.product import (
    ProductCreate,
    ProductPage,
    ProductRecord,
    quantize_price,
)
from product_api.schemas.user import UserCreate, UserRecord, normalize_email

logger = logging.getLogger(__name__)


def encode_position(product: Product) -> str:
    """Signed cursor naming the last product of a page by (created_at, id)."""
    return encode_cursor({"c": ensure_utc(product.created_at).isoformat(), "i": product.id})


def decode_position(cursor: Optional[str]) -> Optional[Tuple[datetime, str]]:
    """
    Recover the (created_at, id) position a cursor points at.

    Raises:
        BadRequestError: If the cursor is invalid
    """
    if not cursor:
        return None
    position = decode_cursor(cursor)
    created_at, product_id = position.get("c"), position.get("i")
    if not isinstance(created_at, str) or not isinstance(product_id, str):
        raise BadRequestError(message=ErrorMessages.INVALID_CURSOR)
    try:
        return ensure_utc(datetime.fromisoformat(created_at)), product_id
    except ValueError:
        raise BadRequestError(message=ErrorMessages.INVALID_CURSOR)


# ==============================================================================
# USER REPOSITORY
# ==============================================================================

class RelationalUserRepository(UserRepository):
    """
    Users as rows of the ``users`` table.

    Email uniqueness is the table's unique constraint; a violation
    surfaces as ``AlreadyExistsError``.
    """

    def __init__(self, adapter) -> None:
        self._adapter = adapter

    @staticmethod
    def _to_record(user: User) -> UserRecord:
        return UserRecord.model_validate(user.to_dict())

    @staticmethod
    def _not_found(user_id: str) -> NotFoundError:
        return NotFoundError(
            message=ErrorMessages.USER_NOT_FOUND,
            resource_type="User",
            resource_id=user_id,
        )

    async def create(self, data: UserCreate) -> UserRecord:
        try:
            async with self._adapter.session() as session:
                user = User(
                    email=normalize_email(data.email),
                    password=hash_password(data.password),
                    first_name=data.first_name,
                    last_name=data.last_name,
                )
                session.add(user)
                await session.flush()
                record = self._to_record(user)
        except IntegrityError:
            raise AlreadyExistsError(
                message=ErrorMessages.EMAIL_TAKEN,
                resource_type="User",
            )

        logger.info(f"Created user {record.id}")
        return record

    async def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        async with self._adapter.session() as session:
            user = await session.get(User, user_id)
            return self._to_record(user) if user else None

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        async with self._adapter.session() as session:
            result = await session.execute(
                select(User).where(User.email == normalize_email(email))
            )
            user = result.scalar_one_or_none()
            return self._to_record(user) if user else None

    async def validate_credentials(self, email: str, password: str) -> Optional[UserRecord]:
        async with self._adapter.session() as session:
            result = await session.execute(
                select(User).where(User.email == normalize_email(email))
            )
            user = result.scalar_one_or_none()
            if user is None or not user.verify_password(password):
                return None
            return self._to_record(user)

    async def update(self, user_id: str, updates: Dict[str, Any]) -> UserRecord:
        updates = strip_protected(updates, USER_PROTECTED_FIELDS)

        async with self._adapter.session() as session:
            user = await session.get(User, user_id)
            if user is None:
                raise self._not_found(user_id)

            for name, value in updates.items():
                if name == "password":
                    if value:
                        user.password = hash_password(value)
                elif hasattr(User, name):
                    setattr(user, name, value)
            user.updated_at = utcnow()

            await session.flush()
            return self._to_record(user)

    async def update_last_login(self, user_id: str) -> None:
        async with self._adapter.session() as session:
            user = await session.get(User, user_id)
            if user is None:
                raise self._not_found(user_id)
            user.last_login = utcnow()

    async def delete(self, user_id: str) -> None:
        async with self._adapter.session() as session:
            user = await session.get(User, user_id)
            if user is None:
                raise self._not_found(user_id)
            await session.delete(user)
        logger.info(f"Deleted user {user_id}")


# ==============================================================================
# PRODUCT REPOSITORY
# ==============================================================================

class RelationalProductRepository(ProductRepository):
    """
    Products as rows of the ``products`` table.

    Lookups and listing are ordered newest first. The listing cursor is
    the signed (created_at, id) of the last row served, so pages stay
    disjoint when rows are added between requests. Each page reports
    the total row count.
    """

    def __init__(self, adapter) -> None:
        self._adapter = adapter

    @staticmethod
    def _to_record(product: Product) -> ProductRecord:
        return ProductRecord.model_validate(product.to_dict())

    @staticmethod
    def _newest_first():
        return select(Product).order_by(Product.created_at.desc(), Product.id.desc())

    @staticmethod
    async def _get_owned(session, product_id: str, user_id: str, forbidden: str) -> Product:
        product = await session.get(Product, product_id)
        if product is None:
            raise NotFoundError(
                message=ErrorMessages.PRODUCT_NOT_FOUND,
                resource_type="Product",
                resource_id=product_id,
            )
        if product.user_id != user_id:
            raise AuthorizationError(message=forbidden)
        return product

    async def create(self, data: ProductCreate, user_id: str) -> ProductRecord:
        owner_missing = NotFoundError(
            message=ErrorMessages.USER_NOT_FOUND,
            resource_type="User",
            resource_id=user_id,
        )

        try:
            async with self._adapter.session() as session:
                if await session.get(User, user_id) is None:
                    raise owner_missing

                product = Product(
                    name=data.name,
                    description=data.description,
                    price=quantize_price(data.price),
                    image_url=data.image_url,
                    category=data.category,
                    stock=data.stock,
                    user_id=user_id,
                )
                session.add(product)
                await session.flush()
                record = self._to_record(product)
        except IntegrityError:
            # Owner row removed between the lookup and the insert
            raise owner_missing

        logger.info(f"Created product {record.id} for user {user_id}")
        return record

    async def find_by_id(self, product_id: str) -> Optional[ProductRecord]:
        async with self._adapter.session() as session:
            product = await session.get(Product, product_id)
            return self._to_record(product) if product else None

    async def find_by_user(self, user_id: str) -> List[ProductRecord]:
        async with self._adapter.session() as session:
            result = await session.execute(
                self._newest_first().where(Product.user_id == user_id)
            )
            return [self._to_record(p) for p in result.scalars().all()]

    async def find_by_category(self, category: str) -> List[ProductRecord]:
        async with self._adapter.session() as session:
            result = await session.execute(
                self._newest_first().where(Product.category == category)
            )
            return [self._to_record(p) for p in result.scalars().all()]

    async def list(self, limit: int, cursor: Optional[str] = None) -> ProductPage:
        position = decode_position(cursor)

        query = self._newest_first()
        if position is not None:
            created_at, product_id = position
            query = query.where(
                or_(
                    Product.created_at < created_at,
                    and_(Product.created_at == created_at, Product.id < product_id),
                )
            )

        async with self._adapter.session() as session:
            total = (
                await session.execute(select(func.count()).select_from(Product))
            ).scalar() or 0
            result = await session.execute(query.limit(limit + 1))
            rows = result.scalars().all()

        # One extra row tells whether another page follows
        has_more = len(rows) > limit
        rows = rows[:limit]
        return ProductPage(
            items=[self._to_record(p) for p in rows],
            next_cursor=encode_position(rows[-1]) if has_more else None,
            total=total,
        )

    async def update(
        self,
        product_id: str,
        updates: Dict[str, Any],
        user_id: str,
    ) -> ProductRecord:
        updates = strip_protected(updates, PRODUCT_PROTECTED_FIELDS)

        async with self._adapter.session() as session:
            product = await self._get_owned(
                session, product_id, user_id, ErrorMessages.PRODUCT_UPDATE_FORBIDDEN
            )

            for name, value in updates.items():
                if name == "price" and value is not None:
                    value = quantize_price(value)
                if hasattr(Product, name):
                    setattr(product, name, value)
            product.updated_at = utcnow()

            await session.flush()
            return self._to_record(product)

    async def delete(self, product_id: str, user_id: str) -> None:
        async with self._adapter.session() as session:
            product = await self._get_owned(
                session, product_id, user_id, ErrorMessages.PRODUCT_DELETE_FORBIDDEN
            )
            await session.delete(product)
        logger.info(f"Deleted product {product_id}")
