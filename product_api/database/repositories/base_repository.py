# ==============================================================================
# BASE REPOSITORY - Storage-Neutral Data Access Contract
# ==============================================================================
# Repository Pattern: one interface per entity, implemented once per
# storage backend. Callers only ever see UserRecord / ProductRecord.
# ==============================================================================

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, FrozenSet, List, Optional

from product_api.schemas.product import ProductCreate, ProductPage, ProductRecord
from product_api.schemas.user import UserCreate, UserRecord

# Fields the generic update path never writes
USER_PROTECTED_FIELDS: FrozenSet[str] = frozenset({"id", "email", "created_at"})
PRODUCT_PROTECTED_FIELDS: FrozenSet[str] = frozenset({"id", "user_id", "created_at"})


def strip_protected(updates: Dict[str, Any], protected: FrozenSet[str]) -> Dict[str, Any]:
    """Drop protected fields from a patch."""
    return {name: value for name, value in updates.items() if name not in protected}


class UserRepository(ABC):
    """
    Abstract user repository.

    Implementations hash passwords themselves: ``create`` and ``update``
    receive plaintext and nothing they return carries the hash.

    Raises (from every implementation):
        AlreadyExistsError: On a duplicate email
        NotFoundError: When updating a user that does not exist
    """

    @abstractmethod
    async def create(self, data: UserCreate) -> UserRecord:
        """Persist a new user with a hashed password."""

    @abstractmethod
    async def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        """Fetch a user by identifier."""

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        """Fetch a user by (normalized) email."""

    @abstractmethod
    async def validate_credentials(self, email: str, password: str) -> Optional[UserRecord]:
        """Return the user when the password matches, else None."""

    @abstractmethod
    async def update(self, user_id: str, updates: Dict[str, Any]) -> UserRecord:
        """
        Patch a user.

        Protected fields are ignored. A ``password`` entry is re-hashed.
        ``updated_at`` is always refreshed.
        """

    @abstractmethod
    async def update_last_login(self, user_id: str) -> None:
        """Stamp the last successful login time."""

    @abstractmethod
    async def delete(self, user_id: str) -> None:
        """Remove a user."""


class ProductRepository(ABC):
    """
    Abstract product repository.

    Mutations are owner-checked: a missing product raises
    ``NotFoundError`` and a caller who is not the owner raises
    ``AuthorizationError``, both before anything is written.
    """

    @abstractmethod
    async def create(self, data: ProductCreate, user_id: str) -> ProductRecord:
        """Persist a product owned by ``user_id``."""

    @abstractmethod
    async def find_by_id(self, product_id: str) -> Optional[ProductRecord]:
        """Fetch a product by identifier."""

    @abstractmethod
    async def find_by_user(self, user_id: str) -> List[ProductRecord]:
        """All products owned by a user."""

    @abstractmethod
    async def find_by_category(self, category: str) -> List[ProductRecord]:
        """All products in a category."""

    @abstractmethod
    async def list(self, limit: int, cursor: Optional[str] = None) -> ProductPage:
        """One page of products, resumable through ``next_cursor``."""

    @abstractmethod
    async def update(
        self,
        product_id: str,
        updates: Dict[str, Any],
        user_id: str,
    ) -> ProductRecord:
        """Patch a product owned by ``user_id``."""

    @abstractmethod
    async def delete(self, product_id: str, user_id: str) -> None:
        """Remove a product owned by ``user_id``."""
