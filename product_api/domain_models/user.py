# ==============================================================================
# USER MODEL - Authentication and Authorization
# ==============================================================================
# User entity for authentication, profiles, and access control
# ==============================================================================

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from product_api.core.constants import DatabaseConstants, UserRoles
from product_api.core.security import verify_password
from product_api.domain_models.base import SQLBase, TimestampMixin

if TYPE_CHECKING:
    from product_api.domain_models.product import Product


class User(SQLBase, TimestampMixin):
    """
    User model for authentication and authorization.

    Stores user credentials and profile information, and owns the
    user's products.

    Attributes:
        email: Unique email address (login identifier)
        password: Bcrypt-hashed password, never serialized
        first_name: Given name
        last_name: Family name
        profile_image: Profile image reference
        role: "user" or "admin"
        is_active: Account activation status
        last_login: Timestamp of the last successful login

    Relationships:
        products: Products owned by this user
    """

    __tablename__ = DatabaseConstants.USERS_TABLE
    __private_columns__ = frozenset({"password"})

    # Authentication fields
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Profile fields
    first_name: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    last_name: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    profile_image: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )

    # Status
    role: Mapped[str] = mapped_column(
        String(20),
        default=UserRoles.USER,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    last_login: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    products: Mapped[List["Product"]] = relationship(
        "Product",
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def verify_password(self, plain_password: str) -> bool:
        """Check a plaintext password against this user's hash."""
        return verify_password(plain_password, self.password)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
