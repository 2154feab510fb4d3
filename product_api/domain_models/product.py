# ==============================================================================
# PRODUCT MODEL - Catalog
# ==============================================================================
# Product entity owned by a user
# ==============================================================================

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from product_api.core.constants import DatabaseConstants
from product_api.domain_models.base import SQLBase, TimestampMixin

if TYPE_CHECKING:
    from product_api.domain_models.user import User


class Product(SQLBase, TimestampMixin):
    """
    Product model for the catalog.

    Attributes:
        name: Product display name
        description: Detailed product description
        price: Selling price, two decimal places
        image_url: Product image reference
        category: Free-text category
        stock: Units in stock
        is_active: Whether product is listed
        user_id: Owning user

    Relationships:
        owner: The user who created the product
    """

    __tablename__ = DatabaseConstants.PRODUCTS_TABLE

    # Basic info
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    # Pricing
    price: Mapped[Decimal] = mapped_column(
        Numeric(
            precision=DatabaseConstants.PRICE_PRECISION,
            scale=DatabaseConstants.PRICE_SCALE,
        ),
        nullable=False,
    )

    # Media
    image_url: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )

    # Categorization
    category: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        index=True,
    )

    # Inventory
    stock: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    # Status
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    # Ownership
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey(f"{DatabaseConstants.USERS_TABLE}.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Relationships
    owner: Mapped["User"] = relationship(
        "User",
        back_populates="products",
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name={self.name}, user_id={self.user_id})>"
