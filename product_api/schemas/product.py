# ==============================================================================
# PRODUCT SCHEMAS - Catalog
# ==============================================================================
# Storage-boundary record plus request/response schemas for products
# ==============================================================================

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, FrozenSet, List, Optional

from pydantic import Field, field_serializer, field_validator

from product_api.schemas.base import BaseSchema, TimestampSchema


TWO_PLACES = Decimal("0.01")

# Product attributes a patch may clear
NULLABLE_PRODUCT_FIELDS: FrozenSet[str] = frozenset({"description", "image_url", "category"})


def quantize_price(value: Decimal) -> Decimal:
    """Round a price to two decimal places."""
    return Decimal(value).quantize(TWO_PLACES)


# ==============================================================================
# RECORD
# ==============================================================================

class ProductRecord(TimestampSchema):
    """Product as returned by either storage adapter."""

    id: str = Field(..., description="Product unique identifier")
    name: str = Field(..., description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    price: Decimal = Field(..., description="Product price")
    image_url: Optional[str] = Field(None, description="Product image reference")
    category: Optional[str] = Field(None, description="Product category")
    stock: int = Field(0, description="Units in stock")
    is_active: bool = Field(True, description="Product active status")
    user_id: str = Field(..., description="Owning user identifier")

    @field_validator("price")
    @classmethod
    def two_places(cls, v: Decimal) -> Decimal:
        return quantize_price(v)

    @field_serializer("price")
    def serialize_price(self, v: Decimal) -> float:
        return float(v)


class ProductPage(BaseSchema):
    """
    One page of a product listing.

    Attributes:
        items: Products on this page
        next_cursor: Opaque cursor for the following page, None when done
        total: Total product count when the backend can count cheaply
    """

    items: List[ProductRecord] = Field(default_factory=list)
    next_cursor: Optional[str] = None
    total: Optional[int] = None


# ==============================================================================
# REQUESTS
# ==============================================================================

class ProductCreate(BaseSchema):
    """Schema for creating a product."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Product name",
    )
    description: Optional[str] = Field(
        None,
        max_length=5000,
        description="Product description",
    )
    price: Decimal = Field(
        ...,
        ge=0,
        max_digits=10,
        decimal_places=2,
        description="Product price",
    )
    image_url: Optional[str] = Field(
        None,
        max_length=500,
        description="Product image reference",
    )
    category: Optional[str] = Field(
        None,
        min_length=1,
        max_length=100,
        description="Product category",
    )
    stock: int = Field(
        0,
        ge=0,
        description="Units in stock",
    )

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Product name is required")
        return v


class ProductUpdate(BaseSchema):
    """
    Schema for patching a product. Only fields present in the request
    are applied; an explicit null category clears it.
    """

    name: Optional[str] = Field(
        None,
        min_length=1,
        max_length=255,
        description="Product name",
    )
    description: Optional[str] = Field(
        None,
        max_length=5000,
        description="Product description",
    )
    price: Optional[Decimal] = Field(
        None,
        ge=0,
        max_digits=10,
        decimal_places=2,
        description="Product price",
    )
    image_url: Optional[str] = Field(
        None,
        max_length=500,
        description="Product image reference",
    )
    category: Optional[str] = Field(
        None,
        min_length=1,
        max_length=100,
        description="Product category",
    )
    stock: Optional[int] = Field(
        None,
        ge=0,
        description="Units in stock",
    )
    is_active: Optional[bool] = Field(
        None,
        description="Product active status",
    )

    def to_updates(self) -> Dict[str, Any]:
        """
        Fields the client actually sent, as a patch.

        Nulls are kept only for optional attributes, where they clear the
        stored value; a null for a required attribute is ignored.
        """
        sent = self.model_dump(exclude_unset=True)
        return {
            name: value for name, value in sent.items()
            if value is not None or name in NULLABLE_PRODUCT_FIELDS
        }


# ==============================================================================
# RESPONSES
# ==============================================================================

class ProductResponse(BaseSchema):
    """Single product envelope."""

    message: Optional[str] = None
    product: ProductRecord


class PaginationInfo(BaseSchema):
    """Cursor metadata of a product listing."""

    last_evaluated_key: Optional[str] = Field(
        None,
        description="Opaque cursor to pass back as lastKey",
    )
    has_more: bool = Field(False, description="Whether another page follows")
    total: Optional[int] = Field(None, description="Total products, when known")


class ProductListResponse(BaseSchema):
    """Paginated product listing."""

    products: List[ProductRecord]
    pagination: PaginationInfo


class ProductsResponse(BaseSchema):
    """Unpaginated product listing (by owner, by category)."""

    products: List[ProductRecord]
