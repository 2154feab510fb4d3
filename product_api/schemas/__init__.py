# ==============================================================================
# SCHEMAS PACKAGE INITIALIZATION
# ==============================================================================

"""
Pydantic Schemas
================

Storage-boundary records and request/response validation schemas:
- Base: Common configuration (camelCase wire aliases)
- User: Record, authentication and profile schemas
- Product: Record, page, CRUD and listing schemas
- Upload: Signed URL and file listing schemas
"""

from product_api.schemas.base import (
    BaseSchema,
    TimestampSchema,
    MessageResponse,
    HealthResponse,
)
from product_api.schemas.user import (
    UserRecord,
    UserCreate,
    UserLogin,
    UserUpdate,
    AuthResponse,
    ProfileResponse,
)
from product_api.schemas.product import (
    ProductRecord,
    ProductPage,
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    PaginationInfo,
    ProductListResponse,
    ProductsResponse,
)
from product_api.schemas.upload import (
    SignUrlRequest,
    SignUrlResponse,
    FileInfo,
    FileListResponse,
)

__all__ = [
    # Base
    "BaseSchema",
    "TimestampSchema",
    "MessageResponse",
    "HealthResponse",
    # User
    "UserRecord",
    "UserCreate",
    "UserLogin",
    "UserUpdate",
    "AuthResponse",
    "ProfileResponse",
    # Product
    "ProductRecord",
    "ProductPage",
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    "PaginationInfo",
    "ProductListResponse",
    "ProductsResponse",
    # Upload
    "SignUrlRequest",
    "SignUrlResponse",
    "FileInfo",
    "FileListResponse",
]
