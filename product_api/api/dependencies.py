# ==============================================================================
# API DEPENDENCIES - Dependency Injection
# ==============================================================================
# FastAPI dependencies for authentication, storage and services
# ==============================================================================

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from product_api.core.constants import APIConstants, ErrorMessages
from product_api.core.exceptions import AuthenticationError, AuthorizationError
from product_api.core.security import verify_access_token
from product_api.database.adapters.base_adapter import BaseStorageAdapter
from product_api.database.factory import DatabaseFactory
from product_api.schemas.user import UserRecord
from product_api.services.product_service import ProductService
from product_api.services.upload_service import UploadService
from product_api.services.user_service import UserService

# Bearer scheme; missing headers are reported by get_current_user
bearer_scheme = HTTPBearer(auto_error=False)


# ==============================================================================
# DATABASE DEPENDENCIES
# ==============================================================================

async def get_adapter() -> BaseStorageAdapter:
    """
    Get storage adapter dependency.

    Returns initialized adapter from factory.
    """
    return DatabaseFactory.get_adapter()


# Annotated type for storage adapter
DatabaseDep = Annotated[BaseStorageAdapter, Depends(get_adapter)]


# ==============================================================================
# SERVICE DEPENDENCIES
# ==============================================================================

async def get_user_service(adapter: DatabaseDep) -> UserService:
    """Get user service instance."""
    return UserService(adapter)


async def get_product_service(adapter: DatabaseDep) -> ProductService:
    """Get product service instance."""
    return ProductService(adapter)


@lru_cache()
def get_upload_service() -> UploadService:
    """Get the shared upload service (one S3 client per process)."""
    return UploadService()


# Annotated service types
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
ProductServiceDep = Annotated[ProductService, Depends(get_product_service)]
UploadServiceDep = Annotated[UploadService, Depends(get_upload_service)]


# ==============================================================================
# AUTHENTICATION DEPENDENCIES
# ==============================================================================

async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    adapter: DatabaseDep,
) -> UserRecord:
    """
    Resolve the caller from an ``Authorization: Bearer <token>`` header.

    Raises:
        AuthenticationError: If the header is missing, the token is
            invalid or expired, or its user no longer exists
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(message=ErrorMessages.UNAUTHORIZED)

    payload = verify_access_token(credentials.credentials)

    user = await adapter.users.find_by_id(payload["sub"])
    if user is None:
        raise AuthenticationError(message=ErrorMessages.USER_NOT_FOUND)
    return user


async def get_active_user(
    user: Annotated[UserRecord, Depends(get_current_user)],
) -> UserRecord:
    """
    Require an active account.

    Raises:
        AuthorizationError: If the account is deactivated
    """
    if not user.is_active:
        raise AuthorizationError(message=ErrorMessages.ACCOUNT_INACTIVE)
    return user


# Annotated types
CurrentUser = Annotated[UserRecord, Depends(get_current_user)]
ActiveUser = Annotated[UserRecord, Depends(get_active_user)]


# ==============================================================================
# PAGINATION DEPENDENCIES
# ==============================================================================

PageLimit = Annotated[
    int,
    Query(
        ge=APIConstants.MIN_PAGE_SIZE,
        le=APIConstants.MAX_PAGE_SIZE,
        description="Maximum products to examine for this page",
    ),
]
PageCursor = Annotated[
    Optional[str],
    Query(alias="lastKey", description="Opaque cursor from a previous page"),
]
