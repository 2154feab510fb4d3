# ==============================================================================
# USER SERVICE - Authentication & Profile Management
# ==============================================================================
# Business logic for registration, login and the caller's own profile
# ==============================================================================

from __future__ import annotations

import logging
from typing import Tuple

from product_api.core.constants import ErrorMessages
from product_api.core.exceptions import AuthenticationError, NotFoundError
from product_api.core.security import create_access_token
from product_api.schemas.user import UserCreate, UserLogin, UserRecord, UserUpdate
from product_api.services.base_service import BaseService

logger = logging.getLogger(__name__)


class UserService(BaseService):
    """
    User service for authentication and profile management.

    Provides registration, credential login and profile updates. Password
    hashing happens in the repositories; this layer never sees a hash.
    """

    # ==========================================================================
    # AUTHENTICATION
    # ==========================================================================

    async def register(self, schema: UserCreate) -> Tuple[UserRecord, str]:
        """
        Register a new user and issue a bearer token.

        Args:
            schema: User registration data

        Returns:
            Tuple of (created user, access token)

        Raises:
            AlreadyExistsError: If email already registered
        """
        user = await self._adapter.users.create(schema)
        token = create_access_token(subject=user.id)
        return user, token

    async def authenticate(self, schema: UserLogin) -> Tuple[UserRecord, str]:
        """
        Authenticate a user by email and password.

        Refreshes the user's last-login time on success.

        Args:
            schema: Login credentials

        Returns:
            Tuple of (user, access token)

        Raises:
            AuthenticationError: If credentials invalid
        """
        user = await self._adapter.users.validate_credentials(
            schema.email,
            schema.password,
        )
        if user is None:
            logger.info("Rejected login attempt")
            raise AuthenticationError(message=ErrorMessages.INVALID_CREDENTIALS)

        await self._adapter.users.update_last_login(user.id)
        refreshed = await self._adapter.users.find_by_id(user.id) or user

        token = create_access_token(subject=user.id)
        return refreshed, token

    # ==========================================================================
    # PROFILE
    # ==========================================================================

    async def get_profile(self, user_id: str) -> UserRecord:
        """
        Get a user's profile.

        Raises:
            NotFoundError: If the user does not exist
        """
        user = await self._adapter.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError(
                message=ErrorMessages.USER_NOT_FOUND,
                resource_type="User",
                resource_id=user_id,
            )
        return user

    async def update_profile(self, user_id: str, schema: UserUpdate) -> UserRecord:
        """
        Patch a user's own profile.

        Only the fields present in the request are applied.
        """
        return await self._adapter.users.update(user_id, schema.to_updates())
