# ==============================================================================
# AUTH ENDPOINTS - Authentication Routes
# ==============================================================================
# Register, login and the caller's own profile
# ==============================================================================

from __future__ import annotations

from fastapi import APIRouter, status

from product_api.api.dependencies import CurrentUser, UserServiceDep
from product_api.core.constants import SuccessMessages
from product_api.schemas.user import (
    AuthResponse,
    ProfileResponse,
    UserCreate,
    UserLogin,
    UserUpdate,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
    description="Create a new user account with email and password.",
)
async def register(
    schema: UserCreate,
    service: UserServiceDep,
) -> AuthResponse:
    """Register a new user."""
    user, token = await service.register(schema)
    return AuthResponse(
        message=SuccessMessages.USER_REGISTERED,
        user=user,
        token=token,
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="User login",
    description="Authenticate with email and password to receive a bearer token.",
)
async def login(
    credentials: UserLogin,
    service: UserServiceDep,
) -> AuthResponse:
    """Authenticate user and return a token."""
    user, token = await service.authenticate(credentials)
    return AuthResponse(
        message=SuccessMessages.LOGIN_SUCCESS,
        user=user,
        token=token,
    )


@router.get(
    "/profile",
    response_model=ProfileResponse,
    summary="Get own profile",
)
async def get_profile(user: CurrentUser) -> ProfileResponse:
    """Return the caller's user record."""
    return ProfileResponse(user=user)


@router.put(
    "/profile",
    response_model=ProfileResponse,
    summary="Update own profile",
)
async def update_profile(
    schema: UserUpdate,
    user: CurrentUser,
    service: UserServiceDep,
) -> ProfileResponse:
    """Patch the caller's user record."""
    updated = await service.update_profile(user.id, schema)
    return ProfileResponse(
        message=SuccessMessages.PROFILE_UPDATED,
        user=updated,
    )
