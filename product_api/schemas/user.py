# ==============================================================================
# USER SCHEMAS - Authentication & Profile
# ==============================================================================
# Storage-boundary record plus request/response schemas for users
# ==============================================================================

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import EmailStr, Field, field_validator

from product_api.core.constants import ErrorMessages, SecurityConstants, UserRoles
from product_api.schemas.base import BaseSchema, TimestampSchema, ensure_utc


def normalize_email(value: str) -> str:
    """Canonical form used for storage and lookup."""
    return value.strip().lower()


def check_password_strength(value: str) -> str:
    """Require one uppercase letter, one lowercase letter and one digit."""
    if not (
        any(c.isupper() for c in value)
        and any(c.islower() for c in value)
        and any(c.isdigit() for c in value)
    ):
        raise ValueError(ErrorMessages.WEAK_PASSWORD)
    return value


# ==============================================================================
# RECORD
# ==============================================================================

class UserRecord(TimestampSchema):
    """
    User as returned by either storage adapter.

    There is no password field: the hash never crosses the storage
    boundary, whichever backend produced the record.
    """

    id: str = Field(..., description="User unique identifier")
    email: EmailStr = Field(..., description="User email address")
    first_name: Optional[str] = Field(None, description="Given name")
    last_name: Optional[str] = Field(None, description="Family name")
    profile_image: Optional[str] = Field(None, description="Profile image reference")
    role: Literal["user", "admin"] = Field(UserRoles.USER, description="User role")
    is_active: bool = Field(True, description="Account activation status")
    last_login: Optional[datetime] = Field(None, description="Last successful login")

    @field_validator("last_login")
    @classmethod
    def last_login_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


# ==============================================================================
# REQUESTS
# ==============================================================================

class UserCreate(BaseSchema):
    """Schema for user registration."""

    email: EmailStr = Field(
        ...,
        description="User email address",
        examples=["user@example.com"],
    )
    password: str = Field(
        ...,
        min_length=SecurityConstants.MIN_PASSWORD_LENGTH,
        max_length=SecurityConstants.MAX_PASSWORD_LENGTH,
        description="User password (min 8 chars)",
    )
    first_name: Optional[str] = Field(
        None,
        max_length=100,
        description="Given name",
    )
    last_name: Optional[str] = Field(
        None,
        max_length=100,
        description="Family name",
    )

    @field_validator("email", mode="before")
    @classmethod
    def normalize(cls, v):
        return normalize_email(v) if isinstance(v, str) else v

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        """Ensure password meets security requirements."""
        return check_password_strength(v)


class UserLogin(BaseSchema):
    """Schema for user login request."""

    email: EmailStr = Field(
        ...,
        description="User email address",
    )
    password: str = Field(
        ...,
        min_length=1,
        description="User password",
    )

    @field_validator("email", mode="before")
    @classmethod
    def normalize(cls, v):
        return normalize_email(v) if isinstance(v, str) else v


class UserUpdate(BaseSchema):
    """
    Schema for updating the caller's own profile.

    Email and role are not patchable through this path.
    """

    first_name: Optional[str] = Field(
        None,
        max_length=100,
        description="Given name",
    )
    last_name: Optional[str] = Field(
        None,
        max_length=100,
        description="Family name",
    )
    profile_image: Optional[str] = Field(
        None,
        max_length=500,
        description="Profile image reference",
    )
    password: Optional[str] = Field(
        None,
        min_length=SecurityConstants.MIN_PASSWORD_LENGTH,
        max_length=SecurityConstants.MAX_PASSWORD_LENGTH,
        description="New password",
    )

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return check_password_strength(v)

    def to_updates(self) -> Dict[str, Any]:
        """Fields the client sent; a null password is ignored."""
        sent = self.model_dump(exclude_unset=True)
        if sent.get("password") is None:
            sent.pop("password", None)
        return sent


# ==============================================================================
# RESPONSES
# ==============================================================================

class AuthResponse(BaseSchema):
    """Registration/login result: the user and a bearer token."""

    message: str = Field(..., description="Status message")
    user: UserRecord
    token: str = Field(..., description="JWT bearer token")


class ProfileResponse(BaseSchema):
    """Caller's own profile."""

    message: Optional[str] = Field(None, description="Status message")
    user: UserRecord
