# ==============================================================================
# BASE SCHEMAS - Common Schema Patterns
# ==============================================================================
# Foundation schemas shared by records, requests and responses.
# Attributes are snake_case in Python and camelCase on the wire.
# ==============================================================================

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive timestamps (SQLite drops the offset)."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class BaseSchema(BaseModel):
    """
    Base schema with common configuration.

    All API schemas should inherit from this class
    to ensure consistent serialization behavior. Input is accepted under
    either the camelCase alias or the attribute name; output uses the alias.
    """

    model_config = ConfigDict(
        from_attributes=True,  # Enable ORM mode
        populate_by_name=True,
        use_enum_values=True,
        alias_generator=to_camel,
    )


class TimestampSchema(BaseSchema):
    """Schema with automatic timestamp fields."""

    created_at: Optional[datetime] = Field(
        None,
        description="Record creation timestamp"
    )
    updated_at: Optional[datetime] = Field(
        None,
        description="Last update timestamp"
    )

    @field_validator("created_at", "updated_at")
    @classmethod
    def as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


class MessageResponse(BaseSchema):
    """Plain acknowledgement."""

    message: str = Field(..., description="Status message")


class HealthResponse(BaseSchema):
    """Health check response schema."""

    status: str = Field(
        ...,
        description="Health status"
    )
    version: str = Field(
        ...,
        description="Application version"
    )
    database: str = Field(
        ...,
        description="Active storage backend"
    )
    database_status: str = Field(
        ...,
        description="Storage backend connection status"
    )
