# ==============================================================================
# BASE MODEL - SQLAlchemy Foundation
# ==============================================================================
# Base declarative class and common mixins for all SQL models
# ==============================================================================

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy import DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class SQLBase(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Provides a common foundation with:
    - Automatic UUID primary key generation
    - Dictionary serialization method
    - Type annotations for mapped columns

    All domain models should inherit from this class.

    Example:
        >>> class User(SQLBase):
        ...     __tablename__ = "users"
        ...     email: Mapped[str] = mapped_column(String(255))
    """

    # Default primary key for all models
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    # Columns that never leave the model through to_dict()
    __private_columns__: frozenset = frozenset()

    def to_dict(self) -> dict[str, Any]:
        """
        Convert model instance to dictionary.

        Columns listed in ``__private_columns__`` are left out.

        Returns:
            Dictionary with public column values
        """
        return {
            column.name: getattr(self, column.name)
            for column in self.__table__.columns
            if column.name not in self.__private_columns__
        }

    def __repr__(self) -> str:
        """Generate readable representation."""
        class_name = self.__class__.__name__
        return f"<{class_name}(id={self.id})>"


class TimestampMixin:
    """
    Mixin providing automatic timestamp tracking.

    Adds created_at and updated_at columns. Values are produced on the
    Python side so they are available right after a flush without a
    refresh round-trip.

    Attributes:
        created_at: Timestamp of record creation (auto-set)
        updated_at: Timestamp of last update (auto-updated)
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )
