# ==============================================================================
# BASE STORAGE ADAPTER - Abstract Interface
# ==============================================================================
# Defines the contract every storage backend fulfils: lifecycle plus one
# repository per entity. Callers never learn which backend is active.
# ==============================================================================

from __future__ import annotations

from abc import ABC, abstractmethod

from product_api.database.repositories.base_repository import (
    ProductRepository,
    UserRepository,
)


class BaseStorageAdapter(ABC):
    """
    Abstract Base Class for Storage Adapters.

    An adapter owns the connection to one backend family and exposes the
    ``users`` and ``products`` repositories bound to it. Both adapters
    return the same record types and raise the same exception classes.

    Design Pattern:
        Implements the Adapter Pattern to provide a uniform interface
        for heterogeneous storage systems.

    Example:
        >>> adapter = RelationalAdapter()
        >>> await adapter.connect()
        >>> user = await adapter.users.find_by_id(user_id)
        >>> await adapter.disconnect()
    """

    #: Backend family name reported by health checks
    name: str = "base"

    # ==========================================================================
    # LIFECYCLE METHODS
    # ==========================================================================

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish the backend connection and prepare storage.

        Must be called before any repository is used.

        Raises:
            DatabaseError: If connection cannot be established
        """

    @abstractmethod
    async def disconnect(self) -> None:
        """
        Close the backend connection.

        Should be called when shutting down the application.
        """

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the backend connection is healthy.

        Returns:
            True if connection is healthy, False otherwise
        """

    # ==========================================================================
    # REPOSITORIES
    # ==========================================================================

    @property
    @abstractmethod
    def users(self) -> UserRepository:
        """User repository bound to this backend."""

    @property
    @abstractmethod
    def products(self) -> ProductRepository:
        """Product repository bound to this backend."""
