# ==============================================================================
# DATABASE FACTORY - Adapter Selection & Lifecycle Management
# ==============================================================================
# Factory Pattern: reads the backend flag once, builds one adapter and
# keeps it as the single process-wide storage handle.
# ==============================================================================

from __future__ import annotations

import logging
from typing import Optional

from product_api.core.settings import settings, DatabaseType
from product_api.core.exceptions import DatabaseError
from product_api.database.adapters.base_adapter import BaseStorageAdapter
from product_api.database.adapters.keyvalue_adapter import KeyValueAdapter
from product_api.database.adapters.relational_adapter import RelationalAdapter

logger = logging.getLogger(__name__)


class DatabaseFactory:
    """
    Factory class for creating and holding the storage adapter.

    Exactly one adapter backs every repository for the lifetime of the
    process. Route handlers and services reach it through
    ``get_adapter()`` and never branch on which backend it is.

    Class Attributes:
        _adapter: The initialized adapter, None before startup

    Example:
        >>> # Initialize at application startup
        >>> await DatabaseFactory.initialize()
        >>>
        >>> # Get adapter for database operations
        >>> adapter = DatabaseFactory.get_adapter()
        >>> user = await adapter.users.find_by_id(user_id)
        >>>
        >>> # Shutdown at application exit
        >>> await DatabaseFactory.shutdown()
    """

    _adapter: Optional[BaseStorageAdapter] = None

    @classmethod
    def create_adapter(
        cls,
        db_type: Optional[DatabaseType] = None,
        **kwargs,
    ) -> BaseStorageAdapter:
        """
        Build (but do not connect) the adapter for a backend family.

        Args:
            db_type: Backend family (defaults to settings.DATABASE_TYPE)
            **kwargs: Additional adapter configuration
                - database_url: Relational connection URL
                - table: Key-value table instance

        Returns:
            Storage adapter instance

        Raises:
            ValueError: If the backend family is not supported
        """
        db_type = db_type or settings.DATABASE_TYPE

        if db_type == DatabaseType.RELATIONAL:
            adapter: BaseStorageAdapter = RelationalAdapter(
                database_url=kwargs.get("database_url")
            )
        elif db_type == DatabaseType.KEYVALUE:
            adapter = KeyValueAdapter(table=kwargs.get("table"))
        else:
            raise ValueError(f"Unsupported database type: {db_type}")

        logger.info(f"Created {adapter.name} storage adapter")
        return adapter

    @classmethod
    async def initialize(
        cls,
        db_type: Optional[DatabaseType] = None,
        **kwargs,
    ) -> BaseStorageAdapter:
        """
        Build, connect and cache the storage adapter.

        Should be called once at application startup. A second call
        returns the adapter already in place.

        Raises:
            ValueError: If the backend family is not supported
            DatabaseError: If connection fails
        """
        if cls._adapter is not None:
            return cls._adapter

        adapter = cls.create_adapter(db_type, **kwargs)

        try:
            await adapter.connect()
        except DatabaseError:
            raise
        except Exception as e:
            logger.error(f"Database initialization failed: {e}")
            raise DatabaseError(f"Failed to initialize database: {e}")

        cls._adapter = adapter
        logger.info(f"Database initialized: {adapter.name}")
        return adapter

    @classmethod
    async def shutdown(cls) -> None:
        """
        Disconnect and forget the adapter.

        Should be called at application shutdown.
        """
        if cls._adapter is None:
            return

        try:
            await cls._adapter.disconnect()
        finally:
            cls._adapter = None
        logger.info("Database connections closed")

    @classmethod
    def get_adapter(cls) -> BaseStorageAdapter:
        """
        Get the initialized adapter.

        Raises:
            RuntimeError: If adapter not initialized
        """
        if cls._adapter is None:
            raise RuntimeError(
                "Storage adapter not initialized. "
                "Call DatabaseFactory.initialize() first."
            )
        return cls._adapter

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._adapter is not None

    @classmethod
    async def health_check(cls) -> bool:
        """
        Check backend health.

        Returns:
            True if the adapter is initialized and its backend answers
        """
        if cls._adapter is None:
            return False
        return await cls._adapter.health_check()

    @classmethod
    def reset(cls) -> None:
        """
        Reset factory state.

        Clears the adapter without disconnecting.
        Primarily for testing purposes.
        """
        cls._adapter = None
