# ==============================================================================
# RELATIONAL ADAPTER - SQLAlchemy Async (aiosqlite / asyncpg)
# ==============================================================================
# Normalized users/products tables with a native foreign key and a
# unique email constraint. Tables are created on connect.
# ==============================================================================

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from product_api.core.settings import settings
from product_api.core.exceptions import DatabaseError
from product_api.database.adapters.base_adapter import BaseStorageAdapter
from product_api.database.repositories.relational import (
    RelationalProductRepository,
    RelationalUserRepository,
)
from product_api.domain_models import SQLBase

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """SQLite leaves foreign keys off per connection unless asked."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class RelationalAdapter(BaseStorageAdapter):
    """
    Relational storage adapter using SQLAlchemy async.

    Drives SQLite (aiosqlite) for development and tests, PostgreSQL
    (asyncpg) in production. Both repositories share the adapter's
    session scope.

    Attributes:
        _database_url: Async connection string
        _engine: SQLAlchemy async engine
        _session_factory: Session factory for creating sessions

    Example:
        >>> adapter = RelationalAdapter("sqlite+aiosqlite:///./app.db")
        >>> await adapter.connect()  # Creates tables automatically
        >>> await adapter.users.find_by_email("a@x.com")
    """

    name = "relational"

    def __init__(self, database_url: Optional[str] = None) -> None:
        """
        Initialize relational adapter.

        Args:
            database_url: Async connection URL (defaults to settings)
        """
        url = database_url or settings.relational_url
        if url.startswith("sqlite://"):
            url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)

        self._database_url = url
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._users = RelationalUserRepository(self)
        self._products = RelationalProductRepository(self)

    @property
    def is_sqlite(self) -> bool:
        return self._database_url.startswith("sqlite")

    def _engine_options(self) -> Dict[str, Any]:
        if self.is_sqlite:
            return {"connect_args": {"check_same_thread": False}}
        return {
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_timeout": settings.DB_POOL_TIMEOUT,
            "pool_recycle": settings.DB_POOL_RECYCLE,
            "pool_pre_ping": True,
        }

    # ==========================================================================
    # LIFECYCLE METHODS
    # ==========================================================================

    async def connect(self) -> None:
        """
        Initialize database engine and create tables.

        Raises:
            DatabaseError: If the engine cannot connect or create tables
        """
        try:
            self._engine = create_async_engine(
                self._database_url,
                echo=settings.DEBUG,
                **self._engine_options(),
            )
            if self.is_sqlite:
                event.listen(self._engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

            self._session_factory = async_sessionmaker(
                bind=self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )

            # Create tables
            async with self._engine.begin() as conn:
                await conn.run_sync(SQLBase.metadata.create_all)

            logger.info(f"Relational adapter connected ({self._engine.dialect.name})")

        except SQLAlchemyError as e:
            logger.error(f"Failed to connect relational database: {e}")
            raise DatabaseError(f"Relational database connection failed: {e}")

    async def disconnect(self) -> None:
        """Close database connections and dispose engine."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Relational adapter disconnected")

    async def health_check(self) -> bool:
        try:
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, RuntimeError) as e:
            logger.warning(f"Relational health check failed: {e}")
            return False

    # ==========================================================================
    # SESSION MANAGEMENT
    # ==========================================================================

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Provide transactional session scope.

        Commits on successful exit, rolls back on exception.

        Raises:
            RuntimeError: If database not connected
        """
        if not self._session_factory:
            raise RuntimeError(
                "Database not connected. Call connect() first."
            )

        session: AsyncSession = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    # ==========================================================================
    # REPOSITORIES
    # ==========================================================================

    @property
    def users(self) -> RelationalUserRepository:
        return self._users

    @property
    def products(self) -> RelationalProductRepository:
        return self._products
