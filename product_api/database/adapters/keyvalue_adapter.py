# ==============================================================================
# KEY-VALUE ADAPTER - Single-Table Storage
# ==============================================================================
# Binds the key-value repositories to one KeyValueTable implementation
# selected by KEYVALUE_DRIVER.
# ==============================================================================

from __future__ import annotations

import logging
from typing import Optional

from product_api.core.settings import KeyValueDriver, settings
from product_api.database.adapters.base_adapter import BaseStorageAdapter
from product_api.database.keyvalue.memory_table import MemoryKeyValueTable
from product_api.database.keyvalue.mongo_table import MongoKeyValueTable
from product_api.database.keyvalue.table import KeyValueTable
from product_api.database.repositories.keyvalue import (
    KeyValueProductRepository,
    KeyValueUserRepository,
)

logger = logging.getLogger(__name__)


def create_table(
    driver: Optional[KeyValueDriver] = None,
    table_name: Optional[str] = None,
) -> KeyValueTable:
    """
    Build the table implementation for a driver.

    Raises:
        ValueError: If the driver is not supported
    """
    driver = driver or settings.KEYVALUE_DRIVER
    table_name = table_name or settings.KEYVALUE_TABLE_NAME

    if driver == KeyValueDriver.MONGODB:
        return MongoKeyValueTable(table_name=table_name)
    if driver == KeyValueDriver.MEMORY:
        return MemoryKeyValueTable(table_name)
    raise ValueError(f"Unsupported key-value driver: {driver}")


class KeyValueAdapter(BaseStorageAdapter):
    """
    Key-value storage adapter.

    Every record family lives in one table keyed by ``(pk, sk)``;
    see ``product_api.database.repositories.keyvalue`` for the layout.

    Example:
        >>> adapter = KeyValueAdapter(MemoryKeyValueTable())
        >>> await adapter.connect()
        >>> await adapter.products.list(limit=20)
    """

    name = "keyvalue"

    def __init__(self, table: Optional[KeyValueTable] = None) -> None:
        self._table = table or create_table()
        self._users = KeyValueUserRepository(self._table)
        self._products = KeyValueProductRepository(self._table)

    @property
    def table(self) -> KeyValueTable:
        return self._table

    async def connect(self) -> None:
        await self._table.connect()
        logger.info(f"Key-value adapter connected ({type(self._table).__name__})")

    async def disconnect(self) -> None:
        await self._table.disconnect()
        logger.info("Key-value adapter disconnected")

    async def health_check(self) -> bool:
        return await self._table.health_check()

    @property
    def users(self) -> KeyValueUserRepository:
        return self._users

    @property
    def products(self) -> KeyValueProductRepository:
        return self._products
