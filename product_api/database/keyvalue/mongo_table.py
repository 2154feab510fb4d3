# ==============================================================================
# MONGO TABLE - Motor Implementation of the Key-Value Table
# ==============================================================================
# Stores every record family in one collection with a unique compound
# index on (pk, sk). Transactions use client sessions, which require
# MongoDB to run as a replica set.
# ==============================================================================

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorClientSession,
    AsyncIOMotorCollection,
)
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from product_api.core.settings import settings
from product_api.core.exceptions import DatabaseError, TransactionError
from product_api.database.keyvalue.table import (
    CONDITION_FAILED,
    PARTITION_KEY,
    SORT_KEY,
    ConditionCheck,
    ConditionFailedError,
    Delete,
    Item,
    Key,
    KeyValueTable,
    Operation,
    Predicate,
    Put,
    ScanPage,
    TransactionCanceledError,
    Update,
    make_key,
)

logger = logging.getLogger(__name__)

# Guard attribute backing Put.unique_partition through a partial unique index
PARTITION_GUARD = "uniquePartition"

# Never hand Mongo-side bookkeeping back to callers
_PROJECTION = {"_id": False, PARTITION_GUARD: False}


def _filter(key: Key, expected: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Build a document filter for a key plus expected attribute values.

    An expected value of None matches a missing or null attribute.
    """
    query: Dict[str, Any] = {PARTITION_KEY: key[PARTITION_KEY], SORT_KEY: key[SORT_KEY]}
    if expected:
        query.update(expected)
    return query


def _update_document(set_fields: Dict[str, Any], remove_fields: Sequence[str]) -> Dict[str, Any]:
    document: Dict[str, Any] = {}
    if set_fields:
        document["$set"] = dict(set_fields)
    if remove_fields:
        document["$unset"] = {name: "" for name in remove_fields}
    return document


class MongoKeyValueTable(KeyValueTable):
    """
    Key-value table backed by a single MongoDB collection.

    Features:
        - Unique compound index on ``(pk, sk)`` so a keyed insert fails
          on a taken key
        - Conditions expressed as document filters, so a check and its
          write happen in one server-side step
        - ``transact_write`` runs inside a multi-document transaction

    Attributes:
        _connection_url: MongoDB connection string
        _database_name: Target database name
        _table_name: Collection holding every item

    Example:
        >>> table = MongoKeyValueTable()
        >>> await table.connect()
        >>> await table.get_item({"pk": "USER#1", "sk": "PROFILE#1"})
    """

    def __init__(
        self,
        connection_url: Optional[str] = None,
        database_name: Optional[str] = None,
        table_name: Optional[str] = None,
    ) -> None:
        self._connection_url = connection_url or settings.MONGODB_URL
        self._database_name = database_name or settings.MONGODB_DB
        self._table_name = table_name or settings.KEYVALUE_TABLE_NAME
        self._client: Optional[AsyncIOMotorClient] = None
        self._collection: Optional[AsyncIOMotorCollection] = None

    @property
    def collection(self) -> AsyncIOMotorCollection:
        if self._collection is None:
            raise RuntimeError("Table not connected. Call connect() first.")
        return self._collection

    # ==========================================================================
    # LIFECYCLE METHODS
    # ==========================================================================

    async def connect(self) -> None:
        """
        Initialize the client and ensure the key index exists.

        Raises:
            DatabaseError: If the server cannot be reached
        """
        try:
            self._client = AsyncIOMotorClient(
                self._connection_url,
                maxPoolSize=settings.DB_POOL_SIZE,
                minPoolSize=1,
                maxIdleTimeMS=settings.DB_POOL_TIMEOUT * 1000,
            )
            self._collection = self._client[self._database_name][self._table_name]

            # Verify connection
            await self._client.admin.command("ping")

            await self._collection.create_index(
                [(PARTITION_KEY, ASCENDING), (SORT_KEY, ASCENDING)],
                unique=True,
                name="pk_sk_unique",
            )
            await self._collection.create_index(
                [(PARTITION_GUARD, ASCENDING)],
                unique=True,
                partialFilterExpression={PARTITION_GUARD: {"$exists": True}},
                name="partition_guard_unique",
            )

            logger.info(
                f"Mongo key-value table connected: "
                f"{self._database_name}.{self._table_name}"
            )

        except PyMongoError as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise DatabaseError(f"MongoDB connection failed: {e}")

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self._client:
            self._client.close()
            self._client = None
            self._collection = None
            logger.info("Mongo key-value table disconnected")

    async def health_check(self) -> bool:
        try:
            if self._client:
                await self._client.admin.command("ping")
                return True
            return False
        except PyMongoError as e:
            logger.warning(f"MongoDB health check failed: {e}")
            return False

    # ==========================================================================
    # SINGLE-ITEM OPERATIONS
    # ==========================================================================

    async def get_item(self, key: Key) -> Optional[Item]:
        try:
            return await self.collection.find_one(_filter(key), _PROJECTION)
        except PyMongoError as e:
            raise DatabaseError(f"Read failed: {e}")

    async def put_item(self, item: Item, must_not_exist: bool = False) -> None:
        try:
            if not await self._put(Put(item, must_not_exist)):
                raise ConditionFailedError()
        except PyMongoError as e:
            raise DatabaseError(f"Write failed: {e}")

    async def update_item(
        self,
        key: Key,
        set_fields: Dict[str, Any],
        remove_fields: Sequence[str] = (),
        expected: Optional[Dict[str, Any]] = None,
    ) -> Item:
        try:
            updated = await self.collection.find_one_and_update(
                _filter(key, expected),
                _update_document(set_fields, remove_fields),
                projection=_PROJECTION,
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise DatabaseError(f"Update failed: {e}")

        if updated is None:
            raise ConditionFailedError()
        return updated

    async def delete_item(self, key: Key) -> None:
        try:
            await self.collection.delete_one(_filter(key))
        except PyMongoError as e:
            raise DatabaseError(f"Delete failed: {e}")

    # ==========================================================================
    # MULTI-ITEM READS
    # ==========================================================================

    async def query(self, pk: str, sk_prefix: Optional[str] = None) -> List[Item]:
        query: Dict[str, Any] = {PARTITION_KEY: pk}
        if sk_prefix:
            query[SORT_KEY] = {"$regex": f"^{re.escape(sk_prefix)}"}

        try:
            cursor = self.collection.find(query, _PROJECTION).sort(SORT_KEY, ASCENDING)
            return await cursor.to_list(length=None)
        except PyMongoError as e:
            raise DatabaseError(f"Query failed: {e}")

    async def scan(
        self,
        limit: int,
        exclusive_start_key: Optional[Key] = None,
        predicate: Optional[Predicate] = None,
    ) -> ScanPage:
        query: Dict[str, Any] = {}
        if exclusive_start_key is not None:
            pk, sk = exclusive_start_key[PARTITION_KEY], exclusive_start_key[SORT_KEY]
            query = {
                "$or": [
                    {PARTITION_KEY: {"$gt": pk}},
                    {PARTITION_KEY: pk, SORT_KEY: {"$gt": sk}},
                ]
            }

        try:
            # One extra item tells whether anything follows this step
            cursor = (
                self.collection.find(query, _PROJECTION)
                .sort([(PARTITION_KEY, ASCENDING), (SORT_KEY, ASCENDING)])
                .limit(limit + 1)
            )
            examined = await cursor.to_list(length=limit + 1)
        except PyMongoError as e:
            raise DatabaseError(f"Scan failed: {e}")

        last_key = None
        if len(examined) > limit:
            examined = examined[:limit]
            last_key = make_key(examined[-1][PARTITION_KEY], examined[-1][SORT_KEY])

        items = [item for item in examined if predicate is None or predicate(item)]
        return ScanPage(items=items, last_evaluated_key=last_key)

    # ==========================================================================
    # TRANSACTIONS
    # ==========================================================================

    async def transact_write(self, operations: Sequence[Operation]) -> None:
        """
        Apply operations inside one MongoDB transaction.

        The first failed condition aborts the transaction, so nothing is
        committed. Operations after it are reported without a reason.

        Raises:
            TransactionCanceledError: If a condition fails
            TransactionError: If the server aborts the transaction
        """
        if self._client is None:
            raise RuntimeError("Table not connected. Call connect() first.")

        async def run(session: AsyncIOMotorClientSession) -> None:
            for index, op in enumerate(operations):
                if not await self._apply(op, session):
                    reasons: List[Optional[str]] = [None] * len(operations)
                    reasons[index] = CONDITION_FAILED
                    logger.debug(f"Transaction cancelled at operation {index}: {op!r}")
                    raise TransactionCanceledError(reasons)

        try:
            # with_transaction retries transient write conflicts
            async with await self._client.start_session() as session:
                await session.with_transaction(run)
        except TransactionCanceledError:
            raise
        except PyMongoError as e:
            logger.error(f"Transaction aborted: {e}")
            raise TransactionError(f"Transaction aborted: {e}")

    async def _apply(
        self,
        op: Operation,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> bool:
        """Run one operation, returning False when its condition fails."""
        if isinstance(op, Put):
            return await self._put(op, session)

        if isinstance(op, Update):
            result = await self.collection.update_one(
                _filter(op.key, op.expected),
                _update_document(op.set_fields, op.remove_fields),
                session=session,
            )
            return result.matched_count == 1

        if isinstance(op, Delete):
            result = await self.collection.delete_one(
                _filter(op.key, op.expected),
                session=session,
            )
            return op.expected is None or result.deleted_count == 1

        if isinstance(op, ConditionCheck):
            found = await self.collection.find_one(
                _filter(op.key, op.expected),
                _PROJECTION,
                session=session,
            )
            return (found is not None) == op.must_exist

        raise TypeError(f"Unsupported transaction operation: {op!r}")

    async def _put(
        self,
        op: Put,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> bool:
        document = dict(op.item)
        if op.unique_partition:
            document[PARTITION_GUARD] = document[PARTITION_KEY]
        try:
            if op.must_not_exist:
                await self.collection.insert_one(document, session=session)
            else:
                await self.collection.replace_one(
                    _filter(op.key),
                    document,
                    upsert=True,
                    session=session,
                )
        except DuplicateKeyError:
            return False
        return True
