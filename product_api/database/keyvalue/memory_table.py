# ==============================================================================
# MEMORY TABLE - Process-Local Key-Value Table
# ==============================================================================
# Development and test implementation of KeyValueTable. Writes are
# serialized by an asyncio lock; reads and writes hand out deep copies.
# ==============================================================================

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from product_api.database.keyvalue.table import (
    CONDITION_FAILED,
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
    apply_update,
    check_condition,
    key_tuple,
    make_key,
)

logger = logging.getLogger(__name__)


class MemoryKeyValueTable(KeyValueTable):
    """
    Key-value table held in a dictionary keyed by ``(pk, sk)``.

    Contents live only as long as the process. Every write path takes
    the same lock, so a transaction evaluates all its conditions and
    applies all its writes without interleaving.

    Example:
        >>> table = MemoryKeyValueTable("app-data")
        >>> await table.connect()
        >>> await table.put_item({"pk": "USER#1", "sk": "PROFILE#1"})
    """

    def __init__(self, table_name: str = "app-data") -> None:
        self._table_name = table_name
        self._items: Dict[Tuple[str, str], Item] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._items)

    # ==========================================================================
    # LIFECYCLE METHODS
    # ==========================================================================

    async def connect(self) -> None:
        logger.info(f"Memory key-value table '{self._table_name}' ready")

    async def disconnect(self) -> None:
        self._items.clear()
        logger.info(f"Memory key-value table '{self._table_name}' cleared")

    async def health_check(self) -> bool:
        return True

    # ==========================================================================
    # SINGLE-ITEM OPERATIONS
    # ==========================================================================

    async def get_item(self, key: Key) -> Optional[Item]:
        item = self._items.get(key_tuple(key))
        return copy.deepcopy(item) if item is not None else None

    async def put_item(self, item: Item, must_not_exist: bool = False) -> None:
        await self.transact_single(Put(copy.deepcopy(item), must_not_exist))

    async def update_item(
        self,
        key: Key,
        set_fields: Dict[str, Any],
        remove_fields: Sequence[str] = (),
        expected: Optional[Dict[str, Any]] = None,
    ) -> Item:
        op = Update(key, dict(set_fields), tuple(remove_fields), dict(expected or {}))
        await self.transact_single(op)
        return await self.get_item(key)

    async def delete_item(self, key: Key) -> None:
        async with self._lock:
            self._items.pop(key_tuple(key), None)

    async def transact_single(self, op: Operation) -> None:
        """Run one conditional write, reporting failure as ConditionFailedError."""
        try:
            await self.transact_write([op])
        except TransactionCanceledError:
            raise ConditionFailedError()

    # ==========================================================================
    # MULTI-ITEM READS
    # ==========================================================================

    async def query(self, pk: str, sk_prefix: Optional[str] = None) -> List[Item]:
        prefix = sk_prefix or ""
        found = [
            item for (item_pk, item_sk), item in self._items.items()
            if item_pk == pk and item_sk.startswith(prefix)
        ]
        found.sort(key=lambda item: item["sk"])
        return copy.deepcopy(found)

    async def scan(
        self,
        limit: int,
        exclusive_start_key: Optional[Key] = None,
        predicate: Optional[Predicate] = None,
    ) -> ScanPage:
        keys = sorted(self._items)
        if exclusive_start_key is not None:
            start = key_tuple(exclusive_start_key)
            keys = [k for k in keys if k > start]

        examined = keys[:limit]
        items = [copy.deepcopy(self._items[k]) for k in examined]
        if predicate is not None:
            items = [item for item in items if predicate(item)]

        last_key = None
        if len(examined) == limit and len(keys) > limit:
            last_key = make_key(*examined[-1])
        return ScanPage(items=items, last_evaluated_key=last_key)

    # ==========================================================================
    # TRANSACTIONS
    # ==========================================================================

    async def transact_write(self, operations: Sequence[Operation]) -> None:
        async with self._lock:
            reasons = [self._check(op) for op in operations]
            if any(reasons):
                logger.debug(f"Transaction cancelled: {reasons}")
                raise TransactionCanceledError(reasons)

            for op in operations:
                self._apply(op)

    def _check(self, op: Operation) -> Optional[str]:
        reason = check_condition(self._items.get(key_tuple(op.key)), op)
        if reason is None and isinstance(op, Put) and op.unique_partition:
            pk = op.key["pk"]
            if any(item_pk == pk for item_pk, _ in self._items):
                reason = CONDITION_FAILED
        return reason

    def _apply(self, op: Operation) -> None:
        k = key_tuple(op.key)
        if isinstance(op, Put):
            self._items[k] = copy.deepcopy(op.item)
        elif isinstance(op, Update):
            self._items[k] = apply_update(
                self._items[k],
                copy.deepcopy(op.set_fields),
                op.remove_fields,
            )
        elif isinstance(op, Delete):
            self._items.pop(k, None)
        # ConditionCheck writes nothing
