# ==============================================================================
# KEY-VALUE TABLE - Abstract Single-Table Interface
# ==============================================================================
# One logical table of items addressed by a composite (pk, sk) key, with
# conditional writes and all-or-nothing multi-item transactions.
# ==============================================================================

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from product_api.core.exceptions import TransactionError

Item = Dict[str, Any]
Key = Dict[str, str]
Predicate = Callable[[Item], bool]

PARTITION_KEY = "pk"
SORT_KEY = "sk"

CONDITION_FAILED = "ConditionalCheckFailed"


def make_key(pk: str, sk: str) -> Key:
    """Build a primary key mapping."""
    return {PARTITION_KEY: pk, SORT_KEY: sk}


def key_of(item: Item) -> Key:
    """Extract the primary key of an item."""
    return make_key(item[PARTITION_KEY], item[SORT_KEY])


def key_tuple(key: Key) -> Tuple[str, str]:
    return key[PARTITION_KEY], key[SORT_KEY]


# ==============================================================================
# ERRORS
# ==============================================================================

class ConditionFailedError(TransactionError):
    """A single-item conditional write found the item in the wrong state."""

    def __init__(self, message: str = "Conditional check failed") -> None:
        super().__init__(message=message)
        self.error_code = "CONDITION_FAILED"


class TransactionCanceledError(ConditionFailedError):
    """
    A transaction was cancelled and none of its operations were applied.

    Attributes:
        reasons: One entry per operation, ``CONDITION_FAILED`` for each
            operation whose condition did not hold, None otherwise
    """

    def __init__(self, reasons: Sequence[Optional[str]]) -> None:
        super().__init__(message="Transaction cancelled")
        self.error_code = "TRANSACTION_CANCELED"
        self.reasons: List[Optional[str]] = list(reasons)
        self.details = {"cancellation_reasons": self.reasons}

    @property
    def failed_indexes(self) -> List[int]:
        """Positions of the operations whose condition failed."""
        return [i for i, reason in enumerate(self.reasons) if reason]


# ==============================================================================
# TRANSACTION OPERATIONS
# ==============================================================================

@dataclass
class Put:
    """
    Write a whole item, optionally only when its key is unused.

    With ``unique_partition`` the write also fails when any other item
    already lives in the same partition, which lets a lookup record such
    as an email index act as a uniqueness guard.
    """

    item: Item
    must_not_exist: bool = False
    unique_partition: bool = False

    @property
    def key(self) -> Key:
        return key_of(self.item)


@dataclass
class Update:
    """
    Patch an existing item.

    The item must exist and every ``expected`` attribute must hold the
    given value (None meaning absent or null).
    """

    key: Key
    set_fields: Dict[str, Any] = field(default_factory=dict)
    remove_fields: Sequence[str] = ()
    expected: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Delete:
    """
    Remove an item. Without ``expected`` a missing item is not an error;
    with it, the item must exist and match.
    """

    key: Key
    expected: Optional[Dict[str, Any]] = None


@dataclass
class ConditionCheck:
    """Assert an item's state without writing it."""

    key: Key
    must_exist: bool = True
    expected: Dict[str, Any] = field(default_factory=dict)


Operation = Union[Put, Update, Delete, ConditionCheck]


def matches(item: Optional[Item], expected: Dict[str, Any]) -> bool:
    """Check that an existing item carries every expected attribute value."""
    if item is None:
        return False
    return all(item.get(name) == value for name, value in expected.items())


def check_condition(current: Optional[Item], op: Operation) -> Optional[str]:
    """
    Evaluate the condition of one operation against the current item.

    Returns:
        ``CONDITION_FAILED`` when the condition does not hold, else None
    """
    if isinstance(op, Put):
        failed = op.must_not_exist and current is not None
    elif isinstance(op, Update):
        failed = not matches(current, op.expected)
    elif isinstance(op, Delete):
        failed = op.expected is not None and not matches(current, op.expected)
    elif isinstance(op, ConditionCheck):
        if op.must_exist:
            failed = not matches(current, op.expected)
        else:
            failed = current is not None
    else:
        raise TypeError(f"Unsupported transaction operation: {op!r}")
    return CONDITION_FAILED if failed else None


def apply_update(item: Item, set_fields: Dict[str, Any], remove_fields: Sequence[str]) -> Item:
    """Return a patched copy of an item."""
    updated = dict(item)
    updated.update(set_fields)
    for name in remove_fields:
        updated.pop(name, None)
    return updated


# ==============================================================================
# SCAN RESULT
# ==============================================================================

@dataclass
class ScanPage:
    """
    One scan step.

    Attributes:
        items: Examined items that passed the predicate
        last_evaluated_key: Key of the last examined item when the step
            stopped at its limit, None when the table is exhausted
    """

    items: List[Item]
    last_evaluated_key: Optional[Key] = None


# ==============================================================================
# TABLE INTERFACE
# ==============================================================================

class KeyValueTable(ABC):
    """
    Abstract single table addressed by ``(pk, sk)``.

    Implementations must apply a ``transact_write`` batch atomically:
    either every operation is applied or, when any condition fails, none
    is and ``TransactionCanceledError`` is raised.

    Example:
        >>> await table.transact_write([
        ...     Put({"pk": "A#1", "sk": "B#1"}, must_not_exist=True),
        ...     Put({"pk": "C#x", "sk": "A#1"}, must_not_exist=True),
        ... ])
    """

    # ==========================================================================
    # LIFECYCLE METHODS
    # ==========================================================================

    @abstractmethod
    async def connect(self) -> None:
        """Open the underlying store and prepare the table."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the underlying store."""

    @abstractmethod
    async def health_check(self) -> bool:
        """Return True when the store answers."""

    # ==========================================================================
    # SINGLE-ITEM OPERATIONS
    # ==========================================================================

    @abstractmethod
    async def get_item(self, key: Key) -> Optional[Item]:
        """Fetch one item by primary key, None when absent."""

    @abstractmethod
    async def put_item(self, item: Item, must_not_exist: bool = False) -> None:
        """
        Write a whole item.

        Raises:
            ConditionFailedError: If ``must_not_exist`` and the key is taken
        """

    @abstractmethod
    async def update_item(
        self,
        key: Key,
        set_fields: Dict[str, Any],
        remove_fields: Sequence[str] = (),
        expected: Optional[Dict[str, Any]] = None,
    ) -> Item:
        """
        Patch an existing item and return its new state.

        Raises:
            ConditionFailedError: If the item is missing or does not match
        """

    @abstractmethod
    async def delete_item(self, key: Key) -> None:
        """Remove one item; a missing item is not an error."""

    # ==========================================================================
    # MULTI-ITEM READS
    # ==========================================================================

    @abstractmethod
    async def query(self, pk: str, sk_prefix: Optional[str] = None) -> List[Item]:
        """Return every item of a partition, sorted by sort key."""

    @abstractmethod
    async def scan(
        self,
        limit: int,
        exclusive_start_key: Optional[Key] = None,
        predicate: Optional[Predicate] = None,
    ) -> ScanPage:
        """
        Examine up to ``limit`` items in ``(pk, sk)`` order after the
        start key, then keep those accepted by ``predicate``.

        The page may hold fewer than ``limit`` items even when more
        matching items follow.
        """

    # ==========================================================================
    # TRANSACTIONS
    # ==========================================================================

    @abstractmethod
    async def transact_write(self, operations: Sequence[Operation]) -> None:
        """
        Apply a batch of operations atomically.

        Raises:
            TransactionCanceledError: If any condition fails
        """
