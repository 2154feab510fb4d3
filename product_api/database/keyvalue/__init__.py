# ==============================================================================
# KEY-VALUE PACKAGE INITIALIZATION
# ==============================================================================

"""
Key-Value Table Layer
=====================

Single-table storage addressed by a composite (pk, sk) key:
- table: Abstract interface, transaction operations and errors
- memory_table: Process-local implementation (development, tests)
- mongo_table: MongoDB implementation (motor)
- cursor: Signed scan cursors
"""

from product_api.database.keyvalue.table import (
    ConditionCheck,
    ConditionFailedError,
    Delete,
    KeyValueTable,
    Put,
    ScanPage,
    TransactionCanceledError,
    Update,
    make_key,
)
from product_api.database.keyvalue.memory_table import MemoryKeyValueTable
from product_api.database.keyvalue.mongo_table import MongoKeyValueTable
from product_api.database.keyvalue.cursor import decode_last_key, encode_last_key

__all__ = [
    "ConditionCheck",
    "ConditionFailedError",
    "Delete",
    "KeyValueTable",
    "Put",
    "ScanPage",
    "TransactionCanceledError",
    "Update",
    "make_key",
    "MemoryKeyValueTable",
    "MongoKeyValueTable",
    "decode_last_key",
    "encode_last_key",
]
