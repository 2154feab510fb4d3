# ==============================================================================
# STORAGE ADAPTERS PACKAGE
# ==============================================================================

"""
Storage Adapters
================

Provides unified interface implementations for the two backend families:
- BaseStorageAdapter: Abstract interface definition
- RelationalAdapter: SQLite / PostgreSQL using SQLAlchemy async
- KeyValueAdapter: Single-table store (MongoDB or in-memory)
"""

from product_api.database.adapters.base_adapter import BaseStorageAdapter
from product_api.database.adapters.relational_adapter import RelationalAdapter
from product_api.database.adapters.keyvalue_adapter import KeyValueAdapter

__all__ = [
    "BaseStorageAdapter",
    "RelationalAdapter",
    "KeyValueAdapter",
]
