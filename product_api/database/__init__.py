# ==============================================================================
# DATABASE PACKAGE INITIALIZATION
# ==============================================================================
# Storage abstraction with two interchangeable backend families
# ==============================================================================

"""
Database Module
===============

Provides one storage interface over two backend families:
- Relational: SQLite (development/testing), PostgreSQL (production)
- Key-value: single table with composite keys (MongoDB, in-memory)

Key Components:
- Adapters: Backend-specific lifecycle plus repositories
- Factory: Backend selection at startup
- Repositories: User and product data access
- Keyvalue: Single-table primitives and transactions
"""

from product_api.database.factory import DatabaseFactory
from product_api.database.adapters.base_adapter import BaseStorageAdapter

__all__ = [
    "DatabaseFactory",
    "BaseStorageAdapter",
]
