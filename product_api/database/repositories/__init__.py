# ==============================================================================
# REPOSITORIES PACKAGE INITIALIZATION
# ==============================================================================

"""
Repository Pattern Implementation
=================================

Provides data access abstraction through the Repository Pattern:
- base_repository: UserRepository / ProductRepository interfaces
- relational: SQLAlchemy implementations
- keyvalue: Single-table implementations with derived index records
"""

from product_api.database.repositories.base_repository import (
    ProductRepository,
    UserRepository,
)

__all__ = [
    "ProductRepository",
    "UserRepository",
]
