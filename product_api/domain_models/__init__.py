# ==============================================================================
# DOMAIN MODELS PACKAGE INITIALIZATION
# ==============================================================================

"""
Domain Models
=============

SQLAlchemy ORM models backing the relational storage adapter:
- User: Authentication and user management
- Product: Catalog entries owned by a user
"""

from product_api.domain_models.base import SQLBase, TimestampMixin
from product_api.domain_models.user import User
from product_api.domain_models.product import Product

__all__ = [
    "SQLBase",
    "TimestampMixin",
    "User",
    "Product",
]
