# ==============================================================================
# CORE PACKAGE INITIALIZATION
# ==============================================================================
# Core utilities: Settings, Security, Exceptions, Constants, Logging
# ==============================================================================

"""
Core Module
===========

Contains core utilities and configurations for the application:
- settings: Environment configuration management
- security: JWT authentication, password hashing, signed cursors
- exceptions: Custom exception classes
- constants: Application-wide constants
- logging: Root logger configuration
"""

from product_api.core.settings import settings, get_settings, DatabaseType
from product_api.core.exceptions import (
    AppException,
    DatabaseError,
    TransactionError,
    NotFoundError,
    AlreadyExistsError,
    ConcurrentModificationError,
    ValidationError,
    BadRequestError,
    AuthenticationError,
    AuthorizationError,
    RateLimitError,
    ObjectStoreError,
)

__all__ = [
    "settings",
    "get_settings",
    "DatabaseType",
    "AppException",
    "DatabaseError",
    "TransactionError",
    "NotFoundError",
    "AlreadyExistsError",
    "ConcurrentModificationError",
    "ValidationError",
    "BadRequestError",
    "AuthenticationError",
    "AuthorizationError",
    "RateLimitError",
    "ObjectStoreError",
]
