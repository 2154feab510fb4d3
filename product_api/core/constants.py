# ==============================================================================
# APPLICATION CONSTANTS - Centralized Configuration Values
# ==============================================================================
# Immutable constants used throughout the application
# Organized by category for easy maintenance
# ==============================================================================

from __future__ import annotations

from typing import Final, FrozenSet


# ==============================================================================
# API CONSTANTS
# ==============================================================================

class APIConstants:
    """API-related constants."""

    # Pagination defaults
    DEFAULT_PAGE_SIZE: Final[int] = 20
    MAX_PAGE_SIZE: Final[int] = 100
    MIN_PAGE_SIZE: Final[int] = 1

    # Response headers
    RATE_LIMIT_HEADER: Final[str] = "X-RateLimit-Limit"
    RATE_LIMIT_REMAINING_HEADER: Final[str] = "X-RateLimit-Remaining"
    RATE_LIMIT_RESET_HEADER: Final[str] = "X-RateLimit-Reset"
    REQUEST_ID_HEADER: Final[str] = "X-Request-ID"

    # Paths exempt from rate limiting
    UNTHROTTLED_PATHS: Final[FrozenSet[str]] = frozenset({"/", "/health"})


# ==============================================================================
# DATABASE CONSTANTS
# ==============================================================================

class DatabaseConstants:
    """Database-related constants."""

    # Relational table names
    USERS_TABLE: Final[str] = "users"
    PRODUCTS_TABLE: Final[str] = "products"

    # Numeric precision for prices
    PRICE_PRECISION: Final[int] = 10
    PRICE_SCALE: Final[int] = 2


class KeyPrefixes:
    """
    Partition/sort key prefixes of the single-table layout.

    Record families:
        USER#<id>        / PROFILE#<id>   user primary record
        EMAIL#<email>    / USER#<id>      email index
        PRODUCT#<id>     / DETAILS#<id>   product primary record
        USER#<owner>     / PRODUCT#<id>   owner index
        CATEGORY#<name>  / PRODUCT#<id>   category index
    """

    USER: Final[str] = "USER#"
    PROFILE: Final[str] = "PROFILE#"
    EMAIL: Final[str] = "EMAIL#"
    PRODUCT: Final[str] = "PRODUCT#"
    DETAILS: Final[str] = "DETAILS#"
    CATEGORY: Final[str] = "CATEGORY#"


# ==============================================================================
# SECURITY CONSTANTS
# ==============================================================================

class SecurityConstants:
    """Security-related constants."""

    # Password requirements
    MIN_PASSWORD_LENGTH: Final[int] = 8
    MAX_PASSWORD_LENGTH: Final[int] = 72


class UserRoles:
    """User role constants."""

    USER: Final[str] = "user"
    ADMIN: Final[str] = "admin"


# ==============================================================================
# UPLOAD CONSTANTS
# ==============================================================================

class UploadConstants:
    """Object store upload constants."""

    ALLOWED_CONTENT_TYPES: Final[FrozenSet[str]] = frozenset({
        "image/jpeg",
        "image/png",
        "image/gif",
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    })


# ==============================================================================
# ERROR MESSAGES
# ==============================================================================

class ErrorMessages:
    """Standardized error messages."""

    # Authentication
    INVALID_CREDENTIALS: Final[str] = "Invalid email or password"
    TOKEN_EXPIRED: Final[str] = "Token has expired"
    TOKEN_INVALID: Final[str] = "Invalid token"
    UNAUTHORIZED: Final[str] = "Authentication required"

    # Authorization
    ACCOUNT_INACTIVE: Final[str] = "Account is not active"
    PRODUCT_UPDATE_FORBIDDEN: Final[str] = "Unauthorized to update this product"
    PRODUCT_DELETE_FORBIDDEN: Final[str] = "Unauthorized to delete this product"

    # Resources
    USER_NOT_FOUND: Final[str] = "User not found"
    PRODUCT_NOT_FOUND: Final[str] = "Product not found"
    EMAIL_TAKEN: Final[str] = "User with this email already exists"
    PRODUCT_MODIFIED: Final[str] = "Product was modified concurrently, retry the request"

    # Validation
    INVALID_CURSOR: Final[str] = "Invalid pagination cursor"
    FILE_TYPE_NOT_ALLOWED: Final[str] = "File type not allowed"
    WEAK_PASSWORD: Final[str] = (
        "Password must contain at least one uppercase letter, "
        "one lowercase letter, and one number"
    )

    # Rate limiting
    RATE_LIMIT_EXCEEDED: Final[str] = "Too many requests, please try again later"


# ==============================================================================
# SUCCESS MESSAGES
# ==============================================================================

class SuccessMessages:
    """Standardized success messages."""

    USER_REGISTERED: Final[str] = "User registered successfully"
    LOGIN_SUCCESS: Final[str] = "Login successful"
    PROFILE_UPDATED: Final[str] = "Profile updated successfully"

    PRODUCT_CREATED: Final[str] = "Product created successfully"
    PRODUCT_UPDATED: Final[str] = "Product updated successfully"
    PRODUCT_DELETED: Final[str] = "Product deleted successfully"

    FILE_DELETED: Final[str] = "File deleted successfully"
