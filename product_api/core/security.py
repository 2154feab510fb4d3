# ==============================================================================
# SECURITY MODULE - Authentication Primitives
# ==============================================================================
# JWT Token Management, Password Hashing, Signed Pagination Cursors
# ==============================================================================

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

from jose import JWTError, jws, jwt
from jose.exceptions import JWSError
from passlib.context import CryptContext

from product_api.core.settings import settings
from product_api.core.exceptions import (
    BadRequestError,
    TokenExpiredError,
    InvalidTokenError,
)
from product_api.core.constants import ErrorMessages


# ==============================================================================
# PASSWORD HASHING
# ==============================================================================

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.PASSWORD_HASH_ROUNDS,
)


def hash_password(password: str) -> str:
    """
    Hash a plaintext password using bcrypt.

    A fresh salt is generated for every call, so hashing the same
    password twice yields different strings.

    Args:
        password: Plaintext password to hash

    Returns:
        Hashed password string safe for storage

    Example:
        >>> hashed = hash_password("Abcd1234")
        >>> verify_password("Abcd1234", hashed)
        True
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plaintext password against its hash.

    Uses constant-time comparison to prevent timing attacks.
    """
    return pwd_context.verify(plain_password, hashed_password)


# ==============================================================================
# JWT TOKEN MANAGEMENT
# ==============================================================================

class TokenType:
    """Token type constants."""
    ACCESS = "access"


def create_access_token(
    subject: Union[str, Any],
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Create a JWT access token.

    The token carries the user identifier as its subject and expires
    after ``ACCESS_TOKEN_EXPIRE_MINUTES`` unless told otherwise.

    Args:
        subject: Token subject (user ID)
        expires_delta: Custom expiration time (default from settings)
        additional_claims: Extra claims to include in token

    Returns:
        Encoded JWT access token string
    """
    now = datetime.now(timezone.utc)
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode: Dict[str, Any] = {
        "sub": str(subject),
        "exp": expire,
        "iat": now,
        "type": TokenType.ACCESS,
    }

    if additional_claims:
        to_encode.update(additional_claims)

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT token.

    Verifies the token signature and expiration time.

    Raises:
        TokenExpiredError: If token has expired
        InvalidTokenError: If token is invalid or malformed
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError as e:
        raise InvalidTokenError(message=f"Invalid token: {str(e)}")


def verify_access_token(token: str) -> Dict[str, Any]:
    """
    Verify that a token is a valid access token carrying a subject.

    Raises:
        InvalidTokenError: If token is not an access token or has no subject
        TokenExpiredError: If token has expired
    """
    payload = decode_token(token)

    if payload.get("type") != TokenType.ACCESS:
        raise InvalidTokenError(message="Invalid token type: expected access token")
    if not payload.get("sub"):
        raise InvalidTokenError(message="Invalid token payload")

    return payload


# ==============================================================================
# PAGINATION CURSORS
# ==============================================================================

def encode_cursor(position: Dict[str, Any]) -> str:
    """
    Sign a page-boundary marker into an opaque cursor string.

    The marker is serialized as compact JSON and wrapped in a JWS, so a
    client can hand it back but cannot point it at a different position.

    Args:
        position: Backend-specific boundary (last evaluated key, last row position)

    Returns:
        Compact JWS string
    """
    payload = json.dumps(position, separators=(",", ":"), sort_keys=True)
    return jws.sign(payload.encode("utf-8"), settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_cursor(cursor: str) -> Dict[str, Any]:
    """
    Verify a cursor produced by :func:`encode_cursor` and return its marker.

    Raises:
        BadRequestError: If the cursor is malformed or its signature fails
    """
    try:
        payload = jws.verify(cursor, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        position = json.loads(payload)
    except (JWSError, ValueError):
        raise BadRequestError(message=ErrorMessages.INVALID_CURSOR)

    if not isinstance(position, dict):
        raise BadRequestError(message=ErrorMessages.INVALID_CURSOR)
    return position
