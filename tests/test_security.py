# ==============================================================================
# SECURITY TESTS
# ==============================================================================
# Password hashing, access tokens and signed cursors
# ==============================================================================

from datetime import timedelta

import pytest

from product_api.core.exceptions import (
    BadRequestError,
    InvalidTokenError,
    TokenExpiredError,
)
from product_api.core.security import (
    create_access_token,
    decode_cursor,
    encode_cursor,
    hash_password,
    verify_access_token,
    verify_password,
)


class TestPasswordHashing:
    """Tests for bcrypt password hashing."""

    def test_hash_and_verify(self):
        hashed = hash_password("Abcd1234")

        assert hashed != "Abcd1234"
        assert verify_password("Abcd1234", hashed)
        assert not verify_password("Abcd12345", hashed)

    def test_salted(self):
        assert hash_password("Abcd1234") != hash_password("Abcd1234")


class TestAccessTokens:
    """Tests for JWT access tokens."""

    def test_round_trip(self):
        token = create_access_token(subject="user-1")
        payload = verify_access_token(token)

        assert payload["sub"] == "user-1"
        assert payload["type"] == "access"
        assert payload["exp"] > payload["iat"]

    def test_expired(self):
        token = create_access_token(subject="user-1", expires_delta=timedelta(seconds=-5))

        with pytest.raises(TokenExpiredError) as exc_info:
            verify_access_token(token)

        assert exc_info.value.message == "Token has expired"
        assert exc_info.value.status_code == 401

    def test_wrong_type(self):
        token = create_access_token(subject="user-1", additional_claims={"type": "refresh"})

        with pytest.raises(InvalidTokenError):
            verify_access_token(token)

    def test_tampered(self):
        token = create_access_token(subject="user-1")
        head, body, signature = token.split(".")
        forged = f"{head}.{body}.{signature[::-1]}"

        with pytest.raises(InvalidTokenError):
            verify_access_token(forged)

    def test_default_invalid_token_message(self):
        error = InvalidTokenError()

        assert error.message == "Invalid token"
        assert error.to_dict()["error"]["code"] == "INVALID_TOKEN"


class TestCursors:
    """Tests for signed pagination cursors."""

    def test_round_trip(self):
        cursor = encode_cursor({"o": 40})
        assert decode_cursor(cursor) == {"o": 40}

    @pytest.mark.parametrize("cursor", ["", "abc", "a.b.c"])
    def test_garbage(self, cursor):
        with pytest.raises(BadRequestError):
            decode_cursor(cursor)

    def test_tampered_payload(self):
        head, _, signature = encode_cursor({"o": 40}).split(".")
        other_body = encode_cursor({"o": 0}).split(".")[1]

        with pytest.raises(BadRequestError):
            decode_cursor(f"{head}.{other_body}.{signature}")
