"""
Tests for core security utilities.

Tests:
- Password hashing and verification
- Access token creation and validation
- Token expiration and tampering
"""

import pytest
from datetime import datetime, timedelta, timezone
import jwt as pyjwt

from core.security import (
    create_access_token,
    hash_password,
    verify_jwt_token,
    verify_password,
)

SECRET = "test-secret-key-min-32-chars-long-for-hs256"


class TestPasswordHashing:
    """Test password hashing and verification."""

    def test_hash_password(self):
        """Test password hashing."""
        password = "SecurePassword123!"
        hashed = hash_password(password)

        assert hashed != password
        assert hashed.startswith("$2b$")

    def test_verify_correct_password(self):
        hashed = hash_password("SecurePassword123!")
        assert verify_password("SecurePassword123!", hashed) is True

    def test_verify_wrong_password(self):
        hashed = hash_password("SecurePassword123!")
        assert verify_password("WrongPassword", hashed) is False

    def test_same_password_different_hashes(self):
        """Salts differ between hashes."""
        assert hash_password("repeat-me") != hash_password("repeat-me")

    def test_malformed_hash(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestAccessTokens:
    """Test JWT access tokens."""

    def test_round_trip(self):
        token = create_access_token(user_id=5, company_id=3, secret_key=SECRET)
        payload = verify_jwt_token(token, SECRET)

        assert payload["user_id"] == 5
        assert payload["company_id"] == 3
        assert payload["type"] == "access"
        assert "jti" in payload
        assert payload["exp"] > payload["iat"]

    def test_user_without_company(self):
        token = create_access_token(user_id=5, company_id=None, secret_key=SECRET)
        assert verify_jwt_token(token, SECRET)["company_id"] is None

    def test_custom_expiry(self):
        token = create_access_token(
            user_id=1, company_id=1, secret_key=SECRET, expires_delta=timedelta(minutes=5)
        )
        payload = verify_jwt_token(token, SECRET)
        assert payload["exp"] - payload["iat"] == 300

    def test_unique_token_ids(self):
        first = verify_jwt_token(create_access_token(1, 1, SECRET), SECRET)
        second = verify_jwt_token(create_access_token(1, 1, SECRET), SECRET)
        assert first["jti"] != second["jti"]

    def test_expired_token(self):
        token = create_access_token(
            user_id=1, company_id=1, secret_key=SECRET, expires_delta=timedelta(seconds=-10)
        )
        with pytest.raises(pyjwt.ExpiredSignatureError):
            verify_jwt_token(token, SECRET)

    def test_wrong_secret(self):
        token = create_access_token(user_id=1, company_id=1, secret_key=SECRET)
        with pytest.raises(pyjwt.InvalidSignatureError):
            verify_jwt_token(token, "another-secret-key-that-is-long-enough")

    def test_tampered_token(self):
        token = create_access_token(user_id=1, company_id=1, secret_key=SECRET)
        with pytest.raises(pyjwt.InvalidTokenError):
            verify_jwt_token(token[:-4] + "abcd", SECRET)

    def test_non_access_token_rejected(self):
        now = datetime.now(timezone.utc)
        token = pyjwt.encode(
            {
                "user_id": 1,
                "company_id": 1,
                "type": "refresh",
                "exp": int((now + timedelta(hours=1)).timestamp()),
            },
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(pyjwt.InvalidTokenError, match="Not an access token"):
            verify_jwt_token(token, SECRET)
