"""Unit tests for security utilities (password hashing, JWT tokens and OTPs)."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from jose import JWTError, jwt

from giftcard_api.config import settings
from giftcard_api.core.security import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    TokenClaims,
    create_access_token,
    create_refresh_token,
    decode_token,
    generate_otp,
    get_claims_from_token,
    hash_password,
    hash_token,
    verify_password,
)


def _claims(**overrides) -> TokenClaims:
    values = {
        "user_id": uuid4(),
        "email": "merchant@example.com",
        "role": "MERCHANT",
        "is_verified": True,
        "profile_status": "VERIFIED",
    }
    values.update(overrides)
    return TokenClaims(**values)


class TestPasswordHashing:
    """Test password hashing functions."""

    def test_hash_password(self):
        """Test that password is hashed with Argon2."""
        hashed = hash_password("MySecurePassword123")

        assert hashed != "MySecurePassword123"
        assert hashed.startswith("$argon2")

    def test_verify_password_correct(self):
        hashed = hash_password("MySecurePassword123")
        assert verify_password("MySecurePassword123", hashed) is True

    def test_verify_password_incorrect(self):
        hashed = hash_password("MySecurePassword123")
        assert verify_password("WrongPassword456", hashed) is False

    def test_verify_password_without_hash(self):
        """Google-only accounts have no hash and never match."""
        assert verify_password("anything", None) is False
        assert verify_password("anything", "") is False

    def test_hash_same_password_different_hashes(self):
        """Test that hashing the same password twice produces different hashes (salt)."""
        hash1 = hash_password("MySecurePassword123")
        hash2 = hash_password("MySecurePassword123")

        assert hash1 != hash2
        assert verify_password("MySecurePassword123", hash1) is True
        assert verify_password("MySecurePassword123", hash2) is True


class TestAccessTokens:
    """Test access token creation and decoding."""

    def test_access_token_carries_claims(self):
        claims = _claims()
        payload = decode_token(create_access_token(claims))

        assert payload["sub"] == str(claims.user_id)
        assert payload["email"] == claims.email
        assert payload["role"] == "MERCHANT"
        assert payload["is_verified"] is True
        assert payload["profile_status"] == "VERIFIED"
        assert payload["type"] == ACCESS_TOKEN_TYPE
        assert "exp" in payload

    def test_get_claims_from_token_round_trip(self):
        claims = _claims(role="ADMIN", is_verified=False, profile_status=None)
        assert get_claims_from_token(create_access_token(claims)) == claims

    def test_expired_access_token_rejected(self):
        token = create_access_token(_claims(), expires_delta=timedelta(seconds=-1))
        with pytest.raises(JWTError):
            decode_token(token)

    def test_token_signed_with_other_secret_rejected(self):
        payload = decode_token(create_access_token(_claims()))
        forged = jwt.encode(payload, "not-the-secret", algorithm=settings.jwt_algorithm)
        with pytest.raises(JWTError):
            decode_token(forged)

    def test_refresh_token_not_accepted_as_access(self):
        token, _ = create_refresh_token(uuid4())
        with pytest.raises(JWTError):
            get_claims_from_token(token)


class TestRefreshTokens:
    """Test refresh token creation."""

    def test_refresh_token_payload(self):
        user_id = uuid4()
        token, expires_at = create_refresh_token(user_id)
        payload = decode_token(token, REFRESH_TOKEN_TYPE)

        assert payload["sub"] == str(user_id)
        assert payload["type"] == REFRESH_TOKEN_TYPE
        assert payload["jti"]
        expected = datetime.now(timezone.utc) + timedelta(days=settings.jwt_refresh_expire_days)
        assert abs((expires_at - expected).total_seconds()) < 5

    def test_refresh_tokens_are_unique(self):
        """Two tokens issued in the same second still differ (random jti)."""
        user_id = uuid4()
        first, _ = create_refresh_token(user_id)
        second, _ = create_refresh_token(user_id)
        assert first != second
        assert hash_token(first) != hash_token(second)

    def test_access_token_not_accepted_as_refresh(self):
        with pytest.raises(JWTError):
            decode_token(create_access_token(_claims()), REFRESH_TOKEN_TYPE)

    def test_hash_token_is_sha256_hex(self):
        digest = hash_token("token")
        assert len(digest) == 64
        assert digest == hash_token("token")


class TestOtp:
    def test_generate_otp_format(self):
        code, expires_at = generate_otp()

        assert len(code) == settings.otp_length
        assert code == code.upper()
        int(code, 16)
        remaining = expires_at - datetime.now(timezone.utc)
        assert timedelta(minutes=settings.otp_expire_minutes - 1) < remaining <= timedelta(
            minutes=settings.otp_expire_minutes
        )

    def test_generate_otp_custom_length(self):
        code, _ = generate_otp(length=5)
        assert len(code) == 5
