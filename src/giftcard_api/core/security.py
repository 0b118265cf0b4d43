"""Security utilities for password hashing, JWT tokens and one-time codes."""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext

from giftcard_api.config import settings

# Password hashing with Argon2
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True)
class TokenClaims:
    """Identity carried by an access token.

    Authorization gates read these claims instead of loading the user, so a
    change in profile status becomes visible after the next refresh.
    """

    user_id: UUID
    email: str
    role: str
    is_verified: bool
    profile_status: str | None = None


def hash_password(password: str) -> str:
    """
    Hash a password using Argon2.

    Args:
        password: Plain text password

    Returns:
        Hashed password string
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """
    Verify a password against its hash.

    Accounts created through Google sign-in have no stored hash and never
    match.

    Args:
        plain_password: Password to verify
        hashed_password: Stored password hash

    Returns:
        True if password matches, False otherwise
    """
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(claims: TokenClaims, expires_delta: timedelta | None = None) -> str:
    """
    Create a JWT access token embedding role and verification state.

    Args:
        claims: Identity to encode in token
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_access_expire_minutes)

    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {
        "sub": str(claims.user_id),
        "email": claims.email,
        "role": claims.role,
        "is_verified": claims.is_verified,
        "profile_status": claims.profile_status,
        "exp": expire,
        "type": ACCESS_TOKEN_TYPE,
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_refresh_token(user_id: UUID) -> tuple[str, datetime]:
    """
    Create a JWT refresh token.

    A random ``jti`` keeps tokens issued within the same second distinct, so
    each one maps to its own stored row.

    Args:
        user_id: User ID to encode in token

    Returns:
        Tuple of encoded token and its expiry timestamp
    """
    expire = datetime.now(timezone.utc) + timedelta(days=settings.jwt_refresh_expire_days)
    to_encode = {
        "sub": str(user_id),
        "jti": secrets.token_hex(16),
        "exp": expire,
        "type": REFRESH_TOKEN_TYPE,
    }
    token = jwt.encode(to_encode, settings.refresh_secret, algorithm=settings.jwt_algorithm)
    return token, expire


def decode_token(token: str, token_type: str = ACCESS_TOKEN_TYPE) -> dict[str, Any]:
    """
    Decode and verify a JWT token.

    Args:
        token: JWT token string
        token_type: Expected ``type`` claim

    Returns:
        Decoded token payload

    Raises:
        JWTError: If token is invalid, expired or of the wrong type
    """
    secret = settings.jwt_secret if token_type == ACCESS_TOKEN_TYPE else settings.refresh_secret
    payload = jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    if payload.get("type") != token_type:
        raise JWTError(f"Expected {token_type} token")
    return payload


def get_claims_from_token(token: str) -> TokenClaims:
    """
    Extract identity claims from an access token.

    Raises:
        JWTError: If token is invalid or expired
        ValueError: If user ID is not a valid UUID
    """
    payload = decode_token(token, ACCESS_TOKEN_TYPE)
    user_id_str = payload.get("sub")
    if user_id_str is None:
        raise JWTError("Token missing 'sub' claim")
    return TokenClaims(
        user_id=UUID(user_id_str),
        email=payload.get("email", ""),
        role=payload.get("role", ""),
        is_verified=bool(payload.get("is_verified", False)),
        profile_status=payload.get("profile_status"),
    )


def hash_token(token: str) -> str:
    """SHA-256 digest used to store refresh tokens at rest."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_otp(length: int | None = None) -> tuple[str, datetime]:
    """
    Generate an uppercase hexadecimal one-time code and its expiry.

    Returns:
        Tuple of code and expiry timestamp
    """
    length = length or settings.otp_length
    code = secrets.token_hex((length + 1) // 2).upper()[:length]
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.otp_expire_minutes)
    return code, expires_at
