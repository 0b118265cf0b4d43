"""Authentication service with business logic."""

import asyncio
import logging
from typing import Any
from uuid import UUID

import requests
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from giftcard_api.config import settings
from giftcard_api.core.dates import ensure_aware, utc_now
from giftcard_api.core.exceptions import (
    AuthenticationError,
    BadRequestError,
    NotFoundError,
    PermissionDeniedError,
)
from giftcard_api.core.security import (
    REFRESH_TOKEN_TYPE,
    TokenClaims,
    create_access_token,
    create_refresh_token,
    decode_token,
    generate_otp,
    hash_password,
    hash_token,
    verify_password,
)
from giftcard_api.models.enums import UserRole
from giftcard_api.models.user import PasswordResetOtp, RefreshToken, User
from giftcard_api.repositories.user import (
    PasswordResetOtpRepository,
    RefreshTokenRepository,
    UserRepository,
)
from giftcard_api.schemas.auth import TokenPair
from giftcard_api.services.activity_log import ActivityLogger
from giftcard_api.services.notification import NotificationService
from giftcard_api.worker.queue import JobQueue

logger = logging.getLogger(__name__)

GOOGLE_CERTS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")


def _decode_google_token(token: str, client_id: str) -> dict[str, Any]:
    response = requests.get(GOOGLE_CERTS_URL, timeout=10)
    response.raise_for_status()
    claims = jwt.decode(
        token,
        response.json(),
        algorithms=["RS256"],
        audience=client_id,
        options={"verify_at_hash": False},
    )
    if claims.get("iss") not in GOOGLE_ISSUERS:
        raise JWTError("Unexpected token issuer")
    return claims


async def verify_google_token(token: str) -> dict[str, Any]:
    """
    Verify a Google ID token against Google's published signing keys.

    Returns:
        The token claims (email, sub, name, picture, ...)

    Raises:
        AuthenticationError: If the token is invalid or Google sign-in is not configured
    """
    if not settings.google_client_id:
        raise AuthenticationError("Google sign-in is not configured")
    try:
        return await asyncio.to_thread(_decode_google_token, token, settings.google_client_id)
    except JWTError as e:
        logger.warning(f"Google token rejected: {e}")
        raise AuthenticationError("Invalid Google token")
    except requests.RequestException as e:
        logger.error(f"Could not fetch Google signing keys: {e}")
        raise AuthenticationError("Google sign-in is temporarily unavailable")


def claims_for(user: User) -> TokenClaims:
    """Merchants are verified once their profile is approved; others by email."""
    profile_status = user.profile_status
    if user.role == UserRole.MERCHANT:
        is_verified = bool(user.merchant_profile and user.merchant_profile.is_verified)
    else:
        is_verified = user.email_verified
    return TokenClaims(
        user_id=user.id,
        email=user.email,
        role=user.role.value,
        is_verified=is_verified,
        profile_status=profile_status.value if profile_status else None,
    )


async def issue_token_pair(db: AsyncSession, user: User) -> TokenPair:
    """
    Create an access token and persist a new refresh token for ``user``.

    Claims reflect the user's current role and profile status. Commits the
    session, so pending changes to ``user`` are saved along with the token.
    """
    refresh_token, expires_at = create_refresh_token(user.id)
    db.add(RefreshToken(token_hash=hash_token(refresh_token), user_id=user.id, expires_at=expires_at))
    await db.commit()
    return TokenPair(access_token=create_access_token(claims_for(user)), refresh_token=refresh_token)


class AuthService:
    """Service for authentication operations."""

    def __init__(
        self,
        db: AsyncSession,
        queue: JobQueue,
        activity: ActivityLogger,
    ):
        """
        Initialize authentication service.

        Args:
            db: Database session shared by the repositories
            queue: Background job queue for emails and notifications
            activity: Audit logger bound to the current request
        """
        self.db = db
        self.queue = queue
        self.activity = activity
        self.user_repo = UserRepository(db)
        self.token_repo = RefreshTokenRepository(db)
        self.otp_repo = PasswordResetOtpRepository(db)
        self.notifications = NotificationService(db, queue)

    async def issue_tokens(self, user: User) -> TokenPair:
        return await issue_token_pair(self.db, user)

    async def register_merchant(
        self, email: str, password: str, name: str, phone: str | None = None
    ) -> tuple[User, TokenPair]:
        """
        Quick merchant registration; the business profile is completed later.

        Raises:
            BadRequestError: If email already exists
        """
        if await self.user_repo.email_exists(email):
            raise BadRequestError("User with this email already exists")

        user = await self.user_repo.create(
            User(
                email=email.lower(),
                password_hash=hash_password(password),
                name=name,
                phone=phone,
                role=UserRole.MERCHANT,
                provider="local",
                merchant_profile=None,
            )
        )
        tokens = await self.issue_tokens(user)
        logger.info("Merchant registered", extra={"user_id": str(user.id)})

        await self.queue.enqueue_email("welcome_email", user.email, user.name)
        await self.notifications.on_merchant_registered(user.id, user.name or user.email)
        await self.activity.register(user.id, user.email, user.role)
        return user, tokens

    async def login(self, email: str, password: str) -> tuple[User, TokenPair]:
        """
        Authenticate user and return JWT tokens.

        Raises:
            AuthenticationError: Unknown email or wrong password
            PermissionDeniedError: Account is deactivated
            BadRequestError: Account only signs in through Google
        """
        user = await self.user_repo.get_by_email(email)
        if user is None:
            await self.activity.login_failed(email, "unknown email")
            raise AuthenticationError("Invalid email or password")

        if not user.is_active:
            await self.activity.login_failed(email, "account deactivated")
            raise PermissionDeniedError("Account is deactivated. Please contact support.")

        if not user.password_hash:
            raise BadRequestError("This account uses Google sign-in. Please log in with Google.")

        if not verify_password(password, user.password_hash):
            await self.activity.login_failed(email, "wrong password")
            raise AuthenticationError("Invalid email or password")

        user.last_login_at = utc_now()
        tokens = await self.issue_tokens(user)
        await self.activity.login(user.id, user.email, user.role)
        return user, tokens

    async def google_login(self, token: str) -> tuple[User, TokenPair]:
        """
        Sign in with a Google ID token, creating or linking the account by email.

        New accounts are merchants. Google has verified the address, so the
        account is always marked email-verified.
        """
        info = await verify_google_token(token)
        email = (info.get("email") or "").lower()
        google_id = info.get("sub")
        if not email or not google_id:
            raise AuthenticationError("Google token is missing email or subject")

        user = await self.user_repo.get_by_google_id(google_id) or await self.user_repo.get_by_email(email)
        created = user is None
        if user is None:
            user = await self.user_repo.create(
                User(
                    email=email,
                    name=info.get("name"),
                    avatar=info.get("picture"),
                    google_id=google_id,
                    provider="google",
                    role=UserRole.MERCHANT,
                    email_verified=True,
                    merchant_profile=None,
                )
            )
        else:
            if not user.is_active:
                raise PermissionDeniedError("Account is deactivated. Please contact support.")
            user.google_id = google_id
            user.provider = "google"
            user.email_verified = True
            if not user.avatar and info.get("picture"):
                user.avatar = info["picture"]

        user.last_login_at = utc_now()
        tokens = await self.issue_tokens(user)

        if created:
            await self.queue.enqueue_email("welcome_email", user.email, user.name)
            await self.notifications.on_merchant_registered(user.id, user.name or user.email)
            await self.activity.register(user.id, user.email, user.role)
        await self.activity.login(user.id, user.email, user.role)
        return user, tokens

    async def refresh_tokens(self, refresh_token: str) -> TokenPair:
        """
        Rotate a refresh token: the presented token is deleted and a new pair issued.

        Raises:
            AuthenticationError: If the token is invalid, unknown, expired or already used
        """
        try:
            payload = decode_token(refresh_token, REFRESH_TOKEN_TYPE)
            user_id = UUID(payload["sub"])
        except (JWTError, KeyError, ValueError):
            raise AuthenticationError("Invalid or expired refresh token")

        token_hash = hash_token(refresh_token)
        stored = await self.token_repo.get_by_hash(token_hash)
        if stored is None or stored.user_id != user_id:
            raise AuthenticationError("Invalid refresh token")

        # Single use: consumed whether or not it is still valid
        if await self.token_repo.delete_by_hash(token_hash) == 0:
            # Already consumed by a concurrent refresh
            raise AuthenticationError("Invalid refresh token")
        if ensure_aware(stored.expires_at) <= utc_now():
            await self.db.commit()
            raise AuthenticationError("Refresh token expired")

        user = await self.user_repo.get_by_id(user_id)
        if user is None or not user.is_active:
            await self.db.commit()
            raise AuthenticationError("User not found or inactive")

        return await self.issue_tokens(user)

    async def logout(self, user_id: UUID, role: str | None, refresh_token: str | None) -> None:
        if refresh_token:
            await self.token_repo.delete_by_hash(hash_token(refresh_token))
            await self.db.commit()
        await self.activity.logout(user_id, role)

    async def get_user(self, user_id: UUID) -> User:
        """
        Get user by ID for authenticated requests.

        Raises:
            NotFoundError: If the user no longer exists
        """
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    # One-time codes

    async def request_otp(self, email: str) -> None:
        """Issue a password-change code and email it."""
        user = await self.user_repo.get_by_email(email)
        if user is None:
            raise NotFoundError("No account found with this email")

        code, expires_at = generate_otp()
        await self.otp_repo.issue(user.id, code, expires_at)
        await self.queue.enqueue_email("otp_email", user.email, user.name, otp=code)
        logger.info("OTP issued", extra={"user_id": str(user.id)})

    async def _check_otp(self, user: User, code: str) -> PasswordResetOtp:
        otp = await self.otp_repo.get_latest_for_user(user.id)
        if otp is None or otp.used or otp.code != code.upper():
            raise BadRequestError("Invalid OTP")
        if ensure_aware(otp.expires_at) <= utc_now():
            raise BadRequestError("OTP has expired")
        return otp

    async def verify_otp(self, email: str, code: str) -> None:
        user = await self.user_repo.get_by_email(email)
        if user is None:
            raise NotFoundError("No account found with this email")
        await self._check_otp(user, code)

    async def _set_password(self, user: User, otp: PasswordResetOtp, new_password: str) -> None:
        user.password_hash = hash_password(new_password)
        user.is_first_time = False
        otp.used = True
        # Existing sessions must sign in again with the new password
        await self.token_repo.delete_for_user(user.id)
        await self.db.commit()
        await self.queue.enqueue_email("password_changed_email", user.email, user.name)

    async def change_password(self, email: str, code: str, new_password: str) -> None:
        """Forgot-password flow: the emailed code authorizes a new password."""
        user = await self.user_repo.get_by_email(email)
        if user is None:
            raise NotFoundError("No account found with this email")
        otp = await self._check_otp(user, code)
        await self._set_password(user, otp, new_password)
        logger.info("Password changed with OTP", extra={"user_id": str(user.id)})

    async def reset_password(self, user_id: UUID, current_password: str, code: str, new_password: str) -> None:
        """Authenticated change: current password and an emailed code are both required."""
        user = await self.get_user(user_id)
        if not verify_password(current_password, user.password_hash):
            raise BadRequestError("Current password is incorrect")
        otp = await self._check_otp(user, code)
        await self._set_password(user, otp, new_password)
        logger.info("Password reset by user", extra={"user_id": str(user.id)})
