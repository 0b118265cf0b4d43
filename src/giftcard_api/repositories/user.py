"""User, refresh token and OTP repositories."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from giftcard_api.models.enums import UserRole
from giftcard_api.models.user import PasswordResetOtp, RefreshToken, User
from giftcard_api.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User model with authentication queries."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, User)

    async def get_by_email(self, email: str) -> User | None:
        """Find user by email address (used for login)."""
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def email_exists(self, email: str) -> bool:
        """Check if email is already registered."""
        result = await self.db.execute(select(User.id).where(User.email == email.lower()))
        return result.scalar_one_or_none() is not None

    async def get_by_google_id(self, google_id: str) -> User | None:
        result = await self.db.execute(select(User).where(User.google_id == google_id))
        return result.scalar_one_or_none()

    async def get_first_active_admin(self) -> User | None:
        """Admin that receives platform-wide notifications."""
        result = await self.db.execute(
            select(User)
            .where(User.role == UserRole.ADMIN, User.is_active == True)  # noqa: E712
            .order_by(User.created_at.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Stored refresh tokens, looked up by digest."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, RefreshToken)

    async def get_by_hash(self, token_hash: str) -> RefreshToken | None:
        result = await self.db.execute(
            select(RefreshToken).where(RefreshToken.token_hash == token_hash)
        )
        return result.scalar_one_or_none()

    async def delete_by_hash(self, token_hash: str) -> int:
        """Delete the token if present. Returns the number of rows removed."""
        result = await self.db.execute(
            delete(RefreshToken).where(RefreshToken.token_hash == token_hash)
        )
        return result.rowcount or 0

    async def delete_for_user(self, user_id: UUID) -> int:
        """Revoke every refresh token of a user."""
        result = await self.db.execute(delete(RefreshToken).where(RefreshToken.user_id == user_id))
        return result.rowcount or 0


class PasswordResetOtpRepository(BaseRepository[PasswordResetOtp]):
    """One-time codes for password changes."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, PasswordResetOtp)

    async def get_latest_for_user(self, user_id: UUID) -> PasswordResetOtp | None:
        """Most recently issued code; older codes are superseded."""
        result = await self.db.execute(
            select(PasswordResetOtp)
            .where(PasswordResetOtp.user_id == user_id)
            .order_by(PasswordResetOtp.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def issue(self, user_id: UUID, code: str, expires_at: datetime) -> PasswordResetOtp:
        return await self.create(PasswordResetOtp(user_id=user_id, code=code, expires_at=expires_at))
