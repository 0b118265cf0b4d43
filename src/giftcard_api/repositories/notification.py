"""Notification and preference repositories."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from giftcard_api.models.notification import Notification, NotificationPreference
from giftcard_api.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """Repository for in-app notifications, always scoped to a recipient."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Notification)

    async def list_for_recipient(
        self, recipient_id: UUID, unread_only: bool = False, skip: int = 0, limit: int = 20
    ) -> tuple[list[Notification], int]:
        stmt = select(Notification).where(Notification.recipient_id == recipient_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read == False)  # noqa: E712
        total = await self.count(stmt)
        result = await self.db.execute(
            stmt.order_by(Notification.created_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total

    async def unread_count(self, recipient_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count(Notification.id)).where(
                Notification.recipient_id == recipient_id, Notification.is_read == False  # noqa: E712
            )
        )
        return int(result.scalar_one())

    async def get_for_recipient(self, notification_id: UUID, recipient_id: UUID) -> Notification | None:
        result = await self.db.execute(
            select(Notification).where(
                Notification.id == notification_id, Notification.recipient_id == recipient_id
            )
        )
        return result.scalar_one_or_none()

    async def mark_all_read(self, recipient_id: UUID, now: datetime) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.recipient_id == recipient_id, Notification.is_read == False)  # noqa: E712
            .values(is_read=True, read_at=now)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount or 0

    async def delete_older_than(self, cutoff: datetime) -> int:
        result = await self.db.execute(delete(Notification).where(Notification.created_at < cutoff))
        await self.db.commit()
        return result.rowcount or 0


class NotificationPreferenceRepository(BaseRepository[NotificationPreference]):
    """Repository for per-user notification opt-ins."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, NotificationPreference)

    async def get_by_user(self, user_id: UUID) -> NotificationPreference | None:
        result = await self.db.execute(
            select(NotificationPreference).where(NotificationPreference.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_or_create(self, user_id: UUID) -> NotificationPreference:
        """Return the user's preferences, creating the all-enabled default row on first use."""
        prefs = await self.get_by_user(user_id)
        if prefs is None:
            prefs = await self.create(NotificationPreference(user_id=user_id))
        return prefs
