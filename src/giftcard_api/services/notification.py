"""Notification producers, delivery and inbox operations."""

import logging
from datetime import timedelta
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from giftcard_api.config import settings
from giftcard_api.core.dates import utc_now
from giftcard_api.core.exceptions import NotFoundError
from giftcard_api.models.enums import NotificationType, RecipientType
from giftcard_api.models.notification import Notification, NotificationPreference
from giftcard_api.repositories.notification import (
    NotificationPreferenceRepository,
    NotificationRepository,
)
from giftcard_api.repositories.user import UserRepository
from giftcard_api.schemas.notification import NotificationPayload
from giftcard_api.worker.queue import JobQueue

logger = logging.getLogger(__name__)


TEMPLATES: dict[NotificationType, tuple[str, str]] = {
    NotificationType.MERCHANT_REGISTERED: (
        "New Merchant Registered",
        "{merchant_name} has registered on the platform.",
    ),
    NotificationType.PROFILE_SUBMITTED_FOR_VERIFICATION: (
        "Profile Submitted for Verification",
        "{merchant_name} has submitted their profile for verification.",
    ),
    NotificationType.PURCHASE_MADE: (
        "New Purchase",
        'A gift card "{gift_card_title}" was purchased for {amount}.',
    ),
    NotificationType.REDEMPTION_MADE: (
        "New Redemption",
        "A redemption of {amount} was made on a gift card.",
    ),
    NotificationType.PROFILE_VERIFIED: (
        "Profile Verified",
        "Congratulations! Your merchant profile has been verified. You can now create gift cards.",
    ),
    NotificationType.PROFILE_REJECTED: (
        "Profile Rejected",
        "Your merchant profile was rejected. Reason: {reason}. Please update and resubmit.",
    ),
    NotificationType.GIFT_CARD_PURCHASED: (
        "Gift Card Purchased",
        'Your gift card "{gift_card_title}" was purchased by {customer_name}.',
    ),
    NotificationType.GIFT_CARD_REDEEMED: (
        "Gift Card Redeemed",
        '{amount} was redeemed from your gift card "{gift_card_title}".',
    ),
}

TEMPLATE_DEFAULTS = {
    "merchant_name": "A merchant",
    "gift_card_title": "Unknown",
    "amount": "N/A",
    "reason": "Not specified",
    "customer_name": "a customer",
}


def render_notification(notification_type: NotificationType, **data: Any) -> tuple[str, str]:
    """Return (title, message) for a notification type, filling gaps with defaults."""
    title, message = TEMPLATES[notification_type]
    values = {**TEMPLATE_DEFAULTS, **{k: v for k, v in data.items() if v not in (None, "")}}
    return title, message.format(**values)


class NotificationService:
    """Produces notifications from domain events and serves the inbox."""

    def __init__(self, db: AsyncSession, queue: JobQueue | None = None):
        self.db = db
        self.queue = queue
        self.notification_repo = NotificationRepository(db)
        self.preference_repo = NotificationPreferenceRepository(db)
        self.user_repo = UserRepository(db)

    # Producers

    async def _notify(
        self,
        recipient_id: UUID,
        recipient_type: RecipientType,
        notification_type: NotificationType,
        resource_type: str | None = None,
        resource_id: Any = None,
        actor_id: UUID | None = None,
        actor_name: str | None = None,
        **data: Any,
    ) -> None:
        if self.queue is None:
            return
        title, message = render_notification(notification_type, **data)
        await self.queue.enqueue_notification(
            NotificationPayload(
                recipient_id=recipient_id,
                recipient_type=recipient_type,
                type=notification_type,
                title=title,
                message=message,
                resource_type=resource_type,
                resource_id=str(resource_id) if resource_id is not None else None,
                actor_id=actor_id,
                actor_name=actor_name,
            )
        )

    async def _notify_admin(self, notification_type: NotificationType, **kwargs: Any) -> None:
        admin = await self.user_repo.get_first_active_admin()
        if admin is None:
            logger.warning(f"No active admin to receive {notification_type.value} notification")
            return
        await self._notify(admin.id, RecipientType.ADMIN, notification_type, **kwargs)

    async def on_merchant_registered(self, merchant_id: UUID, merchant_name: str | None) -> None:
        await self._notify_admin(
            NotificationType.MERCHANT_REGISTERED,
            resource_type="user",
            resource_id=merchant_id,
            actor_id=merchant_id,
            actor_name=merchant_name,
            merchant_name=merchant_name,
        )

    async def on_profile_submitted_for_verification(
        self, merchant_id: UUID, merchant_name: str, profile_id: UUID
    ) -> None:
        await self._notify_admin(
            NotificationType.PROFILE_SUBMITTED_FOR_VERIFICATION,
            resource_type="merchant_profile",
            resource_id=profile_id,
            actor_id=merchant_id,
            actor_name=merchant_name,
            merchant_name=merchant_name,
        )

    async def on_purchase_made(
        self, purchase_id: UUID, gift_card_title: str, amount: str, customer_name: str
    ) -> None:
        await self._notify_admin(
            NotificationType.PURCHASE_MADE,
            resource_type="purchased_gift_card",
            resource_id=purchase_id,
            actor_name=customer_name,
            gift_card_title=gift_card_title,
            amount=amount,
        )

    async def on_redemption_made(
        self, redemption_id: UUID, amount: str, merchant_id: UUID, merchant_name: str | None
    ) -> None:
        await self._notify_admin(
            NotificationType.REDEMPTION_MADE,
            resource_type="redemption",
            resource_id=redemption_id,
            actor_id=merchant_id,
            actor_name=merchant_name,
            amount=amount,
        )

    async def on_profile_verified(self, merchant_id: UUID, admin_id: UUID | None = None) -> None:
        await self._notify(
            merchant_id,
            RecipientType.MERCHANT,
            NotificationType.PROFILE_VERIFIED,
            resource_type="merchant_profile",
            resource_id=merchant_id,
            actor_id=admin_id,
        )

    async def on_profile_rejected(
        self, merchant_id: UUID, reason: str | None, admin_id: UUID | None = None
    ) -> None:
        await self._notify(
            merchant_id,
            RecipientType.MERCHANT,
            NotificationType.PROFILE_REJECTED,
            resource_type="merchant_profile",
            resource_id=merchant_id,
            actor_id=admin_id,
            reason=reason,
        )

    async def on_gift_card_purchased(
        self, merchant_id: UUID, purchase_id: UUID, gift_card_title: str, customer_name: str, amount: str
    ) -> None:
        await self._notify(
            merchant_id,
            RecipientType.MERCHANT,
            NotificationType.GIFT_CARD_PURCHASED,
            resource_type="purchased_gift_card",
            resource_id=purchase_id,
            actor_name=customer_name,
            gift_card_title=gift_card_title,
            customer_name=customer_name,
            amount=amount,
        )

    async def on_gift_card_redeemed(
        self, merchant_id: UUID, redemption_id: UUID, gift_card_title: str, amount: str
    ) -> None:
        await self._notify(
            merchant_id,
            RecipientType.MERCHANT,
            NotificationType.GIFT_CARD_REDEEMED,
            resource_type="redemption",
            resource_id=redemption_id,
            actor_id=merchant_id,
            gift_card_title=gift_card_title,
            amount=amount,
        )

    # Worker side

    async def deliver(self, payload: NotificationPayload) -> Notification | None:
        """Persist a notification unless the recipient opted out of its type."""
        prefs = await self.preference_repo.get_by_user(payload.recipient_id)
        if prefs is not None and not prefs.allows(payload.type):
            logger.info(
                f"Recipient disabled {payload.type.value} notifications, skipping",
                extra={"user_id": str(payload.recipient_id)},
            )
            return None
        return await self.notification_repo.create(Notification(**payload.model_dump()))

    async def cleanup_older_than(self, days: int | None = None) -> int:
        days = days if days is not None else settings.notification_retention_days
        cutoff = utc_now() - timedelta(days=days)
        deleted = await self.notification_repo.delete_older_than(cutoff)
        logger.info(f"Deleted {deleted} notifications older than {days} days")
        return deleted

    # Inbox

    async def list_notifications(
        self, user_id: UUID, page: int, limit: int, unread_only: bool = False
    ) -> tuple[list[Notification], int, int]:
        items, total = await self.notification_repo.list_for_recipient(
            user_id, unread_only=unread_only, skip=(page - 1) * limit, limit=limit
        )
        unread = await self.notification_repo.unread_count(user_id)
        return items, total, unread

    async def unread_count(self, user_id: UUID) -> int:
        return await self.notification_repo.unread_count(user_id)

    async def mark_as_read(self, notification_id: UUID, user_id: UUID) -> Notification:
        notification = await self.notification_repo.get_for_recipient(notification_id, user_id)
        if notification is None:
            raise NotFoundError("Notification not found")
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = utc_now()
            await self.db.commit()
        return notification

    async def mark_all_as_read(self, user_id: UUID) -> int:
        return await self.notification_repo.mark_all_read(user_id, utc_now())

    async def delete(self, notification_id: UUID, user_id: UUID) -> None:
        notification = await self.notification_repo.get_for_recipient(notification_id, user_id)
        if notification is None:
            raise NotFoundError("Notification not found")
        await self.db.delete(notification)
        await self.db.commit()

    async def get_preferences(self, user_id: UUID) -> NotificationPreference:
        return await self.preference_repo.get_or_create(user_id)

    async def update_preferences(self, user_id: UUID, updates: dict[str, bool]) -> NotificationPreference:
        prefs = await self.preference_repo.get_or_create(user_id)
        return await self.preference_repo.update(prefs.id, updates)
