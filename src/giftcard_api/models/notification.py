"""In-app notifications and per-user delivery preferences."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from giftcard_api.models.base import BaseModel, enum_column
from giftcard_api.models.enums import NotificationType, RecipientType


class Notification(BaseModel):
    """A message shown to an admin or merchant in the dashboard."""

    __tablename__ = "notifications"

    recipient_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    recipient_type: Mapped[RecipientType] = mapped_column(enum_column(RecipientType), nullable=False)
    type: Mapped[NotificationType] = mapped_column(enum_column(NotificationType, length=60), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    resource_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    resource_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    actor_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    actor_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_notifications_recipient_id_is_read", "recipient_id", "is_read"),
        Index("ix_notifications_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, type={self.type}, recipient_id={self.recipient_id})>"


# Maps each notification type to its preference column.
PREFERENCE_FIELDS: dict[NotificationType, str] = {
    NotificationType.MERCHANT_REGISTERED: "merchant_registered",
    NotificationType.PROFILE_SUBMITTED_FOR_VERIFICATION: "profile_submitted_for_verification",
    NotificationType.PURCHASE_MADE: "purchase_made",
    NotificationType.REDEMPTION_MADE: "redemption_made",
    NotificationType.PROFILE_VERIFIED: "profile_verified",
    NotificationType.PROFILE_REJECTED: "profile_rejected",
    NotificationType.GIFT_CARD_PURCHASED: "gift_card_purchased",
    NotificationType.GIFT_CARD_REDEEMED: "gift_card_redeemed",
}


class NotificationPreference(BaseModel):
    """Opt-in flag per notification type; everything is enabled by default."""

    __tablename__ = "notification_preferences"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    merchant_registered: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    profile_submitted_for_verification: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    purchase_made: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    redemption_made: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    profile_verified: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    profile_rejected: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    gift_card_purchased: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    gift_card_redeemed: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def allows(self, notification_type: NotificationType) -> bool:
        return bool(getattr(self, PREFERENCE_FIELDS[notification_type]))

    def __repr__(self) -> str:
        return f"<NotificationPreference(id={self.id}, user_id={self.user_id})>"
