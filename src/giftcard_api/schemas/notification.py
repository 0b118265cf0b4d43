"""Pydantic schemas for notifications and preferences."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, model_validator

from giftcard_api.models.enums import NotificationType, RecipientType
from giftcard_api.schemas.common import Pagination


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    recipient_id: UUID
    recipient_type: RecipientType
    type: NotificationType
    title: str
    message: str
    resource_type: str | None
    resource_id: str | None
    actor_id: UUID | None
    actor_name: str | None
    is_read: bool
    read_at: datetime | None
    created_at: datetime


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    pagination: Pagination
    unread_count: int


class UnreadCountResponse(BaseModel):
    unread_count: int


class NotificationPreferencesResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    merchant_registered: bool
    profile_submitted_for_verification: bool
    purchase_made: bool
    redemption_made: bool
    profile_verified: bool
    profile_rejected: bool
    gift_card_purchased: bool
    gift_card_redeemed: bool


class NotificationPreferencesUpdate(BaseModel):
    """Only the known preference flags may be changed."""

    model_config = ConfigDict(extra="forbid")

    merchant_registered: bool | None = None
    profile_submitted_for_verification: bool | None = None
    purchase_made: bool | None = None
    redemption_made: bool | None = None
    profile_verified: bool | None = None
    profile_rejected: bool | None = None
    gift_card_purchased: bool | None = None
    gift_card_redeemed: bool | None = None

    @model_validator(mode="after")
    def not_empty(self) -> "NotificationPreferencesUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one preference must be provided")
        return self


class NotificationPayload(BaseModel):
    """Job payload for creating a notification in the worker."""

    recipient_id: UUID
    recipient_type: RecipientType
    type: NotificationType
    title: str
    message: str
    resource_type: str | None = None
    resource_id: str | None = None
    actor_id: UUID | None = None
    actor_name: str | None = None
