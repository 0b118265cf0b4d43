"""Database models."""
from giftcard_api.models.activity_log import ActivityLog
from giftcard_api.models.base import Base, BaseModel
from giftcard_api.models.gift_card import GiftCard
from giftcard_api.models.merchant import CardSettings, MerchantProfile
from giftcard_api.models.notification import Notification, NotificationPreference
from giftcard_api.models.purchase import PurchasedGiftCard, Redemption
from giftcard_api.models.user import PasswordResetOtp, RefreshToken, User

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "RefreshToken",
    "PasswordResetOtp",
    "MerchantProfile",
    "CardSettings",
    "GiftCard",
    "PurchasedGiftCard",
    "Redemption",
    "Notification",
    "NotificationPreference",
    "ActivityLog",
]
