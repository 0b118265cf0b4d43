"""Enumerations shared by models, schemas and services."""
from enum import Enum


class UserRole(str, Enum):
    USER = "USER"
    MERCHANT = "MERCHANT"
    ADMIN = "ADMIN"


class ProfileStatus(str, Enum):
    INCOMPLETE = "INCOMPLETE"
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


class PurchasedCardStatus(str, Enum):
    ACTIVE = "ACTIVE"
    FULLY_REDEEMED = "FULLY_REDEEMED"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class RecipientType(str, Enum):
    ADMIN = "ADMIN"
    MERCHANT = "MERCHANT"


class NotificationType(str, Enum):
    MERCHANT_REGISTERED = "MERCHANT_REGISTERED"
    PROFILE_SUBMITTED_FOR_VERIFICATION = "PROFILE_SUBMITTED_FOR_VERIFICATION"
    PURCHASE_MADE = "PURCHASE_MADE"
    REDEMPTION_MADE = "REDEMPTION_MADE"
    PROFILE_VERIFIED = "PROFILE_VERIFIED"
    PROFILE_REJECTED = "PROFILE_REJECTED"
    GIFT_CARD_PURCHASED = "GIFT_CARD_PURCHASED"
    GIFT_CARD_REDEEMED = "GIFT_CARD_REDEEMED"


class ActorType(str, Enum):
    USER = "user"
    MERCHANT = "merchant"
    ADMIN = "admin"
    SYSTEM = "system"


class ActivityCategory(str, Enum):
    AUTH = "AUTH"
    USER = "USER"
    MERCHANT = "MERCHANT"
    GIFT_CARD = "GIFT_CARD"
    PURCHASE = "PURCHASE"
    REDEMPTION = "REDEMPTION"
    SYSTEM = "SYSTEM"


class Severity(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"
