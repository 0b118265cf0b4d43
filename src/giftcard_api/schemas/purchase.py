"""Pydantic schemas for purchases, balance checks and redemptions."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from giftcard_api.models.enums import PaymentStatus, PurchasedCardStatus
from giftcard_api.schemas.common import AmountInput, Money, Pagination


class PurchaseRequest(BaseModel):
    """Customer details for buying a gift card."""

    customer_name: str = Field(..., min_length=2, max_length=100)
    customer_email: EmailStr
    customer_phone: str = Field(..., min_length=10, max_length=15)
    payment_method: str | None = Field(None, max_length=50)
    transaction_id: str | None = Field(None, max_length=255)

    @field_validator("customer_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()

    @field_validator("customer_email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class RedeemRequest(BaseModel):
    """Merchant request to debit a purchased card."""

    qr_code: str = Field(..., min_length=1, max_length=64)
    amount: AmountInput
    location_name: str | None = Field(None, max_length=200)
    location_address: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=500)


class GiftCardSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    merchant_id: UUID
    title: str
    description: str | None
    merchant_logo: str | None


class PurchasedGiftCardResponse(BaseModel):
    """Purchased card instance."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    gift_card_id: UUID
    merchant_id: UUID
    qr_code: str
    customer_name: str
    customer_email: str
    customer_phone: str
    purchase_amount: Money
    current_balance: Money
    status: PurchasedCardStatus
    payment_status: PaymentStatus
    payment_method: str | None
    transaction_id: str | None
    purchased_at: datetime
    expires_at: datetime
    last_used_at: datetime | None
    gift_card: GiftCardSummary | None = None


class PurchaseResponse(BaseModel):
    purchase: PurchasedGiftCardResponse
    qr_code: str
    qr_code_image: str = Field(description="PNG data URL encoding the verification link")


class RedemptionResponse(BaseModel):
    """Redemption ledger entry."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    purchased_gift_card_id: UUID
    redeemed_by_id: UUID
    amount: Money
    balance_before: Money
    balance_after: Money
    location_name: str | None
    location_address: str | None
    notes: str | None
    redeemed_at: datetime


class BalanceCheckResponse(BaseModel):
    purchase: PurchasedGiftCardResponse
    total_redeemed: Money
    recent_redemptions: list[RedemptionResponse]


class CustomerPurchaseStats(BaseModel):
    total_purchased: int
    total_spent: Money
    active_balance: Money
    by_status: dict[str, int]


class CustomerPurchasesResponse(BaseModel):
    purchases: list[PurchasedGiftCardResponse]
    stats: CustomerPurchaseStats


class RedeemResponse(BaseModel):
    redemption: RedemptionResponse
    remaining_balance: Money
    status: PurchasedCardStatus


class RedemptionHistoryItem(RedemptionResponse):
    qr_code: str
    customer_name: str
    gift_card_title: str


class RedemptionHistoryResponse(BaseModel):
    redemptions: list[RedemptionHistoryItem]
    pagination: Pagination
    total_redeemed: Money
