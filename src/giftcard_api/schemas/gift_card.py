"""Pydantic schemas for gift card templates and card settings."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from giftcard_api.core.dates import ensure_aware, utc_now
from giftcard_api.schemas.common import AmountInput, Money, Pagination


def _future(value: datetime | None) -> datetime | None:
    value = ensure_aware(value)
    if value is not None and value <= utc_now():
        raise ValueError("Expiry date must be in the future")
    return value


class GiftCardCreate(BaseModel):
    """Request model for creating a gift card."""

    title: str = Field(..., min_length=3, max_length=100)
    description: str | None = Field(None, max_length=500)
    price: AmountInput
    expiry_date: datetime
    merchant_logo: str | None = Field(None, max_length=500)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Title must be at least 3 characters")
        return v

    @field_validator("expiry_date")
    @classmethod
    def expiry_in_future(cls, v: datetime) -> datetime:
        return _future(v)


class GiftCardUpdate(BaseModel):
    """Partial update; at least one field is required."""

    title: str | None = Field(None, min_length=3, max_length=100)
    description: str | None = Field(None, max_length=500)
    price: AmountInput | None = None
    expiry_date: datetime | None = None
    is_active: bool | None = None
    merchant_logo: str | None = Field(None, max_length=500)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else v

    @field_validator("expiry_date")
    @classmethod
    def expiry_in_future(cls, v: datetime | None) -> datetime | None:
        return _future(v)

    @model_validator(mode="after")
    def not_empty(self) -> "GiftCardUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class GiftCardResponse(BaseModel):
    """Gift card data for API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    merchant_id: UUID
    title: str
    description: str | None
    price: Money
    expiry_date: datetime
    is_active: bool
    merchant_logo: str | None
    created_at: datetime
    updated_at: datetime


class GiftCardStats(BaseModel):
    active_cards: int
    total_value: Money
    expiring_soon: int
    limit: int
    remaining: int


class GiftCardListResponse(BaseModel):
    gift_cards: list[GiftCardResponse]
    pagination: Pagination
    stats: GiftCardStats | None = None


class CardSettingsCreate(BaseModel):
    primary_color: str | None = Field(None, max_length=20)
    secondary_color: str | None = Field(None, max_length=20)
    gradient_direction: str | None = Field(None, max_length=40)
    font_family: str | None = Field(None, max_length=100)


class CardSettingsUpdate(CardSettingsCreate):
    @model_validator(mode="after")
    def not_empty(self) -> "CardSettingsUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class CardSettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    merchant_id: UUID
    primary_color: str | None
    secondary_color: str | None
    gradient_direction: str | None
    font_family: str | None
    created_at: datetime
    updated_at: datetime
