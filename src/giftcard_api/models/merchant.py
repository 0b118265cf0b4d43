"""Merchant business profile and gift card customization settings."""
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from giftcard_api.models.base import BaseModel, enum_column
from giftcard_api.models.enums import ProfileStatus

# Fields that must be present before a profile counts as complete.
REQUIRED_PROFILE_FIELDS = (
    "business_name",
    "address",
    "city",
    "country",
    "business_phone",
    "business_email",
    "bank_name",
    "account_number",
    "account_holder_name",
    "identity_document",
)


class MerchantProfile(BaseModel):
    """Business, bank and verification details of a MERCHANT user."""

    __tablename__ = "merchant_profiles"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True
    )

    # Business
    business_name: Mapped[str] = mapped_column(String(200), nullable=False)
    business_registration_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    tax_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    business_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    business_category: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Address
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Contact
    business_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    business_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    website: Mapped[str | None] = mapped_column(String(500), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    logo: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Bank
    bank_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    account_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    account_holder_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    ifsc_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    swift_code: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Document references (URLs supplied by the client)
    registration_document: Mapped[str | None] = mapped_column(String(500), nullable=True)
    tax_document: Mapped[str | None] = mapped_column(String(500), nullable=True)
    identity_document: Mapped[str | None] = mapped_column(String(500), nullable=True)
    additional_documents: Mapped[list[Any]] = mapped_column(JSON, default=list, nullable=False)

    # Verification
    profile_status: Mapped[ProfileStatus] = mapped_column(
        enum_column(ProfileStatus),
        default=ProfileStatus.PENDING_VERIFICATION,
        nullable=False,
        index=True,
    )
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    verified_by_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    verification_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    gift_card_limit: Mapped[int] = mapped_column(Integer, default=10, nullable=False)

    # Relationships
    user: Mapped["User"] = relationship(
        "User", back_populates="merchant_profile", foreign_keys=[user_id], lazy="joined"
    )

    def __repr__(self) -> str:
        return (
            f"<MerchantProfile(id={self.id}, business_name={self.business_name}, "
            f"status={self.profile_status})>"
        )


class CardSettings(BaseModel):
    """Per-merchant visual customization of issued gift cards."""

    __tablename__ = "card_settings"

    merchant_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    primary_color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    secondary_color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    gradient_direction: Mapped[str | None] = mapped_column(String(40), nullable=True)
    font_family: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<CardSettings(id={self.id}, merchant_id={self.merchant_id})>"
