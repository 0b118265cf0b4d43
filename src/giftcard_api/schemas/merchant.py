"""Pydantic schemas for the merchant lifecycle endpoints."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from giftcard_api.models.enums import ProfileStatus
from giftcard_api.schemas.auth import TokenPair
from giftcard_api.schemas.common import Pagination, check_password_strength


class MerchantProfileFields(BaseModel):
    """Optional business, bank and document fields shared by several requests."""

    business_registration_number: str | None = Field(None, max_length=100)
    tax_id: str | None = Field(None, max_length=100)
    business_type: str | None = Field(None, max_length=100)
    business_category: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=100)
    zip_code: str | None = Field(None, max_length=20)
    website: str | None = Field(None, max_length=500)
    description: str | None = Field(None, max_length=1000)
    logo: str | None = Field(None, max_length=500)
    ifsc_code: str | None = Field(None, max_length=20)
    swift_code: str | None = Field(None, max_length=20)
    registration_document: str | None = Field(None, max_length=500)
    tax_document: str | None = Field(None, max_length=500)
    additional_documents: list[str] | None = None


class CompleteProfileRequest(MerchantProfileFields):
    """Request model for submitting a merchant profile for verification."""

    business_name: str = Field(..., min_length=2, max_length=200)
    address: str = Field(..., min_length=5, max_length=500)
    city: str = Field(..., min_length=2, max_length=100)
    country: str = Field(..., min_length=2, max_length=100)
    business_phone: str = Field(..., min_length=10, max_length=15)
    business_email: EmailStr
    bank_name: str = Field(..., min_length=2, max_length=200)
    account_number: str = Field(..., min_length=5, max_length=50)
    account_holder_name: str = Field(..., min_length=2, max_length=200)
    identity_document: str = Field(..., min_length=1, max_length=500, description="Reference to the identity document")


class ResubmitProfileRequest(MerchantProfileFields):
    """Corrections for a rejected profile; omitted fields keep their values."""

    business_name: str | None = Field(None, min_length=2, max_length=200)
    address: str | None = Field(None, min_length=5, max_length=500)
    city: str | None = Field(None, min_length=2, max_length=100)
    country: str | None = Field(None, min_length=2, max_length=100)
    business_phone: str | None = Field(None, min_length=10, max_length=15)
    business_email: EmailStr | None = None
    bank_name: str | None = Field(None, min_length=2, max_length=200)
    account_number: str | None = Field(None, min_length=5, max_length=50)
    account_holder_name: str | None = Field(None, min_length=2, max_length=200)
    identity_document: str | None = Field(None, min_length=1, max_length=500)


class UpdateProfileRequest(BaseModel):
    """Fields a verified merchant may change without re-verification."""

    description: str | None = Field(None, max_length=1000)
    website: str | None = Field(None, max_length=500)
    logo: str | None = Field(None, max_length=500)


class AdminCreateMerchantRequest(MerchantProfileFields):
    """Admin-created merchant account with an already verified profile."""

    email: EmailStr
    password: str
    name: str = Field(..., min_length=2, max_length=100)
    phone: str | None = Field(None, min_length=10, max_length=15)
    business_name: str = Field(..., min_length=2, max_length=200)
    address: str | None = Field(None, max_length=500)
    city: str | None = Field(None, max_length=100)
    country: str | None = Field(None, max_length=100)
    business_phone: str | None = Field(None, max_length=15)
    business_email: EmailStr | None = None
    bank_name: str | None = Field(None, max_length=200)
    account_number: str | None = Field(None, max_length=50)
    account_holder_name: str | None = Field(None, max_length=200)
    identity_document: str | None = Field(None, max_length=500)
    gift_card_limit: int | None = Field(None, ge=1, le=1000)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


class VerifyMerchantRequest(BaseModel):
    """Admin decision on a pending profile."""

    action: Literal["approve", "reject"]
    rejection_reason: str | None = Field(None, max_length=1000)
    verification_notes: str | None = Field(None, max_length=1000)

    @model_validator(mode="after")
    def reason_required_on_reject(self) -> "VerifyMerchantRequest":
        if self.action == "reject" and not (self.rejection_reason and self.rejection_reason.strip()):
            raise ValueError("Rejection reason is required when rejecting a merchant")
        return self


class MerchantProfileResponse(BaseModel):
    """Full merchant profile."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    business_name: str
    business_registration_number: str | None
    tax_id: str | None
    business_type: str | None
    business_category: str | None
    address: str | None
    city: str | None
    state: str | None
    zip_code: str | None
    country: str | None
    business_phone: str | None
    business_email: str | None
    website: str | None
    description: str | None
    logo: str | None
    bank_name: str | None
    account_number: str | None
    account_holder_name: str | None
    ifsc_code: str | None
    swift_code: str | None
    registration_document: str | None
    tax_document: str | None
    identity_document: str | None
    additional_documents: list[str]
    profile_status: ProfileStatus
    is_verified: bool
    verified_at: datetime | None
    verification_notes: str | None
    rejection_reason: str | None
    rejected_at: datetime | None
    gift_card_limit: int
    created_at: datetime
    updated_at: datetime


class ProfileCompletion(BaseModel):
    """How much of the required profile is filled in."""

    percentage: int
    missing_fields: list[str]
    is_complete: bool
    is_verified: bool
    is_pending: bool
    is_rejected: bool
    profile_status: ProfileStatus


class MerchantProfileView(BaseModel):
    profile: MerchantProfileResponse | None
    completion: ProfileCompletion


class CompleteProfileResponse(BaseModel):
    profile: MerchantProfileResponse
    tokens: TokenPair


class MerchantAccount(BaseModel):
    """Merchant user fields shown in admin listings."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str | None
    phone: str | None
    is_active: bool
    created_at: datetime


class MerchantListItem(MerchantProfileResponse):
    user: MerchantAccount


class MerchantListResponse(BaseModel):
    merchants: list[MerchantListItem]
    pagination: Pagination
