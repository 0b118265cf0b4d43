"""Pydantic schemas for authentication endpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from giftcard_api.models.enums import ProfileStatus, UserRole
from giftcard_api.schemas.common import check_password_strength


class MerchantRegisterRequest(BaseModel):
    """Request model for quick merchant registration."""

    email: EmailStr = Field(..., description="Merchant email address")
    password: str = Field(..., description="Password (min 8 chars, upper, lower and digit)")
    name: str = Field(..., min_length=2, max_length=100, description="Contact name")
    phone: str | None = Field(None, min_length=10, max_length=15, description="Contact phone")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


class LoginRequest(BaseModel):
    """Request model for user login."""

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=1, description="User password")


class GoogleLoginRequest(BaseModel):
    """Request model for Google sign-in."""

    id_token: str = Field(..., min_length=1, description="Google ID token from the client")


class RefreshRequest(BaseModel):
    """Request model for token refresh."""

    refresh_token: str = Field(..., min_length=1, description="JWT refresh token")


class LogoutRequest(BaseModel):
    """Request model for logout."""

    refresh_token: str | None = Field(None, description="Refresh token to revoke")


class TokenPair(BaseModel):
    """Response model for authentication tokens."""

    access_token: str = Field(..., description="JWT access token (15 min)")
    refresh_token: str = Field(..., description="JWT refresh token (7 days)")
    token_type: str = Field(default="bearer", description="Token type")


class MerchantProfileSummary(BaseModel):
    """Minimal merchant profile embedded in user responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    business_name: str
    profile_status: ProfileStatus
    is_verified: bool
    rejection_reason: str | None = None


class UserResponse(BaseModel):
    """Response model for user data (without sensitive fields)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str | None
    phone: str | None
    avatar: str | None
    role: UserRole
    is_active: bool
    email_verified: bool
    provider: str
    is_first_time: bool
    last_login_at: datetime | None
    created_at: datetime
    profile_status: ProfileStatus | None = None
    merchant_profile: MerchantProfileSummary | None = None


class AuthResponse(BaseModel):
    """User plus a freshly issued token pair."""

    user: UserResponse
    tokens: TokenPair


class OtpRequest(BaseModel):
    email: EmailStr


class OtpVerifyRequest(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=4, max_length=16)


class ChangePasswordRequest(BaseModel):
    """Forgot-password flow: a code sent by email authorizes the new password."""

    email: EmailStr
    otp: str = Field(..., min_length=4, max_length=16)
    password: str
    confirm_password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)

    @model_validator(mode="after")
    def passwords_match(self) -> "ChangePasswordRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class ResetPasswordRequest(BaseModel):
    """Authenticated password change: current password plus an emailed code."""

    current_password: str = Field(..., min_length=1)
    otp: str = Field(..., min_length=4, max_length=16)
    new_password: str
    confirm_password: str

    @field_validator("new_password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)

    @model_validator(mode="after")
    def passwords_match(self) -> "ResetPasswordRequest":
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self
