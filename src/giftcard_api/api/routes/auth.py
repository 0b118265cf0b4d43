"""Authentication endpoints: registration, login, token rotation and password changes."""

from fastapi import APIRouter, Depends, status

from giftcard_api.api.deps import (
    CurrentClaims,
    MerchantClaims,
    get_auth_service,
    get_merchant_service,
)
from giftcard_api.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    GoogleLoginRequest,
    LoginRequest,
    LogoutRequest,
    MerchantRegisterRequest,
    OtpRequest,
    OtpVerifyRequest,
    RefreshRequest,
    ResetPasswordRequest,
    TokenPair,
    UserResponse,
)
from giftcard_api.schemas.common import ApiResponse
from giftcard_api.schemas.merchant import (
    CompleteProfileRequest,
    CompleteProfileResponse,
    MerchantProfileResponse,
)
from giftcard_api.services.auth import AuthService
from giftcard_api.services.merchant import MerchantService

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/merchant/register",
    response_model=ApiResponse[AuthResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Register merchant",
    description="Quick merchant sign-up; the business profile is completed afterwards.",
)
async def register_merchant(
    data: MerchantRegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse[AuthResponse]:
    """
    Register a new merchant account.

    Raises:
        400: Email already registered or invalid input
    """
    user, tokens = await auth_service.register_merchant(
        email=data.email,
        password=data.password,
        name=data.name,
        phone=data.phone,
    )
    return ApiResponse(
        message="Merchant registered successfully. Please complete your profile.",
        data=AuthResponse(user=UserResponse.model_validate(user), tokens=tokens),
    )


@router.post(
    "/login",
    response_model=ApiResponse[AuthResponse],
    summary="User login",
    description="Authenticate with email and password to receive JWT tokens.",
)
async def login(
    data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse[AuthResponse]:
    """
    Authenticate user and return JWT tokens.

    Raises:
        401: Invalid credentials
        403: User account deactivated
        400: Account signs in with Google only
    """
    user, tokens = await auth_service.login(email=data.email, password=data.password)
    return ApiResponse(
        message="Login successful",
        data=AuthResponse(user=UserResponse.model_validate(user), tokens=tokens),
    )


@router.post("/google", response_model=ApiResponse[AuthResponse], summary="Google sign-in")
async def google_login(
    data: GoogleLoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse[AuthResponse]:
    user, tokens = await auth_service.google_login(data.id_token)
    return ApiResponse(
        message="Login successful",
        data=AuthResponse(user=UserResponse.model_validate(user), tokens=tokens),
    )


@router.post(
    "/refresh",
    response_model=ApiResponse[TokenPair],
    summary="Refresh tokens",
    description="Exchange a refresh token for a new token pair. Each refresh token works once.",
)
async def refresh(
    data: RefreshRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse[TokenPair]:
    tokens = await auth_service.refresh_tokens(data.refresh_token)
    return ApiResponse(message="Token refreshed", data=tokens)


@router.post("/logout", response_model=ApiResponse[None], summary="Logout")
async def logout(
    claims: CurrentClaims,
    data: LogoutRequest | None = None,
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse[None]:
    await auth_service.logout(claims.user_id, claims.role, data.refresh_token if data else None)
    return ApiResponse(message="Logged out successfully")


@router.get("/me", response_model=ApiResponse[UserResponse], summary="Current user")
async def me(
    claims: CurrentClaims,
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse[UserResponse]:
    user = await auth_service.get_user(claims.user_id)
    return ApiResponse(data=UserResponse.model_validate(user))


@router.post(
    "/merchant/complete-profile",
    response_model=ApiResponse[CompleteProfileResponse],
    summary="Submit merchant profile",
    description="Submit business, bank and identity details for admin verification.",
)
async def complete_profile(
    data: CompleteProfileRequest,
    claims: MerchantClaims,
    merchant_service: MerchantService = Depends(get_merchant_service),
) -> ApiResponse[CompleteProfileResponse]:
    """
    Raises:
        400: Profile already submitted or verified
        403: Caller is not a merchant
    """
    profile, tokens = await merchant_service.complete_profile(claims.user_id, data.model_dump())
    return ApiResponse(
        message="Profile submitted for verification",
        data=CompleteProfileResponse(profile=MerchantProfileResponse.model_validate(profile), tokens=tokens),
    )


@router.post("/otp/request", response_model=ApiResponse[None], summary="Request password code")
async def request_otp(
    data: OtpRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse[None]:
    await auth_service.request_otp(data.email)
    return ApiResponse(message="OTP sent to your email")


@router.post("/otp/verify", response_model=ApiResponse[None], summary="Verify password code")
async def verify_otp(
    data: OtpVerifyRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse[None]:
    await auth_service.verify_otp(data.email, data.otp)
    return ApiResponse(message="OTP verified")


@router.post(
    "/change-password",
    response_model=ApiResponse[None],
    summary="Change forgotten password",
    description="Set a new password using the code sent by email.",
)
async def change_password(
    data: ChangePasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse[None]:
    await auth_service.change_password(data.email, data.otp, data.password)
    return ApiResponse(message="Password changed successfully")


@router.post(
    "/reset-password",
    response_model=ApiResponse[None],
    summary="Reset password",
    description="Change the password of the signed-in user; requires the current password and an emailed code.",
)
async def reset_password(
    data: ResetPasswordRequest,
    claims: CurrentClaims,
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse[None]:
    await auth_service.reset_password(claims.user_id, data.current_password, data.otp, data.new_password)
    return ApiResponse(message="Password reset successfully")
