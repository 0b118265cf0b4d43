"""Merchant profile endpoints and admin merchant management."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from giftcard_api.api.deps import AdminClaims, MerchantClaims, require_complete_profile
from giftcard_api.api.deps import get_merchant_service
from giftcard_api.core.security import TokenClaims
from giftcard_api.models.enums import ProfileStatus
from giftcard_api.schemas.auth import UserResponse
from giftcard_api.schemas.common import ApiResponse, Pagination
from giftcard_api.schemas.merchant import (
    AdminCreateMerchantRequest,
    CompleteProfileResponse,
    MerchantListItem,
    MerchantListResponse,
    MerchantProfileResponse,
    MerchantProfileView,
    ResubmitProfileRequest,
    UpdateProfileRequest,
    VerifyMerchantRequest,
)
from giftcard_api.services.merchant import MerchantService

router = APIRouter(prefix="/merchants", tags=["merchants"])


@router.get("/profile", response_model=ApiResponse[MerchantProfileView], summary="Get own profile")
async def get_profile(
    claims: MerchantClaims,
    service: MerchantService = Depends(get_merchant_service),
) -> ApiResponse[MerchantProfileView]:
    """Return the merchant's profile (if any) with its completion summary."""
    profile, completion = await service.get_profile(claims.user_id)
    return ApiResponse(
        data=MerchantProfileView(
            profile=MerchantProfileResponse.model_validate(profile) if profile else None,
            completion=completion,
        )
    )


@router.put(
    "/profile",
    response_model=ApiResponse[MerchantProfileResponse],
    summary="Update profile",
    description="Change description, website or logo. Other fields require resubmission.",
)
async def update_profile(
    data: UpdateProfileRequest,
    _merchant: MerchantClaims,
    claims: TokenClaims = Depends(require_complete_profile),
    service: MerchantService = Depends(get_merchant_service),
) -> ApiResponse[MerchantProfileResponse]:
    profile = await service.update_profile(claims.user_id, data.model_dump(exclude_none=True))
    return ApiResponse(message="Profile updated successfully", data=MerchantProfileResponse.model_validate(profile))


@router.post(
    "/resubmit",
    response_model=ApiResponse[CompleteProfileResponse],
    summary="Resubmit rejected profile",
)
async def resubmit_profile(
    data: ResubmitProfileRequest,
    claims: MerchantClaims,
    service: MerchantService = Depends(get_merchant_service),
) -> ApiResponse[CompleteProfileResponse]:
    """
    Raises:
        400: Profile is not in the REJECTED state
        404: Merchant has no profile yet
    """
    profile, tokens = await service.resubmit(claims.user_id, data.model_dump(exclude_none=True))
    return ApiResponse(
        message="Profile resubmitted for verification",
        data=CompleteProfileResponse(profile=MerchantProfileResponse.model_validate(profile), tokens=tokens),
    )


# Admin


@router.post(
    "/admin/create-merchant",
    response_model=ApiResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create verified merchant",
)
async def create_merchant(
    data: AdminCreateMerchantRequest,
    claims: AdminClaims,
    service: MerchantService = Depends(get_merchant_service),
) -> ApiResponse[UserResponse]:
    user = await service.create_merchant(claims.user_id, data.model_dump())
    return ApiResponse(message="Merchant created successfully", data=UserResponse.model_validate(user))


async def _merchant_page(
    service: MerchantService, profile_status: ProfileStatus | None, page: int, limit: int
) -> MerchantListResponse:
    profiles, total = await service.list_merchants(profile_status, page, limit)
    return MerchantListResponse(
        merchants=[MerchantListItem.model_validate(p) for p in profiles],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/admin/merchants", response_model=ApiResponse[MerchantListResponse], summary="List merchants")
async def list_merchants(
    _admin: AdminClaims,
    profile_status: ProfileStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: MerchantService = Depends(get_merchant_service),
) -> ApiResponse[MerchantListResponse]:
    return ApiResponse(data=await _merchant_page(service, profile_status, page, limit))


@router.get(
    "/admin/merchants/pending",
    response_model=ApiResponse[MerchantListResponse],
    summary="List merchants awaiting verification",
)
async def list_pending_merchants(
    _admin: AdminClaims,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: MerchantService = Depends(get_merchant_service),
) -> ApiResponse[MerchantListResponse]:
    return ApiResponse(data=await _merchant_page(service, ProfileStatus.PENDING_VERIFICATION, page, limit))


@router.post(
    "/admin/merchants/{merchant_id}/verify",
    response_model=ApiResponse[MerchantProfileResponse],
    summary="Approve or reject merchant",
    description="`merchant_id` is the merchant's user id.",
)
async def verify_merchant(
    merchant_id: UUID,
    data: VerifyMerchantRequest,
    claims: AdminClaims,
    service: MerchantService = Depends(get_merchant_service),
) -> ApiResponse[MerchantProfileResponse]:
    """
    Raises:
        400: Merchant already verified or not pending review
        404: Merchant has no profile
    """
    profile = await service.verify_merchant(
        claims.user_id,
        merchant_id,
        data.action,
        rejection_reason=data.rejection_reason,
        verification_notes=data.verification_notes,
    )
    message = "Merchant approved successfully" if data.action == "approve" else "Merchant rejected"
    return ApiResponse(message=message, data=MerchantProfileResponse.model_validate(profile))


@router.delete(
    "/admin/merchants/{merchant_id}",
    response_model=ApiResponse[None],
    summary="Deactivate or delete merchant",
)
async def delete_merchant(
    merchant_id: UUID,
    claims: AdminClaims,
    hard_delete: bool = Query(False),
    service: MerchantService = Depends(get_merchant_service),
) -> ApiResponse[None]:
    await service.delete_merchant(claims.user_id, merchant_id, hard_delete=hard_delete)
    message = "Merchant permanently deleted" if hard_delete else "Merchant deactivated"
    return ApiResponse(message=message)
