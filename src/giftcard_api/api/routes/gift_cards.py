"""Gift card template endpoints and card customization settings."""

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from giftcard_api.api.deps import VerifiedMerchantClaims, get_gift_card_service
from giftcard_api.schemas.common import ApiResponse, Pagination
from giftcard_api.schemas.gift_card import (
    CardSettingsCreate,
    CardSettingsResponse,
    CardSettingsUpdate,
    GiftCardCreate,
    GiftCardListResponse,
    GiftCardResponse,
    GiftCardUpdate,
)
from giftcard_api.services.gift_card import GiftCardService

router = APIRouter(prefix="/gift-cards", tags=["gift-cards"])

SortBy = Literal["price", "created_at", "expiry_date", "title"]
SortOrder = Literal["asc", "desc"]


@router.post(
    "",
    response_model=ApiResponse[GiftCardResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create gift card",
    description="Create a gift card template. The merchant's active-card limit applies.",
)
async def create_gift_card(
    data: GiftCardCreate,
    claims: VerifiedMerchantClaims,
    service: GiftCardService = Depends(get_gift_card_service),
) -> ApiResponse[GiftCardResponse]:
    """
    Raises:
        400: Invalid input or gift card limit reached
        403: Merchant profile not verified
    """
    gift_card = await service.create(claims.user_id, data.model_dump())
    return ApiResponse(message="Gift card created successfully", data=GiftCardResponse.model_validate(gift_card))


@router.get("", response_model=ApiResponse[GiftCardListResponse], summary="List own gift cards")
async def list_gift_cards(
    claims: VerifiedMerchantClaims,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = Query(None, max_length=100),
    sort_by: SortBy = Query("created_at"),
    sort_order: SortOrder = Query("desc"),
    service: GiftCardService = Depends(get_gift_card_service),
) -> ApiResponse[GiftCardListResponse]:
    items, total, stats = await service.list_for_merchant(
        claims.user_id, page, limit, search, sort_by, sort_order
    )
    return ApiResponse(
        data=GiftCardListResponse(
            gift_cards=[GiftCardResponse.model_validate(card) for card in items],
            pagination=Pagination.build(page, limit, total),
            stats=stats,
        )
    )


@router.get(
    "/public/active",
    response_model=ApiResponse[GiftCardListResponse],
    summary="Browse active gift cards",
    description="Public listing of active, unexpired gift cards from all merchants.",
)
async def list_public_gift_cards(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = Query(None, max_length=100),
    sort_by: SortBy = Query("created_at"),
    sort_order: SortOrder = Query("desc"),
    service: GiftCardService = Depends(get_gift_card_service),
) -> ApiResponse[GiftCardListResponse]:
    items, total = await service.list_public(page, limit, search, sort_by, sort_order)
    return ApiResponse(
        data=GiftCardListResponse(
            gift_cards=[GiftCardResponse.model_validate(card) for card in items],
            pagination=Pagination.build(page, limit, total),
        )
    )


@router.post(
    "/settings",
    response_model=ApiResponse[CardSettingsResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create card settings",
)
async def create_card_settings(
    data: CardSettingsCreate,
    claims: VerifiedMerchantClaims,
    service: GiftCardService = Depends(get_gift_card_service),
) -> ApiResponse[CardSettingsResponse]:
    card_settings = await service.create_settings(claims.user_id, data.model_dump())
    return ApiResponse(
        message="Card settings created successfully", data=CardSettingsResponse.model_validate(card_settings)
    )


@router.get("/card/settings", response_model=ApiResponse[CardSettingsResponse], summary="Get card settings")
async def get_card_settings(
    claims: VerifiedMerchantClaims,
    service: GiftCardService = Depends(get_gift_card_service),
) -> ApiResponse[CardSettingsResponse]:
    card_settings = await service.get_settings(claims.user_id)
    return ApiResponse(data=CardSettingsResponse.model_validate(card_settings))


@router.put("/card/settings", response_model=ApiResponse[CardSettingsResponse], summary="Update card settings")
async def update_card_settings(
    data: CardSettingsUpdate,
    claims: VerifiedMerchantClaims,
    service: GiftCardService = Depends(get_gift_card_service),
) -> ApiResponse[CardSettingsResponse]:
    card_settings = await service.update_settings(claims.user_id, data.model_dump(exclude_unset=True))
    return ApiResponse(
        message="Card settings updated successfully", data=CardSettingsResponse.model_validate(card_settings)
    )


@router.get("/{gift_card_id}", response_model=ApiResponse[GiftCardResponse], summary="Get gift card")
async def get_gift_card(
    gift_card_id: UUID,
    claims: VerifiedMerchantClaims,
    service: GiftCardService = Depends(get_gift_card_service),
) -> ApiResponse[GiftCardResponse]:
    gift_card = await service.get_owned(gift_card_id, claims.user_id)
    return ApiResponse(data=GiftCardResponse.model_validate(gift_card))


@router.put("/{gift_card_id}", response_model=ApiResponse[GiftCardResponse], summary="Update gift card")
async def update_gift_card(
    gift_card_id: UUID,
    data: GiftCardUpdate,
    claims: VerifiedMerchantClaims,
    service: GiftCardService = Depends(get_gift_card_service),
) -> ApiResponse[GiftCardResponse]:
    """
    Raises:
        403: Gift card belongs to another merchant
        404: Gift card not found
    """
    gift_card = await service.update(gift_card_id, claims.user_id, data.model_dump(exclude_unset=True))
    return ApiResponse(message="Gift card updated successfully", data=GiftCardResponse.model_validate(gift_card))


@router.delete("/{gift_card_id}", response_model=ApiResponse[None], summary="Delete gift card")
async def delete_gift_card(
    gift_card_id: UUID,
    claims: VerifiedMerchantClaims,
    service: GiftCardService = Depends(get_gift_card_service),
) -> ApiResponse[None]:
    """
    Raises:
        400: Gift card has been purchased
        403: Gift card belongs to another merchant
        404: Gift card not found
    """
    await service.delete(gift_card_id, claims.user_id)
    return ApiResponse(message="Gift card deleted successfully")
