"""Purchase, balance check and redemption endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status
from pydantic import EmailStr

from giftcard_api.api.deps import VerifiedMerchantClaims, get_purchase_service
from giftcard_api.models.purchase import Redemption
from giftcard_api.schemas.common import ApiResponse, Pagination
from giftcard_api.schemas.purchase import (
    BalanceCheckResponse,
    CustomerPurchasesResponse,
    PurchasedGiftCardResponse,
    PurchaseRequest,
    PurchaseResponse,
    RedeemRequest,
    RedeemResponse,
    RedemptionHistoryItem,
    RedemptionHistoryResponse,
    RedemptionResponse,
)
from giftcard_api.services.purchase import PurchaseService

router = APIRouter(prefix="/purchases", tags=["purchases"])


def _history_item(redemption: Redemption) -> RedemptionHistoryItem:
    card = redemption.purchased_gift_card
    return RedemptionHistoryItem(
        **dict(RedemptionResponse.model_validate(redemption)),
        qr_code=card.qr_code,
        customer_name=card.customer_name,
        gift_card_title=card.gift_card.title if card.gift_card else "",
    )


@router.post(
    "/gift-cards/{gift_card_id}",
    response_model=ApiResponse[PurchaseResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Purchase gift card",
    description="Buy a gift card. The response carries the QR code and a PNG image of it.",
)
async def purchase_gift_card(
    gift_card_id: UUID,
    data: PurchaseRequest,
    service: PurchaseService = Depends(get_purchase_service),
) -> ApiResponse[PurchaseResponse]:
    """
    Raises:
        400: Gift card inactive or expired
        404: Gift card not found
    """
    purchased, qr_image = await service.purchase(gift_card_id, data.model_dump())
    return ApiResponse(
        message="Gift card purchased successfully",
        data=PurchaseResponse(
            purchase=PurchasedGiftCardResponse.model_validate(purchased),
            qr_code=purchased.qr_code,
            qr_code_image=qr_image,
        ),
    )


@router.get("/qr/{qr_code}", response_model=ApiResponse[BalanceCheckResponse], summary="Check balance")
async def check_balance(
    qr_code: str = Path(..., min_length=1, max_length=64),
    service: PurchaseService = Depends(get_purchase_service),
) -> ApiResponse[BalanceCheckResponse]:
    card, total, recent = await service.check_balance(qr_code)
    return ApiResponse(
        data=BalanceCheckResponse(
            purchase=PurchasedGiftCardResponse.model_validate(card),
            total_redeemed=total,
            recent_redemptions=[RedemptionResponse.model_validate(r) for r in recent],
        )
    )


@router.get(
    "/customer/{email}",
    response_model=ApiResponse[CustomerPurchasesResponse],
    summary="Customer purchases",
)
async def customer_purchases(
    email: EmailStr,
    service: PurchaseService = Depends(get_purchase_service),
) -> ApiResponse[CustomerPurchasesResponse]:
    cards, stats = await service.customer_purchases(email.lower())
    return ApiResponse(
        data=CustomerPurchasesResponse(
            purchases=[PurchasedGiftCardResponse.model_validate(c) for c in cards],
            stats=stats,
        )
    )


@router.post(
    "/redeem",
    response_model=ApiResponse[RedeemResponse],
    summary="Redeem gift card",
    description="Debit an amount from a card issued by the calling merchant.",
)
async def redeem_gift_card(
    data: RedeemRequest,
    claims: VerifiedMerchantClaims,
    service: PurchaseService = Depends(get_purchase_service),
) -> ApiResponse[RedeemResponse]:
    """
    Raises:
        400: Card expired, not active or balance insufficient
        403: Card issued by another merchant
        404: Unknown QR code
    """
    redemption, card = await service.redeem(
        claims.user_id,
        data.qr_code,
        data.amount,
        data.model_dump(include={"location_name", "location_address", "notes"}),
    )
    return ApiResponse(
        message="Gift card redeemed successfully",
        data=RedeemResponse(
            redemption=RedemptionResponse.model_validate(redemption),
            remaining_balance=card.current_balance,
            status=card.status,
        ),
    )


@router.get(
    "/redemptions",
    response_model=ApiResponse[RedemptionHistoryResponse],
    summary="Redemption history",
)
async def redemption_history(
    claims: VerifiedMerchantClaims,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: PurchaseService = Depends(get_purchase_service),
) -> ApiResponse[RedemptionHistoryResponse]:
    items, total, total_amount = await service.redemption_history(claims.user_id, page, limit)
    return ApiResponse(
        data=RedemptionHistoryResponse(
            redemptions=[_history_item(r) for r in items],
            pagination=Pagination.build(page, limit, total),
            total_redeemed=total_amount,
        )
    )
