"""In-app notification inbox for admins and merchants."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from giftcard_api.api.deps import get_notification_service, require_roles
from giftcard_api.core.security import TokenClaims
from giftcard_api.models.enums import UserRole
from giftcard_api.schemas.common import ApiResponse, Pagination
from giftcard_api.schemas.notification import (
    NotificationListResponse,
    NotificationPreferencesResponse,
    NotificationPreferencesUpdate,
    NotificationResponse,
    UnreadCountResponse,
)
from giftcard_api.services.notification import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])

InboxClaims = Annotated[TokenClaims, Depends(require_roles(UserRole.ADMIN, UserRole.MERCHANT))]


@router.get("", response_model=ApiResponse[NotificationListResponse], summary="List notifications")
async def list_notifications(
    claims: InboxClaims,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    unread_only: bool = Query(False),
    service: NotificationService = Depends(get_notification_service),
) -> ApiResponse[NotificationListResponse]:
    items, total, unread = await service.list_notifications(claims.user_id, page, limit, unread_only)
    return ApiResponse(
        data=NotificationListResponse(
            notifications=[NotificationResponse.model_validate(n) for n in items],
            pagination=Pagination.build(page, limit, total),
            unread_count=unread,
        )
    )


@router.get("/unread-count", response_model=ApiResponse[UnreadCountResponse], summary="Unread count")
async def unread_count(
    claims: InboxClaims,
    service: NotificationService = Depends(get_notification_service),
) -> ApiResponse[UnreadCountResponse]:
    return ApiResponse(data=UnreadCountResponse(unread_count=await service.unread_count(claims.user_id)))


@router.get(
    "/preferences",
    response_model=ApiResponse[NotificationPreferencesResponse],
    summary="Get notification preferences",
    description="Preferences are created with every type enabled on first read.",
)
async def get_preferences(
    claims: InboxClaims,
    service: NotificationService = Depends(get_notification_service),
) -> ApiResponse[NotificationPreferencesResponse]:
    prefs = await service.get_preferences(claims.user_id)
    return ApiResponse(data=NotificationPreferencesResponse.model_validate(prefs))


@router.patch(
    "/preferences",
    response_model=ApiResponse[NotificationPreferencesResponse],
    summary="Update notification preferences",
)
async def update_preferences(
    data: NotificationPreferencesUpdate,
    claims: InboxClaims,
    service: NotificationService = Depends(get_notification_service),
) -> ApiResponse[NotificationPreferencesResponse]:
    prefs = await service.update_preferences(claims.user_id, data.model_dump(exclude_none=True))
    return ApiResponse(
        message="Preferences updated", data=NotificationPreferencesResponse.model_validate(prefs)
    )


@router.patch("/read-all", response_model=ApiResponse[UnreadCountResponse], summary="Mark all as read")
async def mark_all_as_read(
    claims: InboxClaims,
    service: NotificationService = Depends(get_notification_service),
) -> ApiResponse[UnreadCountResponse]:
    updated = await service.mark_all_as_read(claims.user_id)
    return ApiResponse(message=f"{updated} notifications marked as read", data=UnreadCountResponse(unread_count=0))


@router.patch(
    "/{notification_id}/read",
    response_model=ApiResponse[NotificationResponse],
    summary="Mark as read",
)
async def mark_as_read(
    notification_id: UUID,
    claims: InboxClaims,
    service: NotificationService = Depends(get_notification_service),
) -> ApiResponse[NotificationResponse]:
    notification = await service.mark_as_read(notification_id, claims.user_id)
    return ApiResponse(message="Notification marked as read", data=NotificationResponse.model_validate(notification))


@router.delete("/{notification_id}", response_model=ApiResponse[None], summary="Delete notification")
async def delete_notification(
    notification_id: UUID,
    claims: InboxClaims,
    service: NotificationService = Depends(get_notification_service),
) -> ApiResponse[None]:
    """
    Raises:
        404: Notification missing or addressed to someone else
    """
    await service.delete(notification_id, claims.user_id)
    return ApiResponse(message="Notification deleted")
