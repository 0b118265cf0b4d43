"""Admin access to the audit trail."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from giftcard_api.api.deps import AdminClaims, get_activity_log_service
from giftcard_api.models.enums import ActivityCategory, Severity
from giftcard_api.repositories.activity_log import ActivityLogFilters
from giftcard_api.schemas.activity_log import (
    ActivityLogListResponse,
    ActivityLogResponse,
    ActivityStatsResponse,
)
from giftcard_api.schemas.common import ApiResponse, Pagination
from giftcard_api.services.activity_log import ActivityLogService

router = APIRouter(prefix="/activity-logs", tags=["activity-logs"])


@router.get(
    "",
    response_model=ApiResponse[ActivityLogListResponse],
    summary="Search activity logs",
    description="Filter the audit trail; `search` matches the description case-insensitively.",
)
async def list_activity_logs(
    _admin: AdminClaims,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    category: ActivityCategory | None = None,
    severity: Severity | None = None,
    merchant_id: UUID | None = None,
    actor_id: UUID | None = None,
    resource_type: str | None = None,
    resource_id: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    search: str | None = Query(None, max_length=200),
    service: ActivityLogService = Depends(get_activity_log_service),
) -> ApiResponse[ActivityLogListResponse]:
    filters = ActivityLogFilters(
        category=category,
        severity=severity,
        merchant_id=merchant_id,
        actor_id=actor_id,
        resource_type=resource_type,
        resource_id=resource_id,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    logs, total = await service.search(filters, page, limit)
    return ApiResponse(
        data=ActivityLogListResponse(
            logs=[ActivityLogResponse.model_validate(log) for log in logs],
            pagination=Pagination.build(page, limit, total),
        )
    )


@router.get("/stats", response_model=ApiResponse[ActivityStatsResponse], summary="Today's activity")
async def activity_stats(
    _admin: AdminClaims,
    merchant_id: UUID | None = None,
    service: ActivityLogService = Depends(get_activity_log_service),
) -> ApiResponse[ActivityStatsResponse]:
    stats = await service.stats(merchant_id)
    return ApiResponse(
        data=ActivityStatsResponse(
            today_count=stats["total"],
            by_category=stats["by_category"],
            by_severity=stats["by_severity"],
            recent_errors=[ActivityLogResponse.model_validate(log) for log in stats["recent_errors"]],
        )
    )


@router.get(
    "/timeline/{resource_type}/{resource_id}",
    response_model=ApiResponse[list[ActivityLogResponse]],
    summary="Resource timeline",
)
async def resource_timeline(
    resource_type: str,
    resource_id: str,
    _admin: AdminClaims,
    service: ActivityLogService = Depends(get_activity_log_service),
) -> ApiResponse[list[ActivityLogResponse]]:
    logs = await service.timeline(resource_type, resource_id)
    return ApiResponse(data=[ActivityLogResponse.model_validate(log) for log in logs])
