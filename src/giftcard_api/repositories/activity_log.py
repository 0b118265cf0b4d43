"""Activity log repository with filtering and daily stats."""
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from giftcard_api.models.activity_log import ActivityLog
from giftcard_api.models.enums import ActivityCategory, Severity
from giftcard_api.repositories.base import BaseRepository


@dataclass
class ActivityLogFilters:
    category: ActivityCategory | None = None
    severity: Severity | None = None
    merchant_id: UUID | None = None
    actor_id: UUID | None = None
    resource_type: str | None = None
    resource_id: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    search: str | None = None


class ActivityLogRepository(BaseRepository[ActivityLog]):
    """Repository for the audit trail."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, ActivityLog)

    async def search(
        self, filters: ActivityLogFilters, skip: int = 0, limit: int = 50
    ) -> tuple[list[ActivityLog], int]:
        stmt = select(ActivityLog)
        if filters.category is not None:
            stmt = stmt.where(ActivityLog.category == filters.category)
        if filters.severity is not None:
            stmt = stmt.where(ActivityLog.severity == filters.severity)
        if filters.merchant_id is not None:
            stmt = stmt.where(ActivityLog.merchant_id == filters.merchant_id)
        if filters.actor_id is not None:
            stmt = stmt.where(ActivityLog.actor_id == filters.actor_id)
        if filters.resource_type:
            stmt = stmt.where(ActivityLog.resource_type == filters.resource_type)
        if filters.resource_id:
            stmt = stmt.where(ActivityLog.resource_id == filters.resource_id)
        if filters.start_date is not None:
            stmt = stmt.where(ActivityLog.created_at >= filters.start_date)
        if filters.end_date is not None:
            stmt = stmt.where(ActivityLog.created_at <= filters.end_date)
        if filters.search:
            stmt = stmt.where(ActivityLog.description.ilike(f"%{filters.search}%"))

        total = await self.count(stmt)
        result = await self.db.execute(
            stmt.order_by(ActivityLog.created_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total

    async def get_daily_stats(self, since: datetime, merchant_id: UUID | None = None) -> dict:
        """
        Summarize entries created since ``since``.
        Returns dict with total, by_category, by_severity and recent_errors.
        """
        scope = [ActivityLog.created_at >= since]
        if merchant_id is not None:
            scope.append(ActivityLog.merchant_id == merchant_id)

        total = await self.db.execute(select(func.count(ActivityLog.id)).where(*scope))
        by_category = await self.db.execute(
            select(ActivityLog.category, func.count(ActivityLog.id)).where(*scope).group_by(ActivityLog.category)
        )
        by_severity = await self.db.execute(
            select(ActivityLog.severity, func.count(ActivityLog.id)).where(*scope).group_by(ActivityLog.severity)
        )
        errors = await self.db.execute(
            select(ActivityLog)
            .where(*scope, ActivityLog.severity.in_([Severity.ERROR, Severity.CRITICAL]))
            .order_by(ActivityLog.created_at.desc())
            .limit(10)
        )
        return {
            "total": int(total.scalar_one()),
            "by_category": {category.value: int(count) for category, count in by_category},
            "by_severity": {severity.value: int(count) for severity, count in by_severity},
            "recent_errors": list(errors.scalars().all()),
        }

    async def timeline(self, resource_type: str, resource_id: str, limit: int = 100) -> list[ActivityLog]:
        result = await self.db.execute(
            select(ActivityLog)
            .where(ActivityLog.resource_type == resource_type, ActivityLog.resource_id == resource_id)
            .order_by(ActivityLog.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
