"""Audit trail producers and queries."""

import logging
from datetime import datetime, time, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from giftcard_api.core.dates import utc_now
from giftcard_api.models.activity_log import ActivityLog
from giftcard_api.models.enums import ActivityCategory, ActorType, Severity, UserRole
from giftcard_api.repositories.activity_log import ActivityLogFilters, ActivityLogRepository
from giftcard_api.schemas.activity_log import ActivityPayload
from giftcard_api.worker.queue import JobQueue

logger = logging.getLogger(__name__)

ROLE_ACTOR_TYPES = {
    UserRole.ADMIN: ActorType.ADMIN,
    UserRole.MERCHANT: ActorType.MERCHANT,
    UserRole.USER: ActorType.USER,
}


def actor_type_for(role: UserRole | str | None) -> ActorType:
    if role is None:
        return ActorType.SYSTEM
    return ROLE_ACTOR_TYPES.get(UserRole(role), ActorType.USER)


class ActivityLogger:
    """Queues audit entries for the worker, stamped with the caller's IP and user agent."""

    def __init__(self, queue: JobQueue, ip_address: str | None = None, user_agent: str | None = None):
        self.queue = queue
        self.ip_address = ip_address
        self.user_agent = user_agent

    async def log(
        self,
        action: str,
        category: ActivityCategory,
        description: str,
        *,
        actor_id: UUID | None = None,
        actor_type: ActorType = ActorType.SYSTEM,
        resource_type: str | None = None,
        resource_id: Any = None,
        details: dict[str, Any] | None = None,
        severity: Severity = Severity.INFO,
        merchant_id: UUID | None = None,
    ) -> None:
        await self.queue.enqueue_activity(
            ActivityPayload(
                action=action,
                category=category,
                description=description,
                actor_id=actor_id,
                actor_type=actor_type,
                resource_type=resource_type,
                resource_id=str(resource_id) if resource_id is not None else None,
                details=details or {},
                severity=severity,
                merchant_id=merchant_id,
                ip_address=self.ip_address,
                user_agent=self.user_agent,
            )
        )

    # Auth

    async def login(self, user_id: UUID, email: str, role: UserRole) -> None:
        await self.log(
            "login", ActivityCategory.AUTH, f"User {email} logged in",
            actor_id=user_id, actor_type=actor_type_for(role), resource_type="user", resource_id=user_id,
        )

    async def logout(self, user_id: UUID, role: UserRole | str | None = None) -> None:
        await self.log(
            "logout", ActivityCategory.AUTH, "User logged out",
            actor_id=user_id, actor_type=actor_type_for(role), resource_type="user", resource_id=user_id,
        )

    async def login_failed(self, email: str, reason: str) -> None:
        await self.log(
            "login_failed", ActivityCategory.AUTH, f"Failed login attempt for {email}: {reason}",
            details={"email": email, "reason": reason}, severity=Severity.WARNING,
        )

    async def register(self, user_id: UUID, email: str, role: UserRole) -> None:
        await self.log(
            "register", ActivityCategory.AUTH, f"New {role.value.lower()} registered: {email}",
            actor_id=user_id, actor_type=actor_type_for(role), resource_type="user", resource_id=user_id,
        )

    # Merchants

    async def merchant_profile_submitted(self, merchant_id: UUID, profile_id: UUID, business_name: str) -> None:
        await self.log(
            "merchant_profile_submitted", ActivityCategory.MERCHANT,
            f"Merchant profile submitted for verification: {business_name}",
            actor_id=merchant_id, actor_type=ActorType.MERCHANT, resource_type="merchant_profile",
            resource_id=profile_id, merchant_id=merchant_id,
        )

    async def merchant_profile_updated(self, merchant_id: UUID, profile_id: UUID, fields: list[str]) -> None:
        await self.log(
            "merchant_profile_updated", ActivityCategory.MERCHANT, "Merchant profile updated",
            actor_id=merchant_id, actor_type=ActorType.MERCHANT, resource_type="merchant_profile",
            resource_id=profile_id, details={"fields": fields}, merchant_id=merchant_id,
        )

    async def merchant_verified(self, admin_id: UUID, merchant_id: UUID, profile_id: UUID, business_name: str) -> None:
        await self.log(
            "merchant_verified", ActivityCategory.MERCHANT, f"Merchant verified: {business_name}",
            actor_id=admin_id, actor_type=ActorType.ADMIN, resource_type="merchant_profile",
            resource_id=profile_id, merchant_id=merchant_id,
        )

    async def merchant_rejected(
        self, admin_id: UUID, merchant_id: UUID, profile_id: UUID, business_name: str, reason: str
    ) -> None:
        await self.log(
            "merchant_rejected", ActivityCategory.MERCHANT, f"Merchant rejected: {business_name}",
            actor_id=admin_id, actor_type=ActorType.ADMIN, resource_type="merchant_profile",
            resource_id=profile_id, details={"reason": reason}, severity=Severity.WARNING,
            merchant_id=merchant_id,
        )

    async def user_created(self, admin_id: UUID, user_id: UUID, email: str) -> None:
        await self.log(
            "user_created", ActivityCategory.USER, f"User created by admin: {email}",
            actor_id=admin_id, actor_type=ActorType.ADMIN, resource_type="user", resource_id=user_id,
        )

    async def user_deactivated(self, admin_id: UUID, user_id: UUID, hard_delete: bool) -> None:
        await self.log(
            "user_deleted" if hard_delete else "user_deactivated", ActivityCategory.USER,
            "Merchant account deleted" if hard_delete else "Merchant account deactivated",
            actor_id=admin_id, actor_type=ActorType.ADMIN, resource_type="user", resource_id=user_id,
            severity=Severity.WARNING,
        )

    # Gift cards

    async def gift_card_created(self, merchant_id: UUID, gift_card_id: UUID, title: str, price: str) -> None:
        await self.log(
            "gift_card_created", ActivityCategory.GIFT_CARD, f"Gift card created: {title}",
            actor_id=merchant_id, actor_type=ActorType.MERCHANT, resource_type="gift_card",
            resource_id=gift_card_id, details={"price": price}, merchant_id=merchant_id,
        )

    async def gift_card_updated(self, merchant_id: UUID, gift_card_id: UUID, changes: dict[str, Any]) -> None:
        await self.log(
            "gift_card_updated", ActivityCategory.GIFT_CARD, "Gift card updated",
            actor_id=merchant_id, actor_type=ActorType.MERCHANT, resource_type="gift_card",
            resource_id=gift_card_id, details={"changes": changes}, merchant_id=merchant_id,
        )

    async def gift_card_deactivated(self, merchant_id: UUID, gift_card_id: UUID, title: str) -> None:
        await self.log(
            "gift_card_deactivated", ActivityCategory.GIFT_CARD, f"Gift card deactivated: {title}",
            actor_id=merchant_id, actor_type=ActorType.MERCHANT, resource_type="gift_card",
            resource_id=gift_card_id, merchant_id=merchant_id,
        )

    async def gift_card_deleted(self, merchant_id: UUID, gift_card_id: UUID, title: str) -> None:
        await self.log(
            "gift_card_deleted", ActivityCategory.GIFT_CARD, f"Gift card deleted: {title}",
            actor_id=merchant_id, actor_type=ActorType.MERCHANT, resource_type="gift_card",
            resource_id=gift_card_id, severity=Severity.WARNING, merchant_id=merchant_id,
        )

    # Purchases and redemptions

    async def purchase_created(
        self, purchase_id: UUID, merchant_id: UUID, gift_card_title: str, amount: str, customer_email: str
    ) -> None:
        await self.log(
            "purchase_created", ActivityCategory.PURCHASE, f"Gift card purchased: {gift_card_title}",
            actor_type=ActorType.USER, resource_type="purchased_gift_card", resource_id=purchase_id,
            details={"amount": amount, "customer_email": customer_email}, merchant_id=merchant_id,
        )

    async def payment_completed(self, purchase_id: UUID, merchant_id: UUID, amount: str, transaction_id: str) -> None:
        await self.log(
            "payment_completed", ActivityCategory.PURCHASE, f"Payment completed for {amount}",
            actor_type=ActorType.SYSTEM, resource_type="purchased_gift_card", resource_id=purchase_id,
            details={"amount": amount, "transaction_id": transaction_id}, merchant_id=merchant_id,
        )

    async def redemption_success(
        self, merchant_id: UUID, purchase_id: UUID, redemption_id: UUID, amount: str, balance_after: str
    ) -> None:
        await self.log(
            "redemption_success", ActivityCategory.REDEMPTION, f"Redeemed {amount}, remaining {balance_after}",
            actor_id=merchant_id, actor_type=ActorType.MERCHANT, resource_type="purchased_gift_card",
            resource_id=purchase_id,
            details={"redemption_id": str(redemption_id), "amount": amount, "balance_after": balance_after},
            merchant_id=merchant_id,
        )

    async def fully_redeemed(self, merchant_id: UUID, purchase_id: UUID, qr_code: str) -> None:
        await self.log(
            "gift_card_fully_redeemed", ActivityCategory.REDEMPTION, f"Gift card fully redeemed: {qr_code}",
            actor_id=merchant_id, actor_type=ActorType.MERCHANT, resource_type="purchased_gift_card",
            resource_id=purchase_id, merchant_id=merchant_id,
        )

    async def verification_failed(
        self, qr_code: str, reason: str, merchant_id: UUID | None = None, purchase_id: UUID | None = None
    ) -> None:
        await self.log(
            "verification_failed", ActivityCategory.REDEMPTION, f"Gift card verification failed: {reason}",
            actor_id=merchant_id, actor_type=ActorType.MERCHANT if merchant_id else ActorType.SYSTEM,
            resource_type="purchased_gift_card", resource_id=purchase_id,
            details={"qr_code": qr_code, "reason": reason}, severity=Severity.WARNING, merchant_id=merchant_id,
        )


class ActivityLogService:
    """Stores and queries audit entries."""

    def __init__(self, db: AsyncSession):
        self.repo = ActivityLogRepository(db)

    async def record(self, payload: ActivityPayload) -> ActivityLog:
        return await self.repo.create(ActivityLog(**payload.model_dump()))

    async def search(
        self, filters: ActivityLogFilters, page: int, limit: int
    ) -> tuple[list[ActivityLog], int]:
        return await self.repo.search(filters, skip=(page - 1) * limit, limit=limit)

    async def stats(self, merchant_id: UUID | None = None, now: datetime | None = None) -> dict:
        now = now or utc_now()
        start_of_day = datetime.combine(now.date(), time.min, tzinfo=timezone.utc)
        return await self.repo.get_daily_stats(start_of_day, merchant_id=merchant_id)

    async def timeline(self, resource_type: str, resource_id: str) -> list[ActivityLog]:
        return await self.repo.timeline(resource_type, resource_id, limit=100)
