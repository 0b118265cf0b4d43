"""Merchant profile and card settings repositories."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from giftcard_api.models.enums import ProfileStatus
from giftcard_api.models.merchant import CardSettings, MerchantProfile
from giftcard_api.repositories.base import BaseRepository


class MerchantProfileRepository(BaseRepository[MerchantProfile]):
    """Repository for merchant business profiles."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, MerchantProfile)

    async def get_by_user_id(self, user_id: UUID) -> MerchantProfile | None:
        result = await self.db.execute(
            select(MerchantProfile).where(MerchantProfile.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def list_profiles(
        self, status: ProfileStatus | None = None, skip: int = 0, limit: int = 100
    ) -> tuple[list[MerchantProfile], int]:
        """List profiles, newest first, optionally filtered by status."""
        stmt = select(MerchantProfile)
        if status is not None:
            stmt = stmt.where(MerchantProfile.profile_status == status)
        total = await self.count(stmt)
        result = await self.db.execute(
            stmt.order_by(MerchantProfile.created_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().unique().all()), total

    async def get_gift_card_limit(self, user_id: UUID, default: int) -> int:
        result = await self.db.execute(
            select(MerchantProfile.gift_card_limit).where(MerchantProfile.user_id == user_id)
        )
        limit = result.scalar_one_or_none()
        return limit if limit is not None else default


class CardSettingsRepository(BaseRepository[CardSettings]):
    """Repository for per-merchant card customization."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, CardSettings)

    async def get_by_merchant(self, merchant_id: UUID) -> CardSettings | None:
        result = await self.db.execute(
            select(CardSettings).where(CardSettings.merchant_id == merchant_id)
        )
        return result.scalar_one_or_none()
