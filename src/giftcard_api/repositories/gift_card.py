"""Gift card repository with listing, search and stats queries."""
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from giftcard_api.models.gift_card import GiftCard
from giftcard_api.models.purchase import PurchasedGiftCard
from giftcard_api.repositories.base import BaseRepository

SORTABLE_COLUMNS = {
    "price": GiftCard.price,
    "created_at": GiftCard.created_at,
    "expiry_date": GiftCard.expiry_date,
    "title": GiftCard.title,
}


class GiftCardRepository(BaseRepository[GiftCard]):
    """Repository for GiftCard templates."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, GiftCard)

    async def _paginate(
        self,
        stmt: Select[Any],
        search: str | None,
        sort_by: str,
        sort_order: str,
        skip: int,
        limit: int,
    ) -> tuple[list[GiftCard], int]:
        if search:
            stmt = stmt.where(GiftCard.title.ilike(f"%{search}%"))
        total = await self.count(stmt)

        column = SORTABLE_COLUMNS.get(sort_by, GiftCard.created_at)
        order = column.asc() if sort_order == "asc" else column.desc()
        result = await self.db.execute(stmt.order_by(order).offset(skip).limit(limit))
        return list(result.scalars().all()), total

    async def list_for_merchant(
        self,
        merchant_id: UUID,
        search: str | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        skip: int = 0,
        limit: int = 10,
    ) -> tuple[list[GiftCard], int]:
        """All cards of one merchant, active or not."""
        stmt = select(GiftCard).where(GiftCard.merchant_id == merchant_id)
        return await self._paginate(stmt, search, sort_by, sort_order, skip, limit)

    async def list_public_active(
        self,
        now: datetime,
        search: str | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        skip: int = 0,
        limit: int = 10,
    ) -> tuple[list[GiftCard], int]:
        """Active, unexpired cards across all merchants."""
        stmt = select(GiftCard).where(GiftCard.is_active == True, GiftCard.expiry_date > now)  # noqa: E712
        return await self._paginate(stmt, search, sort_by, sort_order, skip, limit)

    async def count_active(self, merchant_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count(GiftCard.id)).where(
                GiftCard.merchant_id == merchant_id, GiftCard.is_active == True  # noqa: E712
            )
        )
        return int(result.scalar_one())

    async def get_merchant_stats(self, merchant_id: UUID, now: datetime) -> dict[str, int]:
        """
        Aggregate active-card stats for one merchant.
        Returns dict with active_cards, total_value (minor units) and expiring_soon.
        """
        active = (GiftCard.merchant_id == merchant_id, GiftCard.is_active == True)  # noqa: E712
        totals = await self.db.execute(
            select(func.count(GiftCard.id), func.coalesce(func.sum(GiftCard.price), 0)).where(*active)
        )
        active_cards, total_value = totals.one()

        expiring = await self.db.execute(
            select(func.count(GiftCard.id)).where(
                *active,
                GiftCard.expiry_date > now,
                GiftCard.expiry_date <= now + timedelta(days=30),
            )
        )
        return {
            "active_cards": int(active_cards),
            "total_value": int(total_value),
            "expiring_soon": int(expiring.scalar_one()),
        }

    async def has_purchases(self, gift_card_id: UUID) -> bool:
        result = await self.db.execute(
            select(PurchasedGiftCard.id).where(PurchasedGiftCard.gift_card_id == gift_card_id).limit(1)
        )
        return result.scalar_one_or_none() is not None
