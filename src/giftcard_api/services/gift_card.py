"""Gift card templates and per-merchant card customization."""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from giftcard_api.config import settings
from giftcard_api.core.dates import utc_now
from giftcard_api.core.exceptions import (
    BadRequestError,
    GiftCardLimitReachedError,
    NotFoundError,
    PermissionDeniedError,
)
from giftcard_api.core.money import format_amount, to_minor_units
from giftcard_api.models.gift_card import GiftCard
from giftcard_api.models.merchant import CardSettings
from giftcard_api.repositories.gift_card import GiftCardRepository
from giftcard_api.repositories.merchant import CardSettingsRepository, MerchantProfileRepository
from giftcard_api.schemas.gift_card import GiftCardStats
from giftcard_api.services.activity_log import ActivityLogger

logger = logging.getLogger(__name__)


class GiftCardService:
    """Service for merchant-owned gift card templates."""

    def __init__(self, db: AsyncSession, activity: ActivityLogger | None = None):
        self.db = db
        self.activity = activity
        self.repo = GiftCardRepository(db)
        self.profile_repo = MerchantProfileRepository(db)
        self.settings_repo = CardSettingsRepository(db)

    async def _limit_for(self, merchant_id: UUID) -> int:
        return await self.profile_repo.get_gift_card_limit(merchant_id, settings.default_gift_card_limit)

    async def get_owned(self, gift_card_id: UUID, merchant_id: UUID) -> GiftCard:
        """
        Load a gift card the caller owns.

        Raises:
            NotFoundError: If the card does not exist
            PermissionDeniedError: If another merchant owns it
        """
        gift_card = await self.repo.get_by_id(gift_card_id)
        if gift_card is None:
            raise NotFoundError("Gift card not found")
        if gift_card.merchant_id != merchant_id:
            raise PermissionDeniedError("You do not have permission to access this gift card")
        return gift_card

    async def create(self, merchant_id: UUID, data: dict[str, Any]) -> GiftCard:
        """
        Create a gift card, enforcing the merchant's active-card limit.

        Raises:
            GiftCardLimitReachedError: If the merchant already has ``gift_card_limit`` active cards
        """
        limit = await self._limit_for(merchant_id)
        if await self.repo.count_active(merchant_id) >= limit:
            raise GiftCardLimitReachedError(
                f"Gift card limit reached. You can have at most {limit} active gift cards."
            )

        gift_card = await self.repo.create(
            GiftCard(
                merchant_id=merchant_id,
                title=data["title"],
                description=data.get("description"),
                price=to_minor_units(data["price"]),
                expiry_date=data["expiry_date"],
                merchant_logo=data.get("merchant_logo"),
                is_active=True,
            )
        )
        logger.info("Gift card created", extra={"user_id": str(merchant_id), "resource_id": str(gift_card.id)})
        if self.activity:
            await self.activity.gift_card_created(
                merchant_id, gift_card.id, gift_card.title, format_amount(gift_card.price)
            )
        return gift_card

    async def list_for_merchant(
        self,
        merchant_id: UUID,
        page: int,
        limit: int,
        search: str | None,
        sort_by: str,
        sort_order: str,
    ) -> tuple[list[GiftCard], int, GiftCardStats]:
        items, total = await self.repo.list_for_merchant(
            merchant_id, search, sort_by, sort_order, skip=(page - 1) * limit, limit=limit
        )
        stats = await self.repo.get_merchant_stats(merchant_id, utc_now())
        card_limit = await self._limit_for(merchant_id)
        return items, total, GiftCardStats(
            **stats,
            limit=card_limit,
            remaining=max(card_limit - stats["active_cards"], 0),
        )

    async def list_public(
        self, page: int, limit: int, search: str | None, sort_by: str, sort_order: str
    ) -> tuple[list[GiftCard], int]:
        return await self.repo.list_public_active(
            utc_now(), search, sort_by, sort_order, skip=(page - 1) * limit, limit=limit
        )

    async def update(self, gift_card_id: UUID, merchant_id: UUID, data: dict[str, Any]) -> GiftCard:
        """Apply a partial update and audit what changed."""
        gift_card = await self.get_owned(gift_card_id, merchant_id)

        if data.get("is_active") and not gift_card.is_active:
            limit = await self._limit_for(merchant_id)
            if await self.repo.count_active(merchant_id) >= limit:
                raise GiftCardLimitReachedError(
                    f"Gift card limit reached. You can have at most {limit} active gift cards."
                )

        if "price" in data and data["price"] is not None:
            data["price"] = to_minor_units(data["price"])

        changes: dict[str, Any] = {}
        for key, value in data.items():
            old = getattr(gift_card, key)
            if value is not None and value != old:
                changes[key] = {"from": str(old), "to": str(value)}

        was_active = gift_card.is_active
        gift_card = await self.repo.update(
            gift_card.id, {k: v for k, v in data.items() if k in changes}
        )

        if self.activity and changes:
            await self.activity.gift_card_updated(merchant_id, gift_card.id, changes)
            if was_active and not gift_card.is_active:
                await self.activity.gift_card_deactivated(merchant_id, gift_card.id, gift_card.title)
        return gift_card

    async def delete(self, gift_card_id: UUID, merchant_id: UUID) -> None:
        """
        Delete a gift card that was never sold.

        Raises:
            BadRequestError: If customers have purchased it
        """
        gift_card = await self.get_owned(gift_card_id, merchant_id)
        if await self.repo.has_purchases(gift_card.id):
            raise BadRequestError(
                "Cannot delete a gift card that has been purchased. Deactivate it instead."
            )
        title = gift_card.title
        await self.repo.delete(gift_card.id)
        if self.activity:
            await self.activity.gift_card_deleted(merchant_id, gift_card_id, title)

    # Card customization

    async def create_settings(self, merchant_id: UUID, data: dict[str, Any]) -> CardSettings:
        if await self.settings_repo.get_by_merchant(merchant_id) is not None:
            raise BadRequestError("Card settings already exist. Use update instead.")
        return await self.settings_repo.create(CardSettings(merchant_id=merchant_id, **data))

    async def get_settings(self, merchant_id: UUID) -> CardSettings:
        card_settings = await self.settings_repo.get_by_merchant(merchant_id)
        if card_settings is None:
            raise NotFoundError("Card settings not found")
        return card_settings

    async def update_settings(self, merchant_id: UUID, data: dict[str, Any]) -> CardSettings:
        card_settings = await self.get_settings(merchant_id)
        return await self.settings_repo.update(card_settings.id, data)
