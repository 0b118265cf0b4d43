"""Purchased gift card and redemption repositories.

Balance changes go through ``debit_balance``, a single conditional UPDATE.
Nothing here reads a balance, adjusts it in Python and writes it back.
"""
from datetime import datetime
from typing import NamedTuple
from uuid import UUID

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from giftcard_api.models.enums import PurchasedCardStatus
from giftcard_api.models.purchase import PurchasedGiftCard, Redemption
from giftcard_api.repositories.base import BaseRepository


class DebitResult(NamedTuple):
    balance_before: int
    balance_after: int
    status: PurchasedCardStatus


class PurchasedGiftCardRepository(BaseRepository[PurchasedGiftCard]):
    """Repository for purchased gift card instances."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, PurchasedGiftCard)

    async def get_by_qr_code(self, qr_code: str) -> PurchasedGiftCard | None:
        result = await self.db.execute(
            select(PurchasedGiftCard).where(PurchasedGiftCard.qr_code == qr_code)
        )
        return result.scalar_one_or_none()

    async def reload(self, card: PurchasedGiftCard) -> PurchasedGiftCard:
        """Re-read a card, discarding any stale in-session state."""
        await self.db.refresh(card)
        return card

    async def list_by_customer_email(self, email: str) -> list[PurchasedGiftCard]:
        result = await self.db.execute(
            select(PurchasedGiftCard)
            .where(PurchasedGiftCard.customer_email == email.lower())
            .order_by(PurchasedGiftCard.purchased_at.desc())
        )
        return list(result.scalars().all())

    async def debit_balance(self, card_id: UUID, amount: int, now: datetime) -> DebitResult | None:
        """
        Atomically subtract ``amount`` from an ACTIVE, unexpired card.

        The row is only touched when the balance covers the amount, so two
        concurrent debits can never overdraw it. The status flips to
        FULLY_REDEEMED in the same statement when the balance reaches zero.

        Returns:
            The balances around the debit, or None when no row qualified
        """
        new_balance = PurchasedGiftCard.current_balance - amount
        stmt = (
            update(PurchasedGiftCard)
            .where(
                PurchasedGiftCard.id == card_id,
                PurchasedGiftCard.status == PurchasedCardStatus.ACTIVE,
                PurchasedGiftCard.current_balance >= amount,
                PurchasedGiftCard.expires_at > now,
            )
            .values(
                current_balance=new_balance,
                status=case(
                    (new_balance == 0, PurchasedCardStatus.FULLY_REDEEMED.value),
                    else_=PurchasedGiftCard.status,
                ),
                last_used_at=now,
                updated_at=now,
            )
            .returning(PurchasedGiftCard.current_balance, PurchasedGiftCard.status)
            .execution_options(synchronize_session=False)
        )
        row = (await self.db.execute(stmt)).one_or_none()
        if row is None:
            return None
        balance_after, status = row
        return DebitResult(
            balance_before=balance_after + amount,
            balance_after=balance_after,
            status=PurchasedCardStatus(status),
        )

    async def expire_if_active(self, card_id: UUID, now: datetime) -> bool:
        """Move an ACTIVE card past its expiry to EXPIRED. Returns True if it changed."""
        result = await self.db.execute(
            update(PurchasedGiftCard)
            .where(
                PurchasedGiftCard.id == card_id,
                PurchasedGiftCard.status == PurchasedCardStatus.ACTIVE,
                PurchasedGiftCard.expires_at <= now,
            )
            .values(status=PurchasedCardStatus.EXPIRED, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) > 0


class RedemptionRepository(BaseRepository[Redemption]):
    """Repository for the redemption ledger."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Redemption)

    async def total_redeemed(self, purchased_gift_card_id: UUID) -> int:
        result = await self.db.execute(
            select(func.coalesce(func.sum(Redemption.amount), 0)).where(
                Redemption.purchased_gift_card_id == purchased_gift_card_id
            )
        )
        return int(result.scalar_one())

    async def recent_for_card(self, purchased_gift_card_id: UUID, limit: int = 10) -> list[Redemption]:
        result = await self.db.execute(
            select(Redemption)
            .where(Redemption.purchased_gift_card_id == purchased_gift_card_id)
            .order_by(Redemption.redeemed_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_for_merchant(
        self, merchant_id: UUID, skip: int = 0, limit: int = 10
    ) -> tuple[list[Redemption], int, int]:
        """
        Redemptions against a merchant's cards, newest first.
        Returns (page, total count, total redeemed amount).
        """
        scope = Redemption.purchased_gift_card_id.in_(
            select(PurchasedGiftCard.id).where(PurchasedGiftCard.merchant_id == merchant_id)
        )
        totals = await self.db.execute(
            select(func.count(Redemption.id), func.coalesce(func.sum(Redemption.amount), 0)).where(scope)
        )
        total_count, total_amount = totals.one()

        result = await self.db.execute(
            select(Redemption).where(scope).order_by(Redemption.redeemed_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), int(total_count), int(total_amount)
