"""Integration tests for repository layer."""
from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from giftcard_api.core.dates import utc_now
from giftcard_api.models.enums import PurchasedCardStatus, UserRole
from giftcard_api.models.gift_card import GiftCard
from giftcard_api.models.purchase import PurchasedGiftCard
from giftcard_api.models.user import User
from giftcard_api.repositories.purchase import PurchasedGiftCardRepository
from giftcard_api.repositories.user import UserRepository
from tests.conftest import make_user


@pytest.fixture
async def purchased_card(db_session: AsyncSession, merchant: User, gift_card: GiftCard) -> PurchasedGiftCard:
    card = PurchasedGiftCard(
        gift_card_id=gift_card.id,
        merchant_id=merchant.id,
        qr_code="THNX-DIGITAL-TEST-0001",
        customer_name="Test Customer",
        customer_email="customer@example.com",
        customer_phone="9123456789",
        purchase_amount=5000,
        current_balance=5000,
        status=PurchasedCardStatus.ACTIVE,
        expires_at=utc_now() + timedelta(days=30),
    )
    db_session.add(card)
    await db_session.commit()
    return card


class TestDebitBalance:
    """Test the conditional balance update."""

    @pytest.mark.asyncio
    async def test_debit(self, db_session: AsyncSession, purchased_card: PurchasedGiftCard):
        repo = PurchasedGiftCardRepository(db_session)

        result = await repo.debit_balance(purchased_card.id, 1500, utc_now())
        await db_session.commit()

        assert result.balance_before == 5000
        assert result.balance_after == 3500
        assert result.status == PurchasedCardStatus.ACTIVE
        card = await repo.reload(purchased_card)
        assert card.current_balance == 3500
        assert card.last_used_at is not None

    @pytest.mark.asyncio
    async def test_debit_to_zero_marks_fully_redeemed(self, db_session: AsyncSession, purchased_card: PurchasedGiftCard):
        repo = PurchasedGiftCardRepository(db_session)

        result = await repo.debit_balance(purchased_card.id, 5000, utc_now())
        await db_session.commit()

        assert result.balance_after == 0
        assert result.status == PurchasedCardStatus.FULLY_REDEEMED
        card = await repo.reload(purchased_card)
        assert card.status == PurchasedCardStatus.FULLY_REDEEMED

    @pytest.mark.asyncio
    async def test_overdraw_touches_nothing(self, db_session: AsyncSession, purchased_card: PurchasedGiftCard):
        repo = PurchasedGiftCardRepository(db_session)

        assert await repo.debit_balance(purchased_card.id, 5001, utc_now()) is None
        await db_session.commit()

        card = await repo.reload(purchased_card)
        assert card.current_balance == 5000
        assert card.last_used_at is None

    @pytest.mark.asyncio
    async def test_sequential_debits_never_overdraw(self, db_session: AsyncSession, purchased_card: PurchasedGiftCard):
        """Two 30.00 debits against 50.00: exactly one applies."""
        repo = PurchasedGiftCardRepository(db_session)

        first = await repo.debit_balance(purchased_card.id, 3000, utc_now())
        second = await repo.debit_balance(purchased_card.id, 3000, utc_now())
        await db_session.commit()

        assert first is not None
        assert second is None
        card = await repo.reload(purchased_card)
        assert card.current_balance == 2000

    @pytest.mark.asyncio
    async def test_expired_card_not_debited(self, db_session: AsyncSession, purchased_card: PurchasedGiftCard):
        repo = PurchasedGiftCardRepository(db_session)
        later = utc_now() + timedelta(days=31)

        assert await repo.debit_balance(purchased_card.id, 100, later) is None

        assert await repo.expire_if_active(purchased_card.id, later) is True
        await db_session.commit()
        card = await repo.reload(purchased_card)
        assert card.status == PurchasedCardStatus.EXPIRED
        assert await repo.expire_if_active(purchased_card.id, later) is False

    @pytest.mark.asyncio
    async def test_cancelled_card_not_debited(self, db_session: AsyncSession, purchased_card: PurchasedGiftCard):
        purchased_card.status = PurchasedCardStatus.CANCELLED
        await db_session.commit()

        repo = PurchasedGiftCardRepository(db_session)
        assert await repo.debit_balance(purchased_card.id, 100, utc_now()) is None


class TestUserRepository:
    @pytest.mark.asyncio
    async def test_email_lookup_is_case_insensitive(self, db_session: AsyncSession, merchant: User):
        repo = UserRepository(db_session)

        assert (await repo.get_by_email("MERCHANT@EXAMPLE.COM")).id == merchant.id
        assert await repo.email_exists("Merchant@Example.com") is True
        assert await repo.email_exists("nobody@example.com") is False

    @pytest.mark.asyncio
    async def test_first_active_admin(self, db_session: AsyncSession):
        repo = UserRepository(db_session)
        assert await repo.get_first_active_admin() is None

        inactive = await make_user(db_session, "retired-admin@example.com", role=UserRole.ADMIN)
        inactive.is_active = False
        await db_session.commit()
        active = await make_user(db_session, "admin@example.com", role=UserRole.ADMIN)

        assert (await repo.get_first_active_admin()).id == active.id
