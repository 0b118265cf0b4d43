"""Concurrent redemptions and refreshes, each on its own database session."""
import asyncio
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from giftcard_api.core.dates import utc_now
from giftcard_api.core.exceptions import AuthenticationError, InsufficientBalanceError
from giftcard_api.models.base import Base
from giftcard_api.models.enums import ProfileStatus, PurchasedCardStatus
from giftcard_api.models.purchase import PurchasedGiftCard, Redemption
from giftcard_api.services.activity_log import ActivityLogger
from giftcard_api.services.auth import AuthService, issue_token_pair
from giftcard_api.services.purchase import PurchaseService
from tests.conftest import RecordingJobQueue, make_gift_card, make_user


@pytest.fixture
async def session_factory(tmp_path):
    """Sessions on a file-backed database, so each one gets its own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'concurrency.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


async def _run(session_factory, operation):
    async with session_factory() as session:
        try:
            return "ok", await operation(session)
        except (AuthenticationError, InsufficientBalanceError) as e:
            return type(e).__name__, None


class TestConcurrentRedemption:
    @pytest.mark.asyncio
    async def test_only_one_redemption_fits_the_balance(self, session_factory):
        async with session_factory() as db:
            merchant = await make_user(db, "merchant@example.com", profile_status=ProfileStatus.VERIFIED)
            gift_card = await make_gift_card(db, merchant)
            card = PurchasedGiftCard(
                gift_card_id=gift_card.id,
                merchant_id=merchant.id,
                qr_code="THNX-DIGITAL-RACE-0001",
                customer_name="Asha Rao",
                customer_email="asha@example.com",
                customer_phone="9123456789",
                purchase_amount=5000,
                current_balance=5000,
                status=PurchasedCardStatus.ACTIVE,
                expires_at=utc_now() + timedelta(days=30),
            )
            db.add(card)
            await db.commit()
            merchant_id, card_id = merchant.id, card.id

        async def redeem(session: AsyncSession):
            queue = RecordingJobQueue()
            service = PurchaseService(session, queue, ActivityLogger(queue))
            redemption, _ = await service.redeem(merchant_id, "THNX-DIGITAL-RACE-0001", Decimal("30"))
            return redemption.balance_after

        results = await asyncio.gather(*(_run(session_factory, redeem) for _ in range(4)))

        assert [r for r in results if r[0] == "ok"] == [("ok", 2000)]
        assert sorted(r[0] for r in results if r[0] != "ok") == ["InsufficientBalanceError"] * 3

        async with session_factory() as db:
            card = await db.get(PurchasedGiftCard, card_id)
            assert card.current_balance == 2000
            assert card.status == PurchasedCardStatus.ACTIVE
            count = await db.scalar(
                select(func.count()).select_from(Redemption).where(Redemption.purchased_gift_card_id == card_id)
            )
            assert count == 1


class TestConcurrentRefresh:
    @pytest.mark.asyncio
    async def test_refresh_token_is_single_use(self, session_factory):
        async with session_factory() as db:
            merchant = await make_user(db, "merchant@example.com", profile_status=ProfileStatus.VERIFIED)
            tokens = await issue_token_pair(db, merchant)

        async def refresh(session: AsyncSession):
            queue = RecordingJobQueue()
            return await AuthService(session, queue, ActivityLogger(queue)).refresh_tokens(tokens.refresh_token)

        results = await asyncio.gather(_run(session_factory, refresh), _run(session_factory, refresh))

        assert sorted(r[0] for r in results) == ["AuthenticationError", "ok"]
