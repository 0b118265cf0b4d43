"""Integration tests for the admin activity log endpoints."""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from giftcard_api.core.dates import utc_now
from giftcard_api.models.activity_log import ActivityLog
from giftcard_api.models.enums import ActivityCategory, ActorType, Severity
from giftcard_api.models.gift_card import GiftCard
from giftcard_api.models.user import User
from giftcard_api.schemas.activity_log import ActivityPayload
from giftcard_api.services.activity_log import ActivityLogService

CUSTOMER = {"customer_name": "Meera", "customer_email": "meera@example.com", "customer_phone": "9123456789"}


async def purchase_and_redeem(client: AsyncClient, gift_card: GiftCard, headers: dict) -> dict:
    purchase = (await client.post(f"/api/purchases/gift-cards/{gift_card.id}", json=CUSTOMER)).json()["data"]
    await client.post("/api/purchases/redeem", json={"qr_code": purchase["qr_code"], "amount": "50"}, headers=headers)
    return purchase["purchase"]


class TestActivityLogSearch:
    @pytest.mark.asyncio
    async def test_requires_admin(self, client: AsyncClient, merchant_headers):
        response = await client.get("/api/activity-logs", headers=merchant_headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_list_and_filter(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        admin_headers,
        merchant: User,
        gift_card: GiftCard,
        merchant_headers,
        job_queue,
    ):
        await purchase_and_redeem(client, gift_card, merchant_headers)
        await job_queue.drain(db_session)

        everything = (await client.get("/api/activity-logs", headers=admin_headers)).json()["data"]
        actions = {log["action"] for log in everything["logs"]}
        assert {"purchase_created", "redemption_success", "gift_card_fully_redeemed"} <= actions

        redemptions = await client.get(
            "/api/activity-logs", params={"category": "REDEMPTION"}, headers=admin_headers
        )
        logs = redemptions.json()["data"]["logs"]
        assert {log["category"] for log in logs} == {"REDEMPTION"}
        success = next(log for log in logs if log["action"] == "redemption_success")
        assert success["metadata"]["amount"] == "50.00"
        assert success["metadata"]["balance_after"] == "0.00"
        assert success["merchant_id"] == str(merchant.id)

        searched = await client.get("/api/activity-logs", params={"search": "FULLY"}, headers=admin_headers)
        assert [log["action"] for log in searched.json()["data"]["logs"]] == ["gift_card_fully_redeemed"]

    @pytest.mark.asyncio
    async def test_filter_by_merchant_and_dates(
        self, client: AsyncClient, db_session: AsyncSession, admin_headers, merchant: User, other_merchant: User
    ):
        service = ActivityLogService(db_session)
        for owner in (merchant, other_merchant):
            await service.record(
                ActivityPayload(
                    action="gift_card_created",
                    category=ActivityCategory.GIFT_CARD,
                    description="Gift card created",
                    actor_id=owner.id,
                    actor_type=ActorType.MERCHANT,
                    merchant_id=owner.id,
                )
            )

        mine = await client.get(
            "/api/activity-logs", params={"merchant_id": str(merchant.id)}, headers=admin_headers
        )
        assert mine.json()["data"]["pagination"]["total"] == 1

        tomorrow = (utc_now() + timedelta(days=1)).isoformat()
        future = await client.get("/api/activity-logs", params={"start_date": tomorrow}, headers=admin_headers)
        assert future.json()["data"]["logs"] == []

    @pytest.mark.asyncio
    async def test_invalid_category(self, client: AsyncClient, admin_headers):
        response = await client.get("/api/activity-logs", params={"category": "NOPE"}, headers=admin_headers)
        assert response.status_code == 400


class TestActivityStats:
    @pytest.mark.asyncio
    async def test_stats(self, client: AsyncClient, db_session: AsyncSession, admin_headers):
        service = ActivityLogService(db_session)
        for severity in (Severity.INFO, Severity.INFO, Severity.ERROR):
            await service.record(
                ActivityPayload(
                    action="job_failed" if severity == Severity.ERROR else "login",
                    category=ActivityCategory.SYSTEM if severity == Severity.ERROR else ActivityCategory.AUTH,
                    description=f"{severity.value} entry",
                    severity=severity,
                )
            )
        old = ActivityLog(
            action="login",
            category=ActivityCategory.AUTH,
            description="Yesterday",
            actor_type=ActorType.SYSTEM,
            severity=Severity.INFO,
            details={},
        )
        old.created_at = utc_now() - timedelta(days=2)
        db_session.add(old)
        await db_session.commit()

        response = await client.get("/api/activity-logs/stats", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["today_count"] == 3
        assert data["by_category"] == {"AUTH": 2, "SYSTEM": 1}
        assert data["by_severity"] == {"INFO": 2, "ERROR": 1}
        assert [log["action"] for log in data["recent_errors"]] == ["job_failed"]


class TestTimeline:
    @pytest.mark.asyncio
    async def test_timeline_for_purchased_card(
        self, client: AsyncClient, db_session: AsyncSession, admin_headers, gift_card: GiftCard, merchant_headers, job_queue
    ):
        purchase = await purchase_and_redeem(client, gift_card, merchant_headers)
        await job_queue.drain(db_session)

        response = await client.get(
            f"/api/activity-logs/timeline/purchased_gift_card/{purchase['id']}", headers=admin_headers
        )

        assert response.status_code == 200
        actions = {log["action"] for log in response.json()["data"]}
        assert actions == {"purchase_created", "redemption_success", "gift_card_fully_redeemed"}
