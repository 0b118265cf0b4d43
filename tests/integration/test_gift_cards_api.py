"""Integration tests for gift card endpoints."""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from giftcard_api.core.dates import utc_now
from giftcard_api.models.gift_card import GiftCard
from giftcard_api.models.user import User
from tests.conftest import auth_headers_for, make_gift_card


def future(days: int = 30) -> str:
    return (utc_now() + timedelta(days=days)).isoformat()


class TestCreateGiftCard:
    """Test POST /api/gift-cards."""

    @pytest.mark.asyncio
    async def test_create(self, client: AsyncClient, merchant: User, merchant_headers, job_queue):
        response = await client.post(
            "/api/gift-cards",
            json={"title": "  Masala Chai Card ", "price": "50.00", "expiry_date": future(), "description": "Tea"},
            headers=merchant_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["title"] == "Masala Chai Card"
        assert data["price"] == "50.00"
        assert data["is_active"] is True
        assert data["merchant_id"] == str(merchant.id)

        activity = job_queue.activities("gift_card_created")[0]
        assert activity["details"]["price"] == "50.00"

    @pytest.mark.asyncio
    async def test_create_accepts_numeric_price(self, client: AsyncClient, merchant_headers):
        response = await client.post(
            "/api/gift-cards",
            json={"title": "Snack Card", "price": 19.99, "expiry_date": future()},
            headers=merchant_headers,
        )

        assert response.status_code == 201
        assert response.json()["data"]["price"] == "19.99"

    @pytest.mark.parametrize(
        "payload, field",
        [
            ({"title": "ab", "price": "10", "expiry_date": None}, "title"),
            ({"title": "Good title", "price": "0", "expiry_date": None}, "price"),
            ({"title": "Good title", "price": "10.001", "expiry_date": None}, "price"),
            ({"title": "Good title", "price": "1000000", "expiry_date": None}, "price"),
        ],
    )
    @pytest.mark.asyncio
    async def test_create_validation(self, client: AsyncClient, merchant_headers, payload, field):
        payload = {**payload, "expiry_date": future()}

        response = await client.post("/api/gift-cards", json=payload, headers=merchant_headers)

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == field

    @pytest.mark.asyncio
    async def test_create_past_expiry(self, client: AsyncClient, merchant_headers):
        response = await client.post(
            "/api/gift-cards",
            json={"title": "Old Card", "price": "10", "expiry_date": future(-1)},
            headers=merchant_headers,
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["message"] == "Expiry date must be in the future"

    @pytest.mark.asyncio
    async def test_create_respects_card_limit(
        self, client: AsyncClient, db_session: AsyncSession, merchant: User, merchant_headers
    ):
        merchant.merchant_profile.gift_card_limit = 2
        await db_session.commit()
        await make_gift_card(db_session, merchant, title="One")
        await make_gift_card(db_session, merchant, title="Two")
        await make_gift_card(db_session, merchant, title="Inactive", is_active=False)

        response = await client.post(
            "/api/gift-cards",
            json={"title": "Three", "price": "10", "expiry_date": future()},
            headers=merchant_headers,
        )

        assert response.status_code == 400
        assert "limit" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_create_requires_verified_merchant(self, client: AsyncClient, pending_merchant: User):
        response = await client.post(
            "/api/gift-cards",
            json={"title": "Pending Card", "price": "10", "expiry_date": future()},
            headers=auth_headers_for(pending_merchant),
        )

        assert response.status_code == 403
        assert response.json()["requiresAction"] == "WAIT_FOR_VERIFICATION"

    @pytest.mark.asyncio
    async def test_create_requires_merchant_role(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/gift-cards",
            json={"title": "Admin Card", "price": "10", "expiry_date": future()},
            headers=admin_headers,
        )
        assert response.status_code == 403


class TestListGiftCards:
    @pytest.mark.asyncio
    async def test_list_with_stats(
        self, client: AsyncClient, db_session: AsyncSession, merchant: User, other_merchant: User, merchant_headers
    ):
        await make_gift_card(db_session, merchant, price=5000, title="Coffee Card", days=10)
        await make_gift_card(db_session, merchant, price=2500, title="Tea Card", days=90)
        await make_gift_card(db_session, merchant, price=9900, title="Retired Card", is_active=False)
        await make_gift_card(db_session, other_merchant, title="Not Mine")

        response = await client.get("/api/gift-cards", headers=merchant_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["pagination"]["total"] == 3
        assert "Not Mine" not in {c["title"] for c in data["gift_cards"]}
        assert data["stats"] == {
            "active_cards": 2,
            "total_value": "75.00",
            "expiring_soon": 1,
            "limit": 10,
            "remaining": 8,
        }

    @pytest.mark.asyncio
    async def test_search_and_sort(self, client: AsyncClient, db_session: AsyncSession, merchant: User, merchant_headers):
        await make_gift_card(db_session, merchant, price=3000, title="Coffee Small")
        await make_gift_card(db_session, merchant, price=9000, title="Coffee Large")
        await make_gift_card(db_session, merchant, price=1000, title="Tea")

        response = await client.get(
            "/api/gift-cards",
            params={"search": "coffee", "sort_by": "price", "sort_order": "asc"},
            headers=merchant_headers,
        )

        titles = [c["title"] for c in response.json()["data"]["gift_cards"]]
        assert titles == ["Coffee Small", "Coffee Large"]

    @pytest.mark.asyncio
    async def test_invalid_sort_field(self, client: AsyncClient, merchant_headers):
        response = await client.get("/api/gift-cards", params={"sort_by": "merchant_id"}, headers=merchant_headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_public_listing(self, client: AsyncClient, db_session: AsyncSession, merchant: User, other_merchant: User):
        await make_gift_card(db_session, merchant, title="Visible")
        await make_gift_card(db_session, other_merchant, title="Also Visible")
        await make_gift_card(db_session, merchant, title="Hidden", is_active=False)
        await make_gift_card(db_session, merchant, title="Expired", days=-1)

        response = await client.get("/api/gift-cards/public/active")

        assert response.status_code == 200
        titles = {c["title"] for c in response.json()["data"]["gift_cards"]}
        assert titles == {"Visible", "Also Visible"}


class TestSingleGiftCard:
    @pytest.mark.asyncio
    async def test_get(self, client: AsyncClient, gift_card: GiftCard, merchant_headers):
        response = await client.get(f"/api/gift-cards/{gift_card.id}", headers=merchant_headers)

        assert response.status_code == 200
        assert response.json()["data"]["price"] == "50.00"

    @pytest.mark.asyncio
    async def test_get_other_merchants_card(self, client: AsyncClient, gift_card: GiftCard, other_merchant: User):
        response = await client.get(f"/api/gift-cards/{gift_card.id}", headers=auth_headers_for(other_merchant))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_get_unknown(self, client: AsyncClient, merchant_headers):
        response = await client.get(
            "/api/gift-cards/00000000-0000-0000-0000-000000000000", headers=merchant_headers
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update(self, client: AsyncClient, gift_card: GiftCard, merchant_headers, job_queue):
        response = await client.put(
            f"/api/gift-cards/{gift_card.id}",
            json={"price": "75.50", "title": "Large Coffee Card"},
            headers=merchant_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["price"] == "75.50"
        assert data["title"] == "Large Coffee Card"
        changes = job_queue.activities("gift_card_updated")[0]["details"]["changes"]
        assert changes["price"] == {"from": "5000", "to": "7550"}

    @pytest.mark.asyncio
    async def test_deactivate(self, client: AsyncClient, gift_card: GiftCard, merchant_headers, job_queue):
        response = await client.put(
            f"/api/gift-cards/{gift_card.id}", json={"is_active": False}, headers=merchant_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["is_active"] is False
        assert job_queue.activities("gift_card_deactivated")

    @pytest.mark.asyncio
    async def test_update_empty_body(self, client: AsyncClient, gift_card: GiftCard, merchant_headers):
        response = await client.put(f"/api/gift-cards/{gift_card.id}", json={}, headers=merchant_headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete(self, client: AsyncClient, gift_card: GiftCard, merchant_headers, job_queue):
        response = await client.delete(f"/api/gift-cards/{gift_card.id}", headers=merchant_headers)

        assert response.status_code == 200
        assert job_queue.activities("gift_card_deleted")
        missing = await client.get(f"/api/gift-cards/{gift_card.id}", headers=merchant_headers)
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_purchased_card(self, client: AsyncClient, gift_card: GiftCard, merchant_headers):
        purchase = await client.post(
            f"/api/purchases/gift-cards/{gift_card.id}",
            json={"customer_name": "Asha", "customer_email": "asha@example.com", "customer_phone": "9123456789"},
        )
        assert purchase.status_code == 201

        response = await client.delete(f"/api/gift-cards/{gift_card.id}", headers=merchant_headers)

        assert response.status_code == 400
        assert "Deactivate" in response.json()["message"]


class TestCardSettings:
    @pytest.mark.asyncio
    async def test_settings_lifecycle(self, client: AsyncClient, merchant_headers):
        missing = await client.get("/api/gift-cards/card/settings", headers=merchant_headers)
        assert missing.status_code == 404

        created = await client.post(
            "/api/gift-cards/settings",
            json={"primary_color": "#FF5733", "font_family": "Inter"},
            headers=merchant_headers,
        )
        assert created.status_code == 201

        duplicate = await client.post("/api/gift-cards/settings", json={}, headers=merchant_headers)
        assert duplicate.status_code == 400

        updated = await client.put(
            "/api/gift-cards/card/settings", json={"secondary_color": "#000000"}, headers=merchant_headers
        )
        assert updated.status_code == 200
        data = updated.json()["data"]
        assert data["primary_color"] == "#FF5733"
        assert data["secondary_color"] == "#000000"
