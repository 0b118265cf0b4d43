"""Unit tests for notification rendering and producer payloads."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from giftcard_api.models.enums import NotificationType, RecipientType
from giftcard_api.models.notification import PREFERENCE_FIELDS, NotificationPreference
from giftcard_api.services.notification import TEMPLATES, NotificationService, render_notification


class TestRenderNotification:
    def test_every_type_has_template_and_preference(self):
        for notification_type in NotificationType:
            assert notification_type in TEMPLATES
            assert notification_type in PREFERENCE_FIELDS

    def test_render_fills_values(self):
        title, message = render_notification(
            NotificationType.GIFT_CARD_PURCHASED, gift_card_title="Coffee Card", customer_name="Ravi"
        )
        assert title == "Gift Card Purchased"
        assert message == 'Your gift card "Coffee Card" was purchased by Ravi.'

    def test_render_uses_defaults_for_missing_values(self):
        _, message = render_notification(NotificationType.PROFILE_REJECTED, reason=None)
        assert "Reason: Not specified" in message

        _, message = render_notification(NotificationType.MERCHANT_REGISTERED)
        assert message.startswith("A merchant has registered")


class TestPreferences:
    def test_allows_follows_flag(self):
        prefs = NotificationPreference(
            user_id=uuid4(),
            **{field: True for field in PREFERENCE_FIELDS.values()},
        )
        prefs.purchase_made = False

        assert prefs.allows(NotificationType.PURCHASE_MADE) is False
        assert prefs.allows(NotificationType.REDEMPTION_MADE) is True


class TestProducers:
    @pytest.mark.asyncio
    async def test_merchant_producer_enqueues_payload(self):
        queue = AsyncMock()
        service = NotificationService(AsyncMock(), queue)
        merchant_id = uuid4()

        await service.on_profile_rejected(merchant_id, "Blurry ID", admin_id=uuid4())

        payload = queue.enqueue_notification.await_args.args[0]
        assert payload.recipient_id == merchant_id
        assert payload.recipient_type == RecipientType.MERCHANT
        assert payload.type == NotificationType.PROFILE_REJECTED
        assert "Blurry ID" in payload.message
        assert payload.resource_id == str(merchant_id)

    @pytest.mark.asyncio
    async def test_admin_producer_without_admin_is_skipped(self):
        queue = AsyncMock()
        service = NotificationService(AsyncMock(), queue)
        service.user_repo = AsyncMock()
        service.user_repo.get_first_active_admin.return_value = None

        await service.on_merchant_registered(uuid4(), "Chai Point")

        queue.enqueue_notification.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_admin_producer_targets_first_admin(self):
        queue = AsyncMock()
        service = NotificationService(AsyncMock(), queue)
        admin = AsyncMock()
        admin.id = uuid4()
        service.user_repo = AsyncMock()
        service.user_repo.get_first_active_admin.return_value = admin

        await service.on_purchase_made(uuid4(), "Coffee Card", "50.00", "Ravi")

        payload = queue.enqueue_notification.await_args.args[0]
        assert payload.recipient_id == admin.id
        assert payload.recipient_type == RecipientType.ADMIN
        assert payload.message == 'A gift card "Coffee Card" was purchased for 50.00.'
