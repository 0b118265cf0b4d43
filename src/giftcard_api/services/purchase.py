"""Gift card purchases, balance checks and redemptions.

A redemption is one transaction: a conditional balance debit on the
purchased card plus the Redemption ledger insert. The debit only applies
while the card is ACTIVE, unexpired and covers the amount, so concurrent
redemptions cannot overdraw a card.
"""

import logging
from collections import Counter
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from giftcard_api.core.dates import ensure_aware, utc_now
from giftcard_api.core.exceptions import (
    BadRequestError,
    CardExpiredError,
    CardNotActiveError,
    InsufficientBalanceError,
    NotFoundError,
    PermissionDeniedError,
)
from giftcard_api.core.money import format_amount, to_minor_units
from giftcard_api.core.qr import generate_qr_code, generate_qr_data_url
from giftcard_api.models.enums import PaymentStatus, PurchasedCardStatus
from giftcard_api.models.purchase import PurchasedGiftCard, Redemption
from giftcard_api.repositories.gift_card import GiftCardRepository
from giftcard_api.repositories.merchant import MerchantProfileRepository
from giftcard_api.repositories.purchase import PurchasedGiftCardRepository, RedemptionRepository
from giftcard_api.schemas.purchase import CustomerPurchaseStats
from giftcard_api.services.activity_log import ActivityLogger
from giftcard_api.services.notification import NotificationService
from giftcard_api.worker.queue import JobQueue

logger = logging.getLogger(__name__)


class PurchaseService:
    """Service for buying and redeeming gift cards."""

    def __init__(self, db: AsyncSession, queue: JobQueue, activity: ActivityLogger):
        self.db = db
        self.queue = queue
        self.activity = activity
        self.gift_card_repo = GiftCardRepository(db)
        self.purchase_repo = PurchasedGiftCardRepository(db)
        self.redemption_repo = RedemptionRepository(db)
        self.profile_repo = MerchantProfileRepository(db)
        self.notifications = NotificationService(db, queue)

    async def purchase(self, gift_card_id: UUID, data: dict[str, Any]) -> tuple[PurchasedGiftCard, str]:
        """
        Buy a gift card: the new card starts ACTIVE with balance = price.

        Returns:
            The purchased card and a PNG data URL of its QR code

        Raises:
            NotFoundError: Unknown gift card
            BadRequestError: Gift card inactive
            CardExpiredError: Gift card past its expiry date
        """
        gift_card = await self.gift_card_repo.get_by_id(gift_card_id)
        if gift_card is None:
            raise NotFoundError("Gift card not found")
        if not gift_card.is_active:
            raise BadRequestError("This gift card is not available for purchase")
        if ensure_aware(gift_card.expiry_date) <= utc_now():
            raise CardExpiredError("This gift card has expired")

        transaction_id = data.get("transaction_id")
        purchased = await self.purchase_repo.create(
            PurchasedGiftCard(
                gift_card_id=gift_card.id,
                merchant_id=gift_card.merchant_id,
                qr_code=generate_qr_code(),
                customer_name=data["customer_name"],
                customer_email=data["customer_email"].lower(),
                customer_phone=data["customer_phone"],
                purchase_amount=gift_card.price,
                current_balance=gift_card.price,
                status=PurchasedCardStatus.ACTIVE,
                payment_status=PaymentStatus.COMPLETED if transaction_id else PaymentStatus.PENDING,
                payment_method=data.get("payment_method"),
                transaction_id=transaction_id,
                purchased_at=utc_now(),
                expires_at=gift_card.expiry_date,
            )
        )
        logger.info("Gift card purchased", extra={"resource_id": str(purchased.id)})

        amount = format_amount(purchased.purchase_amount)
        profile = await self.profile_repo.get_by_user_id(gift_card.merchant_id)
        merchant_name = profile.business_name if profile else None
        await self.queue.enqueue_email(
            "gift_card_email",
            purchased.customer_email,
            purchased.customer_name,
            qr_code=purchased.qr_code,
            title=gift_card.title,
            amount=amount,
            merchant_name=merchant_name,
            expires_at=ensure_aware(purchased.expires_at).date().isoformat(),
        )
        await self.notifications.on_gift_card_purchased(
            gift_card.merchant_id, purchased.id, gift_card.title, purchased.customer_name, amount
        )
        await self.notifications.on_purchase_made(purchased.id, gift_card.title, amount, purchased.customer_name)
        await self.activity.purchase_created(
            purchased.id, gift_card.merchant_id, gift_card.title, amount, purchased.customer_email
        )
        if transaction_id:
            await self.activity.payment_completed(purchased.id, gift_card.merchant_id, amount, transaction_id)

        return purchased, generate_qr_data_url(purchased.qr_code)

    async def _expire_if_due(self, card: PurchasedGiftCard) -> PurchasedGiftCard:
        """Persist EXPIRED for an ACTIVE card past its expiry."""
        if card.status == PurchasedCardStatus.ACTIVE and ensure_aware(card.expires_at) <= utc_now():
            if await self.purchase_repo.expire_if_active(card.id, utc_now()):
                await self.db.commit()
                logger.info("Purchased gift card expired", extra={"resource_id": str(card.id)})
            card = await self.purchase_repo.reload(card)
        return card

    async def check_balance(self, qr_code: str) -> tuple[PurchasedGiftCard, int, list[Redemption]]:
        """
        Look up a card by QR code with its redemption summary.

        Returns:
            (card, total redeemed, 10 most recent redemptions)
        """
        card = await self.purchase_repo.get_by_qr_code(qr_code)
        if card is None:
            raise NotFoundError("Gift card not found")
        card = await self._expire_if_due(card)
        total = await self.redemption_repo.total_redeemed(card.id)
        recent = await self.redemption_repo.recent_for_card(card.id, limit=10)
        return card, total, recent

    async def customer_purchases(self, email: str) -> tuple[list[PurchasedGiftCard], CustomerPurchaseStats]:
        cards = await self.purchase_repo.list_by_customer_email(email)
        stats = CustomerPurchaseStats(
            total_purchased=len(cards),
            total_spent=sum(c.purchase_amount for c in cards),
            active_balance=sum(c.current_balance for c in cards if c.status == PurchasedCardStatus.ACTIVE),
            by_status=dict(Counter(c.status.value for c in cards)),
        )
        return cards, stats

    async def _raise_rejection(self, card: PurchasedGiftCard, amount: int, merchant_id: UUID) -> None:
        """Explain why a card cannot take a debit of ``amount``."""
        if card.status == PurchasedCardStatus.ACTIVE and ensure_aware(card.expires_at) <= utc_now():
            card = await self._expire_if_due(card)
            await self.activity.verification_failed(card.qr_code, "expired", merchant_id, card.id)
            raise CardExpiredError("This gift card has expired")
        if card.status == PurchasedCardStatus.EXPIRED:
            await self.activity.verification_failed(card.qr_code, "expired", merchant_id, card.id)
            raise CardExpiredError("This gift card has expired")
        if card.status != PurchasedCardStatus.ACTIVE:
            await self.activity.verification_failed(card.qr_code, f"status {card.status.value}", merchant_id, card.id)
            raise CardNotActiveError(f"Gift card is not active (status: {card.status.value})")
        if amount > card.current_balance:
            await self.activity.verification_failed(card.qr_code, "insufficient balance", merchant_id, card.id)
            raise InsufficientBalanceError(
                f"Insufficient balance. Available: {format_amount(card.current_balance)}",
                extra={"availableBalance": format_amount(card.current_balance)},
            )

    async def redeem(
        self, merchant_id: UUID, qr_code: str, amount: Decimal, details: dict[str, Any] | None = None
    ) -> tuple[Redemption, PurchasedGiftCard]:
        """
        Debit ``amount`` from the card identified by ``qr_code``.

        Raises:
            NotFoundError: Unknown QR code
            PermissionDeniedError: The card belongs to another merchant
            CardExpiredError: The card is past its expiry (it is marked EXPIRED)
            CardNotActiveError: The card is fully redeemed or cancelled
            InsufficientBalanceError: The amount exceeds the current balance
        """
        details = details or {}
        amount_minor = to_minor_units(amount)

        card = await self.purchase_repo.get_by_qr_code(qr_code)
        if card is None:
            await self.activity.verification_failed(qr_code, "not found", merchant_id)
            raise NotFoundError("Gift card not found")
        if card.merchant_id != merchant_id:
            await self.activity.verification_failed(qr_code, "wrong merchant", merchant_id, card.id)
            raise PermissionDeniedError("This gift card does not belong to your business")

        # Fast rejection with a precise reason; the debit below re-checks atomically.
        await self._raise_rejection(card, amount_minor, merchant_id)

        now = utc_now()
        debit = await self.purchase_repo.debit_balance(card.id, amount_minor, now)
        if debit is None:
            # Lost a race with another redemption or expiry between read and debit
            await self.db.rollback()
            card = await self.purchase_repo.reload(card)
            await self._raise_rejection(card, amount_minor, merchant_id)
            raise InsufficientBalanceError("Gift card balance changed, please retry")

        redemption = await self.redemption_repo.add(
            Redemption(
                purchased_gift_card_id=card.id,
                redeemed_by_id=merchant_id,
                amount=amount_minor,
                balance_before=debit.balance_before,
                balance_after=debit.balance_after,
                location_name=details.get("location_name"),
                location_address=details.get("location_address"),
                notes=details.get("notes"),
                redeemed_at=now,
            )
        )
        await self.db.commit()
        card = await self.purchase_repo.reload(card)
        logger.info(
            "Gift card redeemed",
            extra={"user_id": str(merchant_id), "resource_id": str(card.id)},
        )

        amount_str = format_amount(amount_minor)
        title = card.gift_card.title if card.gift_card else "Gift card"
        profile = await self.profile_repo.get_by_user_id(merchant_id)
        await self.notifications.on_gift_card_redeemed(merchant_id, redemption.id, title, amount_str)
        await self.notifications.on_redemption_made(
            redemption.id, amount_str, merchant_id, profile.business_name if profile else None
        )
        await self.activity.redemption_success(
            merchant_id, card.id, redemption.id, amount_str, format_amount(debit.balance_after)
        )
        if debit.status == PurchasedCardStatus.FULLY_REDEEMED:
            await self.activity.fully_redeemed(merchant_id, card.id, card.qr_code)
        return redemption, card

    async def redemption_history(
        self, merchant_id: UUID, page: int, limit: int
    ) -> tuple[list[Redemption], int, int]:
        return await self.redemption_repo.list_for_merchant(
            merchant_id, skip=(page - 1) * limit, limit=limit
        )
