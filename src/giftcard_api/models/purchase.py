"""Purchased gift card instances and their redemption ledger."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from giftcard_api.core.dates import utc_now
from giftcard_api.models.base import BaseModel, enum_column
from giftcard_api.models.enums import PaymentStatus, PurchasedCardStatus


class PurchasedGiftCard(BaseModel):
    """A customer's purchased card with its remaining balance."""

    __tablename__ = "purchased_gift_cards"

    gift_card_id: Mapped[UUID] = mapped_column(ForeignKey("gift_cards.id", ondelete="RESTRICT"), nullable=False, index=True)
    # Owner of the template, copied at purchase time for redemption checks.
    merchant_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    qr_code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    customer_name: Mapped[str] = mapped_column(String(100), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    customer_phone: Mapped[str] = mapped_column(String(20), nullable=False)
    purchase_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    current_balance: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[PurchasedCardStatus] = mapped_column(
        enum_column(PurchasedCardStatus), default=PurchasedCardStatus.ACTIVE, nullable=False, index=True
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        enum_column(PaymentStatus), default=PaymentStatus.PENDING, nullable=False
    )
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    transaction_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    purchased_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "current_balance >= 0 AND current_balance <= purchase_amount",
            name="ck_purchased_gift_cards_balance_range",
        ),
    )

    # Relationships
    gift_card: Mapped["GiftCard"] = relationship("GiftCard", lazy="joined")

    def __repr__(self) -> str:
        return (
            f"<PurchasedGiftCard(id={self.id}, qr_code={self.qr_code}, "
            f"balance={self.current_balance}, status={self.status})>"
        )


class Redemption(BaseModel):
    """Immutable debit against a purchased gift card."""

    __tablename__ = "redemptions"

    purchased_gift_card_id: Mapped[UUID] = mapped_column(
        ForeignKey("purchased_gift_cards.id", ondelete="CASCADE"), nullable=False, index=True
    )
    redeemed_by_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    balance_before: Mapped[int] = mapped_column(BigInteger, nullable=False)
    balance_after: Mapped[int] = mapped_column(BigInteger, nullable=False)
    location_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    location_address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
    redeemed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_redemptions_amount_positive"),
        CheckConstraint("balance_after = balance_before - amount", name="ck_redemptions_balance_delta"),
    )

    # Relationships
    purchased_gift_card: Mapped["PurchasedGiftCard"] = relationship("PurchasedGiftCard", lazy="joined")

    def __repr__(self) -> str:
        return f"<Redemption(id={self.id}, amount={self.amount}, balance_after={self.balance_after})>"
