"""Gift card templates defined by merchants."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from giftcard_api.models.base import BaseModel


class GiftCard(BaseModel):
    """A purchasable gift card offered by one merchant."""

    __tablename__ = "gift_cards"

    merchant_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Minor units (see core.money)
    price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    expiry_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    merchant_logo: Mapped[str | None] = mapped_column(String(500), nullable=True)

    __table_args__ = (
        Index("ix_gift_cards_merchant_id_is_active", "merchant_id", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<GiftCard(id={self.id}, title={self.title}, price={self.price})>"
