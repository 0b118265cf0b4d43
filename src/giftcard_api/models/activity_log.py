"""Audit trail of authentication and administrative actions."""
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from giftcard_api.models.base import BaseModel, enum_column
from giftcard_api.models.enums import ActivityCategory, ActorType, Severity


class ActivityLog(BaseModel):
    """One audited action. Rows are append-only."""

    __tablename__ = "activity_logs"

    actor_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    actor_type: Mapped[ActorType] = mapped_column(enum_column(ActorType), default=ActorType.SYSTEM, nullable=False)
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    category: Mapped[ActivityCategory] = mapped_column(enum_column(ActivityCategory), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    resource_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    resource_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    # "metadata" is reserved on declarative classes
    details: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, default=dict, nullable=False)
    severity: Mapped[Severity] = mapped_column(enum_column(Severity), default=Severity.INFO, nullable=False, index=True)
    merchant_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)

    __table_args__ = (
        Index("ix_activity_logs_resource", "resource_type", "resource_id"),
        Index("ix_activity_logs_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ActivityLog(id={self.id}, action={self.action}, category={self.category})>"
