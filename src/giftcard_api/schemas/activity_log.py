"""Pydantic schemas for the activity log."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from giftcard_api.models.enums import ActivityCategory, ActorType, Severity
from giftcard_api.schemas.common import Pagination


class ActivityLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    actor_id: UUID | None
    actor_type: ActorType
    action: str
    category: ActivityCategory
    description: str
    resource_type: str | None
    resource_id: str | None
    details: dict[str, Any] = Field(serialization_alias="metadata")
    severity: Severity
    merchant_id: UUID | None
    ip_address: str | None
    user_agent: str | None
    created_at: datetime


class ActivityLogListResponse(BaseModel):
    logs: list[ActivityLogResponse]
    pagination: Pagination


class ActivityStatsResponse(BaseModel):
    today_count: int
    by_category: dict[str, int]
    by_severity: dict[str, int]
    recent_errors: list[ActivityLogResponse]


class ActivityPayload(BaseModel):
    """Job payload for recording one activity entry."""

    action: str
    category: ActivityCategory
    description: str
    actor_id: UUID | None = None
    actor_type: ActorType = ActorType.SYSTEM
    resource_type: str | None = None
    resource_id: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    severity: Severity = Severity.INFO
    merchant_id: UUID | None = None
    ip_address: str | None = None
    user_agent: str | None = None
