"""Request/response schemas for the activity (audit) log query surface."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from complykit.models.enums import ActivityType


class ActivityLogFilters(BaseModel):
    activity_type: ActivityType | None = None
    user_id: str | None = None
    entity_type: str | None = None
    entity_id: str | None = None
    project_id: UUID | None = None
    start_date: date | None = None
    end_date: date | None = Field(default=None, description="Inclusive, to the end of the day.")
    search: str | None = Field(default=None, max_length=255)
    offset: int = Field(default=0, ge=0)
    limit: int | None = Field(default=None, description="Clamped to [1, 1000]; default 100.")


class ActivityLogEntry(BaseModel):
    id: UUID
    project_id: UUID | None = None
    user_id: str
    user_name: str
    user_email: str
    activity_type: ActivityType
    entity_type: str
    entity_id: str | None = None
    entity_name: str | None = None
    description: str
    metadata: dict[str, Any] | None = None
    occurred_at: datetime


class ActivityLogPage(BaseModel):
    logs: list[ActivityLogEntry]
    total_count: int
    returned_count: int
    offset: int
