"""Request/response schemas for finding workflow operations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from complykit.models.enums import FindingWorkflowStatus

RESOLUTION_NOTES_MAX_LEN = 5000


class FindingStatusUpdate(BaseModel):
    workflow_status: FindingWorkflowStatus
    resolution_notes: str | None = Field(default=None, max_length=RESOLUTION_NOTES_MAX_LEN)


class FindingStatusResponse(BaseModel):
    id: UUID
    workflow_status: FindingWorkflowStatus
    resolution_notes: str | None = None
    resolved_date: datetime | None = None
    resolved_by: str | None = None
