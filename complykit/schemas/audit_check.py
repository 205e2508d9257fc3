"""Request/response schemas for running an audit (compliance) check."""

import enum
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from complykit.schemas.analysis import AnalysisOptions, ComplianceSummary


class AuditCheckState(str, enum.Enum):
    NOT_STARTED = "NotStarted"
    RUNNING = "Running"
    COMPLETED = "Completed"
    FAILED = "Failed"


class AuditCheckRequest(BaseModel):
    framework_id: UUID
    options: AnalysisOptions | None = None


class AuditCheckResponse(BaseModel):
    audit_check_id: UUID
    project_id: UUID
    framework_id: UUID
    state: AuditCheckState
    started_at: datetime
    completed_at: datetime | None = None
    duration_seconds: float | None = None
    controls_analyzed: int = 0
    findings_created: int = 0
    compliance_score: float | None = Field(
        default=None, description="Weighted score recomputed from per-control results."
    )
    summary: ComplianceSummary | None = None
