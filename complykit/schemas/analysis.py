"""Pydantic schemas for the external compliance-analysis contract (request and aggregated response)."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from complykit.models.enums import ComplianceStatus, EvidenceType, RiskLevel


class ControlSummary(BaseModel):
    """One control as presented to the analysis capability."""

    control_id: UUID
    control_code: str
    title: str
    description: str = ""
    implementation_guidance: str | None = None
    default_risk_level: RiskLevel = RiskLevel.MEDIUM
    is_mandatory: bool = True


class DocumentContent(BaseModel):
    """Analyzable text of one document (empty when extraction was not possible)."""

    document_id: UUID
    file_name: str
    content: str = ""
    content_type: str = ""
    page_count: int | None = None


class AnalysisOptions(BaseModel):
    """Caller-selectable analysis options; unset values fall back to configuration."""

    model: str | None = Field(default=None, description="Model name; defaults to OLLAMA_MODEL.")
    temperature: float | None = Field(default=None, ge=0, le=2)
    mandatory_controls_only: bool = Field(
        default=False,
        description="Send only mandatory controls to the analysis capability.",
    )


class FrameworkAnalysisRequest(BaseModel):
    project_id: UUID
    framework_id: UUID
    framework_code: str
    framework_name: str
    controls: list[ControlSummary]
    documents: list[DocumentContent]
    options: AnalysisOptions = Field(default_factory=AnalysisOptions)


class EvidenceReference(BaseModel):
    model_config = {"extra": "ignore"}

    document_id: UUID
    document_name: str | None = None
    excerpt: str = ""
    page_reference: str | None = None
    relevance_score: float | None = Field(default=None, ge=0, le=1)
    evidence_type: EvidenceType = EvidenceType.SUPPORTING


class ControlAnalysisResult(BaseModel):
    """Verdict for one control."""

    model_config = {"extra": "ignore"}

    control_id: UUID
    status: ComplianceStatus
    risk_level: RiskLevel = RiskLevel.MEDIUM
    finding_title: str = ""
    finding_description: str = ""
    remediation_guidance: str | None = None
    estimated_effort_hours: float | None = Field(default=None, ge=0)
    confidence_score: float | None = Field(default=None, ge=0, le=1)
    evidence_references: list[EvidenceReference] = Field(default_factory=list)


class ComplianceSummary(BaseModel):
    model_config = {"extra": "ignore"}

    compliance_score: float = 0.0
    compliant_count: int = 0
    partial_count: int = 0
    non_compliant_count: int = 0
    not_assessed_count: int = 0


class FrameworkAnalysisResult(BaseModel):
    """Aggregated response: one result per analyzed control plus a run summary."""

    results: list[ControlAnalysisResult] = Field(default_factory=list)
    summary: ComplianceSummary = Field(default_factory=ComplianceSummary)
    analysis_completed_at: datetime | None = None
    duration_seconds: float | None = None
    model: str | None = None
