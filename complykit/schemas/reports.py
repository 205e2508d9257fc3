"""Response schemas for the compliance dashboard, per-framework report and executive summary."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from complykit.models.enums import ComplianceStatus, FindingWorkflowStatus, RiskLevel


class TrendPoint(BaseModel):
    """Score of one historical analysis run."""

    run_at: datetime
    score: float
    compliant_count: int = 0
    partial_count: int = 0
    non_compliant_count: int = 0
    not_assessed_count: int = 0


class PriorityFinding(BaseModel):
    id: UUID
    finding_code: str
    title: str
    risk_level: RiskLevel
    workflow_status: FindingWorkflowStatus
    due_date: datetime | None = None
    control_code: str | None = None
    framework_name: str | None = None
    assigned_to: str | None = None


class FrameworkBreakdown(BaseModel):
    framework_id: UUID
    framework_code: str
    framework_name: str
    score: float
    status: ComplianceStatus
    total_controls: int = 0
    compliant_count: int = 0
    partial_count: int = 0
    non_compliant_count: int = 0
    not_assessed_count: int = 0
    critical_findings: int = 0
    last_analysis_date: datetime | None = None


class ComplianceDashboard(BaseModel):
    project_id: UUID
    project_name: str
    overall_score: float
    overall_status: ComplianceStatus
    total_controls: int = 0
    compliant_count: int = 0
    partial_count: int = 0
    non_compliant_count: int = 0
    not_assessed_count: int = 0
    frameworks: list[FrameworkBreakdown] = Field(default_factory=list)
    findings_by_risk: dict[str, int] = Field(default_factory=dict)
    findings_by_workflow_status: dict[str, int] = Field(default_factory=dict)
    trend: list[TrendPoint] = Field(default_factory=list)
    top_priority_findings: list[PriorityFinding] = Field(default_factory=list)


class ControlReportRow(BaseModel):
    control_id: UUID
    control_code: str
    title: str
    status: ComplianceStatus
    risk_level: RiskLevel | None = None
    open_findings: int = 0


class FrameworkReport(BaseModel):
    project_id: UUID
    framework_id: UUID
    framework_code: str
    framework_name: str
    score: float
    status: ComplianceStatus
    controls: list[ControlReportRow] = Field(default_factory=list)
    findings_by_risk: dict[str, int] = Field(default_factory=dict)
    last_analysis_date: datetime | None = None


class FrameworkSummary(BaseModel):
    framework_code: str
    framework_name: str
    score: float
    total_controls: int = 0
    compliant_count: int = 0
    critical_findings: int = 0


class TopRisk(BaseModel):
    id: UUID
    title: str
    framework_name: str | None = None
    control_code: str | None = None
    risk_level: RiskLevel
    remediation_guidance: str | None = None
    assigned_to: str | None = None
    due_date: datetime | None = None


class ProgressMetrics(BaseModel):
    total_findings: int = 0
    resolved_findings: int = 0
    in_progress_findings: int = 0
    open_findings: int = 0
    resolution_rate: float = 0.0


class ExecutiveSummary(BaseModel):
    """Management-level view of one project: headline numbers, narrative and next steps."""

    project_id: UUID
    project_name: str
    project_description: str | None = None
    generated_at: datetime
    last_analysis_date: datetime | None = None
    summary: str
    overall_score: float
    overall_status: ComplianceStatus
    total_frameworks: int = 0
    total_controls: int = 0
    compliant_count: int = 0
    partial_count: int = 0
    non_compliant_count: int = 0
    not_assessed_count: int = 0
    total_findings: int = 0
    critical_findings: int = 0
    open_critical_findings: int = 0
    frameworks: list[FrameworkSummary] = Field(default_factory=list)
    top_risks: list[TopRisk] = Field(default_factory=list)
    key_recommendations: list[str] = Field(default_factory=list)
    progress: ProgressMetrics = Field(default_factory=ProgressMetrics)
