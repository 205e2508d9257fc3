"""ORM models for compliance findings, their evidence and remediation tasks."""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from complykit.models.base import AuditableMixin, Base, JSONType, enum_column
from complykit.models.enums import (
    ComplianceStatus,
    EvidenceType,
    FindingWorkflowStatus,
    RiskLevel,
    TaskPriority,
    TaskStatus,
)

# Finding codes are "<framework code>-<control id hex>" cut to this length.
FINDING_CODE_MAX_LEN = 20
FINDING_TITLE_MAX_LEN = 500
PAGE_REFERENCE_MAX_LEN = 255
ANALYSIS_MODEL_MAX_LEN = 255


class ComplianceFinding(AuditableMixin, Base):
    """
    A gap between a project's evidence and one control's requirement.

    Created by the finding synthesizer; afterwards mutated only through
    workflow transitions. raw_analysis keeps the per-control analysis payload.
    """

    __tablename__ = "compliance_findings"

    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=False, index=True)
    framework_id = Column(Uuid, ForeignKey("compliance_frameworks.id"), nullable=False, index=True)
    control_id = Column(Uuid, ForeignKey("compliance_controls.id"), nullable=False, index=True)
    finding_code = Column(String(FINDING_CODE_MAX_LEN), nullable=False, index=True)
    title = Column(String(FINDING_TITLE_MAX_LEN), nullable=False)
    description = Column(Text, nullable=False, default="")
    status = enum_column(ComplianceStatus, nullable=False, default=ComplianceStatus.NOT_ASSESSED)
    risk_level = enum_column(RiskLevel, nullable=False, default=RiskLevel.MEDIUM)
    workflow_status = enum_column(
        FindingWorkflowStatus, nullable=False, default=FindingWorkflowStatus.OPEN
    )
    remediation_guidance = Column(Text, nullable=True)
    estimated_effort_hours = Column(Float, nullable=True)
    confidence_score = Column(Float, nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)
    assigned_to = Column(String(64), nullable=True)
    analysis_model = Column(String(ANALYSIS_MODEL_MAX_LEN), nullable=True)
    analysis_version = Column(Integer, nullable=False, default=1)
    last_analyzed_at = Column(DateTime(timezone=True), nullable=True, index=True)
    raw_analysis = Column(JSONType, nullable=True)
    resolution_notes = Column(Text, nullable=True)
    resolved_date = Column(DateTime(timezone=True), nullable=True)
    resolved_by = Column(String(64), nullable=True)

    control = relationship("ComplianceControl")
    evidence = relationship("FindingEvidence", back_populates="finding")


class FindingEvidence(AuditableMixin, Base):
    """Excerpt of a document of the finding's own project."""

    __tablename__ = "finding_evidence"

    finding_id = Column(Uuid, ForeignKey("compliance_findings.id"), nullable=False, index=True)
    document_id = Column(Uuid, ForeignKey("documents.id"), nullable=False, index=True)
    excerpt = Column(Text, nullable=False, default="")
    page_reference = Column(String(PAGE_REFERENCE_MAX_LEN), nullable=True)
    relevance_score = Column(Float, nullable=True)
    evidence_type = enum_column(EvidenceType, nullable=False, default=EvidenceType.SUPPORTING)
    is_manually_added = Column(Boolean, nullable=False, default=False)

    finding = relationship("ComplianceFinding", back_populates="evidence")


class RemediationTask(AuditableMixin, Base):
    __tablename__ = "remediation_tasks"

    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=False, index=True)
    finding_id = Column(Uuid, ForeignKey("compliance_findings.id"), nullable=True, index=True)
    title = Column(String(FINDING_TITLE_MAX_LEN), nullable=False)
    description = Column(Text, nullable=False, default="")
    status = enum_column(TaskStatus, nullable=False, default=TaskStatus.OPEN)
    priority = enum_column(TaskPriority, nullable=False, default=TaskPriority.MEDIUM)
    assigned_to = Column(String(64), nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)
