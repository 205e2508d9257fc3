"""SQLAlchemy ORM models."""

from complykit.models.activity_log import ActivityLog
from complykit.models.base import AuditableMixin, Base
from complykit.models.document import Document
from complykit.models.finding import ComplianceFinding, FindingEvidence, RemediationTask
from complykit.models.framework import ComplianceControl, ComplianceFramework
from complykit.models.organization import Organization, OrganizationMember, User
from complykit.models.project import Project, ProjectFramework, ProjectMember

__all__ = [
    "ActivityLog",
    "AuditableMixin",
    "Base",
    "ComplianceControl",
    "ComplianceFinding",
    "ComplianceFramework",
    "Document",
    "FindingEvidence",
    "Organization",
    "OrganizationMember",
    "Project",
    "ProjectFramework",
    "ProjectMember",
    "RemediationTask",
    "User",
]
