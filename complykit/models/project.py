"""ORM models for projects, project membership and framework assignments."""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from complykit.models.base import AuditableMixin, Base, enum_column
from complykit.models.enums import ComplianceStatus, ProjectRole, ProjectStatus


class Project(AuditableMixin, Base):
    __tablename__ = "projects"

    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = enum_column(ProjectStatus, nullable=False, default=ProjectStatus.DRAFT)
    target_date = Column(DateTime(timezone=True), nullable=True)

    members = relationship("ProjectMember", back_populates="project")
    frameworks = relationship("ProjectFramework", back_populates="project")


class ProjectMember(AuditableMixin, Base):
    __tablename__ = "project_members"

    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    role = enum_column(ProjectRole, nullable=False, default=ProjectRole.VIEWER)
    is_active = Column(Boolean, nullable=False, default=True)

    project = relationship("Project", back_populates="members")


class ProjectFramework(AuditableMixin, Base):
    """
    Project x Framework assignment carrying the statistics of the last audit check.

    Statistics are recomputed by every audit check and never hand-edited. `version`
    is the optimistic concurrency token: a stale writer fails at flush instead of
    silently overwriting a concurrent run's numbers.
    """

    __tablename__ = "project_frameworks"

    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=False, index=True)
    framework_id = Column(Uuid, ForeignKey("compliance_frameworks.id"), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    status = enum_column(ComplianceStatus, nullable=False, default=ComplianceStatus.NOT_ASSESSED)
    compliance_percentage = Column(Float, nullable=True)
    total_controls = Column(Integer, nullable=False, default=0)
    compliant_controls = Column(Integer, nullable=False, default=0)
    partially_compliant_controls = Column(Integer, nullable=False, default=0)
    non_compliant_controls = Column(Integer, nullable=False, default=0)
    not_assessed_controls = Column(Integer, nullable=False, default=0)
    last_analysis_date = Column(DateTime(timezone=True), nullable=True)
    last_analysis_by = Column(String(255), nullable=True)
    version = Column(Integer, nullable=False)

    project = relationship("Project", back_populates="frameworks")
    framework = relationship("ComplianceFramework")

    __mapper_args__ = {"version_id_col": version}
