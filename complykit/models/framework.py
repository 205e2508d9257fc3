"""ORM models for regulatory frameworks and their controls (reference data)."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from complykit.models.base import AuditableMixin, Base, enum_column
from complykit.models.enums import RiskLevel


class ComplianceFramework(AuditableMixin, Base):
    __tablename__ = "compliance_frameworks"

    code = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    version = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    controls = relationship(
        "ComplianceControl",
        back_populates="framework",
        order_by="ComplianceControl.display_order",
    )


class ComplianceControl(AuditableMixin, Base):
    __tablename__ = "compliance_controls"

    framework_id = Column(Uuid, ForeignKey("compliance_frameworks.id"), nullable=False, index=True)
    control_code = Column(String(50), nullable=False)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=False, default="")
    implementation_guidance = Column(Text, nullable=True)
    is_mandatory = Column(Boolean, nullable=False, default=True)
    default_risk_level = enum_column(RiskLevel, nullable=False, default=RiskLevel.MEDIUM)
    display_order = Column(Integer, nullable=False, default=0)

    framework = relationship("ComplianceFramework", back_populates="controls")
