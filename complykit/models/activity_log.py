"""ORM model for the append-only activity (audit) log."""

import uuid

from sqlalchemy import Column, DateTime, String, Text, Uuid

from complykit.models.base import Base, JSONType, enum_column, utcnow
from complykit.models.enums import ActivityType


class ActivityLog(Base):
    """
    One audit-trail entry, scoped to an organization.

    Written once and never updated or deleted; not an auditable entity itself.
    """

    __tablename__ = "activity_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, nullable=False, index=True)
    project_id = Column(Uuid, nullable=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    user_name = Column(String(255), nullable=False, default="")
    user_email = Column(String(255), nullable=False, default="")
    activity_type = enum_column(ActivityType, nullable=False, index=True)
    entity_type = Column(String(100), nullable=False, index=True)
    entity_id = Column(String(64), nullable=True, index=True)
    entity_name = Column(String(1024), nullable=True)
    description = Column(Text, nullable=False)
    details = Column("metadata", JSONType, nullable=True)
    occurred_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
