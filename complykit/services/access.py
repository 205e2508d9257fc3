"""Tenant-scoped lookups and project-role checks shared by the command services."""

import uuid

from sqlalchemy.orm import Session

from complykit.models import OrganizationMember, Project, ProjectMember
from complykit.models.enums import OrganizationRole, ProjectRole


def get_tenant_project(db: Session, tenant_id: uuid.UUID, project_id: uuid.UUID) -> Project | None:
    return (
        db.query(Project)
        .filter(Project.id == project_id, Project.organization_id == tenant_id)
        .first()
    )


def get_active_project_member(
    db: Session, project_id: uuid.UUID, user_id: str | None
) -> ProjectMember | None:
    if not user_id:
        return None
    return (
        db.query(ProjectMember)
        .filter(
            ProjectMember.project_id == project_id,
            ProjectMember.user_id == user_id,
            ProjectMember.is_active.is_(True),
        )
        .first()
    )


def can_modify_project(member: ProjectMember | None) -> bool:
    """Owners and contributors may change project data; viewers are read-only."""
    return member is not None and member.role != ProjectRole.VIEWER


def is_organization_member(db: Session, organization_id: uuid.UUID, user_id: str) -> bool:
    return (
        db.query(OrganizationMember)
        .filter(
            OrganizationMember.organization_id == organization_id,
            OrganizationMember.user_id == user_id,
            OrganizationMember.is_active.is_(True),
        )
        .first()
        is not None
    )


def is_organization_admin(db: Session, organization_id: uuid.UUID, user_id: str | None) -> bool:
    if not user_id:
        return False
    member = (
        db.query(OrganizationMember)
        .filter(
            OrganizationMember.organization_id == organization_id,
            OrganizationMember.user_id == user_id,
            OrganizationMember.is_active.is_(True),
        )
        .first()
    )
    return member is not None and member.role in (OrganizationRole.OWNER, OrganizationRole.ADMIN)
