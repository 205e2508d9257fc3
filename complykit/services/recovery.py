"""Recovery of soft-deleted rows through the visibility override (admin tooling)."""

import logging
import uuid

from sqlalchemy.orm import Session

from complykit.core.context import RequestContext, bind_context
from complykit.models import (
    ActivityLog,
    AuditableMixin,
    ComplianceFinding,
    Document,
    Organization,
    OrganizationMember,
    Project,
    ProjectFramework,
    ProjectMember,
    RemediationTask,
)
from complykit.models.enums import ActivityType
from complykit.schemas.common import OperationResult
from complykit.services.access import is_organization_admin
from complykit.services.audit_log import build_description, entity_name, project_id_of
from complykit.services.identity import resolve_actor
from complykit.services.soft_delete import including_deleted, restore

logger = logging.getLogger(__name__)

RESTORABLE_TYPES: dict[str, type[AuditableMixin]] = {
    cls.__name__: cls
    for cls in (
        Organization,
        OrganizationMember,
        Project,
        ProjectMember,
        ProjectFramework,
        Document,
        ComplianceFinding,
        RemediationTask,
    )
}

_RESTORE_ACTIVITY_TYPES = {"Project": ActivityType.PROJECT_RESTORED}


def _tenant_of(entity: AuditableMixin) -> uuid.UUID | None:
    if isinstance(entity, Organization):
        return entity.id
    return getattr(entity, "organization_id", None)


def list_deleted(
    db: Session, entity_type: str, organization_id: uuid.UUID | None = None
) -> list[AuditableMixin]:
    """Tombstoned rows of one type, most recently deleted first."""
    model = RESTORABLE_TYPES[entity_type]
    query = including_deleted(db.query(model)).filter(model.is_deleted.is_(True))
    if organization_id is not None:
        column = model.id if model is Organization else model.organization_id
        query = query.filter(column == organization_id)
    return query.order_by(model.deleted_at.desc()).all()


def restore_by_id(
    db: Session,
    entity_type: str,
    entity_id: uuid.UUID,
    actor_id: str | None,
    system_email: str,
) -> AuditableMixin | None:
    """
    Clear the tombstone of one row and record the restore; returns None when no
    tombstoned row matches. The caller commits.
    """
    model = RESTORABLE_TYPES[entity_type]
    entity = (
        including_deleted(db.query(model))
        .filter(model.id == entity_id, model.is_deleted.is_(True))
        .first()
    )
    if entity is None:
        return None
    restore(entity)

    tenant_id = _tenant_of(entity)
    if tenant_id is not None:
        actor = resolve_actor(db, actor_id, system_email)
        db.add(
            ActivityLog(
                organization_id=tenant_id,
                project_id=project_id_of(entity),
                user_id=actor.user_id,
                user_name=actor.name,
                user_email=actor.email,
                activity_type=_RESTORE_ACTIVITY_TYPES.get(entity_type, ActivityType.OTHER),
                entity_type=entity_type,
                entity_id=str(entity.id),
                entity_name=entity_name(entity),
                description=build_description(entity_type, entity_name(entity), "restored"),
                details={"restoredBy": actor.user_id},
            )
        )
    logger.info(
        "Entity restored",
        extra={"entity_type": entity_type, "entity_id": str(entity_id), "user_id": actor_id},
    )
    return entity


def restore_entity(
    db: Session,
    context: RequestContext,
    entity_type: str,
    entity_id: uuid.UUID,
    system_email: str,
) -> OperationResult[None]:
    """Restore a tombstoned row of the caller's organization; organization admins only."""
    if not context.is_authenticated:
        return OperationResult.failure("User must be authenticated.", code="forbidden")
    if context.tenant_id is None:
        return OperationResult.failure("No workspace selected.")
    if entity_type not in RESTORABLE_TYPES:
        return OperationResult.failure(f"Entity type '{entity_type}' cannot be restored.")
    if not is_organization_admin(db, context.tenant_id, context.actor_id):
        return OperationResult.failure(
            "Only workspace owners and admins can restore deleted items.", code="forbidden"
        )
    bind_context(db, context)

    model = RESTORABLE_TYPES[entity_type]
    candidate = including_deleted(db.query(model)).filter(model.id == entity_id).first()
    if candidate is None or _tenant_of(candidate) != context.tenant_id or not candidate.is_deleted:
        return OperationResult.failure("Deleted item not found.", code="not_found")

    restore_by_id(db, entity_type, entity_id, context.actor_id, system_email)
    db.commit()
    return OperationResult.success()
