"""
Audit log writers: turn lifecycle events into tenant-scoped ActivityLog rows.

All three handlers are best-effort. A missing tenant skips the row with a
warning; any other failure is logged and swallowed so the business write
that raised the event is never rolled back by audit logging.
"""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from complykit.models import (
    ActivityLog,
    ComplianceFinding,
    Document,
    Organization,
    OrganizationMember,
    Project,
    ProjectMember,
    RemediationTask,
)
from complykit.models.enums import ActivityType
from complykit.services.identity import resolve_actor
from complykit.services.lifecycle_events import (
    ChangeKind,
    LifecycleEvent,
    LifecycleEventDispatcher,
)

if TYPE_CHECKING:
    from complykit.core.config import Settings

logger = logging.getLogger(__name__)

# Entity types whose creation is worth an audit row.
CREATION_AUDITED_TYPES: tuple[type, ...] = (
    Project,
    Document,
    ComplianceFinding,
    Organization,
    OrganizationMember,
    ProjectMember,
    RemediationTask,
)

# Per-type attributes whose change is worth an audit row.
SIGNIFICANT_FIELDS: dict[str, frozenset[str]] = {
    "Project": frozenset({"name", "description", "status", "target_date"}),
    "ComplianceFinding": frozenset(
        {"workflow_status", "assigned_to", "title", "description"}
    ),
    "Document": frozenset({"file_name", "category"}),
    "Organization": frozenset({"name", "subscription_tier", "is_active"}),
    "OrganizationMember": frozenset({"role", "is_active"}),
    "ProjectMember": frozenset({"role", "is_active"}),
    "RemediationTask": frozenset({"title", "status", "assigned_to", "due_date"}),
}

_ACTIVITY_TYPES: dict[ChangeKind, dict[str, ActivityType]] = {
    ChangeKind.CREATED: {
        "Project": ActivityType.PROJECT_CREATED,
        "Document": ActivityType.DOCUMENT_UPLOADED,
        "ComplianceFinding": ActivityType.FINDING_CREATED,
        "Organization": ActivityType.WORKSPACE_CREATED,
        "OrganizationMember": ActivityType.USER_JOINED,
        "ProjectMember": ActivityType.PROJECT_MEMBER_ADDED,
        "RemediationTask": ActivityType.TASK_CREATED,
    },
    ChangeKind.UPDATED: {
        "Project": ActivityType.PROJECT_UPDATED,
        "Document": ActivityType.DOCUMENT_UPDATED,
        "ComplianceFinding": ActivityType.FINDING_UPDATED,
        "Organization": ActivityType.WORKSPACE_UPDATED,
        "OrganizationMember": ActivityType.USER_ROLE_CHANGED,
        "ProjectMember": ActivityType.PROJECT_MEMBER_ROLE_CHANGED,
        "RemediationTask": ActivityType.TASK_UPDATED,
    },
    ChangeKind.DELETED: {
        "Project": ActivityType.PROJECT_DELETED,
        "Document": ActivityType.DOCUMENT_DELETED,
        "ComplianceFinding": ActivityType.FINDING_DELETED,
        "Organization": ActivityType.WORKSPACE_DELETED,
        "OrganizationMember": ActivityType.USER_REMOVED,
        "ProjectMember": ActivityType.PROJECT_MEMBER_REMOVED,
        "RemediationTask": ActivityType.TASK_DELETED,
    },
}

_FRIENDLY_TYPE_NAMES = {
    "Project": "project",
    "Document": "document",
    "ComplianceFinding": "finding",
    "Organization": "workspace",
    "OrganizationMember": "member",
    "ProjectMember": "project member",
    "RemediationTask": "task",
}

# Attribute holding the human-readable name, in lookup order.
_NAME_ATTRIBUTES = ("name", "file_name", "title", "control_code", "code", "user_id")

# Descriptions list the changed attributes only when there are this many or fewer.
MAX_LISTED_CHANGES = 3

# Free-text ActivityLog columns cut to their declared length before insert.
_BOUNDED_COLUMNS = ("user_id", "user_name", "user_email", "entity_type", "entity_id", "entity_name")


def fit_activity_values(values: dict[str, Any]) -> dict[str, Any]:
    """Truncate bounded string values to the ActivityLog column lengths."""
    columns = ActivityLog.__table__.c
    for key in _BOUNDED_COLUMNS:
        value = values.get(key)
        length = columns[key].type.length
        if isinstance(value, str) and length is not None and len(value) > length:
            values[key] = value[:length]
    return values


def activity_type_for(kind: ChangeKind, entity_type: str) -> ActivityType:
    return _ACTIVITY_TYPES[kind].get(entity_type, ActivityType.OTHER)


def entity_name(entity: Any) -> str | None:
    for attr in _NAME_ATTRIBUTES:
        value = getattr(entity, attr, None)
        if value:
            return str(value)
    return None


def project_id_of(entity: Any):
    """Owning project of the entity, if it has one (a Project is its own project)."""
    if isinstance(entity, Project):
        return entity.id
    return getattr(entity, "project_id", None)


def build_description(
    entity_type: str,
    name: str | None,
    action: str,
    changed_fields: list[str] | None = None,
) -> str:
    """
    "Created project 'Alpha'"; updates with few changes append "(name, status)".
    """
    friendly = _FRIENDLY_TYPE_NAMES.get(entity_type, entity_type.lower())
    verb = action.capitalize()
    description = f"{verb} {friendly} '{name}'" if name is not None else f"{verb} {friendly}"
    if changed_fields is not None and len(changed_fields) <= MAX_LISTED_CHANGES:
        description = f"{description} ({', '.join(changed_fields)})"
    return description


def significant_changes(entity_type: str, changed_fields: list[str]) -> list[str]:
    allowed = SIGNIFICANT_FIELDS.get(entity_type, frozenset())
    return [f for f in changed_fields if f in allowed]


class AuditLogWriter:
    """Holds the three lifecycle handlers and the settings they need."""

    def __init__(self, system_email: str) -> None:
        self.system_email = system_email

    def _append(
        self,
        event: LifecycleEvent,
        session: Session,
        description: str,
        details: dict[str, Any],
    ) -> bool:
        """
        Insert one ActivityLog row inside a SAVEPOINT on the flush's connection.

        A rejected row rolls back to the savepoint only; the business rows of
        the same transaction are unaffected. Returns whether a row was written.
        """
        tenant_id = event.context.tenant_id
        if tenant_id is None:
            logger.warning(
                "No organization context; skipping audit log",
                extra={
                    "event_kind": event.kind.value,
                    "entity_type": event.entity_type,
                    "entity_id": event.entity_id,
                },
            )
            return False
        actor = resolve_actor(session, event.context.actor_id, self.system_email)
        values = fit_activity_values(
            {
                "organization_id": tenant_id,
                "project_id": project_id_of(event.entity),
                "user_id": actor.user_id,
                "user_name": actor.name,
                "user_email": actor.email,
                "activity_type": activity_type_for(event.kind, event.entity_type),
                "entity_type": event.entity_type,
                "entity_id": event.entity_id,
                "entity_name": entity_name(event.entity),
                "description": description,
                "metadata": details,
                "occurred_at": event.occurred_at,
            }
        )
        connection = session.connection()
        try:
            with connection.begin_nested():
                connection.execute(insert(ActivityLog.__table__).values(values))
        except SQLAlchemyError:
            logger.exception(
                "Audit log row rejected by the database",
                extra={
                    "event_kind": event.kind.value,
                    "entity_type": event.entity_type,
                    "entity_id": event.entity_id,
                },
            )
            return False
        logger.info(
            "Logged entity change",
            extra={
                "event_kind": event.kind.value,
                "entity_type": event.entity_type,
                "entity_id": event.entity_id,
                "user_id": actor.user_id,
            },
        )
        return True

    def on_created(self, event: LifecycleEvent, session: Session) -> None:
        try:
            if not isinstance(event.entity, CREATION_AUDITED_TYPES):
                return
            entity = event.entity
            self._append(
                event,
                session,
                build_description(event.entity_type, entity_name(entity), "created"),
                {
                    "createdAt": entity.created_at.isoformat() if entity.created_at else None,
                    "createdBy": entity.created_by,
                },
            )
        except Exception:
            logger.exception(
                "Error logging entity creation",
                extra={"entity_type": event.entity_type, "entity_id": event.entity_id},
            )

    def on_updated(self, event: LifecycleEvent, session: Session) -> None:
        try:
            changes = significant_changes(event.entity_type, event.changed_fields)
            if not changes:
                return
            self._append(
                event,
                session,
                build_description(
                    event.entity_type, entity_name(event.entity), "updated", changes
                ),
                {"modifiedProperties": changes, "entityType": event.entity_type},
            )
        except Exception:
            logger.exception(
                "Error logging entity update",
                extra={"entity_type": event.entity_type, "entity_id": event.entity_id},
            )

    def on_deleted(self, event: LifecycleEvent, session: Session) -> None:
        try:
            entity = event.entity
            self._append(
                event,
                session,
                build_description(event.entity_type, entity_name(entity), "deleted"),
                {
                    "deletedAt": entity.deleted_at.isoformat() if entity.deleted_at else None,
                    "deletedBy": entity.deleted_by,
                    "isDeleted": bool(entity.is_deleted),
                },
            )
        except Exception:
            logger.exception(
                "Error logging entity deletion",
                extra={"entity_type": event.entity_type, "entity_id": event.entity_id},
            )

    def handlers(self) -> dict[ChangeKind, Callable[[LifecycleEvent, Session], None]]:
        return {
            ChangeKind.CREATED: self.on_created,
            ChangeKind.UPDATED: self.on_updated,
            ChangeKind.DELETED: self.on_deleted,
        }


def build_audit_dispatcher(settings: "Settings") -> LifecycleEventDispatcher:
    """Dispatcher with the three audit log writers subscribed."""
    dispatcher = LifecycleEventDispatcher()
    writer = AuditLogWriter(system_email=settings.SYSTEM_ACTOR_EMAIL)
    for kind, handler in writer.handlers().items():
        dispatcher.subscribe(kind, handler)
    return dispatcher
