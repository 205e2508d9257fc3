"""
Change-tracking interceptor for SQLAlchemy sessions.

Before each flush: deletes of auditable entities become tombstone updates,
creation/modification stamps are applied, and one lifecycle event per affected
entity is queued. After the flush: queued events are published to the
dispatcher inside the same transaction, so rows the handlers add are persisted
by the commit that triggered them.
"""

import logging
from typing import Any

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from complykit.core.context import context_for
from complykit.models.base import AUDIT_ONLY_FIELDS, AuditableMixin, utcnow
from complykit.services.lifecycle_events import (
    ChangeKind,
    EventRecorder,
    LifecycleEventDispatcher,
    SessionEventQueue,
    discard_pending_events,
    take_pending_events,
)

logger = logging.getLogger(__name__)


def changed_attributes(entity: AuditableMixin) -> list[str]:
    """Names of column attributes whose value differs from the loaded state, audit stamps excluded."""
    state = inspect(entity)
    changed = []
    for attr in state.mapper.column_attrs:
        if attr.key in AUDIT_ONLY_FIELDS:
            continue
        if state.attrs[attr.key].history.has_changes():
            changed.append(attr.key)
    return changed


def track_changes(session: Session, recorder: EventRecorder) -> None:
    """Apply soft-delete rewrites and audit stamps to the session's pending changes."""
    actor_id = context_for(session).actor_id
    now = utcnow()
    soft_deleted: set[int] = set()

    for entity in list(session.deleted):
        if not isinstance(entity, AuditableMixin):
            continue
        # Re-adding a persistent object cancels its pending DELETE.
        session.add(entity)
        entity.is_deleted = True
        entity.deleted_at = now
        entity.deleted_by = actor_id
        soft_deleted.add(id(entity))
        recorder.record(entity, ChangeKind.DELETED)

    for entity in list(session.new):
        if not isinstance(entity, AuditableMixin):
            continue
        if entity.created_at is None:
            entity.created_at = now
        if entity.created_by is None:
            entity.created_by = actor_id
        recorder.record(entity, ChangeKind.CREATED)

    for entity in list(session.dirty):
        if not isinstance(entity, AuditableMixin) or id(entity) in soft_deleted:
            continue
        if not session.is_modified(entity, include_collections=False):
            continue
        changed = changed_attributes(entity)
        if not changed:
            continue
        entity.last_modified = now
        entity.last_modified_by = actor_id
        recorder.record(entity, ChangeKind.UPDATED, changed)


def register_change_tracking(target: Any, dispatcher: LifecycleEventDispatcher) -> None:
    """
    Install the interceptor on a Session class or sessionmaker.

    Events are delivered synchronously; a rolled-back transaction drops whatever
    was still queued.
    """

    @event.listens_for(target, "before_flush")
    def _before_flush(session: Session, flush_context: Any, instances: Any) -> None:
        track_changes(session, SessionEventQueue(session))

    @event.listens_for(target, "after_flush_postexec")
    def _after_flush_postexec(session: Session, flush_context: Any) -> None:
        events = take_pending_events(session)
        if not events:
            return
        with session.no_autoflush:
            for lifecycle_event in events:
                dispatcher.publish(lifecycle_event, session)
        logger.debug("Dispatched lifecycle events", extra={"event_count": len(events)})

    @event.listens_for(target, "after_soft_rollback")
    def _after_soft_rollback(session: Session, previous_transaction: Any) -> None:
        discard_pending_events(session)
