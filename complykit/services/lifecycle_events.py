"""In-process lifecycle events (Created/Updated/Deleted) raised by the change-tracking interceptor."""

import enum
import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy.orm import Session

from complykit.core.context import RequestContext, context_for
from complykit.models.base import utcnow

logger = logging.getLogger(__name__)

_PENDING_KEY = "pending_lifecycle_events"


class ChangeKind(str, enum.Enum):
    CREATED = "Created"
    UPDATED = "Updated"
    DELETED = "Deleted"


@dataclass
class LifecycleEvent:
    """
    One change to an auditable entity.

    The entity is held by reference: its id is read at dispatch time, after the
    flush has assigned primary keys to new rows.
    """

    kind: ChangeKind
    entity: Any
    context: RequestContext
    changed_fields: list[str] = field(default_factory=list)
    occurred_at: datetime = field(default_factory=utcnow)

    @property
    def entity_type(self) -> str:
        return type(self.entity).__name__

    @property
    def entity_id(self) -> str | None:
        entity_id = getattr(self.entity, "id", None)
        return str(entity_id) if entity_id is not None else None


Handler = Callable[[LifecycleEvent, Session], None]


class EventRecorder(Protocol):
    """Narrow seam between the interceptor and whatever delivers events."""

    def record(self, entity: Any, kind: ChangeKind, changed_fields: list[str] | None = None) -> None:
        ...


class LifecycleEventDispatcher:
    """Synchronous publish/subscribe keyed by ChangeKind."""

    def __init__(self) -> None:
        self._handlers: dict[ChangeKind, list[Handler]] = defaultdict(list)

    def subscribe(self, kind: ChangeKind, handler: Handler) -> None:
        self._handlers[kind].append(handler)

    def publish(self, event: LifecycleEvent, session: Session) -> None:
        """
        Run every handler for the event's kind in subscription order.

        A failing handler is logged and skipped; it never aborts the originating write
        nor prevents the remaining handlers from running.
        """
        for handler in self._handlers.get(event.kind, ()):
            try:
                handler(event, session)
            except Exception:
                logger.exception(
                    "Lifecycle event handler failed",
                    extra={
                        "event_kind": event.kind.value,
                        "entity_type": event.entity_type,
                        "entity_id": event.entity_id,
                    },
                )


class SessionEventQueue:
    """EventRecorder that queues events on the session until the flush completes."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def record(self, entity: Any, kind: ChangeKind, changed_fields: list[str] | None = None) -> None:
        pending = self._session.info.setdefault(_PENDING_KEY, [])
        pending.append(
            LifecycleEvent(
                kind=kind,
                entity=entity,
                context=context_for(self._session),
                changed_fields=list(changed_fields or []),
            )
        )


def take_pending_events(session: Session) -> list[LifecycleEvent]:
    """Remove and return the events queued on the session."""
    return session.info.pop(_PENDING_KEY, [])


def discard_pending_events(session: Session) -> None:
    session.info.pop(_PENDING_KEY, None)
