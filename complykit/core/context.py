"""Request-scoped actor/tenant context, passed explicitly and bound to the unit of work."""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.orm import Session

_SESSION_KEY = "request_context"


@dataclass(frozen=True)
class RequestContext:
    """Who is acting (actor_id) and for which organization (tenant_id)."""

    actor_id: str | None = None
    tenant_id: UUID | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.actor_id)


SYSTEM_CONTEXT = RequestContext()


def bind_context(session: Session, context: RequestContext) -> Session:
    """Attach the context to a session so flush-time hooks see the same actor and tenant."""
    session.info[_SESSION_KEY] = context
    return session


def context_for(session: Session) -> RequestContext:
    """Return the context bound to the session, or the anonymous system context."""
    return session.info.get(_SESSION_KEY, SYSTEM_CONTEXT)
