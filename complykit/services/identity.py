"""Resolve actor ids to human-readable names for audit rows and reports."""

from dataclasses import dataclass

from sqlalchemy.orm import Session

from complykit.models import User

SYSTEM_ACTOR_ID = "system"
SYSTEM_ACTOR_NAME = "System"
UNKNOWN_USER_NAME = "Unknown User"


@dataclass(frozen=True)
class Actor:
    user_id: str
    name: str
    email: str


def get_user_by_id(db: Session, user_id: str | None) -> User | None:
    if not user_id:
        return None
    return db.query(User).filter(User.id == user_id).first()


def resolve_actor(db: Session, actor_id: str | None, system_email: str) -> Actor:
    """Actor for an audit row; unresolvable or missing actors fall back to the System label."""
    user = get_user_by_id(db, actor_id)
    if user is None:
        return Actor(
            user_id=actor_id or SYSTEM_ACTOR_ID,
            name=SYSTEM_ACTOR_NAME,
            email=system_email,
        )
    return Actor(user_id=user.id, name=user.display_name or SYSTEM_ACTOR_NAME, email=user.email)
