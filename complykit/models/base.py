"""SQLAlchemy declarative Base, portable column types and the auditable-entity mixin."""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Enum, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

# JSON everywhere, JSONB on PostgreSQL.
JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def enum_column(enum_cls: type[enum.Enum], **kwargs) -> Column:
    """String-backed enum column storing member values (no native DB enum type)."""
    return Column(
        Enum(
            enum_cls,
            native_enum=False,
            length=32,
            values_callable=lambda members: [m.value for m in members],
            validate_strings=True,
        ),
        **kwargs,
    )


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    pass


class UUIDPrimaryKeyMixin:
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)


class AuditableMixin(UUIDPrimaryKeyMixin):
    """
    Creation/modification stamps plus soft-delete tombstone.

    Rows of auditable types are never physically removed: the change-tracking
    interceptor rewrites deletes into tombstones, and the visibility filter hides
    tombstoned rows from default reads.
    """

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_by = Column(String(64), nullable=True)
    last_modified = Column(DateTime(timezone=True), nullable=True)
    last_modified_by = Column(String(64), nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by = Column(String(64), nullable=True)


# Attributes the interceptor maintains itself; never reported as business changes.
AUDIT_ONLY_FIELDS: frozenset[str] = frozenset(
    {
        "created_at",
        "created_by",
        "last_modified",
        "last_modified_by",
        "is_deleted",
        "deleted_at",
        "deleted_by",
    }
)
