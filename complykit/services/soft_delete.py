"""Visibility filter for tombstoned rows, the explicit override, and restore."""

from typing import Any, TypeVar

from sqlalchemy import event
from sqlalchemy.orm import ORMExecuteState, Query, with_loader_criteria

from complykit.models.base import AuditableMixin

# Execution option that bypasses the visibility filter (admin / recovery tooling).
INCLUDE_DELETED = "include_deleted"

Q = TypeVar("Q", bound=Query)


def register_visibility_filter(target: Any) -> None:
    """
    Add "not tombstoned" to every ORM SELECT that touches an auditable type.

    Covers list, count, exists and primary-key loads (`Session.get` on an identity
    miss) alike. Statements executed with `include_deleted=True` are left untouched.
    """

    @event.listens_for(target, "do_orm_execute")
    def _filter_tombstoned(execute_state: ORMExecuteState) -> None:
        if (
            execute_state.is_select
            and not execute_state.is_column_load
            and not execute_state.is_relationship_load
            and not execute_state.execution_options.get(INCLUDE_DELETED, False)
        ):
            execute_state.statement = execute_state.statement.options(
                with_loader_criteria(
                    AuditableMixin,
                    lambda cls: cls.is_deleted.is_(False),
                    include_aliases=True,
                )
            )


def including_deleted(query: Q) -> Q:
    """Return the query with the visibility filter switched off."""
    return query.execution_options(**{INCLUDE_DELETED: True})


def restore(entity: AuditableMixin) -> AuditableMixin:
    """Clear the tombstone so the row reappears in default reads; business attributes are untouched."""
    entity.is_deleted = False
    entity.deleted_at = None
    entity.deleted_by = None
    return entity
