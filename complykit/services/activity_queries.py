"""Read-only, tenant-scoped query surface over the activity log."""

from datetime import datetime, time, timedelta, timezone
from typing import TYPE_CHECKING

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from complykit.core.context import RequestContext
from complykit.models import ActivityLog
from complykit.schemas.activity import ActivityLogEntry, ActivityLogFilters, ActivityLogPage
from complykit.schemas.common import OperationResult
from complykit.services.identity import UNKNOWN_USER_NAME

if TYPE_CHECKING:
    from complykit.core.config import Settings


def page_size(requested: int | None, settings: "Settings") -> int:
    """Requested limit clamped to [1, ACTIVITY_LOG_MAX_PAGE_SIZE]; default when unset."""
    if requested is None:
        return settings.ACTIVITY_LOG_DEFAULT_PAGE_SIZE
    return max(1, min(requested, settings.ACTIVITY_LOG_MAX_PAGE_SIZE))


def _start_of(day) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def get_audit_logs(
    db: Session,
    context: RequestContext,
    filters: ActivityLogFilters,
    settings: "Settings",
) -> OperationResult[ActivityLogPage]:
    """Filtered page of the caller's organization log, newest first."""
    if not context.is_authenticated:
        return OperationResult.failure("User must be authenticated.", code="forbidden")
    if context.tenant_id is None:
        return OperationResult.failure("No workspace selected.")

    query = db.query(ActivityLog).filter(ActivityLog.organization_id == context.tenant_id)
    if filters.activity_type is not None:
        query = query.filter(ActivityLog.activity_type == filters.activity_type)
    if filters.user_id:
        query = query.filter(ActivityLog.user_id == filters.user_id)
    if filters.entity_type:
        query = query.filter(ActivityLog.entity_type == filters.entity_type)
    if filters.entity_id:
        query = query.filter(ActivityLog.entity_id == filters.entity_id)
    if filters.project_id is not None:
        query = query.filter(ActivityLog.project_id == filters.project_id)
    if filters.start_date is not None:
        query = query.filter(ActivityLog.occurred_at >= _start_of(filters.start_date))
    if filters.end_date is not None:
        # Inclusive: everything before the start of the following day.
        query = query.filter(
            ActivityLog.occurred_at < _start_of(filters.end_date + timedelta(days=1))
        )
    if filters.search and filters.search.strip():
        term = f"%{filters.search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(ActivityLog.description).like(term),
                func.lower(func.coalesce(ActivityLog.entity_name, "")).like(term),
            )
        )

    total_count = query.count()
    limit = page_size(filters.limit, settings)
    logs = (
        query.order_by(ActivityLog.occurred_at.desc(), ActivityLog.id)
        .offset(filters.offset)
        .limit(limit)
        .all()
    )
    entries = [
        ActivityLogEntry(
            id=log.id,
            project_id=log.project_id,
            user_id=log.user_id,
            user_name=log.user_name or UNKNOWN_USER_NAME,
            user_email=log.user_email or "",
            activity_type=log.activity_type,
            entity_type=log.entity_type,
            entity_id=log.entity_id,
            entity_name=log.entity_name,
            description=log.description,
            metadata=log.details,
            occurred_at=log.occurred_at,
        )
        for log in logs
    ]
    return OperationResult.success(
        ActivityLogPage(
            logs=entries,
            total_count=total_count,
            returned_count=len(entries),
            offset=filters.offset,
        )
    )
