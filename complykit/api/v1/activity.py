"""Activity (audit) log query endpoint."""

from typing import Annotated

from fastapi import APIRouter, Query

from complykit.api.v1.deps import Context, DbSession, unwrap
from complykit.core.config import get_settings
from complykit.schemas.activity import ActivityLogFilters, ActivityLogPage
from complykit.services.activity_queries import get_audit_logs

router = APIRouter()


@router.get("", response_model=ActivityLogPage)
def list_activity(
    context: Context,
    db: DbSession,
    filters: Annotated[ActivityLogFilters, Query()],
) -> ActivityLogPage:
    """
    Organization activity log, newest first. Filters combine with AND; end_date is
    inclusive; limit defaults to 100 and never exceeds 1000.
    """
    return unwrap(get_audit_logs(db, context, filters, get_settings()))
