"""Compliance dashboard, framework report and executive summary endpoints."""

from uuid import UUID

from fastapi import APIRouter

from complykit.api.v1.deps import Context, DbSession, unwrap
from complykit.schemas.reports import ComplianceDashboard, ExecutiveSummary, FrameworkReport
from complykit.services.reports import (
    get_compliance_dashboard,
    get_executive_summary,
    get_framework_report,
)

router = APIRouter()


@router.get("/{project_id}/dashboard", response_model=ComplianceDashboard)
def get_dashboard(project_id: UUID, context: Context, db: DbSession) -> ComplianceDashboard:
    """Overall score and status, per-framework breakdown, trend of the last 6 runs and top-priority findings."""
    return unwrap(get_compliance_dashboard(db, context, project_id))


@router.get("/{project_id}/frameworks/{framework_id}/report", response_model=FrameworkReport)
def get_report(
    project_id: UUID,
    framework_id: UUID,
    context: Context,
    db: DbSession,
) -> FrameworkReport:
    return unwrap(get_framework_report(db, context, project_id, framework_id))


@router.get("/{project_id}/executive-summary", response_model=ExecutiveSummary)
def get_summary(project_id: UUID, context: Context, db: DbSession) -> ExecutiveSummary:
    return unwrap(get_executive_summary(db, context, project_id))
