"""Compliance dashboard, per-framework report and executive summary built on the scoring engine."""

import uuid
from collections import Counter
from datetime import datetime

from sqlalchemy.orm import Session

from complykit.core.context import RequestContext
from complykit.models import (
    ActivityLog,
    ComplianceControl,
    ComplianceFinding,
    ComplianceFramework,
    ProjectFramework,
)
from complykit.models.base import utcnow
from complykit.models.enums import ActivityType, ComplianceStatus, FindingWorkflowStatus, RiskLevel
from complykit.schemas.common import OperationResult
from complykit.schemas.reports import (
    ComplianceDashboard,
    ControlReportRow,
    ExecutiveSummary,
    FrameworkBreakdown,
    FrameworkReport,
    FrameworkSummary,
    PriorityFinding,
    ProgressMetrics,
    TopRisk,
    TrendPoint,
)
from complykit.services.access import get_active_project_member, get_tenant_project
from complykit.services.scoring import (
    CLOSED_WORKFLOW_STATUSES,
    RunScore,
    StatusCounts,
    classify,
    compliance_score,
    top_priority_findings,
    trend_series,
)


def _counts_of(pf: ProjectFramework) -> StatusCounts:
    return StatusCounts(
        compliant=pf.compliant_controls or 0,
        partial=pf.partially_compliant_controls or 0,
        non_compliant=pf.non_compliant_controls or 0,
        not_assessed=pf.not_assessed_controls or 0,
    )


def _run_scores(logs: list[ActivityLog]) -> list[RunScore]:
    runs = []
    for log in logs:
        details = log.details or {}
        runs.append(
            RunScore(
                run_at=log.occurred_at,
                counts=StatusCounts(
                    compliant=int(details.get("compliantCount", 0)),
                    partial=int(details.get("partialCount", 0)),
                    non_compliant=int(details.get("nonCompliantCount", 0)),
                    not_assessed=int(details.get("notAssessedCount", 0)),
                ),
            )
        )
    return runs


def _trend_points(runs: list[RunScore]) -> list[TrendPoint]:
    return [
        TrendPoint(
            run_at=run.run_at,
            score=run.score,
            compliant_count=run.counts.compliant,
            partial_count=run.counts.partial,
            non_compliant_count=run.counts.non_compliant,
            not_assessed_count=run.counts.not_assessed,
        )
        for run in trend_series(runs)
    ]


def _risk_breakdown(findings: list[ComplianceFinding]) -> dict[str, int]:
    counter = Counter(RiskLevel(f.risk_level).value for f in findings)
    return {level.value: counter.get(level.value, 0) for level in RiskLevel}


def _finding_labels(
    db: Session, findings: list[ComplianceFinding]
) -> tuple[dict[uuid.UUID, str], dict[uuid.UUID, str]]:
    """Control codes and framework names for the given findings, keyed by id."""
    if not findings:
        return {}, {}
    control_ids = {f.control_id for f in findings}
    framework_ids = {f.framework_id for f in findings}
    control_codes = {
        c.id: c.control_code
        for c in db.query(ComplianceControl).filter(ComplianceControl.id.in_(control_ids)).all()
    }
    framework_names = {
        fw.id: fw.name
        for fw in db.query(ComplianceFramework).filter(ComplianceFramework.id.in_(framework_ids)).all()
    }
    return control_codes, framework_names


def _access_error(db: Session, context: RequestContext, project_id: uuid.UUID):
    if not context.is_authenticated:
        return None, OperationResult.failure("User must be authenticated.", code="forbidden")
    if context.tenant_id is None:
        return None, OperationResult.failure("No workspace selected.")
    project = get_tenant_project(db, context.tenant_id, project_id)
    if project is None:
        return None, OperationResult.failure("Project not found.", code="not_found")
    if get_active_project_member(db, project.id, context.actor_id) is None:
        return None, OperationResult.failure(
            "Access denied. You are not a member of this project.", code="forbidden"
        )
    return project, None


def get_compliance_dashboard(
    db: Session, context: RequestContext, project_id: uuid.UUID
) -> OperationResult[ComplianceDashboard]:
    project, error = _access_error(db, context, project_id)
    if error is not None:
        return error

    assignments = (
        db.query(ProjectFramework, ComplianceFramework)
        .join(ComplianceFramework, ComplianceFramework.id == ProjectFramework.framework_id)
        .filter(ProjectFramework.project_id == project.id, ProjectFramework.is_active.is_(True))
        .all()
    )
    findings = db.query(ComplianceFinding).filter(ComplianceFinding.project_id == project.id).all()
    open_findings = [f for f in findings if f.workflow_status not in CLOSED_WORKFLOW_STATUSES]

    critical_by_framework = Counter(
        f.framework_id for f in open_findings if f.risk_level == RiskLevel.CRITICAL
    )
    overall = StatusCounts()
    breakdown = []
    for pf, framework in assignments:
        counts = _counts_of(pf)
        overall = overall + counts
        score = compliance_score(counts)
        breakdown.append(
            FrameworkBreakdown(
                framework_id=framework.id,
                framework_code=framework.code,
                framework_name=framework.name,
                score=score,
                status=classify(score) if pf.last_analysis_date else ComplianceStatus.NOT_ASSESSED,
                total_controls=pf.total_controls or 0,
                compliant_count=counts.compliant,
                partial_count=counts.partial,
                non_compliant_count=counts.non_compliant,
                not_assessed_count=counts.not_assessed,
                critical_findings=critical_by_framework.get(framework.id, 0),
                last_analysis_date=pf.last_analysis_date,
            )
        )
    breakdown.sort(key=lambda b: (-b.critical_findings, b.score))

    completed_runs = (
        db.query(ActivityLog)
        .filter(
            ActivityLog.organization_id == project.organization_id,
            ActivityLog.project_id == project.id,
            ActivityLog.activity_type == ActivityType.COMPLIANCE_CHECK_COMPLETED,
        )
        .all()
    )

    priority = top_priority_findings(findings)
    control_codes, framework_names = _finding_labels(db, priority)

    overall_score = compliance_score(overall)
    return OperationResult.success(
        ComplianceDashboard(
            project_id=project.id,
            project_name=project.name,
            overall_score=overall_score,
            overall_status=classify(overall_score),
            total_controls=overall.total,
            compliant_count=overall.compliant,
            partial_count=overall.partial,
            non_compliant_count=overall.non_compliant,
            not_assessed_count=overall.not_assessed,
            frameworks=breakdown,
            findings_by_risk=_risk_breakdown(open_findings),
            findings_by_workflow_status=dict(
                Counter(f.workflow_status.value for f in findings)
            ),
            trend=_trend_points(_run_scores(completed_runs)),
            top_priority_findings=[
                PriorityFinding(
                    id=f.id,
                    finding_code=f.finding_code,
                    title=f.title,
                    risk_level=f.risk_level,
                    workflow_status=f.workflow_status,
                    due_date=f.due_date,
                    control_code=control_codes.get(f.control_id),
                    framework_name=framework_names.get(f.framework_id),
                    assigned_to=f.assigned_to,
                )
                for f in priority
            ],
        )
    )


def _latest_by_control(findings: list[ComplianceFinding]) -> dict[uuid.UUID, ComplianceFinding]:
    latest: dict[uuid.UUID, ComplianceFinding] = {}
    for f in findings:
        current = latest.get(f.control_id)
        f_at = f.last_analyzed_at or f.created_at or datetime.min
        if current is None or f_at >= (current.last_analyzed_at or current.created_at or datetime.min):
            latest[f.control_id] = f
    return latest


def get_framework_report(
    db: Session,
    context: RequestContext,
    project_id: uuid.UUID,
    framework_id: uuid.UUID,
) -> OperationResult[FrameworkReport]:
    project, error = _access_error(db, context, project_id)
    if error is not None:
        return error

    pf = (
        db.query(ProjectFramework)
        .filter(
            ProjectFramework.project_id == project.id,
            ProjectFramework.framework_id == framework_id,
            ProjectFramework.is_active.is_(True),
        )
        .first()
    )
    if pf is None:
        return OperationResult.failure("Framework is not assigned to this project.")
    framework = db.query(ComplianceFramework).filter(ComplianceFramework.id == framework_id).first()
    if framework is None:
        return OperationResult.failure("Framework not found.", code="not_found")

    controls = (
        db.query(ComplianceControl)
        .filter(ComplianceControl.framework_id == framework.id)
        .order_by(ComplianceControl.display_order, ComplianceControl.control_code)
        .all()
    )
    findings = (
        db.query(ComplianceFinding)
        .filter(
            ComplianceFinding.project_id == project.id,
            ComplianceFinding.framework_id == framework.id,
        )
        .all()
    )
    latest = _latest_by_control(findings)
    open_by_control = Counter(
        f.control_id for f in findings if f.workflow_status not in CLOSED_WORKFLOW_STATUSES
    )
    analyzed = pf.last_analysis_date is not None

    rows = []
    for control in controls:
        finding = latest.get(control.id)
        if finding is not None:
            status, risk = ComplianceStatus(finding.status), RiskLevel(finding.risk_level)
        else:
            status = ComplianceStatus.COMPLIANT if analyzed else ComplianceStatus.NOT_ASSESSED
            risk = None
        rows.append(
            ControlReportRow(
                control_id=control.id,
                control_code=control.control_code,
                title=control.title,
                status=status,
                risk_level=risk,
                open_findings=open_by_control.get(control.id, 0),
            )
        )

    score = compliance_score(_counts_of(pf))
    return OperationResult.success(
        FrameworkReport(
            project_id=project.id,
            framework_id=framework.id,
            framework_code=framework.code,
            framework_name=framework.name,
            score=score,
            status=classify(score) if analyzed else ComplianceStatus.NOT_ASSESSED,
            controls=rows,
            findings_by_risk=_risk_breakdown(
                [f for f in findings if f.workflow_status not in CLOSED_WORKFLOW_STATUSES]
            ),
            last_analysis_date=pf.last_analysis_date,
        )
    )


# Executive summary narrative thresholds (percent).
HIGH_COMPLIANCE_SCORE = 90.0
MODERATE_COMPLIANCE_SCORE = 70.0
LOW_FRAMEWORK_SCORE = 60.0
LOW_RESOLUTION_RATE = 50.0

TOP_RISK_LIMIT = 5
TOP_RISK_LEVELS = frozenset({RiskLevel.CRITICAL, RiskLevel.HIGH})
ACTIVE_WORKFLOW_STATUSES = frozenset(
    {FindingWorkflowStatus.OPEN, FindingWorkflowStatus.IN_PROGRESS}
)


def summary_text(
    project_name: str,
    score: float,
    total_controls: int,
    compliant_controls: int,
    critical_findings: int,
    open_critical_findings: int,
    resolution_rate: float,
) -> str:
    if score >= HIGH_COMPLIANCE_SCORE:
        level = "high"
    elif score >= MODERATE_COMPLIANCE_SCORE:
        level = "moderate"
    else:
        level = "low"
    parts = [
        f"The {project_name} compliance assessment shows a {level} level of compliance "
        f"with an overall score of {score:.1f}%.",
        f"Of the {total_controls} controls assessed, {compliant_controls} are fully compliant.",
    ]
    if critical_findings:
        parts.append(
            f"There are {critical_findings} critical findings identified, with "
            f"{open_critical_findings} currently open and requiring immediate attention."
        )
    else:
        parts.append("No critical findings were identified.")
    parts.append(f"The current remediation progress shows a {resolution_rate:.1f}% resolution rate.")
    if score < MODERATE_COMPLIANCE_SCORE:
        parts.append("Significant effort is required to achieve compliance.")
    else:
        parts.append(
            "The project is on track to achieve compliance with continued focus on remediation."
        )
    return " ".join(parts)


def key_recommendations(
    score: float,
    critical_findings: int,
    open_critical_findings: int,
    progress: ProgressMetrics,
    frameworks: list[FrameworkSummary],
) -> list[str]:
    recommendations = []
    if open_critical_findings:
        recommendations.append(
            f"Prioritize immediate remediation of {open_critical_findings} open critical findings "
            "to reduce organizational risk."
        )
    if score < MODERATE_COMPLIANCE_SCORE:
        recommendations.append(
            "Implement a comprehensive remediation plan to address significant compliance gaps "
            "identified across multiple controls."
        )
    # A project without findings has nothing to resolve.
    if progress.total_findings and progress.resolution_rate < LOW_RESOLUTION_RATE:
        recommendations.append(
            "Accelerate remediation efforts to improve the finding resolution rate and "
            "demonstrate progress toward compliance."
        )
    lagging = [f.framework_code for f in frameworks if f.score < LOW_FRAMEWORK_SCORE]
    if lagging:
        recommendations.append(
            f"Focus resources on improving compliance with {', '.join(lagging)} frameworks, "
            "which are currently below acceptable thresholds."
        )
    if critical_findings:
        recommendations.append(
            "Establish regular executive reviews of critical findings to ensure appropriate "
            "oversight and resource allocation."
        )
    if not recommendations:
        recommendations.append(
            "Continue current remediation efforts and maintain strong compliance posture through "
            "regular assessments and proactive control monitoring."
        )
    return recommendations


def get_executive_summary(
    db: Session, context: RequestContext, project_id: uuid.UUID
) -> OperationResult[ExecutiveSummary]:
    """
    Headline numbers for management.

    Scores come from the ProjectFramework aggregates, like the dashboard. Top
    risks are open or in-progress Critical/High findings, highest risk and
    earliest due date first.
    """
    project, error = _access_error(db, context, project_id)
    if error is not None:
        return error

    assignments = (
        db.query(ProjectFramework, ComplianceFramework)
        .join(ComplianceFramework, ComplianceFramework.id == ProjectFramework.framework_id)
        .filter(ProjectFramework.project_id == project.id, ProjectFramework.is_active.is_(True))
        .all()
    )
    findings = db.query(ComplianceFinding).filter(ComplianceFinding.project_id == project.id).all()

    critical = [f for f in findings if f.risk_level == RiskLevel.CRITICAL]
    critical_by_framework = Counter(f.framework_id for f in critical)
    open_critical = sum(1 for f in critical if f.workflow_status == FindingWorkflowStatus.OPEN)

    overall = StatusCounts()
    frameworks = []
    for pf, framework in assignments:
        counts = _counts_of(pf)
        overall = overall + counts
        frameworks.append(
            FrameworkSummary(
                framework_code=framework.code,
                framework_name=framework.name,
                score=compliance_score(counts),
                total_controls=pf.total_controls or 0,
                compliant_count=counts.compliant,
                critical_findings=critical_by_framework.get(framework.id, 0),
            )
        )
    frameworks.sort(key=lambda f: f.score)
    analysis_dates = [pf.last_analysis_date for pf, _ in assignments if pf.last_analysis_date]

    workflow = Counter(FindingWorkflowStatus(f.workflow_status) for f in findings)
    resolved = workflow.get(FindingWorkflowStatus.RESOLVED, 0)
    progress = ProgressMetrics(
        total_findings=len(findings),
        resolved_findings=resolved,
        in_progress_findings=workflow.get(FindingWorkflowStatus.IN_PROGRESS, 0),
        open_findings=workflow.get(FindingWorkflowStatus.OPEN, 0),
        resolution_rate=resolved / len(findings) * 100 if findings else 0.0,
    )

    risks = top_priority_findings(
        [
            f
            for f in findings
            if f.risk_level in TOP_RISK_LEVELS and f.workflow_status in ACTIVE_WORKFLOW_STATUSES
        ],
        limit=TOP_RISK_LIMIT,
    )
    control_codes, framework_names = _finding_labels(db, risks)

    score = compliance_score(overall)
    return OperationResult.success(
        ExecutiveSummary(
            project_id=project.id,
            project_name=project.name,
            project_description=project.description,
            generated_at=utcnow(),
            last_analysis_date=max(analysis_dates) if analysis_dates else None,
            summary=summary_text(
                project.name,
                score,
                overall.total,
                overall.compliant,
                len(critical),
                open_critical,
                progress.resolution_rate,
            ),
            overall_score=score,
            overall_status=classify(score),
            total_frameworks=len(frameworks),
            total_controls=overall.total,
            compliant_count=overall.compliant,
            partial_count=overall.partial,
            non_compliant_count=overall.non_compliant,
            not_assessed_count=overall.not_assessed,
            total_findings=len(findings),
            critical_findings=len(critical),
            open_critical_findings=open_critical,
            frameworks=frameworks,
            top_risks=[
                TopRisk(
                    id=f.id,
                    title=f.title,
                    framework_name=framework_names.get(f.framework_id),
                    control_code=control_codes.get(f.control_id),
                    risk_level=f.risk_level,
                    remediation_guidance=f.remediation_guidance,
                    assigned_to=f.assigned_to,
                    due_date=f.due_date,
                )
                for f in risks
            ],
            key_recommendations=key_recommendations(
                score, len(critical), open_critical, progress, frameworks
            ),
            progress=progress,
        )
    )
