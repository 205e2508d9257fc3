"""
Audit check orchestration: NotStarted -> Running -> Completed | Failed.

One external analysis call per check. Findings, evidence, ProjectFramework
statistics and the started/completed activity rows are committed together or
not at all.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from complykit.core.context import RequestContext, bind_context
from complykit.models import (
    ActivityLog,
    ComplianceControl,
    ComplianceFramework,
    Document,
    Project,
    ProjectFramework,
)
from complykit.models.base import utcnow
from complykit.models.enums import ActivityType, ComplianceStatus
from complykit.schemas.analysis import (
    AnalysisOptions,
    ControlSummary,
    FrameworkAnalysisRequest,
    FrameworkAnalysisResult,
)
from complykit.schemas.audit_check import AuditCheckResponse, AuditCheckState
from complykit.schemas.common import ErrorCode, OperationResult
from complykit.services.access import (
    can_modify_project,
    get_active_project_member,
    get_tenant_project,
)
from complykit.services.analysis import AnalysisCapability, AnalysisServiceError
from complykit.services.audit_log import fit_activity_values
from complykit.services.document_content import DocumentContentAggregator
from complykit.services.finding_synthesizer import synthesize_findings
from complykit.services.identity import Actor, resolve_actor
from complykit.services.scoring import StatusCounts, classify, compliance_score

if TYPE_CHECKING:
    from complykit.core.config import Settings

logger = logging.getLogger(__name__)

AUDIT_CHECK_ENTITY_TYPE = "AuditCheck"

CONCURRENT_UPDATE_MESSAGE = (
    "Compliance statistics were updated by another audit check. Please run the check again."
)

PERSISTENCE_FAILED_MESSAGE = "The analysis results could not be saved. Please run the check again."


class InvalidStateTransition(Exception):
    """Raised when an audit check is moved between states out of order."""


_ALLOWED_TRANSITIONS: dict[AuditCheckState, frozenset[AuditCheckState]] = {
    AuditCheckState.NOT_STARTED: frozenset({AuditCheckState.RUNNING}),
    AuditCheckState.RUNNING: frozenset({AuditCheckState.COMPLETED, AuditCheckState.FAILED}),
    AuditCheckState.COMPLETED: frozenset(),
    AuditCheckState.FAILED: frozenset(),
}


@dataclass
class AuditCheckRun:
    project: Project
    framework: ComplianceFramework
    project_framework: ProjectFramework
    controls: list[ComplianceControl]
    documents: list[Document]
    actor: Actor
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    state: AuditCheckState = AuditCheckState.NOT_STARTED
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def transition(self, new_state: AuditCheckState) -> None:
        if new_state not in _ALLOWED_TRANSITIONS[self.state]:
            raise InvalidStateTransition(
                f"Audit check cannot move from {self.state.value} to {new_state.value}"
            )
        self.state = new_state
        if new_state == AuditCheckState.RUNNING:
            self.started_at = utcnow()
        elif self.completed_at is None:
            self.completed_at = utcnow()

    @property
    def duration_seconds(self) -> float | None:
        if self.started_at is None or self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()


@dataclass
class _Outcome:
    findings_created: int
    counts: StatusCounts
    score: float


class AuditCheckService:
    def __init__(
        self,
        db: Session,
        analysis: AnalysisCapability,
        content: DocumentContentAggregator,
        settings: "Settings",
    ) -> None:
        self.db = db
        self.analysis = analysis
        self.content = content
        self.settings = settings

    def _prepare(
        self,
        context: RequestContext,
        project_id: uuid.UUID,
        framework_id: uuid.UUID,
        options: AnalysisOptions,
    ) -> AuditCheckRun | OperationResult[AuditCheckResponse]:
        """Check every precondition in order; nothing is written here."""
        fail = OperationResult[AuditCheckResponse].failure
        if not context.is_authenticated:
            return fail("User must be authenticated.", code="forbidden")
        if context.tenant_id is None:
            return fail("No workspace selected.")

        db = self.db
        project = get_tenant_project(db, context.tenant_id, project_id)
        if project is None:
            return fail("Project not found.", code="not_found")

        if not can_modify_project(get_active_project_member(db, project.id, context.actor_id)):
            return fail(
                "You do not have permission to run audit checks on this project.",
                code="forbidden",
            )

        project_framework = (
            db.query(ProjectFramework)
            .filter(
                ProjectFramework.project_id == project.id,
                ProjectFramework.framework_id == framework_id,
                ProjectFramework.is_active.is_(True),
            )
            .first()
        )
        if project_framework is None:
            return fail("Framework is not assigned to this project.")

        documents = (
            db.query(Document)
            .filter(Document.project_id == project.id)
            .order_by(Document.created_at)
            .all()
        )
        if not documents:
            return fail("Project must have at least one document to analyze.")

        framework = db.query(ComplianceFramework).filter(ComplianceFramework.id == framework_id).first()
        if framework is None:
            return fail("Framework not found.", code="not_found")

        query = db.query(ComplianceControl).filter(ComplianceControl.framework_id == framework.id)
        if options.mandatory_controls_only:
            query = query.filter(ComplianceControl.is_mandatory.is_(True))
        controls = query.order_by(ComplianceControl.display_order, ComplianceControl.control_code).all()
        if not controls:
            return fail("Framework has no controls defined.")

        return AuditCheckRun(
            project=project,
            framework=framework,
            project_framework=project_framework,
            controls=controls,
            documents=documents,
            actor=resolve_actor(db, context.actor_id, self.settings.SYSTEM_ACTOR_EMAIL),
        )

    def _build_request(self, run: AuditCheckRun, options: AnalysisOptions) -> FrameworkAnalysisRequest:
        return FrameworkAnalysisRequest(
            project_id=run.project.id,
            framework_id=run.framework.id,
            framework_code=run.framework.code,
            framework_name=run.framework.name,
            controls=[
                ControlSummary(
                    control_id=c.id,
                    control_code=c.control_code,
                    title=c.title,
                    description=c.description or "",
                    implementation_guidance=c.implementation_guidance,
                    default_risk_level=c.default_risk_level,
                    is_mandatory=c.is_mandatory,
                )
                for c in run.controls
            ],
            documents=self.content.collect(run.documents),
            options=options,
        )

    def _activity(
        self,
        run: AuditCheckRun,
        activity_type: ActivityType,
        description: str,
        details: dict[str, Any],
        occurred_at: datetime,
    ) -> ActivityLog:
        values = fit_activity_values(
            {
                "organization_id": run.project.organization_id,
                "project_id": run.project.id,
                "user_id": run.actor.user_id,
                "user_name": run.actor.name,
                "user_email": run.actor.email,
                "activity_type": activity_type,
                "entity_type": AUDIT_CHECK_ENTITY_TYPE,
                "entity_id": str(run.id),
                "entity_name": f"{run.framework.name} Audit",
                "description": description,
                "occurred_at": occurred_at,
            }
        )
        return ActivityLog(details=details, **values)

    def _started_activity(self, run: AuditCheckRun) -> ActivityLog:
        return self._activity(
            run,
            ActivityType.COMPLIANCE_CHECK_STARTED,
            f"Started compliance check for framework '{run.framework.name}' on project '{run.project.name}'",
            {
                "frameworkId": str(run.framework.id),
                "frameworkCode": run.framework.code,
                "controlCount": len(run.controls),
                "documentCount": len(run.documents),
            },
            run.started_at,
        )

    def _persist(self, run: AuditCheckRun, result: FrameworkAnalysisResult) -> _Outcome:
        """Stage the whole outcome of a completed analysis in the session (no commit)."""
        db = self.db
        db.add(self._started_activity(run))

        controls_by_id = {c.id: c for c in run.controls}
        findings = synthesize_findings(
            db,
            organization_id=run.project.organization_id,
            project_id=run.project.id,
            framework_id=run.framework.id,
            framework_code=run.framework.code,
            controls=controls_by_id,
            project_document_ids={d.id for d in run.documents},
            results=result.results,
            analysis_model=result.model,
            analyzed_at=run.started_at,
        )

        statuses = {r.control_id: r.status for r in result.results if r.control_id in controls_by_id}
        counts = StatusCounts.from_statuses(
            statuses.get(c.id, ComplianceStatus.NOT_ASSESSED) for c in run.controls
        )
        score = compliance_score(counts)

        pf = run.project_framework
        pf.total_controls = len(run.controls)
        pf.compliant_controls = counts.compliant
        pf.partially_compliant_controls = counts.partial
        pf.non_compliant_controls = counts.non_compliant
        pf.not_assessed_controls = counts.not_assessed
        pf.compliance_percentage = score
        pf.status = classify(score)
        pf.last_analysis_date = run.completed_at
        pf.last_analysis_by = run.actor.name

        db.add(
            self._activity(
                run,
                ActivityType.COMPLIANCE_CHECK_COMPLETED,
                f"Completed compliance check for framework '{run.framework.name}'. Found {len(findings)} gaps.",
                {
                    "frameworkId": str(run.framework.id),
                    "frameworkCode": run.framework.code,
                    "durationSeconds": run.duration_seconds,
                    "findingsCreated": len(findings),
                    "complianceScore": score,
                    "compliantCount": counts.compliant,
                    "partialCount": counts.partial,
                    "nonCompliantCount": counts.non_compliant,
                    "notAssessedCount": counts.not_assessed,
                    "summary": result.summary.model_dump(mode="json"),
                },
                run.completed_at,
            )
        )
        return _Outcome(findings_created=len(findings), counts=counts, score=score)

    def _fail(
        self,
        run: AuditCheckRun,
        message: str,
        code: ErrorCode,
    ) -> OperationResult[AuditCheckResponse]:
        """Discard the run's staged work, then record the failure best-effort."""
        self.db.rollback()
        if run.state == AuditCheckState.RUNNING:
            run.transition(AuditCheckState.FAILED)
        logger.warning(
            "Audit check failed",
            extra={
                "audit_check_id": str(run.id),
                "project_id": str(run.project.id),
                "framework_id": str(run.framework.id),
                "error": message,
            },
        )
        try:
            self.db.add(self._started_activity(run))
            self.db.add(
                self._activity(
                    run,
                    ActivityType.COMPLIANCE_CHECK_FAILED,
                    f"Compliance check for framework '{run.framework.name}' failed: {message}",
                    {
                        "frameworkId": str(run.framework.id),
                        "durationSeconds": run.duration_seconds,
                        "error": message,
                    },
                    run.completed_at or utcnow(),
                )
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception(
                "Could not record audit check failure",
                extra={"audit_check_id": str(run.id)},
            )
        return OperationResult[AuditCheckResponse].failure(message, code=code)

    async def run(
        self,
        context: RequestContext,
        project_id: uuid.UUID,
        framework_id: uuid.UUID,
        options: AnalysisOptions | None = None,
    ) -> OperationResult[AuditCheckResponse]:
        """
        Run one audit check synchronously with the caller.

        Precondition failures return before any state change. Capability errors,
        results the database rejects and persistent version conflicts return a
        failure result with nothing committed but the failure record.
        Cancellation while awaiting the capability rolls back and propagates.
        """
        options = options or AnalysisOptions()
        bind_context(self.db, context)

        prepared = self._prepare(context, project_id, framework_id, options)
        if isinstance(prepared, OperationResult):
            return prepared
        run = prepared

        run.transition(AuditCheckState.RUNNING)
        logger.info(
            "Audit check started",
            extra={
                "audit_check_id": str(run.id),
                "project_id": str(run.project.id),
                "framework_code": run.framework.code,
                "control_count": len(run.controls),
                "document_count": len(run.documents),
            },
        )

        request = self._build_request(run, options)
        try:
            result = await self.analysis.analyze(request)
        except asyncio.CancelledError:
            self.db.rollback()
            run.transition(AuditCheckState.FAILED)
            logger.warning("Audit check cancelled", extra={"audit_check_id": str(run.id)})
            raise
        except AnalysisServiceError as e:
            return self._fail(run, e.message, "unavailable" if e.unavailable else "bad_gateway")

        # Analysis is over; the timestamps below do not move across retries.
        run.completed_at = utcnow()
        attempts = self.settings.AUDIT_CHECK_COMMIT_RETRIES
        for attempt in range(1, attempts + 1):
            try:
                outcome = self._persist(run, result)
                self.db.commit()
                break
            except StaleDataError:
                self.db.rollback()
                logger.warning(
                    "ProjectFramework version conflict; retrying persistence",
                    extra={"audit_check_id": str(run.id), "attempt": attempt},
                )
            except SQLAlchemyError:
                logger.exception(
                    "Audit check results rejected by the database",
                    extra={"audit_check_id": str(run.id), "attempt": attempt},
                )
                return self._fail(run, PERSISTENCE_FAILED_MESSAGE, "bad_gateway")
        else:
            return self._fail(run, CONCURRENT_UPDATE_MESSAGE, "unavailable")

        run.transition(AuditCheckState.COMPLETED)
        logger.info(
            "Audit check completed",
            extra={
                "audit_check_id": str(run.id),
                "findings_created": outcome.findings_created,
                "compliance_score": outcome.score,
                "duration_seconds": run.duration_seconds,
            },
        )
        return OperationResult[AuditCheckResponse].success(
            AuditCheckResponse(
                audit_check_id=run.id,
                project_id=run.project.id,
                framework_id=run.framework.id,
                state=run.state,
                started_at=run.started_at,
                completed_at=run.completed_at,
                duration_seconds=run.duration_seconds,
                controls_analyzed=len(run.controls),
                findings_created=outcome.findings_created,
                compliance_score=outcome.score,
                summary=result.summary,
            )
        )
