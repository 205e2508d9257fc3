"""Finding workflow transitions and soft delete/restore of findings."""

import logging
import uuid

from sqlalchemy.orm import Session

from complykit.core.context import RequestContext, bind_context
from complykit.models import ComplianceFinding
from complykit.models.base import utcnow
from complykit.models.enums import FindingWorkflowStatus
from complykit.schemas.common import OperationResult
from complykit.schemas.findings import (
    RESOLUTION_NOTES_MAX_LEN,
    FindingStatusResponse,
    FindingStatusUpdate,
)
from complykit.services.access import can_modify_project, get_active_project_member

logger = logging.getLogger(__name__)


def _load_finding_for_change(
    db: Session, context: RequestContext, finding_id: uuid.UUID
) -> ComplianceFinding | OperationResult:
    if not context.is_authenticated:
        return OperationResult.failure("User must be authenticated.", code="forbidden")
    if context.tenant_id is None:
        return OperationResult.failure("No workspace selected.")
    finding = (
        db.query(ComplianceFinding)
        .filter(
            ComplianceFinding.id == finding_id,
            ComplianceFinding.organization_id == context.tenant_id,
        )
        .first()
    )
    if finding is None:
        return OperationResult.failure("Finding not found.", code="not_found")
    member = get_active_project_member(db, finding.project_id, context.actor_id)
    if member is None:
        return OperationResult.failure(
            "Access denied. You are not a member of this project.", code="forbidden"
        )
    if not can_modify_project(member):
        return OperationResult.failure(
            "Access denied. Viewers cannot update findings.", code="forbidden"
        )
    return finding


def update_finding_status(
    db: Session,
    context: RequestContext,
    finding_id: uuid.UUID,
    update: FindingStatusUpdate,
) -> OperationResult[FindingStatusResponse]:
    """
    Move a finding through its workflow.

    Resolved requires resolution notes and stamps resolved date/actor; leaving
    Resolved clears them. The audit row comes from the Updated lifecycle event.
    """
    notes = (update.resolution_notes or "").strip()
    if update.workflow_status == FindingWorkflowStatus.RESOLVED and not notes:
        return OperationResult.failure(
            "Resolution notes are required when marking a finding as resolved."
        )
    if len(notes) > RESOLUTION_NOTES_MAX_LEN:
        return OperationResult.failure(
            f"Resolution notes must not exceed {RESOLUTION_NOTES_MAX_LEN} characters."
        )

    bind_context(db, context)
    loaded = _load_finding_for_change(db, context, finding_id)
    if isinstance(loaded, OperationResult):
        return loaded
    finding = loaded

    previous = finding.workflow_status
    finding.workflow_status = update.workflow_status
    if update.workflow_status == FindingWorkflowStatus.RESOLVED:
        finding.resolved_date = utcnow()
        finding.resolved_by = context.actor_id
        finding.resolution_notes = notes
    elif finding.resolved_date is not None:
        finding.resolved_date = None
        finding.resolved_by = None
    db.commit()

    logger.info(
        "Finding workflow status changed",
        extra={
            "finding_id": str(finding.id),
            "from_status": FindingWorkflowStatus(previous).value,
            "to_status": update.workflow_status.value,
        },
    )
    return OperationResult.success(
        FindingStatusResponse(
            id=finding.id,
            workflow_status=finding.workflow_status,
            resolution_notes=finding.resolution_notes,
            resolved_date=finding.resolved_date,
            resolved_by=finding.resolved_by,
        )
    )


def delete_finding(
    db: Session, context: RequestContext, finding_id: uuid.UUID
) -> OperationResult[None]:
    """Soft-delete a finding; its evidence rows stay attached for recovery."""
    bind_context(db, context)
    loaded = _load_finding_for_change(db, context, finding_id)
    if isinstance(loaded, OperationResult):
        return loaded
    db.delete(loaded)
    db.commit()
    return OperationResult.success()
