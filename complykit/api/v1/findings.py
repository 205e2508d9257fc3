"""Finding workflow endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from complykit.api.v1.deps import Context, DbSession, unwrap
from complykit.schemas.findings import FindingStatusResponse, FindingStatusUpdate
from complykit.services.findings_workflow import delete_finding, update_finding_status

router = APIRouter()


@router.patch("/{finding_id}/status", response_model=FindingStatusResponse)
def patch_finding_status(
    finding_id: UUID,
    body: FindingStatusUpdate,
    context: Context,
    db: DbSession,
) -> FindingStatusResponse:
    """Move a finding through its workflow; Resolved requires resolution notes."""
    return unwrap(update_finding_status(db, context, finding_id, body))


@router.delete("/{finding_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_finding(finding_id: UUID, context: Context, db: DbSession) -> None:
    unwrap(delete_finding(db, context, finding_id))
