"""Audit check endpoint: analyze a project's documents against one assigned framework."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends

from complykit.api.v1.deps import (
    Context,
    DbSession,
    Storage,
    get_analysis_service,
    unwrap,
)
from complykit.core.config import get_settings
from complykit.schemas.audit_check import AuditCheckRequest, AuditCheckResponse
from complykit.services.analysis import AnalysisCapability
from complykit.services.audit_check import AuditCheckService
from complykit.services.document_content import DocumentContentAggregator

router = APIRouter()


@router.post("/{project_id}/audit-checks", response_model=AuditCheckResponse)
async def run_audit_check(
    project_id: UUID,
    body: AuditCheckRequest,
    context: Context,
    db: DbSession,
    storage: Storage,
    analysis: Annotated[AnalysisCapability, Depends(get_analysis_service)],
) -> AuditCheckResponse:
    """
    Run a compliance check of the project against one assigned framework.

    Blocks until the check completes or fails. Precondition failures return 403/404/422
    with the list of messages; analysis backend failures return 503 (unreachable or
    timed out) or 502 (bad response), with no findings written.
    """
    service = AuditCheckService(
        db=db,
        analysis=analysis,
        content=DocumentContentAggregator(storage),
        settings=get_settings(),
    )
    result = await service.run(context, project_id, body.framework_id, body.options)
    return unwrap(result)
