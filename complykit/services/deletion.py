"""Document and project deletion: soft delete plus best-effort removal of stored files."""

import logging
import uuid

from sqlalchemy.orm import Session

from complykit.core.context import RequestContext, bind_context
from complykit.models import Document, Organization
from complykit.models.enums import ProjectRole
from complykit.schemas.common import OperationResult
from complykit.services.access import (
    can_modify_project,
    get_active_project_member,
    get_tenant_project,
)
from complykit.services.storage import FileStorage, delete_file_best_effort

logger = logging.getLogger(__name__)


def _release_storage(db: Session, organization_id: uuid.UUID, released_bytes: int) -> None:
    organization = db.query(Organization).filter(Organization.id == organization_id).first()
    if organization is None:
        return
    organization.storage_used_bytes = max(0, (organization.storage_used_bytes or 0) - released_bytes)


def delete_document(
    db: Session,
    storage: FileStorage,
    context: RequestContext,
    document_id: uuid.UUID,
) -> OperationResult[None]:
    if not context.is_authenticated:
        return OperationResult.failure("User must be authenticated.", code="forbidden")
    if context.tenant_id is None:
        return OperationResult.failure("No workspace selected.")
    bind_context(db, context)

    document = (
        db.query(Document)
        .filter(Document.id == document_id, Document.organization_id == context.tenant_id)
        .first()
    )
    if document is None:
        return OperationResult.failure("Document not found.", code="not_found")
    if not can_modify_project(get_active_project_member(db, document.project_id, context.actor_id)):
        return OperationResult.failure(
            "You do not have permission to delete documents from this project.",
            code="forbidden",
        )

    delete_file_best_effort(storage, document.storage_path)
    _release_storage(db, document.organization_id, document.file_size_bytes or 0)
    db.delete(document)
    db.commit()
    return OperationResult.success()


def delete_project(
    db: Session,
    storage: FileStorage,
    context: RequestContext,
    project_id: uuid.UUID,
) -> OperationResult[None]:
    """Soft-delete a project with its documents; only project owners may do this."""
    if not context.is_authenticated:
        return OperationResult.failure("User must be authenticated.", code="forbidden")
    if context.tenant_id is None:
        return OperationResult.failure("No workspace selected.")
    bind_context(db, context)

    project = get_tenant_project(db, context.tenant_id, project_id)
    if project is None:
        return OperationResult.failure("Project not found.", code="not_found")
    member = get_active_project_member(db, project.id, context.actor_id)
    if member is None or member.role != ProjectRole.OWNER:
        return OperationResult.failure(
            "Only project owners can delete a project.", code="forbidden"
        )

    documents = db.query(Document).filter(Document.project_id == project.id).all()
    released = 0
    for document in documents:
        delete_file_best_effort(storage, document.storage_path)
        released += document.file_size_bytes or 0
        db.delete(document)
    _release_storage(db, project.organization_id, released)
    db.delete(project)
    db.commit()

    logger.info(
        "Project deleted",
        extra={"project_id": str(project_id), "document_count": len(documents)},
    )
    return OperationResult.success()
