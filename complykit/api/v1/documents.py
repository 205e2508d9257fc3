"""Document deletion endpoint."""

from uuid import UUID

from fastapi import APIRouter, status

from complykit.api.v1.deps import Context, DbSession, Storage, unwrap
from complykit.services.deletion import delete_document

router = APIRouter()


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_document(document_id: UUID, context: Context, db: DbSession, storage: Storage) -> None:
    """Soft-delete the document; the stored file is removed best-effort."""
    unwrap(delete_document(db, storage, context, document_id))
