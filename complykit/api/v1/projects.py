"""Project deletion endpoint (soft delete with best-effort file cleanup)."""

from uuid import UUID

from fastapi import APIRouter, status

from complykit.api.v1.deps import Context, DbSession, Storage, unwrap
from complykit.services.deletion import delete_project

router = APIRouter()


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_project(project_id: UUID, context: Context, db: DbSession, storage: Storage) -> None:
    unwrap(delete_project(db, storage, context, project_id))
