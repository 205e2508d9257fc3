"""Workspace administration: restore soft-deleted items."""

from uuid import UUID

from fastapi import APIRouter, status

from complykit.api.v1.deps import Context, DbSession, unwrap
from complykit.core.config import get_settings
from complykit.services.recovery import restore_entity

router = APIRouter()


@router.post("/restore/{entity_type}/{entity_id}", status_code=status.HTTP_204_NO_CONTENT)
def restore_deleted(entity_type: str, entity_id: UUID, context: Context, db: DbSession) -> None:
    """Restore a soft-deleted item of the current workspace (owners and admins only)."""
    unwrap(restore_entity(db, context, entity_type, entity_id, get_settings().SYSTEM_ACTOR_EMAIL))
