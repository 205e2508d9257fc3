"""Shared dependencies: authenticated actor, request context, collaborators, result-to-HTTP mapping."""

from typing import Annotated, TypeVar
from uuid import UUID

import jwt
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from complykit.core.config import get_settings
from complykit.core.context import RequestContext
from complykit.core.database import get_db
from complykit.core.security import decode_access_token
from complykit.schemas.auth import CurrentUser
from complykit.schemas.common import OperationResult
from complykit.services.access import is_organization_member
from complykit.services.analysis import AnalysisCapability, OllamaAnalysisService
from complykit.services.storage import LocalFileStorage

security = HTTPBearer(auto_error=False)

T = TypeVar("T")

_STATUS_BY_ERROR_CODE = {
    "not_found": 404,
    "forbidden": 403,
    "invalid": 422,
    "unavailable": 503,
    "bad_gateway": 502,
}


def unwrap(result: OperationResult[T]) -> T | None:
    """Return the value of a successful result; raise HTTPException carrying the messages otherwise."""
    if result.succeeded:
        return result.value
    raise HTTPException(
        status_code=_STATUS_BY_ERROR_CODE.get(result.error_code or "invalid", 422),
        detail=result.errors,
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> CurrentUser:
    """Dependency: require valid Bearer JWT and return the actor. Raises 401 if missing or invalid."""
    settings = get_settings()
    if not settings.AUTH_ENABLED:
        return CurrentUser(id=settings.DEV_ACTOR_ID)
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    sub = payload.get("sub")
    if not sub or not isinstance(sub, str):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return CurrentUser(id=sub)


def get_request_context(
    user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    x_organization_id: Annotated[UUID | None, Header()] = None,
) -> RequestContext:
    """
    Actor plus selected workspace (X-Organization-Id). Without the header the
    tenant is unset and services answer "No workspace selected.".
    """
    if x_organization_id is not None and not is_organization_member(db, x_organization_id, user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not a member of this workspace.",
        )
    return RequestContext(actor_id=user.id, tenant_id=x_organization_id)


def get_storage() -> LocalFileStorage:
    return LocalFileStorage(get_settings().STORAGE_ROOT)


def get_analysis_service() -> AnalysisCapability:
    return OllamaAnalysisService(get_settings())


Context = Annotated[RequestContext, Depends(get_request_context)]
DbSession = Annotated[Session, Depends(get_db)]
Storage = Annotated[LocalFileStorage, Depends(get_storage)]
