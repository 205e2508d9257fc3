"""Schemas for the authenticated actor."""

from pydantic import BaseModel


class CurrentUser(BaseModel):
    """Authenticated actor resolved from the bearer token (or the dev actor when auth is off)."""

    id: str
