"""Core app configuration and request context."""

from complykit.core.config import get_settings, settings
from complykit.core.context import RequestContext

__all__ = ["get_settings", "settings", "RequestContext"]
