"""Core app configuration and database."""

from smartlink.core.config import get_settings, settings
from smartlink.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
