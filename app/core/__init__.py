"""Core app configuration, database and security."""

from app.core.config import get_settings, settings
from app.core.database import get_db
from app.core.roles import Role

__all__ = ["get_settings", "settings", "get_db", "Role"]
