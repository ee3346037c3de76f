"""Core app configuration and database."""

from fleetdesk.core.config import get_settings, settings
from fleetdesk.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
