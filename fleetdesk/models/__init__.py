"""SQLAlchemy ORM models."""

from fleetdesk.models.base import Base
from fleetdesk.models.message import ManagementMessage, MessageType
from fleetdesk.models.user import Role, User

__all__ = ["Base", "ManagementMessage", "MessageType", "Role", "User"]
