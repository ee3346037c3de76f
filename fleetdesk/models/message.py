"""ORM model for management messages shown on the driver dashboard."""

import enum
from datetime import date

from sqlalchemy import Boolean, Column, Date, DateTime, Enum, Integer, String, Text, false, func

from fleetdesk.models.base import Base, utc_now


class MessageType(str, enum.Enum):
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"
    URGENT = "urgent"


class ManagementMessage(Base):
    """Announcement from management. Everyone signed in reads; only admins write."""

    __tablename__ = "management_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    type = Column(
        Enum(
            MessageType,
            name="message_type",
            native_enum=False,
            create_constraint=True,
            length=20,
            values_callable=lambda types: [t.value for t in types],
        ),
        nullable=False,
        default=MessageType.INFO,
    )
    date = Column(Date, nullable=False, default=lambda: date.today())
    author = Column(String(100), nullable=False)
    is_read = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
        server_default=func.now(),
    )
