"""ORM model for application users (auth and RBAC)."""

import enum

from sqlalchemy import Column, DateTime, Enum, Integer, String, func

from fleetdesk.models.base import Base, utc_now


class Role(str, enum.Enum):
    """The only two roles a user can hold."""

    USER = "user"
    ADMIN = "admin"


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    username and email are unique at the database level; the service pre-checks
    both, but the constraints are what actually prevent duplicates under concurrency.
    role only changes through direct store edits (see scripts/create_user.py).
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    email = Column(String(100), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(
            Role,
            name="user_role",
            native_enum=False,
            create_constraint=True,
            length=20,
            values_callable=lambda roles: [r.value for r in roles],
        ),
        nullable=False,
        default=Role.USER,
        server_default=Role.USER.value,
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} role={self.role}>"
