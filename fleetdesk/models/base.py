"""SQLAlchemy declarative Base and shared model configuration."""

from datetime import UTC, datetime

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    pass


def utc_now() -> datetime:
    """Python-side default for timestamp columns, so values are known right after flush."""
    return datetime.now(UTC)
