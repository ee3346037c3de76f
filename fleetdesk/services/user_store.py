"""Credential store: async access to user records. Routes and services never build user SQL themselves."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.models.user import Role, User
from fleetdesk.services.errors import DuplicateUserError, InternalError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SEC = 10.0


class UserStore:
    """
    Repository over the users table, bound to one request's session.

    Every call runs under a timeout. A timeout or driver failure becomes
    InternalError so callers fail closed; a unique-constraint violation on
    insert becomes DuplicateUserError.
    """

    def __init__(self, session: AsyncSession, timeout: float = DEFAULT_TIMEOUT_SEC) -> None:
        self._session = session
        self._timeout = timeout

    @asynccontextmanager
    async def _guard(self, operation: str) -> AsyncIterator[None]:
        try:
            async with asyncio.timeout(self._timeout):
                yield
        except TimeoutError as e:
            logger.error(
                "Credential store timed out",
                extra={"operation": operation, "timeout_sec": self._timeout},
            )
            raise InternalError() from e
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            logger.exception("Credential store failure", extra={"operation": operation})
            raise InternalError() from e

    async def get_by_id(self, user_id: int) -> User | None:
        async with self._guard("get_by_id"):
            # populate_existing: the role must come from the database, not the identity map.
            result = await self._session.execute(
                select(User)
                .where(User.id == user_id)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> User | None:
        """Exact, case-sensitive lookup."""
        async with self._guard("get_by_username"):
            result = await self._session.execute(
                select(User).where(User.username == username)
            )
            return result.scalar_one_or_none()

    async def exists_username_or_email(self, username: str, email: str) -> bool:
        async with self._guard("exists_username_or_email"):
            result = await self._session.execute(
                select(User.id)
                .where(or_(User.username == username, User.email == email))
                .limit(1)
            )
            return result.first() is not None

    async def list_all(self) -> list[User]:
        """All users, newest first."""
        async with self._guard("list_all"):
            result = await self._session.execute(
                select(User).order_by(User.created_at.desc(), User.id.desc())
            )
            return list(result.scalars().all())

    async def add(
        self,
        username: str,
        email: str,
        password_hash: str,
        role: Role = Role.USER,
    ) -> User:
        """Insert and commit a new user."""
        user = User(
            username=username,
            email=email,
            password_hash=password_hash,
            role=role,
        )
        async with self._guard("add"):
            self._session.add(user)
            try:
                await self._session.commit()
            except IntegrityError as e:
                await self._session.rollback()
                logger.info(
                    "Insert hit unique constraint",
                    extra={"username": username},
                )
                raise DuplicateUserError() from e
        return user

    async def delete(self, user: User) -> None:
        async with self._guard("delete"):
            await self._session.delete(user)
            await self._session.commit()
