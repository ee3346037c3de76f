"""Test helpers: an isolated in-memory database and an app client wired to it."""

from collections.abc import AsyncGenerator

from fastapi.testclient import TestClient
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fleetdesk.core.config import get_settings
from fleetdesk.core.database import get_db
from fleetdesk.core.security import create_access_token, hash_password
from fleetdesk.main import app
from fleetdesk.models import Base, Role, User

TEST_PASSWORD = "correct-horse-battery"


class InMemoryDatabase:
    """
    One SQLite database per test. StaticPool keeps a single connection so
    every session sees the same in-memory schema and rows.
    """

    def __init__(self) -> None:
        self.engine = create_async_engine(
            "sqlite+aiosqlite://",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        self.sessionmaker = async_sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.sessionmaker() as session:
            yield session

    async def add_user(
        self,
        username: str,
        password: str = TEST_PASSWORD,
        role: Role = Role.USER,
        email: str | None = None,
    ) -> User:
        async with self.sessionmaker() as session:
            user = User(
                username=username,
                email=email or f"{username}@example.com",
                password_hash=hash_password(password, rounds=4),
                role=role,
            )
            session.add(user)
            await session.commit()
            return user

    async def get_user(self, user_id: int) -> User | None:
        async with self.sessionmaker() as session:
            result = await session.execute(select(User).where(User.id == user_id))
            return result.scalar_one_or_none()

    async def set_role(self, user_id: int, role: Role) -> None:
        """Change a role directly in the store, the way a bootstrap or manual edit would."""
        async with self.sessionmaker() as session:
            await session.execute(update(User).where(User.id == user_id).values(role=role))
            await session.commit()

    async def delete_user(self, user_id: int) -> None:
        async with self.sessionmaker() as session:
            user = await session.get(User, user_id)
            await session.delete(user)
            await session.commit()

    async def count_users(self, username: str | None = None) -> int:
        async with self.sessionmaker() as session:
            query = select(func.count(User.id))
            if username is not None:
                query = query.where(User.username == username)
            return (await session.execute(query)).scalar_one()


def token_for(user: User) -> str:
    return create_access_token(user.id, user.username, user.role, get_settings())


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class AppHarness:
    """
    TestClient plus an InMemoryDatabase, all driven on the client's event loop.

    Seeding goes through client.portal so the database connection is only
    ever used from one loop.
    """

    def __init__(self) -> None:
        self.db = InMemoryDatabase()
        self.client = TestClient(app, raise_server_exceptions=False)

    def start(self) -> None:
        app.dependency_overrides[get_db] = self.db.get_session
        self.client.__enter__()
        self.run(self.db.create_all)

    def stop(self) -> None:
        try:
            self.run(self.db.dispose)
        finally:
            self.client.__exit__(None, None, None)
            app.dependency_overrides.clear()

    def run(self, func, *args):
        return self.client.portal.call(func, *args)

    def add_user(self, username: str, role: Role = Role.USER, **kwargs) -> User:
        return self.run(lambda: self.db.add_user(username, role=role, **kwargs))

    @property
    def prefix(self) -> str:
        return get_settings().API_V1_PREFIX
