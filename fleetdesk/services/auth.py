"""
Authentication service: login, registration, token verification and the
per-request authorization gate.

Expected failures are raised as typed ServiceError subclasses (see
services/errors.py); the API layer renders them. Bad credentials, bad
tokens and insufficient roles never surface as anything else.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fleetdesk.core.security import (
    TokenError,
    create_access_token,
    decode_access_token,
    dummy_password_hash,
    hash_password,
    verify_password,
)
from fleetdesk.models.user import Role, User
from fleetdesk.schemas.auth import CurrentUser
from fleetdesk.services.errors import (
    DuplicateUserError,
    ForbiddenError,
    InternalError,
    InvalidCredentialsError,
    InvalidTokenError,
)
from fleetdesk.services.user_store import UserStore

if TYPE_CHECKING:
    from fleetdesk.core.config import Settings

logger = logging.getLogger(__name__)

# Higher rank satisfies every lower requirement. Every Role must appear here.
ROLE_RANK: dict[Role, int] = {
    Role.USER: 0,
    Role.ADMIN: 1,
}


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: User


def parse_bearer(authorization: str | None) -> str:
    """Extract the token from an 'Authorization: Bearer <token>' header value."""
    if not authorization or not authorization.strip():
        raise InvalidTokenError("missing_header")
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise InvalidTokenError("malformed_header")
    return parts[1]


def role_satisfies(role: Role, required: Role | None) -> bool:
    if required is None:
        return True
    return ROLE_RANK[role] >= ROLE_RANK[required]


def _utc_now() -> datetime:
    return datetime.now(UTC)


class AuthService:
    """Login, register, verify_token and authorize over one request's UserStore."""

    def __init__(
        self,
        store: UserStore,
        settings: "Settings",
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._settings = settings
        self._clock = clock

    async def login(self, username: str, password: str) -> LoginResult:
        """
        Check credentials and issue a session token.

        A missing user is verified against a dummy hash so both failure
        paths do the same bcrypt work and raise the same error.
        """
        user = await self._store.get_by_username(username)
        if user is not None:
            hashed = user.password_hash
        else:
            hashed = await asyncio.to_thread(
                dummy_password_hash, self._settings.BCRYPT_ROUNDS
            )
        password_ok = await asyncio.to_thread(verify_password, password, hashed)
        if user is None or not password_ok:
            reason = "unknown_user" if user is None else "bad_password"
            logger.warning(
                "Login failed: %s",
                reason,
                extra={"username": username, "reason": reason},
            )
            raise InvalidCredentialsError()

        token = create_access_token(
            user_id=user.id,
            username=user.username,
            role=user.role,
            settings=self._settings,
            now=self._clock(),
        )
        logger.info("Login succeeded", extra={"user_id": user.id, "username": user.username})
        return LoginResult(token=token, user=user)

    async def register(self, username: str, email: str, password: str) -> User:
        """Create a user with role 'user'. Does not log the new user in."""
        if await self._store.exists_username_or_email(username, email):
            logger.info("Registration rejected: duplicate", extra={"username": username})
            raise DuplicateUserError()

        try:
            password_hash = await asyncio.to_thread(
                hash_password, password, self._settings.BCRYPT_ROUNDS
            )
        except Exception as e:
            logger.exception("Password hashing failed", extra={"username": username})
            raise InternalError() from e

        # Concurrent registrations can both pass the pre-check; the unique
        # constraints reject the loser and the store raises DuplicateUserError.
        user = await self._store.add(username, email, password_hash, role=Role.USER)
        logger.info("User registered", extra={"user_id": user.id, "username": user.username})
        return user

    async def verify_token(self, token: str) -> User:
        """Check signature and expiry, then re-read the user so the role is current."""
        try:
            claims = decode_access_token(token, self._settings, now=self._clock())
        except TokenError as e:
            logger.info("Token rejected: %s", e.reason, extra={"reason": e.reason})
            raise InvalidTokenError(e.reason) from e

        user = await self._store.get_by_id(claims.user_id)
        if user is None:
            logger.info(
                "Token rejected: %s",
                "unknown_user",
                extra={"reason": "unknown_user", "user_id": claims.user_id},
            )
            raise InvalidTokenError("unknown_user")
        return user

    async def authorize(
        self,
        authorization: str | None,
        required_role: Role | None = None,
    ) -> CurrentUser:
        """
        Authorization gate for one request.

        Missing/malformed header or any token failure raises InvalidTokenError
        (401). A known user below required_role raises ForbiddenError (403).
        The returned CurrentUser carries the live role, not the token's.
        """
        try:
            token = parse_bearer(authorization)
        except InvalidTokenError as e:
            logger.info("Token rejected: %s", e.reason, extra={"reason": e.reason})
            raise

        user = await self.verify_token(token)
        current = CurrentUser.model_validate(user)
        if not role_satisfies(current.role, required_role):
            logger.info(
                "Insufficient role: %s, requires %s",
                current.role.value,
                required_role.value if required_role else None,
                extra={
                    "user_id": current.id,
                    "role": current.role.value,
                    "required_role": required_role.value if required_role else None,
                },
            )
            raise ForbiddenError()
        return current
