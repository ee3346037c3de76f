"""Password hashing and JWT creation/verification for authentication."""

from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt
from pydantic import ValidationError

from fleetdesk.models.user import Role
from fleetdesk.schemas.auth import TokenClaims

if TYPE_CHECKING:
    from fleetdesk.core.config import Settings

# Bcrypt cost (rounds) when settings do not override it.
BCRYPT_ROUNDS = 12

# bcrypt only looks at the first 72 bytes; newer releases raise instead of truncating.
BCRYPT_MAX_BYTES = 72

# Min/max lengths for request validation (shared by schemas and the bootstrap CLI).
USERNAME_MIN_LEN = 1
USERNAME_MAX_LEN = 50
EMAIL_MAX_LEN = 100
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

_TIMING_DUMMY_PASSWORD = "fleetdesk-timing-equalizer"


class TokenError(Exception):
    """Base class for token verification failures. reason is for server-side logs only."""

    reason = "invalid"

    def __init__(self, message: str = "") -> None:
        self.message = message or self.reason
        super().__init__(self.message)


class MalformedTokenError(TokenError):
    """Not a JWT, undecodable, or carrying missing/ill-typed claims."""

    reason = "malformed"


class BadSignatureError(TokenError):
    """Signature does not match the configured secret (tampered token or rotated secret)."""

    reason = "bad_signature"


class ExpiredTokenError(TokenError):
    """Signature is valid but exp is not in the future."""

    reason = "expired"


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash. Never raises on mismatch."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache
def dummy_password_hash(rounds: int = BCRYPT_ROUNDS) -> str:
    """
    Hash checked against when the username does not exist.

    Running a full bcrypt verification either way keeps "unknown user" and
    "wrong password" indistinguishable by response time.
    """
    return hash_password(_TIMING_DUMMY_PASSWORD, rounds=rounds)


def create_access_token(
    user_id: int,
    username: str,
    role: Role | str,
    settings: "Settings",
    now: datetime | None = None,
) -> str:
    """Create a signed JWT carrying sub (user id), username, role, iat and exp."""
    issued_at = now or datetime.now(UTC)
    expires_at = issued_at + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "username": username,
        "role": Role(role).value,
        "iat": issued_at,
        "exp": expires_at,
    }
    return jwt.encode(
        payload,
        settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(
    token: str,
    settings: "Settings",
    now: datetime | None = None,
) -> TokenClaims:
    """
    Verify a JWT and return its claims.

    Order of checks: signature, then expiry, then claim shapes. Raises
    BadSignatureError, ExpiredTokenError or MalformedTokenError; callers
    must collapse all three into one client-facing outcome.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
            # Expiry is checked below against an injectable clock.
            options={
                "verify_exp": False,
                "verify_iat": False,
                "require": ["sub", "iat", "exp"],
            },
        )
    except jwt.InvalidSignatureError as e:
        raise BadSignatureError() from e
    except jwt.PyJWTError as e:
        raise MalformedTokenError(str(e)) from e

    exp = payload.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        raise MalformedTokenError("exp is not a timestamp")
    current = now or datetime.now(UTC)
    if exp <= current.timestamp():
        raise ExpiredTokenError()

    try:
        return TokenClaims(
            user_id=payload["sub"],
            username=payload.get("username"),
            role=payload.get("role"),
            issued_at=payload["iat"],
            expires_at=exp,
        )
    except ValidationError as e:
        raise MalformedTokenError("invalid claims") from e
