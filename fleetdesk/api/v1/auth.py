"""Login, registration, token verification and the auth dependencies (get_current_user, require_admin)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, status
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.core.config import Settings, get_settings
from fleetdesk.core.database import get_db
from fleetdesk.models.user import Role
from fleetdesk.schemas.auth import (
    CurrentUser,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    UserEnvelope,
    UserPublic,
)
from fleetdesk.services.auth import AuthService, parse_bearer
from fleetdesk.services.user_store import UserStore

router = APIRouter()


def get_user_store(
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UserStore:
    return UserStore(db, timeout=settings.DATABASE_TIMEOUT_SEC)


def get_auth_service(
    store: Annotated[UserStore, Depends(get_user_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthService:
    return AuthService(store, settings)


async def get_current_user(
    auth: Annotated[AuthService, Depends(get_auth_service)],
    authorization: Annotated[str | None, Header()] = None,
) -> CurrentUser:
    """Dependency: require a valid Bearer token; returns the user with their live role. 401 otherwise."""
    return await auth.authorize(authorization)


async def require_admin(
    auth: Annotated[AuthService, Depends(get_auth_service)],
    authorization: Annotated[str | None, Header()] = None,
) -> CurrentUser:
    """Dependency: require an authenticated user whose stored role is 'admin'. 401 or 403 otherwise."""
    return await auth.authorize(authorization, required_role=Role.ADMIN)


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> LoginResponse:
    """
    Authenticate with username and password; returns a JWT valid for 7 days.
    Include the token in the Authorization header as: Bearer <token>
    """
    result = await auth.login(body.username, body.password)
    return LoginResponse(token=result.token, user=UserPublic.model_validate(result.user))


@router.post("/register", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> UserEnvelope:
    """Create an account with role 'user'. Log in separately afterwards."""
    user = await auth.register(body.username, str(body.email), body.password)
    return UserEnvelope(message="User created.", user=UserPublic.model_validate(user))


@router.get("/verify", response_model=UserEnvelope)
async def verify(
    auth: Annotated[AuthService, Depends(get_auth_service)],
    authorization: Annotated[str | None, Header()] = None,
) -> UserEnvelope:
    """Validate the bearer token and return the current state of its user."""
    user = await auth.verify_token(parse_bearer(authorization))
    return UserEnvelope(message="Token is valid.", user=UserPublic.model_validate(user))
