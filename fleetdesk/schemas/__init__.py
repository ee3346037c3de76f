"""Pydantic request/response schemas."""

from fleetdesk.schemas.auth import (
    CurrentUser,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    TokenClaims,
    UserEnvelope,
    UserPublic,
)
from fleetdesk.schemas.common import ErrorResponse, MessageResponse
from fleetdesk.schemas.health import HealthResponse
from fleetdesk.schemas.messages import (
    MessageCreate,
    MessageEnvelope,
    MessageOut,
    MessagesListResponse,
    MessageUpdate,
)
from fleetdesk.schemas.users import UsersListResponse

__all__ = [
    "CurrentUser",
    "ErrorResponse",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageCreate",
    "MessageEnvelope",
    "MessageOut",
    "MessageResponse",
    "MessageUpdate",
    "MessagesListResponse",
    "RegisterRequest",
    "TokenClaims",
    "UserEnvelope",
    "UserPublic",
    "UsersListResponse",
]
