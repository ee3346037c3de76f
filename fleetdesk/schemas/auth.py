"""Request/response schemas for auth endpoints and token claims."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from fleetdesk.models.user import Role


def _reject_surrounding_whitespace(value: str) -> str:
    if value != value.strip():
        raise ValueError("username must not start or end with whitespace")
    return value


class LoginRequest(BaseModel):
    """Credentials for login. Lengths are loose so every bad login gets the same 401."""

    username: str = Field(..., min_length=1, max_length=50, description="Username")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class RegisterRequest(BaseModel):
    """New account. There is deliberately no role field; unknown fields are dropped."""

    model_config = {"extra": "ignore"}

    username: str = Field(..., min_length=1, max_length=50, description="Username")
    email: EmailStr = Field(..., max_length=100, description="Email address")
    password: str = Field(..., min_length=8, max_length=128, description="Password")

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        return _reject_surrounding_whitespace(v)


class TokenClaims(BaseModel):
    """Claims embedded in a session token: a snapshot of identity at issuance."""

    user_id: int
    username: str
    role: Role
    issued_at: datetime
    expires_at: datetime


class CurrentUser(BaseModel):
    """Authenticated user (id, username, live role) handed to route bodies by the gate."""

    model_config = {"from_attributes": True}

    id: int
    username: str
    role: Role


class UserPublic(BaseModel):
    """User as returned to clients (no password hash)."""

    model_config = {"from_attributes": True}

    id: int
    username: str
    email: str
    role: Role
    created_at: datetime = Field(serialization_alias="createdAt")


class LoginResponse(BaseModel):
    """Token plus the redacted user view returned after a successful login."""

    message: str = "Login successful."
    token: str = Field(..., description="JWT bearer token; send as 'Authorization: Bearer <token>'")
    user: UserPublic


class UserEnvelope(BaseModel):
    """Response for register and verify."""

    message: str
    user: UserPublic
