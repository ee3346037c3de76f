"""Schemas for admin user management."""

from pydantic import BaseModel

from fleetdesk.schemas.auth import UserPublic


class UsersListResponse(BaseModel):
    """Response for GET /users (admin only)."""

    users: list[UserPublic]
