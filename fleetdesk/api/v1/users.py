"""Admin-only user management."""

from typing import Annotated

from fastapi import APIRouter, Depends

from fleetdesk.api.v1.auth import get_user_store, require_admin
from fleetdesk.schemas.auth import CurrentUser, UserPublic
from fleetdesk.schemas.common import MessageResponse
from fleetdesk.schemas.users import UsersListResponse
from fleetdesk.services.user_store import UserStore
from fleetdesk.services.users import delete_user, list_users

router = APIRouter()


@router.get("", response_model=UsersListResponse)
async def get_users(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    store: Annotated[UserStore, Depends(get_user_store)],
) -> UsersListResponse:
    """List all users, newest first (admin only)."""
    users = await list_users(store)
    return UsersListResponse(users=[UserPublic.model_validate(u) for u in users])


@router.delete("/{user_id}", response_model=MessageResponse)
async def remove_user(
    user_id: int,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    store: Annotated[UserStore, Depends(get_user_store)],
) -> MessageResponse:
    """Delete a user (admin only). Deleting your own account is rejected with 400."""
    await delete_user(store, actor=admin, target_id=user_id)
    return MessageResponse(message="User deleted.")
