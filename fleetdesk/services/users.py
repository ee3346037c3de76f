"""Admin user management on top of the credential store."""

import logging

from fleetdesk.models.user import User
from fleetdesk.schemas.auth import CurrentUser
from fleetdesk.services.errors import InvalidInputError, NotFoundError
from fleetdesk.services.user_store import UserStore

logger = logging.getLogger(__name__)


async def list_users(store: UserStore) -> list[User]:
    """All users, newest first."""
    return await store.list_all()


async def delete_user(store: UserStore, actor: CurrentUser, target_id: int) -> None:
    """
    Delete target_id on behalf of actor.

    An admin cannot delete their own account; that is rejected before the
    store is touched.
    """
    if target_id == actor.id:
        logger.info("Self-delete rejected", extra={"user_id": actor.id})
        raise InvalidInputError("Cannot delete your own account.")

    user = await store.get_by_id(target_id)
    if user is None:
        raise NotFoundError("User not found.")

    await store.delete(user)
    logger.info(
        "User deleted",
        extra={"user_id": target_id, "username": user.username, "deleted_by": actor.id},
    )
