"""Management messages: list for everyone signed in, create/update/delete for admins."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.models.message import ManagementMessage
from fleetdesk.schemas.auth import CurrentUser
from fleetdesk.schemas.messages import MessageCreate, MessageUpdate
from fleetdesk.services.errors import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)


async def list_messages(session: AsyncSession) -> list[ManagementMessage]:
    result = await session.execute(
        select(ManagementMessage).order_by(
            ManagementMessage.created_at.desc(), ManagementMessage.id.desc()
        )
    )
    return list(result.scalars().all())


async def create_message(
    session: AsyncSession,
    body: MessageCreate,
    actor: CurrentUser,
) -> ManagementMessage:
    message = ManagementMessage(
        title=body.title,
        content=body.content,
        type=body.type,
        author=body.author,
        is_read=False,
    )
    session.add(message)
    await session.commit()
    logger.info("Message created", extra={"message_id": message.id, "created_by": actor.id})
    return message


async def _get_or_404(session: AsyncSession, message_id: int) -> ManagementMessage:
    result = await session.execute(
        select(ManagementMessage).where(ManagementMessage.id == message_id)
    )
    message = result.scalar_one_or_none()
    if message is None:
        raise NotFoundError("Message not found.")
    return message


async def update_message(
    session: AsyncSession,
    message_id: int,
    body: MessageUpdate,
    actor: CurrentUser,
) -> ManagementMessage:
    """Apply only the fields the client sent; updated_at is bumped by the model."""
    changes = body.model_dump(exclude_none=True)
    if not changes:
        raise InvalidInputError("No fields to update.")

    message = await _get_or_404(session, message_id)
    for field, value in changes.items():
        setattr(message, field, value)
    await session.commit()
    logger.info(
        "Message updated",
        extra={"message_id": message_id, "fields": sorted(changes), "updated_by": actor.id},
    )
    return message


async def delete_message(
    session: AsyncSession,
    message_id: int,
    actor: CurrentUser,
) -> None:
    message = await _get_or_404(session, message_id)
    await session.delete(message)
    await session.commit()
    logger.info("Message deleted", extra={"message_id": message_id, "deleted_by": actor.id})
