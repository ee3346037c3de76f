"""Management messages: read by any signed-in user, written by admins."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.api.v1.auth import get_current_user, require_admin
from fleetdesk.core.database import get_db
from fleetdesk.schemas.auth import CurrentUser
from fleetdesk.schemas.common import MessageResponse
from fleetdesk.schemas.messages import (
    MessageCreate,
    MessageEnvelope,
    MessageOut,
    MessagesListResponse,
    MessageUpdate,
)
from fleetdesk.services import messages as message_service

router = APIRouter()


@router.get("", response_model=MessagesListResponse)
async def get_messages(
    _user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MessagesListResponse:
    rows = await message_service.list_messages(db)
    return MessagesListResponse(messages=[MessageOut.model_validate(m) for m in rows])


@router.post("", response_model=MessageEnvelope, status_code=status.HTTP_201_CREATED)
async def post_message(
    body: MessageCreate,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MessageEnvelope:
    message = await message_service.create_message(db, body, actor=admin)
    return MessageEnvelope(message="Message created.", data=MessageOut.model_validate(message))


@router.put("/{message_id}", response_model=MessageEnvelope)
async def put_message(
    message_id: int,
    body: MessageUpdate,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MessageEnvelope:
    """Partial update; send only the fields to change (title, content, type, author, isRead)."""
    message = await message_service.update_message(db, message_id, body, actor=admin)
    return MessageEnvelope(message="Message updated.", data=MessageOut.model_validate(message))


@router.delete("/{message_id}", response_model=MessageResponse)
async def remove_message(
    message_id: int,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MessageResponse:
    await message_service.delete_message(db, message_id, actor=admin)
    return MessageResponse(message="Message deleted.")
