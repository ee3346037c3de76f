"""Schemas for management messages."""

import datetime as dt

from pydantic import AliasChoices, BaseModel, Field

from fleetdesk.models.message import MessageType


class MessageCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    type: MessageType = MessageType.INFO
    author: str = Field(..., min_length=1, max_length=100)


class MessageUpdate(BaseModel):
    """Partial update; at least one field must be present."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = Field(default=None, min_length=1)
    type: MessageType | None = None
    author: str | None = Field(default=None, min_length=1, max_length=100)
    is_read: bool | None = Field(
        default=None,
        validation_alias=AliasChoices("isRead", "is_read"),
    )


class MessageOut(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    title: str
    content: str
    type: MessageType
    date: dt.date
    author: str
    is_read: bool = Field(serialization_alias="isRead")
    created_at: dt.datetime = Field(serialization_alias="createdAt")
    updated_at: dt.datetime = Field(serialization_alias="updatedAt")


class MessagesListResponse(BaseModel):
    messages: list[MessageOut]


class MessageEnvelope(BaseModel):
    """Response for create and update: acknowledgement plus the stored message."""

    message: str
    data: MessageOut
