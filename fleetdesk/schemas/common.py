"""Shared response bodies."""

from typing import Any

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Plain acknowledgement with a human-readable message."""

    message: str


class ErrorResponse(BaseModel):
    """Body of every failed request."""

    message: str = Field(..., description="Human-readable error message")
    errors: list[dict[str, Any]] | None = Field(
        default=None,
        description="Field-level problems, only for request validation failures",
    )
