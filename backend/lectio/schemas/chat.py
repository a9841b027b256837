"""Pydantic schemas for chat sessions and messages."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from lectio.db.models import ChatMode, ChatRole
from lectio.schemas.base import BaseSchema, IDMixin, TimestampMixin


# Request schemas
class ChatSessionCreate(BaseSchema):
    """Request to create a chat session. ``ai_version`` is accepted for ``mode``."""

    mode: ChatMode = Field(validation_alias=AliasChoices("mode", "ai_version"))
    title: str | None = Field(None, min_length=1, max_length=255)
    context_book_id: str | None = None
    context_chapter: int | None = Field(None, ge=1)
    context_version_id: str | None = None


class ChatSessionUpdate(BaseSchema):
    """Request to update a session. The mode is fixed, so it is rejected."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(None, min_length=1, max_length=255)
    is_active: bool | None = None

    @field_validator("title", "is_active", mode="before")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        # Omitted fields are left alone; only an explicit null lands here
        if value is None:
            raise ValueError("may not be null")
        return value


class ChatMessageCreate(BaseModel):
    """Request to send a chat message."""

    content: str = Field(..., min_length=1, max_length=10000)


# Response schemas
class ChatMessageRead(BaseSchema, IDMixin):
    """Chat message response."""

    session_id: UUID
    role: ChatRole
    content: str
    formatted_content: dict[str, Any] | None = None
    # ORM attribute is message_metadata; "metadata" belongs to the declarative base
    metadata: dict[str, Any] | None = Field(
        None, validation_alias=AliasChoices("message_metadata", "metadata")
    )
    tokens_used: int
    created_at: datetime


class ContextSnapshotRead(BaseSchema, IDMixin):
    """Context snapshot response."""

    session_id: UUID
    context_type: str
    context_data: Any
    created_at: datetime


class ChatSessionRead(BaseSchema, IDMixin, TimestampMixin):
    """Chat session response."""

    user_id: UUID
    mode: str
    title: str
    context_book_id: str | None = None
    context_chapter: int | None = None
    context_version_id: str | None = None
    is_active: bool
    last_message_at: datetime


class ChatSessionSummary(ChatSessionRead):
    """Session in a list, with its message count."""

    message_count: int = 0


class ChatSessionDetail(ChatSessionRead):
    """Session with its most recent messages and context snapshots."""

    messages: list[ChatMessageRead]
    context_snapshots: list[ContextSnapshotRead]
    message_count: int


class MessageReply(BaseModel):
    """Result of a chat turn, serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ai_response: str
    metadata: dict[str, Any]
    formatted_content: dict[str, Any]
    tokens_used: int


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class MessagePage(BaseModel):
    """Page of messages."""

    messages: list[ChatMessageRead]
    pagination: Pagination
