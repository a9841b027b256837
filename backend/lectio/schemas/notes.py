"""Note schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from lectio.schemas.base import BaseSchema, IDMixin, TimestampMixin


class NoteVerseReferenceRead(BaseSchema, IDMixin):
    note_id: UUID
    book_id: str
    book_name: str
    chapter: int
    verse_number: int
    verse_text: str
    version_abbreviation: str
    is_quoted: bool


class TagRead(BaseSchema, IDMixin):
    name: str
    color: str


class NoteRead(BaseSchema, IDMixin, TimestampMixin):
    """Schema for reading note data, with its verses and tags."""

    user_id: UUID
    title: str
    content: dict[str, Any] | None = None
    verse_references: list[NoteVerseReferenceRead] = Field(default_factory=list)
    tags: list[TagRead] = Field(default_factory=list)
    verse_count: int = 0
    tag_count: int = 0
