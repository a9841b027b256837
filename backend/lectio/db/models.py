"""
SQLAlchemy 2.0 Models for Lectio.

Uses modern declarative syntax with Mapped[] type annotations.
All models use UUID primary keys and proper relationship definitions.

Study tables (users, reading progress, notes, verse interactions, gamification)
are written by the reader apps and only read here. Chat tables and the learning
profile are owned by this service.

Column types are chosen to compile on PostgreSQL (JSONB, timestamptz) and on
sqlite (JSON), so the same metadata backs migrations and the test database.
"""

from datetime import date, datetime, timezone
from enum import Enum as PyEnum
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lectio.db.base import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _created_at() -> Mapped[datetime]:
    return mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )


def _updated_at() -> Mapped[datetime]:
    return mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )


# =============================================================================
# ENUMS
# =============================================================================


class ChatMode(str, PyEnum):
    """Assistant persona a chat session is locked to."""

    STUDY = "study"
    DEBATE = "debate"
    NOTE_TAKER = "note-taker"
    EXPLAINER = "explainer"
    CUSTOM = "custom"


class ChatRole(str, PyEnum):
    """Role in chat conversation."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ContextType(str, PyEnum):
    """Category of study data captured in a context snapshot."""

    NOTES = "notes"
    HIGHLIGHTS = "highlights"
    BOOKMARKS = "bookmarks"
    READING_PROGRESS = "reading_progress"
    VERSE_INTERACTIONS = "verse_interactions"


class InsightSource(str, PyEnum):
    """Who wrote a learning-profile entry."""

    AUTO = "auto"
    MANUAL = "manual"


# =============================================================================
# USERS & READING
# =============================================================================


class User(Base):
    """
    Public profile of an account managed by the external auth provider.

    The id is the provider's user id (the JWT ``sub`` claim).
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    email: Mapped[Optional[str]] = mapped_column(String(), unique=True, nullable=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(), nullable=True)
    username: Mapped[Optional[str]] = mapped_column(String(), nullable=True)

    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    chat_sessions: Mapped[list["ChatSession"]] = relationship(
        "ChatSession", back_populates="user", cascade="all, delete-orphan"
    )


class BibleReadingProgress(Base):
    """Reading position per book/version; the most recently updated row is current."""

    __tablename__ = "bible_reading_progress"
    __table_args__ = (Index("idx_bible_reading_progress_user_updated", "user_id", "updated_at"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    version_id: Mapped[str] = mapped_column(String(), nullable=False)
    version_abbreviation: Mapped[str] = mapped_column(String(), nullable=False)
    book_id: Mapped[str] = mapped_column(String(), nullable=False)
    book_name: Mapped[str] = mapped_column(String(), nullable=False)
    current_chapter: Mapped[int] = mapped_column(nullable=False, server_default="1")
    current_verse: Mapped[int] = mapped_column(nullable=False, server_default="1")
    chapters_completed: Mapped[int] = mapped_column(nullable=False, server_default="0")
    last_read_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


class BibleReadingSettings(Base):
    """Reader preferences, one row per user."""

    __tablename__ = "bible_reading_settings"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    preferred_version_abbreviation: Mapped[Optional[str]] = mapped_column(String(), nullable=True)
    auto_play_audio: Mapped[bool] = mapped_column(nullable=False, server_default=text("false"))
    font_size: Mapped[str] = mapped_column(String(), nullable=False, server_default="medium")
    reading_mode: Mapped[str] = mapped_column(String(), nullable=False, server_default="light")

    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


class UserReadingPlan(Base):
    """Daily reading plan, one row per user."""

    __tablename__ = "user_reading_plans"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    enabled: Mapped[bool] = mapped_column(nullable=False, server_default=text("false"))
    plan_duration: Mapped[int] = mapped_column(nullable=False, server_default="365")
    current_day: Mapped[int] = mapped_column(nullable=False, server_default="1")
    completed_days: Mapped[int] = mapped_column(nullable=False, server_default="0")
    is_completed: Mapped[bool] = mapped_column(nullable=False, server_default=text("false"))
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


class UserReadingStats(Base):
    """Gamification counters, one row per user."""

    __tablename__ = "user_reading_stats"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    total_xp: Mapped[int] = mapped_column(nullable=False, server_default="0")
    current_level: Mapped[int] = mapped_column(nullable=False, server_default="1")
    current_streak: Mapped[int] = mapped_column(nullable=False, server_default="0")
    longest_streak: Mapped[int] = mapped_column(nullable=False, server_default="0")
    total_chapters_read: Mapped[int] = mapped_column(nullable=False, server_default="0")
    total_achievements_unlocked: Mapped[int] = mapped_column(nullable=False, server_default="0")

    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


class ReadingAchievement(Base):
    """Achievement catalogue entry."""

    __tablename__ = "reading_achievements"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    achievement_key: Mapped[str] = mapped_column(String(), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(), nullable=False)
    points: Mapped[int] = mapped_column(nullable=False, server_default="0")
    tier: Mapped[Optional[str]] = mapped_column(String(), nullable=True)

    created_at: Mapped[datetime] = _created_at()


class UserAchievement(Base):
    """An achievement unlocked by a user."""

    __tablename__ = "user_achievements"
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="unique_user_achievement"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    achievement_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("reading_achievements.id", ondelete="CASCADE"), nullable=False
    )
    unlocked_at: Mapped[datetime] = _created_at()

    achievement: Mapped["ReadingAchievement"] = relationship("ReadingAchievement", lazy="joined")


# =============================================================================
# NOTES & VERSE INTERACTIONS
# =============================================================================


class BibleNote(Base):
    """
    Study note.

    ``content`` is the rich-text editor document (a JSON node tree).
    """

    __tablename__ = "bible_notes"
    __table_args__ = (Index("idx_bible_notes_user_created", "user_id", "created_at"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)

    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    verse_references: Mapped[list["NoteVerseReference"]] = relationship(
        "NoteVerseReference", back_populates="note", cascade="all, delete-orphan"
    )
    note_tags: Mapped[list["NoteTag"]] = relationship(
        "NoteTag", back_populates="note", cascade="all, delete-orphan"
    )


class NoteVerseReference(Base):
    """A verse quoted or referenced inside a note."""

    __tablename__ = "note_verse_references"
    __table_args__ = (Index("idx_note_verse_references_note_id", "note_id"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    note_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("bible_notes.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    book_id: Mapped[str] = mapped_column(String(), nullable=False)
    book_name: Mapped[str] = mapped_column(String(), nullable=False)
    chapter: Mapped[int] = mapped_column(nullable=False)
    verse_number: Mapped[int] = mapped_column(nullable=False)
    verse_text: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    version_abbreviation: Mapped[str] = mapped_column(String(), nullable=False)
    is_quoted: Mapped[bool] = mapped_column(nullable=False, server_default=text("false"))

    created_at: Mapped[datetime] = _created_at()

    note: Mapped["BibleNote"] = relationship("BibleNote", back_populates="verse_references")


class Tag(Base):
    """User-defined label for notes."""

    __tablename__ = "tags"
    __table_args__ = (UniqueConstraint("user_id", "name", name="unique_user_tag_name"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    color: Mapped[str] = mapped_column(String(), nullable=False, server_default="#888888")

    created_at: Mapped[datetime] = _created_at()


class NoteTag(Base):
    """Association between a note and a tag."""

    __tablename__ = "note_tags"
    __table_args__ = (UniqueConstraint("note_id", "tag_id", name="unique_note_tag"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    note_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("bible_notes.id", ondelete="CASCADE"), nullable=False
    )
    tag_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("tags.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    created_at: Mapped[datetime] = _created_at()

    note: Mapped["BibleNote"] = relationship("BibleNote", back_populates="note_tags")
    tag: Mapped["Tag"] = relationship("Tag", lazy="joined")


class VerseHighlight(Base):
    """Colored highlight on a verse."""

    __tablename__ = "verse_highlights"
    __table_args__ = (Index("idx_verse_highlights_user_created", "user_id", "created_at"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    book_id: Mapped[str] = mapped_column(String(), nullable=False)
    chapter: Mapped[int] = mapped_column(nullable=False)
    verse_number: Mapped[int] = mapped_column(nullable=False)
    color: Mapped[str] = mapped_column(String(), nullable=False, server_default="yellow")
    selected_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


class VerseBookmark(Base):
    """Bookmarked verse."""

    __tablename__ = "verse_bookmarks"
    __table_args__ = (Index("idx_verse_bookmarks_user_created", "user_id", "created_at"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    book_id: Mapped[str] = mapped_column(String(), nullable=False)
    book_name: Mapped[str] = mapped_column(String(), nullable=False)
    chapter: Mapped[int] = mapped_column(nullable=False)
    verse_number: Mapped[int] = mapped_column(nullable=False)
    verse_text: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    version_abbreviation: Mapped[str] = mapped_column(String(), nullable=False)

    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


class VerseLove(Base):
    """Verse the user marked as loved."""

    __tablename__ = "verse_loves"
    __table_args__ = (Index("idx_verse_loves_user_created", "user_id", "created_at"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    book_id: Mapped[str] = mapped_column(String(), nullable=False)
    book_name: Mapped[str] = mapped_column(String(), nullable=False)
    chapter: Mapped[int] = mapped_column(nullable=False)
    verse_number: Mapped[int] = mapped_column(nullable=False)
    verse_text: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    version_abbreviation: Mapped[str] = mapped_column(String(), nullable=False)

    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


# =============================================================================
# AI CHAT
# =============================================================================


class ChatSession(Base):
    """
    Conversation with the study assistant.

    The mode is fixed at creation. Deleting a session deletes its messages
    and context snapshots.
    """

    __tablename__ = "ai_chat_sessions"
    __table_args__ = (
        Index("idx_ai_chat_sessions_user_last_message", "user_id", "last_message_at"),
        CheckConstraint(
            "mode IN ('study', 'debate', 'note-taker', 'explainer', 'custom')",
            name="check_ai_chat_sessions_mode",
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    mode: Mapped[str] = mapped_column(String(), nullable=False)
    title: Mapped[str] = mapped_column(String(), nullable=False)

    # Optional anchor: what the user was reading when the session started
    context_book_id: Mapped[Optional[str]] = mapped_column(String(), nullable=True)
    context_chapter: Mapped[Optional[int]] = mapped_column(nullable=True)
    context_version_id: Mapped[Optional[str]] = mapped_column(String(), nullable=True)

    is_active: Mapped[bool] = mapped_column(
        default=True, nullable=False, server_default=text("true")
    )

    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()
    last_message_at: Mapped[datetime] = _created_at()

    user: Mapped["User"] = relationship("User", back_populates="chat_sessions")
    messages: Mapped[list["ChatMessage"]] = relationship(
        "ChatMessage", back_populates="session", cascade="all, delete-orphan"
    )
    context_snapshots: Mapped[list["ChatContextSnapshot"]] = relationship(
        "ChatContextSnapshot", back_populates="session", cascade="all, delete-orphan"
    )


class ChatMessage(Base):
    """
    One turn in a chat session.

    Assistant turns carry the annotated metadata and render hints.
    """

    __tablename__ = "ai_chat_messages"
    __table_args__ = (
        Index("idx_ai_chat_messages_session_created", "session_id", "created_at"),
        CheckConstraint(
            "role IN ('user', 'assistant', 'system')", name="check_ai_chat_messages_role"
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    session_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("ai_chat_sessions.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    formatted_content: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    # "metadata" is reserved on declarative classes
    message_metadata: Mapped[Optional[dict[str, Any]]] = mapped_column(
        "metadata", JSONType, nullable=True
    )
    tokens_used: Mapped[int] = mapped_column(default=0, nullable=False, server_default="0")

    created_at: Mapped[datetime] = _created_at()

    session: Mapped["ChatSession"] = relationship("ChatSession", back_populates="messages")


class ChatContextSnapshot(Base):
    """Point-in-time copy of one category of study data, taken at session creation."""

    __tablename__ = "ai_chat_context_snapshots"
    __table_args__ = (Index("idx_ai_chat_context_snapshots_session_id", "session_id"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    session_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("ai_chat_sessions.id", ondelete="CASCADE"), nullable=False
    )
    context_type: Mapped[str] = mapped_column(String(), nullable=False)
    context_data: Mapped[Any] = mapped_column(JSONType, nullable=False)

    created_at: Mapped[datetime] = _created_at()

    session: Mapped["ChatSession"] = relationship("ChatSession", back_populates="context_snapshots")


class LearningProfileEntry(Base):
    """
    One heuristic insight about a user's study habits.

    Unique per (user, category, key); new evidence overwrites the row.
    """

    __tablename__ = "ai_user_learning_profiles"
    __table_args__ = (
        UniqueConstraint("user_id", "category", "insight_key", name="unique_user_learning_insight"),
        CheckConstraint(
            "confidence_score >= 0 AND confidence_score <= 1",
            name="check_learning_confidence_range",
        ),
        Index("idx_ai_user_learning_profiles_user_id", "user_id"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    category: Mapped[str] = mapped_column(String(), nullable=False)
    insight_key: Mapped[str] = mapped_column(String(), nullable=False)
    insight_value: Mapped[str] = mapped_column(Text, nullable=False)
    confidence_score: Mapped[float] = mapped_column(Float, nullable=False)
    source: Mapped[str] = mapped_column(String(), nullable=False, server_default="auto")

    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()
