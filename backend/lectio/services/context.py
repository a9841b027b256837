"""User context aggregation for chat prompts and session snapshots."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from sqlalchemy import func, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lectio.db.models import (
    BibleNote,
    BibleReadingProgress,
    BibleReadingSettings,
    ChatMessage,
    ContextType,
    LearningProfileEntry,
    User,
    UserAchievement,
    UserReadingPlan,
    UserReadingStats,
    VerseBookmark,
    VerseHighlight,
    VerseLove,
)
from lectio.errors import UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class UserContext:
    """
    Everything known about a user's study activity at one moment.

    Rows are detached ORM instances loaded with ``expire_on_commit=False``.
    Fields whose read failed are left empty.
    """

    user_id: UUID
    profile: User | None = None
    reading_progress: BibleReadingProgress | None = None
    reading_settings: BibleReadingSettings | None = None
    reading_plan: UserReadingPlan | None = None
    reading_stats: UserReadingStats | None = None
    notes: list[BibleNote] = field(default_factory=list)
    highlights: list[VerseHighlight] = field(default_factory=list)
    bookmarks: list[VerseBookmark] = field(default_factory=list)
    loved_verses: list[VerseLove] = field(default_factory=list)
    achievements: list[UserAchievement] = field(default_factory=list)
    learning_profile: list[LearningProfileEntry] = field(default_factory=list)

    @property
    def current_book(self) -> str | None:
        return self.reading_progress.book_id if self.reading_progress else None

    @property
    def current_chapter(self) -> int | None:
        return self.reading_progress.current_chapter if self.reading_progress else None

    @property
    def current_version(self) -> str | None:
        return self.reading_progress.version_abbreviation if self.reading_progress else None


@dataclass
class ConversationHistory:
    messages: list[ChatMessage]
    total_tokens: int


Reader = Callable[[AsyncSession, UUID], Awaitable[Any]]


class ContextAggregator:
    """
    Fan-out reader for ``UserContext``.

    Each read runs on its own session because an AsyncSession cannot execute
    statements concurrently. At most ``max_concurrency`` of those sessions hold
    a pooled connection at once. Profile and reading position are critical: if
    either fails the whole gather fails. Any other failure is a degraded read,
    logged and left empty.
    """

    CRITICAL_FIELDS = frozenset({"profile", "reading_progress"})

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        recent_limit: int = 20,
        max_concurrency: int = 4,
    ):
        self.session_factory = session_factory
        self.recent_limit = recent_limit
        self._slots = asyncio.Semaphore(max_concurrency)

    async def gather(self, user_id: UUID, session_id: UUID | None = None) -> UserContext:
        """
        Load the user's context.

        Args:
            user_id: Owner of every row read
            session_id: Chat session the context is for (logging only)

        Raises:
            UpstreamError: If a critical read fails
        """
        readers: dict[str, Reader] = {
            "profile": self._get_profile,
            "reading_progress": self._get_reading_progress,
            "reading_settings": self._get_reading_settings,
            "reading_plan": self._get_reading_plan,
            "notes": self._get_notes,
            "highlights": self._get_highlights,
            "bookmarks": self._get_bookmarks,
            "loved_verses": self._get_loved_verses,
            "reading_stats": self._get_reading_stats,
            "achievements": self._get_achievements,
            "learning_profile": self._get_learning_profile,
        }

        results = await asyncio.gather(
            *(self._run(reader, user_id) for reader in readers.values()),
            return_exceptions=True,
        )

        context = UserContext(user_id=user_id)
        for name, result in zip(readers, results):
            if isinstance(result, Exception):
                if name in self.CRITICAL_FIELDS:
                    logger.error(
                        "Critical context read %s failed for user %s (session %s): %s",
                        name, user_id, session_id, result,
                    )
                    raise UpstreamError("Failed to load user context") from result
                logger.warning(
                    "Degraded context read %s for user %s (session %s): %s",
                    name, user_id, session_id, result,
                )
                continue
            setattr(context, name, result)

        return context

    async def _run(self, reader: Reader, user_id: UUID) -> Any:
        async with self._slots, self.session_factory() as db:
            return await reader(db, user_id)

    # =========================================================================
    # READS
    # =========================================================================

    async def _get_profile(self, db: AsyncSession, user_id: UUID) -> User | None:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def _get_reading_progress(
        self, db: AsyncSession, user_id: UUID
    ) -> BibleReadingProgress | None:
        result = await db.execute(
            select(BibleReadingProgress)
            .where(BibleReadingProgress.user_id == user_id)
            .order_by(BibleReadingProgress.updated_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _get_reading_settings(
        self, db: AsyncSession, user_id: UUID
    ) -> BibleReadingSettings | None:
        result = await db.execute(
            select(BibleReadingSettings).where(BibleReadingSettings.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def _get_reading_plan(self, db: AsyncSession, user_id: UUID) -> UserReadingPlan | None:
        result = await db.execute(select(UserReadingPlan).where(UserReadingPlan.user_id == user_id))
        return result.scalar_one_or_none()

    async def _get_reading_stats(self, db: AsyncSession, user_id: UUID) -> UserReadingStats | None:
        result = await db.execute(
            select(UserReadingStats).where(UserReadingStats.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def _get_notes(self, db: AsyncSession, user_id: UUID) -> list[BibleNote]:
        result = await db.execute(
            select(BibleNote)
            .where(BibleNote.user_id == user_id)
            .order_by(BibleNote.created_at.desc())
            .limit(self.recent_limit)
        )
        return list(result.scalars().all())

    async def _get_highlights(self, db: AsyncSession, user_id: UUID) -> list[VerseHighlight]:
        result = await db.execute(
            select(VerseHighlight)
            .where(VerseHighlight.user_id == user_id)
            .order_by(VerseHighlight.created_at.desc())
            .limit(self.recent_limit)
        )
        return list(result.scalars().all())

    async def _get_bookmarks(self, db: AsyncSession, user_id: UUID) -> list[VerseBookmark]:
        result = await db.execute(
            select(VerseBookmark)
            .where(VerseBookmark.user_id == user_id)
            .order_by(VerseBookmark.created_at.desc())
            .limit(self.recent_limit)
        )
        return list(result.scalars().all())

    async def _get_loved_verses(self, db: AsyncSession, user_id: UUID) -> list[VerseLove]:
        result = await db.execute(
            select(VerseLove)
            .where(VerseLove.user_id == user_id)
            .order_by(VerseLove.created_at.desc())
            .limit(self.recent_limit)
        )
        return list(result.scalars().all())

    async def _get_achievements(self, db: AsyncSession, user_id: UUID) -> list[UserAchievement]:
        result = await db.execute(
            select(UserAchievement)
            .where(UserAchievement.user_id == user_id)
            .order_by(UserAchievement.unlocked_at.desc())
        )
        return list(result.scalars().all())

    async def _get_learning_profile(
        self, db: AsyncSession, user_id: UUID
    ) -> list[LearningProfileEntry]:
        result = await db.execute(
            select(LearningProfileEntry)
            .where(LearningProfileEntry.user_id == user_id)
            .order_by(LearningProfileEntry.confidence_score.desc())
        )
        return list(result.scalars().all())


# =============================================================================
# SNAPSHOTS & HISTORY
# =============================================================================


def row_to_dict(row: Any) -> dict[str, Any]:
    """Column values of an ORM row, JSON-safe (UUIDs and datetimes as strings)."""
    mapper = inspect(row).mapper
    return jsonable_encoder({attr.key: getattr(row, attr.key) for attr in mapper.column_attrs})


def snapshot_payloads(context: UserContext) -> Iterator[tuple[ContextType, Any]]:
    """Yield ``(context_type, data)`` for each non-empty snapshot category."""
    categories: list[tuple[ContextType, Any]] = [
        (ContextType.NOTES, [row_to_dict(note) for note in context.notes]),
        (ContextType.HIGHLIGHTS, [row_to_dict(h) for h in context.highlights]),
        (ContextType.BOOKMARKS, [row_to_dict(b) for b in context.bookmarks]),
        (
            ContextType.READING_PROGRESS,
            row_to_dict(context.reading_progress) if context.reading_progress else {},
        ),
        (ContextType.VERSE_INTERACTIONS, [row_to_dict(v) for v in context.loved_verses]),
    ]
    for context_type, data in categories:
        if data:
            yield context_type, data


async def load_history(db: AsyncSession, session_id: UUID, limit: int = 50) -> ConversationHistory:
    """
    The session's most recent ``limit`` messages in chronological order.

    ``total_tokens`` sums tokens_used across every message in the session.
    """
    result = await db.execute(
        select(ChatMessage)
        .where(ChatMessage.session_id == session_id)
        .order_by(ChatMessage.created_at.desc())
        .limit(limit)
    )
    messages = list(reversed(result.scalars().all()))

    total = await db.execute(
        select(func.coalesce(func.sum(ChatMessage.tokens_used), 0)).where(
            ChatMessage.session_id == session_id
        )
    )
    return ConversationHistory(messages=messages, total_tokens=int(total.scalar_one()))
