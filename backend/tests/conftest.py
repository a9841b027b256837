"""Pytest configuration and fixtures."""

import os

# Settings are read once at import of lectio.main
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret")
os.environ.setdefault("ANTHROPIC_API_KEY", "test-key")
os.environ.setdefault("ENVIRONMENT", "development")

from collections.abc import AsyncGenerator, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from lectio.api.rate_limit import FixedWindowRateLimiter
from lectio.config import get_settings
from lectio.db.base import Base
from lectio.db.models import (
    BibleNote,
    BibleReadingProgress,
    BibleReadingSettings,
    NoteTag,
    NoteVerseReference,
    Tag,
    User,
    UserReadingPlan,
    UserReadingStats,
    VerseBookmark,
    VerseHighlight,
    VerseLove,
)
from lectio.db.session import create_session_factory
from lectio.main import create_app
from lectio.services.background import BackgroundTaskSet
from lectio.services.gateway import Completion, Turn


@dataclass
class GatewayCall:
    system_prompt: str
    history: list[Turn]
    user_message: str
    max_tokens: int | None
    temperature: float | None


@dataclass
class FakeGateway:
    """Records every call and answers with canned text."""

    reply: str = "Consider [John 3:16] and the grace shown there."
    greeting: str = "Welcome! How can I help with your study today?"
    token_count: int = 42
    error: Exception | None = None
    calls: list[GatewayCall] = field(default_factory=list)

    async def complete(
        self,
        system_prompt: str,
        history: Sequence[Turn],
        user_message: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> Completion:
        self.calls.append(GatewayCall(system_prompt, list(history), user_message, max_tokens, temperature))
        if self.error is not None:
            raise self.error
        is_greeting = not history and user_message.startswith("Generate a personalized greeting")
        text = self.greeting if is_greeting else self.reply
        return Completion(text=text, token_count=self.token_count)


@pytest.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed sqlite so concurrent context reads get their own connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'lectio.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
async def small_pool(engine: AsyncEngine) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Two connections, no overflow and a short checkout timeout, on the same database."""
    small = create_async_engine(engine.url, pool_size=2, max_overflow=0, pool_timeout=2)
    yield create_session_factory(small)
    await small.dispose()


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def user(session_factory) -> User:
    async with session_factory() as session:
        user = User(
            id=uuid4(),
            email="ruth@example.com",
            first_name="Ruth",
            last_name="Moab",
            username="ruth",
        )
        session.add(user)
        await session.commit()
        return user


@pytest.fixture
async def other_user(session_factory) -> User:
    async with session_factory() as session:
        user = User(id=uuid4(), email="boaz@example.com", first_name="Boaz", username="boaz")
        session.add(user)
        await session.commit()
        return user


def make_token(user_id: UUID, *, audience: str = "authenticated", expires_in: int = 3600) -> str:
    settings = get_settings()
    payload = {
        "sub": str(user_id),
        "aud": audience,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, settings.auth_jwt_secret, algorithm=settings.auth_jwt_algorithm)


@pytest.fixture
def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user.id)}"}


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def app(session_factory, gateway: FakeGateway) -> FastAPI:
    """Application wired to the test database; the lifespan does not run under ASGITransport."""
    app = create_app(get_settings())
    app.state.session_factory = session_factory
    app.state.model_gateway = gateway
    app.state.background_tasks = BackgroundTaskSet()
    app.state.rate_limiter = FixedWindowRateLimiter(enabled=False)
    return app


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    await app.state.background_tasks.drain(timeout=5)


@pytest.fixture
def token_for():
    """Factory for signed tokens, e.g. ``token_for(user.id, expires_in=-10)``."""
    return make_token


@pytest.fixture
async def study_data(session_factory, user: User) -> User:
    """Reading position, notes and verse interactions for ``user``."""
    now = datetime.now(timezone.utc)
    async with session_factory() as session:
        note = BibleNote(
            user_id=user.id,
            title="Grace in Romans",
            content={
                "type": "doc",
                "content": [
                    {"type": "paragraph", "content": [{"type": "text", "text": "Justified by faith alone."}]}
                ],
            },
            created_at=now,
        )
        session.add_all(
            [
                BibleReadingProgress(
                    user_id=user.id,
                    version_id="de4e12af7f28f599-02",
                    version_abbreviation="NIV",
                    book_id="ROM",
                    book_name="Romans",
                    current_chapter=5,
                    current_verse=1,
                    updated_at=now,
                ),
                BibleReadingSettings(
                    user_id=user.id,
                    preferred_version_abbreviation="NIV",
                    auto_play_audio=True,
                    font_size="large",
                    reading_mode="dark",
                ),
                UserReadingPlan(
                    user_id=user.id, enabled=True, plan_duration=365, current_day=40, completed_days=38
                ),
                UserReadingStats(
                    user_id=user.id,
                    current_level=3,
                    current_streak=7,
                    total_chapters_read=120,
                    total_achievements_unlocked=4,
                ),
                note,
                VerseHighlight(
                    user_id=user.id, book_id="ROM", chapter=5, verse_number=8, color="yellow"
                ),
                VerseBookmark(
                    user_id=user.id,
                    book_id="JHN",
                    book_name="John",
                    chapter=3,
                    verse_number=16,
                    version_abbreviation="NIV",
                ),
                VerseLove(
                    user_id=user.id,
                    book_id="PSA",
                    book_name="Psalms",
                    chapter=23,
                    verse_number=1,
                    version_abbreviation="NIV",
                ),
            ]
        )
        await session.flush()
        tag = Tag(user_id=user.id, name="Romans", color="#336699")
        session.add(tag)
        await session.flush()
        session.add_all(
            [
                NoteTag(note_id=note.id, tag_id=tag.id, user_id=user.id),
                NoteVerseReference(
                    note_id=note.id,
                    user_id=user.id,
                    book_id="ROM",
                    book_name="Romans",
                    chapter=5,
                    verse_number=1,
                    verse_text="Therefore, since we have been justified through faith...",
                    version_abbreviation="NIV",
                    is_quoted=True,
                ),
            ]
        )
        await session.commit()
    return user
