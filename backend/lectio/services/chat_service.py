"""Chat orchestration: session creation, greetings and message turns."""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from lectio.config import Settings
from lectio.db.models import ChatContextSnapshot, ChatMessage, ChatRole, ChatSession, utcnow
from lectio.errors import ValidationError
from lectio.services.annotator import Annotation, annotate, format_content
from lectio.services.background import BackgroundTaskSet
from lectio.services.context import ContextAggregator, load_history, snapshot_payloads
from lectio.services.gateway import ModelGateway, Turn
from lectio.services.insights import record_conversation_insights
from lectio.services.modes import resolve_mode
from lectio.services.prompts import GREETING_SYSTEM_PROMPT, build_greeting_prompt, compose_system_prompt

logger = logging.getLogger(__name__)


@dataclass
class AnnotatedReply:
    text: str
    metadata: dict[str, Any]
    formatted_content: dict[str, Any]
    tokens_used: int


def default_session_title(mode: str) -> str:
    return f"{mode.capitalize()} Chat - {utcnow():%m/%d/%Y}"


def _annotate_safely(text: str, version: str) -> tuple[dict[str, Any], dict[str, Any]]:
    """Metadata and render blocks for a reply; falls back to bare text on failure."""
    try:
        return annotate(text, version).as_metadata(), format_content(text)
    except Exception:
        logger.exception("Failed to annotate AI response")
        return Annotation().as_metadata(), {"text": text, "format": "plain", "sections": []}


class ChatService:
    """
    One request's view of the chat pipeline.

    Built per request from the request's database session and the
    process-wide aggregator, gateway and background task set.
    """

    def __init__(
        self,
        db: AsyncSession,
        aggregator: ContextAggregator,
        gateway: ModelGateway,
        background: BackgroundTaskSet,
        settings: Settings,
    ):
        self.db = db
        self.aggregator = aggregator
        self.gateway = gateway
        self.background = background
        self.settings = settings

    async def create_session(
        self,
        user_id: UUID,
        mode: str,
        title: str | None = None,
        context_book_id: str | None = None,
        context_chapter: int | None = None,
        context_version_id: str | None = None,
    ) -> ChatSession:
        """
        Create a session with its context snapshots and greeting message.

        A failed snapshot is logged and skipped; a failed greeting fails the
        request and writes nothing.
        """
        session = ChatSession(
            id=uuid4(),
            user_id=user_id,
            mode=mode,
            title=title or default_session_title(mode),
            context_book_id=context_book_id,
            context_chapter=context_chapter,
            context_version_id=context_version_id,
            is_active=True,
        )

        await self._release_connection()
        snapshots = await self._capture_snapshots(session)
        greeting = await self.generate_greeting(
            mode, context_book_id, context_chapter, context_version_id
        )

        self.db.add(session)
        await self.db.flush()
        self.db.add_all(snapshots)
        self.db.add(
            ChatMessage(
                session_id=session.id,
                role=ChatRole.ASSISTANT.value,
                content=greeting.text,
                formatted_content=greeting.formatted_content,
                message_metadata=greeting.metadata,
                tokens_used=0,
            )
        )
        await self.db.flush()

        logger.info("User %s created new %s chat session: %s", user_id, mode, session.id)
        return session

    async def _release_connection(self) -> None:
        """
        End the request's read-only transaction.

        The connection goes back to the pool while the aggregator and the
        model are awaited; the next statement checks one out again. Must run
        before anything is added to the session.
        """
        await self.db.commit()

    async def _capture_snapshots(self, session: ChatSession) -> list[ChatContextSnapshot]:
        try:
            context = await self.aggregator.gather(session.user_id, session.id)
        except Exception:
            logger.exception("Failed to capture context snapshot for session %s", session.id)
            return []

        return [
            ChatContextSnapshot(
                session_id=session.id,
                context_type=context_type.value,
                context_data=data,
            )
            for context_type, data in snapshot_payloads(context)
        ]

    async def generate_greeting(
        self,
        mode: str,
        book: str | None = None,
        chapter: int | None = None,
        version: str | None = None,
    ) -> AnnotatedReply:
        completion = await self.gateway.complete(
            GREETING_SYSTEM_PROMPT,
            [],
            build_greeting_prompt(mode, book, chapter, version),
            max_tokens=self.settings.llm_greeting_max_tokens,
            temperature=self.settings.llm_greeting_temperature,
        )
        metadata, formatted = _annotate_safely(
            completion.text, version or self.settings.default_translation
        )
        return AnnotatedReply(
            text=completion.text,
            metadata=metadata,
            formatted_content=formatted,
            tokens_used=completion.token_count,
        )

    async def send_message(self, session: ChatSession, content: str) -> AnnotatedReply:
        """
        Run one chat turn and persist both sides of it.

        Raises:
            ValidationError: If the session is not active
        """
        if not session.is_active:
            raise ValidationError("Chat session is not active")

        history = await load_history(self.db, session.id, self.settings.history_limit)
        await self._release_connection()
        context = await self.aggregator.gather(session.user_id, session.id)

        turns: list[Turn] = [(message.role, message.content) for message in history.messages]
        system_prompt = compose_system_prompt(resolve_mode(session.mode), context)
        completion = await self.gateway.complete(system_prompt, turns, content)

        version = context.current_version or self.settings.default_translation
        metadata, formatted = _annotate_safely(completion.text, version)

        sent_at = utcnow()
        self.db.add(
            ChatMessage(
                session_id=session.id,
                role=ChatRole.USER.value,
                content=content,
                tokens_used=0,
                created_at=sent_at,
            )
        )
        # The reply must sort after the user turn even on a coarse clock
        self.db.add(
            ChatMessage(
                session_id=session.id,
                role=ChatRole.ASSISTANT.value,
                content=completion.text,
                formatted_content=formatted,
                message_metadata=metadata,
                tokens_used=completion.token_count,
                created_at=max(utcnow(), sent_at + timedelta(microseconds=1)),
            )
        )
        session.last_message_at = utcnow()
        await self.db.flush()

        conversation = [*turns, (ChatRole.USER.value, content), (ChatRole.ASSISTANT.value, completion.text)]
        self.background.spawn(
            record_conversation_insights(self.aggregator.session_factory, session.user_id, conversation),
            name=f"insights-{session.id}",
        )

        logger.info("Message sent in session %s (%d tokens)", session.id, completion.token_count)
        return AnnotatedReply(
            text=completion.text,
            metadata=metadata,
            formatted_content=formatted,
            tokens_used=completion.token_count,
        )
