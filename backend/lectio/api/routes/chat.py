"""AI chat session and message routes."""

import logging
from uuid import UUID

from fastapi import APIRouter, Query, status
from sqlalchemy import func, select

from lectio.api.deps import ChatServiceDep, CurrentUser, DbSession, get_user_resource_or_404
from lectio.api.rate_limit import rate_limit
from lectio.api.responses import success
from lectio.db.models import ChatContextSnapshot, ChatMessage, ChatMode, ChatRole, ChatSession
from lectio.schemas.base import ApiResponse
from lectio.schemas.chat import (
    ChatMessageCreate,
    ChatMessageRead,
    ChatSessionCreate,
    ChatSessionDetail,
    ChatSessionRead,
    ChatSessionSummary,
    ChatSessionUpdate,
    ContextSnapshotRead,
    MessagePage,
    MessageReply,
    Pagination,
)
from lectio.services.context import load_history

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai-chat", tags=["ai-chat"])

SESSION_NOT_FOUND = "Chat session not found"
SESSION_MESSAGE_LIMIT = 50


def _message_count():
    """Correlated count of a session's messages."""
    return (
        select(func.count(ChatMessage.id))
        .where(ChatMessage.session_id == ChatSession.id)
        .correlate(ChatSession)
        .scalar_subquery()
    )


# =============================================================================
# SESSIONS
# =============================================================================


@router.post(
    "/sessions",
    response_model=ApiResponse[ChatSessionRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[rate_limit("sessions")],
)
async def create_session(
    data: ChatSessionCreate,
    current_user: CurrentUser,
    chat: ChatServiceDep,
) -> ApiResponse[ChatSessionRead]:
    """
    Create a chat session.

    Captures snapshots of the user's study data and stores a generated
    greeting as the first assistant message.
    """
    session = await chat.create_session(
        current_user.id,
        data.mode.value,
        title=data.title,
        context_book_id=data.context_book_id,
        context_chapter=data.context_chapter,
        context_version_id=data.context_version_id,
    )
    return success(ChatSessionRead.model_validate(session), "Chat session created successfully")


@router.get(
    "/sessions",
    response_model=ApiResponse[list[ChatSessionSummary]],
    dependencies=[rate_limit("general")],
)
async def list_sessions(
    current_user: CurrentUser,
    db: DbSession,
    mode: ChatMode | None = None,
    is_active: bool | None = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> ApiResponse[list[ChatSessionSummary]]:
    """List the user's sessions, most recently active first."""
    query = select(ChatSession, _message_count().label("message_count")).where(
        ChatSession.user_id == current_user.id
    )
    if mode:
        query = query.where(ChatSession.mode == mode.value)
    if is_active is not None:
        query = query.where(ChatSession.is_active == is_active)

    query = query.order_by(ChatSession.last_message_at.desc()).offset(offset).limit(limit)

    result = await db.execute(query)
    sessions = [
        ChatSessionSummary(**ChatSessionRead.model_validate(session).model_dump(), message_count=count)
        for session, count in result.all()
    ]
    return success(sessions, f"Retrieved {len(sessions)} chat sessions")


@router.get(
    "/sessions/{session_id}",
    response_model=ApiResponse[ChatSessionDetail],
    dependencies=[rate_limit("general")],
)
async def get_session(
    session_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> ApiResponse[ChatSessionDetail]:
    """Get a session with its most recent messages and its context snapshots."""
    session = await get_user_resource_or_404(
        db, ChatSession, session_id, current_user.id, detail=SESSION_NOT_FOUND
    )

    history = await load_history(db, session.id, SESSION_MESSAGE_LIMIT)
    snapshots = await db.execute(
        select(ChatContextSnapshot)
        .where(ChatContextSnapshot.session_id == session.id)
        .order_by(ChatContextSnapshot.created_at)
    )
    total = await db.execute(
        select(func.count(ChatMessage.id)).where(ChatMessage.session_id == session.id)
    )

    detail = ChatSessionDetail(
        **ChatSessionRead.model_validate(session).model_dump(),
        messages=[ChatMessageRead.model_validate(m) for m in history.messages],
        context_snapshots=[ContextSnapshotRead.model_validate(s) for s in snapshots.scalars()],
        message_count=total.scalar_one(),
    )
    return success(detail, "Chat session retrieved successfully")


@router.patch(
    "/sessions/{session_id}",
    response_model=ApiResponse[ChatSessionRead],
    dependencies=[rate_limit("general")],
)
async def update_session(
    session_id: UUID,
    data: ChatSessionUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> ApiResponse[ChatSessionRead]:
    """Update a session's title or active flag. The mode cannot change."""
    session = await get_user_resource_or_404(
        db, ChatSession, session_id, current_user.id, detail=SESSION_NOT_FOUND
    )
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(session, key, value)
    await db.flush()
    await db.refresh(session)

    logger.info("User %s updated chat session %s", current_user.id, session.id)
    return success(ChatSessionRead.model_validate(session), "Chat session updated successfully")


@router.delete(
    "/sessions/{session_id}",
    response_model=ApiResponse[None],
    dependencies=[rate_limit("general")],
)
async def delete_session(
    session_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> ApiResponse[None]:
    """Delete a session together with its messages and snapshots."""
    session = await get_user_resource_or_404(
        db, ChatSession, session_id, current_user.id, detail=SESSION_NOT_FOUND
    )
    await db.delete(session)
    await db.flush()

    logger.info("User %s deleted chat session %s", current_user.id, session_id)
    return success(None, "Chat session deleted successfully")


# =============================================================================
# MESSAGES
# =============================================================================


@router.post(
    "/sessions/{session_id}/messages",
    response_model=ApiResponse[MessageReply],
    dependencies=[rate_limit("messages")],
)
async def send_message(
    session_id: UUID,
    data: ChatMessageCreate,
    current_user: CurrentUser,
    db: DbSession,
    chat: ChatServiceDep,
) -> ApiResponse[MessageReply]:
    """Send a message and return the annotated assistant reply."""
    session = await get_user_resource_or_404(
        db, ChatSession, session_id, current_user.id, detail=SESSION_NOT_FOUND
    )
    reply = await chat.send_message(session, data.content)
    return success(
        MessageReply(
            ai_response=reply.text,
            metadata=reply.metadata,
            formatted_content=reply.formatted_content,
            tokens_used=reply.tokens_used,
        ),
        "Message sent successfully",
    )


@router.get(
    "/sessions/{session_id}/messages",
    response_model=ApiResponse[MessagePage],
    dependencies=[rate_limit("general")],
)
async def get_messages(
    session_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    role: ChatRole | None = None,
) -> ApiResponse[MessagePage]:
    """
    Page through a session's messages, oldest first.

    ``total`` counts the messages matching ``role`` when it is given.
    """
    session = await get_user_resource_or_404(
        db, ChatSession, session_id, current_user.id, detail=SESSION_NOT_FOUND
    )

    filters = [ChatMessage.session_id == session.id]
    if role:
        filters.append(ChatMessage.role == role.value)

    query = (
        select(ChatMessage)
        .where(*filters)
        .order_by(ChatMessage.created_at.asc())
        .offset(offset)
        .limit(limit)
    )

    result = await db.execute(query)
    messages = [ChatMessageRead.model_validate(m) for m in result.scalars()]

    count_result = await db.execute(select(func.count(ChatMessage.id)).where(*filters))
    total = count_result.scalar_one()

    page = MessagePage(
        messages=messages,
        pagination=Pagination(
            total=total, limit=limit, offset=offset, has_more=total > offset + limit
        ),
    )
    return success(page, f"Retrieved {len(messages)} messages")
