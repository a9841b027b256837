"""Pydantic schemas for API request/response validation."""

from lectio.schemas.base import ApiResponse, ErrorResponse
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
from lectio.schemas.learning_profile import (
    LearningInsightRead,
    LearningInsightUpdate,
    LearningProfileRead,
)
from lectio.schemas.notes import NoteRead, NoteVerseReferenceRead, TagRead

__all__ = [
    # Envelope
    "ApiResponse",
    "ErrorResponse",
    # Chat
    "ChatMessageCreate",
    "ChatMessageRead",
    "ChatSessionCreate",
    "ChatSessionDetail",
    "ChatSessionRead",
    "ChatSessionSummary",
    "ChatSessionUpdate",
    "ContextSnapshotRead",
    "MessagePage",
    "MessageReply",
    "Pagination",
    # Learning profile
    "LearningInsightRead",
    "LearningInsightUpdate",
    "LearningProfileRead",
    # Notes
    "NoteRead",
    "NoteVerseReferenceRead",
    "TagRead",
]
