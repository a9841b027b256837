"""Read-only note routes, enriched with verse references and tags."""

from uuid import UUID

from fastapi import APIRouter
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from lectio.api.deps import CurrentUser, DbSession
from lectio.api.responses import success
from lectio.db.models import BibleNote, NoteTag
from lectio.errors import NotFoundError
from lectio.schemas.base import ApiResponse
from lectio.schemas.notes import NoteRead, NoteVerseReferenceRead, TagRead

router = APIRouter(prefix="/api/notes", tags=["notes"])


def _note_query():
    return select(BibleNote).options(
        selectinload(BibleNote.verse_references),
        selectinload(BibleNote.note_tags).joinedload(NoteTag.tag),
    )


def _to_read(note: BibleNote) -> NoteRead:
    verses = [NoteVerseReferenceRead.model_validate(v) for v in note.verse_references]
    tags = [TagRead.model_validate(nt.tag) for nt in note.note_tags if nt.tag is not None]
    return NoteRead(
        id=note.id,
        user_id=note.user_id,
        title=note.title,
        content=note.content,
        created_at=note.created_at,
        updated_at=note.updated_at,
        verse_references=verses,
        tags=tags,
        verse_count=len(verses),
        tag_count=len(tags),
    )


@router.get("", response_model=ApiResponse[list[NoteRead]])
async def list_notes(
    current_user: CurrentUser,
    db: DbSession,
) -> ApiResponse[list[NoteRead]]:
    """List the user's notes, newest first."""
    result = await db.execute(
        _note_query()
        .where(BibleNote.user_id == current_user.id)
        .order_by(BibleNote.created_at.desc())
    )
    notes = [_to_read(note) for note in result.scalars()]
    return success(notes, f"Retrieved {len(notes)} note{'s' if len(notes) != 1 else ''}")


@router.get("/{note_id}", response_model=ApiResponse[NoteRead])
async def get_note(
    note_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> ApiResponse[NoteRead]:
    """Get a specific note by ID."""
    result = await db.execute(
        _note_query().where(BibleNote.id == note_id, BibleNote.user_id == current_user.id)
    )
    note = result.scalar_one_or_none()
    if note is None:
        raise NotFoundError("Note not found")
    return success(_to_read(note), "Note retrieved successfully")
