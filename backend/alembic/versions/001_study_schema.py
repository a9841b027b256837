"""Study schema shared with the reader apps.

Revision ID: 001_study_schema
Revises:
Create Date: 2026-10-19

Creates the tables the reader apps write and the chat service reads:
- Extensions: uuid-ossp
- Tables: users, bible_reading_progress, bible_reading_settings, user_reading_plans,
  user_reading_stats, reading_achievements, user_achievements, bible_notes,
  note_verse_references, tags, note_tags, verse_highlights, verse_bookmarks, verse_loves
- Triggers: updated_at auto-update function and triggers
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_study_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UPDATED_AT_TABLES = [
    "users",
    "bible_reading_progress",
    "bible_reading_settings",
    "user_reading_plans",
    "user_reading_stats",
    "bible_notes",
    "verse_highlights",
    "verse_bookmarks",
    "verse_loves",
]


def _id() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("uuid_generate_v4()"), nullable=False)


def _user_id() -> sa.Column:
    return sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False)


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False)


def _verse_columns() -> list[sa.Column]:
    return [
        sa.Column("book_id", sa.String(), nullable=False),
        sa.Column("book_name", sa.String(), nullable=False),
        sa.Column("chapter", sa.Integer(), nullable=False),
        sa.Column("verse_number", sa.Integer(), nullable=False),
        sa.Column("verse_text", sa.Text(), server_default="", nullable=False),
        sa.Column("version_abbreviation", sa.String(), nullable=False),
    ]


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ==========================================================================
    # USERS TABLE
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("first_name", sa.String(), nullable=True),
        sa.Column("last_name", sa.String(), nullable=True),
        sa.Column("username", sa.String(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    # ==========================================================================
    # READING TABLES
    # ==========================================================================
    op.create_table(
        "bible_reading_progress",
        _id(),
        _user_id(),
        sa.Column("version_id", sa.String(), nullable=False),
        sa.Column("version_abbreviation", sa.String(), nullable=False),
        sa.Column("book_id", sa.String(), nullable=False),
        sa.Column("book_name", sa.String(), nullable=False),
        sa.Column("current_chapter", sa.Integer(), server_default="1", nullable=False),
        sa.Column("current_verse", sa.Integer(), server_default="1", nullable=False),
        sa.Column("chapters_completed", sa.Integer(), server_default="0", nullable=False),
        sa.Column("last_read_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_bible_reading_progress_user_updated", "bible_reading_progress", ["user_id", "updated_at"])

    op.create_table(
        "bible_reading_settings",
        _id(),
        _user_id(),
        sa.Column("preferred_version_abbreviation", sa.String(), nullable=True),
        sa.Column("auto_play_audio", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("font_size", sa.String(), server_default="medium", nullable=False),
        sa.Column("reading_mode", sa.String(), server_default="light", nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id"),
    )

    op.create_table(
        "user_reading_plans",
        _id(),
        _user_id(),
        sa.Column("enabled", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("plan_duration", sa.Integer(), server_default="365", nullable=False),
        sa.Column("current_day", sa.Integer(), server_default="1", nullable=False),
        sa.Column("completed_days", sa.Integer(), server_default="0", nullable=False),
        sa.Column("is_completed", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id"),
    )

    op.create_table(
        "user_reading_stats",
        _id(),
        _user_id(),
        sa.Column("total_xp", sa.Integer(), server_default="0", nullable=False),
        sa.Column("current_level", sa.Integer(), server_default="1", nullable=False),
        sa.Column("current_streak", sa.Integer(), server_default="0", nullable=False),
        sa.Column("longest_streak", sa.Integer(), server_default="0", nullable=False),
        sa.Column("total_chapters_read", sa.Integer(), server_default="0", nullable=False),
        sa.Column("total_achievements_unlocked", sa.Integer(), server_default="0", nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id"),
    )

    # ==========================================================================
    # ACHIEVEMENTS
    # ==========================================================================
    op.create_table(
        "reading_achievements",
        _id(),
        sa.Column("achievement_key", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("points", sa.Integer(), server_default="0", nullable=False),
        sa.Column("tier", sa.String(), nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("achievement_key"),
    )

    op.create_table(
        "user_achievements",
        _id(),
        _user_id(),
        sa.Column("achievement_id", postgresql.UUID(as_uuid=True), nullable=False),
        _timestamp("unlocked_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["achievement_id"], ["reading_achievements.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "achievement_id", name="unique_user_achievement"),
    )

    # ==========================================================================
    # NOTES & TAGS
    # ==========================================================================
    op.create_table(
        "bible_notes",
        _id(),
        _user_id(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", postgresql.JSONB(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_bible_notes_user_created", "bible_notes", ["user_id", "created_at"])

    op.create_table(
        "note_verse_references",
        _id(),
        sa.Column("note_id", postgresql.UUID(as_uuid=True), nullable=False),
        _user_id(),
        *_verse_columns(),
        sa.Column("is_quoted", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["note_id"], ["bible_notes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_note_verse_references_note_id", "note_verse_references", ["note_id"])

    op.create_table(
        "tags",
        _id(),
        _user_id(),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("color", sa.String(), server_default="#888888", nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "name", name="unique_user_tag_name"),
    )

    op.create_table(
        "note_tags",
        _id(),
        sa.Column("note_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tag_id", postgresql.UUID(as_uuid=True), nullable=False),
        _user_id(),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["note_id"], ["bible_notes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tag_id"], ["tags.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("note_id", "tag_id", name="unique_note_tag"),
    )

    # ==========================================================================
    # VERSE INTERACTIONS
    # ==========================================================================
    op.create_table(
        "verse_highlights",
        _id(),
        _user_id(),
        sa.Column("book_id", sa.String(), nullable=False),
        sa.Column("chapter", sa.Integer(), nullable=False),
        sa.Column("verse_number", sa.Integer(), nullable=False),
        sa.Column("color", sa.String(), server_default="yellow", nullable=False),
        sa.Column("selected_text", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_verse_highlights_user_created", "verse_highlights", ["user_id", "created_at"])

    for table in ["verse_bookmarks", "verse_loves"]:
        op.create_table(
            table,
            _id(),
            _user_id(),
            *_verse_columns(),
            _timestamp("created_at"),
            _timestamp("updated_at"),
            sa.PrimaryKeyConstraint("id"),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        )
        op.create_index(f"idx_{table}_user_created", table, ["user_id", "created_at"])

    # ==========================================================================
    # UPDATED_AT TRIGGER FUNCTION
    # ==========================================================================
    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)

    for table in UPDATED_AT_TABLES:
        op.execute(f"""
            CREATE TRIGGER update_{table}_updated_at
                BEFORE UPDATE ON {table}
                FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
        """)


def downgrade() -> None:
    for table in UPDATED_AT_TABLES:
        op.execute(f"DROP TRIGGER IF EXISTS update_{table}_updated_at ON {table}")

    op.execute("DROP FUNCTION IF EXISTS update_updated_at_column()")

    for table in [
        "verse_loves",
        "verse_bookmarks",
        "verse_highlights",
        "note_tags",
        "tags",
        "note_verse_references",
        "bible_notes",
        "user_achievements",
        "reading_achievements",
        "user_reading_stats",
        "user_reading_plans",
        "bible_reading_settings",
        "bible_reading_progress",
        "users",
    ]:
        op.drop_table(table)
