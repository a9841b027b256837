"""AI chat sessions, messages, context snapshots and learning profiles.

Revision ID: 002_ai_chat
Revises: 001_study_schema
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "002_ai_chat"
down_revision: Union[str, None] = "001_study_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ==========================================================================
    # AI_CHAT_SESSIONS TABLE
    # ==========================================================================
    op.create_table(
        "ai_chat_sessions",
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("uuid_generate_v4()"), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("mode", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("context_book_id", sa.String(), nullable=True),
        sa.Column("context_chapter", sa.Integer(), nullable=True),
        sa.Column("context_version_id", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.Column("updated_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.Column("last_message_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "mode IN ('study', 'debate', 'note-taker', 'explainer', 'custom')",
            name="check_ai_chat_sessions_mode",
        ),
    )
    op.create_index("idx_ai_chat_sessions_user_last_message", "ai_chat_sessions", ["user_id", "last_message_at"])

    # ==========================================================================
    # AI_CHAT_MESSAGES TABLE
    # ==========================================================================
    op.create_table(
        "ai_chat_messages",
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("uuid_generate_v4()"), nullable=False),
        sa.Column("session_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("formatted_content", postgresql.JSONB(), nullable=True),
        sa.Column("metadata", postgresql.JSONB(), nullable=True),
        sa.Column("tokens_used", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["session_id"], ["ai_chat_sessions.id"], ondelete="CASCADE"),
        sa.CheckConstraint("role IN ('user', 'assistant', 'system')", name="check_ai_chat_messages_role"),
    )
    op.create_index("idx_ai_chat_messages_session_created", "ai_chat_messages", ["session_id", "created_at"])

    # ==========================================================================
    # AI_CHAT_CONTEXT_SNAPSHOTS TABLE
    # ==========================================================================
    op.create_table(
        "ai_chat_context_snapshots",
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("uuid_generate_v4()"), nullable=False),
        sa.Column("session_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("context_type", sa.String(), nullable=False),
        sa.Column("context_data", postgresql.JSONB(), nullable=False),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["session_id"], ["ai_chat_sessions.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_ai_chat_context_snapshots_session_id", "ai_chat_context_snapshots", ["session_id"])

    # ==========================================================================
    # AI_USER_LEARNING_PROFILES TABLE
    # ==========================================================================
    op.create_table(
        "ai_user_learning_profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("uuid_generate_v4()"), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("insight_key", sa.String(), nullable=False),
        sa.Column("insight_value", sa.Text(), nullable=False),
        sa.Column("confidence_score", sa.Float(), nullable=False),
        sa.Column("source", sa.String(), server_default="auto", nullable=False),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.Column("updated_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "category", "insight_key", name="unique_user_learning_insight"),
        sa.CheckConstraint(
            "confidence_score >= 0 AND confidence_score <= 1",
            name="check_learning_confidence_range",
        ),
    )
    op.create_index("idx_ai_user_learning_profiles_user_id", "ai_user_learning_profiles", ["user_id"])

    for table in ["ai_chat_sessions", "ai_user_learning_profiles"]:
        op.execute(f"""
            CREATE TRIGGER update_{table}_updated_at
                BEFORE UPDATE ON {table}
                FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
        """)


def downgrade() -> None:
    for table in ["ai_chat_sessions", "ai_user_learning_profiles"]:
        op.execute(f"DROP TRIGGER IF EXISTS update_{table}_updated_at ON {table}")

    op.drop_table("ai_user_learning_profiles")
    op.drop_table("ai_chat_context_snapshots")
    op.drop_table("ai_chat_messages")
    op.drop_table("ai_chat_sessions")
