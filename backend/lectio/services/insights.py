"""
Learning-profile insights inferred from conversations.

Runs after each chat turn on the background task set. Three substring
heuristics produce at most one insight each; every insight is upserted on
(user_id, category, insight_key) so the latest conversation wins.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lectio.data.theology import THEOLOGICAL_TERMS
from lectio.db.models import ChatRole, InsightSource, LearningProfileEntry, utcnow
from lectio.services.gateway import Turn

logger = logging.getLogger(__name__)

# Substrings that mark each question type, checked in order
QUESTION_PATTERNS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("definitional questions", ("what does", "what is")),
    ("explanatory questions", ("why", "how come")),
    ("ethical questions", ("should", "ought")),
    ("comparative questions", ("compare", "difference")),
)

MIN_TURNS_FOR_STYLE = 3


@dataclass
class LearningInsight:
    category: str
    insight_key: str
    insight_value: str
    confidence_score: float


def _user_turns(messages: Sequence[Turn]) -> list[str]:
    return [content for role, content in messages if role == ChatRole.USER.value]


def analyze_question_patterns(questions: Sequence[str]) -> list[str]:
    found: dict[str, None] = {}
    for question in questions:
        lowered = question.lower()
        for label, needles in QUESTION_PATTERNS:
            if any(needle in lowered for needle in needles):
                found[label] = None
    return list(found)


def analyze_theological_topics(messages: Sequence[Turn]) -> list[str]:
    """Vocabulary terms found anywhere in the conversation, first mention first."""
    topics: dict[str, None] = {}
    for _, content in messages:
        lowered = content.lower()
        for term in THEOLOGICAL_TERMS:
            if term in lowered:
                topics.setdefault(term, None)
    return list(topics)


def analyze_study_style(questions: Sequence[str]) -> str | None:
    if len(questions) < MIN_TURNS_FOR_STYLE:
        return None
    average = sum(len(q) for q in questions) / len(questions)
    if average > 200:
        return "detailed and comprehensive"
    if average > 100:
        return "moderate depth"
    return "concise and focused"


def extract_insights(messages: Sequence[Turn]) -> list[LearningInsight]:
    """Run every heuristic over a conversation."""
    insights: list[LearningInsight] = []
    questions = _user_turns(messages)

    patterns = analyze_question_patterns(questions)
    if patterns:
        insights.append(
            LearningInsight(
                category="question_patterns",
                insight_key="common_question_types",
                insight_value=", ".join(patterns),
                confidence_score=0.7,
            )
        )

    topics = analyze_theological_topics(messages)
    if topics:
        insights.append(
            LearningInsight(
                category="theological_preference",
                insight_key="primary_interests",
                insight_value=", ".join(topics),
                confidence_score=0.8,
            )
        )

    style = analyze_study_style(questions)
    if style:
        insights.append(
            LearningInsight(
                category="study_style",
                insight_key="preferred_approach",
                insight_value=style,
                confidence_score=0.6,
            )
        )

    return insights


async def save_insights(
    db: AsyncSession,
    user_id: UUID,
    insights: Sequence[LearningInsight],
    *,
    source: InsightSource = InsightSource.AUTO,
) -> None:
    """Upsert insights on (user_id, category, insight_key). Caller commits."""
    if not insights:
        return

    dialect = db.bind.dialect.name
    insert = postgresql.insert if dialect == "postgresql" else sqlite.insert

    for insight in insights:
        stmt = insert(LearningProfileEntry).values(
            user_id=user_id,
            category=insight.category,
            insight_key=insight.insight_key,
            insight_value=insight.insight_value,
            confidence_score=insight.confidence_score,
            source=source.value,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "category", "insight_key"],
            set_={
                "insight_value": stmt.excluded.insight_value,
                "confidence_score": stmt.excluded.confidence_score,
                "source": stmt.excluded.source,
                "updated_at": utcnow(),
            },
        )
        await db.execute(stmt)


async def record_conversation_insights(
    session_factory: async_sessionmaker[AsyncSession],
    user_id: UUID,
    messages: Sequence[Turn],
) -> None:
    """Background entry point. Failures are logged, never raised."""
    try:
        insights = extract_insights(messages)
        if not insights:
            return
        async with session_factory() as db:
            await save_insights(db, user_id, insights)
            await db.commit()
        logger.info("Saved %d learning insight(s) for user %s", len(insights), user_id)
    except Exception:
        logger.exception("Failed to record learning insights for user %s", user_id)
