"""Learning profile schemas."""

from uuid import UUID

from pydantic import Field

from lectio.db.models import InsightSource
from lectio.schemas.base import BaseSchema, IDMixin, TimestampMixin


class LearningInsightRead(BaseSchema, IDMixin, TimestampMixin):
    """One learning-profile entry."""

    user_id: UUID
    category: str
    insight_key: str
    insight_value: str
    confidence_score: float
    source: InsightSource


class LearningInsightUpdate(BaseSchema):
    """Schema for updating an insight. All fields optional."""

    insight_value: str | None = Field(None, min_length=1)
    confidence_score: float | None = Field(None, ge=0, le=1)
    source: InsightSource | None = None


# Entries keyed by category
LearningProfileRead = dict[str, list[LearningInsightRead]]
