"""Learning profile routes."""

import logging
from uuid import UUID

from fastapi import APIRouter
from sqlalchemy import select

from lectio.api.deps import CurrentUser, DbSession, get_user_resource_or_404
from lectio.api.rate_limit import rate_limit
from lectio.api.responses import success
from lectio.db.models import LearningProfileEntry
from lectio.schemas.base import ApiResponse
from lectio.schemas.learning_profile import (
    LearningInsightRead,
    LearningInsightUpdate,
    LearningProfileRead,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai-chat/learning-profile", tags=["learning-profile"])

INSIGHT_NOT_FOUND = "Learning insight not found"


@router.get("", response_model=ApiResponse[LearningProfileRead], dependencies=[rate_limit("general")])
async def get_learning_profile(
    current_user: CurrentUser,
    db: DbSession,
) -> ApiResponse[LearningProfileRead]:
    """All insights for the current user, grouped by category."""
    result = await db.execute(
        select(LearningProfileEntry)
        .where(LearningProfileEntry.user_id == current_user.id)
        .order_by(LearningProfileEntry.category, LearningProfileEntry.confidence_score.desc())
    )

    grouped: LearningProfileRead = {}
    for entry in result.scalars():
        grouped.setdefault(entry.category, []).append(LearningInsightRead.model_validate(entry))

    return success(grouped, "Learning profile retrieved successfully")


@router.put(
    "/{insight_id}",
    response_model=ApiResponse[LearningInsightRead],
    dependencies=[rate_limit("learning_profile")],
)
async def update_learning_insight(
    insight_id: UUID,
    data: LearningInsightUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> ApiResponse[LearningInsightRead]:
    """Update an insight's value, confidence or source."""
    entry = await get_user_resource_or_404(
        db, LearningProfileEntry, insight_id, current_user.id, detail=INSIGHT_NOT_FOUND
    )
    for key, value in data.model_dump(mode="json", exclude_unset=True, exclude_none=True).items():
        setattr(entry, key, value)
    await db.flush()
    await db.refresh(entry)

    logger.info("User %s updated learning insight %s", current_user.id, entry.id)
    return success(LearningInsightRead.model_validate(entry), "Learning insight updated successfully")


@router.delete(
    "/{insight_id}",
    response_model=ApiResponse[None],
    dependencies=[rate_limit("learning_profile")],
)
async def delete_learning_insight(
    insight_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> ApiResponse[None]:
    """Delete one insight."""
    entry = await get_user_resource_or_404(
        db, LearningProfileEntry, insight_id, current_user.id, detail=INSIGHT_NOT_FOUND
    )
    await db.delete(entry)
    await db.flush()

    logger.info("User %s deleted learning insight %s", current_user.id, insight_id)
    return success(None, "Learning insight deleted successfully")
