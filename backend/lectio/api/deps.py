"""
FastAPI Dependencies for Authentication and Authorization.

Key patterns:
1. get_current_user: Verifies the provider-issued JWT, returns the User row
2. User-scoped queries: lookups filter on user_id at the SQL level
3. No global "current user" state - always pass user explicitly

Security model:
- Tokens are issued by the external auth provider; this service only verifies them
- Bearer header only (no cookies)
- Missing and not-owned resources both return 404
"""

from typing import Annotated, TypeVar
from uuid import UUID

from fastapi import Depends, Header, Request
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lectio.config import Settings, get_settings
from lectio.db.models import User
from lectio.db.session import get_db, get_session_factory
from lectio.errors import AuthError, NotFoundError
from lectio.services.background import BackgroundTaskSet
from lectio.services.chat_service import ChatService
from lectio.services.context import ContextAggregator
from lectio.services.gateway import ModelGateway

ModelT = TypeVar("ModelT")


# =============================================================================
# JWT UTILITIES
# =============================================================================


def decode_access_token(token: str, settings: Settings) -> UUID | None:
    """
    Decode and validate a provider-issued access token.

    Returns user_id (the ``sub`` claim) if valid, None if invalid/expired.
    """
    try:
        payload = jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
        )
        user_id_str = payload.get("sub")
        if user_id_str is None:
            return None
        return UUID(user_id_str)
    except (JWTError, ValueError):
        return None


# =============================================================================
# AUTHENTICATION DEPENDENCIES
# =============================================================================


async def get_token_from_request(
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Extract the JWT from ``Authorization: Bearer <token>``."""
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]

    raise AuthError("No authorization token provided")


async def get_current_user(
    token: Annotated[str, Depends(get_token_from_request)],
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> User:
    """
    Validate JWT and return the current authenticated user.

    Raises 401 if:
    - Token is invalid, expired, or for another audience
    - User has no row in the users table
    """
    user_id = decode_access_token(token, settings)
    if user_id is None:
        raise AuthError()

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise AuthError()

    return user


# Type alias for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]


# =============================================================================
# SERVICE DEPENDENCIES (built once in the lifespan, stored on app.state)
# =============================================================================


def get_model_gateway(request: Request) -> ModelGateway:
    return request.app.state.model_gateway


def get_background_tasks(request: Request) -> BackgroundTaskSet:
    return request.app.state.background_tasks


def get_chat_service(
    db: DbSession,
    settings: AppSettings,
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
    gateway: Annotated[ModelGateway, Depends(get_model_gateway)],
    background: Annotated[BackgroundTaskSet, Depends(get_background_tasks)],
) -> ChatService:
    aggregator = ContextAggregator(
        session_factory,
        recent_limit=settings.context_recent_limit,
        max_concurrency=settings.context_max_concurrency,
    )
    return ChatService(db, aggregator, gateway, background, settings)


ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]


# =============================================================================
# QUERY HELPERS (enforce user scoping at query level)
# =============================================================================


async def get_user_resource_or_404(
    db: AsyncSession,
    model: type[ModelT],
    resource_id: UUID,
    user_id: UUID,
    *,
    detail: str = "Resource not found",
) -> ModelT:
    """
    Generic helper to fetch a user-owned resource by ID.

    Usage:
        session = await get_user_resource_or_404(
            db, ChatSession, session_id, current_user.id, detail="Chat session not found"
        )

    This enforces user scoping at the SQL level (WHERE user_id = ...), so a
    resource owned by someone else is indistinguishable from a missing one.
    """
    result = await db.execute(
        select(model).where(model.id == resource_id, model.user_id == user_id)
    )
    resource = result.scalar_one_or_none()

    if resource is None:
        raise NotFoundError(detail)

    return resource
