"""
Lectio FastAPI Application Entry Point.

Run with: uvicorn lectio.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lectio.api.rate_limit import FixedWindowRateLimiter
from lectio.api.responses import register_exception_handlers
from lectio.api.routes import chat, learning_profile, notes
from lectio.config import Settings, get_settings
from lectio.db.session import create_engine, create_session_factory
from lectio.services.background import BackgroundTaskSet
from lectio.services.gateway import AnthropicGateway

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build shared resources on startup; drain and dispose them on shutdown."""
    settings: Settings = app.state.settings

    # Startup
    engine = create_engine(settings)
    app.state.session_factory = create_session_factory(engine)
    app.state.model_gateway = AnthropicGateway(settings)
    app.state.background_tasks = BackgroundTaskSet()
    logger.info("Lectio API started (%s)", settings.environment)

    yield

    # Shutdown
    await app.state.background_tasks.drain(settings.background_drain_timeout)
    await engine.dispose()
    logger.info("Lectio API stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        description="AI Bible study assistant API",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.rate_limiter = FixedWindowRateLimiter(
        enabled=settings.rate_limit_enabled and settings.environment != "development"
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(chat.router)
    app.include_router(learning_profile.router)
    app.include_router(notes.router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
