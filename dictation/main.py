"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because:
- Easier to test with different configurations
- Explicit about initialization order
- Can create multiple app instances if needed (e.g., for testing)

For local development:
    uvicorn dictation.main:app --reload
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.errors import register_exception_handlers
from .api.routes import auth, clips, health
from .config.settings import Settings, get_settings
from .core.auth.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


async def sweep_rate_limits(rate_limiter: RateLimiter, interval_seconds: float) -> None:
    """Purge expired login rate-limit windows until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        removed = rate_limiter.cleanup_expired()
        if removed:
            logger.info("Swept rate-limit entries", extra={"removed": removed})


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup validates configuration and starts the rate-limit sweep;
    shutdown cancels it.
    """
    settings: Settings = app.state.settings

    logger.info(
        "Friends Dictation API starting",
        extra={
            "version": settings.api_version,
            "environment": settings.environment,
            "mock_mode": {"r2": settings.r2_mock_mode},
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )
        if settings.is_production:
            raise RuntimeError(
                f"Missing required configuration: {', '.join(missing_fields)}"
            )

    sweeper = asyncio.create_task(
        sweep_rate_limits(app.state.rate_limiter, settings.rate_limit_sweep_seconds)
    )

    yield

    sweeper.cancel()
    try:
        await sweeper
    except asyncio.CancelledError:
        pass

    logger.info("Friends Dictation API shutting down")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application. Tests pass their own
    Settings; otherwise they come from the environment.
    """
    settings = settings or get_settings()

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=settings.log_level.upper(),
    )

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Backend for Friends Dictation: practise English listening with
        ten-second clips.

        ## Workflow

        1. **Sign up / sign in**: `POST /api/auth/register`, `POST /api/auth/login`
        2. **Browse clips**: `GET /api/clips?limit=&offset=&difficulty=`
        3. **Practise**: `GET /api/clips/{id}` returns the clip URL and subtitles
        4. **Contribute**: `POST /api/clips/upload` (signed in)

        Every response is wrapped in `{success, data}` or `{success, error}`.
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.rate_limiter = RateLimiter(
        max_attempts=settings.rate_limit_max_attempts,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/api/health", tags=["Health"])
    app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
    app.include_router(clips.router, prefix="/api/clips", tags=["Clips"])

    register_exception_handlers(app)

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
        }
    )

    return app


# Create the application instance
# This is what uvicorn imports
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "dictation.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
