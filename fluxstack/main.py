"""fluxstack — FastAPI Application Factory."""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from fluxstack.auth.bruteforce import AttemptTracker
from fluxstack.auth.router import router as auth_router
from fluxstack.common.exceptions import register_exception_handlers
from fluxstack.common.logging import add_request_logging, configure_logging
from fluxstack.common.rate_limit import limiter
from fluxstack.config import settings
from fluxstack.dashboard.router import router as dashboard_router
from fluxstack.database import engine
from fluxstack.posts.router import router as posts_router
from fluxstack.user.router import router as user_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("fluxstack starting (%s) on %s", settings.ENVIRONMENT, settings.BASE_URL)
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="fluxstack",
        description="Flux Stack API — auth, posts, dashboard",
        version="1.0.0",
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )
    app.state.started_at = time.monotonic()

    # Error envelopes
    register_exception_handlers(app, expose_details=not settings.is_production)

    # Rate limiting (slowapi)
    app.state.limiter = limiter

    # Brute-force tracker, one per app instance
    app.state.attempt_tracker = AttemptTracker(
        max_attempts=settings.BRUTE_FORCE_MAX_ATTEMPTS,
        lockout_seconds=settings.BRUTE_FORCE_LOCKOUT_MINUTES * 60,
        reset_seconds=settings.BRUTE_FORCE_RESET_MINUTES * 60,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    add_request_logging(app)

    # Health check (no auth)
    @app.get("/api/health", tags=["system"])
    async def health_check():
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - app.state.started_at, 3),
        }

    @app.get("/", include_in_schema=False)
    async def root():
        return PlainTextResponse("Flux Stack API")

    # Register routers
    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(user_router, prefix="/api/user", tags=["user"])
    app.include_router(dashboard_router, prefix="/api/dashboard", tags=["dashboard"])
    app.include_router(posts_router, prefix="/api/posts", tags=["posts"])

    return app


app = create_app()
