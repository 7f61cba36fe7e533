"""Vacation Scheduler — FastAPI Application Factory."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from vacation_scheduler.common.exceptions import register_exception_handlers
from vacation_scheduler.common.rate_limit import limiter
from vacation_scheduler.config import Settings, get_settings
from vacation_scheduler.database import create_engine, create_session_factory
from vacation_scheduler.log_config import configure_logging
from vacation_scheduler.notifications.router import router as notifications_router
from vacation_scheduler.vacations.router import router as vacations_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    yield
    # Shutdown
    engine = getattr(app.state, "engine", None)
    if engine is not None:
        await engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Tests pass their own ``Settings``; otherwise they are read from the
    environment.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Vacation Scheduler",
        description="Vacation planning with quota tracking and manager approval",
        version="1.0.0",
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Settings and database, injected for every request
    app.state.settings = settings
    app.state.engine = create_engine(settings)
    app.state.session_factory = create_session_factory(app.state.engine)

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": "1.0.0",
            "environment": settings.ENVIRONMENT,
        }

    # Register routers
    app.include_router(vacations_router, prefix="/api/v1/vacations", tags=["vacations"])
    app.include_router(notifications_router, prefix="/api/v1/notifications", tags=["notifications"])

    return app
