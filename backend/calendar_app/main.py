"""
Calendar App - FastAPI Application Entry Point.

Feature-based modular architecture:
  Each feature in calendar_app/features/ has its own router, service, and schemas.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from calendar_app.config import get_settings
from calendar_app.core.dependencies import get_calendar_store
from calendar_app.core.exceptions import CalendarStorageError
from calendar_app.background.scheduler import init_scheduler, shutdown_scheduler

# ── Feature Routers ──────────────────────────────────────
from calendar_app.features.calendar.router import router as calendar_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: restore calendars on startup, save them on shutdown."""
    settings = get_settings()
    logger.info(f"🚀 {settings.APP_NAME} v{settings.APP_VERSION} starting...")

    store = get_calendar_store()
    store.load()
    logger.info(f"📚 Calendars: {', '.join(store.titles()) or '(none)'}")

    init_scheduler()
    yield

    shutdown_scheduler()
    try:
        store.save()
    except CalendarStorageError as e:
        logger.error(f"Error saving calendars: {e.message} ({e.detail})")
    logger.info("👋 Shutting down...")


def create_app() -> FastAPI:
    """Application factory."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Calendars with single and recurring events, conflict checks and CSV import/export",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    # ── CORS ─────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Register Feature Routers ─────────────────────────
    app.include_router(calendar_router, prefix="/api/calendars", tags=["Calendars"])

    # ── Health Check ─────────────────────────────────────
    @app.get("/health", tags=["System"])
    async def health_check():
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
        }

    return app


app = create_app()
