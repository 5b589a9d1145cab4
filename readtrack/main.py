"""FastAPI application factory: entry point for the readtrack gateway."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from readtrack import __version__
from readtrack.adapters.clock import SystemClock
from readtrack.adapters.factory import CollaboratorFactory, build_collaborator_factory
from readtrack.api.routes.recommendations import router as recommendations_router
from readtrack.api.routes.tracking import router as tracking_router
from readtrack.config import Settings, settings as default_settings
from readtrack.ports.viewport import ClockPort
from readtrack.services.registry import TrackerRegistry

logging.basicConfig(
    level=default_settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    collaborators: CollaboratorFactory | None = None,
    clock: ClockPort | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application."""
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan: startup and shutdown events."""
        logger.info("readtrack starting up...")
        logger.info("Collaborator backend: %s", settings.collaborator_backend.value)
        logger.info("Heartbeat interval: %.1fs", settings.heartbeat_interval_seconds)
        logger.info("Scroll throttle: %.0fms", settings.scroll_throttle_ms)
        logger.info("Tracker idle timeout: %.0fs", settings.tracker_idle_timeout_seconds)
        sweeper = asyncio.create_task(
            app.state.registry.sweep_forever(settings.tracker_sweep_interval_seconds)
        )
        yield
        sweeper.cancel()
        logger.info("readtrack shutting down, flushing %d trackers...", len(app.state.registry))
        await app.state.registry.close_all()

    application = FastAPI(
        title="readtrack",
        description="Reading engagement tracker and recommendation gateway",
        version=__version__,
        lifespan=lifespan,
    )
    application.state.registry = TrackerRegistry(
        settings,
        collaborators or build_collaborator_factory(settings),
        clock or SystemClock(),
    )

    # ── Middleware ──────────────────────────────────
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Routes ─────────────────────────────────────
    application.include_router(tracking_router)
    application.include_router(recommendations_router)

    # ── Health Check ───────────────────────────────
    @application.get("/health", tags=["System"])
    async def health() -> dict[str, str]:
        return {"status": "healthy", "service": "readtrack"}

    return application


app = create_app()
