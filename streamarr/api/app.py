"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from streamarr.api.routes import games, health, mapping_versions, stream_sources
from streamarr.api.startup_state import StartupPhase, StartupState
from streamarr.config import VERSION, Config, get_config
from streamarr.services import create_stream_services
from streamarr.utilities.logging import setup_logging

logger = logging.getLogger(__name__)


def create_app(
    config: Config | None = None,
    db_path: Path | str | None = None,
    cache_path: Path | str | None = None,
    use_database: bool = True,
    configure_logging: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Runtime settings (defaults to the environment)
        db_path: Override the database path
        cache_path: Override the JSON file cache path
        use_database: False serves from the file cache only
        configure_logging: Install log handlers on startup
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler - runs on startup and shutdown."""
        settings = config or get_config()
        if configure_logging:
            setup_logging(settings)
        logger.info("[STARTUP] Starting Streamarr %s...", VERSION)

        state: StartupState = app.state.startup_state
        services = create_stream_services(
            settings,
            db_path=db_path,
            cache_path=cache_path,
            use_database=use_database,
        )

        state.set_phase(StartupPhase.LOADING_OVERRIDES)
        services.start()
        state.record_load(services.store.stats())
        app.state.services = services

        state.set_phase(StartupPhase.READY)
        logger.info("[STARTUP] Streamarr ready (%.1fs)", state.elapsed_seconds)

        yield

        logger.info("[SHUTDOWN] Shutting down Streamarr...")
        app.state.services = None
        services.close()
        state.set_phase(StartupPhase.STOPPED)
        logger.info("[SHUTDOWN] Streamarr stopped")

    app = FastAPI(
        title="Streamarr API",
        description="Sports stream source resolution service",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.startup_state = StartupState()
    app.state.services = None

    app.include_router(health.router, tags=["Health"])
    app.include_router(stream_sources.router, prefix="/api/v1")
    app.include_router(games.router, prefix="/api/v1")
    app.include_router(mapping_versions.router, prefix="/api/v1")

    return app


app = create_app()
