"""
StationPlay Main Application

FastAPI application entry point for the playout engine.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from stationplay import __version__
from stationplay.clock import Clock, SystemClock
from stationplay.config import StationPlayConfig, get_config, load_config
from stationplay.database.connection import SessionFactory, close_db, init_db
from stationplay.playout.engine import PlayoutEngine

# Logger
logger = logging.getLogger(__name__)


def create_app(
    session_factory: Optional[SessionFactory] = None,
    clock: Optional[Clock] = None,
    config: Optional[StationPlayConfig] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        session_factory: Session factory to use. When omitted the
            process-wide database is initialized at startup.
        clock: Source of "now" for requests without ?at= (system clock by default).
        config: Configuration (the cached global config by default).

    Returns:
        Configured FastAPI application instance.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info(f"Starting StationPlay v{__version__}")
        app_config = config or get_config()

        owns_db = session_factory is None
        factory = session_factory or init_db(app_config.database.url)

        app.state.engine = PlayoutEngine(factory, app_config)
        app.state.clock = clock or SystemClock()
        logger.info(
            f"Playout engine ready (grace {app_config.scheduling.grace_seconds}s, "
            f"lookahead {app_config.scheduling.guide_lookahead_hours}h)"
        )

        yield

        if owns_db:
            try:
                close_db()
                logger.info("Database connections closed")
            except Exception as e:
                logger.warning(f"Error closing database: {e}")
        logger.info("StationPlay shutdown complete")

    app = FastAPI(
        title="StationPlay",
        description="Scheduled multi-channel playout engine",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    # Register API routers
    from stationplay.api import api_router
    app.include_router(api_router)

    @app.get("/", include_in_schema=False)
    async def root() -> RedirectResponse:
        return RedirectResponse(url="/api/docs")

    return app


def main() -> None:
    """
    Main entry point for running the server.

    Called when running `python -m stationplay` or via the CLI.
    """
    import uvicorn
    from stationplay.utils.logging_setup import setup_logging_from_config

    config = load_config()
    setup_logging_from_config(config.logging)

    logger.info(f"Starting StationPlay v{__version__}")

    uvicorn.run(
        create_app(config=config),
        host=config.server.host,
        port=config.server.port,
        log_level=config.server.log_level.lower(),
    )


if __name__ == "__main__":
    main()
