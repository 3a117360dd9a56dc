from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import sessionmaker

from cubicle_booking.api.v1.router import router as api_v1_router
from cubicle_booking.config.logging import get_logger, setup_logging
from cubicle_booking.config.settings import Settings, settings as default_settings
from cubicle_booking.core.events import ChangeFeed, change_feed
from cubicle_booking.core.middleware import register_exception_handlers, register_middlewares
from cubicle_booking.db.init_db import init_db, seed_cubicles
from cubicle_booking.db.notifications import install_change_notifications
from cubicle_booking.db.session import SessionLocal
from cubicle_booking.services.booking_flow import BookingFlowManager
from cubicle_booking.services.cubicle_registry import CubicleBoard
from cubicle_booking.utils.date_utils import now_utc

logger = get_logger(__name__)


def create_app(
    session_factory: Optional[sessionmaker] = None,
    settings: Optional[Settings] = None,
    clock: Optional[Callable[[], datetime]] = None,
    feed: Optional[ChangeFeed] = None,
    configure_logging: bool = True,
) -> FastAPI:
    """
    Application factory for the FastAPI app.

    - Configures title, version, debug mode from Settings.
    - Registers CORS, core middleware, and exception handlers.
    - Wires the session factory to the change feed and the live board.
    - Includes the versioned API router under /api/v1.
    """
    settings = settings or default_settings
    session_factory = session_factory or SessionLocal
    feed = feed or change_feed

    if configure_logging:
        setup_logging()

    install_change_notifications(session_factory, feed)
    board = CubicleBoard(session_factory, feed, ttl_seconds=settings.BOARD_CACHE_TTL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not settings.is_production():
            # Production schemas are managed with migrations
            init_db(session_factory.kw["bind"])
        seed_cubicles(session_factory)
        board.start()
        logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")
        yield
        board.stop()
        logger.info(f"{settings.APP_NAME} stopped")

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version=settings.API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.clock = clock or now_utc
    app.state.feed = feed
    app.state.board = board
    app.state.flow_manager = BookingFlowManager(idle_timeout=settings.BOOKING_FLOW_IDLE_TIMEOUT)

    # CORS Configuration
    if settings.CORS_ORIGINS and settings.CORS_ORIGINS != ["*"]:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        # Permissive for development; tighten in production
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Register shared core middlewares (request ID, timing, etc.)
    register_middlewares(app)
    register_exception_handlers(app)

    # Mount API v1 under /api/v1
    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "cubicle_booking.main:create_app",
        factory=True,
        host=default_settings.HOST,
        port=default_settings.PORT,
        reload=default_settings.is_development(),
    )


if __name__ == "__main__":
    run()
