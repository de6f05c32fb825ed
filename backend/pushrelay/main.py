"""
Main FastAPI application.

WHY: This is the entry point for the application. It configures logging,
middleware, routes, exception handlers and the startup/shutdown of the
database and the periodic push sweep.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from pushrelay.api import send_push, subscriptions
from pushrelay.core.config import Settings, settings
from pushrelay.core.exceptions import AppException
from pushrelay.core.exception_handlers import (
    app_exception_handler,
    database_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    generic_exception_handler,
)
from pushrelay.core.logging import setup_logging
from pushrelay.db.session import Database
from pushrelay.middleware import RequestContextMiddleware
from pushrelay.services.push_delivery import build_delivery_service
from pushrelay.services.push_sweep import PushSweepService, make_sweep_payload_factory
from pushrelay.services.scheduler import start_scheduler, shutdown_scheduler, get_scheduler_status

logger = logging.getLogger(__name__)


def create_lifespan(config: Settings):
    """
    Build the application lifespan.

    HOW:
    startup - connect the database, build the delivery collaborator (fails
    without VAPID keys), start the sweep scheduler
    shutdown - stop the scheduler, close the database
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        database = Database(config.async_database_url, echo=config.DATABASE_ECHO)
        await database.connect()
        try:
            if config.DATABASE_AUTO_CREATE:
                await database.create_schema()

            delivery = build_delivery_service(config)

            app.state.database = database
            app.state.delivery = delivery

            if config.PUSH_SWEEP_ENABLED:
                sweep_service = PushSweepService(
                    session_factory=database.session_factory,
                    delivery=delivery,
                    payload_factory=make_sweep_payload_factory(config),
                )
                app.state.sweep_service = sweep_service
                await start_scheduler(sweep_service, config.PUSH_SWEEP_INTERVAL_SECONDS)
            else:
                logger.info("Push notification sweep disabled")

            yield

        finally:
            logger.info("Shutting down...")
            await shutdown_scheduler()
            await database.dispose()

    return lifespan


def create_app(config: Settings = settings) -> FastAPI:
    """
    Create and configure FastAPI application.

    WHY: Factory pattern allows easier testing with different configurations.

    Args:
        config: Settings to build the application from

    Returns:
        Configured FastAPI application instance
    """
    setup_logging(level=config.log_level, json_output=config.is_production)

    app = FastAPI(
        title=config.PROJECT_NAME,
        description="Web Push subscription store and delivery API",
        version=config.VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=create_lifespan(config),
    )

    # Register exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.add_middleware(RequestContextMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["health"])
    async def health_check() -> dict:
        """
        Health check endpoint.

        WHAT: Reports liveness and scheduler state without touching the database.
        """
        return {
            "status": "healthy",
            "version": config.VERSION,
            "scheduler": get_scheduler_status(),
        }

    @app.get("/", tags=["root"])
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "name": config.PROJECT_NAME,
            "version": config.VERSION,
            "docs": "/docs",
        }

    app.include_router(subscriptions.router)
    app.include_router(send_push.router)

    return app


# Create app instance
# WHY: Importable by uvicorn as ``pushrelay.main:app``
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pushrelay.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.log_level.lower(),
    )
