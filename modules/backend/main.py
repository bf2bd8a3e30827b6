"""
FastAPI Application.

Serve with:
    uvicorn modules.backend.main:app

`app` is built on first attribute access so that importing this module
does not read config/.env.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from modules.backend.api import health
from modules.backend.api.v1 import router as api_v1_router
from modules.backend.core.config import AppConfig, get_app_config
from modules.backend.core.config_schema import ApplicationSchema
from modules.backend.core.database import dispose_engine
from modules.backend.core.exception_handlers import register_exception_handlers
from modules.backend.core.logging import get_logger, setup_logging
from modules.backend.core.middleware import RequestContextMiddleware
from modules.backend.tasks.runner import PurgeRunner

logger = get_logger(__name__)

_app: FastAPI | None = None


def _start_purge_runner(app_config: AppConfig) -> PurgeRunner | None:
    """Start the in-process purge loop unless purging is left to taskiq."""
    purge = app_config.notes.purge
    if purge.runner != "in_process":
        return None
    runner = PurgeRunner(interval_seconds=purge.interval_minutes * 60)
    runner.start()
    return runner


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    app_config = get_app_config()
    setup_logging(level=app_config.logging.level)

    app.state.purge_runner = _start_purge_runner(app_config)
    logger.info(
        "Application starting",
        extra={
            "app_name": app_config.application.name,
            "env": app_config.application.environment,
            "purge_runner": app_config.notes.purge.runner,
        },
    )

    try:
        yield
    finally:
        if app.state.purge_runner is not None:
            await app.state.purge_runner.stop()
        await dispose_engine()
        logger.info("Application stopped")


def _add_middleware(app: FastAPI, settings: ApplicationSchema) -> None:
    # Starlette runs the last added middleware first, so CORS wraps the request context.
    app.add_middleware(RequestContextMiddleware)
    if settings.cors.origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors.origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )


def create_app() -> FastAPI:
    """Build the application from application.yaml."""
    settings = get_app_config().application

    app = FastAPI(
        title=settings.name,
        description=settings.description,
        version=settings.version,
        docs_url="/docs" if settings.docs_enabled else None,
        redoc_url="/redoc" if settings.docs_enabled else None,
        lifespan=lifespan,
    )
    _add_middleware(app, settings)
    register_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(api_v1_router, prefix=settings.api_prefix)
    return app


def get_app() -> FastAPI:
    """Return the process-wide application, creating it on first call."""
    global _app
    if _app is None:
        _app = create_app()
    return _app


def __getattr__(name: str) -> FastAPI:
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
