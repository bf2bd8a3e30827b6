"""
Database Engine and Sessions.

The async engine is created on first use so that importing the app does
not require config/.env. Pool sizing comes from database.yaml; the
per-statement timeout is application.yaml timeouts.database.

Two ways to get a session:
    get_db_session()  - FastAPI dependency, one session per request
    session_scope()   - context manager for work outside a request (purge)

Both commit when the block completes and roll back when it raises.
"""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from modules.backend.core.logging import get_logger

logger = get_logger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _create_engine() -> AsyncEngine:
    from modules.backend.core.config import get_app_config, get_database_url

    app_config = get_app_config()
    db_config = app_config.database

    engine = create_async_engine(
        get_database_url(),
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_recycle=db_config.pool_recycle,
        pool_pre_ping=True,
        echo=db_config.echo,
        connect_args={"command_timeout": app_config.application.timeouts.database},
    )
    logger.debug("Database engine created", extra={"host": db_config.host, "name": db_config.name})
    return engine


def get_engine() -> AsyncEngine:
    """Get the shared engine, creating it on first use."""
    global _engine
    if _engine is None:
        _engine = _create_engine()
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the shared session factory, creating it on first use."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Run a block in one transaction: commit on success, roll back on error."""
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session dependency.

    Usage in endpoints:
        async def handler(db: AsyncSession = Depends(get_db_session)): ...
    """
    async with session_scope() as session:
        yield session


async def dispose_engine() -> None:
    """Close the pool. Called on application and worker shutdown."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("Database engine disposed")
    _engine = None
    _session_factory = None
