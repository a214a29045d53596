"""
Database engine and session factories.

SQLite (aiosqlite) is the default backend; PostgreSQL (asyncpg) is supported
through the same URL setting.
"""

from pathlib import Path

from loguru import logger
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from chainmirror.config.settings import settings
from chainmirror.models import Base


def _set_sqlite_pragmas(dbapi_connection, connection_record) -> None:
    """Enable WAL journaling for file-backed SQLite."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def create_engine(
    database_url: str | None = None,
    echo: bool | None = None,
    **kwargs,
) -> AsyncEngine:
    """
    Create the async engine.

    Args:
        database_url: Database URL (default: DATABASE_URL setting)
        echo: Echo SQL statements (default: DATABASE_ECHO setting)
        **kwargs: Extra create_async_engine arguments

    Returns:
        Configured async engine
    """
    url = make_url(database_url or settings.database_url)
    echo = settings.database_echo if echo is None else echo

    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        # File-backed SQLite needs its directory to exist
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_async_engine(url, echo=echo, **kwargs)

    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        event.listen(engine.sync_engine, "connect", _set_sqlite_pragmas)

    return engine


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create session maker bound to the engine.

    Args:
        engine: Async engine

    Returns:
        Session factory with expire_on_commit disabled
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """
    Create all tables that do not exist yet.

    Args:
        engine: Async engine
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)
    logger.info("Database tables ready")
