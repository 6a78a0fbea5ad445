"""
SQLAlchemy Engine Configuration.

Creates the database engines shared by the API and the worker.
Async only: request handlers, worker runners and bootstrap all run on the event loop.
"""

import os
from functools import lru_cache

from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.pool import NullPool


def get_database_url(async_mode: bool = False) -> str:
    """
    Get database URL from environment or use default SQLite.

    Args:
        async_mode: If True, returns async-compatible URL

    Returns:
        Database connection URL
    """
    db_url = os.environ.get("DATABASE_URL", "")

    if not db_url:
        base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
        db_path = os.path.join(base_dir, 'instance', 'ziron.db')
        db_url = f"sqlite:///{db_path}"

    if async_mode:
        if db_url.startswith("sqlite:///"):
            return db_url.replace("sqlite:///", "sqlite+aiosqlite:///")
        elif db_url.startswith("postgresql://"):
            return db_url.replace("postgresql://", "postgresql+asyncpg://")
        elif db_url.startswith("postgres://"):
            return db_url.replace("postgres://", "postgresql+asyncpg://")

    return db_url


def _echo() -> bool:
    return os.environ.get('SQL_ECHO', 'false').lower() == 'true'


def _ensure_sqlite_dir(db_url: str) -> None:
    marker = ":///"
    if not db_url.startswith("sqlite") or marker not in db_url:
        return
    path = db_url.split(marker, 1)[1]
    if path and path != ":memory:":
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)


@lru_cache()
def get_async_engine() -> AsyncEngine:
    """
    Get or create asynchronous SQLAlchemy engine.

    Used by request handlers and worker runners. Created on first use,
    disposed by `dispose_engines()` at shutdown.
    """
    db_url = get_database_url(async_mode=True)

    if "sqlite" in db_url:
        _ensure_sqlite_dir(db_url)
        return create_async_engine(
            db_url,
            echo=_echo(),
            connect_args={"check_same_thread": False},
            poolclass=NullPool,
        )

    return create_async_engine(
        db_url,
        echo=_echo(),
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=3600
    )


async def dispose_engines() -> None:
    """Dispose the cached engine and forget it so the next use reconnects."""
    if get_async_engine.cache_info().currsize:
        await get_async_engine().dispose()
        get_async_engine.cache_clear()
