"""
SQLAlchemy Session Management.

Provides the async session factory shared by the API and the worker.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .engine import get_async_engine


_async_session_factory = None


def get_async_session_factory() -> async_sessionmaker:
    """Get or create async session factory."""
    global _async_session_factory
    if _async_session_factory is None:
        _async_session_factory = async_sessionmaker(
            bind=get_async_engine(),
            class_=AsyncSession,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False
        )
    return _async_session_factory


def reset_session_factories() -> None:
    """Forget the cached factory; the next call rebinds to the current engine."""
    global _async_session_factory
    _async_session_factory = None


@asynccontextmanager
async def get_async_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Async context manager for async database sessions.

    Usage (worker runners):
        async with get_async_db_session() as session:
            result = await session.execute(select(Notification))
    """
    session = get_async_session_factory()()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for database sessions.

    Usage in FastAPI route:
        @router.get("/notifications")
        async def list_notifications(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with get_async_db_session() as session:
        yield session
