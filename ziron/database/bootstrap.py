"""
Database bootstrap utilities.

Responsibilities:
- Create missing tables (SQLAlchemy metadata `create_all`)
- Seed an optional dev admin so sweep notifications have a recipient
"""

from __future__ import annotations

import logging
import os

from sqlalchemy import select

from .engine import get_async_engine
from .session import get_async_db_session
from ..models import Base, User

logger = logging.getLogger(__name__)


async def init_db() -> None:
    """
    Idempotent DB init for local/dev deployments.

    For production, prefer proper migrations; this keeps dev/test environments simple.
    """
    engine = get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if _is_testing():
        return

    await _seed_default_admin()


def _is_testing() -> bool:
    return (os.getenv("TESTING") or "").lower() in ("true", "1", "yes")


async def _seed_default_admin() -> None:
    """
    Dev-only convenience. Controlled via env:
      - SEED_DEFAULT_ADMIN=true|false (default false)
      - DEFAULT_ADMIN_EMAIL / DEFAULT_ADMIN_NAME
    """
    if (os.getenv("SEED_DEFAULT_ADMIN") or "false").lower() not in ("true", "1", "yes"):
        return

    email = (os.getenv("DEFAULT_ADMIN_EMAIL") or "admin@example.com").strip() or "admin@example.com"
    name = (os.getenv("DEFAULT_ADMIN_NAME") or "Admin").strip() or "Admin"

    async with get_async_db_session() as session:
        existing = (await session.execute(select(User).where(User.email == email).limit(1))).scalar_one_or_none()
        if existing:
            return
        session.add(User(email=email, name=name, role="admin"))
        logger.warning("Default admin user created (dev): email=%s", email)
