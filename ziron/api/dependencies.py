"""
FastAPI dependency aliases.

Routers receive the session, queue client, cache and monitor through these so
tests can swap any of them via `app.dependency_overrides` or the setters in
`ziron.queue` / `ziron.cache`.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..cache import CacheMonitor, CacheStore, get_cache, get_cache_monitor
from ..database.session import get_db
from ..queue import QueueClient, get_queue

DbSession = Annotated[AsyncSession, Depends(get_db)]
Queue = Annotated[QueueClient, Depends(get_queue)]
Cache = Annotated[CacheStore, Depends(get_cache)]
Monitor = Annotated[CacheMonitor, Depends(get_cache_monitor)]
