"""
Collection lookups (read-through cached) and soft deletion.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..cache import CACHE_DURATIONS, REDIS_KEYS, CacheMonitor, CacheStore
from ..errors import wraps_persistence_errors
from ..models.base import utcnow
from ..models.collection import Collection

logger = logging.getLogger(__name__)


def _slug_key(slug: str) -> str:
    return REDIS_KEYS["COLLECTION_BY_SLUG"].format(slug=slug)


def _id_key(collection_id: str) -> str:
    return REDIS_KEYS["COLLECTION_BY_ID"].format(id=collection_id)


@wraps_persistence_errors
async def get_collection_by_slug(
    db: AsyncSession,
    slug: str,
    *,
    cache: CacheStore,
    monitor: CacheMonitor,
) -> Optional[Dict[str, Any]]:
    """Active (not soft-deleted) collection by slug, served from cache when present."""
    async with monitor.timed() as probe:
        cached = await cache.get(_slug_key(slug))
        if cached is not None:
            probe["hit"] = True
            return cached

        row = (
            await db.execute(select(Collection).where(Collection.slug == slug, Collection.deleted_at.is_(None)))
        ).scalar_one_or_none()
        if row is None:
            return None

        data = row.to_dict()
        await cache.set(_slug_key(slug), data, CACHE_DURATIONS["MEDIUM"])
        await cache.set(_id_key(row.id), data, CACHE_DURATIONS["MEDIUM"])
        return data


@wraps_persistence_errors
async def soft_delete_collection(db: AsyncSession, collection_id: str, *, cache: CacheStore) -> Optional[Collection]:
    """
    Mark a collection deleted. Returns None when it does not exist or is
    already deleted. The retention sweep purges it later.
    """
    collection = (await db.execute(select(Collection).where(Collection.id == collection_id))).scalar_one_or_none()
    if collection is None or collection.deleted_at is not None:
        return None

    now = utcnow()
    collection.deleted_at = now
    collection.updated_at = now
    await db.commit()

    await cache.delete(_slug_key(collection.slug), _id_key(collection.id), REDIS_KEYS["COLLECTIONS"])
    logger.info("Soft-deleted collection %s (%s)", collection.id, collection.slug)
    return collection
