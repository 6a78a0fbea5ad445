"""
Retention sweeps.

Soft-deleted collections and products are purged once their `deleted_at` is
older than the retention window (30 days by default), and each purge is
announced to every admin as a "system" notification. Notifications go through
two stages: read notifications past the window are soft-deleted, then
soft-deleted notifications past the window are purged.

Every sweep is idempotent: a second run with no new deletions changes nothing.
There is no batching; a failure aborts the sweep and propagates to the caller.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Type

from sqlalchemy import and_, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..errors import wraps_persistence_errors
from ..models.base import utcnow
from ..models.collection import Collection
from ..models.notification import Notification
from ..models.product import Product
from ..models.user import User
from ..queue import JobType, QueueClient

logger = logging.getLogger(__name__)


def retention_cutoff(now: Optional[datetime] = None, days: Optional[int] = None) -> datetime:
    if days is None:
        days = get_settings().retention_days
    return (now or utcnow()) - timedelta(days=days)


async def _admin_ids(db: AsyncSession) -> list:
    return list((await db.execute(select(User.id).where(User.role == "admin"))).scalars().all())


async def _notify_admins(db: AsyncSession, queue: QueueClient, label: str, titles: list, days: int) -> int:
    admin_ids = await _admin_ids(db)
    enqueued = 0
    for admin_id in admin_ids:
        for title in titles:
            await queue.enqueue(
                JobType.NOTIFICATION,
                {
                    "userId": admin_id,
                    "type": "system",
                    "message": (
                        f'{label} "{title}" has been permanently removed from the system '
                        f"after being in the trash for over {days} days."
                    ),
                },
            )
            enqueued += 1
    if enqueued:
        logger.info("Sent %s notifications to %s admin users", enqueued, len(admin_ids))
    return enqueued


async def _purge_soft_deleted(
    db: AsyncSession,
    model: Type[Any],
    label: str,
    *,
    now: Optional[datetime],
    days: Optional[int],
    queue: Optional[QueueClient],
) -> Dict[str, Any]:
    days = get_settings().retention_days if days is None else days
    cutoff = retention_cutoff(now, days)
    expired = and_(model.deleted_at.is_not(None), model.deleted_at < cutoff)

    rows = (await db.execute(select(model.id, model.title.label("title")).where(expired))).all()
    if rows:
        await db.execute(delete(model).where(model.id.in_([row.id for row in rows])))
    await db.commit()

    removed = [{"id": row.id, "title": row.title} for row in rows]
    logger.info("Hard-deleted %s %ss soft-deleted over %s days ago: %s", len(removed), label.lower(), days, removed)

    enqueued = 0
    if removed and queue is not None:
        enqueued = await _notify_admins(db, queue, label, [row["title"] for row in removed], days)

    return {
        "cutoff": cutoff.isoformat(),
        "deleted_count": len(removed),
        "deleted": removed,
        "notifications_enqueued": enqueued,
    }


@wraps_persistence_errors
async def delete_soft_deleted_collections(
    db: AsyncSession,
    *,
    now: Optional[datetime] = None,
    days: Optional[int] = None,
    queue: Optional[QueueClient] = None,
) -> Dict[str, Any]:
    """Purge collections soft-deleted before the retention cutoff."""
    return await _purge_soft_deleted(db, Collection, "Collection", now=now, days=days, queue=queue)


@wraps_persistence_errors
async def delete_soft_deleted_products(
    db: AsyncSession,
    *,
    now: Optional[datetime] = None,
    days: Optional[int] = None,
    queue: Optional[QueueClient] = None,
) -> Dict[str, Any]:
    return await _purge_soft_deleted(db, Product, "Product", now=now, days=days, queue=queue)


@wraps_persistence_errors
async def delete_old_notifications(
    db: AsyncSession,
    *,
    now: Optional[datetime] = None,
    days: Optional[int] = None,
) -> Dict[str, Any]:
    """Soft-delete read notifications created before the cutoff."""
    now = now or utcnow()
    cutoff = retention_cutoff(now, days)
    result = await db.execute(
        update(Notification)
        .where(
            Notification.created_at < cutoff,
            Notification.read.is_(True),
            Notification.deleted_at.is_(None),
        )
        .values(deleted_at=now, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    count = int(result.rowcount or 0)
    logger.info("Soft-deleted %s read notifications created before %s", count, cutoff.isoformat())
    return {"cutoff": cutoff.isoformat(), "soft_deleted_count": count}


@wraps_persistence_errors
async def delete_soft_deleted_notifications(
    db: AsyncSession,
    *,
    now: Optional[datetime] = None,
    days: Optional[int] = None,
) -> Dict[str, Any]:
    """Purge notifications soft-deleted before the cutoff."""
    cutoff = retention_cutoff(now, days)
    result = await db.execute(
        delete(Notification)
        .where(Notification.deleted_at.is_not(None), Notification.deleted_at < cutoff)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    count = int(result.rowcount or 0)
    logger.info("Hard-deleted %s notifications soft-deleted before %s", count, cutoff.isoformat())
    return {"cutoff": cutoff.isoformat(), "deleted_count": count}
