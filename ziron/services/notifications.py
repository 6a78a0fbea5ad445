"""
Notification actions.

Producers (send_notification, send_mock_notification) validate and enqueue;
the worker calls create_notification + publish_live; the API calls the
read-side and mark-as-read functions directly.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import wraps_persistence_errors
from ..models.base import utcnow
from ..models.notification import Notification
from ..queue import JobHandle, JobType, QueueClient
from ..validators import NotificationPayload, validate_notification_payload

logger = logging.getLogger(__name__)

MOCK_NOTIFICATION_MESSAGE = "This is a mock notification!"


async def send_notification(queue: QueueClient, data: Any) -> JobHandle:
    """Validate `data` and enqueue a notification job. Raises PayloadValidationError before touching the queue."""
    payload = validate_notification_payload(data)
    return await queue.enqueue(JobType.NOTIFICATION, payload.to_job_data())


async def send_notification_and_wait(queue: QueueClient, data: Any, *, timeout: Optional[float] = None) -> JobHandle:
    payload = validate_notification_payload(data)
    return await queue.enqueue_and_wait(JobType.NOTIFICATION, payload.to_job_data(), timeout=timeout)


async def send_mock_notification(queue: QueueClient, user_id: str) -> JobHandle:
    return await send_notification(queue, {"userId": user_id, "type": "mock", "message": MOCK_NOTIFICATION_MESSAGE})


@wraps_persistence_errors
async def create_notification(
    db: AsyncSession,
    payload: NotificationPayload,
    *,
    metadata: Optional[Dict[str, Any]] = None,
) -> Notification:
    now = utcnow()
    notification = Notification(
        user_id=str(payload.user_id),
        message=payload.message,
        type=payload.type,
        read=False,
        meta=metadata,
        created_at=now,
        updated_at=now,
    )
    db.add(notification)
    await db.commit()
    await db.refresh(notification)
    return notification


async def publish_live(queue: QueueClient, payload: NotificationPayload, channel: str = "notifications") -> int:
    """Push the notification to connected clients over pub/sub."""
    return await queue.publish(channel, {"userId": str(payload.user_id), "type": payload.type, "message": payload.message})


@wraps_persistence_errors
async def get_notifications(db: AsyncSession, user_id: str, limit: int = 10, offset: int = 0) -> List[Notification]:
    """Non-deleted notifications for a user, newest first."""
    query = (
        select(Notification)
        .where(Notification.user_id == user_id, Notification.deleted_at.is_(None))
        .order_by(desc(Notification.created_at))
        .limit(limit)
        .offset(offset)
    )
    return list((await db.execute(query)).scalars().all())


@wraps_persistence_errors
async def mark_notification_as_read(db: AsyncSession, notification_id: str) -> int:
    """
    Set `read` on one notification. Unconditional overwrite.

    Returns the number of rows updated: 0 for an unknown id (not an error).
    """
    result = await db.execute(
        update(Notification)
        .where(Notification.id == notification_id)
        .values(read=True, updated_at=utcnow())
    )
    await db.commit()
    return int(result.rowcount or 0)


@wraps_persistence_errors
async def mark_all_notifications_as_read(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id)
        .values(read=True, updated_at=utcnow())
    )
    await db.commit()
    updated = int(result.rowcount or 0)
    logger.info("Marked %s notifications read for user %s", updated, user_id)
    return updated
