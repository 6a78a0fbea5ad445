"""
Job runners: one coroutine per JobType.

Each runner receives the job data and a JobContext and returns a
JSON-serialisable result that is stored on the finished job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, AsyncContextManager, Awaitable, Callable, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..errors import PayloadValidationError
from ..queue import JobType, QueueClient
from ..services import notifications as notification_service
from ..services import retention
from ..validators import validate_notification_payload

logger = logging.getLogger(__name__)


@dataclass
class JobContext:
    queue: QueueClient
    session_scope: Callable[[], AsyncContextManager[AsyncSession]]
    settings: Settings


Runner = Callable[[Dict[str, Any], JobContext], Awaitable[Any]]


async def run_notification(data: Dict[str, Any], ctx: JobContext) -> Dict[str, Any]:
    """Persist the notification, then push it to live subscribers."""
    try:
        payload = validate_notification_payload(data)
    except PayloadValidationError as exc:
        # A malformed job is dropped (completed without side effects), not retried.
        logger.error("Invalid notification payload: %s", exc.violations)
        return {"skipped": True, "violations": exc.violations}

    async with ctx.session_scope() as db:
        notification = await notification_service.create_notification(db, payload)

    logger.info("Notification %s inserted for user %s; publishing", notification.id, payload.user_id)
    receivers = await notification_service.publish_live(ctx.queue, payload, channel=ctx.settings.notification_channel)
    return {"notificationId": notification.id, "receivers": receivers}


async def run_delete_soft_deleted_collections(data: Dict[str, Any], ctx: JobContext) -> Dict[str, Any]:
    async with ctx.session_scope() as db:
        return await retention.delete_soft_deleted_collections(db, queue=ctx.queue)


async def run_delete_soft_deleted_products(data: Dict[str, Any], ctx: JobContext) -> Dict[str, Any]:
    async with ctx.session_scope() as db:
        return await retention.delete_soft_deleted_products(db, queue=ctx.queue)


async def run_delete_old_notifications(data: Dict[str, Any], ctx: JobContext) -> Dict[str, Any]:
    async with ctx.session_scope() as db:
        return await retention.delete_old_notifications(db)


async def run_delete_soft_deleted_notifications(data: Dict[str, Any], ctx: JobContext) -> Dict[str, Any]:
    async with ctx.session_scope() as db:
        return await retention.delete_soft_deleted_notifications(db)


RUNNERS: Dict[JobType, Runner] = {
    JobType.NOTIFICATION: run_notification,
    JobType.DELETE_SOFT_DELETED_COLLECTIONS: run_delete_soft_deleted_collections,
    JobType.DELETE_SOFT_DELETED_PRODUCTS: run_delete_soft_deleted_products,
    JobType.DELETE_OLD_NOTIFICATIONS: run_delete_old_notifications,
    JobType.DELETE_SOFT_DELETED_NOTIFICATIONS: run_delete_soft_deleted_notifications,
}
