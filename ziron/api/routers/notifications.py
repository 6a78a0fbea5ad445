"""
Notifications Router.

Implements:
- POST /api/v1/notifications/send
- POST /api/v1/notifications/send-and-wait
- POST /api/v1/notifications/mock
- GET  /api/v1/notifications
- PUT  /api/v1/notifications/read-all
- PUT  /api/v1/notifications/{notification_id}/read

Failures propagate as typed errors (validation / persistence / broker) and
are rendered by the app-level exception handler.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Query

from ..dependencies import DbSession, Queue
from ..schemas import (
    ErrorResponse,
    JobResponse,
    MockNotificationRequest,
    NotificationItem,
    NotificationListResponse,
    NotificationUpdateResponse,
)
from ...services import notifications as notification_service

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Notifications"],
    responses={
        422: {"description": "Invalid notification input", "model": ErrorResponse},
        500: {"description": "Database failure", "model": ErrorResponse},
        503: {"description": "Broker unavailable", "model": ErrorResponse},
    },
)


@router.post(
    "/notifications/send",
    response_model=JobResponse,
    status_code=202,
    summary="Queue a notification",
    description="Validates `{userId, message, type}` and enqueues a `notification` job.",
)
async def send_notification(queue: Queue, payload: Any = Body(...)):
    job = await notification_service.send_notification(queue, payload)
    return JobResponse(**job.to_dict())


@router.post(
    "/notifications/send-and-wait",
    response_model=JobResponse,
    summary="Queue a notification and wait for the worker",
    description="Returns once the job completed or failed; a failed job is reported in `state`/`failedReason`.",
)
async def send_notification_and_wait(
    queue: Queue,
    payload: Any = Body(...),
    timeout: Optional[float] = Query(None, gt=0, description="Seconds to wait before giving up (503)"),
):
    job = await notification_service.send_notification_and_wait(queue, payload, timeout=timeout)
    return JobResponse(**job.to_dict())


@router.post(
    "/notifications/mock",
    response_model=JobResponse,
    status_code=202,
    summary="Queue a mock notification",
)
async def send_mock_notification(queue: Queue, body: MockNotificationRequest):
    job = await notification_service.send_mock_notification(queue, body.user_id)
    return JobResponse(**job.to_dict())


@router.get(
    "/notifications",
    response_model=NotificationListResponse,
    summary="List a user's notifications",
)
async def list_notifications(
    db: DbSession,
    user_id: str = Query(...),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    rows = await notification_service.get_notifications(db, user_id, limit=limit, offset=offset)
    return NotificationListResponse(
        notifications=[NotificationItem.model_validate(row.to_dict()) for row in rows],
        limit=limit,
        offset=offset,
    )


@router.put(
    "/notifications/read-all",
    response_model=NotificationUpdateResponse,
    summary="Mark all of a user's notifications as read",
)
async def mark_all_notifications_read(db: DbSession, user_id: str = Query(...)):
    updated = await notification_service.mark_all_notifications_as_read(db, user_id)
    return NotificationUpdateResponse(updated=updated)


@router.put(
    "/notifications/{notification_id}/read",
    response_model=NotificationUpdateResponse,
    summary="Mark a notification as read",
    description="`updated` is 0 when no notification has this id.",
)
async def mark_notification_read(notification_id: str, db: DbSession):
    updated = await notification_service.mark_notification_as_read(db, notification_id)
    return NotificationUpdateResponse(updated=updated)
