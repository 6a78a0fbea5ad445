from datetime import timedelta

import pytest
from sqlalchemy import select

from ziron.errors import PayloadValidationError
from ziron.models import Notification
from ziron.models.base import utcnow
from ziron.services import notifications as notification_service
from ziron.validators import validate_notification_payload

USER_ID = "123e4567-e89b-12d3-a456-426614174000"
OTHER_USER_ID = "9b2f3c4d-1111-4222-8333-444455556666"


async def _seed(db, user_id, *, read=False, age_minutes=0, deleted=False, message="Hello"):
    created = utcnow() - timedelta(minutes=age_minutes)
    notification = Notification(
        user_id=user_id,
        message=message,
        type="info",
        read=read,
        created_at=created,
        updated_at=created,
        deleted_at=utcnow() if deleted else None,
    )
    db.add(notification)
    await db.commit()
    return notification


@pytest.mark.asyncio
async def test_send_notification_enqueues_validated_payload(queue, broker):
    job = await notification_service.send_notification(
        queue, {"userId": USER_ID, "message": "Hello", "type": "info", "extra": "dropped"}
    )

    assert job.name == "notification"
    assert broker.jobs()[0].data == {"userId": USER_ID, "message": "Hello", "type": "info"}


@pytest.mark.asyncio
async def test_send_notification_rejects_invalid_payload(queue, broker):
    with pytest.raises(PayloadValidationError):
        await notification_service.send_notification(queue, {"userId": USER_ID, "message": "", "type": "info"})
    assert broker.jobs() == []


@pytest.mark.asyncio
async def test_send_mock_notification(queue, broker):
    await notification_service.send_mock_notification(queue, USER_ID)

    job = broker.jobs()[0]
    assert job.data["type"] == "mock"
    assert job.data["message"] == notification_service.MOCK_NOTIFICATION_MESSAGE


@pytest.mark.asyncio
async def test_create_notification_persists_unread_row(db_session):
    payload = validate_notification_payload({"userId": USER_ID, "message": "Hello", "type": "info"})

    notification = await notification_service.create_notification(db_session, payload, metadata={"source": "test"})

    stored = (await db_session.execute(select(Notification).where(Notification.id == notification.id))).scalar_one()
    assert stored.user_id == USER_ID
    assert stored.read is False
    assert stored.meta == {"source": "test"}
    assert stored.to_dict()["createdAt"].endswith("+00:00")


@pytest.mark.asyncio
async def test_publish_live_sends_payload_on_channel(queue, broker):
    payload = validate_notification_payload({"userId": USER_ID, "message": "Hello", "type": "info"})

    await notification_service.publish_live(queue, payload, channel="notifications")

    assert broker.published == [("notifications", {"userId": USER_ID, "type": "info", "message": "Hello"})]


@pytest.mark.asyncio
async def test_get_notifications_newest_first_excluding_deleted(db_session):
    await _seed(db_session, USER_ID, age_minutes=30, message="older")
    await _seed(db_session, USER_ID, age_minutes=5, message="newer")
    await _seed(db_session, USER_ID, deleted=True, message="deleted")
    await _seed(db_session, OTHER_USER_ID, message="someone else")

    rows = await notification_service.get_notifications(db_session, USER_ID)

    assert [row.message for row in rows] == ["newer", "older"]


@pytest.mark.asyncio
async def test_get_notifications_paginates(db_session):
    for minutes in range(5):
        await _seed(db_session, USER_ID, age_minutes=minutes, message=f"m{minutes}")

    rows = await notification_service.get_notifications(db_session, USER_ID, limit=2, offset=1)

    assert [row.message for row in rows] == ["m1", "m2"]


@pytest.mark.asyncio
async def test_mark_notification_as_read(db_session):
    notification = await _seed(db_session, USER_ID)

    updated = await notification_service.mark_notification_as_read(db_session, notification.id)

    assert updated == 1
    await db_session.refresh(notification)
    assert notification.read is True


@pytest.mark.asyncio
async def test_mark_notification_as_read_unknown_id_updates_nothing(db_session):
    assert await notification_service.mark_notification_as_read(db_session, "does-not-exist") == 0


@pytest.mark.asyncio
async def test_mark_notification_as_read_is_unconditional(db_session):
    notification = await _seed(db_session, USER_ID, read=True)

    assert await notification_service.mark_notification_as_read(db_session, notification.id) == 1


@pytest.mark.asyncio
async def test_mark_all_notifications_as_read_only_touches_user(db_session):
    await _seed(db_session, USER_ID)
    await _seed(db_session, USER_ID)
    other = await _seed(db_session, OTHER_USER_ID)

    updated = await notification_service.mark_all_notifications_as_read(db_session, USER_ID)

    assert updated == 2
    await db_session.refresh(other)
    assert other.read is False


async def _drop_notifications_table():
    from ziron.database import get_async_engine

    async with get_async_engine().begin() as conn:
        await conn.run_sync(Notification.__table__.drop)


@pytest.mark.asyncio
async def test_database_failure_raises_persistence_error(db_session):
    from sqlalchemy.exc import SQLAlchemyError

    from ziron.errors import PersistenceError

    await _drop_notifications_table()

    with pytest.raises(PersistenceError) as exc_info:
        await notification_service.mark_notification_as_read(db_session, "any-id")
    await db_session.rollback()

    assert exc_info.value.kind == "persistence"
    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "Database operation mark_notification_as_read failed"
    assert isinstance(exc_info.value.__cause__, SQLAlchemyError)
    assert "details" in exc_info.value.to_dict(include_details=True)["error"]
