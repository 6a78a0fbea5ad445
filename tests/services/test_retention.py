from datetime import datetime, timedelta

import pytest
from sqlalchemy import select

from ziron.models import Collection, Notification, Product
from ziron.models.base import utcnow
from ziron.services import retention

USER_ID = "123e4567-e89b-12d3-a456-426614174000"


def test_retention_cutoff_subtracts_days():
    now = datetime(2025, 3, 31, 12, 0, 0)
    assert retention.retention_cutoff(now, 30) == datetime(2025, 3, 1, 12, 0, 0)


@pytest.fixture
async def seeded_collections(db_session):
    now = utcnow()
    expired = Collection(title="Summer Sale", slug="summer-sale", deleted_at=now - timedelta(days=31))
    recent = Collection(title="Winter Sale", slug="winter-sale", deleted_at=now - timedelta(days=5))
    active = Collection(title="Basics", slug="basics")
    db_session.add_all([expired, recent, active])
    await db_session.commit()
    return {"expired": expired.id, "recent": recent.id, "active": active.id}


@pytest.mark.asyncio
async def test_collections_past_window_are_purged(db_session, seeded_collections):
    summary = await retention.delete_soft_deleted_collections(db_session)

    assert summary["deleted_count"] == 1
    assert summary["deleted"] == [{"id": seeded_collections["expired"], "title": "Summer Sale"}]
    assert summary["notifications_enqueued"] == 0

    remaining = (await db_session.execute(select(Collection.id))).scalars().all()
    assert set(remaining) == {seeded_collections["recent"], seeded_collections["active"]}


@pytest.mark.asyncio
async def test_collection_sweep_is_idempotent(db_session, seeded_collections):
    await retention.delete_soft_deleted_collections(db_session)
    second = await retention.delete_soft_deleted_collections(db_session)

    assert second["deleted_count"] == 0
    assert second["deleted"] == []


@pytest.mark.asyncio
async def test_collection_purge_notifies_every_admin(db_session, admin_user, queue, broker, seeded_collections):
    summary = await retention.delete_soft_deleted_collections(db_session, queue=queue)

    assert summary["notifications_enqueued"] == 1
    jobs = broker.jobs()
    assert len(jobs) == 1
    assert jobs[0].name == "notification"
    assert jobs[0].data["userId"] == admin_user.id
    assert jobs[0].data["type"] == "system"
    assert jobs[0].data["message"] == (
        'Collection "Summer Sale" has been permanently removed from the system '
        "after being in the trash for over 30 days."
    )


@pytest.mark.asyncio
async def test_no_admin_notifications_when_nothing_purged(db_session, admin_user, queue, broker):
    summary = await retention.delete_soft_deleted_collections(db_session, queue=queue)

    assert summary["deleted_count"] == 0
    assert broker.jobs() == []


@pytest.mark.asyncio
async def test_products_past_window_are_purged(db_session):
    now = utcnow()
    db_session.add_all([
        Product(title="Old Lamp", slug="old-lamp", deleted_at=now - timedelta(days=45)),
        Product(title="New Lamp", slug="new-lamp", deleted_at=now - timedelta(days=1)),
    ])
    await db_session.commit()

    summary = await retention.delete_soft_deleted_products(db_session)

    assert summary["deleted_count"] == 1
    assert summary["deleted"][0]["title"] == "Old Lamp"


@pytest.mark.asyncio
async def test_custom_window_is_respected(db_session, seeded_collections):
    summary = await retention.delete_soft_deleted_collections(db_session, days=3)

    assert summary["deleted_count"] == 2


@pytest.mark.asyncio
async def test_old_read_notifications_are_soft_deleted(db_session):
    old = utcnow() - timedelta(days=40)
    old_read = Notification(user_id=USER_ID, message="old read", type="info", read=True, created_at=old, updated_at=old)
    old_unread = Notification(user_id=USER_ID, message="old unread", type="info", read=False, created_at=old, updated_at=old)
    new_read = Notification(user_id=USER_ID, message="new read", type="info", read=True)
    db_session.add_all([old_read, old_unread, new_read])
    await db_session.commit()

    summary = await retention.delete_old_notifications(db_session)

    assert summary["soft_deleted_count"] == 1
    deleted = (
        await db_session.execute(select(Notification.message).where(Notification.deleted_at.is_not(None)))
    ).scalars().all()
    assert deleted == ["old read"]

    second = await retention.delete_old_notifications(db_session)
    assert second["soft_deleted_count"] == 0


@pytest.mark.asyncio
async def test_soft_deleted_notifications_are_purged_after_window(db_session):
    now = utcnow()
    db_session.add_all([
        Notification(user_id=USER_ID, message="expired", type="info", deleted_at=now - timedelta(days=31)),
        Notification(user_id=USER_ID, message="recent", type="info", deleted_at=now - timedelta(days=2)),
        Notification(user_id=USER_ID, message="live", type="info"),
    ])
    await db_session.commit()

    summary = await retention.delete_soft_deleted_notifications(db_session)

    assert summary["deleted_count"] == 1
    remaining = (await db_session.execute(select(Notification.message))).scalars().all()
    assert sorted(remaining) == ["live", "recent"]
