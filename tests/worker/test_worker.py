import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import select

from ziron.database import get_async_db_session
from ziron.models import Collection, Notification
from ziron.models.base import utcnow
from ziron.queue import JobState, JobType

USER_ID = "123e4567-e89b-12d3-a456-426614174000"
PAYLOAD = {"userId": USER_ID, "message": "Hello", "type": "info"}


async def _notifications():
    async with get_async_db_session() as db:
        return (await db.execute(select(Notification))).scalars().all()


@pytest.mark.asyncio
async def test_notification_job_inserts_row_and_publishes(worker, queue, broker):
    job = await queue.enqueue(JobType.NOTIFICATION, PAYLOAD)

    finished = await worker.process_next()

    assert finished.id == job.id
    assert finished.state is JobState.COMPLETED
    rows = await _notifications()
    assert len(rows) == 1
    assert rows[0].user_id == USER_ID
    assert rows[0].read is False
    assert finished.result["notificationId"] == rows[0].id
    assert broker.published == [("notifications", {"userId": USER_ID, "type": "info", "message": "Hello"})]


@pytest.mark.asyncio
async def test_invalid_payload_is_skipped_without_side_effects(worker, queue, broker):
    # Bypasses producer validation to simulate a malformed job already on the queue.
    await broker.add(queue.queue_name, JobType.NOTIFICATION.value, {"userId": "", "message": "x", "type": "info"})

    finished = await worker.process_next()

    assert finished.is_completed
    assert finished.result["skipped"] is True
    assert finished.result["violations"][0]["field"] == "userId"
    assert await _notifications() == []
    assert broker.published == []


@pytest.mark.asyncio
async def test_unknown_job_type_fails(worker, queue, broker):
    await broker.add(queue.queue_name, "reindex-everything", {})

    finished = await worker.process_next()

    assert finished.is_failed
    assert finished.failed_reason == "Unknown job type reindex-everything"


@pytest.mark.asyncio
async def test_legacy_job_name_is_still_processed(worker, queue, broker):
    await broker.add(queue.queue_name, "send", PAYLOAD)

    finished = await worker.process_next()

    assert finished.is_completed
    assert len(await _notifications()) == 1


@pytest.mark.asyncio
async def test_runner_exception_marks_job_failed(db_schema, queue):
    from ziron.worker import Worker

    async def boom(data, ctx):
        raise RuntimeError("database is down")

    worker = Worker(queue, runners={JobType.NOTIFICATION: boom}, poll_timeout=1.0)
    await queue.enqueue(JobType.NOTIFICATION, PAYLOAD)

    finished = await worker.process_next()

    assert finished.is_failed
    assert finished.failed_reason == "database is down"


@pytest.mark.asyncio
async def test_enqueue_and_wait_sees_failure_from_worker(db_schema, queue):
    from ziron.worker import Worker

    async def boom(data, ctx):
        raise RuntimeError("database is down")

    worker = Worker(queue, runners={JobType.NOTIFICATION: boom}, poll_timeout=1.0)
    consumer = asyncio.create_task(worker.process_next())

    finished = await queue.enqueue_and_wait(JobType.NOTIFICATION, PAYLOAD, timeout=2)
    await consumer

    assert finished.is_failed
    assert finished.failed_reason == "database is down"


@pytest.mark.asyncio
async def test_process_next_returns_none_when_idle(worker):
    assert await worker.process_next(timeout=0.01) is None


@pytest.mark.asyncio
async def test_collection_sweep_job_purges_and_notifies_admins(worker, queue, broker, admin_user, db_session):
    db_session.add(Collection(title="Summer Sale", slug="summer-sale", deleted_at=utcnow() - timedelta(days=31)))
    await db_session.commit()

    await queue.enqueue(JobType.DELETE_SOFT_DELETED_COLLECTIONS)
    finished = await worker.process_next()

    assert finished.is_completed
    assert finished.result["deleted_count"] == 1
    admin_jobs = [job for job in broker.jobs() if job.name == JobType.NOTIFICATION.value]
    assert len(admin_jobs) == 1
    assert admin_jobs[0].data["userId"] == admin_user.id

    delivered = await worker.process_next()
    assert delivered.is_completed
    rows = await _notifications()
    assert [(row.user_id, row.type) for row in rows] == [(admin_user.id, "system")]


@pytest.mark.asyncio
async def test_run_loop_stops(worker, queue):
    await queue.enqueue(JobType.NOTIFICATION, PAYLOAD)

    task = asyncio.create_task(worker.run())
    for _ in range(100):
        if await queue.queue_length() == 0:
            break
        await asyncio.sleep(0.01)
    worker.stop()
    await asyncio.wait_for(task, timeout=3)

    assert not worker.running
    assert len(await _notifications()) == 1
